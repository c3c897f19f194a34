"""JSON extraction from LLM responses.

Even with a schema, models wrap JSON in markdown fences, prepend prose
("Here is the test design:"), or emit <think> blocks first. This module finds
the JSON text; parsing it is a separate step so a parse failure can carry
both the raw output and the decoder's message.

Extraction order:
  1. First fenced code block (```json ... ```, ```jsonc ... ```, ``` ... ```), trimmed
  2. First balanced top-level {...} span
  3. The raw text as-is (the parser will reject it)
"""

import json
import re
from typing import Any, Optional

from testdesign.llm.errors import InvalidLLMOutputError
from testdesign.utils.logging import log, get_logger

MODULE = "llm.parser"
logger = get_logger()

FENCE_PATTERN = re.compile(r"```[\w+-]*\s*\n?([\s\S]*?)\n?\s*```")
GREEDY_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


def strip_think_tags(raw: str) -> tuple[str, Optional[str]]:
    """Strip a <think>...</think> block from reasoning model output.

    Returns:
        Tuple of (content_after_think, thinking_content). Without tags the
        original text comes back with None.
    """
    think_match = re.search(r"<think>(.*?)</think>", raw, re.DOTALL)
    if think_match:
        thinking = think_match.group(1)
        after = raw[think_match.end():].strip()
        return after, thinking
    return raw, None


def extract_json_text(raw: str) -> str:
    """Find the JSON payload inside an LLM response."""
    text, thinking = strip_think_tags(raw)
    if thinking is not None:
        log.debug(logger, MODULE, "stripped_think", "Stripped <think> block from response",
                  thinking_length=len(thinking))

    fence_match = FENCE_PATTERN.search(text)
    if fence_match:
        return fence_match.group(1).strip()

    start = text.find("{")
    if start != -1:
        candidate = _extract_balanced(text[start:], "{", "}")
        if candidate:
            return candidate
        # Unbalanced (often truncated output): hand the widest span to the
        # parser so its error message points at the real problem
        greedy = GREEDY_OBJECT_PATTERN.search(text)
        if greedy:
            return greedy.group(0).strip()

    return text.strip()


def parse_llm_json(raw: str) -> Any:
    """Extract and parse the JSON payload of an LLM response.

    Raises:
        InvalidLLMOutputError: the extracted text is not valid JSON
    """
    json_text = extract_json_text(raw)
    try:
        return json.loads(json_text)
    except json.JSONDecodeError as e:
        log.warning(logger, MODULE, "parse_failed", "LLM returned invalid JSON",
                    error=str(e), raw_length=len(raw))
        raise InvalidLLMOutputError(raw_text=raw, parse_error=str(e)) from e


def _extract_balanced(text: str, open_char: str, close_char: str) -> Optional[str]:
    """Extract a balanced bracket expression from text.

    Args:
        text: Text starting with open_char
        open_char: Opening bracket ('{' or '[')
        close_char: Closing bracket ('}' or ']')

    Returns:
        The balanced expression including brackets, or None if unbalanced
    """
    if not text or text[0] != open_char:
        return None

    depth = 0
    in_string = False
    escape_next = False

    for i, char in enumerate(text):
        if escape_next:
            escape_next = False
            continue

        if char == "\\" and in_string:
            escape_next = True
            continue

        if char == '"':
            in_string = not in_string
            continue

        if in_string:
            continue

        if char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return text[:i + 1]

    return None  # Unbalanced
