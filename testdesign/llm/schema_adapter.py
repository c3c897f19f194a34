"""Canonical JSON Schema → provider schema dialects.

One canonical schema (data/ir_schema.json) describes the generated document.
Providers disagree on how much of JSON Schema they accept:

  native       Ollama     accepts the schema as-is in ``format``
  strict       OpenAI     strict json_schema mode, rejects ``$schema``
  openapi      Gemini     OpenAPI 3.0 subset, rejects several keywords
  prompt_only  Anthropic  no structured output, the schema only lives in the prompt

All transforms are pure: they build a new tree and never touch their input.
"""

from typing import Any, Literal, Optional

SchemaDialect = Literal["native", "strict", "openapi", "prompt_only"]

STRICT_UNSUPPORTED_KEYS = frozenset({"$schema"})
OPENAPI_UNSUPPORTED_KEYS = frozenset({
    "$schema",
    "additionalProperties",
    "title",
    "description",
    "minItems",
})


def strip_keys(node: Any, keys: frozenset[str]) -> Any:
    """Deep-copy ``node`` dropping every mapping entry whose key is in ``keys``."""
    if isinstance(node, list):
        return [strip_keys(item, keys) for item in node]
    if isinstance(node, dict):
        return {k: strip_keys(v, keys) for k, v in node.items() if k not in keys}
    return node


def to_strict_json_schema(schema: dict) -> dict:
    """Schema for providers that enforce it exactly (drop ``$schema`` only)."""
    return strip_keys(schema, STRICT_UNSUPPORTED_KEYS)


def to_openapi_schema(schema: dict) -> dict:
    """Schema for providers that accept an OpenAPI 3.0 subset."""
    return strip_keys(schema, OPENAPI_UNSUPPORTED_KEYS)


def adapt_schema(schema: dict, dialect: SchemaDialect) -> Optional[dict]:
    """Produce the schema variant a provider dialect accepts.

    Returns None for ``prompt_only``: the schema is already embedded as text
    in the user prompt and there is nothing structural to send.
    """
    if dialect == "strict":
        return to_strict_json_schema(schema)
    if dialect == "openapi":
        return to_openapi_schema(schema)
    if dialect == "native":
        return strip_keys(schema, frozenset())
    if dialect == "prompt_only":
        return None
    raise ValueError(f"Unknown schema dialect: {dialect}")
