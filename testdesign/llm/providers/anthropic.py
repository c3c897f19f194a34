"""Anthropic Messages API.

No structured-output mode: the schema is only guidance inside the user
prompt, and the answer is whatever text blocks the model returns.
"""

from typing import Optional

import httpx

from testdesign.llm.errors import (
    ProviderGenerateError,
    ProviderListError,
    ProviderNotConfiguredError,
)
from testdesign.llm.http_client import (
    DEFAULT_REQUEST_TIMEOUT_S,
    dict_items,
    read_error_body,
    read_json_object,
    request_with_timeout,
)
from testdesign.llm.providers.base import (
    GENERATION_TEMPERATURE,
    GenerateResult,
    ModelInfo,
    finalize_models,
    text_or_empty,
)
from testdesign.llm.settings import SettingsStore
from testdesign.utils.logging import log, get_logger

MODULE = "llm.anthropic"
logger = get_logger()

ANTHROPIC_BASE = "https://api.anthropic.com"
ANTHROPIC_VERSION = "2023-06-01"
MAX_TOKENS = 8192


class AnthropicProvider:
    name = "anthropic"

    def __init__(
        self,
        settings: SettingsStore,
        *,
        timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings
        self._timeout_s = timeout_s
        self._transport = transport

    def is_available(self) -> bool:
        return bool(self._settings.get().anthropic_api_key)

    def _headers(self, api_key: str) -> dict[str, str]:
        return {"x-api-key": api_key, "anthropic-version": ANTHROPIC_VERSION}

    async def list_models(self) -> list[ModelInfo]:
        api_key = self._settings.get().anthropic_api_key
        if not api_key:
            return []

        response = await request_with_timeout(
            "GET", f"{ANTHROPIC_BASE}/v1/models",
            error_label="Anthropic list models request failed",
            timeout_s=self._timeout_s,
            transport=self._transport,
            headers=self._headers(api_key),
        )
        if not response.is_success:
            raise ProviderListError(
                "Anthropic list models error", response.status_code, read_error_body(response),
            )

        data = read_json_object(response, "Anthropic list models")
        models = [
            ModelInfo(
                id=f"anthropic:{m['id']}",
                name=text_or_empty(m.get("display_name")) or m["id"],
                provider="anthropic",
            )
            for m in dict_items(data.get("data"))
            if text_or_empty(m.get("id")).startswith("claude-")
        ]
        log.debug(logger, MODULE, "list_done", "Anthropic models listed",
                  count=len(models))
        return finalize_models(models)

    async def generate(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        schema: dict,
    ) -> GenerateResult:
        api_key = self._settings.get().anthropic_api_key
        if not api_key:
            raise ProviderNotConfiguredError(self.name)

        request_payload = {
            "model": model,
            "max_tokens": MAX_TOKENS,
            "system": system_prompt,
            "messages": [
                {"role": "user", "content": user_prompt},
            ],
            "temperature": GENERATION_TEMPERATURE,
        }

        response = await request_with_timeout(
            "POST", f"{ANTHROPIC_BASE}/v1/messages",
            error_label="Anthropic generate request failed",
            timeout_s=self._timeout_s,
            transport=self._transport,
            headers=self._headers(api_key),
            json=request_payload,
        )
        if not response.is_success:
            raise ProviderGenerateError(
                "Anthropic API error", response.status_code, read_error_body(response),
            )

        data = read_json_object(response, "Anthropic generate")
        # Content is a list of blocks; only text blocks carry the answer
        response_text = "".join(
            text_or_empty(block.get("text"))
            for block in dict_items(data.get("content"))
            if block.get("type") == "text"
        )
        return GenerateResult(response_text=response_text, request_payload=request_payload)
