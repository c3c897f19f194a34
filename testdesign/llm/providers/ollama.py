"""Local inference through Ollama.

Ollama needs no credential, so it always reports itself available; whether
the daemon is actually running only shows up when a request fails.
Structured output: the canonical schema goes verbatim into ``format``.
"""

from typing import Optional

import httpx

from testdesign.llm.errors import ProviderGenerateError, ProviderListError
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
from testdesign.llm.schema_adapter import adapt_schema
from testdesign.llm.settings import SettingsStore
from testdesign.utils.logging import log, get_logger

MODULE = "llm.ollama"
logger = get_logger()

NUM_CTX = 8192


class OllamaProvider:
    name = "ollama"

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
        return True

    async def list_models(self) -> list[ModelInfo]:
        base_url = self._settings.get().ollama_base_url
        response = await request_with_timeout(
            "GET", f"{base_url}/api/tags",
            error_label="Ollama list models request failed",
            timeout_s=self._timeout_s,
            transport=self._transport,
        )
        if not response.is_success:
            raise ProviderListError(
                "Ollama API error", response.status_code, read_error_body(response),
            )

        data = read_json_object(response, "Ollama list models")
        models = [
            ModelInfo(
                id=f"ollama:{m['name']}",
                name=m["name"],
                provider="ollama",
                size=m["size"] if isinstance(m.get("size"), int) else None,
            )
            for m in dict_items(data.get("models"))
            if isinstance(m.get("name"), str) and m["name"]
        ]
        log.debug(logger, MODULE, "list_done", "Ollama models listed",
                  count=len(models))
        return finalize_models(models)

    async def generate(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        schema: dict,
    ) -> GenerateResult:
        base_url = self._settings.get().ollama_base_url
        request_payload = {
            "model": model,
            "system": system_prompt,
            "prompt": user_prompt,
            "format": adapt_schema(schema, "native"),
            "stream": False,
            "options": {
                "temperature": GENERATION_TEMPERATURE,
                "num_ctx": NUM_CTX,
            },
        }

        response = await request_with_timeout(
            "POST", f"{base_url}/api/generate",
            error_label="Ollama generate request failed",
            timeout_s=self._timeout_s,
            transport=self._transport,
            json=request_payload,
        )
        if not response.is_success:
            raise ProviderGenerateError(
                "Ollama API error", response.status_code, read_error_body(response),
            )

        data = read_json_object(response, "Ollama generate")
        response_text = text_or_empty(data.get("response"))
        return GenerateResult(response_text=response_text, request_payload=request_payload)
