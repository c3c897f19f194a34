"""OpenAI (or any OpenAI-compatible endpoint via openai_base_url).

Structured output uses strict ``json_schema`` response_format, so the schema
is enforced by the provider and only ``$schema`` has to go.
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
from testdesign.llm.schema_adapter import adapt_schema
from testdesign.llm.settings import SettingsStore
from testdesign.utils.logging import log, get_logger

MODULE = "llm.openai"
logger = get_logger()

CHAT_MODEL_PREFIXES = ("gpt-", "chatgpt-", "o1-", "o3-", "o4-")
RESPONSE_SCHEMA_NAME = "test_design_ir"


def is_likely_chat_model(model_id: str) -> bool:
    """/v1/models also lists embeddings, TTS, moderation... keep chat models."""
    return model_id.lower().startswith(CHAT_MODEL_PREFIXES)


class OpenAIProvider:
    name = "openai"

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
        return bool(self._settings.get().openai_api_key)

    async def list_models(self) -> list[ModelInfo]:
        settings = self._settings.get()
        if not settings.openai_api_key:
            return []

        response = await request_with_timeout(
            "GET", f"{settings.openai_base_url}/v1/models",
            error_label="OpenAI list models request failed",
            timeout_s=self._timeout_s,
            transport=self._transport,
            headers={"Authorization": f"Bearer {settings.openai_api_key}"},
        )
        if not response.is_success:
            raise ProviderListError(
                "OpenAI list models error", response.status_code, read_error_body(response),
            )

        data = read_json_object(response, "OpenAI list models")
        models = [
            ModelInfo(id=f"openai:{m['id']}", name=m["id"], provider="openai")
            for m in dict_items(data.get("data"))
            if isinstance(m.get("id"), str) and is_likely_chat_model(m["id"])
        ]
        log.debug(logger, MODULE, "list_done", "OpenAI models listed",
                  count=len(models))
        return finalize_models(models)

    async def generate(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        schema: dict,
    ) -> GenerateResult:
        settings = self._settings.get()
        if not settings.openai_api_key:
            raise ProviderNotConfiguredError(self.name)

        request_payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": RESPONSE_SCHEMA_NAME,
                    "strict": True,
                    "schema": adapt_schema(schema, "strict"),
                },
            },
            "temperature": GENERATION_TEMPERATURE,
        }

        response = await request_with_timeout(
            "POST", f"{settings.openai_base_url}/v1/chat/completions",
            error_label="OpenAI generate request failed",
            timeout_s=self._timeout_s,
            transport=self._transport,
            headers={"Authorization": f"Bearer {settings.openai_api_key}"},
            json=request_payload,
        )
        if not response.is_success:
            raise ProviderGenerateError(
                "OpenAI API error", response.status_code, read_error_body(response),
            )

        data = read_json_object(response, "OpenAI generate")
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        response_text = text_or_empty(content)
        return GenerateResult(response_text=response_text, request_payload=request_payload)
