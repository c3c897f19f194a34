"""Google Gemini (Generative Language API, v1beta).

Structured output takes an OpenAPI 3.0 subset in ``responseSchema``, so the
canonical schema is converted with ``to_openapi_schema`` first. The model
list is paginated; at most MAX_PAGES pages are fetched.
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

MODULE = "llm.gemini"
logger = get_logger()

GEMINI_BASE = "https://generativelanguage.googleapis.com/v1beta"
MAX_PAGES = 5


class GeminiProvider:
    name = "gemini"

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
        return bool(self._settings.get().gemini_api_key)

    async def list_models(self) -> list[ModelInfo]:
        api_key = self._settings.get().gemini_api_key
        if not api_key:
            return []

        models: list[ModelInfo] = []
        page_token: Optional[str] = None
        page_count = 0

        while page_count < MAX_PAGES:
            page_count += 1
            params = {"key": api_key}
            if page_token:
                params["pageToken"] = page_token

            response = await request_with_timeout(
                "GET", f"{GEMINI_BASE}/models",
                error_label="Gemini list models request failed",
                timeout_s=self._timeout_s,
                transport=self._transport,
                params=params,
            )
            if not response.is_success:
                raise ProviderListError(
                    "Gemini list models error", response.status_code, read_error_body(response),
                )

            data = read_json_object(response, "Gemini list models")
            for m in dict_items(data.get("models")):
                methods = m.get("supportedGenerationMethods")
                if not isinstance(methods, list) or "generateContent" not in methods:
                    continue
                full_name = text_or_empty(m.get("name"))
                base_model_id = text_or_empty(m.get("baseModelId")) or full_name.removeprefix("models/")
                if not base_model_id:
                    continue
                models.append(ModelInfo(
                    id=f"gemini:{base_model_id}",
                    name=text_or_empty(m.get("displayName")) or base_model_id,
                    provider="gemini",
                ))

            page_token = text_or_empty(data.get("nextPageToken"))
            if not page_token:
                break

        log.debug(logger, MODULE, "list_done", "Gemini models listed",
                  count=len(models), pages=page_count)
        return finalize_models(models)

    async def generate(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        schema: dict,
    ) -> GenerateResult:
        api_key = self._settings.get().gemini_api_key
        if not api_key:
            raise ProviderNotConfiguredError(self.name)

        request_payload = {
            "system_instruction": {
                "parts": [{"text": system_prompt}],
            },
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": user_prompt}],
                },
            ],
            "generationConfig": {
                "temperature": GENERATION_TEMPERATURE,
                "responseMimeType": "application/json",
                "responseSchema": adapt_schema(schema, "openapi"),
            },
        }

        response = await request_with_timeout(
            "POST", f"{GEMINI_BASE}/models/{model}:generateContent",
            error_label="Gemini generate request failed",
            timeout_s=self._timeout_s,
            transport=self._transport,
            params={"key": api_key},
            json=request_payload,
        )
        if not response.is_success:
            raise ProviderGenerateError(
                "Gemini API error", response.status_code, read_error_body(response),
            )

        data = read_json_object(response, "Gemini generate")
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            text = None
        response_text = text_or_empty(text)
        return GenerateResult(response_text=response_text, request_payload=request_payload)
