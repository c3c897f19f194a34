"""The capability every LLM provider client implements.

Providers differ in request shape, schema support and response envelope, but
the orchestrator only ever sees "two prompts + a schema in, text out":

  is_available()  → credential present (Ollama: always)
  list_models()   → ModelInfo list, ids prefixed with the provider name
  generate()      → GenerateResult(response_text, request_payload)
"""

from typing import Any, Optional, Protocol

from pydantic import BaseModel

from testdesign.llm.model_id import ProviderName

GENERATION_TEMPERATURE = 0.2


class ModelInfo(BaseModel):
    id: str  # "provider:model"
    name: str  # display name
    provider: ProviderName
    size: Optional[int] = None  # bytes, Ollama only


class GenerateResult(BaseModel):
    response_text: str
    # Exact body sent to the provider, kept for the generation job audit trail
    request_payload: dict[str, Any]


class LLMProvider(Protocol):
    name: ProviderName

    def is_available(self) -> bool: ...

    async def list_models(self) -> list[ModelInfo]: ...

    async def generate(
        self,
        model: str,
        system_prompt: str,
        user_prompt: str,
        schema: dict,
    ) -> GenerateResult: ...


def finalize_models(models: list[ModelInfo]) -> list[ModelInfo]:
    """Deduplicate by id (last one wins) and sort by display name."""
    by_id: dict[str, ModelInfo] = {}
    for m in models:
        by_id[m.id] = m
    return sorted(by_id.values(), key=lambda m: m.name)


def text_or_empty(value: object) -> str:
    """Envelope text field; anything but a string reads as "" (no answer)."""
    return value if isinstance(value, str) else ""
