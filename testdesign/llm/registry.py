"""Provider registry: the fixed set of LLM backends.

Adding a provider means one new class in providers/ and one entry in
``ProviderRegistry.default``; nothing in the orchestrator changes.
"""

import asyncio
from typing import Optional, Sequence

import httpx

from testdesign.llm.errors import ProviderNotConfiguredError, UnknownProviderError
from testdesign.llm.model_id import ModelId, parse_model_id
from testdesign.llm.providers.anthropic import AnthropicProvider
from testdesign.llm.providers.base import LLMProvider, ModelInfo
from testdesign.llm.providers.gemini import GeminiProvider
from testdesign.llm.providers.ollama import OllamaProvider
from testdesign.llm.providers.openai import OpenAIProvider
from testdesign.llm.settings import SettingsStore
from testdesign.utils.logging import log, get_logger

MODULE = "llm.registry"
logger = get_logger()


class ProviderRegistry:
    def __init__(self, providers: Sequence[LLMProvider]):
        self._providers = {p.name: p for p in providers}

    @classmethod
    def default(
        cls,
        settings: SettingsStore,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ProviderRegistry":
        return cls([
            OllamaProvider(settings, transport=transport),
            OpenAIProvider(settings, transport=transport),
            AnthropicProvider(settings, transport=transport),
            GeminiProvider(settings, transport=transport),
        ])

    @property
    def providers(self) -> list[LLMProvider]:
        return list(self._providers.values())

    def resolve(self, model_id: str) -> tuple[LLMProvider, ModelId]:
        """Map a ``provider:model`` string to a configured provider.

        Raises:
            InvalidIdentifierError / InvalidModelNameError: malformed identifier
            UnknownProviderError: no provider registered under the tag
            ProviderNotConfiguredError: the provider's credential is missing
        """
        parsed = parse_model_id(model_id)
        provider = self._providers.get(parsed.provider)
        if provider is None:
            raise UnknownProviderError(parsed.provider)
        if not provider.is_available():
            raise ProviderNotConfiguredError(parsed.provider)
        return provider, parsed

    async def list_all_models(self) -> list[ModelInfo]:
        """Models from every available provider.

        Providers are queried concurrently. A provider that fails is logged
        and skipped: one broken backend must not hide the working ones.
        """
        available = [p for p in self._providers.values() if p.is_available()]
        results = await asyncio.gather(
            *(p.list_models() for p in available),
            return_exceptions=True,
        )

        models: list[ModelInfo] = []
        for provider, result in zip(available, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                log.warning(logger, MODULE, "list_failed",
                            "Failed to list models from a provider",
                            provider=provider.name, error=str(result),
                            error_type=type(result).__name__)
                continue
            models.extend(result)

        log.debug(logger, MODULE, "list_done", "Model listing complete",
                  providers=len(available), models=len(models))
        return models
