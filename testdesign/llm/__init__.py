"""LLM provider dispatch and output handling.

  from testdesign.llm import GenerationOrchestrator, ProviderRegistry, SettingsStore

  settings = SettingsStore()
  registry = ProviderRegistry.default(settings)
  orchestrator = GenerationOrchestrator(registry)

  result = await call_with_single_retry(lambda: orchestrator.generate(request))
  document = postprocess_document(result.document)

Architecture:
  model_id.py       → "provider:model" parsing and validation
  schema_adapter.py → canonical JSON Schema → provider dialect
  http_client.py    → one httpx request per call, bounded timeout
  providers/        → Ollama, OpenAI, Anthropic, Gemini clients
  registry.py       → resolve a model id, list models across providers
  settings.py       → credentials cache (file + env)
  parser.py         → JSON extraction from raw LLM output
  invoker.py        → orchestrator + single-retry policy
  postprocess.py    → validate, sort, assign row ids
  errors.py         → error taxonomy with category/retryable
"""

from testdesign.llm.errors import (
    DesignError,
    ModelSelectionError,
    InvalidIdentifierError,
    UnknownProviderError,
    InvalidModelNameError,
    ProviderNotConfiguredError,
    ProviderError,
    ProviderTimeoutError,
    ProviderRequestError,
    ProviderListError,
    ProviderGenerateError,
    LLMOutputError,
    InvalidLLMOutputError,
    SchemaViolationError,
    DesignNotFoundError,
    ProfileNotFoundError,
)
from testdesign.llm.model_id import ModelId, parse_model_id
from testdesign.llm.settings import SettingsStore, LLMSettings, LLMSettingsSummary
from testdesign.llm.providers.base import GenerateResult, LLMProvider, ModelInfo
from testdesign.llm.registry import ProviderRegistry
from testdesign.llm.parser import extract_json_text, parse_llm_json
from testdesign.llm.invoker import (
    DEFAULT_MODEL_ID,
    GenerationOrchestrator,
    LLMResult,
    call_with_single_retry,
)
from testdesign.llm.postprocess import postprocess_document

__all__ = [
    # Errors
    "DesignError",
    "ModelSelectionError",
    "InvalidIdentifierError",
    "UnknownProviderError",
    "InvalidModelNameError",
    "ProviderNotConfiguredError",
    "ProviderError",
    "ProviderTimeoutError",
    "ProviderRequestError",
    "ProviderListError",
    "ProviderGenerateError",
    "LLMOutputError",
    "InvalidLLMOutputError",
    "SchemaViolationError",
    "DesignNotFoundError",
    "ProfileNotFoundError",
    # Model ids
    "ModelId",
    "parse_model_id",
    # Settings
    "SettingsStore",
    "LLMSettings",
    "LLMSettingsSummary",
    # Providers
    "GenerateResult",
    "LLMProvider",
    "ModelInfo",
    "ProviderRegistry",
    # Parsing
    "extract_json_text",
    "parse_llm_json",
    # Orchestration
    "DEFAULT_MODEL_ID",
    "GenerationOrchestrator",
    "LLMResult",
    "call_with_single_retry",
    "postprocess_document",
]
