"""Generation orchestration and the single-retry policy.

  1. RESOLVE: Map the model identifier to a configured provider
  2. PROMPT: Build the system/user prompt pair
  3. INVOKE: Exactly one provider call
  4. PARSE: Extract JSON from the raw response

Validation against the document shape is NOT done here: the caller must be
able to record the raw response of a structurally wrong document, so
postprocess.py runs after this returns.

Retries live outside the orchestrator. ``call_with_single_retry`` wraps any
zero-argument coroutine factory and retries it once.
"""

import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel

from testdesign.llm.parser import parse_llm_json
from testdesign.llm.registry import ProviderRegistry
from testdesign.prompts.design import build_system_prompt, build_user_prompt
from testdesign.schemas.ir import GenerationRequest, get_ir_schema
from testdesign.utils.logging import log, get_logger

MODULE = "llm.invoker"
logger = get_logger()

DEFAULT_MODEL_ID = "ollama:phi4mini"

T = TypeVar("T")


class LLMResult(BaseModel):
    """Outcome of one successful generation call."""

    document: Any  # parsed JSON, not yet validated
    request_payload: dict[str, Any]
    response_raw: str
    model_name: str  # "provider:model"


class GenerationOrchestrator:
    def __init__(self, registry: ProviderRegistry, schema: Optional[dict] = None):
        self._registry = registry
        self._schema = schema

    @property
    def schema(self) -> dict:
        if self._schema is None:
            self._schema = get_ir_schema()
        return self._schema

    async def generate(self, request: GenerationRequest) -> LLMResult:
        """Run one generation: resolve, prompt, call the provider once, parse.

        Raises:
            ModelSelectionError / ProviderNotConfiguredError: bad model choice
            ProviderError: transport failure, timeout or non-2xx response
            InvalidLLMOutputError: the response holds no parseable JSON
        """
        model_id = (request.model or "").strip() or DEFAULT_MODEL_ID
        provider, parsed = self._registry.resolve(model_id)

        system_prompt = build_system_prompt(request.custom_system_prompt)
        user_prompt = build_user_prompt(request, self.schema)

        log.info(logger, MODULE, "generate_start", "Calling LLM provider",
                 provider=parsed.provider, model=parsed.model,
                 suite=request.suite_name, coverage_level=request.coverage_level,
                 prompt_length=len(system_prompt) + len(user_prompt))

        _t0 = time.monotonic()
        result = await provider.generate(parsed.model, system_prompt, user_prompt, self.schema)
        latency_ms = int((time.monotonic() - _t0) * 1000)

        document = parse_llm_json(result.response_text)

        log.info(logger, MODULE, "generate_done", "LLM response parsed",
                 provider=parsed.provider, model=parsed.model,
                 latency_ms=latency_ms, raw_length=len(result.response_text))

        return LLMResult(
            document=document,
            request_payload=result.request_payload,
            response_raw=result.response_text,
            model_name=str(parsed),
        )


async def call_with_single_retry(
    call: Callable[[], Awaitable[T]],
    *,
    activity_name: str = "generate",
) -> T:
    """Await ``call()``; on failure, call it exactly once more.

    The second failure propagates unchanged. No backoff, no jitter. Errors
    that declare ``retryable = False`` (bad model selection, missing
    credentials) propagate immediately since a second identical call cannot
    succeed. Exceptions without the flag are retried.
    """
    try:
        return await call()
    except Exception as e:
        if not getattr(e, "retryable", True):
            raise
        log.warning(logger, MODULE, "retry_start",
                    f"First attempt failed for {activity_name}, retrying once",
                    error=str(e), error_type=type(e).__name__)

    result = await call()
    log.info(logger, MODULE, "retry_done", f"Retry succeeded for {activity_name}")
    return result
