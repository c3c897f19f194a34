"""Error taxonomy for test design generation.

Every error carries a ``category`` so callers (the HTTP layer, a UI) can tell
"bad input" from "upstream unavailable" from "upstream returned garbage",
and a ``retryable`` flag read by the single-retry policy in invoker.py.

  DesignError
  ├── ModelSelectionError          bad_input
  │   ├── InvalidIdentifierError
  │   ├── UnknownProviderError
  │   └── InvalidModelNameError
  ├── ProviderNotConfiguredError   bad_input
  ├── ProviderError                upstream_unavailable (retryable)
  │   ├── ProviderTimeoutError
  │   ├── ProviderRequestError
  │   ├── ProviderListError
  │   └── ProviderGenerateError
  ├── LLMOutputError               upstream_garbage
  │   ├── InvalidLLMOutputError    (retryable)
  │   └── SchemaViolationError
  ├── DesignNotFoundError          not_found
  └── ProfileNotFoundError         not_found
"""

from typing import Optional

BAD_INPUT = "bad_input"
UPSTREAM_UNAVAILABLE = "upstream_unavailable"
UPSTREAM_GARBAGE = "upstream_garbage"
NOT_FOUND = "not_found"


class DesignError(Exception):
    """Base class for all errors raised by the generation pipeline."""

    category: str = BAD_INPUT
    retryable: bool = False


# =============================================================================
# MODEL SELECTION
# =============================================================================

class ModelSelectionError(DesignError):
    """Malformed model selection. Never retried."""


class InvalidIdentifierError(ModelSelectionError):
    """The model identifier string is empty."""


class UnknownProviderError(ModelSelectionError):
    """The ``provider:`` prefix names no known provider."""

    def __init__(self, provider: str):
        super().__init__(f"Unknown LLM provider: {provider}")
        self.provider = provider


class InvalidModelNameError(ModelSelectionError):
    """The bare model name is empty, too long, or has invalid characters."""


class ProviderNotConfiguredError(DesignError):
    """The provider's credential is missing."""

    def __init__(self, provider: str):
        super().__init__(
            f'Provider "{provider}" is not configured. Set the required API key.'
        )
        self.provider = provider


# =============================================================================
# PROVIDER / TRANSPORT
# =============================================================================

class ProviderError(DesignError):
    """Transport or upstream failure talking to an LLM provider."""

    category = UPSTREAM_UNAVAILABLE
    retryable = True


class ProviderTimeoutError(ProviderError):
    """The bounded request exceeded its timeout."""

    def __init__(self, label: str, timeout_s: float):
        super().__init__(f"{label}: request timeout ({int(timeout_s * 1000)}ms)")
        self.timeout_s = timeout_s


class ProviderRequestError(ProviderError):
    """The request could not be sent (connection refused, DNS, TLS...)."""


class _ProviderStatusError(ProviderError):
    def __init__(self, message: str, status: int, body: str):
        super().__init__(f"{message} {status}: {body}")
        self.status = status
        self.body = body


class ProviderListError(_ProviderStatusError):
    """Non-2xx response from a model listing endpoint."""


class ProviderGenerateError(_ProviderStatusError):
    """Non-2xx response from a generation endpoint."""


# =============================================================================
# MODEL OUTPUT
# =============================================================================

class LLMOutputError(DesignError):
    """The provider answered, but the answer is unusable."""

    category = UPSTREAM_GARBAGE


class InvalidLLMOutputError(LLMOutputError):
    """The extracted response text is not parseable JSON."""

    retryable = True

    def __init__(self, raw_text: str, parse_error: str):
        super().__init__(f"LLM returned invalid JSON: {parse_error}")
        self.raw_text = raw_text
        self.parse_error = parse_error


class SchemaViolationError(LLMOutputError):
    """Parsed JSON does not match the generated document shape."""

    def __init__(self, details: str, raw_output: Optional[object] = None):
        super().__init__(f"LLM response validation failed: {details}")
        self.details = details
        self.raw_output = raw_output


# =============================================================================
# PERSISTENCE
# =============================================================================

class DesignNotFoundError(DesignError):
    """The referenced design has no parent record."""

    category = NOT_FOUND

    def __init__(self, design_id: str):
        super().__init__(f"Design not found: {design_id}")
        self.design_id = design_id


class ProfileNotFoundError(DesignError):
    """The referenced profile does not exist."""

    category = NOT_FOUND

    def __init__(self, profile_id: int):
        super().__init__(f"Profile not found: {profile_id}")
        self.profile_id = profile_id
