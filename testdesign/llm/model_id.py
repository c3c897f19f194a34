"""Model identifier parsing.

Callers select a model with a compound ``provider:model`` string, e.g.
``openai:gpt-4o-mini`` or ``gemini:gemini-2.0-flash``. A bare name with no
provider prefix (``phi4mini``) belongs to the local Ollama provider.

Ollama model names may themselves contain ``:`` (``qwen2.5:7b``), so only
the FIRST colon separates the provider, and a leading colon means "no prefix".
"""

import re
from typing import Literal, NamedTuple

from testdesign.llm.errors import (
    InvalidIdentifierError,
    InvalidModelNameError,
    UnknownProviderError,
)

ProviderName = Literal["ollama", "openai", "anthropic", "gemini"]

PROVIDER_NAMES: tuple[str, ...] = ("ollama", "openai", "anthropic", "gemini")
DEFAULT_PROVIDER: ProviderName = "ollama"

MAX_MODEL_NAME_LENGTH = 200
MODEL_NAME_PATTERN = re.compile(r"[A-Za-z0-9._:/+-]+")


class ModelId(NamedTuple):
    provider: ProviderName
    model: str

    def __str__(self) -> str:
        return f"{self.provider}:{self.model}"


def parse_model_id(raw: str) -> ModelId:
    """Parse and validate a ``provider:model`` identifier.

    Raises:
        InvalidIdentifierError: the identifier is empty after trimming
        UnknownProviderError: the prefix is not a known provider
        InvalidModelNameError: the model part fails validation
    """
    model_id = raw.strip()
    if not model_id:
        raise InvalidIdentifierError("Model ID is empty")

    separator = model_id.find(":")
    if separator <= 0:
        validate_model_name(model_id)
        return ModelId(DEFAULT_PROVIDER, model_id)

    provider = model_id[:separator]
    model = model_id[separator + 1:].strip()

    if provider not in PROVIDER_NAMES:
        raise UnknownProviderError(provider)

    validate_model_name(model)
    return ModelId(provider, model)


def validate_model_name(value: str) -> None:
    if not value:
        raise InvalidModelNameError("Model name is empty")
    if len(value) > MAX_MODEL_NAME_LENGTH:
        raise InvalidModelNameError("Model name is too long")
    if not MODEL_NAME_PATTERN.fullmatch(value):
        raise InvalidModelNameError("Model name contains invalid characters")
