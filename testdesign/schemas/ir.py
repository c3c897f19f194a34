"""Pydantic schemas for the test design document (the IR).

Two row variants share one field set:
- GeneratedRow: what the model returns; ``id`` optional (it gets overwritten)
- DesignRow: what is persisted; ``id`` required

JSON keys follow the export column names (``Case``, ``Step``...). Python
attribute names are lowercase; models accept either and always dump by alias.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints


# =============================================================================
# ENUMS / CONSTRAINED STRINGS
# =============================================================================

CoverageLevel = Literal["smoke", "regression", "full"]
Priority = Literal["High", "Medium", "Low"]
EditedBy = Literal["model", "user"]

MAX_ROWS = 5000
MAX_TEXT_LENGTH = 20000


def _text(max_length: int, min_length: int = 1):
    return Annotated[
        str,
        StringConstraints(strip_whitespace=True, min_length=min_length, max_length=max_length),
    ]


# =============================================================================
# DOCUMENT
# =============================================================================

class Suite(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: _text(200)
    coverage_level: CoverageLevel
    assumptions: Optional[list[_text(500)]] = Field(default=None, max_length=100)
    notes: Optional[_text(5000, min_length=0)] = None


class _RowFields(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    case: _text(300) = Field(alias="Case")
    step: _text(5000) = Field(alias="Step")
    expected: _text(5000) = Field(alias="Expected")
    tag: _text(300, min_length=0) = Field(alias="Tag")
    priority: Priority = Field(alias="Priority")
    remarks: _text(5000, min_length=0)


class GeneratedRow(_RowFields):
    """A row as produced by the model."""
    id: Optional[_text(64, min_length=0)] = None


class DesignRow(_RowFields):
    """A persisted row. ``id`` keys the row for client-side diffing."""
    id: _text(64)


class GeneratedDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    suite: Suite
    rows: list[GeneratedRow] = Field(max_length=MAX_ROWS)


class DesignDocument(BaseModel):
    """The canonical, persist-ready document."""
    model_config = ConfigDict(extra="forbid")

    suite: Suite
    rows: list[DesignRow] = Field(max_length=MAX_ROWS)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return json.dumps(self.to_json_dict(), ensure_ascii=False)


# =============================================================================
# GENERATION REQUEST
# =============================================================================

class GenerationRequest(BaseModel):
    """Everything the orchestrator needs to build one prompt pair.

    Profile fields (terminology, style, custom system prompt) and the
    coverage-rule text are resolved by the caller before this is built.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    suite_name: _text(200)
    coverage_level: CoverageLevel
    element_steps_text: _text(MAX_TEXT_LENGTH)
    spec_text: str = Field(default="", max_length=MAX_TEXT_LENGTH)
    model: Optional[str] = Field(default=None, max_length=300)
    test_techniques: tuple[_text(200), ...] = Field(default=(), max_length=50)
    terminology_text: str = Field(default="", max_length=MAX_TEXT_LENGTH)
    style_text: str = Field(default="", max_length=MAX_TEXT_LENGTH)
    custom_system_prompt: str = Field(default="", max_length=MAX_TEXT_LENGTH)
    rule_text: str = ""


# =============================================================================
# CANONICAL JSON SCHEMA
# =============================================================================

IR_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "data" / "ir_schema.json"


@lru_cache(maxsize=1)
def _load_ir_schema_text() -> str:
    return IR_SCHEMA_PATH.read_text(encoding="utf-8")


def get_ir_schema() -> dict:
    """The canonical JSON Schema for the document, loaded once.

    A fresh dict is returned on every call so adapters and callers can never
    corrupt the cached copy.
    """
    return json.loads(_load_ir_schema_text())
