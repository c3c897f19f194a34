"""Pydantic schemas for API requests/responses."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator, model_validator

from testdesign.schemas.ir import CoverageLevel, DesignDocument, MAX_TEXT_LENGTH


# =============================================================================
# DESIGN / IR
# =============================================================================

class DesignRequest(BaseModel):
    """Request body for generating a test design."""
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    profile_id: PositiveInt
    suite_name: str = Field(..., min_length=1, max_length=200)
    coverage_level: CoverageLevel
    element_steps_text: str = Field(..., min_length=1, max_length=MAX_TEXT_LENGTH)
    spec_text: str = Field("", max_length=MAX_TEXT_LENGTH)
    model: Optional[str] = Field(None, max_length=300, description='"provider:model" or a bare Ollama model name')
    test_techniques: list[str] = Field(default_factory=list, max_length=50)

    @field_validator("test_techniques")
    @classmethod
    def techniques_valid(cls, v: list[str]) -> list[str]:
        cleaned = [t.strip() for t in v]
        if any(not t or len(t) > 200 for t in cleaned):
            raise ValueError("Each test technique must be 1-200 characters")
        return cleaned


class DesignResponse(BaseModel):
    design_id: str
    ir: dict[str, Any]


class SaveIRRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ir: DesignDocument


class SaveIRResponse(BaseModel):
    version_no: int


class LatestIRResponse(BaseModel):
    version_no: int
    ir: dict[str, Any]


class ExportRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ir: DesignDocument


class ExportResponse(BaseModel):
    csv: str


# =============================================================================
# PROFILES
# =============================================================================

class ProfileCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., max_length=200)
    terminology_text: str = Field("", max_length=MAX_TEXT_LENGTH)
    style_text: str = Field("", max_length=MAX_TEXT_LENGTH)
    custom_system_prompt: str = Field("", max_length=MAX_TEXT_LENGTH)

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Profile name must not be empty")
        return v.strip()


class ProfileUpdate(BaseModel):
    """Partial update. At least one field is required."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, max_length=200)
    terminology_text: Optional[str] = Field(None, max_length=MAX_TEXT_LENGTH)
    style_text: Optional[str] = Field(None, max_length=MAX_TEXT_LENGTH)
    custom_system_prompt: Optional[str] = Field(None, max_length=MAX_TEXT_LENGTH)

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Profile name must not be empty")
        return v.strip() if v is not None else v

    @model_validator(mode="after")
    def has_changes(self) -> "ProfileUpdate":
        if not self.changes():
            raise ValueError("No fields to update")
        return self

    def changes(self) -> dict[str, str]:
        return self.model_dump(exclude_none=True)


class ProfileResponse(BaseModel):
    id: str
    name: str
    terminology_text: str
    style_text: str
    custom_system_prompt: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileIdResponse(BaseModel):
    id: str


# =============================================================================
# LLM SETTINGS
# =============================================================================

class LLMSettingsUpdate(BaseModel):
    """Fields left out keep their value; an empty string clears a key."""
    model_config = ConfigDict(extra="forbid")

    openai_api_key: Optional[str] = Field(None, max_length=500)
    openai_base_url: Optional[str] = Field(None, max_length=500)
    gemini_api_key: Optional[str] = Field(None, max_length=500)
    anthropic_api_key: Optional[str] = Field(None, max_length=500)
