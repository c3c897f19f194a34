"""Pydantic schemas for structured data validation.

This package contains:
- ir.py: The test design document (suite + rows), the generation request,
  and the canonical JSON Schema loader
- api.py: Request/response schemas for the REST API

LLM output is validated against ir.GeneratedDocument BEFORE anything is
persisted; persisted documents always match ir.DesignDocument.
"""

from testdesign.schemas.ir import (
    CoverageLevel,
    Priority,
    EditedBy,
    Suite,
    GeneratedRow,
    DesignRow,
    GeneratedDocument,
    DesignDocument,
    GenerationRequest,
    get_ir_schema,
)

from testdesign.schemas.api import (
    DesignRequest,
    DesignResponse,
    SaveIRRequest,
    SaveIRResponse,
    LatestIRResponse,
    ExportRequest,
    ExportResponse,
    ProfileCreate,
    ProfileUpdate,
    ProfileResponse,
    ProfileIdResponse,
    LLMSettingsUpdate,
)

__all__ = [
    # IR
    "CoverageLevel",
    "Priority",
    "EditedBy",
    "Suite",
    "GeneratedRow",
    "DesignRow",
    "GeneratedDocument",
    "DesignDocument",
    "GenerationRequest",
    "get_ir_schema",
    # API
    "DesignRequest",
    "DesignResponse",
    "SaveIRRequest",
    "SaveIRResponse",
    "LatestIRResponse",
    "ExportRequest",
    "ExportResponse",
    "ProfileCreate",
    "ProfileUpdate",
    "ProfileResponse",
    "ProfileIdResponse",
    "LLMSettingsUpdate",
]
