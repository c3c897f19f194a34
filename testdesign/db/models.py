"""SQLAlchemy models for profiles, design jobs, and IR versions."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Enum, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Profile(Base):
    """Per-team prompt customisation: terminology, style, extra instructions."""
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    terminology_text = Column(Text, nullable=False, default="")
    style_text = Column(Text, nullable=False, default="")
    custom_system_prompt = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=_now)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now)

    design_jobs = relationship("DesignJob", back_populates="profile")


class DesignJob(Base):
    """One generation attempt. Its id is the design id the version chain hangs off."""
    __tablename__ = "design_jobs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    profile_id = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    suite_name = Column(String(200), nullable=False)
    coverage_level = Column(
        Enum("smoke", "regression", "full", name="coverage_level"),
        nullable=False,
    )
    element_steps_text = Column(Text, nullable=False)
    spec_text = Column(Text, nullable=False, default="")
    rules_snapshot_text = Column(Text, nullable=False, default="")
    status = Column(
        Enum("success", "error", name="design_job_status"),
        nullable=False,
    )
    llm_model_name = Column(String(300), nullable=True)  # "provider:model"
    llm_request_json = Column(JSONB, nullable=True)  # exact body sent to the provider
    llm_response_json = Column(Text, nullable=True)  # raw response, or the error message
    created_at = Column(DateTime(timezone=True), default=_now)

    profile = relationship("Profile", back_populates="design_jobs")
    versions = relationship("IrVersion", back_populates="design_job", order_by="IrVersion.version_no")


class IrVersion(Base):
    """Immutable document snapshot. version_no is gapless per design, starting at 1."""
    __tablename__ = "ir_versions"
    __table_args__ = (
        UniqueConstraint("design_id", "version_no", name="uq_ir_versions_design_version"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    design_id = Column(UUID(as_uuid=True), ForeignKey("design_jobs.id"), nullable=False, index=True)
    version_no = Column(Integer, nullable=False)
    ir_json = Column(Text, nullable=False)
    edited_by = Column(
        Enum("model", "user", name="ir_edited_by"),
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), default=_now)

    design_job = relationship("DesignJob", back_populates="versions")
