"""Storage boundary for design jobs, IR versions and profiles.

The version chain needs three calls inside ONE transaction:

  async with storage.transaction() as tx:
      design = await tx.find_design_by_id(design_id, for_update=True)
      current = await tx.find_max_version_no(design_id)
      await tx.insert_version(design_id, (current or 0) + 1, ...)

``SqlStorage`` implements this over PostgreSQL. ``for_update`` takes a row
lock on the design job, which serialises concurrent appends to the same
design; the unique (design_id, version_no) constraint backs it up. Appends to
different designs never contend.

Records crossing this boundary are plain pydantic models, never ORM objects,
so nothing outside this module touches a session.
"""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncContextManager, AsyncIterator, Literal, Optional, Protocol

from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from testdesign.db.models import DesignJob, IrVersion, Profile
from testdesign.schemas.ir import DesignDocument, EditedBy
from testdesign.utils.logging import log, get_logger

MODULE = "db.storage"
logger = get_logger()


# =============================================================================
# RECORDS
# =============================================================================

class GenerationJobRecord(BaseModel):
    """Audit record of one generation attempt, written on success AND failure."""

    id: Optional[str] = None  # assigned by storage; becomes the design id
    profile_id: Optional[int] = None
    suite_name: str
    coverage_level: str
    element_steps_text: str
    spec_text: str = ""
    rules_snapshot_text: str = ""
    status: Literal["success", "error"]
    llm_model_name: Optional[str] = None
    llm_request_json: Optional[dict[str, Any]] = None
    llm_response_json: Optional[str] = None  # raw response, or the error message
    created_at: Optional[datetime] = None


class VersionRecord(BaseModel):
    design_id: str
    version_no: int
    document_json: str
    edited_by: EditedBy
    created_at: Optional[datetime] = None

    def document(self) -> DesignDocument:
        return DesignDocument.model_validate_json(self.document_json)


class ProfileRecord(BaseModel):
    id: int
    name: str
    terminology_text: str = ""
    style_text: str = ""
    custom_system_prompt: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# PROTOCOLS
# =============================================================================

class VersionTransaction(Protocol):
    async def find_design_by_id(
        self, design_id: str, *, for_update: bool = False,
    ) -> Optional[GenerationJobRecord]: ...

    async def find_max_version_no(self, design_id: str) -> Optional[int]: ...

    async def insert_version(
        self, design_id: str, version_no: int, document_json: str, edited_by: EditedBy,
    ) -> VersionRecord: ...


class DesignStorage(Protocol):
    def transaction(self) -> AsyncContextManager[VersionTransaction]: ...

    async def record_job(self, job: GenerationJobRecord) -> str: ...

    async def find_latest_version(self, design_id: str) -> Optional[VersionRecord]: ...


class ProfileStorage(Protocol):
    async def list_profiles(self) -> list[ProfileRecord]: ...

    async def get_profile(self, profile_id: int) -> Optional[ProfileRecord]: ...

    async def create_profile(
        self, *, name: str, terminology_text: str = "", style_text: str = "",
        custom_system_prompt: str = "",
    ) -> ProfileRecord: ...

    async def update_profile(self, profile_id: int, **fields: str) -> Optional[ProfileRecord]: ...


# =============================================================================
# SQLALCHEMY IMPLEMENTATION
# =============================================================================

def _job_record(job: DesignJob) -> GenerationJobRecord:
    return GenerationJobRecord(
        id=str(job.id),
        profile_id=job.profile_id,
        suite_name=job.suite_name,
        coverage_level=job.coverage_level,
        element_steps_text=job.element_steps_text,
        spec_text=job.spec_text or "",
        rules_snapshot_text=job.rules_snapshot_text or "",
        status=job.status,
        llm_model_name=job.llm_model_name,
        llm_request_json=job.llm_request_json,
        llm_response_json=job.llm_response_json,
        created_at=job.created_at,
    )


def _version_record(version: IrVersion) -> VersionRecord:
    return VersionRecord(
        design_id=str(version.design_id),
        version_no=version.version_no,
        document_json=version.ir_json,
        edited_by=version.edited_by,
        created_at=version.created_at,
    )


def _profile_record(profile: Profile) -> ProfileRecord:
    return ProfileRecord(
        id=profile.id,
        name=profile.name,
        terminology_text=profile.terminology_text,
        style_text=profile.style_text,
        custom_system_prompt=profile.custom_system_prompt,
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )


class SqlVersionTransaction:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def find_design_by_id(
        self, design_id: str, *, for_update: bool = False,
    ) -> Optional[GenerationJobRecord]:
        stmt = select(DesignJob).where(DesignJob.id == uuid.UUID(design_id))
        if for_update:
            stmt = stmt.with_for_update()
        job = (await self._session.execute(stmt)).scalar_one_or_none()
        return _job_record(job) if job else None

    async def find_max_version_no(self, design_id: str) -> Optional[int]:
        result = await self._session.execute(
            select(func.max(IrVersion.version_no))
            .where(IrVersion.design_id == uuid.UUID(design_id))
        )
        return result.scalar()

    async def insert_version(
        self, design_id: str, version_no: int, document_json: str, edited_by: EditedBy,
    ) -> VersionRecord:
        version = IrVersion(
            design_id=uuid.UUID(design_id),
            version_no=version_no,
            ir_json=document_json,
            edited_by=edited_by,
        )
        self._session.add(version)
        await self._session.flush()
        return _version_record(version)


class SqlStorage:
    """PostgreSQL-backed DesignStorage and ProfileStorage."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SqlVersionTransaction]:
        async with self._session_factory() as session:
            async with session.begin():
                yield SqlVersionTransaction(session)

    async def record_job(self, job: GenerationJobRecord) -> str:
        async with self._session_factory() as session:
            async with session.begin():
                row = DesignJob(**job.model_dump(exclude={"id", "created_at"}))
                session.add(row)
                await session.flush()
                design_id = str(row.id)

        log.info(logger, MODULE, "job_recorded", "Design job recorded",
                 design_id=design_id, status=job.status, model=job.llm_model_name)
        return design_id

    async def find_latest_version(self, design_id: str) -> Optional[VersionRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(IrVersion)
                .where(IrVersion.design_id == uuid.UUID(design_id))
                .order_by(IrVersion.version_no.desc())
                .limit(1)
            )
            version = result.scalar_one_or_none()
            return _version_record(version) if version else None

    # -- profiles --------------------------------------------------------------

    async def list_profiles(self) -> list[ProfileRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Profile).order_by(Profile.updated_at.desc())
            )
            return [_profile_record(p) for p in result.scalars().all()]

    async def get_profile(self, profile_id: int) -> Optional[ProfileRecord]:
        async with self._session_factory() as session:
            profile = await session.get(Profile, profile_id)
            return _profile_record(profile) if profile else None

    async def create_profile(
        self, *, name: str, terminology_text: str = "", style_text: str = "",
        custom_system_prompt: str = "",
    ) -> ProfileRecord:
        async with self._session_factory() as session:
            async with session.begin():
                profile = Profile(
                    name=name,
                    terminology_text=terminology_text,
                    style_text=style_text,
                    custom_system_prompt=custom_system_prompt,
                )
                session.add(profile)
                await session.flush()
                record = _profile_record(profile)

        log.info(logger, MODULE, "profile_created", "Profile created",
                 profile_id=record.id)
        return record

    async def update_profile(self, profile_id: int, **fields: str) -> Optional[ProfileRecord]:
        async with self._session_factory() as session:
            async with session.begin():
                profile = await session.get(Profile, profile_id)
                if profile is None:
                    return None
                for key, value in fields.items():
                    setattr(profile, key, value)
                await session.flush()
                await session.refresh(profile)
                record = _profile_record(profile)

        log.info(logger, MODULE, "profile_updated", "Profile updated",
                 profile_id=profile_id, fields=sorted(fields))
        return record
