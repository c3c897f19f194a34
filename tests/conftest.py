"""Shared fixtures: in-memory storage, stub providers, sample documents."""

import asyncio
import itertools
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import pytest

from testdesign.db.storage import GenerationJobRecord, ProfileRecord, VersionRecord
from testdesign.llm.providers.base import GenerateResult, ModelInfo
from testdesign.llm.registry import ProviderRegistry
from testdesign.llm.settings import SettingsStore


def _now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# STORAGE
# =============================================================================

class InMemoryTransaction:
    """Buffers inserts until the transaction commits.

    ``find_design_by_id(for_update=True)`` takes a per-design lock held until
    the transaction ends, like SELECT ... FOR UPDATE.
    """

    def __init__(self, storage: "InMemoryStorage"):
        self._storage = storage
        self.pending: list[VersionRecord] = []
        self.held_locks: list[asyncio.Lock] = []

    async def find_design_by_id(self, design_id: str, *, for_update: bool = False):
        if for_update:
            lock = self._storage.lock_for(design_id)
            await lock.acquire()
            self.held_locks.append(lock)
        return self._storage.jobs.get(design_id)

    async def find_max_version_no(self, design_id: str) -> Optional[int]:
        numbers = [v.version_no for v in self._storage.versions if v.design_id == design_id]
        # Yield between read and write so unserialised appends would interleave
        await asyncio.sleep(0)
        return max(numbers) if numbers else None

    async def insert_version(self, design_id, version_no, document_json, edited_by) -> VersionRecord:
        existing = {(v.design_id, v.version_no) for v in self._storage.versions + self.pending}
        if (design_id, version_no) in existing:
            raise RuntimeError(f"duplicate version {version_no} for {design_id}")
        record = VersionRecord(
            design_id=design_id,
            version_no=version_no,
            document_json=document_json,
            edited_by=edited_by,
            created_at=_now(),
        )
        self.pending.append(record)
        return record


class InMemoryStorage:
    def __init__(self):
        self.jobs: dict[str, GenerationJobRecord] = {}
        self.versions: list[VersionRecord] = []
        self.profiles: dict[int, ProfileRecord] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._profile_ids = itertools.count(1)

    def lock_for(self, design_id: str) -> asyncio.Lock:
        return self._locks.setdefault(design_id, asyncio.Lock())

    @asynccontextmanager
    async def transaction(self):
        tx = InMemoryTransaction(self)
        try:
            yield tx
            self.versions.extend(tx.pending)
        finally:
            for lock in tx.held_locks:
                lock.release()

    async def record_job(self, job: GenerationJobRecord) -> str:
        design_id = str(uuid.uuid4())
        self.jobs[design_id] = job.model_copy(update={"id": design_id, "created_at": _now()})
        return design_id

    async def find_latest_version(self, design_id: str) -> Optional[VersionRecord]:
        versions = [v for v in self.versions if v.design_id == design_id]
        return max(versions, key=lambda v: v.version_no) if versions else None

    async def list_profiles(self) -> list[ProfileRecord]:
        return sorted(self.profiles.values(), key=lambda p: p.updated_at, reverse=True)

    async def get_profile(self, profile_id: int) -> Optional[ProfileRecord]:
        return self.profiles.get(profile_id)

    async def create_profile(self, *, name, terminology_text="", style_text="", custom_system_prompt=""):
        now = _now()
        profile = ProfileRecord(
            id=next(self._profile_ids),
            name=name,
            terminology_text=terminology_text,
            style_text=style_text,
            custom_system_prompt=custom_system_prompt,
            created_at=now,
            updated_at=now,
        )
        self.profiles[profile.id] = profile
        return profile

    async def update_profile(self, profile_id: int, **fields):
        profile = self.profiles.get(profile_id)
        if profile is None:
            return None
        updated = profile.model_copy(update={**fields, "updated_at": _now()})
        self.profiles[profile_id] = updated
        return updated


# =============================================================================
# PROVIDERS
# =============================================================================

class StubProvider:
    """LLMProvider double. Responses are consumed in order; the last repeats.

    A response that is an exception instance is raised instead of returned.
    """

    def __init__(
        self,
        name: str = "ollama",
        responses: Optional[list] = None,
        *,
        available: bool = True,
        models: Optional[list[ModelInfo]] = None,
        list_error: Optional[Exception] = None,
    ):
        self.name = name
        self._responses = list(responses or [])
        self._available = available
        self._models = models or []
        self._list_error = list_error
        self.calls: list[dict] = []

    def is_available(self) -> bool:
        return self._available

    async def list_models(self) -> list[ModelInfo]:
        if self._list_error is not None:
            raise self._list_error
        return list(self._models)

    async def generate(self, model, system_prompt, user_prompt, schema) -> GenerateResult:
        self.calls.append({
            "model": model,
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "schema": schema,
        })
        response = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(response, Exception):
            raise response
        return GenerateResult(
            response_text=response,
            request_payload={"model": model, "prompt": user_prompt},
        )


# =============================================================================
# SAMPLE DATA
# =============================================================================

def make_row(case: str, tag: str, step: str = "step", **extra) -> dict:
    row = {
        "Case": case,
        "Step": step,
        "Expected": "expected result",
        "Tag": tag,
        "Priority": "Medium",
        "remarks": "",
    }
    row.update(extra)
    return row


def make_document(rows: list[dict], name: str = "Login", coverage_level: str = "smoke") -> dict:
    return {"suite": {"name": name, "coverage_level": coverage_level}, "rows": rows}


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def settings_store(tmp_path) -> SettingsStore:
    return SettingsStore(path=tmp_path / "llm-settings.json", env={})


@pytest.fixture
def persisted_document() -> dict:
    return make_document([
        make_row("Login", "normal", step="open login", id="row_a"),
        make_row("Login", "abnormal", step="submit empty form", id="row_b"),
    ])


def registry_with(*providers: StubProvider) -> ProviderRegistry:
    return ProviderRegistry(list(providers))
