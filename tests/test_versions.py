"""Tests for the append-only version chain."""

import asyncio

import pytest

from testdesign.db.storage import GenerationJobRecord
from testdesign.db.versions import VersionStore
from testdesign.llm.errors import DesignNotFoundError
from testdesign.schemas.ir import DesignDocument


async def _create_design(storage) -> str:
    return await storage.record_job(GenerationJobRecord(
        suite_name="Login",
        coverage_level="smoke",
        element_steps_text="open the page",
        status="success",
    ))


@pytest.fixture
def document(persisted_document) -> DesignDocument:
    return DesignDocument.model_validate(persisted_document)


async def test_create_initial_is_version_one_by_model(storage, document):
    design_id = await _create_design(storage)

    version = await VersionStore(storage).create_initial(design_id, document)

    assert version.design_id == design_id
    assert version.version_no == 1
    assert version.edited_by == "model"
    assert version.document() == document


async def test_create_initial_requires_design(storage, document):
    with pytest.raises(DesignNotFoundError) as exc_info:
        await VersionStore(storage).create_initial("missing", document)
    assert exc_info.value.design_id == "missing"
    assert storage.versions == []


async def test_user_edits_append_in_sequence(storage, document):
    versions = VersionStore(storage)
    design_id = await _create_design(storage)
    await versions.create_initial(design_id, document)

    edited = document.model_copy(update={"rows": document.rows[:1]})
    second = await versions.append_user_edit(design_id, edited)
    third = await versions.append_user_edit(design_id, document)

    assert (second.version_no, second.edited_by) == (2, "user")
    assert third.version_no == 3
    latest = await versions.get_latest(design_id)
    assert latest.version_no == 3
    assert len(latest.document().rows) == 2


async def test_user_edit_without_versions_starts_at_one(storage, document):
    design_id = await _create_design(storage)
    version = await VersionStore(storage).append_user_edit(design_id, document)
    assert version.version_no == 1


async def test_user_edit_requires_design(storage, document):
    with pytest.raises(DesignNotFoundError):
        await VersionStore(storage).append_user_edit("missing", document)


async def test_concurrent_edits_get_distinct_numbers(storage, document):
    versions = VersionStore(storage)
    design_id = await _create_design(storage)
    await versions.create_initial(design_id, document)

    results = await asyncio.gather(
        versions.append_user_edit(design_id, document),
        versions.append_user_edit(design_id, document),
    )

    assert sorted(v.version_no for v in results) == [2, 3]
    assert sorted(v.version_no for v in storage.versions) == [1, 2, 3]


async def test_edits_to_different_designs_are_independent(storage, document):
    versions = VersionStore(storage)
    first = await _create_design(storage)
    second = await _create_design(storage)
    await versions.create_initial(first, document)
    await versions.create_initial(second, document)

    a, b = await asyncio.gather(
        versions.append_user_edit(first, document),
        versions.append_user_edit(second, document),
    )

    assert (a.version_no, b.version_no) == (2, 2)


async def test_get_latest_unknown_design(storage):
    assert await VersionStore(storage).get_latest("missing") is None
