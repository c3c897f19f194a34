"""Tests for validation, ordering and row-id assignment of generated documents."""

import pytest

from conftest import make_document, make_row
from testdesign.llm.errors import SchemaViolationError
from testdesign.llm.postprocess import (
    assign_row_ids,
    case_sort_key,
    postprocess_document,
    rank_for_tag,
    sort_rows_by_test_type,
)
from testdesign.schemas.ir import DesignDocument, GeneratedRow


@pytest.mark.parametrize("tag,rank", [
    ("normal", 0),
    ("login|normal", 0),
    (" normal | smoke ", 0),
    ("semi-normal", 1),
    ("boundary|semi-normal", 1),
    ("", 1),
    ("login|smoke", 1),
    ("abnormal", 2),
    ("security|abnormal", 2),
    ("abnormality", 1),
])
def test_rank_for_tag(tag, rank):
    assert rank_for_tag(tag) == rank


def test_mixed_test_type_tags():
    assert rank_for_tag("abnormal|normal") == 0
    assert rank_for_tag("semi-normal|abnormal") == 2


def test_sort_groups_by_rank_then_case_and_is_stable():
    rows = [GeneratedRow.model_validate(r) for r in [
        make_row("Logout", "abnormal", step="a1"),
        make_row("Login", "", step="u1"),
        make_row("Login", "normal", step="n1"),
        make_row("Signup", "normal", step="s1"),
        make_row("Login", "normal", step="n2"),
        make_row("Login", "semi-normal", step="u2"),
        make_row("Login", "abnormal", step="a2"),
    ]]
    ordered = [(r.case, r.step) for r in sort_rows_by_test_type(rows)]
    assert ordered == [
        ("Login", "n1"), ("Login", "n2"), ("Signup", "s1"),
        ("Login", "u1"), ("Login", "u2"),
        ("Login", "a2"), ("Logout", "a1"),
    ]


def test_case_key_folds_width_and_case():
    assert case_sort_key("ＬＯＧＩＮ")[0] == case_sort_key("login")[0]
    assert case_sort_key("apple") < case_sort_key("Banana")


def test_assign_row_ids_overwrites_and_is_unique():
    rows = [GeneratedRow.model_validate(make_row("C", "normal", id="dup")) for _ in range(50)]
    assigned = assign_row_ids(rows)
    ids = [r.id for r in assigned]
    assert all(ids)
    assert len(set(ids)) == 50
    assert "dup" not in ids
    assert all(i.startswith("row_") and len(i) <= 64 for i in ids)


def test_postprocess_end_to_end():
    raw = make_document([
        make_row("Login", "", step="submit"),
        make_row("Login", "normal|login", step="open login"),
    ])
    document = postprocess_document(raw)
    assert isinstance(document, DesignDocument)
    assert [r.step for r in document.rows] == ["open login", "submit"]
    assert [r.case for r in document.rows] == ["Login", "Login"]
    assert document.rows[0].id != document.rows[1].id


def test_postprocess_trims_strings():
    raw = make_document([make_row("  Login  ", " normal ", step="  open  ")])
    row = postprocess_document(raw).rows[0]
    assert (row.case, row.tag, row.step) == ("Login", "normal", "open")


def test_postprocess_dumps_by_alias():
    document = postprocess_document(make_document([make_row("Login", "normal")]))
    dumped = document.to_json_dict()
    assert set(dumped["rows"][0]) == {"id", "Case", "Step", "Expected", "Tag", "Priority", "remarks"}
    assert "assumptions" not in dumped["suite"]


@pytest.mark.parametrize("mutate", [
    lambda d: d["rows"][0].update(Priority="Urgent"),
    lambda d: d["rows"][0].update(Case="   "),
    lambda d: d["rows"][0].pop("Expected"),
    lambda d: d["rows"][0].update(Step="x" * 5001),
    lambda d: d["rows"][0].update(extra_field="nope"),
    lambda d: d["suite"].update(coverage_level="exhaustive"),
    lambda d: d.pop("suite"),
])
def test_postprocess_rejects_invalid_documents(mutate):
    raw = make_document([make_row("Login", "normal")])
    mutate(raw)
    with pytest.raises(SchemaViolationError) as exc_info:
        postprocess_document(raw)
    assert exc_info.value.retryable is False
    assert exc_info.value.raw_output is raw


def test_postprocess_rejects_non_object():
    with pytest.raises(SchemaViolationError):
        postprocess_document(["not", "an", "object"])


def test_postprocess_rejects_too_many_rows():
    raw = make_document([make_row("C", "normal")] * 5001)
    with pytest.raises(SchemaViolationError):
        postprocess_document(raw)
