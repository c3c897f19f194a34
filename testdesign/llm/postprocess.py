"""Turn a parsed LLM document into the canonical, persist-ready document.

  1. VALIDATE: the generated-document shape (pydantic), else SchemaViolationError
  2. RANK: test type from the Tag (normal=0, semi-normal/untagged=1, abnormal=2)
  3. SORT: stable, by (rank, Case) so every Case stays contiguous and the
     model's step order within a Case survives
  4. ID: fresh row ids, overwriting anything the model supplied
"""

import unicodedata
import uuid
from typing import Any, Iterable, Optional, Sequence

from pydantic import ValidationError

from testdesign.llm.errors import SchemaViolationError
from testdesign.schemas.ir import DesignDocument, DesignRow, GeneratedDocument, GeneratedRow
from testdesign.utils.logging import log, get_logger

MODULE = "llm.postprocess"
logger = get_logger()

NORMAL_RANK = 0
ABNORMAL_RANK = 2
DEFAULT_TEST_TYPE_RANK = 1  # semi-normal and untagged rows


def rank_for_tag(tag: str) -> int:
    """0 if any segment is "normal", else 2 if any is "abnormal", else 1."""
    segments = {segment.strip() for segment in (tag or "").split("|")}
    if "normal" in segments:
        return NORMAL_RANK
    if "abnormal" in segments:
        return ABNORMAL_RANK
    return DEFAULT_TEST_TYPE_RANK


def case_sort_key(case: str) -> tuple[str, str]:
    # Compatibility-normalized, case-folded text first, so full-width and
    # half-width forms of the same name group together; raw text breaks ties.
    return unicodedata.normalize("NFKC", case).casefold(), case


def sort_rows_by_test_type(rows: Sequence[GeneratedRow]) -> list[GeneratedRow]:
    # sorted() is stable: equal keys keep the model's order
    return sorted(rows, key=lambda r: (rank_for_tag(r.tag), case_sort_key(r.case)))


def new_row_id() -> str:
    return f"row_{uuid.uuid4().hex}"


def assign_row_ids(rows: Iterable[GeneratedRow]) -> list[DesignRow]:
    assigned: list[DesignRow] = []
    seen: set[str] = set()
    for row in rows:
        row_id = new_row_id()
        while row_id in seen:
            row_id = new_row_id()
        seen.add(row_id)
        assigned.append(DesignRow(id=row_id, **row.model_dump(exclude={"id"})))
    return assigned


def validate_generated(raw: Any) -> GeneratedDocument:
    """Validate parsed JSON against the generated-document shape.

    Raises:
        SchemaViolationError: carries pydantic's error summary and the raw input
    """
    try:
        return GeneratedDocument.model_validate(raw)
    except ValidationError as e:
        log.warning(logger, MODULE, "validation_failed",
                    "LLM output does not match the document shape",
                    error_count=e.error_count())
        raise SchemaViolationError(details=str(e), raw_output=raw) from e


def postprocess_document(raw: Any, *, suite_name: Optional[str] = None) -> DesignDocument:
    """Validate, sort and id-stamp a generated document.

    Args:
        raw: parsed JSON from the orchestrator
        suite_name: only used for log context
    """
    generated = validate_generated(raw)
    rows = assign_row_ids(sort_rows_by_test_type(generated.rows))

    log.debug(logger, MODULE, "postprocess_done", "Document validated and sorted",
              suite=suite_name or generated.suite.name, rows=len(rows))

    return DesignDocument(suite=generated.suite, rows=rows)
