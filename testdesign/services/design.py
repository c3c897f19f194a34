"""Design generation and editing flows.

GENERATE (POST /api/design):
  1. call_with_single_retry(orchestrator.generate)  → parsed JSON
  2. postprocess_document                             → validated, sorted, ids
  3. record the design job (status "success")         → design_id
  4. VersionStore.create_initial                      → version 1, "model"

Every failure in 1-2 is recorded as a design job with status "error" before
it propagates. A schema violation also records the model name, request
payload and raw response so the bad output can be inspected later.

SAVE (POST /api/ir/{id}/save): VersionStore.append_user_edit only.
"""

from typing import Optional

from pydantic import BaseModel

from testdesign.db.storage import DesignStorage, GenerationJobRecord, ProfileRecord, VersionRecord
from testdesign.db.versions import VersionStore
from testdesign.llm.errors import DesignNotFoundError, SchemaViolationError
from testdesign.llm.invoker import GenerationOrchestrator, call_with_single_retry
from testdesign.llm.postprocess import postprocess_document
from testdesign.rules import CoverageRule, rule_to_text
from testdesign.schemas.api import DesignRequest
from testdesign.schemas.ir import DesignDocument, GenerationRequest
from testdesign.utils.logging import log, get_logger

MODULE = "design"
logger = get_logger()


class DesignResult(BaseModel):
    design_id: str
    document: DesignDocument
    version: VersionRecord


def build_generation_request(
    body: DesignRequest,
    profile: Optional[ProfileRecord],
    rule: CoverageRule,
) -> GenerationRequest:
    """Merge the API request, the profile's prompt texts and the rule text."""
    return GenerationRequest(
        suite_name=body.suite_name,
        coverage_level=body.coverage_level,
        element_steps_text=body.element_steps_text,
        spec_text=body.spec_text,
        model=body.model,
        test_techniques=tuple(body.test_techniques),
        terminology_text=profile.terminology_text if profile else "",
        style_text=profile.style_text if profile else "",
        custom_system_prompt=profile.custom_system_prompt if profile else "",
        rule_text=rule_to_text(rule),
    )


class DesignService:
    def __init__(
        self,
        orchestrator: GenerationOrchestrator,
        storage: DesignStorage,
        versions: Optional[VersionStore] = None,
    ):
        self._orchestrator = orchestrator
        self._storage = storage
        self._versions = versions or VersionStore(storage)

    async def generate(
        self,
        request: GenerationRequest,
        *,
        profile_id: Optional[int] = None,
    ) -> DesignResult:
        """Generate, post-process and persist a new design.

        Raises:
            DesignError subclasses from the provider, parser or validator,
            after an "error" job has been recorded.
        """
        job = GenerationJobRecord(
            profile_id=profile_id,
            suite_name=request.suite_name,
            coverage_level=request.coverage_level,
            element_steps_text=request.element_steps_text,
            spec_text=request.spec_text,
            rules_snapshot_text=request.rule_text,
            status="error",
        )

        log.info(logger, MODULE, "generate_start", "Generating test design",
                 suite=request.suite_name, coverage_level=request.coverage_level,
                 model=request.model, profile_id=profile_id)

        try:
            result = await call_with_single_retry(
                lambda: self._orchestrator.generate(request),
                activity_name="generate_design",
            )
        except Exception as e:
            await self._storage.record_job(job.model_copy(update={"llm_response_json": str(e)}))
            log.error(logger, MODULE, "generate_failed", "Test design generation failed",
                      suite=request.suite_name, error=str(e), error_type=type(e).__name__)
            raise

        llm_fields = {
            "llm_model_name": result.model_name,
            "llm_request_json": result.request_payload,
            "llm_response_json": result.response_raw,
        }

        try:
            document = postprocess_document(result.document, suite_name=request.suite_name)
        except SchemaViolationError as e:
            await self._storage.record_job(job.model_copy(update=llm_fields))
            log.error(logger, MODULE, "validation_failed",
                      "Generated document failed validation",
                      suite=request.suite_name, model=result.model_name, error=e.details)
            raise

        design_id = await self._storage.record_job(
            job.model_copy(update={**llm_fields, "status": "success"})
        )
        version = await self._versions.create_initial(design_id, document)

        log.info(logger, MODULE, "generate_done", "Test design generated",
                 design_id=design_id, model=result.model_name, rows=len(document.rows))
        return DesignResult(design_id=design_id, document=document, version=version)

    async def save_edit(self, design_id: str, document: DesignDocument) -> VersionRecord:
        return await self._versions.append_user_edit(design_id, document)

    async def latest(self, design_id: str) -> VersionRecord:
        """Latest version of a design.

        Raises:
            DesignNotFoundError: the design has no versions
        """
        version = await self._versions.get_latest(design_id)
        if version is None:
            raise DesignNotFoundError(design_id)
        return version
