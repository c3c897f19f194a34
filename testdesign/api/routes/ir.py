"""IR version endpoints: save a user edit, fetch the latest version."""

import uuid

from fastapi import APIRouter, Depends

from testdesign.api.deps import get_design_service
from testdesign.schemas import LatestIRResponse, SaveIRRequest, SaveIRResponse
from testdesign.services.design import DesignService

router = APIRouter()


@router.post("/{design_id}/save", response_model=SaveIRResponse)
async def save_ir(
    design_id: uuid.UUID,
    body: SaveIRRequest,
    service: DesignService = Depends(get_design_service),
):
    """Append the edited document as the next version (edited_by="user")."""
    version = await service.save_edit(str(design_id), body.ir)
    return SaveIRResponse(version_no=version.version_no)


@router.get("/{design_id}/latest", response_model=LatestIRResponse)
async def latest_ir(
    design_id: uuid.UUID,
    service: DesignService = Depends(get_design_service),
):
    version = await service.latest(str(design_id))
    return LatestIRResponse(version_no=version.version_no, ir=version.document().to_json_dict())
