"""Test design generation endpoint.

One request runs the whole pipeline synchronously: profile + coverage rule
lookup, one LLM call (plus at most one retry), validation, and persistence of
the design job and version 1. Failures come back as {error, category}.
"""

import asyncio

from fastapi import APIRouter, Depends

from testdesign.api.deps import get_design_service, get_profile_storage
from testdesign.db.storage import ProfileStorage
from testdesign.llm.errors import ProfileNotFoundError
from testdesign.rules import load_rule
from testdesign.schemas import DesignRequest, DesignResponse
from testdesign.services.design import DesignService, build_generation_request

router = APIRouter()


@router.post("", response_model=DesignResponse)
async def create_design(
    body: DesignRequest,
    profiles: ProfileStorage = Depends(get_profile_storage),
    service: DesignService = Depends(get_design_service),
):
    profile = await profiles.get_profile(body.profile_id)
    if profile is None:
        raise ProfileNotFoundError(body.profile_id)

    # Rule files are read off the event loop
    rule = await asyncio.to_thread(load_rule, body.coverage_level)
    request = build_generation_request(body, profile, rule)
    result = await service.generate(request, profile_id=profile.id)

    return DesignResponse(design_id=result.design_id, ir=result.document.to_json_dict())
