"""Profile CRUD. A profile carries the terminology, style guide and custom
system prompt text merged into every generation that references it."""

from fastapi import APIRouter, Depends

from testdesign.api.deps import get_profile_storage
from testdesign.db.storage import ProfileRecord, ProfileStorage
from testdesign.llm.errors import ProfileNotFoundError
from testdesign.schemas import ProfileCreate, ProfileIdResponse, ProfileResponse, ProfileUpdate
from testdesign.utils.logging import log, get_logger

MODULE = "profiles"
logger = get_logger()

router = APIRouter()


def _to_response(profile: ProfileRecord) -> ProfileResponse:
    return ProfileResponse(**profile.model_dump(exclude={"id"}), id=str(profile.id))


@router.get("", response_model=list[ProfileResponse])
async def list_profiles(storage: ProfileStorage = Depends(get_profile_storage)):
    """All profiles, most recently updated first."""
    return [_to_response(p) for p in await storage.list_profiles()]


@router.post("", response_model=ProfileIdResponse, status_code=201)
async def create_profile(
    body: ProfileCreate,
    storage: ProfileStorage = Depends(get_profile_storage),
):
    profile = await storage.create_profile(**body.model_dump())
    log.info(logger, MODULE, "created", "Profile created",
             profile_id=profile.id, name=profile.name)
    return ProfileIdResponse(id=str(profile.id))


@router.get("/{profile_id}", response_model=ProfileResponse)
async def get_profile(
    profile_id: int,
    storage: ProfileStorage = Depends(get_profile_storage),
):
    profile = await storage.get_profile(profile_id)
    if profile is None:
        raise ProfileNotFoundError(profile_id)
    return _to_response(profile)


@router.put("/{profile_id}", response_model=ProfileIdResponse)
async def update_profile(
    profile_id: int,
    body: ProfileUpdate,
    storage: ProfileStorage = Depends(get_profile_storage),
):
    profile = await storage.update_profile(profile_id, **body.changes())
    if profile is None:
        raise ProfileNotFoundError(profile_id)
    return ProfileIdResponse(id=str(profile.id))
