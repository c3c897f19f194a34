"""Model listing across every configured provider."""

from fastapi import APIRouter, Depends

from testdesign.api.deps import get_registry
from testdesign.llm.providers.base import ModelInfo
from testdesign.llm.registry import ProviderRegistry

router = APIRouter()


@router.get("", response_model=list[ModelInfo])
async def list_models(registry: ProviderRegistry = Depends(get_registry)):
    """Models from every available provider. A failing provider is skipped."""
    return await registry.list_all_models()
