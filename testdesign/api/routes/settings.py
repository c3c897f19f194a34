"""LLM provider settings. Keys are write-only: responses report only whether
each provider is configured.

The settings file is read and written in a worker thread so the event loop
never blocks on disk I/O.
"""

import asyncio

from fastapi import APIRouter, Depends

from testdesign.api.deps import get_settings
from testdesign.llm.settings import LLMSettingsSummary, SettingsStore
from testdesign.schemas import LLMSettingsUpdate

router = APIRouter()


@router.get("/llm", response_model=LLMSettingsSummary)
async def get_llm_settings(settings: SettingsStore = Depends(get_settings)):
    return await asyncio.to_thread(settings.summary)


@router.put("/llm", response_model=LLMSettingsSummary)
async def update_llm_settings(
    body: LLMSettingsUpdate,
    settings: SettingsStore = Depends(get_settings),
):
    return await asyncio.to_thread(settings.update, **body.model_dump(exclude_none=True))
