"""Request-scoped access to the objects the lifespan puts on ``app.state``.

Tests assign fakes to the same attributes; ASGITransport does not run the
lifespan, so nothing here touches the database on its own.
"""

from fastapi import Request

from testdesign.db.storage import ProfileStorage
from testdesign.llm.registry import ProviderRegistry
from testdesign.llm.settings import SettingsStore
from testdesign.services.design import DesignService


def get_settings(request: Request) -> SettingsStore:
    return request.app.state.settings


def get_registry(request: Request) -> ProviderRegistry:
    return request.app.state.registry


def get_profile_storage(request: Request) -> ProfileStorage:
    return request.app.state.storage


def get_design_service(request: Request) -> DesignService:
    return request.app.state.design_service
