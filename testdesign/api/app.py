"""FastAPI application for testdesign.

Logging: Uses structured JSON logging for Grafana Loki.
Set LOG_FORMAT=pretty for development-friendly output.

Errors: every DesignError maps to a status by its category and a body of
{"error": message, "category": category}:

  bad_input              → 400
  not_found              → 404
  upstream_unavailable   → 502
  upstream_garbage       → 502
"""

from contextlib import asynccontextmanager

# Configure structured logging BEFORE importing anything else
from testdesign.utils.logging import configure_logging, get_logger, log  # noqa: E402

configure_logging()

MODULE = "api"
logger = get_logger()

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402

from testdesign.api.routes.health import router as health_router  # noqa: E402
from testdesign.api.routes.models import router as models_router  # noqa: E402
from testdesign.api.routes.settings import router as settings_router  # noqa: E402
from testdesign.api.routes.profiles import router as profiles_router  # noqa: E402
from testdesign.api.routes.design import router as design_router  # noqa: E402
from testdesign.api.routes.ir import router as ir_router  # noqa: E402
from testdesign.api.routes.export import router as export_router  # noqa: E402
from testdesign.db.models import Base  # noqa: E402
from testdesign.db.session import engine, async_session  # noqa: E402
from testdesign.db.storage import SqlStorage  # noqa: E402
from testdesign.llm.errors import (  # noqa: E402
    BAD_INPUT,
    NOT_FOUND,
    UPSTREAM_GARBAGE,
    UPSTREAM_UNAVAILABLE,
    DesignError,
)
from testdesign.llm.invoker import GenerationOrchestrator  # noqa: E402
from testdesign.llm.registry import ProviderRegistry  # noqa: E402
from testdesign.llm.settings import SettingsStore  # noqa: E402
from testdesign.services.design import DesignService  # noqa: E402

STATUS_BY_CATEGORY = {
    BAD_INPUT: 400,
    NOT_FOUND: 404,
    UPSTREAM_UNAVAILABLE: 502,
    UPSTREAM_GARBAGE: 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown."""
    # Create DB tables if they don't exist
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    log.info(logger, MODULE, "db_ready", "Database tables ready")

    settings = SettingsStore()
    registry = ProviderRegistry.default(settings)
    storage = SqlStorage(async_session)

    app.state.settings = settings
    app.state.registry = registry
    app.state.storage = storage
    app.state.design_service = DesignService(GenerationOrchestrator(registry), storage)
    log.info(logger, MODULE, "startup_done", "Application ready",
             settings_path=str(settings.path),
             providers=[p.name for p in registry.providers if p.is_available()])

    yield

    # Cleanup
    await engine.dispose()
    log.info(logger, MODULE, "shutdown", "Application shutdown complete")


app = FastAPI(
    title="testdesign",
    description="LLM-assisted test design generation API",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(DesignError)
async def design_error_handler(request: Request, exc: DesignError):
    status = STATUS_BY_CATEGORY.get(exc.category, 500)
    log_fn = log.warning if status < 500 else log.error
    log_fn(logger, MODULE, "request_failed", "Request failed",
           path=request.url.path, status=status, category=exc.category,
           error=str(exc), error_type=type(exc).__name__)
    return JSONResponse(status_code=status, content={"error": str(exc), "category": exc.category})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    log.warning(logger, MODULE, "request_failed", "Invalid request value",
                path=request.url.path, status=400, error=str(exc))
    return JSONResponse(status_code=400, content={"error": str(exc), "category": BAD_INPUT})


app.include_router(health_router)
app.include_router(models_router, prefix="/api/models", tags=["models"])
app.include_router(settings_router, prefix="/api/settings", tags=["settings"])
app.include_router(profiles_router, prefix="/api/profiles", tags=["profiles"])
app.include_router(design_router, prefix="/api/design", tags=["design"])
app.include_router(ir_router, prefix="/api/ir", tags=["ir"])
app.include_router(export_router, prefix="/api/export", tags=["export"])
