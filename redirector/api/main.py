import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from redirector import __version__
from redirector.adapters.sqlite.migrator import SQLiteMigrator
from redirector.api.deps import get_rule_store, get_settings
from redirector.api.routes import admin, checkredirect, redirect
from redirector.core.ports.store import StoreError
from redirector.shell.http.health import (
    HealthCheckRegistry,
    StartupTracker,
    StoreCheck,
    create_health_router,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Prepare the store on startup (fail-fast)
    if settings.backend == "sqlite":
        try:
            SQLiteMigrator(settings.db_path).run_migrations()
        except (OSError, RuntimeError) as e:
            logger.critical("Store initialisation failed: %s", e)
            sys.exit(1)

    StartupTracker.mark_started()
    logger.info("Redirector %s started (backend=%s)", __version__, settings.backend)

    yield


def install_error_handlers(app: FastAPI) -> None:
    """Map store failures to 503 responses."""

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.exception("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=503, content={"detail": "Store unavailable"})


registry = HealthCheckRegistry()
registry.register(StoreCheck(lambda: get_rule_store(get_settings()).count()))

app = FastAPI(
    title="Redirector API",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.include_router(checkredirect.router, tags=["Redirects"])
app.include_router(redirect.router, tags=["Import"])
app.include_router(admin.router, tags=["Admin"])
app.include_router(create_health_router(registry, version=__version__))

install_error_handlers(app)
