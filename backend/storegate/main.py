"""
Storegate Backend - FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn storegate.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  RequestPipelineMiddleware (one ASGI middleware):        │
    │  ┌─────────┐ ┌──────────┐ ┌──────────┐ ┌──────────────┐  │
    │  │ Req ID  │→│ Access   │→│ Powered  │→│ Error Page   │  │
    │  └─────────┘ └──────────┘ └──────────┘ └──────────────┘  │
    │  ┌──────────────┐ ┌──────────────┐ ┌──────┐ ┌─────────┐  │
    │  │ Exc. Audit   │→│ Page Not     │→│ 400  │→│ Install │  │
    │  │              │ │ Found        │ │ Audit│ │ URL     │  │
    │  └──────────────┘ └──────────────┘ └──────┘ └─────────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  GET /health/live   /page-not-found   /errorpage.htm     │
    │  GET /install                                            │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  structured logging, configuration summary
    Shutdown: dispose the audit store engine (if it was ever created)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from storegate import __version__
from storegate.config import Settings, settings
from storegate.database import dispose_engine
from storegate.exceptions import NotFoundError
from storegate.middleware.request_id import request_id_var
from storegate.pipeline.hosting import configure_request_pipeline
from storegate.routes import health, pages

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Structured Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(app_settings: Settings) -> None:
    """
    Configure logging for the entire application.

    When:    Called once during app startup, before any other initialization.
    Format:  %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, app_settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # The access interceptor replaces uvicorn's access log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Code before yield runs on startup, code after yield on shutdown."""
    app_settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(app_settings)
    logger.info("=" * 60)
    logger.info("Storegate Backend %s starting up...", __version__)
    logger.info(
        "Environment: %s | detailed error page: %s | store installed: %s",
        app_settings.environment,
        app_settings.use_detailed_error_page,
        app_settings.database_installed,
    )
    if not app_settings.database_installed:
        logger.warning(
            "Audit store is not installed; requests redirect to %s",
            app_settings.install_path,
        )
    logger.info(
        "Server ready at http://%s:%d", app_settings.backend_host, app_settings.backend_port
    )
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Storegate Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register handlers for the exceptions routing itself produces.

    Handler map:
        HTTPException 404 → empty 404 (PageNotFoundInterceptor upgrades it)
        HTTPException *   → FastAPI default JSON
        NotFoundError     → JSON 404 (has a body, so it is never rerouted)

    There is deliberately no handler for Exception: unhandled faults must
    reach the request pipeline's exception audit and error page stages.
    """

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return Response(status_code=404, headers=exc.headers)
        return await http_exception_handler(request, exc)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        """Requested resource doesn't exist."""
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": request_id_var.get(""),
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(app_settings: Optional[Settings] = None, **collaborators) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings:  Settings to use; defaults to the environment-loaded singleton
        collaborators: Overrides for the pipeline's collaborators
                       (audit_logger, actor_resolver, is_store_installed,
                       is_static_resource), used by tests

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title="Storegate API",
        description="Request pipeline with audited error handling and not-found re-execution.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    configure_request_pipeline(app, app_settings, **collaborators)
    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(pages.create_router(app_settings))

    return app


app = create_app()
