"""Stocktake API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map StocktakeError → structured JSON responses
    - CORS on every response: configured origins, GET/POST/PUT/DELETE,
      Authorization and Content-Type headers
    - Database pool created on startup and disposed on shutdown via lifespan
    - Shared-credential basic auth guards every API route when configured

Design Decisions:
    - create_app(settings) factory: the module-level app uses cached settings,
      tests build apps with their own Settings (auth on, development mode)
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Static assets mounted AFTER API routes so /save, /records, ... take precedence;
      /control is routed to control.html explicitly
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from stocktake.api.dependencies import require_basic_auth
from stocktake.api.error_handlers import register_error_handlers
from stocktake.api.routes import health, records
from stocktake.config import Settings, get_settings
from stocktake.infrastructure.database import init_db
from stocktake.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.create_tables_on_startup:
        await manager.create_tables()
    logger.info(f"Stocktake API started ({settings.environment})")
    yield
    await manager.dispose()
    logger.info("Stocktake API shutting down")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title="Stocktake API", version="1.0.0", lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )

    app.include_router(health.router)
    app.include_router(
        records.router, dependencies=[Depends(require_basic_auth)],
    )

    register_error_handlers(app)

    if os.path.isdir(settings.static_dir):
        _add_control_page(app, settings.static_dir)
        app.mount(
            "/", StaticFiles(directory=settings.static_dir, html=True),
            name="static",
        )
    return app


def _add_control_page(app: FastAPI, static_dir: str) -> None:
    """GET /control → control.html; StaticFiles only maps directory indexes."""
    control_page = os.path.join(static_dir, "control.html")
    if not os.path.isfile(control_page):
        return

    @app.get("/control", include_in_schema=False)
    async def control():
        return FileResponse(control_page)


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)
