"""FastAPI server exposing the status store."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from toolwatch import __version__
from toolwatch.api.routes import router
from toolwatch.config import Settings, settings as default_settings
from toolwatch.engine import build_engine

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent.parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the poll engine, start sweeping, tear down on shutdown."""
    settings: Settings = app.state.settings

    # A bad target file is fatal: let it propagate and abort startup.
    engine = build_engine(settings)
    app.state.engine = engine
    app.state.store = engine.store
    app.state.telemetry = engine.telemetry
    app.state.scheduler = engine.scheduler

    await engine.scheduler.start()

    yield

    await engine.aclose()


def create_app(settings: Settings | None = None) -> FastAPI:
    app = FastAPI(
        title="toolwatch - AI tool status monitor",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings or default_settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Error occurred on %s %s: %s: %s",
            request.method, request.url.path, type(exc).__name__, exc,
            exc_info=exc,
        )
        body = {"error": "Internal server error"}
        if app.state.settings.environment == "development":
            body["message"] = str(exc)
        return JSONResponse(status_code=500, content=body)

    @app.get("/", include_in_schema=False)
    async def dashboard():
        return FileResponse(STATIC_DIR / "index.html")

    if STATIC_DIR.is_dir():
        app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    return app
