"""ASGI entrypoint: ``axis_core.api.app:app``."""

from __future__ import annotations

from fastapi import FastAPI

from axis_core.api.error_handlers import register_error_handlers
from axis_core.api.routes import health, v1_router

API_VERSION = "0.1.0"


def create_app() -> FastAPI:
    app = FastAPI(
        title="Axis Core API",
        version=API_VERSION,
        summary="Ledger, release schedules and receivable anticipations.",
    )
    register_error_handlers(app)
    app.include_router(health.router)
    app.include_router(v1_router)
    return app


app = create_app()
