"""Routers: unversioned health checks plus the `/v1` API."""

from fastapi import APIRouter

from axis_core.api.routes import anticipations, health, payments

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(anticipations.router)
v1_router.include_router(payments.router)

__all__ = ["health", "v1_router"]
