"""Glue between routes and the request idempotency guard."""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Request
from fastapi.responses import JSONResponse

from axis_core.services.request_idempotency import (
    RequestIdempotencyGuard,
    StoredResponse,
)

REPLAY_HEADER = "Idempotent-Replayed"


def idempotent_json_response(
    guard: RequestIdempotencyGuard,
    *,
    request: Request,
    token: str | None,
    scope: str,
    handler: Callable[[], StoredResponse],
) -> JSONResponse:
    """Run ``handler`` at most once per token and render its stored response.

    ``scope`` is prefixed to the token so two callers reusing the same token
    never see each other's responses.
    """

    scoped_token = f"{scope}:{token.strip()}" if token and token.strip() else None
    response = guard.execute(
        method=request.method,
        path=request.url.path,
        token=scoped_token,
        handler=handler,
    )
    headers = {REPLAY_HEADER: "true"} if response.replayed else None
    return JSONResponse(
        status_code=response.status_code,
        content=response.body,
        headers=headers,
    )
