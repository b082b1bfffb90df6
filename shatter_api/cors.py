from __future__ import annotations

from typing import Awaitable, Callable, Optional

from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.responses import Response

from shatter_api.config import settings

PREFLIGHT_METHOD = "OPTIONS"


def cors_headers() -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": settings.CORS_ALLOW_METHODS,
        "Access-Control-Allow-Headers": "Content-Type",
    }


def set_cors_headers(headers: MutableHeaders) -> None:
    for key, value in cors_headers().items():
        headers[key] = value


def handle_preflight(request: Request) -> Optional[Response]:
    """Answer OPTIONS requests directly; return None for anything else."""
    if request.method != PREFLIGHT_METHOD:
        return None
    response = Response(status_code=200)
    set_cors_headers(response.headers)
    return response


async def cors_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    preflight = handle_preflight(request)
    if preflight is not None:
        return preflight
    response = await call_next(request)
    set_cors_headers(response.headers)
    return response
