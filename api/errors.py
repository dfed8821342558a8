from __future__ import annotations

import logging
import traceback

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from veryfiable.core.time import utc_now_iso

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, error: str, message: str, status: int = 400, **extra: object) -> None:
        super().__init__(message)
        self.error = error
        self.message = message
        self.status = status
        self.extra = extra


def error_body(error: str, message: str, **extra: object) -> dict[str, object]:
    return {"error": error, "message": message, "timestamp": utc_now_iso(), **extra}


def _include_stack(request: Request) -> bool:
    config = getattr(request.app.state, "config", None)
    return config is not None and config.api.environment == "development"


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    body = error_body(exc.error, exc.message, **exc.extra)
    if _include_stack(request):
        body["stack"] = "".join(traceback.format_exception(exc))
    return JSONResponse(status_code=exc.status, content=body)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # An unrouted method on a known path is just another unmatched route.
    if exc.status_code in (404, 405):
        body = error_body("Not Found", f"Route {request.method} {request.url.path} not found")
        return JSONResponse(status_code=404, content=body)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body("HTTPException", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    body = error_body(type(exc).__name__, str(exc) or "An unexpected error occurred")
    if _include_stack(request):
        body["stack"] = "".join(traceback.format_exception(exc))
    return JSONResponse(status_code=500, content=body)
