"""
Error mapping for the HTTP API.

Service exceptions become JSON {"message": ...} responses:
InvalidArgument / InvalidAction -> 400, NotFound -> 404, Conflict -> 409,
StoreUnavailable and anything else from the service -> 500.
aiohttp HTTP exceptions (unknown route, wrong method) pass through; any
other exception is logged and answered with a JSON 500.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable

from aiohttp import web

from global_news.core.types import (
    ConflictError,
    GlobalNewsError,
    InvalidActionError,
    InvalidArgumentError,
    NotFoundError,
)

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

_STATUS_BY_ERROR: tuple[tuple[type[GlobalNewsError], int], ...] = (
    (InvalidArgumentError, 400),
    (InvalidActionError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def status_for(exc: GlobalNewsError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    try:
        return await handler(request)
    except GlobalNewsError as e:
        status = status_for(e)
        if status >= 500:
            logger.error(
                f"{request.method} {request.path} failed: {e}",
                extra={"error": str(e)},
            )
        else:
            logger.debug(f"{request.method} {request.path} -> {status}: {e}")
        return web.json_response({"message": e.message}, status=status)
    except web.HTTPException:
        raise
    except Exception:
        logger.exception(f"{request.method} {request.path} raised an unexpected error")
        return web.json_response({"message": "Internal server error"}, status=500)
