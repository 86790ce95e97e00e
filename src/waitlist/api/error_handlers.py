"""Global exception handlers for the waitlist API.

Domain errors map to their own status and public message, request validation
errors to a 400 with per-field messages, and anything else to a generic 500
that never leaks internals.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from waitlist.core.errors import UnavailableError, WaitlistError

logger = logging.getLogger(__name__)

_LOCATION_PREFIXES = frozenset({"body", "query", "path", "header"})


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_waitlist_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_waitlist_error_handler(app: FastAPI) -> None:
    @app.exception_handler(WaitlistError)
    async def waitlist_error_handler(request: Request, exc: WaitlistError) -> JSONResponse:
        if isinstance(exc, UnavailableError):
            logger.error("Dependency failure on %s: %s", request.url.path, exc.message)
        else:
            logger.info("%s on %s", type(exc).__name__, request.url.path)
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response(),
            headers=exc.headers(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        fields = field_violations(exc.errors())
        logger.info("Validation error on %s: %s", request.url.path, sorted(fields))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "Invalid request", "fields": fields},
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all; the traceback goes to the log only."""
        logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": UnavailableError.public_message},
        )


def field_violations(errors: Any) -> dict[str, str]:
    """Flatten pydantic error entries into `{field: message}`."""
    fields: dict[str, str] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        fields.setdefault(".".join(loc) or "__root__", error.get("msg", "invalid"))
    return fields
