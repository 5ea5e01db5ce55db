"""
API Error Taxonomy

Every failure a handler can report maps to one exception class here. The
handlers registered by ``register_exception_handlers`` turn them into the
JSON error shape used across the API:

    {"msg": "..."}                          # 401 / 403 / 404 / 500
    {"msg": "...", "errors": [...]}         # 400 validation failures
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from restomatch.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class FieldError:
    """A single field violation reported in a 400 response."""
    field: str
    msg: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "msg": self.msg, "value": self.value}


def errors_from_pydantic(details: list[dict]) -> list[FieldError]:
    """Convert pydantic error details into field errors."""
    errors = []
    for detail in details:
        loc = [str(part) for part in detail.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        value = detail.get("input")
        if not isinstance(value, (str, int, float, bool)):
            value = None
        errors.append(FieldError(
            field=".".join(loc) or "body",
            msg=detail.get("msg", "Invalid value"),
            value=value,
        ))
    return errors


class APIError(Exception):
    """Base class for errors that are reported to the client as-is."""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"msg": self.message}


class ValidationFailed(APIError):
    """One or more request fields failed validation."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: list[FieldError], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "msg": self.message,
            "errors": [error.to_dict() for error in self.errors],
        }


class BadRequest(APIError):
    status_code = 400
    default_message = "Bad request"


class Unauthorized(APIError):
    status_code = 401
    default_message = "No token, authorization denied"


class Forbidden(APIError):
    status_code = 403
    default_message = "Access denied"


class NotFound(APIError):
    status_code = 404
    default_message = "Not found"


class InternalError(APIError):
    status_code = 500
    default_message = "Server error"


def parse_id(raw: str, message: str) -> int:
    """
    Convert a path id to an integer.

    A malformed id can never reference a stored record, so it is reported
    as NotFound rather than as a validation failure.
    """
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise NotFound(message)
    if value < 1:
        raise NotFound(message)
    return value


def _error_detail(settings: Settings, exc: Exception) -> dict[str, Any]:
    content: dict[str, Any] = {"msg": InternalError.default_message}
    if settings.debug:
        content["detail"] = str(exc)
    return content


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Attach the JSON error handlers to the application."""

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        failed = ValidationFailed(errors_from_pydantic(exc.errors()))
        return JSONResponse(status_code=failed.status_code, content=failed.to_dict())

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception(f"Database error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content=_error_detail(settings, exc))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(status_code=500, content=_error_detail(settings, exc))
