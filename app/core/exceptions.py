"""
Application error taxonomy
--------------------------
Services raise these; the handlers registered by `register_exception_handlers`
turn them into JSON responses. Storage failures never leak SQL or schema text.
"""

import logging
from typing import Iterable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PhodError(Exception):
    """Base class for every recoverable application error."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PhodError):
    """Missing required field, out-of-range value or unusable reference."""
    status_code = 400

    def __init__(self, message: str, fields: Iterable[str] = ()):
        super().__init__(message)
        self.fields = list(fields)


class NotFoundError(PhodError):
    """A referenced cast, niskin, station (etc.) does not exist."""
    status_code = 404

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class AuthError(PhodError):
    status_code = 401


class InvalidCredentials(AuthError):
    """Same message for unknown user, wrong password and inactive account."""

    def __init__(self):
        super().__init__("Invalid username or password.")


class InsufficientRole(AuthError):
    status_code = 403

    def __init__(self, required: str):
        super().__init__(f"Access denied. You need '{required}' permission to perform this action.")
        self.required = required


class StorageError(PhodError):
    """Constraint violation or connection failure in the backing database."""
    status_code = 500

    def __init__(self, message: str = "A database error occurred. Please try again."):
        super().__init__(message)


def _error_body(exc: PhodError) -> dict:
    body = {"success": False, "error": type(exc).__name__, "detail": exc.message}
    if isinstance(exc, ValidationError) and exc.fields:
        body["fields"] = exc.fields
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the taxonomy-to-HTTP mapping to the FastAPI app."""

    @app.exception_handler(PhodError)
    async def handle_phod_error(request: Request, exc: PhodError):
        if isinstance(exc, StorageError):
            logger.error(f"Storage error on {request.method} {request.url.path}")
        else:
            logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        fields = [".".join(str(part) for part in err["loc"] if part != "body") or "body" for err in exc.errors()]
        error = ValidationError(f"Invalid or missing fields: {', '.join(fields)}", fields)
        logger.info(f"ValidationError on {request.method} {request.url.path}: {error.message}")
        return JSONResponse(status_code=error.status_code, content=_error_body(error))
