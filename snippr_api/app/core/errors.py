"""
Error taxonomy and the FastAPI handlers that render it.

Every failure a request can run into is a subclass of ``SnipprError``
carrying a stable machine readable ``kind``, a human readable
``message`` and the HTTP status it maps to.  Services raise these; the
handlers registered by ``register_exception_handlers`` turn them into
``{"kind": ..., "message": ...}`` JSON bodies, so no per-request failure
escapes as an unhandled fault.

Messages are fixed per kind where the distinction would leak
information: ``InvalidCredentials`` never says whether the email exists
and ``InvalidOrExpiredToken`` never says why verification failed.

``FatalConfiguration`` is the exception to the rule: it is raised while
building the application and must stop the process.
"""

import logging
from typing import Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)


class SnipprError(Exception):
    """Base class for errors that are reported to API clients."""

    kind: str = "Error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"
    headers: Optional[Dict[str, str]] = None

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateEmail(SnipprError):
    kind = "DuplicateEmail"
    status_code = status.HTTP_409_CONFLICT
    default_message = "User with this email already exists."


class InvalidCredentials(SnipprError):
    kind = "InvalidCredentials"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password."

    def __init__(self) -> None:
        # The message is never customised.
        super().__init__()


class InvalidOrExpiredToken(SnipprError):
    kind = "InvalidOrExpiredToken"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid or expired token"
    headers = {"WWW-Authenticate": "Bearer"}

    def __init__(self) -> None:
        super().__init__()


class AuthenticationRequired(SnipprError):
    kind = "AuthenticationRequired"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"
    headers = {"WWW-Authenticate": "Bearer"}


class DecodeError(SnipprError):
    kind = "DecodeError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Stored record is unreadable"


class NotFound(SnipprError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Forbidden(SnipprError):
    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have access to this resource"


class ValidationError(SnipprError):
    kind = "ValidationError"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class FatalConfiguration(Exception):
    """Raised at startup when the process cannot run safely."""


def error_response(kind: str, message: str, status_code: int, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"kind": kind, "message": message}, headers=headers)


async def snippr_error_handler(request: Request, exc: SnipprError) -> JSONResponse:
    return error_response(exc.kind, exc.message, exc.status_code, exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map FastAPI body/query validation failures onto ``ValidationError``.

    Only the names of the offending fields are echoed back; submitted
    values (which may include passwords) are not.
    """
    fields = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        name = ".".join(loc) or "body"
        if name not in fields:
            fields.append(name)
    message = f"Missing or invalid fields: {', '.join(fields)}"
    return error_response(ValidationError.kind, message, ValidationError.status_code)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error while serving %s %s", request.method, request.url.path)
    return error_response(
        "InternalError",
        "Internal server error.",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error handlers to ``app``."""
    app.add_exception_handler(SnipprError, snippr_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
