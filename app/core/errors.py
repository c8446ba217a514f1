# app/core/errors.py
"""
Error taxonomy for the CleanJamaica API.

Every failure the API reports carries a stable machine-readable `code`
and a human-readable `message`. Services and the auth guard raise these
exceptions; `register_exception_handlers` turns them into JSON bodies:

    {"success": false, "code": "NO_SESSION", "message": "No active session"}
"""
import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class CleanJamaicaError(Exception):
    """Base class for errors rendered as structured API responses."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_SERVER_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        details: Any = None,
    ) -> None:
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "success": False,
            "code": self.code,
            "message": self.message,
        }
        if self.details is not None:
            body["details"] = self.details
        return body


class ConfigError(CleanJamaicaError):
    """Required environment configuration is missing."""

    code = "CONFIG_ERROR"
    message = "Server configuration error"


# ----- Session / authentication -----


class NoSession(CleanJamaicaError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "NO_SESSION"
    message = "No active session"


class InvalidSession(CleanJamaicaError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_SESSION"
    message = "Invalid session"


class InvalidCredentials(CleanJamaicaError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_CREDENTIALS"
    message = "Invalid email or password"


class EmailNotVerified(CleanJamaicaError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "EMAIL_NOT_VERIFIED"
    message = "Please verify your email before logging in"


# ----- Authorization -----


class ProfileNotFound(CleanJamaicaError):
    """A valid identity with no matching application user row."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "PROFILE_NOT_FOUND"
    message = "User profile not found"


class Forbidden(CleanJamaicaError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    message = "You do not have access to this resource"


# ----- Caller input -----


class ValidationError(CleanJamaicaError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Invalid request"


class EmailInvalid(ValidationError):
    code = "INVALID_EMAIL"
    message = "Invalid email format"


class EmailTaken(CleanJamaicaError):
    status_code = status.HTTP_409_CONFLICT
    code = "EMAIL_EXISTS"
    message = "Email already registered"


class NotFoundError(CleanJamaicaError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    message = "Resource not found"


class UserNotFound(NotFoundError):
    code = "USER_NOT_FOUND"
    message = "User not found. Please signup first."


# ----- Upstream (identity provider / relational store) -----


class UpstreamError(CleanJamaicaError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "UPSTREAM_ERROR"
    message = "Upstream service failed"


class ProviderError(UpstreamError):
    message = "Identity provider request failed"


class StoreUnavailable(UpstreamError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "STORE_UNAVAILABLE"
    message = "User store is unavailable"


async def _handle_clean_jamaica_error(
    request: Request, exc: CleanJamaicaError
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s -> %s %s: %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.code,
            exc.details or exc.message,
        )
    else:
        logger.info(
            "%s %s -> %s %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.code,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    error = ValidationError(details=jsonable_encoder(exc.errors()))
    return await _handle_clean_jamaica_error(request, error)


async def _handle_store_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Store failure on %s %s", request.method, request.url.path)
    error = StoreUnavailable()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    """
    Install the JSON error renderers on the application.

    Body validation failures become 400 VALIDATION_ERROR and any database
    error that escapes a service becomes 503 STORE_UNAVAILABLE, so every
    error body keeps the same shape.
    """
    app.add_exception_handler(CleanJamaicaError, _handle_clean_jamaica_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(SQLAlchemyError, _handle_store_error)
