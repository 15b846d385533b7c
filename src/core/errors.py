# src/core/errors.py
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """
    Base class for every failure the auth subsystem reports to a caller.

    `message` is safe to show to the client, `detail` carries the underlying
    cause and is only ever logged.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "server_error"

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message


class InvalidInput(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_input"


class InvalidToken(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_token"


class SessionInvalid(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "session_invalid"


class Unauthorized(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"


class PersistenceError(AuthError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "server_error"


def _error_response(exc: AuthError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
    )


def register_exception_handlers(app: FastAPI, *, cookie_clearer=None) -> None:
    """
    Maps the error taxonomy onto fixed HTTP status codes.

    Args:
        app: The FastAPI application.
        cookie_clearer: Callable taking a response; applied to `SessionInvalid`
            responses so the stale cookie is force-expired on the client.
    """

    @app.exception_handler(SessionInvalid)
    async def handle_session_invalid(request: Request, exc: SessionInvalid):
        logger.info(f"Rejected {request.method} {request.url.path}: {exc}")
        response = _error_response(exc)
        if cookie_clearer is not None:
            cookie_clearer(response)
        return response

    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        if exc.status_code >= 500:
            logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc}")
        else:
            logger.warning(f"{exc.code} on {request.method} {request.url.path}: {exc}")
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request body on {request.url.path}: {exc.errors()}")
        return _error_response(InvalidInput("Invalid request."))
