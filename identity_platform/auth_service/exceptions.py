"""
Authentication error taxonomy and the HTTP translation of each kind.

Every error response shares the body shape
``{"statusCode", "timestamp", "path", "message"}``.
"""
from datetime import datetime
from typing import Any, Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class UnauthorizedError(Exception):
    """Bad credentials, inactive account, or an unusable token."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)
        self.message = message


class TokenCreationError(Exception):
    """Signing produced no usable token; a configuration fault, not user error."""


class UserCreationError(Exception):
    """Persistence failed to materialize a user."""


class OAuthProviderError(Exception):
    """The OAuth provider rejected the exchange or returned an unusable profile."""


class RateLimitExceededError(Exception):
    def __init__(self, retry_after: int):
        super().__init__("Too many requests")
        self.retry_after = retry_after


def error_response(request: Request, status_code: int, message: Any, **extra) -> JSONResponse:
    payload = {
        "statusCode": status_code,
        "timestamp": datetime.utcnow().isoformat(),
        "path": request.url.path,
        "message": message,
    }
    payload.update(extra)
    return JSONResponse(status_code=status_code, content=payload)


def _log(request: Request, status_code: int, exc: Exception, message: Optional[str] = None):
    text = message or str(exc)
    if status_code >= 500:
        logger.error(
            "Internal server error: %s method=%s path=%s",
            text, request.method, request.url.path, exc_info=exc
        )
    else:
        logger.warning(
            "Client error: %s status=%s method=%s path=%s",
            text, status_code, request.method, request.url.path
        )


def _field_from_location(loc) -> str:
    # loc looks like ("body", "email")
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header", "cookie")]
    return ".".join(parts) or "body"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(UnauthorizedError)
    async def unauthorized_handler(request: Request, exc: UnauthorizedError):
        _log(request, status.HTTP_401_UNAUTHORIZED, exc, exc.message)
        return error_response(request, status.HTTP_401_UNAUTHORIZED, exc.message)

    @app.exception_handler(TokenCreationError)
    async def token_creation_handler(request: Request, exc: TokenCreationError):
        _log(request, status.HTTP_500_INTERNAL_SERVER_ERROR, exc)
        return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create token")

    @app.exception_handler(UserCreationError)
    async def user_creation_handler(request: Request, exc: UserCreationError):
        _log(request, status.HTTP_500_INTERNAL_SERVER_ERROR, exc)
        return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create user")

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_handler(request: Request, exc: RateLimitExceededError):
        _log(request, status.HTTP_429_TOO_MANY_REQUESTS, exc)
        response = error_response(
            request, status.HTTP_429_TOO_MANY_REQUESTS, "Too many requests", retryAfter=exc.retry_after
        )
        response.headers["Retry-After"] = str(exc.retry_after)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        _log(request, status.HTTP_400_BAD_REQUEST, exc, "Request validation failed")
        errors = [
            {"field": _field_from_location(err.get("loc", ())), "message": err.get("msg", "Invalid value")}
            for err in exc.errors()
        ]
        return error_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            {
                "status": "validation_error",
                "message": "Please check the following fields:",
                "errors": errors,
            },
        )

    @app.exception_handler(IntegrityError)
    async def integrity_handler(request: Request, exc: IntegrityError):
        _log(request, status.HTTP_409_CONFLICT, exc, "Integrity error")
        return error_response(request, status.HTTP_409_CONFLICT, "Repeated value")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        _log(request, exc.status_code, exc, str(exc.detail))
        response = error_response(request, exc.status_code, exc.detail)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        _log(request, status.HTTP_500_INTERNAL_SERVER_ERROR, exc)
        return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
