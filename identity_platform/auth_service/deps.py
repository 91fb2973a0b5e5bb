"""
FastAPI dependencies shared by the routers.
"""
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from .auth import decode_access_token
from .config import settings
from .dashboard import DashboardService, dashboard_service
from .db import get_db
from .exceptions import RateLimitExceededError, UnauthorizedError
from .models import User
from .oauth import GoogleOAuthClient
from .rate_limit import InMemoryRateLimitStore, RateLimitStore
from .service import AuthService
from .users import get_user_by_id

login_rate_limit_store = InMemoryRateLimitStore(
    max_requests=settings.LOGIN_RATE_LIMIT_MAX_REQUESTS,
    window_seconds=settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
)

dashboard_rate_limit_store = InMemoryRateLimitStore(
    max_requests=settings.DASHBOARD_RATE_LIMIT_MAX_REQUESTS,
    window_seconds=settings.DASHBOARD_RATE_LIMIT_WINDOW_SECONDS,
)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)


def get_google_client() -> GoogleOAuthClient:
    return GoogleOAuthClient(
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        redirect_uri=settings.GOOGLE_CALLBACK_URL,
        timeout=settings.OAUTH_HTTP_TIMEOUT_SECONDS,
    )


def get_dashboard_service() -> DashboardService:
    return dashboard_service


def get_rate_limit_store() -> RateLimitStore:
    return login_rate_limit_store


def get_dashboard_rate_limit_store() -> RateLimitStore:
    return dashboard_rate_limit_store


def rate_limit_key(request: Request) -> str:
    """
    Client identity for rate limiting: the socket peer address.

    X-Forwarded-For is only believed when the peer is listed in TRUSTED_PROXY_IPS.
    """
    peer = request.client.host if request.client else None
    if peer and peer in settings.TRUSTED_PROXY_IPS:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return peer or "unknown"


def enforce_login_rate_limit(
    request: Request,
    store: RateLimitStore = Depends(get_rate_limit_store),
) -> None:
    result = store.hit(rate_limit_key(request))
    if not result.allowed:
        raise RateLimitExceededError(result.retry_after)


def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> User:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise UnauthorizedError("Not authenticated")
    token = authorization.split(" ", 1)[1].strip()
    claims = decode_access_token(token)

    try:
        user_id = int(claims["sub"])
    except (TypeError, ValueError) as exc:
        raise UnauthorizedError("Invalid token") from exc

    user = get_user_by_id(db, user_id)
    if not user or not user.is_active:
        raise UnauthorizedError("User not found or inactive")
    return user


def enforce_dashboard_rate_limit(
    request: Request,
    user: User = Depends(get_current_user),
    store: RateLimitStore = Depends(get_dashboard_rate_limit_store),
) -> None:
    # Authenticated callers are limited per address and account
    result = store.hit(f"{rate_limit_key(request)}:{user.id}")
    if not result.allowed:
        raise RateLimitExceededError(result.retry_after)
