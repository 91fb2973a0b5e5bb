"""
Auth Router - login, refresh, logout, Google OAuth and access-token validation.

The refresh token only ever travels in an httpOnly cookie; response bodies and
redirect URLs carry no refresh token, and the OAuth redirect carries no token at all.
"""
from typing import Optional
import logging
import secrets

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import RedirectResponse

from ..config import settings
from ..deps import enforce_login_rate_limit, get_auth_service, get_current_user, get_google_client
from ..exceptions import OAuthProviderError, UnauthorizedError, UserCreationError
from ..models import User
from ..oauth import GoogleOAuthClient
from ..schemas import JwtPayload, LoginRequest, MessageResponse, UserOut
from ..service import AuthService
from ..utils.event_logger import log_auth_event

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

OAUTH_STATE_COOKIE = "oauthState"
OAUTH_STATE_MAX_AGE = 10 * 60


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_TOKEN_COOKIE_NAME,
        value=refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        path="/",
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.REFRESH_TOKEN_COOKIE_NAME,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        path="/",
    )


@router.post("/login", response_model=JwtPayload, dependencies=[Depends(enforce_login_rate_limit)])
def login(
    credentials: LoginRequest,
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
):
    payload, refresh_token = service.login(credentials.email, credentials.password, request=request)
    set_refresh_cookie(response, refresh_token)
    return payload


@router.post("/refresh", response_model=JwtPayload)
def refresh(
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
):
    current = request.cookies.get(settings.REFRESH_TOKEN_COOKIE_NAME)
    payload, refresh_token = service.refresh(current, request=request)
    set_refresh_cookie(response, refresh_token)
    return payload


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    service: AuthService = Depends(get_auth_service),
):
    service.logout(request.cookies.get(settings.REFRESH_TOKEN_COOKIE_NAME), request=request)
    clear_refresh_cookie(response)
    return {"message": "Logout successful"}


@router.get("/google")
def google_login(google: GoogleOAuthClient = Depends(get_google_client)):
    """Redirect to Google's consent page with a CSRF state bound to a cookie."""
    state = secrets.token_urlsafe(32)
    response = RedirectResponse(google.authorization_url(state), status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        key=OAUTH_STATE_COOKIE,
        value=state,
        max_age=OAUTH_STATE_MAX_AGE,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/auth/google",
    )
    return response


@router.get("/google/callback")
def google_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    service: AuthService = Depends(get_auth_service),
    google: GoogleOAuthClient = Depends(get_google_client),
):
    expected_state = request.cookies.get(OAUTH_STATE_COOKIE)
    if not code or not state or not expected_state or not secrets.compare_digest(state, expected_state):
        raise UnauthorizedError("OAuth authentication failed")

    try:
        profile = google.fetch_profile(code)
        _, refresh_token = service.oauth_login(profile, request=request)
    except (OAuthProviderError, UserCreationError) as e:
        logger.warning("Google OAuth login failed: %s", e)
        log_auth_event("oauth_failure", request=request, reason=type(e).__name__)
        response = RedirectResponse(
            f"{settings.FRONTEND_URL}/login?error=oauth_failed", status_code=status.HTTP_302_FOUND
        )
        response.delete_cookie(OAUTH_STATE_COOKIE, path="/auth/google")
        return response

    response = RedirectResponse(f"{settings.FRONTEND_URL}/authenticated", status_code=status.HTTP_302_FOUND)
    set_refresh_cookie(response, refresh_token)
    response.delete_cookie(OAUTH_STATE_COOKIE, path="/auth/google")
    return response


@router.get("/validate", response_model=UserOut)
def validate_token(user: User = Depends(get_current_user)):
    return user
