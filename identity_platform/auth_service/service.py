"""
Authentication flows exposed to the HTTP layer: login, refresh, logout and
the OAuth callback. Each call is single-shot; session state lives in the
refresh token store.
"""
from typing import Optional, Tuple
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import ACCOUNT_INACTIVE, issue_access_token, validate_credentials
from .exceptions import UnauthorizedError
from .models import User
from .oauth import resolve_or_create_user
from .refresh_tokens import RefreshTokenStore
from .schemas import JwtPayload, JwtUser, OAuthProfile
from .utils.event_logger import log_auth_event

logger = logging.getLogger(__name__)


def build_jwt_payload(user: User) -> JwtPayload:
    """Sign an access token for the user and wrap it in the public response shape."""
    access = issue_access_token(user)
    return JwtPayload(
        access_token=access.access_token,
        user=JwtUser(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
        ),
    )


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: Session, refresh_store: Optional[RefreshTokenStore] = None):
        self.db = db
        self.refresh_store = refresh_store or RefreshTokenStore(db)

    def login(self, email: str, password: str, request=None) -> Tuple[JwtPayload, str]:
        """
        Verify credentials and open a new session.

        Returns:
            The response payload and the refresh token destined for the cookie

        Raises:
            UnauthorizedError: credentials rejected
        """
        try:
            user = validate_credentials(self.db, email, password)
        except UnauthorizedError as exc:
            log_auth_event("login_failure", email=email, request=request, reason=exc.message)
            raise

        payload = build_jwt_payload(user)
        refresh_token = self.refresh_store.issue(user.id)
        log_auth_event("login_success", user_id=user.id, email=user.email, request=request)
        return payload, refresh_token

    def oauth_login(self, profile: OAuthProfile, request=None) -> Tuple[User, str]:
        """
        Resolve the federated profile and open a session for it.

        No access token is minted here; the client calls refresh with the cookie.
        """
        user = resolve_or_create_user(self.db, profile)
        refresh_token = self.refresh_store.issue(user.id)
        log_auth_event("oauth_login", user_id=user.id, email=user.email, request=request, provider="google")
        return user, refresh_token

    def refresh(self, refresh_token: Optional[str], request=None) -> Tuple[JwtPayload, str]:
        """
        Exchange a refresh token for a new access token and a rotated refresh token.

        Raises:
            UnauthorizedError: missing, invalid, revoked or expired token, or inactive owner
        """
        if not refresh_token:
            log_auth_event("token_refresh_failure", request=request, reason="missing")
            raise UnauthorizedError("Refresh token missing")

        try:
            user = self.refresh_store.validate(refresh_token)
            if not user.is_active:
                raise UnauthorizedError(ACCOUNT_INACTIVE)
        except UnauthorizedError as exc:
            log_auth_event("token_refresh_failure", request=request, reason=exc.message)
            raise

        payload = build_jwt_payload(user)
        new_refresh_token = self.refresh_store.issue(user.id)
        log_auth_event("token_refresh", user_id=user.id, email=user.email, request=request)
        return payload, new_refresh_token

    def logout(self, refresh_token: Optional[str], request=None) -> None:
        """
        Revoke the presented token. Idempotent; no token means nothing to do.

        Never fails: a storage error is logged and the caller still clears the cookie.
        """
        if not refresh_token:
            return
        try:
            self.refresh_store.revoke(refresh_token)
        except SQLAlchemyError as e:
            logger.error("Refresh token revocation failed during logout: %s", e)
            return
        log_auth_event("logout", request=request)
