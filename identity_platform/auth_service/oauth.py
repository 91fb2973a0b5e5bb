"""
Google OAuth: authorization-code client and local identity resolution.
"""
from typing import Optional
from urllib.parse import urlencode
import logging

import httpx
from pydantic import ValidationError
from sqlalchemy.orm import Session

from .config import settings
from .exceptions import OAuthProviderError
from .models import User
from .schemas import OAuthProfile
from .users import create_oauth_user, get_user_by_email
from .utils.event_logger import log_auth_event

logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
GOOGLE_SCOPES = "openid email profile"


class GoogleOAuthClient:
    """
    Minimal authorization-code flow against Google.

    Only produces an OAuthProfile; tokens issued by Google are not persisted.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = 10.0,
        http_client: Optional[httpx.Client] = None
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout
        self.http_client = http_client

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": GOOGLE_SCOPES,
            "state": state,
            "access_type": "online",
            "prompt": "select_account",
        }
        return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"

    def fetch_profile(self, code: str) -> OAuthProfile:
        """
        Exchange an authorization code and read the user's profile.

        Raises:
            OAuthProviderError: transport failure, non-2xx answer or unusable profile
        """
        if self.http_client is not None:
            return self._fetch_profile(self.http_client, code)
        with httpx.Client(timeout=self.timeout) as client:
            return self._fetch_profile(client, code)

    def _fetch_profile(self, client: httpx.Client, code: str) -> OAuthProfile:
        try:
            token_response = client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": self.redirect_uri,
                    "grant_type": "authorization_code",
                },
            )
            token_response.raise_for_status()
            provider_token = token_response.json().get("access_token")
            if not provider_token:
                raise OAuthProviderError("Token response did not include an access_token")

            userinfo_response = client.get(
                GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {provider_token}"},
            )
            userinfo_response.raise_for_status()
            userinfo = userinfo_response.json()
        except httpx.HTTPError as exc:
            raise OAuthProviderError(f"Google OAuth request failed: {exc}") from exc
        except ValueError as exc:
            raise OAuthProviderError("Google returned a malformed response") from exc

        if userinfo.get("email_verified") is False:
            raise OAuthProviderError("Google account email is not verified")

        try:
            return OAuthProfile(
                email=userinfo.get("email"),
                first_name=_first_name(userinfo),
                last_name=userinfo.get("family_name") or "",
                picture_url=userinfo.get("picture"),
                access_token=provider_token,
            )
        except ValidationError as exc:
            raise OAuthProviderError(f"Google profile failed validation: {exc}") from exc


def _first_name(userinfo: dict) -> Optional[str]:
    """given_name, else the display name, else the email local part."""
    email = userinfo.get("email") or ""
    return userinfo.get("given_name") or userinfo.get("name") or email.split("@")[0] or None


def resolve_or_create_user(db: Session, profile: OAuthProfile) -> User:
    """
    Map a federated profile to a local user, creating an OAuth account on first sight.

    An existing user is returned as-is; provider attributes are not synced.

    Raises:
        UserCreationError: the new account could not be persisted
        IntegrityError: a concurrent insert won the race for this email
    """
    user = get_user_by_email(db, profile.email)
    if user:
        return user

    user = create_oauth_user(
        db,
        email=profile.email,
        first_name=profile.first_name,
        last_name=profile.last_name,
    )
    log_auth_event("oauth_user_created", user_id=user.id, email=user.email, provider="google")
    return user
