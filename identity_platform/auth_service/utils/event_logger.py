"""
Logging setup and audit logging for authentication events.
"""
from datetime import datetime
from typing import Optional
import logging
import os
import sys

from fastapi import Request

from ..config import settings

logger = logging.getLogger("identity_platform.audit")


ALLOWED_EVENT_TYPES = {
    "login_success",
    "login_failure",
    "logout",
    "token_refresh",
    "token_refresh_failure",
    "oauth_login",
    "oauth_user_created",
    "oauth_failure",
    "user_registered",
    "password_update",
    "refresh_tokens_swept",
}


def setup_logging() -> None:
    """
    Configure root logging: stdout always, plus a file handler when LOG_DIR is set.
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    # Try to add file handler, but continue without it if directory creation fails
    if settings.LOG_DIR:
        try:
            os.makedirs(settings.LOG_DIR, exist_ok=True)
            handlers.append(logging.FileHandler(os.path.join(settings.LOG_DIR, "auth_events.log")))
        except OSError as e:
            print(f"WARNING: Could not set up file logging: {e}", file=sys.stderr)

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    # X-Forwarded-For can contain multiple IPs, take the first one
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


def log_auth_event(
    event_type: str,
    user_id: Optional[int] = None,
    email: Optional[str] = None,
    request: Optional[Request] = None,
    **metadata
) -> None:
    """
    Write one audit line for an authentication event.

    Args:
        event_type: One of ALLOWED_EVENT_TYPES
        user_id: Affected user, when known
        email: Affected account email, when known
        request: Incoming request, used for client IP and user agent
        **metadata: Extra key/value context appended to the line

    Raises:
        ValueError: If event_type is invalid
    """
    if event_type not in ALLOWED_EVENT_TYPES:
        raise ValueError(
            f"Invalid event_type '{event_type}'. Must be one of: {', '.join(sorted(ALLOWED_EVENT_TYPES))}"
        )

    user_agent = request.headers.get("user-agent") if request is not None else None
    extra = " ".join(f"{k}={v}" for k, v in sorted(metadata.items()))

    logger.info(
        "AUTH %s user_id=%s email=%s ip=%s user_agent=%s timestamp=%s %s",
        event_type, user_id, email, client_ip(request), user_agent,
        datetime.utcnow().isoformat(), extra
    )
