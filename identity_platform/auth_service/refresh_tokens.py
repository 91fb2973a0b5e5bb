"""
Refresh token persistence and rotation.

Rotation policy: issuing a token revokes every other active token of the same
user first, so each user has at most one usable refresh token (one active
session). Revoke and insert run in one transaction under a row lock on the
owning user; the partial unique index on refresh_tokens(user_id) where
is_revoked is false backs that up at the storage layer.
"""
from datetime import datetime, timedelta
from typing import Callable, Optional
import logging
import uuid

import jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import sign_token
from .config import settings
from .exceptions import UnauthorizedError
from .models import RefreshToken, User

logger = logging.getLogger(__name__)

REFRESH_TOKEN_TYPE = "refresh"

INVALID_REFRESH_TOKEN = "Invalid refresh token"
REFRESH_TOKEN_NOT_FOUND = "Refresh token not found or revoked"
REFRESH_TOKEN_EXPIRED = "Refresh token expired"


class RefreshTokenStore:
    """
    Issues, validates, revokes and sweeps persisted refresh tokens.

    The signed token string is both what the client holds and what is stored,
    so lookups are by exact value.
    """

    def __init__(
        self,
        db: Session,
        clock: Callable[[], datetime] = datetime.utcnow,
        ttl: Optional[timedelta] = None
    ):
        """
        Args:
            db: Database session
            clock: Returns the current naive UTC time
            ttl: Token lifetime (default: REFRESH_TOKEN_EXPIRE_DAYS)
        """
        self.db = db
        self.clock = clock
        self.ttl = ttl or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

    def issue(self, user_id: int) -> str:
        """
        Revoke the user's active tokens and persist a fresh one, atomically.

        Args:
            user_id: Owner of the new token

        Returns:
            The signed refresh token string

        Raises:
            SQLAlchemyError: nothing is persisted or revoked when the transaction fails
        """
        now = self.clock()
        expires_at = now + self.ttl
        token = sign_token({
            "sub": str(user_id),
            "type": REFRESH_TOKEN_TYPE,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": expires_at,
        })

        try:
            # Serializes concurrent rotations for the same user (no-op on SQLite,
            # which serializes writers anyway)
            self.db.query(User.id).filter(User.id == user_id).with_for_update().first()

            revoked = (
                self.db.query(RefreshToken)
                .filter(RefreshToken.user_id == user_id, RefreshToken.is_revoked.is_(False))
                .update({RefreshToken.is_revoked: True}, synchronize_session=False)
            )
            self.db.add(RefreshToken(
                token=token,
                user_id=user_id,
                expires_at=expires_at,
                created_at=now,
                is_revoked=False,
            ))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Refresh token rotation failed for user_id=%s", user_id)
            raise

        logger.debug("Issued refresh token for user_id=%s (revoked %s previous)", user_id, revoked)
        return token

    def validate(self, token: str) -> User:
        """
        Resolve a refresh token to its owner.

        Checks run cheapest first: signature and claims, then the stored row,
        then the stored expiry. An expired token has its row marked revoked so
        it can never come back.

        Raises:
            UnauthorizedError: invalid, unknown, revoked or expired token
        """
        try:
            claims = jwt.decode(
                token,
                settings.JWT_SECRET_KEY,
                algorithms=[settings.JWT_ALGORITHM],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            # Signature was valid; only the exp claim has lapsed
            self._mark_revoked(token)
            raise UnauthorizedError(REFRESH_TOKEN_EXPIRED) from exc
        except jwt.PyJWTError as exc:
            raise UnauthorizedError(INVALID_REFRESH_TOKEN) from exc

        if claims.get("type") != REFRESH_TOKEN_TYPE:
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        record = (
            self.db.query(RefreshToken)
            .filter(RefreshToken.token == token, RefreshToken.is_revoked.is_(False))
            .first()
        )
        if not record:
            raise UnauthorizedError(REFRESH_TOKEN_NOT_FOUND)

        if record.expires_at <= self.clock():
            record.is_revoked = True
            self._commit()
            raise UnauthorizedError(REFRESH_TOKEN_EXPIRED)

        return record.user

    def revoke(self, token: str) -> None:
        """Revoke a single token; unknown or already revoked tokens are ignored."""
        self._mark_revoked(token)

    def revoke_all(self, user_id: int) -> int:
        """Revoke every active token owned by the user. Returns the number revoked."""
        count = (
            self.db.query(RefreshToken)
            .filter(RefreshToken.user_id == user_id, RefreshToken.is_revoked.is_(False))
            .update({RefreshToken.is_revoked: True}, synchronize_session=False)
        )
        self._commit()
        return count

    def sweep_expired(self) -> int:
        """
        Delete every token past its expiry, revoked or not.

        Returns:
            Number of rows deleted
        """
        count = (
            self.db.query(RefreshToken)
            .filter(RefreshToken.expires_at < self.clock())
            .delete(synchronize_session=False)
        )
        self._commit()
        logger.info("Swept %s expired refresh tokens", count)
        return count

    def _mark_revoked(self, token: str) -> None:
        (
            self.db.query(RefreshToken)
            .filter(RefreshToken.token == token, RefreshToken.is_revoked.is_(False))
            .update({RefreshToken.is_revoked: True}, synchronize_session=False)
        )
        self._commit()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
