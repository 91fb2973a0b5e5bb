"""
User directory: lookups, registration and profile updates.
"""
from typing import Optional
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import hash_password, normalize_email, verify_password
from .exceptions import UnauthorizedError, UserCreationError
from .models import User

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def _persist_new_user(db: Session, user: User) -> User:
    """
    Insert a user row and hand back the refreshed instance.

    Uniqueness violations propagate unchanged so the HTTP layer can answer 409;
    any other database failure becomes a UserCreationError.
    """
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        raise UserCreationError(f"Failed to create user {user.email}") from exc

    db.refresh(user)
    if user.id is None:
        raise UserCreationError(f"Failed to create user {user.email}")
    return user


def create_user(db: Session, email: str, password: str, first_name: str, last_name: str) -> User:
    user = User(
        email=normalize_email(email),
        first_name=first_name,
        last_name=last_name,
        hashed_password=hash_password(password),
        is_oauth=False,
    )
    return _persist_new_user(db, user)


def create_oauth_user(db: Session, email: str, first_name: str, last_name: str) -> User:
    user = User(
        email=normalize_email(email),
        first_name=first_name,
        last_name=last_name,
        hashed_password=None,
        is_oauth=True,
    )
    return _persist_new_user(db, user)


def update_profile(
    db: Session,
    user: User,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    bio: Optional[str] = None,
) -> User:
    if first_name is not None:
        user.first_name = first_name
    if last_name is not None:
        user.last_name = last_name
    if bio is not None:
        user.bio = bio
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(user)
    return user


def update_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    """
    Replace a local account's password after checking the current one.

    Raises:
        UnauthorizedError: OAuth account or wrong current password
    """
    if user.is_oauth:
        raise UnauthorizedError("Cannot update password for OAuth users")

    if not user.hashed_password or not verify_password(current_password, user.hashed_password):
        raise UnauthorizedError("Current password is invalid")

    user.hashed_password = hash_password(new_password)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info("Password updated for user_id=%s", user.id)
