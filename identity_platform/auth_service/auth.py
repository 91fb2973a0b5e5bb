from passlib.context import CryptContext
from datetime import datetime, timedelta
from typing import Any, Dict, NamedTuple
import jwt
from sqlalchemy.orm import Session

from .config import settings
from .exceptions import TokenCreationError, UnauthorizedError
from .models import User

ACCESS_TOKEN_TYPE = "access"

INVALID_CREDENTIALS = "Invalid credentials"
ACCOUNT_INACTIVE = "Account is inactive"

# Use pbkdf2_sha256 to avoid external bcrypt backend issues in some environments
pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__rounds=settings.PASSWORD_HASH_ROUNDS,
)


class AccessToken(NamedTuple):
    access_token: str
    claims: Dict[str, Any]


def normalize_email(email: str) -> str:
    return email.strip().lower()


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def validate_credentials(db: Session, email: str, password: str) -> User:
    """
    Check an email/password pair against the stored hash.

    Unknown email and wrong password share one message so the response body
    does not reveal which accounts exist.

    Raises:
        UnauthorizedError: unknown email, inactive account, OAuth-only account
            or password mismatch
    """
    user = db.query(User).filter(User.email == normalize_email(email)).first()
    if not user:
        raise UnauthorizedError(INVALID_CREDENTIALS)

    if not user.is_active:
        raise UnauthorizedError(ACCOUNT_INACTIVE)

    if user.is_oauth or not user.hashed_password:
        raise UnauthorizedError(INVALID_CREDENTIALS)

    if not verify_password(password, user.hashed_password):
        raise UnauthorizedError(INVALID_CREDENTIALS)

    return user


def sign_token(payload: Dict[str, Any]) -> str:
    try:
        token = jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    except jwt.PyJWTError as exc:
        raise TokenCreationError(f"Failed to sign token: {exc}") from exc
    if not token:
        raise TokenCreationError("Signing produced an empty token")
    return token


def issue_access_token(user: User) -> AccessToken:
    now = datetime.utcnow()
    claims = {
        "sub": str(user.id),
        "username": user.email,
        "type": ACCESS_TOKEN_TYPE,
        "iat": now,
        "exp": now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return AccessToken(access_token=sign_token(claims), claims=claims)


def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        claims = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise UnauthorizedError("Token expired") from exc
    except jwt.PyJWTError as exc:
        raise UnauthorizedError("Invalid token") from exc

    if claims.get("type") != ACCESS_TOKEN_TYPE:
        raise UnauthorizedError("Invalid token")
    return claims
