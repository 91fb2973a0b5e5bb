"""
User Router - registration and self-service profile management.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..deps import get_current_user
from ..models import User
from ..refresh_tokens import RefreshTokenStore
from ..schemas import JwtPayload, MessageResponse, PasswordUpdate, UserCreate, UserOut, UserUpdate
from ..service import build_jwt_payload
from ..users import create_user, update_password, update_profile
from ..utils.event_logger import log_auth_event

router = APIRouter(prefix="/user", tags=["users"])


@router.post("", response_model=JwtPayload, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, request: Request, db: Session = Depends(get_db)):
    """
    Create a local (password) account and return an access token for it.

    A duplicate email surfaces as an IntegrityError, answered with 409.
    """
    user = create_user(
        db,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    log_auth_event("user_registered", user_id=user.id, email=user.email, request=request)
    return build_jwt_payload(user)


@router.get("/profile", response_model=UserOut)
def get_profile(user: User = Depends(get_current_user)):
    return user


@router.put("/profile", response_model=UserOut)
def put_profile(payload: UserUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return update_profile(
        db,
        user,
        first_name=payload.first_name,
        last_name=payload.last_name,
        bio=payload.bio,
    )


@router.put("/password", response_model=MessageResponse)
def put_password(
    payload: PasswordUpdate,
    request: Request,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Change the password and end every open session of this user."""
    update_password(db, user, payload.current_password, payload.new_password)
    RefreshTokenStore(db).revoke_all(user.id)
    log_auth_event("password_update", user_id=user.id, email=user.email, request=request)
    return {"message": "Password updated successfully"}
