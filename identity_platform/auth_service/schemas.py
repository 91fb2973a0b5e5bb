from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

# Wire format is camelCase; Python attributes stay snake_case
CAMEL_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    "from_attributes": True,
}


def _normalize_email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v or v.startswith("@") or v.endswith("@"):
        raise ValueError("Please enter a valid email")
    return v


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class JwtUser(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str

    model_config = CAMEL_CONFIG


class JwtPayload(BaseModel):
    access_token: str
    user: JwtUser

    model_config = CAMEL_CONFIG


class OAuthProfile(BaseModel):
    """Federated identity as reported by the provider."""
    email: str = Field(..., min_length=3, max_length=255)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(default="", max_length=100)
    picture_url: Optional[str] = None
    access_token: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class UserCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

    model_config = CAMEL_CONFIG

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=2, max_length=50)
    last_name: Optional[str] = Field(None, min_length=2, max_length=50)
    bio: Optional[str] = Field(None, max_length=300)

    model_config = CAMEL_CONFIG


class PasswordUpdate(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=8, max_length=128)

    model_config = CAMEL_CONFIG


class UserOut(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    is_oauth: bool
    is_active: bool
    joined_date: datetime
    bio: Optional[str] = None

    model_config = CAMEL_CONFIG


class MessageResponse(BaseModel):
    message: str


class UserGrowthData(BaseModel):
    day: date = Field(..., alias="date")
    count: int

    model_config = CAMEL_CONFIG


class DashboardStats(BaseModel):
    total_users: int
    active_users: int
    inactive_users: int
    oauth_users: int
    password_users: int
    weekly_growth: List[UserGrowthData]
    last_updated: datetime

    model_config = CAMEL_CONFIG


class CacheInfo(BaseModel):
    size: int
    keys: List[str]
