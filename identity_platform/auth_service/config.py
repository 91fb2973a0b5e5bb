"""
Configuration management for the authentication service
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

DEFAULT_JWT_SECRET = "change-this-secret-in-prod-0123456789abcdef"


class Settings(BaseSettings):
    """Authentication service configuration loaded from environment variables"""

    # Runtime
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./app.db"

    # Access tokens
    JWT_SECRET_KEY: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15

    # Refresh tokens
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    REFRESH_TOKEN_COOKIE_NAME: str = "refreshToken"
    REFRESH_TOKEN_SWEEP_ENABLED: bool = True
    REFRESH_TOKEN_SWEEP_INTERVAL_SECONDS: Optional[int] = None

    # Password hashing (pbkdf2_sha256 iterations)
    PASSWORD_HASH_ROUNDS: int = 29000

    # Google OAuth
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_CALLBACK_URL: str = "http://localhost:8000/auth/google/callback"
    OAUTH_HTTP_TIMEOUT_SECONDS: float = 10.0

    # Frontend / CORS
    FRONTEND_URL: str = "http://localhost:5173"
    CORS_ORIGINS: List[str] = ["http://localhost:5173"]

    # Rate limiting
    LOGIN_RATE_LIMIT_MAX_REQUESTS: int = 100
    LOGIN_RATE_LIMIT_WINDOW_SECONDS: int = 900
    DASHBOARD_RATE_LIMIT_MAX_REQUESTS: int = 100
    DASHBOARD_RATE_LIMIT_WINDOW_SECONDS: int = 900
    # Peers whose X-Forwarded-For header is believed when keying rate limits
    TRUSTED_PROXY_IPS: List[str] = []

    # Dashboard
    DASHBOARD_CACHE_TTL_SECONDS: int = 300

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        v = v.lower()
        if v not in ("development", "production", "test"):
            raise ValueError("ENVIRONMENT must be one of: development, production, test")
        return v

    @field_validator("JWT_SECRET_KEY")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        """A missing signing secret is a startup failure, never a per-request one"""
        if not v or not v.strip():
            raise ValueError("JWT_SECRET_KEY must be set")
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def sweep_interval_seconds(self) -> int:
        """Daily sweeps in production, hourly everywhere else unless overridden"""
        if self.REFRESH_TOKEN_SWEEP_INTERVAL_SECONDS:
            return self.REFRESH_TOKEN_SWEEP_INTERVAL_SECONDS
        return 86400 if self.is_production else 3600


# Global settings instance
settings = Settings()

if settings.is_production and settings.JWT_SECRET_KEY == DEFAULT_JWT_SECRET:
    raise RuntimeError("JWT_SECRET_KEY must be overridden in production")
