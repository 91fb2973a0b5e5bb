"""
identity_platform

Authentication backend for the platform:

- FastAPI application (`auth_service/main.py`)
- SQLAlchemy models and database integration (`auth_service/models.py`, `auth_service/db.py`)
- Credential verification and access tokens (`auth_service/auth.py`)
- Refresh token rotation (`auth_service/refresh_tokens.py`)
- Google OAuth identity resolution (`auth_service/oauth.py`)
- Dashboard user statistics (`auth_service/dashboard.py`)
"""
