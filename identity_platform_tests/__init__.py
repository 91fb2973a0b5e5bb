"""
identity_platform tests

Covers the auth_service package:

- Credential validation and access tokens (`test_auth.py`)
- Refresh token rotation and expiry (`test_refresh_tokens.py`)
- Google OAuth client and identity resolution (`test_oauth.py`)
- HTTP flows for /auth and /user (`test_auth_routes.py`, `test_user_routes.py`)
- Rate limiting, audit logging, sweeping, health and settings
"""
