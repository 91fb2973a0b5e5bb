"""Tests for database initialization."""
from sqlalchemy import inspect

from identity_platform.auth_service.db import Base, engine, init_db


def test_init_db_creates_tables():
    """init_db creates both tables with the columns the service relies on."""
    Base.metadata.drop_all(bind=engine)

    init_db()

    inspector = inspect(engine)
    tables = inspector.get_table_names()
    assert "users" in tables
    assert "refresh_tokens" in tables

    user_columns = {col["name"] for col in inspector.get_columns("users")}
    assert {
        "id", "email", "first_name", "last_name", "hashed_password",
        "is_oauth", "is_active", "joined_date", "bio",
    } <= user_columns

    token_columns = {col["name"] for col in inspector.get_columns("refresh_tokens")}
    assert {"id", "token", "user_id", "expires_at", "created_at", "is_revoked"} <= token_columns


def test_refresh_token_indexes():
    inspector = inspect(engine)
    indexes = {index["name"]: index for index in inspector.get_indexes("refresh_tokens")}

    assert "ix_refresh_tokens_user_id" in indexes
    assert "ix_refresh_tokens_expires_at" in indexes


def test_refresh_token_cascades_on_user_delete():
    inspector = inspect(engine)
    [foreign_key] = inspector.get_foreign_keys("refresh_tokens")

    assert foreign_key["referred_table"] == "users"
    assert foreign_key["options"].get("ondelete") == "CASCADE"


def test_init_db_is_idempotent():
    init_db()
    init_db()
    assert "users" in inspect(engine).get_table_names()
