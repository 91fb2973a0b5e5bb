"""
Periodic refresh token expiry sweep.
"""
import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError

from .db import SessionLocal
from .refresh_tokens import RefreshTokenStore
from .utils.event_logger import log_auth_event

logger = logging.getLogger(__name__)


def sweep_expired_refresh_tokens() -> int:
    """Run one sweep with its own session. Returns rows deleted, or 0 on failure."""
    db = SessionLocal()
    try:
        deleted = RefreshTokenStore(db).sweep_expired()
    except SQLAlchemyError as e:
        # Retried on the next scheduled run
        logger.error("Refresh token sweep failed: %s", e)
        return 0
    finally:
        db.close()

    log_auth_event("refresh_tokens_swept", deleted=deleted)
    return deleted


async def run_refresh_token_sweeper(interval_seconds: int) -> None:
    """Sweep forever, once per interval, until cancelled."""
    logger.info("Refresh token sweeper started (interval: %ss)", interval_seconds)
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await asyncio.to_thread(sweep_expired_refresh_tokens)
        except Exception:
            logger.exception("Refresh token sweep crashed, next run in %ss", interval_seconds)
