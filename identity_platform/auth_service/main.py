from contextlib import asynccontextmanager
import asyncio
import contextlib
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .db import init_db
from .exceptions import register_exception_handlers
from .routes import auth, dashboard, health, users
from .tasks import run_refresh_token_sweeper
from .utils.event_logger import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Initialize database on startup and run the expiry sweeper while serving"""
    init_db()

    sweeper = None
    if settings.REFRESH_TOKEN_SWEEP_ENABLED:
        sweeper = asyncio.create_task(run_refresh_token_sweeper(settings.sweep_interval_seconds))

    yield

    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
        logger.info("Refresh token sweeper stopped")


app = FastAPI(
    title="Identity Platform Auth Service",
    description="Credential login, Google OAuth, JWT access tokens and refresh token rotation",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(dashboard.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {
        "service": "Identity Platform Auth Service",
        "version": "1.0.0",
        "status": "running"
    }
