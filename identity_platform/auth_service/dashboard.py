"""
User statistics for the dashboard, cached for a few minutes per process.
"""
from datetime import date, datetime, timedelta
from typing import Callable, List
import logging
import threading
import time

from cachetools import TTLCache
from sqlalchemy import func
from sqlalchemy.orm import Session

from .config import settings
from .models import User
from .schemas import CacheInfo, DashboardStats, UserGrowthData

logger = logging.getLogger(__name__)

STATS_CACHE_KEY = "dashboard:stats"
GROWTH_WINDOW_DAYS = 7


class DashboardService:
    """Computes user counts and recent signup growth, memoized in a TTL cache."""

    def __init__(
        self,
        ttl_seconds: int = 300,
        timer: Callable[[], float] = time.monotonic,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        self.clock = clock
        self._cache = TTLCache(maxsize=16, ttl=ttl_seconds, timer=timer)
        self._lock = threading.Lock()

    def get_stats(self, db: Session) -> DashboardStats:
        with self._lock:
            cached = self._cache.get(STATS_CACHE_KEY)
        if cached is not None:
            logger.debug("Returning cached dashboard stats")
            return cached

        started = time.perf_counter()
        stats = self._calculate(db)
        with self._lock:
            self._cache[STATS_CACHE_KEY] = stats
        logger.info("Dashboard stats calculated in %.1fms", (time.perf_counter() - started) * 1000)
        return stats

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
        logger.info("Dashboard cache cleared")

    def cache_info(self) -> CacheInfo:
        with self._lock:
            self._cache.expire()
            return CacheInfo(size=len(self._cache), keys=list(self._cache.keys()))

    def _calculate(self, db: Session) -> DashboardStats:
        total = db.query(func.count(User.id)).scalar() or 0
        active = db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar() or 0
        oauth = db.query(func.count(User.id)).filter(User.is_oauth.is_(True)).scalar() or 0

        return DashboardStats(
            total_users=total,
            active_users=active,
            inactive_users=total - active,
            oauth_users=oauth,
            password_users=total - oauth,
            weekly_growth=self._weekly_growth(db),
            last_updated=self.clock(),
        )

    def _weekly_growth(self, db: Session) -> List[UserGrowthData]:
        since = self.clock() - timedelta(days=GROWTH_WINDOW_DAYS)
        day = func.date(User.joined_date)
        rows = (
            db.query(day, func.count(User.id))
            .filter(User.joined_date >= since)
            .group_by(day)
            .order_by(day)
            .all()
        )
        # SQLite hands DATE() back as text
        return [
            UserGrowthData(
                day=joined if isinstance(joined, date) else date.fromisoformat(joined),
                count=signups,
            )
            for joined, signups in rows
        ]


dashboard_service = DashboardService(ttl_seconds=settings.DASHBOARD_CACHE_TTL_SECONDS)
