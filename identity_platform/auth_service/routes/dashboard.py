"""
Dashboard Router - aggregate user statistics for signed-in users.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..dashboard import DashboardService
from ..db import get_db
from ..deps import enforce_dashboard_rate_limit, get_current_user, get_dashboard_service
from ..schemas import CacheInfo, DashboardStats, MessageResponse

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats, dependencies=[Depends(enforce_dashboard_rate_limit)])
def get_stats(
    db: Session = Depends(get_db),
    service: DashboardService = Depends(get_dashboard_service),
):
    return service.get_stats(db)


@router.get("/cache/clear", response_model=MessageResponse, dependencies=[Depends(get_current_user)])
def clear_cache(service: DashboardService = Depends(get_dashboard_service)):
    service.clear_cache()
    return {"message": "Dashboard cache cleared successfully"}


@router.get("/cache/info", response_model=CacheInfo, dependencies=[Depends(get_current_user)])
def cache_info(service: DashboardService = Depends(get_dashboard_service)):
    return service.cache_info()
