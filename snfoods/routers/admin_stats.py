# snfoods/routers/admin_stats.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from snfoods.core.auth import require_staff
from snfoods.database import get_session
from snfoods.repositories.stats_repo import StatsRepository
from snfoods.schemas.stats import AdminDashboardStats
from snfoods.services.stats_service import StatsService

router = APIRouter(prefix="/admin/stats", tags=["Admin Stats"])

repo = StatsRepository()
service = StatsService(repo)


@router.get(
    "",
    response_model=AdminDashboardStats,
    dependencies=[Depends(require_staff)],
)
def get_admin_dashboard_stats(session: Session = Depends(get_session)):
    """
    Counters for the admin dashboard.

    Revenue only counts approved orders.
    Accessible to admin and sales_admin.
    """
    return service.get_admin_dashboard_stats(session)
