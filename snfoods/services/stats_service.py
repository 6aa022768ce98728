# snfoods/services/stats_service.py
from sqlmodel import Session

from snfoods.repositories.stats_repo import StatsRepository
from snfoods.schemas.stats import AdminDashboardStats


class StatsService:
    """
    Orchestrates aggregated admin dashboard statistics.
    """

    def __init__(self, repo: StatsRepository):
        self.repo = repo

    def get_admin_dashboard_stats(self, session: Session) -> AdminDashboardStats:
        return AdminDashboardStats(
            total_orders=self.repo.count_orders(session),
            pending_orders=self.repo.count_orders(session, status="pending"),
            total_products=self.repo.count_products(session),
            total_accounts=self.repo.count_accounts(session),
            total_users=self.repo.count_profiles(session),
            total_revenue=self.repo.approved_revenue(session),
        )
