# snfoods/repositories/stats_repo.py
from decimal import Decimal

from sqlalchemy import func
from sqlmodel import Session, select

from snfoods.models.account import Account
from snfoods.models.order import Order
from snfoods.models.product import Product
from snfoods.models.profile import Profile


class StatsRepository:
    """
    Read-only aggregated queries for admin dashboard.
    """

    def count_orders(self, session: Session, status: str | None = None) -> int:
        stmt = select(func.count()).select_from(Order)
        if status:
            stmt = stmt.where(Order.status == status)
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_products(self, session: Session) -> int:
        stmt = select(func.count()).select_from(Product)
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_accounts(self, session: Session) -> int:
        stmt = select(func.count()).select_from(Account)
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_profiles(self, session: Session) -> int:
        stmt = select(func.count()).select_from(Profile)
        value = session.exec(stmt).one()
        return int(value or 0)

    def approved_revenue(self, session: Session) -> Decimal:
        """
        Sum of total_amount for approved orders.
        """
        stmt = select(func.coalesce(func.sum(Order.total_amount), 0)).where(
            Order.status == "approved"
        )
        value = session.exec(stmt).one()
        return Decimal(str(value or 0)).quantize(Decimal("0.01"))
