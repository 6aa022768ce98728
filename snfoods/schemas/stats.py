# snfoods/schemas/stats.py
from decimal import Decimal

from pydantic import ConfigDict
from sqlmodel import SQLModel


class AdminDashboardStats(SQLModel):
    """
    Counters shown on the admin dashboard.

    total_revenue only counts approved orders.
    """

    model_config = ConfigDict(extra="forbid")

    total_orders: int
    pending_orders: int
    total_products: int
    total_accounts: int
    total_users: int
    total_revenue: Decimal
