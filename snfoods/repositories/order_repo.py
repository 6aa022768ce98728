# snfoods/repositories/order_repo.py
import uuid
from datetime import datetime

from sqlalchemy import or_, update
from sqlmodel import Session, select

from snfoods.models.order import Order, OrderItem, OrderStatusHistory
from snfoods.models.product import Product


class OrderRepository:
    """
    Data access layer for orders, order_items and order_status_history.

    NOTE:
      - No commits here; order creation and status changes are
        multi-step transactions. The service calls session.commit().
    """

    # ---- Orders ----

    def list_visible_to(
        self,
        session: Session,
        profile_id: uuid.UUID,
        account_ids: list[uuid.UUID],
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        """
        Orders a person may see: their own customer orders, orders they
        placed for an account, and orders of the given accounts.
        """
        conditions = [
            Order.customer_id == profile_id,
            Order.ordered_by_contact_id == profile_id,
        ]
        if account_ids:
            conditions.append(Order.account_id.in_(account_ids))

        stmt = (
            select(Order)
            .where(or_(*conditions))
            .order_by(Order.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def list_all(
        self,
        session: Session,
        status: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        stmt = select(Order)
        if status:
            stmt = stmt.where(Order.status == status)
        stmt = stmt.order_by(Order.created_at.desc()).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def get_by_id(self, session: Session, order_id: uuid.UUID) -> Order | None:
        return session.get(Order, order_id)

    def create_order(self, session: Session, order: Order) -> Order:
        """
        Insert an Order without committing, but ensure id is populated.
        """
        session.add(order)
        session.flush()  # Assign PK
        session.refresh(order)
        return order

    def update_status_if_current(
        self,
        session: Session,
        order_id: uuid.UUID,
        *,
        expected_status: str,
        new_status: str,
        updated_at: datetime,
        approved_by: uuid.UUID | None = None,
        approved_at: datetime | None = None,
    ) -> bool:
        """
        Conditional status update: only applies while the row still has
        `expected_status`. Returns False when another writer got there first.

        approved_by/approved_at are only written when provided.
        """
        table = Order.__table__
        values: dict = {"status": new_status, "updated_at": updated_at}
        if approved_by is not None:
            values["approved_by"] = approved_by
            values["approved_at"] = approved_at

        stmt = (
            update(table)
            .where(table.c.id == order_id, table.c.status == expected_status)
            .values(**values)
        )
        result = session.connection().execute(stmt)
        return result.rowcount == 1

    # ---- Order items ----

    def list_items_for_order(
        self,
        session: Session,
        order_id: uuid.UUID,
    ) -> list[OrderItem]:
        stmt = (
            select(OrderItem)
            .where(OrderItem.order_id == order_id)
            .order_by(OrderItem.created_at, OrderItem.id)
        )
        return list(session.exec(stmt).all())

    def list_items_with_products(
        self,
        session: Session,
        order_id: uuid.UUID,
    ) -> list[tuple[OrderItem, str | None]]:
        """
        Items of an order paired with the product name (None if the
        product row is gone).
        """
        stmt = (
            select(OrderItem, Product.name)
            .join(Product, Product.id == OrderItem.product_id, isouter=True)
            .where(OrderItem.order_id == order_id)
            .order_by(OrderItem.created_at, OrderItem.id)
        )
        return [(item, name) for item, name in session.exec(stmt).all()]

    def create_items(
        self,
        session: Session,
        items: list[OrderItem],
    ) -> list[OrderItem]:
        session.add_all(items)
        session.flush()
        for item in items:
            session.refresh(item)
        return items

    # ---- Status history ----

    def add_history(
        self,
        session: Session,
        entry: OrderStatusHistory,
    ) -> OrderStatusHistory:
        session.add(entry)
        session.flush()
        session.refresh(entry)
        return entry

    def list_history(
        self,
        session: Session,
        order_id: uuid.UUID,
    ) -> list[OrderStatusHistory]:
        stmt = (
            select(OrderStatusHistory)
            .where(OrderStatusHistory.order_id == order_id)
            .order_by(OrderStatusHistory.created_at, OrderStatusHistory.id)
        )
        return list(session.exec(stmt).all())
