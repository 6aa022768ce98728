# snfoods/models/order.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Priced collection of line items awaiting approval.

    Ownership: exactly one of
      - customer_id                              (individual order)
      - account_id + ordered_by_contact_id       (account order)
    is populated. The builder enforces this, not the table.

    Amounts:
      - tax_amount = round(subtotal * 10%, 2), fixed at creation
      - total_amount = round(subtotal + tax_amount, 2)
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_number: str = Field(
        unique=True,
        index=True,
        description="Human-readable number from generate_order_number()",
    )

    # pending | approved | rejected (others reserved)
    status: str = Field(
        default="pending",
        index=True,
        description="Order status lifecycle",
    )

    subtotal: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    tax_amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    total_amount: Decimal = Field(
        ge=0,
        max_digits=12,
        decimal_places=2,
        description="Final amount for this order (including GST)",
    )

    notes: str | None = Field(
        default=None,
        description="Optional note / special instructions",
    )

    customer_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="profiles.id",
        index=True,
    )
    account_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="accounts.id",
        index=True,
    )
    ordered_by_contact_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="profiles.id",
        index=True,
    )

    approved_by: uuid.UUID | None = Field(
        default=None,
        foreign_key="profiles.id",
    )
    approved_at: datetime | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class OrderItem(SQLModel, table=True):
    """
    Line item inside an order. Immutable once written.
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    quantity: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )

    # Pre-tax price at time of order
    unit_price: Decimal = Field(
        ge=0,
        max_digits=12,
        decimal_places=2,
        description="Unit price at time of order (pre-tax)",
    )
    total_price: Decimal = Field(
        ge=0,
        max_digits=12,
        decimal_places=2,
        description="unit_price * quantity",
    )

    unit: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class OrderStatusHistory(SQLModel, table=True):
    """
    Append-only audit trail of status changes.

    old_status is NULL only for the entry written when the order is created.
    """

    __tablename__ = "order_status_history"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    old_status: str | None = None
    new_status: str

    changed_by: uuid.UUID = Field(foreign_key="profiles.id")
    notes: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
