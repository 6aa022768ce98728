# snfoods/schemas/order.py
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

# Only pending/approved/rejected are reachable; the rest are reserved.
OrderStatus = Literal[
    "pending",
    "approved",
    "rejected",
    "processing",
    "shipped",
    "delivered",
    "completed",
    "cancelled",
]

# Statuses an admin may request through the status endpoint.
DecisionStatus = Literal["approved", "rejected"]


class CartLine(SQLModel):
    """
    One line of the storefront cart as submitted at checkout.

    unit_price comes from the product data the client displayed; it is
    re-validated (non-negative, product active) before the order is built.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    unit_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    quantity: int = Field(gt=0)
    unit: str | None = None


class OrderCreate(SQLModel):
    """
    Payload for placing an order.

    User provides:
      - items (cart lines)
      - notes (optional)
      - account_id (optional): place the order on behalf of an account

    Backend derives:
      - customer_id or ordered_by_contact_id from the token
      - order_number from generate_order_number()
      - status = 'pending'
      - subtotal, tax_amount (10% GST), total_amount
    """

    model_config = ConfigDict(extra="forbid")

    items: list[CartLine] = Field(default_factory=list)
    notes: str | None = None
    account_id: uuid.UUID | None = None

    @field_validator("notes", mode="before")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    """

    id: uuid.UUID
    order_number: str
    status: OrderStatus
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    notes: str | None
    customer_id: uuid.UUID | None
    account_id: uuid.UUID | None
    ordered_by_contact_id: uuid.UUID | None
    approved_by: uuid.UUID | None
    approved_at: datetime | None
    created_at: datetime
    updated_at: datetime


class OrderItemRead(SQLModel):
    """
    Representation of a single order line item.
    """

    id: uuid.UUID
    order_id: uuid.UUID
    product_id: uuid.UUID
    product_name: str | None = None
    quantity: int
    unit: str | None = None
    unit_price: Decimal
    total_price: Decimal


class OrderWithItemsRead(OrderRead):
    """
    Full order view including items.
    """

    items: list[OrderItemRead]


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to approve or reject an order.
    """

    model_config = ConfigDict(extra="forbid")

    status: DecisionStatus
    notes: str | None = None

    @field_validator("notes", mode="before")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class OrderStatusHistoryRead(SQLModel):
    id: uuid.UUID
    order_id: uuid.UUID
    old_status: str | None
    new_status: str
    changed_by: uuid.UUID
    notes: str | None
    created_at: datetime


class NotificationOutcome(SQLModel):
    """
    Result of the approval email attempt that follows a transition.
    """

    sent: bool
    recipient_email: str | None = None
    error: str | None = None


class OrderTransitionRead(SQLModel):
    """
    Response for a status change: the committed order plus what happened
    to the notification (None when the transition sends none).
    """

    order: OrderRead
    history_entry: OrderStatusHistoryRead
    notification: NotificationOutcome | None = None
