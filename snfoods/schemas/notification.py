# snfoods/schemas/notification.py
import uuid
from dataclasses import dataclass
from decimal import Decimal

from pydantic import ConfigDict, model_validator
from sqlmodel import SQLModel

from snfoods.models.order import Order


class OrderSnapshot(SQLModel):
    """
    Canonical order value the notification path works on.

    Built either from a stored Order or from an event payload. Amounts are
    optional because some callers only send the fields they displayed.
    """

    model_config = ConfigDict(extra="ignore")

    id: uuid.UUID
    order_number: str
    status: str | None = None
    customer_id: uuid.UUID | None = None
    account_id: uuid.UUID | None = None
    ordered_by_contact_id: uuid.UUID | None = None
    subtotal: Decimal | None = None
    tax_amount: Decimal | None = None
    total_amount: Decimal | None = None
    notes: str | None = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderSnapshot":
        return cls(
            id=order.id,
            order_number=order.order_number,
            status=order.status,
            customer_id=order.customer_id,
            account_id=order.account_id,
            ordered_by_contact_id=order.ordered_by_contact_id,
            subtotal=order.subtotal,
            tax_amount=order.tax_amount,
            total_amount=order.total_amount,
            notes=order.notes,
        )

    @property
    def has_amounts(self) -> bool:
        return None not in (self.subtotal, self.tax_amount, self.total_amount)


class NotificationTrigger(SQLModel):
    """
    Event payload for the approval email.

    Database webhooks send `{"record": {...}}`; the admin UI sends
    `{"order": {...}}`. `record` wins when both are present.
    """

    model_config = ConfigDict(extra="ignore")

    record: OrderSnapshot | None = None
    order: OrderSnapshot | None = None

    @model_validator(mode="after")
    def require_order(self) -> "NotificationTrigger":
        if self.record is None and self.order is None:
            raise ValueError("payload must contain 'record' or 'order'")
        return self

    def snapshot(self) -> OrderSnapshot:
        return self.record or self.order  # type: ignore[return-value]


class NotificationResponse(SQLModel):
    message: str
    recipient_email: str


@dataclass(frozen=True)
class Recipient:
    email: str
    name: str | None = None
