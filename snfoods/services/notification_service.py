# snfoods/services/notification_service.py
import logging
from dataclasses import dataclass
from html import escape
from typing import Any, Callable, Protocol

import pydantic
from sqlmodel import Session

from snfoods.core.email_client import send_email
from snfoods.core.errors import (
    InvalidTransitionError,
    NoRecipientError,
    NotFoundError,
    ValidationError,
)
from snfoods.models.order import Order, OrderItem
from snfoods.repositories.account_repo import AccountRepository
from snfoods.repositories.order_repo import OrderRepository
from snfoods.repositories.profile_repo import ProfileRepository
from snfoods.schemas.notification import NotificationTrigger, OrderSnapshot, Recipient
from snfoods.services.pricing import format_money

logger = logging.getLogger(__name__)

EmailSender = Callable[..., None]


class OrderOwner(Protocol):
    customer_id: Any
    account_id: Any
    ordered_by_contact_id: Any


def normalize_trigger(payload: dict[str, Any] | NotificationTrigger) -> OrderSnapshot:
    """
    Accept `{"record": order}` or `{"order": order}` and return the order
    as one OrderSnapshot.

    Raises:
        ValidationError: neither key present, or the order is malformed.
    """
    if isinstance(payload, NotificationTrigger):
        return payload.snapshot()
    if not isinstance(payload, dict):
        raise ValidationError("Invalid request body")
    try:
        trigger = NotificationTrigger.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid request body: {exc.errors()[0]['msg']}") from exc
    return trigger.snapshot()


class RecipientResolver:
    """
    Picks the single person to email about an order.

    Precedence (first match wins):
      1. customer_id set   -> that customer's profile
      2. account_id set    -> a contact linked to the account
      3. otherwise         -> NoRecipientError

    Among several contacts of an account: the contact who placed the
    order, then the primary contact, then the earliest linked.
    """

    def __init__(self, profile_repo: ProfileRepository, account_repo: AccountRepository):
        self.profile_repo = profile_repo
        self.account_repo = account_repo

    def resolve(self, session: Session, order: OrderOwner) -> Recipient:
        if order.customer_id:
            profile = self.profile_repo.get_by_id(session, order.customer_id)
            if profile is None:
                raise NoRecipientError(
                    f"Failed to fetch customer profile for id: {order.customer_id}"
                )
            return self._recipient(profile)

        if order.account_id:
            contacts = self.account_repo.list_contacts_for_account(
                session,
                order.account_id,
                preferred_contact_id=order.ordered_by_contact_id,
            )
            if not contacts:
                raise NoRecipientError(
                    f"Failed to find contact for account id: {order.account_id}"
                )
            relationship, profile = contacts[0]
            if profile is None:
                raise NoRecipientError(
                    f"Failed to fetch contact profile for id: {relationship.contact_id}"
                )
            return self._recipient(profile)

        raise NoRecipientError("Could not determine customer email for the order.")

    @staticmethod
    def _recipient(profile) -> Recipient:
        if not profile.email:
            raise NoRecipientError(f"Profile {profile.id} has no email address")
        return Recipient(email=profile.email, name=profile.full_name)


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html_body: str


def render_approval_email(
    recipient: Recipient,
    order: OrderSnapshot,
    items: list[tuple[OrderItem, str | None]],
) -> RenderedEmail:
    """
    Approval email: greeting, items table and the stored
    subtotal / GST / total of the order.
    """
    rows = "\n".join(
        "<tr>"
        f"<td>{escape(name or str(item.product_id))}</td>"
        f"<td style=\"text-align:right\">{item.quantity}</td>"
        f"<td>{escape(item.unit or '')}</td>"
        f"<td style=\"text-align:right\">{format_money(item.unit_price)}</td>"
        f"<td style=\"text-align:right\">{format_money(item.total_price)}</td>"
        "</tr>"
        for item, name in items
    )

    notes_html = ""
    if order.notes:
        notes_html = f"<p><strong>Notes:</strong> {escape(order.notes)}</p>"

    number = escape(order.order_number)
    greeting = escape(recipient.name or "Valued Customer")

    html_body = f"""
      <div>
        <h1>Order Approved!</h1>
        <p>Hi {greeting},</p>
        <p>Your order #{number} has been approved.</p>
        <table cellpadding="6" cellspacing="0" border="1" style="border-collapse:collapse">
          <thead>
            <tr>
              <th>Product</th><th>Qty</th><th>Unit</th><th>Unit price</th><th>Line total</th>
            </tr>
          </thead>
          <tbody>
{rows}
          </tbody>
        </table>
        <p>Subtotal: {format_money(order.subtotal)}</p>
        <p>GST (10%): {format_money(order.tax_amount)}</p>
        <p><strong>Total: {format_money(order.total_amount)}</strong></p>
        {notes_html}
        <p>We'll notify you again once it has shipped.</p>
        <p>Thanks for your order!</p>
      </div>
    """

    return RenderedEmail(subject=f"Order #{order.order_number} Approved", html_body=html_body)


class NotificationService:
    """
    Approval email for an order: resolve recipient, render, send.

    Each call makes exactly one send attempt; there is no retry queue.
    Errors propagate to the caller (OrderService swallows-and-reports them
    for in-process approvals; the webhook endpoint returns them).
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        resolver: RecipientResolver,
        sender: EmailSender = send_email,
    ):
        self.order_repo = order_repo
        self.resolver = resolver
        self.sender = sender

    def notify_order_approved(
        self,
        session: Session,
        order: Order | OrderSnapshot,
    ) -> Recipient:
        snapshot = order if isinstance(order, OrderSnapshot) else OrderSnapshot.from_order(order)
        recipient = self.resolver.resolve(session, snapshot)
        items = self.order_repo.list_items_with_products(session, snapshot.id)
        email = render_approval_email(recipient, snapshot, items)

        self.sender(
            to_email=recipient.email,
            subject=email.subject,
            html_body=email.html_body,
            to_name=recipient.name,
        )
        logger.info(
            "Approval email for order %s sent to %s",
            snapshot.order_number,
            recipient.email,
        )
        return recipient

    def notify_from_trigger(
        self,
        session: Session,
        payload: dict[str, Any] | NotificationTrigger,
    ) -> Recipient:
        """
        Event entry point (`{record}` or `{order}` payload).

        The stored order wins over the payload so the email matches the
        database; a payload for an unknown order is only accepted if it
        carries all amounts.
        Only approved orders are emailed; a webhook fired for a pending or
        rejected order raises InvalidTransitionError and sends nothing.
        """
        snapshot = normalize_trigger(payload)

        stored = self.order_repo.get_by_id(session, snapshot.id)
        if stored is not None:
            snapshot = OrderSnapshot.from_order(stored)
        elif not snapshot.has_amounts:
            raise NotFoundError(f"Order not found: {snapshot.id}")

        if snapshot.status is not None and snapshot.status != "approved":
            raise InvalidTransitionError(
                f"Order {snapshot.order_number} is {snapshot.status}, not approved"
            )

        return self.notify_order_approved(session, snapshot)
