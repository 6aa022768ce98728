# snfoods/services/order_service.py
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from snfoods.core.errors import (
    ConcurrentUpdateError,
    InvalidTransitionError,
    NotFoundError,
    OrderWorkflowError,
    PermissionDeniedError,
    ValidationError,
    storage_error,
)
from snfoods.models.order import Order, OrderItem, OrderStatusHistory
from snfoods.models.profile import Profile
from snfoods.repositories.account_repo import AccountRepository
from snfoods.repositories.order_repo import OrderRepository
from snfoods.repositories.product_repo import ProductRepository
from snfoods.schemas.order import (
    CartLine,
    NotificationOutcome,
    OrderCreate,
    OrderItemRead,
    OrderRead,
    OrderStatusHistoryRead,
    OrderTransitionRead,
    OrderWithItemsRead,
)
from snfoods.schemas.user import STAFF_ROLES
from snfoods.services.numbering import NumberGenerator
from snfoods.services.pricing import compute_totals, line_total

logger = logging.getLogger(__name__)

ORDER_STATUSES = frozenset(
    {
        "pending",
        "approved",
        "rejected",
        # reserved: declared by the storefront, no transition reaches them yet
        "processing",
        "shipped",
        "delivered",
        "completed",
        "cancelled",
    }
)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"approved", "rejected"}),
    "approved": frozenset(),
    "rejected": frozenset(),
}


@dataclass(frozen=True)
class OrderContext:
    """
    Who an order belongs to.

    Without account_id the order is an individual customer order; with it,
    the account owns the order and `placed_by` is recorded as the
    ordering contact.
    """

    placed_by: uuid.UUID
    account_id: uuid.UUID | None = None

    @property
    def customer_id(self) -> uuid.UUID | None:
        return self.placed_by if self.account_id is None else None

    @property
    def ordered_by_contact_id(self) -> uuid.UUID | None:
        return self.placed_by if self.account_id is not None else None


def check_ownership(order: Order) -> None:
    """
    Exactly one of customer_id / (account_id + ordered_by_contact_id).
    """
    individual = order.customer_id is not None
    account = order.account_id is not None and order.ordered_by_contact_id is not None
    stray = order.customer_id is not None and (
        order.account_id is not None or order.ordered_by_contact_id is not None
    )
    partial = (order.account_id is None) != (order.ordered_by_contact_id is None)

    if stray or partial or individual == account:
        raise ValidationError("malformed ordering context")


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Build an order from a cart (totals, ownership, items, history)
        as one transaction
      - Apply approve/reject transitions with an optimistic-concurrency
        guard and an audit entry
      - Trigger the approval email after the transition commits
      - Scope order reads to what the caller may see
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        account_repo: AccountRepository,
        order_number_generator: NumberGenerator,
        notifier=None,
    ):
        self.order_repo = order_repo
        self.product_repo = product_repo
        self.account_repo = account_repo
        self.order_number_generator = order_number_generator
        # NotificationService; optional so the builder can run without email
        self.notifier = notifier

    # -------- Order builder --------

    def create_order(
        self,
        session: Session,
        actor: Profile,
        payload: OrderCreate,
    ) -> OrderWithItemsRead:
        """
        Convert a cart into a pending Order.

        Steps:
          1. Validate cart lines (non-empty, qty > 0, price >= 0, no dupes).
             A product may appear on one line only. Clients merge
             quantities before submitting; a repeated product_id is a
             ValidationError, never a silent merge.
          2. Resolve the ordering context (individual or account).
          3. Ensure products exist and are active.
          4. Compute subtotal, 10% GST and total.
          5. Get an order number from the database sequence.
          6. Write order, items and the initial history entry, then commit.
             Any storage failure rolls back all three.
        """
        lines = self._validate_lines(payload.items)
        context = self._resolve_context(session, actor, payload.account_id)
        products = self._load_products(session, lines)

        totals = compute_totals(lines)
        order_number = self.order_number_generator()

        order = Order(
            order_number=order_number,
            status="pending",
            subtotal=totals.subtotal,
            tax_amount=totals.tax_amount,
            total_amount=totals.total_amount,
            notes=payload.notes,
            customer_id=context.customer_id,
            account_id=context.account_id,
            ordered_by_contact_id=context.ordered_by_contact_id,
        )
        check_ownership(order)

        try:
            order = self.order_repo.create_order(session, order)

            items = self.order_repo.create_items(
                session,
                [
                    OrderItem(
                        order_id=order.id,
                        product_id=line.product_id,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                        total_price=line_total(line.unit_price, line.quantity),
                        unit=line.unit or products[line.product_id].unit,
                    )
                    for line in lines
                ],
            )

            self.order_repo.add_history(
                session,
                OrderStatusHistory(
                    order_id=order.id,
                    old_status=None,
                    new_status="pending",
                    changed_by=actor.id,
                    notes="Order created",
                ),
            )

            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Order %s not created, rolled back: %s", order_number, exc)
            raise storage_error(exc, "create order") from exc

        session.refresh(order)
        logger.info(
            "Order %s created (%s) total=%s",
            order.order_number,
            "account" if context.account_id else "customer",
            order.total_amount,
        )

        names = {pid: p.name for pid, p in products.items()}
        return self._build_order_with_items_dto(
            order, [(item, names.get(item.product_id)) for item in items]
        )

    # -------- Status machine --------

    def transition(
        self,
        session: Session,
        order_id: uuid.UUID,
        new_status: str,
        actor: Profile,
        notes: str | None = None,
    ) -> OrderTransitionRead:
        """
        Move an order to `new_status` on behalf of a staff member.

          pending  -> approved, rejected
          approved -> (no change)
          rejected -> (no change)

        The update only applies if the order still has the status it was
        read with; a concurrent writer makes this call fail with
        ConcurrentUpdateError and nothing is written or sent.

        On approval, approver and timestamp are recorded and one approval
        email is attempted after commit. Email failures are reported in the
        result and never undo the transition.
        """
        if new_status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown order status: {new_status}")

        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise NotFoundError("Order not found")

        current = order.status
        if new_status not in ALLOWED_TRANSITIONS.get(current, frozenset()):
            logger.info(
                "Rejected transition %s -> %s for order %s",
                current,
                new_status,
                order.order_number,
            )
            raise InvalidTransitionError(
                f"Invalid status transition: {current} -> {new_status}"
            )

        now = datetime.now(timezone.utc)
        approving = new_status == "approved"

        try:
            applied = self.order_repo.update_status_if_current(
                session,
                order.id,
                expected_status=current,
                new_status=new_status,
                updated_at=now,
                approved_by=actor.id if approving else None,
                approved_at=now if approving else None,
            )
            if not applied:
                session.rollback()
                logger.warning(
                    "Order %s changed concurrently, %s -> %s not applied",
                    order_id,
                    current,
                    new_status,
                )
                raise ConcurrentUpdateError(
                    "Order status was changed by another request; reload and retry"
                )

            entry = self.order_repo.add_history(
                session,
                OrderStatusHistory(
                    order_id=order.id,
                    old_status=current,
                    new_status=new_status,
                    changed_by=actor.id,
                    notes=notes,
                ),
            )
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Status change for order %s rolled back: %s", order_id, exc)
            raise storage_error(exc, "update order status") from exc

        session.refresh(order)
        session.refresh(entry)
        logger.info(
            "Order %s: %s -> %s by %s",
            order.order_number,
            current,
            new_status,
            actor.id,
        )

        notification = None
        if approving:
            notification = self._notify_approved(session, order)

        return OrderTransitionRead(
            order=OrderRead.model_validate(order),
            history_entry=OrderStatusHistoryRead.model_validate(entry),
            notification=notification,
        )

    def _notify_approved(self, session: Session, order: Order) -> NotificationOutcome:
        if self.notifier is None:
            return NotificationOutcome(sent=False, error="Notifications disabled")

        try:
            recipient = self.notifier.notify_order_approved(session, order)
        except OrderWorkflowError as exc:
            logger.warning(
                "Approval email for order %s not sent (%s): %s",
                order.order_number,
                exc.kind,
                exc.message,
            )
            return NotificationOutcome(sent=False, error=exc.message)
        except SQLAlchemyError as exc:
            # The transition is already committed; only the email read failed.
            session.rollback()
            err = storage_error(exc, "send approval email")
            logger.warning(
                "Approval email for order %s not sent (%s): %s",
                order.order_number,
                err.kind,
                err.message,
            )
            return NotificationOutcome(sent=False, error=err.message)

        return NotificationOutcome(sent=True, recipient_email=recipient.email)

    def get_status_history(
        self,
        session: Session,
        order_id: uuid.UUID,
        actor: Profile,
    ) -> list[OrderStatusHistory]:
        """
        Status history, oldest first. Read-only.
        """
        order = self._get_visible_order(session, actor, order_id)
        return self.order_repo.list_history(session, order.id)

    # -------- Reads --------

    def list_my_orders(
        self,
        session: Session,
        actor: Profile,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        """
        Orders the caller placed, plus orders of accounts where they have
        can_view_orders.
        """
        account_ids = self.account_repo.account_ids_viewable_by(session, actor.id)
        return self.order_repo.list_visible_to(
            session, actor.id, account_ids, skip, limit
        )

    def get_my_order(
        self,
        session: Session,
        actor: Profile,
        order_id: uuid.UUID,
    ) -> OrderWithItemsRead:
        order = self._get_visible_order(session, actor, order_id)
        return self._with_items(session, order)

    def list_all_orders(
        self,
        session: Session,
        status: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        """
        List all orders (staff only), optionally filtered by status.
        """
        if status is not None and status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown order status: {status}")
        return self.order_repo.list_all(session, status, skip, limit)

    def get_order_admin(
        self,
        session: Session,
        order_id: uuid.UUID,
    ) -> OrderWithItemsRead:
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise NotFoundError("Order not found")
        return self._with_items(session, order)

    # -------- Helpers --------

    def _validate_lines(self, items: list[CartLine]) -> list[CartLine]:
        if not items:
            raise ValidationError("empty cart")

        seen: set[uuid.UUID] = set()
        for line in items:
            if isinstance(line.quantity, bool) or not isinstance(line.quantity, int):
                raise ValidationError(f"Quantity must be an integer ({line.product_id})")
            if line.quantity <= 0:
                raise ValidationError(f"Quantity must be positive ({line.product_id})")

            price = line.unit_price
            if not isinstance(price, Decimal) or not price.is_finite() or price < 0:
                raise ValidationError(f"Invalid unit price ({line.product_id})")

            if line.product_id in seen:
                raise ValidationError(f"Duplicate product in cart ({line.product_id})")
            seen.add(line.product_id)

        return list(items)

    def _resolve_context(
        self,
        session: Session,
        actor: Profile,
        account_id: uuid.UUID | None,
    ) -> OrderContext:
        if account_id is None:
            return OrderContext(placed_by=actor.id)

        account = self.account_repo.get_by_id(session, account_id)
        if not account or not account.is_active:
            raise NotFoundError("Account not found")

        relationship = self.account_repo.get_relationship(session, actor.id, account_id)
        if relationship is None or not relationship.can_place_orders:
            raise PermissionDeniedError("Not allowed to place orders for this account")

        return OrderContext(placed_by=actor.id, account_id=account_id)

    def _load_products(self, session: Session, lines: list[CartLine]):
        products = self.product_repo.get_many(
            session, [line.product_id for line in lines]
        )

        errors: list[str] = []
        for line in lines:
            product = products.get(line.product_id)
            if product is None:
                errors.append(f"{line.product_id}: product not found")
            elif not product.is_active:
                errors.append(f"{line.product_id}: product is inactive")

        if errors:
            raise ValidationError("Cart validation failed: " + "; ".join(errors))
        return products

    def _can_view(self, session: Session, actor: Profile, order: Order) -> bool:
        if actor.role in STAFF_ROLES:
            return True
        if actor.id in (order.customer_id, order.ordered_by_contact_id):
            return True
        if order.account_id is None:
            return False
        relationship = self.account_repo.get_relationship(
            session, actor.id, order.account_id
        )
        return relationship is not None and relationship.can_view_orders

    def _get_visible_order(
        self,
        session: Session,
        actor: Profile,
        order_id: uuid.UUID,
    ) -> Order:
        """
        404 if the order does not exist or the caller may not see it.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order or not self._can_view(session, actor, order):
            raise NotFoundError("Order not found")
        return order

    def _with_items(self, session: Session, order: Order) -> OrderWithItemsRead:
        rows = self.order_repo.list_items_with_products(session, order.id)
        return self._build_order_with_items_dto(order, rows)

    def _build_order_with_items_dto(
        self,
        order: Order,
        rows: list[tuple[OrderItem, str | None]],
    ) -> OrderWithItemsRead:
        """
        Compose OrderWithItemsRead from ORM models. Amounts come from the
        stored order, never recomputed.
        """
        item_dtos = [
            OrderItemRead(
                id=item.id,
                order_id=item.order_id,
                product_id=item.product_id,
                product_name=name,
                quantity=item.quantity,
                unit=item.unit,
                unit_price=item.unit_price,
                total_price=item.total_price,
            )
            for item, name in rows
        ]

        return OrderWithItemsRead(
            **OrderRead.model_validate(order).model_dump(),
            items=item_dtos,
        )
