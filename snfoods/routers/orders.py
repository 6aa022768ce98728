# snfoods/routers/orders.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from snfoods.core.auth import require_auth, require_staff
from snfoods.database import get_session
from snfoods.models.profile import Profile
from snfoods.repositories.account_repo import AccountRepository
from snfoods.repositories.order_repo import OrderRepository
from snfoods.repositories.product_repo import ProductRepository
from snfoods.repositories.profile_repo import ProfileRepository
from snfoods.schemas.order import (
    OrderCreate,
    OrderRead,
    OrderStatus,
    OrderStatusHistoryRead,
    OrderStatusUpdate,
    OrderTransitionRead,
    OrderWithItemsRead,
)
from snfoods.services.notification_service import NotificationService, RecipientResolver
from snfoods.services.numbering import OrderNumberGenerator
from snfoods.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
product_repo = ProductRepository()
account_repo = AccountRepository()
notifier = NotificationService(
    order_repo,
    RecipientResolver(ProfileRepository(), account_repo),
)
service = OrderService(
    order_repo,
    product_repo,
    account_repo,
    OrderNumberGenerator(),
    notifier=notifier,
)


# -------- Customer / contact endpoints --------


@router.post(
    "",
    response_model=OrderWithItemsRead,
    status_code=status.HTTP_201_CREATED,
)
def create_order(
    payload: OrderCreate,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_auth),
):
    """
    Place an order from the caller's cart.

    Without `account_id` the order belongs to the caller; with it, the
    account owns the order and the caller needs `can_place_orders` on it.
    The order starts as `pending` and waits for staff approval.
    """
    return service.create_order(session, current, payload)


@router.get(
    "/me",
    response_model=list[OrderRead],
)
def list_my_orders(
    session: Session = Depends(get_session),
    current: Profile = Depends(require_auth),
    skip: int = 0,
    limit: int = 50,
):
    """
    Orders the caller placed and orders of accounts they can view
    (without items).
    """
    return service.list_my_orders(session, current, skip, limit)


@router.get(
    "/me/{order_id}",
    response_model=OrderWithItemsRead,
)
def get_my_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_auth),
):
    return service.get_my_order(session, current, order_id)


@router.get(
    "/{order_id}/history",
    response_model=list[OrderStatusHistoryRead],
)
def get_order_history(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_auth),
):
    """
    Status history, oldest first. Staff, or anyone who can see the order.
    """
    return service.get_status_history(session, order_id, current)


# -------- Staff endpoints --------


@router.get(
    "",
    response_model=list[OrderRead],
    dependencies=[Depends(require_staff)],
)
def list_all_orders(
    session: Session = Depends(get_session),
    status: OrderStatus | None = None,
    skip: int = 0,
    limit: int = 50,
):
    """
    List all orders (staff only), optionally filtered by `status`.
    """
    return service.list_all_orders(session, status, skip, limit)


@router.get(
    "/{order_id}",
    response_model=OrderWithItemsRead,
    dependencies=[Depends(require_staff)],
)
def get_order_admin(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return service.get_order_admin(session, order_id)


@router.patch(
    "/{order_id}/status",
    response_model=OrderTransitionRead,
)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_staff),
):
    """
    Approve or reject a pending order (staff only).

      pending  -> approved, rejected

      approved -> (no change)

      rejected -> (no change)

    Returns 409 if the order was changed by someone else in the meantime.
    On approval the customer is emailed; the `notification` field reports
    whether that worked. A failed email does not undo the approval.
    """
    return service.transition(
        session,
        order_id,
        payload.status,
        current,
        notes=payload.notes,
    )
