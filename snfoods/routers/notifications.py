# snfoods/routers/notifications.py
from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlmodel import Session

from snfoods.core.auth import require_staff
from snfoods.database import get_session
from snfoods.repositories.account_repo import AccountRepository
from snfoods.repositories.order_repo import OrderRepository
from snfoods.repositories.profile_repo import ProfileRepository
from snfoods.schemas.notification import NotificationResponse
from snfoods.services.notification_service import NotificationService, RecipientResolver

router = APIRouter(prefix="/notifications", tags=["Notifications"])

service = NotificationService(
    OrderRepository(),
    RecipientResolver(ProfileRepository(), AccountRepository()),
)


@router.post(
    "/order-approved",
    response_model=NotificationResponse,
    dependencies=[Depends(require_staff)],
)
def send_order_approved(
    payload: dict[str, Any] = Body(...),
    session: Session = Depends(get_session),
):
    """
    Send (or re-send) the approval email for an order.

    Body is either a database webhook `{"record": {...}}` or
    `{"order": {...}}` from the admin UI; `record` wins when both are set.

    Errors:
      - 400: neither key present / malformed order
      - 409: the order is not approved
      - 422: no recipient could be resolved
      - 502: email provider rejected the message
    """
    recipient = service.notify_from_trigger(session, payload)
    return NotificationResponse(
        message="Email sent successfully",
        recipient_email=recipient.email,
    )
