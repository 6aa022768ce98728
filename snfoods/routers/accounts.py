# snfoods/routers/accounts.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from snfoods.core.auth import require_auth, require_staff
from snfoods.database import get_session
from snfoods.models.profile import Profile
from snfoods.repositories.account_repo import AccountRepository
from snfoods.repositories.profile_repo import ProfileRepository
from snfoods.schemas.account import (
    AccountContactRead,
    AccountCreate,
    AccountRead,
    AccountUpdate,
    MyAccountRead,
    RelationshipRead,
    RelationshipUpsert,
)
from snfoods.services.account_service import AccountService
from snfoods.services.numbering import AccountNumberGenerator

router = APIRouter(prefix="/accounts", tags=["Accounts"])

service = AccountService(
    AccountRepository(),
    ProfileRepository(),
    AccountNumberGenerator(),
)


# -------- Contact endpoints --------


@router.get("/me", response_model=list[MyAccountRead])
def list_my_accounts(
    session: Session = Depends(get_session),
    current: Profile = Depends(require_auth),
):
    """
    Accounts the caller is a contact of, with their capabilities
    (can_place_orders, can_view_orders, can_manage_account).
    """
    return service.list_my_accounts(session, current)


@router.get("/{account_id}", response_model=AccountRead)
def get_account(
    account_id: uuid.UUID,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_auth),
):
    return service.get_account_for(session, current, account_id)


@router.get("/{account_id}/contacts", response_model=list[AccountContactRead])
def list_contacts(
    account_id: uuid.UUID,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_auth),
):
    """
    Contacts of an account, primary contacts first.
    """
    return service.list_contacts(session, current, account_id)


@router.put("/{account_id}/contacts", response_model=RelationshipRead)
def link_contact(
    account_id: uuid.UUID,
    payload: RelationshipUpsert,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_auth),
):
    """
    Link a contact to the account, or update their capabilities.

    Auth:
      - staff, or a contact with can_manage_account on this account.
    """
    return service.link_contact(session, current, account_id, payload)


@router.delete(
    "/{account_id}/contacts/{contact_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def unlink_contact(
    account_id: uuid.UUID,
    contact_id: uuid.UUID,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_auth),
):
    service.unlink_contact(session, current, account_id, contact_id)


# -------- Staff endpoints --------


@router.get(
    "",
    response_model=list[AccountRead],
    dependencies=[Depends(require_staff)],
)
def list_accounts(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
    include_inactive: bool = False,
):
    return service.list_accounts(session, skip, limit, include_inactive)


@router.post(
    "",
    response_model=AccountRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_staff)],
)
def create_account(
    payload: AccountCreate,
    session: Session = Depends(get_session),
):
    """
    Create an account. The account number is generated by the database.
    """
    return service.create_account(session, payload)


@router.patch(
    "/{account_id}",
    response_model=AccountRead,
    dependencies=[Depends(require_staff)],
)
def update_account(
    account_id: uuid.UUID,
    payload: AccountUpdate,
    session: Session = Depends(get_session),
):
    return service.update_account(session, account_id, payload)


@router.delete(
    "/{account_id}",
    response_model=AccountRead,
    dependencies=[Depends(require_staff)],
)
def deactivate_account(
    account_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Soft-delete: the account is marked inactive; its orders are kept.
    """
    return service.deactivate_account(session, account_id)
