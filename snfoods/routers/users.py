# snfoods/routers/users.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from snfoods.core.auth import require_admin, require_auth, require_staff
from snfoods.database import get_session
from snfoods.models.profile import Profile
from snfoods.repositories.profile_repo import ProfileRepository
from snfoods.schemas.user import (
    InvitationRead,
    ProfileRead,
    ProfileRoleUpdate,
    ProfileUpdate,
    Role,
    UserInvite,
)
from snfoods.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

repo = ProfileRepository()
service = UserService(repo)


# -------- Self profile --------


@router.get("/me", response_model=ProfileRead)
def read_me(current: Profile = Depends(require_auth)):
    """
    Return the authenticated user's profile.

    The profile row is auto-created on the first authenticated request
    with role="customer".
    """
    return service.get_me(current)


@router.patch("/me", response_model=ProfileRead)
def update_me(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_auth),
):
    """
    Update the caller's profile (partial update).

    Editable: full_name, company_name, phone.
    """
    return service.update_me(session, current, payload)


# -------- Staff endpoints --------


@router.get(
    "",
    response_model=list[ProfileRead],
    dependencies=[Depends(require_staff)],
)
def list_users(
    session: Session = Depends(get_session),
    role: Role | None = None,
    skip: int = 0,
    limit: int = 50,
):
    return service.list_profiles(session, skip, limit, role)


@router.post(
    "/invite",
    response_model=InvitationRead,
    status_code=status.HTTP_201_CREATED,
)
def invite_user(
    payload: UserInvite,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_admin),
):
    """
    Invite a user by email (admin only).

    Supabase Auth emails a link to `{site_url}/auth/confirm`; the profile
    is created immediately with the requested role.

    Errors:
      - 400: a profile with this email already exists
      - 422: invalid email or site_url
      - 502 / 504: Supabase Auth refused or timed out
    """
    return service.invite(session, current, payload)


@router.get(
    "/{profile_id}",
    response_model=ProfileRead,
    dependencies=[Depends(require_staff)],
)
def get_user(
    profile_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return service.get_profile(session, profile_id)


@router.patch(
    "/{profile_id}/role",
    response_model=ProfileRead,
)
def change_role(
    profile_id: uuid.UUID,
    payload: ProfileRoleUpdate,
    session: Session = Depends(get_session),
    current: Profile = Depends(require_admin),
):
    """
    Update a profile's role (admin only).

    Allowed roles: customer, sales_admin, admin.
    """
    return service.update_role(session, current, profile_id, payload)
