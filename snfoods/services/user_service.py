# snfoods/services/user_service.py
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from supabase import Client

from snfoods.core.auth import default_full_name
from snfoods.core.errors import NotFoundError, ValidationError, storage_error
from snfoods.core.supabase_client import invite_user_by_email, supabase_admin
from snfoods.models.profile import Profile
from snfoods.repositories.profile_repo import ProfileRepository
from snfoods.schemas.user import InvitationRead, ProfileRoleUpdate, ProfileUpdate, UserInvite

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic for profiles.

    Responsibilities:
      - self-service profile edits (email and role are not editable here)
      - staff listing, admin role changes
      - admin invitations through Supabase Auth
    """

    def __init__(
        self,
        repo: ProfileRepository,
        auth_admin: Callable[[], Client] = supabase_admin,
    ):
        self.repo = repo
        self.auth_admin = auth_admin

    # ----- Self profile -----

    def get_me(self, current: Profile) -> Profile:
        """Return the current authenticated profile."""
        return current

    def update_me(
        self,
        session: Session,
        current: Profile,
        payload: ProfileUpdate,
    ) -> Profile:
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(current, field, value)
        current.updated_at = datetime.now(timezone.utc)
        return self.repo.update(session, current)

    # ----- Staff operations -----

    def list_profiles(
        self,
        session: Session,
        skip: int,
        limit: int,
        role: str | None = None,
    ) -> list[Profile]:
        return self.repo.list_profiles(session, skip=skip, limit=limit, role=role)

    def get_profile(self, session: Session, profile_id: uuid.UUID) -> Profile:
        """
        Raises:
            NotFoundError: if not found.
        """
        profile = self.repo.get_by_id(session, profile_id)
        if not profile:
            raise NotFoundError("Profile not found")
        return profile

    def update_role(
        self,
        session: Session,
        actor: Profile,
        profile_id: uuid.UUID,
        payload: ProfileRoleUpdate,
    ) -> Profile:
        """
        Change a profile's role (admin only).

        An admin cannot demote themselves, so there is always one admin left
        who can undo a mistake.
        """
        profile = self.get_profile(session, profile_id)
        if profile.id == actor.id and payload.role != "admin":
            raise ValidationError("Admins cannot change their own role")

        profile.role = payload.role
        profile.updated_at = datetime.now(timezone.utc)
        return self.repo.update(session, profile)

    # ----- Invitations -----

    def invite(
        self,
        session: Session,
        actor: Profile,
        payload: UserInvite,
    ) -> InvitationRead:
        """
        Invite a new user by email (admin only).

        Supabase Auth sends the invite link. The profile row is created
        right away with the invited role, so the first login finds it and
        no role is ever read from client-editable metadata.

        Raises:
            ValidationError: a profile with this email already exists.
            DispatchError / RemoteTimeoutError: Supabase Auth failed.
            PersistenceError: the profile row could not be written.
        """
        email = str(payload.email)
        if self.repo.get_by_email(session, email) is not None:
            raise ValidationError(f"A user with email {email} already exists")

        full_name = payload.full_name or default_full_name(email)
        user_id = invite_user_by_email(
            self.auth_admin(),
            email,
            data={"full_name": full_name, "role": payload.role},
            redirect_to=payload.redirect_to(),
        )

        profile = Profile(
            id=uuid.UUID(user_id),
            email=email,
            full_name=full_name,
            role=payload.role,
            contact_type="primary",
        )
        try:
            profile = self.repo.create(session, profile)
        except SQLAlchemyError as exc:
            session.rollback()
            raise storage_error(exc, "create invited profile") from exc

        logger.info("%s invited %s as %s", actor.email, email, payload.role)
        return InvitationRead(
            message="Invitation sent successfully",
            user_id=profile.id,
            email=profile.email,
            role=profile.role,
        )
