# snfoods/services/account_service.py
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from snfoods.core.errors import NotFoundError, PermissionDeniedError, storage_error
from snfoods.models.account import Account, ContactAccountRelationship
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
from snfoods.schemas.user import STAFF_ROLES
from snfoods.services.numbering import NumberGenerator

logger = logging.getLogger(__name__)

# Relationship types that always carry account management rights.
MANAGING_RELATIONSHIPS = frozenset({"owner", "admin"})


class AccountService:
    """
    Business logic for accounts and their contacts.

    Responsibilities:
      - account CRUD (staff) with server-generated account numbers
      - soft deactivation (accounts are never deleted)
      - linking contacts with per-account capabilities
    """

    def __init__(
        self,
        repo: AccountRepository,
        profile_repo: ProfileRepository,
        account_number_generator: NumberGenerator,
    ):
        self.repo = repo
        self.profile_repo = profile_repo
        self.account_number_generator = account_number_generator

    # ----- Accounts -----

    def list_my_accounts(self, session: Session, actor: Profile) -> list[MyAccountRead]:
        """Active accounts the caller belongs to, with their capabilities."""
        return [
            MyAccountRead(
                account=AccountRead.model_validate(account),
                relationship=RelationshipRead.model_validate(rel),
            )
            for rel, account in self.repo.list_for_contact(session, actor.id)
            if account.is_active
        ]

    def list_accounts(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        include_inactive: bool = False,
    ) -> list[Account]:
        return self.repo.list_accounts(session, skip=skip, limit=limit, only_active=not include_inactive)

    def get_account(self, session: Session, account_id: uuid.UUID) -> Account:
        account = self.repo.get_by_id(session, account_id)
        if not account:
            raise NotFoundError("Account not found")
        return account

    def get_account_for(
        self,
        session: Session,
        actor: Profile,
        account_id: uuid.UUID,
    ) -> Account:
        """
        Staff see every account; contacts only accounts they are linked to.
        Unlinked callers get 404 rather than 403.
        """
        account = self.get_account(session, account_id)
        if actor.role in STAFF_ROLES:
            return account
        if self.repo.get_relationship(session, actor.id, account_id) is None:
            raise NotFoundError("Account not found")
        return account

    def create_account(self, session: Session, payload: AccountCreate) -> Account:
        account = Account(
            **payload.model_dump(),
            account_number=self.account_number_generator(),
        )
        try:
            account = self.repo.create(session, account)
        except SQLAlchemyError as exc:
            session.rollback()
            raise storage_error(exc, "create account") from exc

        logger.info("Account %s created (%s)", account.account_number, account.name)
        return account

    def update_account(
        self,
        session: Session,
        account_id: uuid.UUID,
        payload: AccountUpdate,
    ) -> Account:
        """
        Partial update. Setting is_active=False is the deactivation path.
        """
        account = self.get_account(session, account_id)

        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(account, field, value)
        account.updated_at = datetime.now(timezone.utc)

        try:
            return self.repo.update(session, account)
        except SQLAlchemyError as exc:
            session.rollback()
            raise storage_error(exc, "update account") from exc

    def deactivate_account(self, session: Session, account_id: uuid.UUID) -> Account:
        return self.update_account(session, account_id, AccountUpdate(is_active=False))

    # ----- Contacts -----

    def list_contacts(
        self,
        session: Session,
        actor: Profile,
        account_id: uuid.UUID,
    ) -> list[AccountContactRead]:
        self.get_account_for(session, actor, account_id)

        contacts: list[AccountContactRead] = []
        for rel, profile in self.repo.list_contacts_for_account(session, account_id):
            if profile is None:
                continue
            contacts.append(
                AccountContactRead(
                    **RelationshipRead.model_validate(rel).model_dump(),
                    contact_email=profile.email,
                    contact_name=profile.full_name,
                )
            )
        return contacts

    def link_contact(
        self,
        session: Session,
        actor: Profile,
        account_id: uuid.UUID,
        payload: RelationshipUpsert,
    ) -> ContactAccountRelationship:
        """
        Create or update the (contact, account) relationship.

        Allowed for staff and for contacts with can_manage_account.
        owner/admin relationships always get can_manage_account.
        """
        self._ensure_can_manage(session, actor, account_id)

        if self.profile_repo.get_by_id(session, payload.contact_id) is None:
            raise NotFoundError("Contact not found")

        rel = self.repo.get_relationship(session, payload.contact_id, account_id)
        if rel is None:
            rel = ContactAccountRelationship(
                contact_id=payload.contact_id,
                account_id=account_id,
            )

        rel.relationship_type = payload.relationship_type
        rel.can_place_orders = payload.can_place_orders
        rel.can_view_orders = payload.can_view_orders
        rel.can_manage_account = (
            payload.can_manage_account
            or payload.relationship_type in MANAGING_RELATIONSHIPS
        )
        rel.is_primary_contact = payload.is_primary_contact

        try:
            rel = self.repo.save_relationship(session, rel)
        except SQLAlchemyError as exc:
            session.rollback()
            raise storage_error(exc, "link contact") from exc

        logger.info(
            "Contact %s linked to account %s as %s",
            payload.contact_id,
            account_id,
            rel.relationship_type,
        )
        return rel

    def unlink_contact(
        self,
        session: Session,
        actor: Profile,
        account_id: uuid.UUID,
        contact_id: uuid.UUID,
    ) -> None:
        self._ensure_can_manage(session, actor, account_id)

        rel = self.repo.get_relationship(session, contact_id, account_id)
        if rel is None:
            raise NotFoundError("Contact is not linked to this account")

        try:
            self.repo.delete_relationship(session, rel)
        except SQLAlchemyError as exc:
            session.rollback()
            raise storage_error(exc, "unlink contact") from exc

    def _ensure_can_manage(
        self,
        session: Session,
        actor: Profile,
        account_id: uuid.UUID,
    ) -> None:
        self.get_account(session, account_id)
        if actor.role in STAFF_ROLES:
            return
        rel = self.repo.get_relationship(session, actor.id, account_id)
        if rel is None or not rel.can_manage_account:
            raise PermissionDeniedError("Not allowed to manage this account")
