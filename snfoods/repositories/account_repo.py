# snfoods/repositories/account_repo.py
import uuid

from sqlalchemy import case
from sqlmodel import Session, select

from snfoods.models.account import Account, ContactAccountRelationship
from snfoods.models.profile import Profile


class AccountRepository:
    """
    Data access layer for accounts and contact_account_relationships.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic.
    """

    # ----- Accounts -----

    def get_by_id(self, session: Session, account_id: uuid.UUID) -> Account | None:
        return session.get(Account, account_id)

    def list_accounts(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        only_active: bool = True,
    ) -> list[Account]:
        stmt = select(Account)
        if only_active:
            stmt = stmt.where(Account.is_active == True)  # noqa: E712
        stmt = stmt.order_by(Account.name).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def create(self, session: Session, account: Account) -> Account:
        session.add(account)
        session.commit()
        session.refresh(account)
        return account

    def update(self, session: Session, account: Account) -> Account:
        session.add(account)
        session.commit()
        session.refresh(account)
        return account

    # ----- Relationships -----

    def get_relationship(
        self,
        session: Session,
        contact_id: uuid.UUID,
        account_id: uuid.UUID,
    ) -> ContactAccountRelationship | None:
        stmt = select(ContactAccountRelationship).where(
            ContactAccountRelationship.contact_id == contact_id,
            ContactAccountRelationship.account_id == account_id,
        )
        return session.exec(stmt).first()

    def list_for_contact(
        self,
        session: Session,
        contact_id: uuid.UUID,
    ) -> list[tuple[ContactAccountRelationship, Account]]:
        stmt = (
            select(ContactAccountRelationship, Account)
            .join(Account, Account.id == ContactAccountRelationship.account_id)
            .where(ContactAccountRelationship.contact_id == contact_id)
            .order_by(Account.name)
        )
        return [(rel, acc) for rel, acc in session.exec(stmt).all()]

    def list_contacts_for_account(
        self,
        session: Session,
        account_id: uuid.UUID,
        preferred_contact_id: uuid.UUID | None = None,
    ) -> list[tuple[ContactAccountRelationship, Profile | None]]:
        """
        Contacts linked to an account, in deterministic order:

          1. preferred_contact_id (e.g. the person who placed an order)
          2. primary contacts
          3. earliest created relationship
          4. relationship id

        The profile is None when the contact row no longer exists.
        """
        rel = ContactAccountRelationship
        order_by = []
        if preferred_contact_id is not None:
            order_by.append(
                case((rel.contact_id == preferred_contact_id, 0), else_=1)
            )
        order_by.extend(
            [rel.is_primary_contact.desc(), rel.created_at, rel.id]
        )

        stmt = (
            select(rel, Profile)
            .join(Profile, Profile.id == rel.contact_id, isouter=True)
            .where(rel.account_id == account_id)
            .order_by(*order_by)
        )
        return [(r, p) for r, p in session.exec(stmt).all()]

    def account_ids_viewable_by(
        self,
        session: Session,
        contact_id: uuid.UUID,
    ) -> list[uuid.UUID]:
        stmt = select(ContactAccountRelationship.account_id).where(
            ContactAccountRelationship.contact_id == contact_id,
            ContactAccountRelationship.can_view_orders == True,  # noqa: E712
        )
        return list(session.exec(stmt).all())

    def save_relationship(
        self,
        session: Session,
        relationship: ContactAccountRelationship,
    ) -> ContactAccountRelationship:
        session.add(relationship)
        session.commit()
        session.refresh(relationship)
        return relationship

    def delete_relationship(
        self,
        session: Session,
        relationship: ContactAccountRelationship,
    ) -> None:
        session.delete(relationship)
        session.commit()
