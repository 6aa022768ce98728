# snfoods/models/account.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class Account(SQLModel, table=True):
    """
    Business, individual or government entity that places orders
    collectively through its contacts.

    Accounts are never deleted; deactivation sets is_active = False.
    """

    __tablename__ = "accounts"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    account_number: str | None = Field(
        default=None,
        unique=True,
        index=True,
        description="Generated by generate_account_number()",
    )

    name: str = Field(max_length=200, index=True)

    # business | individual | government
    account_type: str = Field(default="business")

    billing_address: str | None = None
    billing_city: str | None = None
    billing_state: str | None = None
    billing_postal_code: str | None = None
    billing_country: str | None = None

    shipping_address: str | None = None
    shipping_city: str | None = None
    shipping_state: str | None = None
    shipping_postal_code: str | None = None
    shipping_country: str | None = None

    phone: str | None = None
    email: str | None = None
    website: str | None = None
    tax_id: str | None = None

    payment_terms: int = Field(
        default=30,
        ge=0,
        description="Payment terms in days",
    )
    credit_limit: Decimal = Field(
        default=Decimal("0.00"),
        ge=0,
        max_digits=12,
        decimal_places=2,
    )

    is_active: bool = Field(default=True, index=True)
    notes: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class ContactAccountRelationship(SQLModel, table=True):
    """
    Capability-scoped link between a contact (Profile) and an Account.

    A contact may belong to several accounts with different capabilities
    per account; a (contact, account) pair appears at most once.
    """

    __tablename__ = "contact_account_relationships"
    __table_args__ = (UniqueConstraint("contact_id", "account_id"),)

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    contact_id: uuid.UUID = Field(foreign_key="profiles.id", index=True)
    account_id: uuid.UUID = Field(foreign_key="accounts.id", index=True)

    # owner | admin | member | viewer
    relationship_type: str = Field(default="member")

    can_place_orders: bool = Field(default=True)
    can_view_orders: bool = Field(default=True)
    can_manage_account: bool = Field(default=False)
    is_primary_contact: bool = Field(default=False)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
