# snfoods/schemas/account.py
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import ConfigDict, EmailStr, field_validator
from sqlmodel import SQLModel, Field

AccountType = Literal["business", "individual", "government"]
RelationshipType = Literal["owner", "admin", "member", "viewer"]


class AccountBase(SQLModel):
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
    email: EmailStr | None = None
    website: str | None = None
    tax_id: str | None = None
    notes: str | None = None


class AccountCreate(AccountBase):
    """
    Payload for creating an account (staff only).
    account_number is generated server-side.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=200)
    account_type: AccountType = "business"
    payment_terms: int = Field(default=30, ge=0)
    credit_limit: Decimal = Field(default=Decimal("0.00"), ge=0)

    @field_validator("name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class AccountUpdate(AccountBase):
    """
    Partial update payload for accounts. All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=200)
    account_type: AccountType | None = None
    payment_terms: int | None = Field(default=None, ge=0)
    credit_limit: Decimal | None = Field(default=None, ge=0)
    is_active: bool | None = None

    @field_validator("name")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class AccountRead(AccountBase):
    id: uuid.UUID
    account_number: str | None
    name: str
    account_type: str
    payment_terms: int
    credit_limit: Decimal
    is_active: bool
    created_at: datetime
    updated_at: datetime


class RelationshipUpsert(SQLModel):
    """
    Link (or re-link) a contact to an account with capability flags.
    """

    model_config = ConfigDict(extra="forbid")

    contact_id: uuid.UUID
    relationship_type: RelationshipType = "member"
    can_place_orders: bool = True
    can_view_orders: bool = True
    can_manage_account: bool = False
    is_primary_contact: bool = False


class RelationshipRead(SQLModel):
    id: uuid.UUID
    contact_id: uuid.UUID
    account_id: uuid.UUID
    relationship_type: str
    can_place_orders: bool
    can_view_orders: bool
    can_manage_account: bool
    is_primary_contact: bool
    created_at: datetime


class AccountContactRead(RelationshipRead):
    """
    Relationship plus the contact's name/email, for the account screen.
    """

    contact_email: str
    contact_name: str | None


class MyAccountRead(SQLModel):
    """
    An account the current user belongs to, with their capabilities on it.
    """

    account: AccountRead
    relationship: RelationshipRead
