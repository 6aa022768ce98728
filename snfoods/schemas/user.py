# snfoods/schemas/user.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import AnyHttpUrl, ConfigDict, EmailStr, field_validator
from sqlmodel import SQLModel, Field

# App-level roles. Anonymous visitors have no profile row.
Role = Literal["customer", "sales_admin", "admin"]

# Back-office roles: may approve orders and manage accounts.
STAFF_ROLES = frozenset({"admin", "sales_admin"})

# Roles a new profile may start with. Read from the server-controlled
# app_metadata only; user_metadata is editable by the user.
PROVISIONABLE_ROLES = frozenset({"customer", "sales_admin", "admin"})


class ProfileRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    email: str
    full_name: str | None
    role: Role
    company_name: str | None
    phone: str | None
    contact_type: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(SQLModel):
    """
    Partial profile update for authenticated users.
    Email and role are not editable here.
    """

    model_config = ConfigDict(extra="forbid")

    full_name: str | None = Field(default=None, max_length=200)
    company_name: str | None = None
    phone: str | None = None

    @field_validator("full_name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("full_name cannot be empty")
        return v


class ProfileRoleUpdate(SQLModel):
    """
    Admin-only role update schema.
    """

    model_config = ConfigDict(extra="forbid")
    role: Role


class UserInvite(SQLModel):
    """
    Admin request to invite someone by email.

    site_url is the storefront origin; the invite link lands on
    `{site_url}/auth/confirm`.
    """

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    full_name: str | None = Field(default=None, max_length=200)
    role: Role = "customer"
    site_url: AnyHttpUrl

    @field_validator("full_name")
    @classmethod
    def blank_name_is_none(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return v.strip() or None

    @field_validator("site_url")
    @classmethod
    def origin_only(cls, v: AnyHttpUrl) -> AnyHttpUrl:
        if v.query or v.fragment:
            raise ValueError("site_url must not carry a query or fragment")
        return v

    def redirect_to(self) -> str:
        return str(self.site_url).rstrip("/") + "/auth/confirm"


class InvitationRead(SQLModel):
    message: str
    user_id: uuid.UUID
    email: str
    role: Role
