# snfoods/models/profile.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Profile(SQLModel, table=True):
    """
    Person record for SN Foods.

    Identity:
      - id: MUST match Supabase auth.users.id (UUID from JWT "sub")

    Role:
      - "customer" | "sales_admin" | "admin"

    Password hashes stay in Supabase Auth. This table mirrors identity,
    contact details and application role. A profile may also act as a
    contact for one or more accounts (see ContactAccountRelationship).
    """

    __tablename__ = "profiles"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    email: str = Field(
        unique=True,
        index=True,
        description="Email from Supabase auth.users",
    )

    full_name: str | None = Field(
        default=None,
        max_length=200,
        description="Display name; first part of email by default",
    )

    # Application role (not Supabase RLS role)
    role: str = Field(
        default="customer",
        index=True,
        description="Application role: customer | sales_admin | admin",
    )

    company_name: str | None = None
    phone: str | None = None
    contact_type: str | None = Field(
        default="primary",
        description="primary | billing | shipping | technical",
    )

    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last update timestamp (UTC)",
    )
