# snfoods/models/product.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlmodel import SQLModel, Field


class Category(SQLModel, table=True):
    """
    Product category shown as a storefront filter.
    """

    __tablename__ = "categories"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(max_length=100, unique=True, index=True)
    description: str | None = None
    image_url: str | None = None
    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class Product(SQLModel, table=True):
    """
    Catalog entry for SN Foods.

    Order items snapshot `price` at order time, so later price edits do
    not affect existing orders.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    category_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="categories.id",
        index=True,
    )

    name: str = Field(
        max_length=200,
        index=True,
        description="Display name of the product",
    )

    sku: str | None = Field(default=None, index=True)
    brand: str | None = None
    description: str | None = None
    image_url: str | None = None

    # e.g. "case", "kg", "carton"
    unit: str = Field(default="each")

    price: Decimal = Field(
        ge=0,
        max_digits=12,
        decimal_places=2,
        description="Unit price (AUD, excluding GST)",
    )

    stock_quantity: int = Field(default=0, ge=0)
    min_order_quantity: int = Field(default=1, ge=1)

    is_active: bool = Field(
        default=True,
        index=True,
        description="Whether this product is visible on the storefront",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
