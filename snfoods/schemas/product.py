# snfoods/schemas/product.py
import uuid
from datetime import datetime
from decimal import Decimal

from sqlmodel import SQLModel


class CategoryRead(SQLModel):
    id: uuid.UUID
    name: str
    description: str | None
    image_url: str | None


class ProductRead(SQLModel):
    """
    Product representation for the storefront.
    """

    id: uuid.UUID
    category_id: uuid.UUID | None
    name: str
    sku: str | None
    brand: str | None
    description: str | None
    image_url: str | None
    unit: str
    price: Decimal
    stock_quantity: int
    min_order_quantity: int
    is_active: bool
    created_at: datetime
