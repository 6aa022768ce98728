# snfoods/routers/products.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from snfoods.database import get_session
from snfoods.repositories.product_repo import ProductRepository
from snfoods.schemas.product import CategoryRead, ProductRead
from snfoods.services.catalog_service import CatalogService

router = APIRouter(tags=["Catalog"])

repo = ProductRepository()
service = CatalogService(repo)


# -------- Public endpoints --------


@router.get("/products", response_model=list[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    category_id: uuid.UUID | None = None,
    skip: int = 0,
    limit: int = 50,
):
    """
    List active products.

    - Public endpoint.
    - `category_id` narrows the list to one category.
    """
    return service.list_products(session, skip=skip, limit=limit, category_id=category_id)


@router.get("/products/{product_id}", response_model=ProductRead)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    return service.get_product(session, product_id)


@router.get("/categories", response_model=list[CategoryRead])
def list_categories(session: Session = Depends(get_session)):
    """Active categories, by name."""
    return service.list_categories(session)
