# snfoods/services/catalog_service.py
import uuid

from sqlmodel import Session

from snfoods.core.errors import NotFoundError
from snfoods.models.product import Category, Product
from snfoods.repositories.product_repo import ProductRepository


class CatalogService:
    """
    Read-only storefront catalog. Catalog maintenance happens in the
    back-office tools, not through this API.
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        category_id: uuid.UUID | None = None,
    ) -> list[Product]:
        return self.repo.list_products(session, skip=skip, limit=limit, category_id=category_id)

    def get_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_by_id(session, product_id)
        # Inactive products are hidden from the storefront.
        if not product or not product.is_active:
            raise NotFoundError("Product not found")
        return product

    def list_categories(self, session: Session) -> list[Category]:
        return self.repo.list_categories(session)
