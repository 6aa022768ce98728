# snfoods/repositories/product_repo.py
import uuid

from sqlmodel import Session, select

from snfoods.models.product import Category, Product


class ProductRepository:
    """
    Read-only data access for the catalog (products and categories).
    """

    # ----- Products -----

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_many(
        self,
        session: Session,
        product_ids: list[uuid.UUID],
    ) -> dict[uuid.UUID, Product]:
        if not product_ids:
            return {}
        stmt = select(Product).where(Product.id.in_(product_ids))
        return {p.id: p for p in session.exec(stmt).all()}

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        category_id: uuid.UUID | None = None,
        only_active: bool = True,
    ) -> list[Product]:
        stmt = select(Product)
        if only_active:
            stmt = stmt.where(Product.is_active == True)  # noqa: E712
        if category_id is not None:
            stmt = stmt.where(Product.category_id == category_id)
        stmt = stmt.order_by(Product.name).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    # ----- Categories -----

    def list_categories(self, session: Session) -> list[Category]:
        stmt = (
            select(Category)
            .where(Category.is_active == True)  # noqa: E712
            .order_by(Category.name)
        )
        return list(session.exec(stmt).all())
