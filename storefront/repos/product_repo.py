# storefront/repos/product_repo.py
from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from storefront.data.models.product import ProductModel
from storefront.data.models.review import ReviewModel

SORT_FIELDS = {
    "price": ProductModel.price,
    "name": ProductModel.name,
    "createdAt": ProductModel.created_at,
    "ratings": ProductModel.ratings,
    "stock": ProductModel.stock,
}


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_products(self, product_ids) -> list[ProductModel]:
        ids = list(product_ids)
        if not ids:
            return []
        return list(self.db.execute(select(ProductModel).where(ProductModel.id.in_(ids))).scalars().all())

    def list_products(
        self,
        category: str | None = None,
        min_price=None,
        max_price=None,
        keyword: str | None = None,
        sort: str | None = None,
        offset: int = 0,
        limit: int = 12,
    ) -> tuple[list[ProductModel], int]:
        stmt = select(ProductModel).where(ProductModel.is_active.is_(True))

        if category:
            stmt = stmt.where(ProductModel.category == category)
        if min_price is not None:
            stmt = stmt.where(ProductModel.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(ProductModel.price <= max_price)
        if keyword:
            pattern = f"%{keyword}%"
            stmt = stmt.where(or_(ProductModel.name.ilike(pattern), ProductModel.description.ilike(pattern)))

        total = self.db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()

        # "-price,name" style, unknown fields are ignored
        order_by = []
        for part in (sort or "-createdAt").split(","):
            part = part.strip()
            column = SORT_FIELDS.get(part.lstrip("-"))
            if column is not None:
                order_by.append(column.desc() if part.startswith("-") else column.asc())
        if not order_by:
            order_by.append(ProductModel.created_at.desc())
        order_by.append(ProductModel.id.desc())

        items = self.db.execute(stmt.order_by(*order_by).offset(offset).limit(limit)).scalars().all()
        return list(items), total

    def top_products(self, limit: int = 5) -> list[ProductModel]:
        stmt = (
            select(ProductModel)
            .where(ProductModel.is_active.is_(True))
            .order_by(ProductModel.ratings.desc(), ProductModel.id.asc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def add(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.flush()
        return product

    def delete(self, product: ProductModel) -> None:
        self.db.delete(product)

    def decrement_stock(self, product_id: int, quantity: int) -> int:
        """
        Take ``quantity`` units off the ledger iff that many are left.

        Returns the affected row count: 0 means a concurrent checkout got
        there first and the caller must abort.
        """
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.stock >= quantity)
            .values(stock=ProductModel.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def get_review(self, product_id: int, user_id: str) -> ReviewModel | None:
        return self.db.execute(
            select(ReviewModel).where(ReviewModel.product_id == product_id, ReviewModel.user_id == user_id)
        ).scalar_one_or_none()

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
