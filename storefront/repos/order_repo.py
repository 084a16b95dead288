# storefront/repos/order_repo.py
from datetime import datetime

from sqlalchemy import extract, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.data.models.order import OrderModel
from storefront.domain.errors import OrderNumberTakenError


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def count_orders(self) -> int:
        return self.db.execute(select(func.count(OrderModel.id))).scalar_one()

    def add_order(self, order: OrderModel) -> OrderModel:
        """
        Insert a new order without committing.

        A unique violation on order_number rolls the whole transaction back
        and surfaces as OrderNumberTakenError so the caller can retry.
        """
        self.db.add(order)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            if "order_number" in str(e.orig):
                raise OrderNumberTakenError(order.order_number) from e
            raise
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def list_orders(self, user_id: str | None = None) -> list[OrderModel]:
        stmt = select(OrderModel)
        if user_id is not None:
            stmt = stmt.where(OrderModel.user_id == user_id)
        stmt = stmt.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        return list(self.db.execute(stmt).scalars().all())

    def monthly_sales(self, since: datetime) -> list[tuple]:
        year = extract("year", OrderModel.paid_at)
        month = extract("month", OrderModel.paid_at)
        stmt = (
            select(
                year.label("year"),
                month.label("month"),
                func.sum(OrderModel.total_price).label("total_sales"),
                func.count(OrderModel.id).label("num_orders"),
            )
            .where(OrderModel.is_paid.is_(True), OrderModel.paid_at >= since)
            .group_by(year, month)
            .order_by(year, month)
        )
        return list(self.db.execute(stmt).all())

    def paid_order_stats(self):
        stmt = select(
            func.sum(OrderModel.total_price).label("total_sales"),
            func.count(OrderModel.id).label("total_orders"),
            func.avg(OrderModel.total_price).label("avg_order_value"),
            func.min(OrderModel.total_price).label("min_order_value"),
            func.max(OrderModel.total_price).label("max_order_value"),
        ).where(OrderModel.is_paid.is_(True))
        return self.db.execute(stmt).one()

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
