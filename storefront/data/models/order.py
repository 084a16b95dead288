from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String
from sqlalchemy.orm import relationship

from storefront.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(20), nullable=False, unique=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)

    shipping_address = Column(String(255), nullable=False)
    shipping_city = Column(String(100), nullable=False)
    shipping_state = Column(String(100), nullable=False)
    shipping_country = Column(String(100), nullable=False)
    shipping_postal_code = Column(String(20), nullable=False)
    shipping_phone = Column(String(40), nullable=False)

    payment_method = Column(String(50), nullable=True)
    payment_id = Column(String(100), nullable=True)
    payment_status = Column(String(50), nullable=True)
    payment_update_time = Column(String(50), nullable=True)
    payment_email = Column(String(255), nullable=True)

    items_price = Column(Numeric(10, 2), nullable=False)
    tax_price = Column(Numeric(10, 2), nullable=False)
    shipping_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    order_status = Column(String(20), nullable=False, default="Processing")  # Processing, Shipped, Delivered, Cancelled, Returned
    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    is_delivered = Column(Boolean, nullable=False, default=False)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    tracking_number = Column(String(100), nullable=False, default="")

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )
    # newest first
    tracking_updates = relationship(
        "TrackingUpdateModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="desc(TrackingUpdateModel.sequence)",
    )
