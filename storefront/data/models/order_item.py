from sqlalchemy import Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # plain reference, orders outlive their products
    product_id = Column(Integer, nullable=False)

    name = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    image = Column(String(512), nullable=False, default="")
    quantity = Column(Integer, nullable=False)

    order = relationship("OrderModel", back_populates="items")
