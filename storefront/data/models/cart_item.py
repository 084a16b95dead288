from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"
    __table_args__ = (UniqueConstraint("cart_id", "product_id", name="u_cart_product"),)

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    # no FK, the line survives product deletion
    product_id = Column(Integer, nullable=False)

    # snapshot taken when the product was added
    name = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    image = Column(String(512), nullable=False, default="")
    quantity = Column(Integer, nullable=False)

    cart = relationship("CartModel", back_populates="items")
