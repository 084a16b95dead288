from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from storefront.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class ProductModel(Base):
    __tablename__ = "products"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),)

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String(32), nullable=False, index=True)

    # inventory ledger, only decremented by checkout
    stock = Column(Integer, nullable=False, default=0)

    ratings = Column(Float, nullable=False, default=0.0)
    num_reviews = Column(Integer, nullable=False, default=0)
    seller_id = Column(String(64), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    images = relationship(
        "ProductImageModel",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductImageModel.id",
    )
    reviews = relationship(
        "ReviewModel",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ReviewModel.id",
    )

    @property
    def primary_image_url(self) -> str:
        return self.images[0].url if self.images else ""


class ProductImageModel(Base):
    __tablename__ = "product_images"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    url = Column(String(512), nullable=False)
    alt = Column(String(200), nullable=True)
    # blob store key, empty for images referenced by plain url
    key = Column(String(256), nullable=True)

    product = relationship("ProductModel", back_populates="images")
