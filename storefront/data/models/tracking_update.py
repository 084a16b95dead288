from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base


class TrackingUpdateModel(Base):
    __tablename__ = "tracking_updates"
    __table_args__ = (UniqueConstraint("order_id", "sequence", name="u_tracking_order_sequence"),)

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # position in the log, higher is newer
    sequence = Column(Integer, nullable=False)

    date = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(32), nullable=False)
    location = Column(String(200), nullable=False)
    details = Column(Text, nullable=False)

    order = relationship("OrderModel", back_populates="tracking_updates")
