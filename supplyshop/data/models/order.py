from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Numeric
from sqlalchemy.orm import relationship

from supplyshop.data.database import Base
from supplyshop.data.models._ids import new_id


class OrderModel(Base):
    """Created once at checkout, never updated afterwards."""

    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    total = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship("OrderItemModel", back_populates="order", passive_deletes=True)
