# supplyshop/data/models/product.py
from datetime import datetime, timezone

from sqlalchemy import Column, String, Numeric, ForeignKey, DateTime, CheckConstraint

from supplyshop.data.database import Base
from supplyshop.data.models._ids import new_id


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True, index=True)
    supplier_id = Column(String(36), ForeignKey("suppliers.id"), nullable=False, index=True)
    image_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (CheckConstraint("price > 0", name="ck_product_price_positive"),)
