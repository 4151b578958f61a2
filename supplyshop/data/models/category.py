# supplyshop/data/models/category.py
from sqlalchemy import Column, String, ForeignKey

from supplyshop.data.database import Base
from supplyshop.data.models._ids import new_id


class CategoryModel(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    # no ondelete: deleting a parent with children must fail, not cascade
    parent_id = Column(String(36), ForeignKey("categories.id"), nullable=True, index=True)
    slug = Column(String, nullable=True, unique=True)
