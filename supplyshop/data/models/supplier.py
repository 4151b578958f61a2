# supplyshop/data/models/supplier.py
from sqlalchemy import Column, String

from supplyshop.data.database import Base
from supplyshop.data.models._ids import new_id


class SupplierModel(Base):
    __tablename__ = "suppliers"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)  # no email -> no order notifications
