# supplyshop/data/models/profile.py
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime

from supplyshop.data.database import Base

ROLE_ADMIN = "admin"
ROLE_CUSTOMER = "customer"


class ProfileModel(Base):
    """One row per identity-provider user; id is the provider's user id."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    role = Column(String, nullable=False, default=ROLE_CUSTOMER)
    full_name = Column(String, nullable=True)

    # institution metadata collected at signup (customers)
    responsible_name = Column(String, nullable=True)
    responsible_phone = Column(String, nullable=True)
    institution_name = Column(String, nullable=True)
    institution_address = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
