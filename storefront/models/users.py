# storefront/models/users.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from storefront.database import Base

# Represents a registered shopper; the admin flag gates tracking updates
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    mobile = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
