"""SQLAlchemy ORM models."""
from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from catalog.infrastructure.database.base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    description = Column(Text, nullable=False, default="")
    # JSON-encoded ordered list of blob references
    images = Column(Text, nullable=False, default="[]")
    status = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
