# src/Models/point_of_interest.py

from sqlalchemy import Column, String, Float, Boolean, DateTime, func
from sqlalchemy.orm import declared_attr

from src.DB.base_class import Base


class PointOfInterest(Base):
    """Static map marker configured per account (depots, customers, ...)."""

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "points_of_interest"

    id = Column(String(100), primary_key=True)
    account_id = Column(String(100), nullable=False, index=True)
    description = Column(String(200), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    address = Column(String(300), nullable=True)
    icon_name = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<PointOfInterest(id={self.id!r}, description={self.description!r})>"
