# src/Models/geofence.py

from sqlalchemy import Column, String, Text, Boolean, DateTime, Float, Index, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declared_attr
from geoalchemy2 import Geography

from src.DB.base_class import Base


class Geofence(Base):
    """
    Geozone with PostGIS geometry.

    kind:
    - point_radius: circle(s) around `points`, radius in meters
    - bounded_rect: rectangle given by two opposite corners
    - polygon: ordered vertices
    - swept_point_radius / polyline: stored but not drawn on maps

    `points` keeps the ordered [lat, lon] vertices exactly as entered;
    `geometry` is the area used by the spatial predicates (for circles, the
    buffered disk).
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "geofences"

    id = Column(String(100), primary_key=True)
    account_id = Column(String(100), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    kind = Column(String(30), nullable=False, default='polygon')
    radius = Column(Float, nullable=False, default=0.0)
    points = Column(JSONB, nullable=False, default=list)

    # Campo espacial: GEOGRAPHY SRID 4326 (WGS84)
    geometry = Column(
        Geography('GEOMETRY', srid=4326),
        nullable=False
    )

    color = Column(String(7), nullable=True)
    pushpin_id = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        Index('idx_geofences_account_active', account_id, is_active),
    )

    def __repr__(self):
        return f"<Geofence(id={self.id!r}, kind={self.kind!r}, name={self.name!r})>"
