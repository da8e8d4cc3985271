# src/Models/gps_data.py

from sqlalchemy.orm import declared_attr
from sqlalchemy import (
    Column, BigInteger, Integer, String, Float, DateTime,
    func, Index
)
from sqlalchemy.dialects.postgresql import JSONB

from src.DB.base_class import Base


class GPS_data(Base):
    """
    SQLAlchemy model for stored device events (position reports).

    Each row becomes one EventPoint when a map is rendered. Latitude and
    Longitude hold the GPS fix (0/0 when the device had none); the Cell*
    columns carry a best-effort location for those events.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        # Fixed table name for the GPS data
        return "gps_data"

    # Primary key
    id = Column(BigInteger, primary_key=True, autoincrement=True)

    DeviceID = Column(
        String(100),
        nullable=False,
        index=True,
        doc="Unique identifier of the GPS device"
    )

    # Timestamp stored as timezone-aware DateTime (UTC)
    Timestamp = Column(
        DateTime(timezone=True),
        nullable=False
    )

    StatusCode = Column(Integer, default=0, nullable=False, doc="Event status code")

    # GPS fields
    Latitude = Column(Float, nullable=False, default=0.0)
    Longitude = Column(Float, nullable=False, default=0.0)
    Altitude = Column(Float, nullable=False, default=0.0)
    Accuracy = Column(Float, nullable=False, default=0.0)
    SatelliteCount = Column(Integer, nullable=False, default=0)
    GpsAge = Column(Integer, nullable=False, default=0, doc="Seconds since the GPS fix")

    # Best-effort location (cell tower, wifi) when there is no GPS fix
    CellLatitude = Column(Float, nullable=True)
    CellLongitude = Column(Float, nullable=True)
    CellAccuracy = Column(Float, nullable=True)

    # Motion
    Speed = Column(Float, nullable=False, default=0.0, doc="km/h")
    Heading = Column(Float, nullable=False, default=0.0, doc="degrees")
    Odometer = Column(Float, nullable=False, default=0.0, doc="km")

    InputMask = Column(Integer, nullable=False, default=0, doc="Digital input bitmask")
    Address = Column(String(300), nullable=True)

    # Geozone the device reported for this event (if any)
    CurrentGeofenceID = Column(
        String(100),
        nullable=True,
        index=True,
        doc="ID of geofence containing this GPS point (null if outside all geofences)"
    )

    BatteryLevel = Column(Float, nullable=True, doc="0.0 - 1.0")
    SignalStrength = Column(Float, nullable=True, doc="0.0 - 1.0")

    ExtraFields = Column(JSONB, nullable=True, doc="Additional values used by optional map fields")

    CreatedAt = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index('idx_device_timestamp', DeviceID, Timestamp),
        Index('idx_device_geofence', DeviceID, CurrentGeofenceID),
        Index('unique_device_timestamp', DeviceID, Timestamp, unique=True),
    )

    # Optional: for debugging and clean logging
    def __repr__(self) -> str:
        return (
            f"<GPS_data(id={self.id}, DeviceID={self.DeviceID!r}, "
            f"Lat={self.Latitude:.4f}, Lon={self.Longitude:.4f}, Speed={self.Speed})>"
        )
