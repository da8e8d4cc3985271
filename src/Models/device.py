# src/Models/device.py

from sqlalchemy.orm import declared_attr
from sqlalchemy import Column, String, DateTime, Boolean, Float, Index
from sqlalchemy.sql import func

from src.DB.base_class import Base


class Device(Base):
    """
    SQLAlchemy model representing a tracked device.

    Responsibilities:
    - Associates each device with its owning account
    - Holds the display attributes used on maps (name, VIN, display color)
    - Declares whether the device reports discrete motion start/stop codes
    - Stores the optional "parked" geofence drawn on device maps

    Schema:
    - DeviceID (PK): Unique identifier for the device (e.g., "TRUCK-001")
    - AccountID: Owning account
    - Name / Description: Human-readable labels
    - VehicleID: VIN shown in map records instead of DeviceID (optional)
    - DisplayColor: Custom "#RRGGBB" route/text color (optional)
    - StartStopSupported: Device sends motion start/stop status codes
    - StartCodes / StopCodes: Comma separated status codes (hex or decimal)
    - ParkedLatitude / ParkedLongitude / ParkedRadius: Parked circle
    - IsActive, CreatedAt
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        """Fixed table name for the device registry"""
        return "devices"

    # ============================================================
    # Primary Key / Ownership
    # ============================================================
    DeviceID = Column(
        String(100),
        primary_key=True,
        doc="Unique identifier for the device (e.g., 'TRUCK-001', 'IMEI-123456')"
    )

    AccountID = Column(
        String(100),
        nullable=False,
        index=True,
        doc="Account owning this device"
    )

    # ============================================================
    # Display Metadata
    # ============================================================
    Name = Column(
        String(200),
        nullable=True,
        doc="Human-readable device name for display in UI"
    )

    Description = Column(
        String(500),
        nullable=True,
        doc="Additional information about the device"
    )

    VehicleID = Column(
        String(100),
        nullable=True,
        doc="Vehicle identification number shown in map records"
    )

    DisplayColor = Column(
        String(7),
        nullable=True,
        doc="Custom '#RRGGBB' color for the device route and label"
    )

    # ============================================================
    # Motion Signaling
    # ============================================================
    StartStopSupported = Column(
        Boolean,
        default=False,
        nullable=False,
        doc="Whether the device reports discrete motion start/stop events"
    )

    StartCodes = Column(String(200), nullable=True, doc="Status codes meaning 'motion start'")
    StopCodes = Column(String(200), nullable=True, doc="Status codes meaning 'motion stop'")

    # ============================================================
    # Parked Geofence
    # ============================================================
    ParkedLatitude = Column(Float, default=0.0, nullable=False)
    ParkedLongitude = Column(Float, default=0.0, nullable=False)
    ParkedRadius = Column(Float, default=0.0, nullable=False, doc="Meters, 0 = not parked")

    # ============================================================
    # Operational State
    # ============================================================
    IsActive = Column(
        Boolean,
        default=True,
        nullable=False,
        doc="Whether device is currently active"
    )

    CreatedAt = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        Index('idx_devices_account_device', AccountID, DeviceID),
    )

    def __repr__(self) -> str:
        return f"<Device(DeviceID={self.DeviceID!r}, AccountID={self.AccountID!r}, Name={self.Name!r})>"
