# src/Repositories/gps_data.py
"""
Event source for map rendering.

Queries return GPS_data rows ordered by device, then time (the order the
map pipeline requires); `to_event_point()` turns a row into an EventPoint.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import func, and_
from sqlalchemy.orm import Session

from src.Models.device import Device
from src.Models.gps_data import GPS_data
from src.Services.map_events.points import DeviceInfo, EventPoint, epoch_seconds
from src.Services.map_events.status_codes import StatusDescriptionProvider


def get_events_in_range_by_device(
    DB: Session,
    device_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: Optional[int] = None
) -> List[GPS_data]:
    """
    Events of one device, oldest first.

    With a limit, the most recent `limit` events inside the range are kept
    (still returned oldest first).
    """
    query = DB.query(GPS_data).filter(GPS_data.DeviceID == device_id)
    if start is not None:
        query = query.filter(GPS_data.Timestamp >= start)
    if end is not None:
        query = query.filter(GPS_data.Timestamp <= end)

    if limit:
        rows = query.order_by(GPS_data.Timestamp.desc()).limit(limit).all()
        rows.reverse()
        return rows
    return query.order_by(GPS_data.Timestamp.asc()).all()


def get_events_in_range_by_account(
    DB: Session,
    account_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit_per_device: Optional[int] = None
) -> List[GPS_data]:
    """
    Events of every active device of the account, sorted by device then time
    (fleet route maps).
    """
    device_ids = [
        d for (d,) in DB.query(Device.DeviceID)
        .filter(Device.AccountID == account_id, Device.IsActive == True)
        .order_by(Device.DeviceID.asc())
        .all()
    ]
    rows: List[GPS_data] = []
    for device_id in device_ids:
        rows.extend(get_events_in_range_by_device(DB, device_id, start, end, limit_per_device))
    return rows


def get_last_events_by_account(DB: Session, account_id: str) -> List[GPS_data]:
    """
    Latest event of every active device of the account (single point fleet
    maps), sorted by device.
    """
    latest = (
        DB.query(
            GPS_data.DeviceID,
            func.max(GPS_data.Timestamp).label("max_ts")
        )
        .join(Device, Device.DeviceID == GPS_data.DeviceID)
        .filter(Device.AccountID == account_id, Device.IsActive == True)
        .group_by(GPS_data.DeviceID)
        .subquery()
    )
    return (
        DB.query(GPS_data)
        .join(latest, and_(
            GPS_data.DeviceID == latest.c.DeviceID,
            GPS_data.Timestamp == latest.c.max_ts
        ))
        .order_by(GPS_data.DeviceID.asc())
        .all()
    )


def to_event_point(
    row: GPS_data,
    device: Optional[DeviceInfo],
    status_provider: Optional[StatusDescriptionProvider] = None,
    now: Optional[datetime] = None
) -> EventPoint:
    """
    GPS_data row → EventPoint.

    Args:
        row: Stored event
        device: DeviceInfo of the row's device (None if unknown)
        status_provider: Status code → text/style
        now: Reference time for the record creation age
    """
    described = status_provider.describe(row.StatusCode or 0) if status_provider is not None else None
    now = now or datetime.now(timezone.utc)
    created = epoch_seconds(row.CreatedAt) if row.CreatedAt is not None else 0

    return EventPoint(
        device_id=row.DeviceID,
        timestamp=epoch_seconds(row.Timestamp),
        latitude=row.Latitude or 0.0,
        longitude=row.Longitude or 0.0,
        device_info=device,
        status_code=row.StatusCode or 0,
        status_description=described.text if described is not None else "",
        status_style=described.style if described is not None else "",
        gps_age=row.GpsAge or 0,
        creation_age=max(0, epoch_seconds(now) - created) if created else 0,
        accuracy_m=row.Accuracy or 0.0,
        satellite_count=row.SatelliteCount or 0,
        cell_latitude=row.CellLatitude or 0.0,
        cell_longitude=row.CellLongitude or 0.0,
        cell_accuracy_m=row.CellAccuracy or 0.0,
        speed_kph=row.Speed or 0.0,
        heading=row.Heading or 0.0,
        altitude_m=row.Altitude or 0.0,
        odometer_km=row.Odometer or 0.0,
        input_mask=row.InputMask or 0,
        address=row.Address or "",
        geozone_id=row.CurrentGeofenceID or "",
        extra_fields=dict(row.ExtraFields or {}),
    )


def to_event_points(
    rows: List[GPS_data],
    devices: Dict[str, DeviceInfo],
    status_provider: Optional[StatusDescriptionProvider] = None
) -> List[EventPoint]:
    now = datetime.now(timezone.utc)
    return [to_event_point(r, devices.get(r.DeviceID), status_provider, now) for r in rows]
