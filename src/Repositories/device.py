# src/Repositories/device.py
"""
Device Repository Module

Database access for Device records and their conversion into the
DeviceInfo value used by the map renderer.

Usage:
    from src.Repositories import device as device_repo

    device = device_repo.get_device_by_id(db, "TRUCK-001")
    info = device_repo.to_device_info(device)
"""

from sqlalchemy.orm import Session
from typing import Dict, FrozenSet, List, Optional

from src.Models.device import Device
from src.Services.map_events.points import DeviceInfo


# ==========================================================
# 📌 QUERIES
# ==========================================================

def get_device_by_id(db: Session, device_id: str, account_id: Optional[str] = None) -> Optional[Device]:
    """
    Get a specific device by its ID.

    Args:
        db: SQLAlchemy session
        device_id: Unique identifier of the device
        account_id: If given, the device must belong to this account

    Returns:
        Device object or None if not found
    """
    query = db.query(Device).filter(Device.DeviceID == device_id)
    if account_id:
        query = query.filter(Device.AccountID == account_id)
    return query.first()


def get_devices_by_account(db: Session, account_id: str, only_active: bool = True) -> List[Device]:
    query = db.query(Device).filter(Device.AccountID == account_id)
    if only_active:
        query = query.filter(Device.IsActive == True)
    return query.order_by(Device.DeviceID.asc()).all()


# ==========================================================
# 📌 CONVERSION
# ==========================================================

def parse_status_codes(value: Optional[str]) -> FrozenSet[int]:
    """
    "0xF111, 61714" → frozenset({0xF111, 61714}); invalid entries are ignored.
    """
    codes = set()
    for part in (value or "").split(","):
        part = part.strip()
        if not part:
            continue
        try:
            codes.add(int(part, 0))
        except ValueError:
            print(f"[DEVICE] Ignoring invalid status code '{part}'")
    return frozenset(codes)


def to_device_info(device: Device) -> DeviceInfo:
    return DeviceInfo(
        device_id=device.DeviceID,
        description=device.Name or device.Description or "",
        vin=device.VehicleID or "",
        display_color=device.DisplayColor or "",
        start_stop_supported=bool(device.StartStopSupported),
        start_codes=parse_status_codes(device.StartCodes),
        stop_codes=parse_status_codes(device.StopCodes),
        parked_latitude=device.ParkedLatitude or 0.0,
        parked_longitude=device.ParkedLongitude or 0.0,
        parked_radius_m=device.ParkedRadius or 0.0,
    )


def device_infos_by_account(db: Session, account_id: str) -> Dict[str, DeviceInfo]:
    """DeviceID → DeviceInfo for every active device of the account."""
    return {d.DeviceID: to_device_info(d) for d in get_devices_by_account(db, account_id)}
