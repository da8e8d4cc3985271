# src/Services/map_events/points.py
"""
Renderable Points
=================
Point records handed to the map event pipeline.

Two variants implement the same RenderablePoint interface:
- EventPoint: a stored device event (position report) plus its device record
- PoiPoint:   a static point of interest configured for the account

Both are immutable and built fresh for every render call. Nothing here is
persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, FrozenSet, Mapping, Optional, Protocol, Sequence, runtime_checkable

from .geo import is_valid_geopoint
from .icons import IconResolver, pushpin_icon_index, ICON_PUSHPIN_BLACK


# ==========================================================
# DEVICE RECORD
# ==========================================================

@dataclass(frozen=True)
class DeviceInfo:
    """
    Per-device display and motion attributes.

    Attributes:
        device_id: Device identifier
        description: Human readable name
        vin: Vehicle id shown in record field 0 (falls back to device_id)
        display_color: Custom "#RRGGBB" color, empty when undefined
        start_stop_supported: Device reports discrete motion start/stop codes
        start_codes / stop_codes: Status codes that signal motion start/stop
        parked_latitude / parked_longitude / parked_radius_m: Parked geofence
    """
    device_id: str
    description: str = ""
    vin: str = ""
    display_color: str = ""
    start_stop_supported: bool = False
    start_codes: FrozenSet[int] = frozenset()
    stop_codes: FrozenSet[int] = frozenset()
    parked_latitude: float = 0.0
    parked_longitude: float = 0.0
    parked_radius_m: float = 0.0

    @property
    def has_display_color(self) -> bool:
        return bool(self.display_color and self.display_color.strip())

    @property
    def has_parked_location(self) -> bool:
        return self.parked_radius_m > 0.0 and is_valid_geopoint(self.parked_latitude, self.parked_longitude)


# ==========================================================
# INTERFACE
# ==========================================================

@runtime_checkable
class RenderablePoint(Protocol):
    """
    Minimal capability set required by the encoder and assembler.
    """
    device_id: str
    timestamp: int
    latitude: float
    longitude: float
    speed_kph: float
    geozone_id: str

    @property
    def record_id(self) -> str: ...

    @property
    def display_description(self) -> str: ...

    @property
    def device(self) -> Optional[DeviceInfo]: ...

    @property
    def has_gps_fix(self) -> bool: ...

    @property
    def best_latitude(self) -> float: ...

    @property
    def best_longitude(self) -> float: ...

    @property
    def best_accuracy_m(self) -> float: ...

    def pushpin_index(
        self,
        resolver: Optional[IconResolver],
        icon_selector: Optional[str],
        icon_keys: Sequence[str],
        is_fleet: bool
    ) -> int: ...


# ==========================================================
# EVENT POINT
# ==========================================================

@dataclass(frozen=True)
class EventPoint:
    """
    A stored position event for one device.

    `latitude`/`longitude` hold the GPS fix (0/0 when none). When no GPS
    fix is available, `cell_latitude`/`cell_longitude`/`cell_accuracy_m`
    provide the best-effort location (for example a cell tower estimate).
    """
    device_id: str
    timestamp: int
    latitude: float = 0.0
    longitude: float = 0.0
    device_info: Optional[DeviceInfo] = None
    status_code: int = 0
    status_description: str = ""
    status_style: str = ""
    status_icon: str = ""
    gps_age: int = 0
    creation_age: int = 0
    accuracy_m: float = 0.0
    satellite_count: int = 0
    cell_latitude: float = 0.0
    cell_longitude: float = 0.0
    cell_accuracy_m: float = 0.0
    speed_kph: float = 0.0
    heading: float = 0.0
    altitude_m: float = 0.0
    odometer_km: float = 0.0
    input_mask: int = 0
    address: str = ""
    geozone_id: str = ""
    extra_fields: Mapping[str, Any] = field(default_factory=dict)

    # ------------------------------------------------------
    # identity
    # ------------------------------------------------------
    @property
    def device(self) -> Optional[DeviceInfo]:
        return self.device_info

    @property
    def record_id(self) -> str:
        if self.device_info is not None and self.device_info.vin:
            return self.device_info.vin
        return self.device_id or ""

    @property
    def display_description(self) -> str:
        if self.device_info is not None and self.device_info.description:
            return self.device_info.description
        return self.device_id or ""

    # ------------------------------------------------------
    # location
    # ------------------------------------------------------
    @property
    def has_gps_fix(self) -> bool:
        return is_valid_geopoint(self.latitude, self.longitude)

    @property
    def best_latitude(self) -> float:
        if self.has_gps_fix:
            return self.latitude
        if is_valid_geopoint(self.cell_latitude, self.cell_longitude):
            return self.cell_latitude
        return 0.0

    @property
    def best_longitude(self) -> float:
        if self.has_gps_fix:
            return self.longitude
        if is_valid_geopoint(self.cell_latitude, self.cell_longitude):
            return self.cell_longitude
        return 0.0

    @property
    def best_accuracy_m(self) -> float:
        return self.accuracy_m if self.has_gps_fix else self.cell_accuracy_m

    # ------------------------------------------------------
    # motion predicates
    # ------------------------------------------------------
    def is_start_event(self) -> bool:
        """
        Motion start predicate.

        Device-specific start/stop codes win; otherwise any positive speed
        counts as a start.
        """
        dev = self.device_info
        if dev is not None:
            if self.status_code in dev.start_codes:
                return True
            if self.status_code in dev.stop_codes:
                return False
        return self.speed_kph > 0.0

    def is_stop_event(self) -> bool:
        dev = self.device_info
        if dev is not None:
            if self.status_code in dev.stop_codes:
                return True
            if self.status_code in dev.start_codes:
                return False
        return self.speed_kph <= 0.0

    # ------------------------------------------------------
    # display
    # ------------------------------------------------------
    def pushpin_index(
        self,
        resolver: Optional[IconResolver],
        icon_selector: Optional[str],
        icon_keys: Sequence[str],
        is_fleet: bool
    ) -> int:
        if resolver is None:
            return pushpin_icon_index(self.status_icon, icon_keys, ICON_PUSHPIN_BLACK)
        return resolver.resolve(self, icon_selector, icon_keys, is_fleet)

    def field_value(self, name: str) -> Any:
        """Look up a named attribute or extra field (used by optional fields)."""
        if name in self.extra_fields:
            return self.extra_fields[name]
        if not name.startswith("_") and hasattr(self, name):
            return getattr(self, name)
        return None


# ==========================================================
# POINT OF INTEREST
# ==========================================================

@dataclass(frozen=True)
class PoiPoint:
    """
    Static point of interest.

    POIs have no timestamp, no motion and no status; their pushpin comes
    from their own icon name.
    """
    poi_id: str
    description: str
    latitude: float
    longitude: float
    address: str = ""
    icon_name: str = ""

    timestamp: int = 0
    speed_kph: float = 0.0
    geozone_id: str = ""

    @property
    def device_id(self) -> str:
        return self.poi_id

    @property
    def device(self) -> Optional[DeviceInfo]:
        return None

    @property
    def record_id(self) -> str:
        return self.poi_id or ""

    @property
    def display_description(self) -> str:
        return self.description or ""

    @property
    def has_gps_fix(self) -> bool:
        return is_valid_geopoint(self.latitude, self.longitude)

    @property
    def best_latitude(self) -> float:
        return self.latitude if self.has_gps_fix else 0.0

    @property
    def best_longitude(self) -> float:
        return self.longitude if self.has_gps_fix else 0.0

    @property
    def best_accuracy_m(self) -> float:
        return 0.0

    def pushpin_index(
        self,
        resolver: Optional[IconResolver],
        icon_selector: Optional[str],
        icon_keys: Sequence[str],
        is_fleet: bool
    ) -> int:
        return pushpin_icon_index(self.icon_name, icon_keys, ICON_PUSHPIN_BLACK)

    def field_value(self, name: str) -> Any:
        return None


def epoch_seconds(ts: Optional[datetime]) -> int:
    """datetime → integer epoch seconds (naive values are taken as UTC)."""
    if ts is None:
        return 0
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return int(ts.timestamp())
