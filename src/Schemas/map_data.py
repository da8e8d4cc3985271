# src/Schemas/map_data.py

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Optional


class MapDisplayOptions(BaseModel):
    """
    Per-call display options (account display preferences).
    Built from the process settings and optionally overridden per request.
    Frozen: the renderer only reads it.
    """
    model_config = ConfigDict(frozen=True)

    timezone: str = Field("UTC", description="IANA timezone used for record date/time fields")
    date_format: str = Field("%Y/%m/%d", description="strftime date format")
    time_format: str = Field("%H:%M:%S", description="strftime time format")
    separator: str = Field("|", min_length=1, max_length=1, description="Record field separator")

    include_status_color: bool = True
    use_route_display_color: bool = True
    fleet_pushpin_policy: str = Field("default", description="'default', 'true' or 'false'")
    split_fleet_by_device: bool = True

    include_geozones: bool = True
    show_all_contained_geozones: bool = True
    nearby_geozone_radius_m: float = Field(0.0, ge=0.0)
    parked_shape_color: str = Field("#0000FF", pattern=r'^#[0-9A-Fa-f]{6}$')
    default_zone_color: str = Field("#00FF00", pattern=r'^#[0-9A-Fa-f]{6}$')

    min_proximity_m: float = Field(0.0, description="Point decimation distance, <= 0 disables")

    icon_selector: Optional[str] = None
    icon_keys: List[str] = Field(default_factory=list, description="Ordered pushpin icon names")

    @field_validator("fleet_pushpin_policy")
    @classmethod
    def _check_policy(cls, v: str) -> str:
        v = (v or "default").strip().lower()
        if v not in ("default", "true", "false"):
            raise ValueError("fleet_pushpin_policy must be 'default', 'true' or 'false'")
        return v

    @field_validator("separator")
    @classmethod
    def _check_separator(cls, v: str) -> str:
        # imported here: map_writer imports this module
        from src.Services.map_events.record_encoder import check_separator
        return check_separator(v)

    @classmethod
    def from_settings(cls, settings: Any, **overrides: Any) -> "MapDisplayOptions":
        """Snapshot of the MAP_* settings; None overrides are ignored."""
        values = dict(
            timezone=settings.MAP_TIMEZONE,
            date_format=settings.MAP_DATE_FORMAT,
            time_format=settings.MAP_TIME_FORMAT,
            separator=settings.MAP_CSV_SEPARATOR,
            include_status_color=settings.MAP_INCLUDE_STATUS_COLOR,
            use_route_display_color=settings.MAP_USE_ROUTE_DISPLAY_COLOR,
            fleet_pushpin_policy=settings.MAP_SHOW_FLEET_DEVICE_PUSHPIN,
            include_geozones=settings.MAP_INCLUDE_GEOZONES,
            show_all_contained_geozones=settings.MAP_SHOW_ALL_CONTAINED_GEOZONES,
            nearby_geozone_radius_m=settings.nearby_geozone_radius_m(),
            parked_shape_color=settings.MAP_PARKED_SHAPE_COLOR,
            default_zone_color=settings.MAP_DEFAULT_ZONE_COLOR,
            min_proximity_m=settings.MAP_MIN_PROXIMITY_M,
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class LastEventInfo(BaseModel):
    """Latest event summary shown in device maps."""
    device_id: str
    timestamp: int
    battery: float = 0.0
    signal: float = 0.0
