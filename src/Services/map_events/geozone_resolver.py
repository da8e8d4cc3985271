# src/Services/map_events/geozone_resolver.py
"""
Geozone Resolver
================
Resolves the geofence shapes displayed with a set of map points.

Three independent sources are merged, in this order:
1. parked:    the device's parked circle (device maps only)
2. per-point: zones containing each point, or only the zone named by the
              point's geozone id
3. nearby:    zones touching the bounding box of all points, grown by the
              nearby radius

Key Concepts:
- Zone ids are unique within one resolution; the "attempted" set is created
  per resolve() call and also remembers ids whose lookup came back empty
- Within one query batch, shapes are emitted in reverse of the lookup order
- Only point-radius, bounded-rect and polygon zones are displayable; other
  kinds are skipped and never remembered
- A failing lookup degrades to "no zones" for that query
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Protocol, Sequence, Set, Tuple

from src.Core import log_ws

from .geo import GeoBounds, format_latlon, is_valid_geopoint
from .icons import NO_PUSHPIN, pushpin_icon_index


# ==========================================================
# TYPES
# ==========================================================

class GeozoneKind(str, Enum):
    POINT_RADIUS = "point_radius"
    BOUNDED_RECT = "bounded_rect"
    POLYGON = "polygon"
    SWEPT_POINT_RADIUS = "swept_point_radius"
    POLYLINE = "polyline"


SHAPE_TYPE_BY_KIND = {
    GeozoneKind.POINT_RADIUS: "circle",
    GeozoneKind.BOUNDED_RECT: "rectangle",
    GeozoneKind.POLYGON: "polygon",
}


@dataclass(frozen=True)
class Geozone:
    """
    Geozone record as returned by the lookup collaborator.

    Attributes:
        zone_id: Account unique id
        kind: GeozoneKind (plain strings are accepted and converted)
        radius_m: Radius for point-radius zones
        points: Ordered (lat, lon) vertices; the center for point-radius zones
        color: "#RRGGBB" shape color, empty for the default
        description: Display name
        pushpin_id: Icon name used to resolve the shape pushpin
    """
    zone_id: str
    kind: str
    radius_m: float = 0.0
    points: Tuple[Tuple[float, float], ...] = ()
    color: str = ""
    description: str = ""
    pushpin_id: str = ""


@dataclass(frozen=True)
class GeofenceShape:
    shape_id: Optional[str]
    shape_type: str
    radius_m: float
    points: Tuple[Tuple[float, float], ...]
    color: str
    description: str
    pushpin_index: int = NO_PUSHPIN

    @property
    def point_list(self) -> List[str]:
        return [format_latlon(lat, lon) for lat, lon in self.points]


class GeozoneLookup(Protocol):
    """Storage collaborator. Any method may raise; failures are contained."""

    def zones_containing(self, account_id: str, latitude: float, longitude: float) -> Sequence[Geozone]: ...

    def zone_by_id(self, account_id: str, zone_id: str) -> Optional[Geozone]: ...

    def zones_in_bounds(self, account_id: str, bounds: GeoBounds) -> Sequence[Geozone]: ...


def _kind_of(zone: Geozone) -> Optional[GeozoneKind]:
    try:
        return GeozoneKind(zone.kind)
    except ValueError:
        return None


# ==========================================================
# RESOLVER
# ==========================================================

class GeozoneResolver:
    """
    Args:
        lookup: GeozoneLookup collaborator
        show_all_contained: Query all zones containing each point (otherwise
            only the point's own geozone id is looked up)
        nearby_radius_m: > 0 adds zones near the point set
        parked_color / default_zone_color: Shape colors
        icon_keys: Icon map used for shape pushpins
    """

    def __init__(
        self,
        lookup: GeozoneLookup,
        show_all_contained: bool = True,
        nearby_radius_m: float = 0.0,
        parked_color: str = "#0000FF",
        default_zone_color: str = "#00FF00",
        parked_description: str = "Parked",
        icon_keys: Sequence[str] = (),
    ):
        self.lookup = lookup
        self.show_all_contained = show_all_contained
        self.nearby_radius_m = max(0.0, nearby_radius_m or 0.0)
        self.parked_color = parked_color
        self.default_zone_color = default_zone_color
        self.parked_description = parked_description
        self.icon_keys = tuple(icon_keys)

    # ------------------------------------------------------
    # shape conversion
    # ------------------------------------------------------
    def _to_shape(self, zone: Geozone) -> Optional[GeofenceShape]:
        kind = _kind_of(zone)
        shape_type = SHAPE_TYPE_BY_KIND.get(kind) if kind is not None else None
        if shape_type is None:
            print(f"[GEOZONE] Skipping zone {zone.zone_id}: unsupported kind '{zone.kind}'")
            return None
        return GeofenceShape(
            shape_id=zone.zone_id,
            shape_type=shape_type,
            radius_m=zone.radius_m or 0.0,
            points=tuple(zone.points),
            color=zone.color or self.default_zone_color,
            description=zone.description or "",
            pushpin_index=pushpin_icon_index(zone.pushpin_id, self.icon_keys, NO_PUSHPIN),
        )

    def _add_batch(self, zones: Iterable[Geozone], attempted: Set[str], shapes: List[GeofenceShape]) -> int:
        added = 0
        for zone in reversed(list(zones)):
            if zone.zone_id in attempted:
                continue
            shape = self._to_shape(zone)
            if shape is None:
                continue
            attempted.add(zone.zone_id)
            shapes.append(shape)
            added += 1
        return added

    # ------------------------------------------------------
    # sources
    # ------------------------------------------------------
    def parked_shape(self, points: Sequence) -> Optional[GeofenceShape]:
        """Parked circle from the first point's device record, if configured."""
        if not points:
            return None
        device = getattr(points[0], "device", None)
        if device is None or not device.has_parked_location:
            return None
        print(f"[GEOZONE] Parked location for {device.device_id}: "
              f"{device.parked_latitude}/{device.parked_longitude} r={device.parked_radius_m}")
        return GeofenceShape(
            shape_id=None,
            shape_type="circle",
            radius_m=device.parked_radius_m,
            points=((device.parked_latitude, device.parked_longitude),),
            color=self.parked_color,
            description=self.parked_description,
            pushpin_index=NO_PUSHPIN,
        )

    def _query_point(self, account_id: str, point, zone_id: str) -> Optional[List[Geozone]]:
        try:
            if self.show_all_contained:
                if not is_valid_geopoint(point.latitude, point.longitude):
                    return []
                return list(self.lookup.zones_containing(account_id, point.latitude, point.longitude))
            zone = self.lookup.zone_by_id(account_id, zone_id)
            return [zone] if zone is not None else []
        except Exception as e:
            log_ws.log_from_thread(f"Geozone lookup failed for {account_id}/{point.device_id}: {e}", "error")
            return None

    def _query_nearby(self, account_id: str, bounds: GeoBounds) -> List[Geozone]:
        try:
            return list(self.lookup.zones_in_bounds(account_id, bounds))
        except Exception as e:
            log_ws.log_from_thread(f"Nearby geozone lookup failed for {account_id} {bounds}: {e}", "error")
            return []

    # ------------------------------------------------------
    # public
    # ------------------------------------------------------
    def resolve(self, account_id: str, points: Sequence, is_fleet: bool) -> List[GeofenceShape]:
        """
        Resolve all shapes for one render call.

        Args:
            account_id: Owning account
            points: Full ordered point set (event points)
            is_fleet: Fleet maps have no parked circle

        Returns:
            List[GeofenceShape]: parked, per-point, then nearby shapes
        """
        shapes: List[GeofenceShape] = []
        attempted: Set[str] = set()

        if not is_fleet:
            parked = self.parked_shape(points)
            if parked is not None:
                shapes.append(parked)

        bounds = GeoBounds()
        for point in points:
            bounds.extend_by_point(point.latitude, point.longitude)

            zone_id = (getattr(point, "geozone_id", "") or "").strip()
            if not (self.show_all_contained or zone_id):
                continue
            if zone_id in attempted:
                continue

            zones = self._query_point(account_id, point, zone_id)
            if zones:
                self._add_batch(zones, attempted, shapes)
            elif zone_id:
                # remember the miss so the id is not looked up again
                attempted.add(zone_id)

        if self.nearby_radius_m > 0.0 and not bounds.is_empty:
            bounds.extend_by_radius(self.nearby_radius_m)
            added = self._add_batch(self._query_nearby(account_id, bounds), attempted, shapes)
            print(f"[GEOZONE] {added} nearby zone(s) within {self.nearby_radius_m:.0f} m of {bounds}")

        return shapes
