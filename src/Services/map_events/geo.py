# src/Services/map_events/geo.py
"""
Geodesic helpers shared by the map event pipeline.

- calculate_haversine_distance(): great-circle distance in meters
- is_valid_geopoint(): rejects missing, out of range and 0/0 coordinates
- format_latlon(): "lat/lon" text used by shape point lists
- GeoBounds: accumulated bounding box of a point set
"""

from math import radians, cos, sin, asin, sqrt
from typing import Optional

from shapely.geometry import box
from shapely.geometry.base import BaseGeometry


EARTH_RADIUS_M = 6371000.0
METERS_PER_DEGREE_LAT = 111320.0

# |lat| and |lon| both below this are treated as "no fix" (0/0)
_ZERO_EPSILON = 0.0001


def calculate_haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great-circle distance between two points on Earth.
    """
    lon1, lat1, lon2, lat2 = map(radians, [lon1, lat1, lon2, lat2])
    dlon = lon2 - lon1
    dlat = lat2 - lat1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    c = 2 * asin(sqrt(min(1.0, a)))
    return c * EARTH_RADIUS_M


def is_valid_geopoint(lat: Optional[float], lon: Optional[float]) -> bool:
    """
    True if (lat, lon) is a usable coordinate.

    Examples:
        >>> is_valid_geopoint(37.0, -122.0)
        True
        >>> is_valid_geopoint(0.0, 0.0)
        False
        >>> is_valid_geopoint(None, 10.0)
        False
    """
    if lat is None or lon is None:
        return False
    if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lon <= 180.0):
        return False
    return abs(lat) >= _ZERO_EPSILON or abs(lon) >= _ZERO_EPSILON


def format_latlon(lat: float, lon: float) -> str:
    return f"{lat:.6f}/{lon:.6f}"


class GeoBounds:
    """
    Bounding box accumulated from individual points.

    Invalid coordinates are ignored. An empty box stays empty after
    extend_by_radius().
    """

    def __init__(self):
        self.min_lat: Optional[float] = None
        self.max_lat: Optional[float] = None
        self.min_lon: Optional[float] = None
        self.max_lon: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self.min_lat is None

    def extend_by_point(self, lat: Optional[float], lon: Optional[float]) -> bool:
        if not is_valid_geopoint(lat, lon):
            return False
        if self.is_empty:
            self.min_lat = self.max_lat = lat
            self.min_lon = self.max_lon = lon
        else:
            self.min_lat = min(self.min_lat, lat)
            self.max_lat = max(self.max_lat, lat)
            self.min_lon = min(self.min_lon, lon)
            self.max_lon = max(self.max_lon, lon)
        return True

    def extend_by_radius(self, radius_m: float) -> None:
        """
        Grow the box by radius_m meters on every side.

        The longitude delta is computed at the box latitude farthest from the
        equator, so the grown box always covers the requested radius.
        """
        if self.is_empty or radius_m <= 0.0:
            return
        delta_lat = radius_m / METERS_PER_DEGREE_LAT
        widest_lat = min(89.0, max(abs(self.min_lat), abs(self.max_lat)))
        delta_lon = radius_m / (METERS_PER_DEGREE_LAT * cos(radians(widest_lat)))
        self.min_lat = max(-90.0, self.min_lat - delta_lat)
        self.max_lat = min(90.0, self.max_lat + delta_lat)
        self.min_lon = max(-180.0, self.min_lon - delta_lon)
        self.max_lon = min(180.0, self.max_lon + delta_lon)

    def to_geometry(self) -> Optional[BaseGeometry]:
        """Shapely polygon (lon/lat axis order) covering the box."""
        if self.is_empty:
            return None
        return box(self.min_lon, self.min_lat, self.max_lon, self.max_lat)

    def __repr__(self) -> str:
        if self.is_empty:
            return "<GeoBounds(empty)>"
        return (
            f"<GeoBounds(lat={self.min_lat:.5f}..{self.max_lat:.5f}, "
            f"lon={self.min_lon:.5f}..{self.max_lon:.5f})>"
        )
