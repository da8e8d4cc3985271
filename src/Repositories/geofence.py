# src/Repositories/geofence.py
"""
Geozone lookup on PostGIS.

`GeofenceLookup` implements the three queries used by the map geozone
resolver:
- zones_containing(): zones whose area contains a coordinate
- zone_by_id(): one zone by id
- zones_in_bounds(): zones touching a bounding box

IMPORTANTE: PostGIS Geography NO soporta ST_Contains, usamos ST_Intersects.
"""

from typing import Any, List, Optional, Sequence, Tuple

from geoalchemy2.shape import to_shape
from shapely.geometry import Point, Polygon
from sqlalchemy import text
from sqlalchemy.orm import Session

from src.Models.geofence import Geofence
from src.Services.map_events.geo import GeoBounds
from src.Services.map_events.geozone_resolver import Geozone


def _points_from_json(value: Any) -> Tuple[Tuple[float, float], ...]:
    points = []
    for p in value or ():
        try:
            points.append((float(p[0]), float(p[1])))
        except (TypeError, ValueError, IndexError):
            continue
    return tuple(points)


def _points_from_geometry(geometry: Any) -> Tuple[Tuple[float, float], ...]:
    """Vertices (lat, lon) of a stored geography when `points` is empty."""
    if geometry is None:
        return ()
    shp = to_shape(geometry)
    if isinstance(shp, Point):
        return ((shp.y, shp.x),)
    if isinstance(shp, Polygon):
        coords = list(shp.exterior.coords)
        if len(coords) > 1 and coords[0] == coords[-1]:
            coords = coords[:-1]
        return tuple((y, x) for x, y in coords)
    return ()


def to_geozone(zone: Geofence) -> Geozone:
    points = _points_from_json(zone.points) or _points_from_geometry(zone.geometry)
    return Geozone(
        zone_id=zone.id,
        kind=zone.kind or "",
        radius_m=zone.radius or 0.0,
        points=points,
        color=zone.color or "",
        description=zone.description or zone.name or "",
        pushpin_id=zone.pushpin_id or "",
    )


def _ordered_by_ids(db: Session, ids: Sequence[str]) -> List[Geozone]:
    if not ids:
        return []
    rows = db.query(Geofence).filter(Geofence.id.in_(list(ids))).all()
    by_id = {r.id: r for r in rows}
    return [to_geozone(by_id[i]) for i in ids if i in by_id]


class GeofenceLookup:
    """
    GeozoneLookup backed by the `geofences` table.

    Args:
        db: Open SQLAlchemy session (owned by the caller)
    """

    def __init__(self, db: Session):
        self.db = db

    def zones_containing(self, account_id: str, latitude: float, longitude: float) -> List[Geozone]:
        query = text("""
            SELECT id
            FROM geofences
            WHERE account_id = :account_id
            AND is_active = TRUE
            AND ST_Intersects(
                geometry,
                ST_GeogFromText('POINT(' || :lon || ' ' || :lat || ')')
            )
            ORDER BY ST_Area(geometry) DESC, id ASC
        """)
        rows = self.db.execute(query, {'account_id': account_id, 'lon': longitude, 'lat': latitude}).all()
        return _ordered_by_ids(self.db, [r.id for r in rows])

    def zone_by_id(self, account_id: str, zone_id: str) -> Optional[Geozone]:
        zone = (
            self.db.query(Geofence)
            .filter(
                Geofence.account_id == account_id,
                Geofence.id == zone_id,
                Geofence.is_active == True
            )
            .first()
        )
        return to_geozone(zone) if zone is not None else None

    def zones_in_bounds(self, account_id: str, bounds: GeoBounds) -> List[Geozone]:
        box = bounds.to_geometry()
        if box is None:
            return []
        query = text("""
            SELECT id
            FROM geofences
            WHERE account_id = :account_id
            AND is_active = TRUE
            AND ST_Intersects(geometry, ST_GeogFromText(:wkt))
            ORDER BY id ASC
        """)
        rows = self.db.execute(query, {'account_id': account_id, 'wkt': f"SRID=4326;{box.wkt}"}).all()
        return _ordered_by_ids(self.db, [r.id for r in rows])
