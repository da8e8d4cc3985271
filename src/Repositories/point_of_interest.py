# src/Repositories/point_of_interest.py

from sqlalchemy.orm import Session
from typing import List

from src.Models.point_of_interest import PointOfInterest
from src.Services.map_events.points import PoiPoint


def get_pois_by_account(db: Session, account_id: str) -> List[PointOfInterest]:
    """Active points of interest of the account, in id order."""
    return (
        db.query(PointOfInterest)
        .filter(PointOfInterest.account_id == account_id, PointOfInterest.is_active == True)
        .order_by(PointOfInterest.id.asc())
        .all()
    )


def to_poi_point(poi: PointOfInterest) -> PoiPoint:
    return PoiPoint(
        poi_id=poi.id,
        description=poi.description or "",
        latitude=poi.latitude or 0.0,
        longitude=poi.longitude or 0.0,
        address=poi.address or "",
        icon_name=poi.icon_name or "",
    )


def get_poi_points(db: Session, account_id: str) -> List[PoiPoint]:
    return [to_poi_point(p) for p in get_pois_by_account(db, account_id)]
