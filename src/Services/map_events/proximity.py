# src/Services/map_events/proximity.py
"""
Proximity decimation: drops points that lie within a minimum distance of the
last retained point. Greedy, single pass, not shape preserving.
"""

from typing import Any, Iterable, List, Optional, Tuple

from .geo import calculate_haversine_distance, is_valid_geopoint


class ProximityDecimator:
    """
    Streaming decimator for one dataset.

    - min_distance_m <= 0 disables decimation (every point is accepted)
    - points without a valid coordinate are always accepted and leave the
      anchor untouched
    """

    def __init__(self, min_distance_m: float = 0.0):
        self.min_distance_m = min_distance_m or 0.0
        self._anchor: Optional[Tuple[float, float]] = None

    @property
    def enabled(self) -> bool:
        return self.min_distance_m > 0.0

    def reset(self) -> None:
        self._anchor = None

    def accept(self, point: Any) -> bool:
        if not self.enabled:
            return True

        lat, lon = point.latitude, point.longitude
        if not is_valid_geopoint(lat, lon):
            return True

        if self._anchor is None:
            self._anchor = (lat, lon)
            return True

        distance = calculate_haversine_distance(self._anchor[0], self._anchor[1], lat, lon)
        if distance >= self.min_distance_m:
            self._anchor = (lat, lon)
            return True

        return False


def decimate(points: Iterable[Any], min_distance_m: float) -> List[Any]:
    """Apply ProximityDecimator to an ordered list of points of one dataset."""
    decimator = ProximityDecimator(min_distance_m)
    return [p for p in points if decimator.accept(p)]
