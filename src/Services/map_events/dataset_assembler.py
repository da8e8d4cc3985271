# src/Services/map_events/dataset_assembler.py
"""
Dataset Assembler
=================
Groups an ordered point stream into map datasets and encodes every
retained point.

Processing Pipeline (per point):
1. Device change → close the previous dataset (fleet), reset motion state,
   decimation anchor, event index and colors
2. Event index assignment (zero based, per device run)
3. Motion state classification (runs on every point, retained or not)
4. Last-of-run flag (computed before decimation)
5. Proximity decimation
6. Lazy dataset start (first retained point of the run)
7. Fleet pushpin decision and record encoding

Input must be sorted by device, then time. In device (non-fleet) mode all
points belong to one device.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from .motion_state import MotionState, MotionStateClassifier
from .proximity import ProximityDecimator
from .record_encoder import RecordEncoder


DATASET_DEVICE = "device"
DATASET_GROUP = "group"
DATASET_POI = "poi"


@dataclass(frozen=True)
class DatasetEntry:
    record: str
    event_index: int
    is_last: bool
    motion_state: MotionState


@dataclass
class Dataset:
    """
    One named group of encoded points.

    Attributes:
        kind: "device", "group" or "poi"
        dataset_id: Device id, group id, or "" for POIs
        route: Draw a route line through the points
        route_color / text_color: "#RRGGBB" or "" for the client default
        entries: Encoded points in display order
    """
    kind: str
    dataset_id: str = ""
    route: bool = False
    route_color: str = ""
    text_color: str = ""
    entries: List[DatasetEntry] = field(default_factory=list)

    @property
    def records(self) -> List[str]:
        return [e.record for e in self.entries]

    def __len__(self) -> int:
        return len(self.entries)


def parse_fleet_pushpin_policy(value: Optional[str]) -> Optional[bool]:
    """
    "default"/blank → None (decided per point), otherwise the boolean value.

    Examples:
        >>> parse_fleet_pushpin_policy("default") is None
        True
        >>> parse_fleet_pushpin_policy("TRUE")
        True
    """
    v = (value or "").strip().lower()
    if not v or v == "default":
        return None
    return v in ("true", "yes", "1", "on")


class DatasetAssembler:
    """
    Args:
        encoder: Call-scoped RecordEncoder
        min_proximity_m: ProximityDecimator threshold (<= 0 disables)
        use_route_display_color: Device display color becomes the route color
        fleet_pushpin_policy: "default", "true" or "false"
        split_fleet_by_device: Fleet points form one dataset per device;
            False keeps them in a single "group" dataset without a route
    """

    def __init__(
        self,
        encoder: RecordEncoder,
        min_proximity_m: float = 0.0,
        use_route_display_color: bool = True,
        fleet_pushpin_policy: str = "default",
        split_fleet_by_device: bool = True,
    ):
        self.encoder = encoder
        self.min_proximity_m = min_proximity_m or 0.0
        self.use_route_display_color = use_route_display_color
        self.fleet_pushpin = parse_fleet_pushpin_policy(fleet_pushpin_policy)
        self.split_fleet_by_device = split_fleet_by_device

    def show_fleet_icon(self, is_fleet: bool, fleet_route: bool, is_last: bool) -> bool:
        """
        Fleet pushpin decision for one point.

        - device maps never show the fleet pushpin
        - explicit policy ("true"/"false") applies to every point
        - default: single point fleet views always show it, fleet route views
          only on the last point of each device
        """
        if not is_fleet:
            return False
        if self.fleet_pushpin is not None:
            return self.fleet_pushpin
        if not fleet_route:
            return True
        return is_last

    def assemble(
        self,
        points: Sequence[Any],
        is_fleet: bool,
        selected_id: str = "",
        fleet_route: bool = False,
    ) -> List[Dataset]:
        """
        Build the event datasets for one render call.

        Args:
            points: Event points sorted by device, then time
            is_fleet: Fleet map (many devices) vs device map (one device)
            selected_id: Device id (device map) or group id (fleet map)
            fleet_route: Fleet map shows several points per device

        Returns:
            List[Dataset]: datasets with at least one retained point
        """
        datasets: List[Dataset] = []
        if not points:
            return datasets

        classifier = MotionStateClassifier()
        decimator = ProximityDecimator(self.min_proximity_m)
        per_device = (not is_fleet) or self.split_fleet_by_device

        current: Optional[Dataset] = None
        dataset_id = selected_id
        last_device_id: Optional[str] = None
        route_color = ""
        text_color = ""
        event_index = 0

        for i, point in enumerate(points):
            device_id = point.device_id

            # device changed
            if device_id != last_device_id:
                device = point.device
                if is_fleet and per_device:
                    current = None
                    dataset_id = device_id
                last_device_id = device_id
                route_color = ""
                text_color = ""
                event_index = 0
                decimator.reset()
                classifier.reset(start_stop_supported=bool(device is not None and device.start_stop_supported))
                if device is not None and device.has_display_color:
                    if is_fleet:
                        text_color = device.display_color
                    if self.use_route_display_color:
                        route_color = device.display_color

            ndx = event_index
            event_index += 1

            state = classifier.classify(point)

            is_last = (i + 1 >= len(points)) or (points[i + 1].device_id != device_id)

            if not decimator.accept(point):
                continue

            if current is None:
                current = Dataset(
                    kind=DATASET_DEVICE if per_device else DATASET_GROUP,
                    dataset_id=dataset_id or "",
                    route=per_device,
                    route_color=route_color,
                    text_color=text_color,
                )
                datasets.append(current)

            fleet_icon = self.show_fleet_icon(is_fleet, fleet_route, is_last)
            record = self.encoder.encode(point, state.code, is_fleet=is_fleet, fleet_icon=fleet_icon)
            current.entries.append(DatasetEntry(record, ndx, is_last, state))

        print(f"[MAP_EVENTS] Assembled {len(datasets)} dataset(s) from {len(points)} point(s)"
              f" (fleet={is_fleet}, proximity={self.min_proximity_m} m)")
        return datasets

    def assemble_pois(self, pois: Sequence[Any]) -> Optional[Dataset]:
        """
        POI dataset: stopped pushpins, no date/time, no route.

        Returns:
            None when there are no POIs
        """
        if not pois:
            return None
        dataset = Dataset(kind=DATASET_POI, route=False)
        for ndx, poi in enumerate(pois):
            record = self.encoder.encode(poi, MotionState.STOPPED.code, is_fleet=False, with_date=False)
            dataset.entries.append(DatasetEntry(record, ndx, ndx == len(pois) - 1, MotionState.STOPPED))
        return dataset
