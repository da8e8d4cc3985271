# src/Services/map_events/status_codes.py
"""
Status code descriptions.

A StatusDescriptionProvider maps a numeric status code to display text plus
an optional CSS style string used by the "include status color" option.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Protocol


STATUS_NONE = 0x0000
STATUS_LOCATION = 0xF020
STATUS_WAYMARK = 0xF030
STATUS_MOTION_START = 0xF111
STATUS_IN_MOTION = 0xF112
STATUS_MOTION_STOP = 0xF113
STATUS_DORMANT = 0xF114
STATUS_IGNITION_ON = 0xF401
STATUS_IGNITION_OFF = 0xF403
STATUS_GEOFENCE_ARRIVE = 0xF210
STATUS_GEOFENCE_DEPART = 0xF230


@dataclass(frozen=True)
class StatusDescription:
    text: str
    style: str = ""

    @property
    def has_style(self) -> bool:
        return bool(self.style)


class StatusDescriptionProvider(Protocol):
    """code → localized text + optional style"""

    def describe(self, status_code: int) -> Optional[StatusDescription]: ...


DEFAULT_STATUS_TABLE: Dict[int, StatusDescription] = {
    STATUS_NONE: StatusDescription("None"),
    STATUS_LOCATION: StatusDescription("Location"),
    STATUS_WAYMARK: StatusDescription("Waymark"),
    STATUS_MOTION_START: StatusDescription("Start", "background-color:#00FF00;"),
    STATUS_IN_MOTION: StatusDescription("InMotion"),
    STATUS_MOTION_STOP: StatusDescription("Stop", "background-color:#FF0000;"),
    STATUS_DORMANT: StatusDescription("Dormant"),
    STATUS_IGNITION_ON: StatusDescription("Ignition_On"),
    STATUS_IGNITION_OFF: StatusDescription("Ignition_Off"),
    STATUS_GEOFENCE_ARRIVE: StatusDescription("Arrive", "background-color:#FFFF00;"),
    STATUS_GEOFENCE_DEPART: StatusDescription("Depart", "background-color:#FFFF00;"),
}


class TableStatusDescriptionProvider:
    """
    Dictionary backed provider. Unknown codes are described by their hex value
    ("0xF0FF") so the record never carries an empty status.
    """

    def __init__(self, table: Optional[Dict[int, StatusDescription]] = None):
        self.table = dict(DEFAULT_STATUS_TABLE if table is None else table)

    def describe(self, status_code: int) -> Optional[StatusDescription]:
        found = self.table.get(status_code)
        if found is not None:
            return found
        return StatusDescription(f"0x{status_code:04X}")


default_status_provider = TableStatusDescriptionProvider()
