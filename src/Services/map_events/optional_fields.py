# src/Services/map_events/optional_fields.py
"""
Optional Event Fields
=====================
Extra per-point columns appended after the 21 fixed record fields.

The capability is configured once (from settings, at startup) and is
read-only afterwards; it is passed explicitly into every render call.
Device maps and fleet maps carry independent field lists.

Values:
- plain text is sanitized like every other record field
- "$HTML:..." / "$B64:..." values are base64 wrapped by the encoder
"""

from typing import Any, List, Optional, Protocol, Sequence


class OptionalEventFields(Protocol):
    def count(self, is_fleet: bool) -> int: ...

    def title(self, ndx: int, is_fleet: bool) -> str: ...

    def value(self, ndx: int, is_fleet: bool, point: Any) -> str: ...


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return f"{value:.1f}"
    return str(value)


def _default_title(name: str) -> str:
    # "engine_temp" -> "Engine Temp"
    return " ".join(part.capitalize() for part in name.replace("_", " ").split())


class ConfiguredOptionalFields:
    """
    Field-name list implementation.

    Each configured name is looked up on the point through `field_value(name)`
    (EventPoint checks its extra-field mapping first, then its attributes).
    Points without a value for a field produce an empty column, so the field
    count never changes from point to point.
    """

    def __init__(self, device_fields: Sequence[str] = (), fleet_fields: Sequence[str] = (), titles: Optional[dict] = None):
        self.device_fields: List[str] = [f.strip() for f in device_fields if f and f.strip()]
        self.fleet_fields: List[str] = [f.strip() for f in fleet_fields if f and f.strip()]
        self.titles = dict(titles or {})

    def _fields(self, is_fleet: bool) -> List[str]:
        return self.fleet_fields if is_fleet else self.device_fields

    def count(self, is_fleet: bool) -> int:
        return len(self._fields(is_fleet))

    def title(self, ndx: int, is_fleet: bool) -> str:
        fields = self._fields(is_fleet)
        if not (0 <= ndx < len(fields)):
            return ""
        name = fields[ndx]
        return self.titles.get(name) or _default_title(name)

    def value(self, ndx: int, is_fleet: bool, point: Any) -> str:
        fields = self._fields(is_fleet)
        if not (0 <= ndx < len(fields)):
            return ""
        lookup = getattr(point, "field_value", None)
        if not callable(lookup):
            return ""
        return _format_value(lookup(fields[ndx]))


def optional_fields_from_settings(settings: Any) -> Optional[ConfiguredOptionalFields]:
    """
    Build the process-wide optional field capability.

    Returns:
        None when neither device nor fleet fields are configured
    """
    device_fields = settings.optional_field_names(is_fleet=False)
    fleet_fields = settings.optional_field_names(is_fleet=True)
    if not device_fields and not fleet_fields:
        return None
    return ConfiguredOptionalFields(device_fields, fleet_fields)
