# src/Services/map_events/record_encoder.py
"""
Record Encoder
==============
Encodes one renderable point into the delimited map event record consumed
by the browser map decoder.

Record layout (default separator "|"):
    0  id           7  icon index    14 speed kph     21+ optional fields
    1  description  8  latitude      15 heading
    2  epoch        9  longitude     16 altitude m
    3  date        10  gps age       17 odometer km
    4  time        11  create age    18 motion state
    5  timezone    12  accuracy m    19 input mask
    6  status      13  satellites    20 "address"

Example:
    veh1|Truck 1|1268394640|2010/03/12|05:50:40|UTC|InMotion|5|37.000000|-122.000000|0|0|0.0|7|45.0|227.7|7|16124.9|0|0|"I-5 Lathrop"

The field order is positional: the decoder generated by decoder_js.py reads
the same FIELD_NAMES constant, so both must change together.
"""

import base64
import html
from datetime import datetime, timezone, tzinfo
from typing import Any, List, Optional, Sequence, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .icons import IconResolver
from .optional_fields import OptionalEventFields
from .status_codes import StatusDescriptionProvider


CSV_SEPARATOR = "|"

MAP_ESCAPE_HTML = "$HTML:"
MAP_ESCAPE_B64 = "$B64:"

FIELD_NAMES = (
    "id", "desc", "epoch", "date", "time", "tmz", "status", "icon",
    "lat", "lon", "gpsAge", "createAge", "acc", "sats", "kph", "heading",
    "alt", "odomkm", "stopped", "gpio", "addr",
)
FIXED_FIELD_COUNT = len(FIELD_NAMES)


def data_columns(sep: str = CSV_SEPARATOR) -> str:
    """DataColumns legend: the fixed field names, each followed by the separator."""
    return "".join(name + sep for name in FIELD_NAMES)


DATA_COLUMNS = data_columns()

# punctuation passed through unchanged ("&", "`" and quotes are not here)
_ALLOWED_PUNCTUATION = frozenset("!#$()*+,-.:;=[]^_{}?~@/%")


# characters the encoder emits on its own: escapes, bracket and slash
# mapping, quoted address, number formatting, "$HTML:" prefix and base64
_RESERVED_SEPARATORS = frozenset('\\/()"+=$:.-')


def check_separator(sep: Optional[str]) -> str:
    """
    Validate a record separator.

    The separator must be one printable ASCII character that no encoded
    field can contain (letters, digits, space and the reserved set are
    rejected).

    Raises:
        ValueError: If the separator could appear inside a field
    """
    if not sep or len(sep) != 1:
        raise ValueError(f"Record separator must be a single character, got {sep!r}")
    if not ("!" <= sep <= "~") or sep.isalnum() or sep in _RESERVED_SEPARATORS:
        raise ValueError(f"Record separator {sep!r} can appear inside an encoded field")
    return sep


def _unicode_escape(ch: str) -> str:
    cp = ord(ch)
    if cp > 0xFFFF:
        # the decoder works on UTF-16 code units
        cp -= 0x10000
        high = 0xD800 + (cp >> 10)
        low = 0xDC00 + (cp & 0x3FF)
        return f"\\u{high:04x}\\u{low:04x}"
    return f"\\u{cp:04x}"


def encode_text(value: Optional[str], sep: str = CSV_SEPARATOR) -> str:
    """
    Sanitize free text for inclusion in a record field.

    Rules (first match wins):
    - control characters (< 0x20) and quotes are dropped
    - the separator becomes a space
    - ASCII digits pass
    - any whitespace becomes one space
    - "\\" and "/" become "/"
    - "<" / ">" become "(" / ")"
    - allow-listed punctuation and ASCII letters pass
    - anything above 0x7E becomes "\\uXXXX"
    - everything else is dropped

    Examples:
        >>> encode_text('Main St. <North> "A|B"')
        'Main St. (North) A B'
        >>> encode_text("Vía 1")
        'V\\\\u00eda 1'
    """
    if not value:
        return ""

    out: List[str] = []
    for ch in str(value):
        cp = ord(ch)
        if cp < 0x20:
            continue
        if ch == '"' or ch == "'":
            continue
        if ch == sep:
            out.append(" ")
        elif "0" <= ch <= "9":
            out.append(ch)
        elif ch.isspace():
            out.append(" ")
        elif ch == "\\" or ch == "/":
            out.append("/")
        elif ch == "<":
            out.append("(")
        elif ch == ">":
            out.append(")")
        elif ch in _ALLOWED_PUNCTUATION:
            out.append(ch)
        elif "A" <= ch <= "Z" or "a" <= ch <= "z":
            out.append(ch)
        elif cp > 0x7E:
            out.append(_unicode_escape(ch))
    return "".join(out)


def base64_text(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def encode_optional_value(value: Optional[str], sep: str = CSV_SEPARATOR) -> str:
    """
    Encode one optional field value.

    "$HTML:" and "$B64:" prefixed values keep their prefix and carry the
    remainder base64 encoded; anything else is sanitized.
    """
    v = (value or "").strip()
    for prefix in (MAP_ESCAPE_HTML, MAP_ESCAPE_B64):
        if v.startswith(prefix):
            return prefix + base64_text(v[len(prefix):])
    return encode_text(v, sep)


def styled_status(text: str, style: str) -> str:
    fragment = f'<span style="{style}">{html.escape(text or "", quote=True)}</span>'
    return MAP_ESCAPE_HTML + base64_text(fragment)


def resolve_timezone(tz: Union[str, tzinfo, None]) -> Optional[tzinfo]:
    """IANA name or tzinfo → tzinfo (unknown names fall back to UTC)."""
    if tz is None or isinstance(tz, tzinfo):
        return tz
    name = tz.strip()
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        print(f"[MAP_EVENTS] Unknown timezone '{name}', using UTC")
        return timezone.utc


class RecordEncoder:
    """
    Render-call scoped record encoder.

    All configuration is fixed at construction so that encoding the same
    point twice yields the same string.

    Args:
        separator: Field separator (single character)
        include_status_color: Emit styled status fields when a style exists
        status_provider: Fallback description source for points without one
        optional_fields: Extra field capability (None = no extra fields)
        icon_resolver / icon_selector / icon_keys: Pushpin icon resolution
        timezone / date_format / time_format: Local date/time rendering;
            date_format None leaves fields 3-5 empty
    """

    def __init__(
        self,
        separator: str = CSV_SEPARATOR,
        include_status_color: bool = True,
        status_provider: Optional[StatusDescriptionProvider] = None,
        optional_fields: Optional[OptionalEventFields] = None,
        icon_resolver: Optional[IconResolver] = None,
        icon_selector: Optional[str] = None,
        icon_keys: Sequence[str] = (),
        timezone: Union[str, tzinfo, None] = "UTC",
        date_format: Optional[str] = "%Y/%m/%d",
        time_format: Optional[str] = "%H:%M:%S",
    ):
        self.sep = check_separator(separator)
        self.include_status_color = include_status_color
        self.status_provider = status_provider
        self.optional_fields = optional_fields
        self.icon_resolver = icon_resolver
        self.icon_selector = icon_selector
        self.icon_keys = tuple(icon_keys)
        self.timezone = resolve_timezone(timezone)
        self.date_format = date_format
        self.time_format = time_format or ""

    def optional_field_count(self, is_fleet: bool) -> int:
        if self.optional_fields is None:
            return 0
        return self.optional_fields.count(is_fleet)

    # ------------------------------------------------------
    # field helpers
    # ------------------------------------------------------
    def _date_time_fields(self, timestamp: int, with_date: bool) -> List[str]:
        if not with_date or self.date_format is None or timestamp <= 0:
            return ["", "", ""]
        dt = datetime.fromtimestamp(timestamp, self.timezone or timezone.utc)
        return [
            encode_text(dt.strftime(self.date_format), self.sep),
            encode_text(dt.strftime(self.time_format), self.sep),
            encode_text(dt.tzname() or "", self.sep),
        ]

    def _status_field(self, point: Any) -> str:
        text = getattr(point, "status_description", "") or ""
        style = getattr(point, "status_style", "") or ""

        if not text and self.status_provider is not None and hasattr(point, "status_code"):
            described = self.status_provider.describe(point.status_code)
            if described is not None:
                text = described.text
                style = style or described.style

        if self.include_status_color and style:
            return styled_status(text, style)
        return encode_text(text, self.sep)

    # ------------------------------------------------------
    # public
    # ------------------------------------------------------
    def encode(
        self,
        point: Any,
        motion_code: int,
        is_fleet: bool,
        with_date: bool = True,
        fleet_icon: Optional[bool] = None
    ) -> str:
        """
        Encode one point.

        Args:
            point: RenderablePoint (EventPoint or PoiPoint)
            motion_code: Numeric motion state for field 18
            is_fleet: Selects the fleet optional-field list
            with_date: False omits date, time and timezone (POIs)
            fleet_icon: Use fleet pushpin resolution (defaults to is_fleet)

        Returns:
            str: 21 fixed fields plus the configured optional fields
        """
        has_fix = point.has_gps_fix
        icon_fleet = is_fleet if fleet_icon is None else fleet_icon

        fields: List[str] = [
            encode_text(point.record_id, self.sep),
            encode_text(point.display_description, self.sep),
            str(int(point.timestamp or 0)),
        ]
        fields.extend(self._date_time_fields(int(point.timestamp or 0), with_date))
        fields.append(self._status_field(point))
        fields.append(str(point.pushpin_index(self.icon_resolver, self.icon_selector, self.icon_keys, icon_fleet)))
        fields.append(f"{point.best_latitude:.6f}")
        fields.append(f"{point.best_longitude:.6f}")
        fields.append(str(int(getattr(point, "gps_age", 0) or 0)))
        fields.append(str(int(getattr(point, "creation_age", 0) or 0)))
        fields.append(f"{point.best_accuracy_m or 0.0:.1f}")
        fields.append(str(int(getattr(point, "satellite_count", 0) or 0)) if has_fix else "-1")
        fields.append(f"{point.speed_kph or 0.0:.1f}")
        fields.append(f"{getattr(point, 'heading', 0.0) or 0.0:.1f}")
        fields.append(f"{getattr(point, 'altitude_m', 0.0) or 0.0:.0f}")
        fields.append(f"{getattr(point, 'odometer_km', 0.0) or 0.0:.1f}")
        fields.append(str(int(motion_code)))
        fields.append(str(int(getattr(point, "input_mask", 0) or 0)))
        fields.append('"' + encode_text(getattr(point, "address", ""), self.sep) + '"')

        for ndx in range(self.optional_field_count(is_fleet)):
            raw = self.optional_fields.value(ndx, is_fleet, point)
            fields.append(encode_optional_value(raw, self.sep))

        return self.sep.join(fields)
