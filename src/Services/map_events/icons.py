# src/Services/map_events/icons.py
"""
Pushpin icon resolution.

The icon map is an ordered list of icon names; a record carries the index
of its icon within that list (record field 7).
"""

from typing import Any, Optional, Protocol, Sequence


ICON_PUSHPIN_BLACK = 0
ICON_PUSHPIN_BROWN = 1
ICON_PUSHPIN_RED = 2
ICON_PUSHPIN_ORANGE = 3
ICON_PUSHPIN_YELLOW = 4
ICON_PUSHPIN_GREEN = 5
ICON_PUSHPIN_BLUE = 6
ICON_PUSHPIN_PURPLE = 7
ICON_PUSHPIN_GRAY = 8
ICON_PUSHPIN_WHITE = 9

DEFAULT_ICON_KEYS = (
    "black", "brown", "red", "orange", "yellow",
    "green", "blue", "purple", "gray", "white",
)
"""Built-in pushpin colors, indexed by the ICON_PUSHPIN_* constants."""

NO_PUSHPIN = -1


def pushpin_icon_index(icon_name: Optional[str], icon_keys: Sequence[str], default: int) -> int:
    """
    Index of `icon_name` within `icon_keys`.

    - blank name → default
    - "#N" → N when it is a valid index
    - empty icon map → position within DEFAULT_ICON_KEYS (case-insensitive)

    Examples:
        >>> pushpin_icon_index("red", ["black", "red"], 0)
        1
        >>> pushpin_icon_index("#1", ["black", "red"], 0)
        1
        >>> pushpin_icon_index("green", [], 0)
        5
    """
    name = (icon_name or "").strip()
    if not name:
        return default

    if not icon_keys:
        lowered = name.lower()
        return DEFAULT_ICON_KEYS.index(lowered) if lowered in DEFAULT_ICON_KEYS else default

    if name.startswith("#"):
        try:
            ndx = int(name[1:])
        except ValueError:
            return default
        return ndx if 0 <= ndx < len(icon_keys) else default

    try:
        return list(icon_keys).index(name)
    except ValueError:
        return default


class IconResolver(Protocol):
    """selector + icon map + fleet flag → icon index"""

    def resolve(self, point: Any, icon_selector: Optional[str], icon_keys: Sequence[str], is_fleet: bool) -> int: ...


class DefaultIconResolver:
    """
    Icon resolution used when the account has no custom icon selector.

    Order of preference:
    1. the status code icon of the event (if any)
    2. "fleet" icon on fleet maps
    3. heading icons ("heading0".."heading7") when the selector is "heading"
       and the device is moving
    4. an explicit icon name given as selector
    5. green when moving, red when stopped
    """

    def resolve(self, point: Any, icon_selector: Optional[str], icon_keys: Sequence[str], is_fleet: bool) -> int:
        status_icon = getattr(point, "status_icon", "")
        if status_icon:
            ndx = pushpin_icon_index(status_icon, icon_keys, NO_PUSHPIN)
            if ndx != NO_PUSHPIN:
                return ndx

        if is_fleet:
            ndx = pushpin_icon_index("fleet", icon_keys, NO_PUSHPIN)
            if ndx != NO_PUSHPIN:
                return ndx

        selector = (icon_selector or "").strip()
        moving = getattr(point, "speed_kph", 0.0) > 0.0

        if selector == "heading" and moving:
            octant = int(round(getattr(point, "heading", 0.0) / 45.0)) % 8
            ndx = pushpin_icon_index(f"heading{octant}", icon_keys, NO_PUSHPIN)
            if ndx != NO_PUSHPIN:
                return ndx

        if selector and selector != "heading":
            ndx = pushpin_icon_index(selector, icon_keys, NO_PUSHPIN)
            if ndx != NO_PUSHPIN:
                return ndx

        fallback = "green" if moving else "red"
        default = ICON_PUSHPIN_GREEN if moving else ICON_PUSHPIN_RED
        return pushpin_icon_index(fallback, icon_keys, default)
