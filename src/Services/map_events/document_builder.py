# src/Services/map_events/document_builder.py
"""
Document Builder
================
Wraps resolved shapes and encoded datasets into the two map documents.

XML ("MapData"):
    <?xml version="1.0" encoding="UTF-8"?>
    <MapData isFleet="false">
       <Time timestamp="..." timezone="UTC" year="2024" month="5" day="1">2024/05/01|10:00:00</Time>
       <LastEvent device="veh1" ... battery="0.0" signal="0.0">2024/05/01|09:59:00</LastEvent>
       <Shape type="circle" radius="500" color="#0000FF" desc="Parked" ppNdx="-1"><![CDATA[37.000000/-122.000000]]></Shape>
       <DataColumns><![CDATA[id|desc|...|addr|]]></DataColumns>
       <DataSet type="device" id="veh1" route="true" routeColor="" textColor="">
          <P><![CDATA[veh1|...]]></P>
       </DataSet>
       <Action command="showpp">2</Action>
    </MapData>

JSON ("JMapData") mirrors the same content with "Shapes", "DataColumns",
"DataSets" and "Actions" keys.

The mini-protocol records are placed unchanged in both documents; all
document-level escaping happens here.
"""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, List, Optional, Sequence
from xml.sax.saxutils import escape, quoteattr

from .dataset_assembler import DATASET_POI, Dataset
from .geozone_resolver import GeofenceShape
from .record_encoder import CSV_SEPARATOR, DATA_COLUMNS


XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'
XML_INDENT = "   "

# characters XML 1.0 does not allow anywhere in a document
_XML_ILLEGAL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


# ==========================================================
# DOCUMENT MODEL
# ==========================================================

@dataclass(frozen=True)
class TimeBlock:
    timestamp: int
    timezone: str
    year: int
    month: int
    day: int
    date: str
    time: str


@dataclass(frozen=True)
class LastEventBlock:
    device: str
    time: TimeBlock
    battery: float = 0.0
    signal: float = 0.0


@dataclass(frozen=True)
class Action:
    command: str
    argument: str = ""


@dataclass
class MapDocument:
    is_fleet: bool
    time: TimeBlock
    last_event: Optional[LastEventBlock] = None
    shapes: List[GeofenceShape] = field(default_factory=list)
    data_columns: str = DATA_COLUMNS
    datasets: List[Dataset] = field(default_factory=list)
    actions: List[Action] = field(default_factory=list)
    separator: str = CSV_SEPARATOR


def time_block(epoch: int, tz: Optional[tzinfo], date_format: str, time_format: str) -> TimeBlock:
    """Render an epoch second in the display timezone."""
    dt = datetime.fromtimestamp(int(epoch), tz or timezone.utc)
    return TimeBlock(
        timestamp=int(epoch),
        timezone=dt.tzname() or "",
        year=dt.year,
        month=dt.month,
        day=dt.day,
        date=dt.strftime(date_format),
        time=dt.strftime(time_format),
    )


def parse_action(value: Optional[str]) -> Optional[Action]:
    """
    "command|argument" → Action (split on the first "|").

    Examples:
        >>> parse_action("zoompp|2")
        Action(command='zoompp', argument='2')
        >>> parse_action("|2") is None
        True
    """
    if value is None:
        return None
    command, _, argument = value.partition("|")
    if not command.strip():
        return None
    return Action(command, argument)


def parse_actions(values: Optional[Sequence[str]]) -> List[Action]:
    actions = []
    for v in values or ():
        action = parse_action(v)
        if action is not None:
            actions.append(action)
    return actions


def order_datasets(datasets: Sequence[Dataset]) -> List[Dataset]:
    """POI dataset first, everything else in its original order."""
    pois = [d for d in datasets if d.kind == DATASET_POI]
    others = [d for d in datasets if d.kind != DATASET_POI]
    return pois + others


def _number(value: float) -> Any:
    value = float(value or 0.0)
    return int(value) if value.is_integer() else value


def _bool(value: bool) -> str:
    return "true" if value else "false"


# ==========================================================
# XML
# ==========================================================

def _xml_text(value: Any) -> str:
    return _XML_ILLEGAL.sub("", str(value))


def _escape(value: Any) -> str:
    return escape(_xml_text(value))


def _cdata(text: str) -> str:
    # "]]>" cannot appear inside a CDATA section
    return "<![CDATA[" + _xml_text(text or "").replace("]]>", "]]]]><![CDATA[>") + "]]>"


def _attrs(**values: Any) -> str:
    return "".join(f" {name}={quoteattr(_xml_text(value))}" for name, value in values.items())


def _time_attrs(block: TimeBlock) -> Dict[str, Any]:
    return {
        "timestamp": block.timestamp,
        "timezone": block.timezone,
        "year": block.year,
        "month": block.month,
        "day": block.day,
    }


def to_xml(doc: MapDocument, top_level: bool = True) -> str:
    """
    Serialize the document as a MapData XML string.

    Args:
        doc: Assembled document
        top_level: Emit the XML declaration (False when embedded)
    """
    sep = doc.separator
    pfx1 = XML_INDENT
    pfx2 = XML_INDENT * 2
    parts: List[str] = []

    if top_level:
        parts.append(XML_HEADER)
    parts.append(f"<MapData{_attrs(isFleet=_bool(doc.is_fleet))}>\n")

    t = doc.time
    parts.append(f"{pfx1}<Time{_attrs(**_time_attrs(t))}>{_escape(t.date + sep + t.time)}</Time>\n")

    if doc.last_event is not None:
        le = doc.last_event
        attrs = _attrs(device=le.device, **_time_attrs(le.time), battery=le.battery, signal=le.signal)
        parts.append(f"{pfx1}<LastEvent{attrs}>{_escape(le.time.date + sep + le.time.time)}</LastEvent>\n")

    for shape in doc.shapes:
        attrs = _attrs(
            type=shape.shape_type,
            radius=_number(shape.radius_m),
            color=shape.color,
            desc=shape.description,
            ppNdx=shape.pushpin_index,
        )
        parts.append(f"{pfx1}<Shape{attrs}>{_cdata(','.join(shape.point_list))}</Shape>\n")

    parts.append(f"{pfx1}<DataColumns>{_cdata(doc.data_columns)}</DataColumns>\n")

    for ds in order_datasets(doc.datasets):
        if ds.kind == DATASET_POI:
            attrs = _attrs(type=ds.kind, route=_bool(ds.route))
        else:
            attrs = _attrs(
                type=ds.kind,
                id=ds.dataset_id,
                route=_bool(ds.route),
                routeColor=ds.route_color,
                textColor=ds.text_color,
            )
        parts.append(f"{pfx1}<DataSet{attrs}>\n")
        for record in ds.records:
            parts.append(f"{pfx2}<P>{_cdata(record)}</P>\n")
        parts.append(f"{pfx1}</DataSet>\n")

    for action in doc.actions:
        parts.append(f"{pfx1}<Action{_attrs(command=action.command)}>{_escape(action.argument)}</Action>\n")

    parts.append("</MapData>\n")
    return "".join(parts)


# ==========================================================
# JSON
# ==========================================================

def _time_json(block: TimeBlock) -> Dict[str, Any]:
    return {
        "timestamp": block.timestamp,
        "timezone": block.timezone,
        "YMD": {"YYYY": block.year, "MM": block.month, "DD": block.day},
        "date": block.date,
        "time": block.time,
    }


def to_json_dict(doc: MapDocument) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "isFleet": doc.is_fleet,
        "Time": _time_json(doc.time),
    }

    if doc.last_event is not None:
        le = doc.last_event
        last = {"device": le.device}
        last.update(_time_json(le.time))
        last["battery"] = le.battery
        last["signal"] = le.signal
        data["LastEvent"] = last

    if doc.shapes:
        data["Shapes"] = [
            {
                "type": s.shape_type,
                "radius": _number(s.radius_m),
                "color": s.color,
                "desc": s.description,
                "ppNdx": s.pushpin_index,
                "Points": s.point_list,
            }
            for s in doc.shapes
        ]

    data["DataColumns"] = doc.data_columns

    datasets = []
    for ds in order_datasets(doc.datasets):
        if ds.kind == DATASET_POI:
            entry: Dict[str, Any] = {"type": ds.kind, "route": ds.route}
        else:
            entry = {
                "type": ds.kind,
                "id": ds.dataset_id,
                "route": ds.route,
                "routeColor": ds.route_color,
                "textColor": ds.text_color,
            }
        entry["Points"] = ds.records
        datasets.append(entry)
    data["DataSets"] = datasets

    if doc.actions:
        data["Actions"] = [{"cmd": a.command, "arg": a.argument} for a in doc.actions]

    return {"JMapData": data}


def to_json(doc: MapDocument, indent: Optional[int] = 3) -> str:
    return json.dumps(to_json_dict(doc), indent=indent, ensure_ascii=False)
