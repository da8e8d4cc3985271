import io
import json
import xml.etree.ElementTree as ET
from collections import Counter

import pytest

from src.Schemas.map_data import LastEventInfo, MapDisplayOptions
from src.Services.map_events.dataset_assembler import DATASET_DEVICE, Dataset
from src.Services.map_events.document_builder import (
    Action,
    LastEventBlock,
    MapDocument,
    _cdata,
    parse_action,
    parse_actions,
    time_block,
    to_xml,
)
from src.Services.map_events.geozone_resolver import GeofenceShape, Geozone
from src.Services.map_events.map_writer import (
    AccountInfo,
    MapDataFormat,
    MapRenderRequest,
    parse_map_data_format,
    render_map_document,
    write_map_events,
)
from src.Services.map_events.optional_fields import ConfiguredOptionalFields
from src.Services.map_events.points import DeviceInfo, EventPoint, PoiPoint
from src.Services.map_events.record_encoder import DATA_COLUMNS

NOW = 1268394640
ACCOUNT = AccountInfo("acme")
DEVICE = DeviceInfo(
    "veh1",
    description="Truck 1",
    display_color="#AA0000",
    parked_latitude=37.1,
    parked_longitude=-122.1,
    parked_radius_m=250.0,
)


class ZoneLookup:
    def __init__(self, zones):
        self.zones = zones

    def zones_containing(self, account_id, latitude, longitude):
        return self.zones

    def zone_by_id(self, account_id, zone_id):
        return None

    def zones_in_bounds(self, account_id, bounds):
        return []


def _request(**kwargs) -> MapRenderRequest:
    values = dict(
        points=[
            EventPoint("veh1", NOW - 60, 37.0, -122.0, device_info=DEVICE, speed_kph=45.0, address="Main & 1st"),
            EventPoint("veh1", NOW, 37.01, -122.01, device_info=DEVICE, speed_kph=0.0),
        ],
        is_fleet=False,
        selected_id="veh1",
        pois=[PoiPoint("p1", "Depot", 37.5, -121.9)],
        actions=["zoompp|2", "|ignored", "showpp"],
        last_event=LastEventInfo(device_id="veh1", timestamp=NOW, battery=0.8, signal=0.5),
    )
    values.update(kwargs)
    return MapRenderRequest(**values)


def _write(fmt: MapDataFormat, request: MapRenderRequest = None, **kwargs) -> str:
    out = io.StringIO()
    ok = write_map_events(
        fmt,
        out,
        ACCOUNT,
        request or _request(),
        MapDisplayOptions(),
        geozone_lookup=ZoneLookup([Geozone("z1", "polygon", 0.0, ((37.0, -122.0), (37.0, -121.9), (36.9, -121.9)))]),
        now=NOW,
        **kwargs,
    )
    assert ok
    return out.getvalue()


# ==========================================================
# format dispatch
# ==========================================================

def test_parse_map_data_format() -> None:
    assert parse_map_data_format("XML") is MapDataFormat.XML
    assert parse_map_data_format(" json ") is MapDataFormat.JSON
    assert parse_map_data_format("", MapDataFormat.XML) is MapDataFormat.XML
    with pytest.raises(ValueError):
        parse_map_data_format("yaml")


def test_missing_account_writes_nothing() -> None:
    out = io.StringIO()
    ok = write_map_events(MapDataFormat.JSON, out, None, _request(), MapDisplayOptions())

    assert ok is False
    assert out.getvalue() == ""
    assert render_map_document(None, _request(), MapDisplayOptions()) is None


# ==========================================================
# XML
# ==========================================================

def test_xml_document_structure() -> None:
    text = _write(MapDataFormat.XML)
    assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<MapData isFleet="false">')

    root = ET.fromstring(text.encode("utf-8"))
    assert [child.tag for child in root] == [
        "Time", "LastEvent", "Shape", "Shape", "DataColumns", "DataSet", "DataSet", "Action", "Action",
    ]

    time_el = root.find("Time")
    assert time_el.attrib == {"timestamp": str(NOW), "timezone": "UTC", "year": "2010", "month": "3", "day": "12"}
    assert time_el.text == "2010/03/12|11:50:40"

    last = root.find("LastEvent")
    assert last.get("device") == "veh1"
    assert last.get("battery") == "0.8"
    assert last.get("signal") == "0.5"

    parked, zone = root.findall("Shape")
    assert parked.attrib == {"type": "circle", "radius": "250", "color": "#0000FF", "desc": "Parked", "ppNdx": "-1"}
    assert parked.text == "37.100000/-122.100000"
    assert zone.get("type") == "polygon"
    assert zone.get("color") == "#00FF00"
    assert zone.text == "37.000000/-122.000000,37.000000/-121.900000,36.900000/-121.900000"

    assert root.find("DataColumns").text == DATA_COLUMNS

    poi_set, device_set = root.findall("DataSet")
    assert poi_set.attrib == {"type": "poi", "route": "false"}
    assert device_set.attrib == {
        "type": "device", "id": "veh1", "route": "true", "routeColor": "#AA0000", "textColor": "",
    }
    records = [p.text for p in device_set.findall("P")]
    assert len(records) == 2
    assert records[0].split("|")[20] == '"Main  1st"'

    actions = root.findall("Action")
    assert [(a.get("command"), a.text) for a in actions] == [("zoompp", "2"), ("showpp", None)]


def test_xml_without_declaration() -> None:
    assert _write(MapDataFormat.XML, top_level=False).startswith("<MapData ")


def test_cdata_never_closes_early() -> None:
    root = ET.fromstring(f"<P>{_cdata('a]]>b')}</P>")
    assert root.text == "a]]>b"


def test_xml_drops_characters_xml_cannot_carry() -> None:
    tb = time_block(NOW, None, "%Y/%m/%d", "%H:%M:%S")
    doc = MapDocument(
        is_fleet=False,
        time=tb,
        last_event=LastEventBlock("veh\x011", tb),
        shapes=[GeofenceShape("z1", "circle", 100.0, ((37.0, -122.0),), "#00FF00", "Yard\x0bNorth")],
        datasets=[Dataset(DATASET_DEVICE, dataset_id="veh\x1f1")],
        actions=[Action("zoom\x00pp", "2\x0c")],
    )
    root = ET.fromstring(to_xml(doc).encode("utf-8"))

    assert root.find("Shape").get("desc") == "YardNorth"
    assert root.find("LastEvent").get("device") == "veh1"
    assert root.find("DataSet").get("id") == "veh1"
    action = root.find("Action")
    assert (action.get("command"), action.text) == ("zoompp", "2")
    assert ET.fromstring(f"<P>{_cdata('a' + chr(2) + 'b')}</P>").text == "ab"


# ==========================================================
# JSON
# ==========================================================

def test_json_document_structure() -> None:
    data = json.loads(_write(MapDataFormat.JSON))
    jmap = data["JMapData"]

    assert jmap["isFleet"] is False
    assert jmap["Time"] == {
        "timestamp": NOW,
        "timezone": "UTC",
        "YMD": {"YYYY": 2010, "MM": 3, "DD": 12},
        "date": "2010/03/12",
        "time": "11:50:40",
    }
    assert jmap["LastEvent"]["device"] == "veh1"
    assert jmap["LastEvent"]["battery"] == 0.8
    assert [s["type"] for s in jmap["Shapes"]] == ["circle", "polygon"]
    assert jmap["Shapes"][0]["Points"] == ["37.100000/-122.100000"]
    assert jmap["Shapes"][0]["ppNdx"] == -1
    assert jmap["DataColumns"] == DATA_COLUMNS
    assert [d["type"] for d in jmap["DataSets"]] == ["poi", "device"]
    assert set(jmap["DataSets"][0]) == {"type", "route", "Points"}
    assert jmap["DataSets"][1]["routeColor"] == "#AA0000"
    assert jmap["Actions"] == [{"cmd": "zoompp", "arg": "2"}, {"cmd": "showpp", "arg": ""}]


def test_json_omits_empty_optional_blocks() -> None:
    request = _request(is_fleet=True, selected_id="all", actions=[], last_event=None)
    out = io.StringIO()
    write_map_events(MapDataFormat.JSON, out, ACCOUNT, request, MapDisplayOptions(include_geozones=False), now=NOW)
    jmap = json.loads(out.getvalue())["JMapData"]

    assert jmap["isFleet"] is True
    assert "Shapes" not in jmap
    assert "Actions" not in jmap
    assert "LastEvent" not in jmap


def test_xml_and_json_carry_the_same_records() -> None:
    optional = ConfiguredOptionalFields(device_fields=["note"])
    request = _request(points=[
        EventPoint("veh1", NOW, 37.0, -122.0, device_info=DEVICE, extra_fields={"note": "$HTML:<b>late</b>"}),
        EventPoint("veh1", NOW + 1, 37.2, -122.2, device_info=DEVICE, address="Calle Ñandú"),
    ])

    root = ET.fromstring(_write(MapDataFormat.XML, request, optional_fields=optional).encode("utf-8"))
    xml_records = Counter(p.text for ds in root.findall("DataSet") for p in ds.findall("P"))

    jmap = json.loads(_write(MapDataFormat.JSON, request, optional_fields=optional))["JMapData"]
    json_records = Counter(r for ds in jmap["DataSets"] for r in ds["Points"])

    assert xml_records == json_records
    assert all(len(r.split("|")) == 22 for r in json_records)


def test_account_preferences_override_options() -> None:
    account = AccountInfo("acme", date_format="%d.%m.%Y", time_format="%H:%M")
    doc = render_map_document(account, _request(), MapDisplayOptions(), now=NOW)

    assert doc.time.date == "12.03.2010"
    assert doc.time.time == "11:50"
    assert doc.shapes == []


# ==========================================================
# actions
# ==========================================================

def test_parse_action() -> None:
    assert parse_action("zoompp|2|extra") == Action("zoompp", "2|extra")
    assert parse_action("showpp") == Action("showpp", "")
    assert parse_action("|2") is None
    assert parse_action(None) is None
    assert parse_actions(["a|1", "  ", "b"]) == [Action("a", "1"), Action("b", "")]
