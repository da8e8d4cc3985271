from datetime import datetime, timezone
from types import SimpleNamespace

from src.Models.device import Device
from src.Repositories.account import to_account_info
from src.Repositories.device import parse_status_codes, to_device_info
from src.Repositories.geofence import to_geozone
from src.Repositories.gps_data import to_event_point
from src.Repositories.point_of_interest import to_poi_point
from src.Services.map_events.status_codes import STATUS_MOTION_START, STATUS_MOTION_STOP, default_status_provider

UTC = timezone.utc


def _device_row(**kwargs) -> SimpleNamespace:
    values = dict(
        DeviceID="TRUCK-001",
        Name="Truck 1",
        Description=None,
        VehicleID=None,
        DisplayColor="#AA0000",
        StartStopSupported=True,
        StartCodes="0xF111",
        StopCodes="61715, bogus",
        ParkedLatitude=None,
        ParkedLongitude=None,
        ParkedRadius=None,
    )
    values.update(kwargs)
    return SimpleNamespace(**values)


def _event_row(**kwargs) -> SimpleNamespace:
    values = dict(
        DeviceID="TRUCK-001",
        Timestamp=datetime(2010, 3, 12, 11, 50, 40, tzinfo=UTC),
        CreatedAt=datetime(2010, 3, 12, 11, 50, 50, tzinfo=UTC),
        StatusCode=STATUS_MOTION_STOP,
        Latitude=37.0,
        Longitude=-122.0,
        Altitude=7.0,
        Accuracy=4.0,
        SatelliteCount=8,
        GpsAge=2,
        CellLatitude=None,
        CellLongitude=None,
        CellAccuracy=None,
        Speed=0.0,
        Heading=90.0,
        Odometer=120.5,
        InputMask=1,
        Address=None,
        CurrentGeofenceID=None,
        ExtraFields={"driver": "Ana"},
    )
    values.update(kwargs)
    return SimpleNamespace(**values)


def test_parse_status_codes() -> None:
    assert parse_status_codes("0xF111, 61715, bogus,,") == frozenset({STATUS_MOTION_START, STATUS_MOTION_STOP})
    assert parse_status_codes(None) == frozenset()


def test_to_device_info() -> None:
    info = to_device_info(_device_row())

    assert info.device_id == "TRUCK-001"
    assert info.description == "Truck 1"
    assert info.vin == ""
    assert info.has_display_color
    assert info.start_stop_supported
    assert info.start_codes == frozenset({STATUS_MOTION_START})
    assert info.stop_codes == frozenset({STATUS_MOTION_STOP})
    assert not info.has_parked_location


def test_device_model_columns_are_all_rendered_or_filtered() -> None:
    rendered = {
        "DeviceID", "Name", "Description", "VehicleID", "DisplayColor", "StartStopSupported",
        "StartCodes", "StopCodes", "ParkedLatitude", "ParkedLongitude", "ParkedRadius",
    }
    assert set(Device.__table__.columns.keys()) == rendered | {"AccountID", "IsActive", "CreatedAt"}

    device = Device(
        DeviceID="TRUCK-002",
        AccountID="acme",
        Name="Truck 2",
        DisplayColor="#00AA00",
        StartStopSupported=False,
        ParkedLatitude=37.1,
        ParkedLongitude=-122.1,
        ParkedRadius=250.0,
    )
    info = to_device_info(device)

    assert info.device_id == "TRUCK-002"
    assert info.display_color == "#00AA00"
    assert info.has_parked_location
    assert info.parked_radius_m == 250.0


def test_to_event_point() -> None:
    device = to_device_info(_device_row())
    now = datetime(2010, 3, 12, 11, 51, 50, tzinfo=UTC)
    point = to_event_point(_event_row(), device, default_status_provider, now)

    assert point.timestamp == 1268394640
    assert point.creation_age == 60
    assert point.status_description == "Stop"
    assert point.status_style == "background-color:#FF0000;"
    assert point.cell_latitude == 0.0
    assert point.address == ""
    assert point.geozone_id == ""
    assert point.field_value("driver") == "Ana"
    assert point.is_stop_event()


def test_to_geozone_reads_stored_vertices() -> None:
    row = SimpleNamespace(
        id="z1", kind="polygon", radius=None, points=[[37.0, -122.0], [37.1, -122.0], ["bad"], [37.1, -122.1]],
        geometry=None, color=None, description=None, name="Yard", pushpin_id=None,
    )
    zone = to_geozone(row)

    assert zone.points == ((37.0, -122.0), (37.1, -122.0), (37.1, -122.1))
    assert zone.description == "Yard"
    assert zone.radius_m == 0.0
    assert zone.color == ""


def test_to_poi_point() -> None:
    row = SimpleNamespace(id="p1", description="Depot", latitude=37.5, longitude=-121.9, address=None, icon_name="blue")
    poi = to_poi_point(row)

    assert poi.record_id == "p1"
    assert poi.address == ""
    assert poi.has_gps_fix


def test_to_account_info() -> None:
    assert to_account_info(None) is None
    row = SimpleNamespace(AccountID="acme", TimeZone=None, DateFormat="%d/%m/%Y", TimeFormat=None)
    assert to_account_info(row).date_format == "%d/%m/%Y"
