import pytest

from src.Services.map_events.motion_state import MotionState, MotionStateClassifier
from src.Services.map_events.optional_fields import ConfiguredOptionalFields
from src.Services.map_events.points import DeviceInfo, EventPoint, PoiPoint
from src.Services.map_events.record_encoder import (
    DATA_COLUMNS,
    FIELD_NAMES,
    FIXED_FIELD_COUNT,
    RecordEncoder,
    base64_text,
    check_separator,
    data_columns,
    encode_optional_value,
    encode_text,
)
from src.Services.map_events.status_codes import STATUS_MOTION_STOP, default_status_provider


def _event(**kwargs) -> EventPoint:
    values = dict(
        device_id="veh1",
        timestamp=1268394640,
        latitude=37.0,
        longitude=-122.0,
        speed_kph=45.0,
        heading=227.7,
        satellite_count=7,
        address="I-5 Lathrop",
    )
    values.update(kwargs)
    return EventPoint(**values)


# ==========================================================
# sanitizer
# ==========================================================

def test_encode_text_maps_brackets_and_drops_quotes() -> None:
    assert encode_text('Main St. <North> "A|B"') == "Main St. (North) A B"


def test_encode_text_backslash_and_slash_become_slash() -> None:
    assert encode_text("a\\b/c") == "a/b/c"


def test_encode_text_drops_control_characters() -> None:
    assert encode_text("a\tb\nc\x00d") == "abcd"


def test_encode_text_non_ascii_whitespace_becomes_space() -> None:
    assert encode_text("a\u00a0b") == "a b"


def test_encode_text_escapes_non_ascii() -> None:
    assert encode_text("Vía") == "V\\u00eda"
    assert encode_text("\x7f") == "\\u007f"


def test_encode_text_escapes_astral_as_surrogate_pair() -> None:
    assert encode_text("\U0001F600") == "\\ud83d\\ude00"


def test_encode_text_drops_unlisted_punctuation() -> None:
    assert encode_text("R&D `x`") == "RD x"


def test_encode_text_uses_custom_separator() -> None:
    assert encode_text("a,b|c", sep=",") == "a bc"


def test_encode_text_never_emits_reserved_characters() -> None:
    sample = "\"'<>|\\/ é中 &%$#@!\r\n\t" + "".join(chr(c) for c in range(0x20, 0x80))
    out = encode_text(sample)
    for ch in ('|', '"', "'", "<", ">"):
        assert ch not in out


def test_encode_text_empty_values() -> None:
    assert encode_text(None) == ""
    assert encode_text("") == ""


# ==========================================================
# optional values
# ==========================================================

def test_optional_value_html_prefix_is_base64_wrapped() -> None:
    assert encode_optional_value("$HTML:<b>x</b>") == "$HTML:" + base64_text("<b>x</b>")


def test_optional_value_b64_prefix_is_base64_wrapped() -> None:
    assert encode_optional_value("$B64:a|b") == "$B64:" + base64_text("a|b")


def test_optional_value_unknown_prefix_is_sanitized() -> None:
    assert encode_optional_value("$XYZ:a|b") == "$XYZ:a b"


# ==========================================================
# record layout
# ==========================================================

def test_data_columns_legend() -> None:
    assert len(FIELD_NAMES) == FIXED_FIELD_COUNT == 21
    assert DATA_COLUMNS.startswith("id|desc|epoch|")
    assert DATA_COLUMNS.endswith("addr|")
    assert DATA_COLUMNS.count("|") == 21
    assert data_columns(",").count(",") == 21


def test_moving_event_example() -> None:
    point = _event()
    classifier = MotionStateClassifier()
    classifier.reset(start_stop_supported=False)
    state = classifier.classify(point)

    fields = RecordEncoder().encode(point, state.code, is_fleet=False).split("|")

    assert len(fields) == 21
    assert fields[0] == "veh1"
    assert fields[18] == "0"
    assert fields[8] == "37.000000"
    assert fields[9] == "-122.000000"


def test_fixed_field_formatting() -> None:
    point = _event(
        device_info=DeviceInfo("veh1", description="Truck 1", vin="VIN-1"),
        gps_age=3,
        creation_age=5,
        accuracy_m=4.26,
        altitude_m=7.4,
        odometer_km=16124.94,
        input_mask=9,
    )
    fields = RecordEncoder().encode(point, MotionState.STOPPED.code, is_fleet=False).split("|")

    assert fields[0] == "VIN-1"
    assert fields[1] == "Truck 1"
    assert fields[2] == "1268394640"
    assert fields[3] == "2010/03/12"
    assert fields[4] == "11:50:40"
    assert fields[5] == "UTC"
    assert fields[10] == "3"
    assert fields[11] == "5"
    assert fields[12] == "4.3"
    assert fields[13] == "7"
    assert fields[14] == "45.0"
    assert fields[15] == "227.7"
    assert fields[16] == "7"
    assert fields[17] == "16124.9"
    assert fields[18] == "1"
    assert fields[19] == "9"
    assert fields[20] == '"I-5 Lathrop"'


def test_cell_location_fallback_marks_satellites() -> None:
    point = _event(latitude=0.0, longitude=0.0, cell_latitude=36.5, cell_longitude=-121.5, cell_accuracy_m=850.0)
    fields = RecordEncoder().encode(point, 0, is_fleet=False).split("|")

    assert fields[8] == "36.500000"
    assert fields[9] == "-121.500000"
    assert fields[12] == "850.0"
    assert fields[13] == "-1"


def test_missing_location_degrades_to_zero() -> None:
    point = _event(latitude=0.0, longitude=0.0)
    fields = RecordEncoder().encode(point, 0, is_fleet=False).split("|")

    assert fields[8] == "0.000000"
    assert fields[9] == "0.000000"
    assert fields[13] == "-1"


def test_status_field_uses_style_when_enabled() -> None:
    point = _event(status_code=STATUS_MOTION_STOP)

    styled = RecordEncoder(status_provider=default_status_provider).encode(point, 0, is_fleet=False).split("|")
    plain = RecordEncoder(status_provider=default_status_provider, include_status_color=False).encode(
        point, 0, is_fleet=False
    ).split("|")

    span = '<span style="background-color:#FF0000;">Stop</span>'
    assert styled[6] == "$HTML:" + base64_text(span)
    assert plain[6] == "Stop"


def test_status_field_prefers_point_description() -> None:
    point = _event(status_code=STATUS_MOTION_STOP, status_description="Parked <long>")
    fields = RecordEncoder(status_provider=default_status_provider).encode(point, 0, is_fleet=False).split("|")

    assert fields[6] == "Parked (long)"


def test_without_date_leaves_time_fields_empty() -> None:
    fields = RecordEncoder().encode(_event(), 0, is_fleet=False, with_date=False).split("|")
    assert fields[2] == "1268394640"
    assert fields[3:6] == ["", "", ""]


def test_unknown_timezone_falls_back_to_utc() -> None:
    fields = RecordEncoder(timezone="Mars/Olympus_Mons").encode(_event(), 0, is_fleet=False).split("|")
    assert fields[5] == "UTC"


def test_separator_must_be_single_character() -> None:
    with pytest.raises(ValueError):
        RecordEncoder(separator="||")
    with pytest.raises(ValueError):
        RecordEncoder(separator="")


def test_separator_that_encoded_text_can_produce_is_rejected() -> None:
    for sep in ("/", "\\", "u", "a", "7", " ", "(", ")", "+", "=", '"', "$", ":", ".", "-", "\u00a7"):
        with pytest.raises(ValueError):
            RecordEncoder(separator=sep)
        with pytest.raises(ValueError):
            check_separator(sep)


def test_accepted_separator_keeps_the_field_count() -> None:
    point = _event(address="C:\\dir/sub <B> Ñ", extra_fields={"note": "$HTML:<i>x</i>"})
    optional = ConfiguredOptionalFields(device_fields=["note"])
    for sep in (",", ";", "#", "~"):
        record = RecordEncoder(separator=sep, optional_fields=optional).encode(point, 0, is_fleet=False)
        assert len(record.split(sep)) == FIXED_FIELD_COUNT + 1


def test_free_text_cannot_break_the_field_count() -> None:
    point = _event(
        device_info=DeviceInfo("veh1", description='Truck|"1"'),
        address="Dock 4 | Gate <B>",
    )
    fields = RecordEncoder().encode(point, 0, is_fleet=False).split("|")

    assert len(fields) == 21
    assert fields[1] == "Truck 1"
    assert fields[20] == '"Dock 4   Gate (B)"'


# ==========================================================
# optional fields
# ==========================================================

def test_optional_fields_extend_the_record() -> None:
    optional = ConfiguredOptionalFields(
        device_fields=["engine_temp", "driver", "note"],
        fleet_fields=["driver"],
    )
    point = _event(extra_fields={"engine_temp": 91.0, "note": "door|open"})
    encoder = RecordEncoder(optional_fields=optional)

    device_fields = encoder.encode(point, 0, is_fleet=False).split("|")
    fleet_fields = encoder.encode(point, 0, is_fleet=True).split("|")

    assert len(device_fields) == 21 + 3
    assert device_fields[21:] == ["91.0", "", "door open"]
    assert len(fleet_fields) == 21 + 1


def test_optional_fields_read_point_attributes() -> None:
    optional = ConfiguredOptionalFields(device_fields=["speed_kph", "_private"])
    fields = RecordEncoder(optional_fields=optional).encode(_event(), 0, is_fleet=False).split("|")

    assert fields[21:] == ["45.0", ""]


def test_encoding_is_idempotent() -> None:
    optional = ConfiguredOptionalFields(device_fields=["note"])
    encoder = RecordEncoder(optional_fields=optional, status_provider=default_status_provider)
    point = _event(extra_fields={"note": "$HTML:<i>late</i>"}, status_code=STATUS_MOTION_STOP)

    assert encoder.encode(point, 2, is_fleet=False) == encoder.encode(point, 2, is_fleet=False)


def test_poi_record() -> None:
    poi = PoiPoint("poi-1", "Main \"Depot\"", 37.5, -121.9, address="1 Depot Rd", icon_name="blue")
    optional = ConfiguredOptionalFields(device_fields=["note"])
    fields = RecordEncoder(optional_fields=optional).encode(
        poi, MotionState.STOPPED.code, is_fleet=False, with_date=False
    ).split("|")

    assert len(fields) == 22
    assert fields[0] == "poi-1"
    assert fields[1] == "Main Depot"
    assert fields[2] == "0"
    assert fields[3:6] == ["", "", ""]
    assert fields[7] == "6"
    assert fields[18] == "1"
    assert fields[20] == '"1 Depot Rd"'
    assert fields[21] == ""
