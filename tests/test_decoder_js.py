from src.Services.map_events.decoder_js import build_decoder_js
from src.Services.map_events.optional_fields import ConfiguredOptionalFields
from src.Services.map_events.record_encoder import FIELD_NAMES


def test_decoder_reads_encoder_field_positions() -> None:
    js = build_decoder_js(is_fleet=False)

    assert "function MapEventRecord(csvRcd) {" in js
    assert 'var fld = csvRcd.split("|");' in js
    assert f"parseInt(fld[{FIELD_NAMES.index('stopped')}])" in js
    assert f"fld[{FIELD_NAMES.index('addr')}].trim()" in js
    assert "if (fld.length > 21) {" in js


def test_decoder_without_optional_fields() -> None:
    js = build_decoder_js(is_fleet=True)

    assert "function OptionalEventFieldCount() {\n    return 0;\n};" in js
    assert "switch" not in js


def test_decoder_optional_field_titles_follow_map_type() -> None:
    optional = ConfiguredOptionalFields(
        device_fields=["engine_temp", "driver"],
        fleet_fields=["fuel_level"],
        titles={"driver": "Driver \"name\""},
    )

    device_js = build_decoder_js(False, optional)
    fleet_js = build_decoder_js(True, optional)

    assert "return 2;" in device_js
    assert 'case 0: return "Engine Temp";' in device_js
    assert 'case 1: return "Driver \\"name\\"";' in device_js
    assert "return 1;" in fleet_js
    assert 'case 0: return "Fuel Level";' in fleet_js


def test_decoder_custom_separator() -> None:
    assert 'csvRcd.split(",")' in build_decoder_js(False, sep=",")
