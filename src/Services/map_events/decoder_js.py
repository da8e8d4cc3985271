# src/Services/map_events/decoder_js.py
"""
Browser-side record decoder.

Generates the JavaScript `MapEventRecord` constructor that parses one
mini-protocol record, plus the `OptionalEventFieldCount()` and
`OptionalEventFieldTitle(ndx)` helpers. The field positions come from
record_encoder.FIELD_NAMES so the decoder always matches the encoder.

The generated code relies on the client's `decodeUnicode`, `decodeBase64`,
`numParseFloat`, `numParseInt` and `HEADING` helpers.
"""

import json
from typing import List, Optional

from .optional_fields import OptionalEventFields
from .record_encoder import CSV_SEPARATOR, FIELD_NAMES, FIXED_FIELD_COUNT, MAP_ESCAPE_B64, MAP_ESCAPE_HTML


MILES_PER_KILOMETER = 0.621371192


def _ndx(name: str) -> int:
    return FIELD_NAMES.index(name)


def build_decoder_js(
    is_fleet: bool,
    optional_fields: Optional[OptionalEventFields] = None,
    sep: str = CSV_SEPARATOR
) -> str:
    """
    Build the decoder script for device (is_fleet=False) or fleet maps.

    Args:
        is_fleet: Selects the optional field list
        optional_fields: Optional field capability (None = no extra fields)
        sep: Record separator

    Returns:
        str: JavaScript source
    """
    html_len = len(MAP_ESCAPE_HTML)
    b64_len = len(MAP_ESCAPE_B64)

    def num(attr: str, name: str, parser: str = "numParseFloat") -> str:
        i = _ndx(name)
        return f"    this.{attr} = {parser}(((fld.length > {i})? fld[{i}] : '0'), 0);"

    def text(attr: str, name: str, decode: bool = True) -> str:
        i = _ndx(name)
        value = f"decodeUnicode(fld[{i}])" if decode else f"fld[{i}]"
        return f"    this.{attr} = (fld.length > {i})? {value} : '';"

    js: List[str] = [
        "// generated by map_events.decoder_js",
        "function MapEventRecord(csvRcd) {",
        f"    var fld = csvRcd.split({json.dumps(sep)});",
        "    this.index = 0;",
        "    this.lastEv = null;",
        "    this.nextEv = null;",
        f"    this.valid = (fld.length > {_ndx('lon')});",
        text("devVIN", "id"),
        text("device", "desc"),
        f"    this.timestamp = (fld.length > {_ndx('epoch')})? parseInt(fld[{_ndx('epoch')}]) : 0;",
        text("dateFmt", "date", decode=False),
        text("timeFmt", "time", decode=False),
        text("timeZone", "tmz", decode=False),
        text("code", "status"),
        f"    if (this.code.startsWith('{MAP_ESCAPE_HTML}')) {{ this.code = decodeBase64(this.code.substring({html_len})); }}",
        text("iconNdx", "icon", decode=False),
        "    this.isCellLoc = false;",
        num("latitude", "lat"),
        num("longitude", "lon"),
        num("gpsAge", "gpsAge"),
        num("createAge", "createAge"),
        num("accuracy", "acc"),
        "    if (this.accuracy < 0) { this.accuracy = 0; }",
        "    this.validGPS = ((this.latitude != 0) || (this.longitude != 0))? true : false;",
        num("satCount", "sats", "numParseInt"),
        "    if (this.satCount < 0) { this.isCellLoc = true; this.satCount = 0; }",
        num("speedKPH", "kph"),
        f"    this.speedMPH = this.speedKPH * {MILES_PER_KILOMETER};",
        num("heading", "heading"),
        "    this.compass = HEADING[Math.round(this.heading / 45.0) % 8];",
        num("altitude", "alt"),
        num("odomKM", "odomkm"),
        f"    this.stopped = (fld.length > {_ndx('stopped')})? parseInt(fld[{_ndx('stopped')}]) : 0;",
        "    this.stopSec = 0;",
        num("gpioInput", "gpio", "numParseInt"),
        f"    this.address = (fld.length > {_ndx('addr')})? decodeUnicode(fld[{_ndx('addr')}].trim()) : '';",
        "    if (this.address.startsWith('\"')) { this.address = this.address.substring(1); }",
        "    if (this.address.endsWith('\"')) { this.address = this.address.substring(0, this.address.length - 1); }",
        f"    if (fld.length > {FIXED_FIELD_COUNT}) {{",
        "        this.optDesc = new Array();",
        f"        for (var i = {FIXED_FIELD_COUNT}; i < fld.length; i++) {{",
        "            var v = decodeUnicode(fld[i]);",
        f"            if (v.startsWith('{MAP_ESCAPE_B64}')) {{ v = decodeBase64(v.substring({b64_len})); }}",
        f"            if (v.startsWith('{MAP_ESCAPE_HTML}')) {{ v = decodeBase64(v.substring({html_len})); }}",
        "            this.optDesc.push(v);",
        "        }",
        "    }",
        "};",
    ]

    count = optional_fields.count(is_fleet) if optional_fields is not None else 0

    js.append("function OptionalEventFieldCount() {")
    js.append(f"    return {count};")
    js.append("};")

    js.append("function OptionalEventFieldTitle(ndx) {")
    if count > 0:
        js.append("    switch (ndx) {")
        for i in range(count):
            js.append(f"        case {i}: return {json.dumps(optional_fields.title(i, is_fleet))};")
        js.append("    }")
    js.append("    return '';")
    js.append("};")

    return "\n".join(js) + "\n"
