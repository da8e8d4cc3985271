# src/Controller/Routes/map_data.py

import io
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from src.Controller.deps import get_DB, get_optional_fields
from src.Core.config import settings
from src.Repositories import account as account_repo
from src.Repositories import device as device_repo
from src.Repositories import gps_data as gps_data_repo
from src.Repositories import point_of_interest as poi_repo
from src.Repositories.geofence import GeofenceLookup
from src.Schemas.map_data import LastEventInfo, MapDisplayOptions
from src.Services.map_events import (
    MapDataFormat,
    MapRenderRequest,
    build_decoder_js,
    default_status_provider,
    parse_map_data_format,
    write_map_events
)

router = APIRouter()

MEDIA_TYPES = {
    MapDataFormat.XML: "application/xml",
    MapDataFormat.JSON: "application/json",
}


# ==========================================================
# Helpers
# ==========================================================

def _format_or_400(value: Optional[str]) -> MapDataFormat:
    try:
        return parse_map_data_format(value, MapDataFormat(settings.MAP_DATA_FORMAT.lower()))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _options(proximity_m: Optional[float]) -> MapDisplayOptions:
    return MapDisplayOptions.from_settings(settings, min_proximity_m=proximity_m)


def _render(fmt: MapDataFormat, render_ok: bool, buffer: io.StringIO, detail: str) -> Response:
    if not render_ok:
        raise HTTPException(status_code=404, detail=detail)
    return Response(content=buffer.getvalue(), media_type=MEDIA_TYPES[fmt])


# ==========================================================
# ✅ SPECIAL GET ROUTES (before routes with path parameters)
# ==========================================================

@router.get("/decoder.js")
def get_decoder_js(
    fleet: bool = Query(False, description="Decoder for fleet maps"),
    optional_fields=Depends(get_optional_fields)
):
    """
    JavaScript record decoder matching the current record layout.

    Example:
        GET /map_data/decoder.js?fleet=true
    """
    js = build_decoder_js(fleet, optional_fields, settings.MAP_CSV_SEPARATOR)
    return Response(content=js, media_type="application/javascript")


@router.get("/fleet")
def get_fleet_map(
    account_id: str = Query(..., description="Account ID (required)"),
    route: bool = Query(False, description="Several points per device instead of the latest one"),
    start: Optional[datetime] = Query(None, description="Start timestamp in ISO-8601 UTC (route mode)"),
    end: Optional[datetime] = Query(None, description="End timestamp in ISO-8601 UTC (route mode)"),
    limit: Optional[int] = Query(None, ge=1, description="Max points per device (route mode)"),
    group_id: str = Query("all", description="Group label of the fleet"),
    format: Optional[str] = Query(None, description="'xml' or 'json'"),
    proximity_m: Optional[float] = Query(None, description="Point decimation distance in meters"),
    action: List[str] = Query([], description="'command|argument' map actions"),
    DB: Session = Depends(get_DB),
    optional_fields=Depends(get_optional_fields)
):
    """
    Fleet map: every active device of the account.

    Examples:
        GET /map_data/fleet?account_id=acme
        GET /map_data/fleet?account_id=acme&route=true&limit=50&format=xml

    Raises:
        400: Unsupported format
        404: Unknown account
    """
    fmt = _format_or_400(format)
    account = account_repo.to_account_info(account_repo.get_account_by_id(DB, account_id))

    points = []
    if account is not None:
        devices = device_repo.device_infos_by_account(DB, account_id)
        if route:
            rows = gps_data_repo.get_events_in_range_by_account(DB, account_id, start, end, limit)
        else:
            rows = gps_data_repo.get_last_events_by_account(DB, account_id)
        points = gps_data_repo.to_event_points(rows, devices, default_status_provider)

    request = MapRenderRequest(
        points=points,
        is_fleet=True,
        selected_id=group_id,
        fleet_route=route,
        pois=poi_repo.get_poi_points(DB, account_id) if account is not None else (),
        actions=action,
    )

    buffer = io.StringIO()
    ok = write_map_events(
        fmt, buffer, account, request, _options(proximity_m),
        geozone_lookup=GeofenceLookup(DB),
        optional_fields=optional_fields,
    )
    return _render(fmt, ok, buffer, f"Account '{account_id}' not found")


# ==========================================================
# 📍 DEVICE MAP
# ==========================================================

@router.get("/device/{device_id}")
def get_device_map(
    device_id: str,
    account_id: str = Query(..., description="Account ID (required)"),
    start: Optional[datetime] = Query(None, description="Start timestamp in ISO-8601 UTC"),
    end: Optional[datetime] = Query(None, description="End timestamp in ISO-8601 UTC"),
    limit: Optional[int] = Query(None, ge=1, description="Max number of most recent points"),
    format: Optional[str] = Query(None, description="'xml' or 'json'"),
    proximity_m: Optional[float] = Query(None, description="Point decimation distance in meters"),
    action: List[str] = Query([], description="'command|argument' map actions"),
    DB: Session = Depends(get_DB),
    optional_fields=Depends(get_optional_fields)
):
    """
    Device map: route of a single device.

    Examples:
        GET /map_data/device/TRUCK-001?account_id=acme&limit=100
        GET /map_data/device/TRUCK-001?account_id=acme&start=2025-10-11T00:00:00Z&format=xml

    Raises:
        400: Unsupported format
        404: Unknown account or device
    """
    fmt = _format_or_400(format)
    account = account_repo.to_account_info(account_repo.get_account_by_id(DB, account_id))
    device = device_repo.get_device_by_id(DB, device_id, account_id) if account is not None else None
    if account is not None and device is None:
        raise HTTPException(status_code=404, detail=f"Device '{device_id}' not found for account '{account_id}'")

    points = []
    last_event = None
    pois = ()
    if device is not None:
        info = device_repo.to_device_info(device)
        rows = gps_data_repo.get_events_in_range_by_device(DB, device_id, start, end, limit)
        points = gps_data_repo.to_event_points(rows, {device_id: info}, default_status_provider)
        if rows:
            last = rows[-1]
            last_event = LastEventInfo(
                device_id=device_id,
                timestamp=points[-1].timestamp,
                battery=last.BatteryLevel or 0.0,
                signal=last.SignalStrength or 0.0,
            )
        pois = poi_repo.get_poi_points(DB, account_id)

    request = MapRenderRequest(
        points=points,
        is_fleet=False,
        selected_id=device_id,
        pois=pois,
        actions=action,
        last_event=last_event,
    )

    buffer = io.StringIO()
    ok = write_map_events(
        fmt, buffer, account, request, _options(proximity_m),
        geozone_lookup=GeofenceLookup(DB),
        optional_fields=optional_fields,
    )
    return _render(fmt, ok, buffer, f"Account '{account_id}' not found")
