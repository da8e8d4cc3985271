# src/Services/map_events/map_writer.py
"""
Map Event Writer
================
Top-level render entry points.

    render_map_document()  → MapDocument (or None when the account is missing)
    write_map_events()     → writes XML or JSON to a text stream, returns bool

Execution is synchronous and call scoped: every render builds its own
encoder, classifier, decimator and geozone memo. Only the optional field
capability and the display options are shared, and both are read-only.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence, TextIO

from src.Core import log_ws
from src.Schemas.map_data import LastEventInfo, MapDisplayOptions

from .dataset_assembler import DatasetAssembler
from .document_builder import LastEventBlock, MapDocument, parse_actions, time_block, to_json, to_xml
from .geozone_resolver import GeozoneLookup, GeozoneResolver
from .icons import DefaultIconResolver, IconResolver
from .optional_fields import OptionalEventFields
from .record_encoder import RecordEncoder, data_columns, resolve_timezone
from .status_codes import StatusDescriptionProvider, default_status_provider


class MapDataFormat(str, Enum):
    XML = "xml"
    JSON = "json"


def parse_map_data_format(value: Optional[str], default: MapDataFormat = MapDataFormat.JSON) -> MapDataFormat:
    """
    "xml"/"json" (case-insensitive) → MapDataFormat; blank → default.

    Raises:
        ValueError: for any other value
    """
    v = (value or "").strip().lower()
    if not v:
        return MapDataFormat(default)
    try:
        return MapDataFormat(v)
    except ValueError:
        raise ValueError(f"Unsupported map data format: {value!r}")


@dataclass(frozen=True)
class AccountInfo:
    """Owning account of a render call. Blank timezone/formats use the display options."""
    account_id: str
    timezone: str = ""
    date_format: str = ""
    time_format: str = ""


@dataclass
class MapRenderRequest:
    """
    Everything one render call needs besides the account.

    Attributes:
        points: Event points sorted by device, then time
        is_fleet: Fleet map vs device map
        selected_id: Device id (device map) or group id (fleet map)
        fleet_route: Fleet map with several points per device
        pois: Points of interest (own dataset, listed first)
        actions: "command|argument" strings
        last_event: Latest event summary (device maps only)
    """
    points: Sequence[Any]
    is_fleet: bool = False
    selected_id: str = ""
    fleet_route: bool = False
    pois: Sequence[Any] = ()
    actions: Sequence[str] = ()
    last_event: Optional[LastEventInfo] = None


def render_map_document(
    account: Optional[AccountInfo],
    request: MapRenderRequest,
    options: MapDisplayOptions,
    geozone_lookup: Optional[GeozoneLookup] = None,
    optional_fields: Optional[OptionalEventFields] = None,
    icon_resolver: Optional[IconResolver] = None,
    status_provider: Optional[StatusDescriptionProvider] = default_status_provider,
    now: Optional[int] = None,
) -> Optional[MapDocument]:
    """
    Run the full pipeline for one call.

    Args:
        account: Owning account; None aborts the render
        request: Points, mode and extras
        options: Display options snapshot
        geozone_lookup: Storage collaborator for shapes (None = no shapes)
        optional_fields: Process-wide optional field capability
        icon_resolver: Pushpin resolution (default: DefaultIconResolver)
        status_provider: Status text fallback
        now: Render time override (epoch seconds)

    Returns:
        MapDocument, or None if the account is missing
    """
    if account is None:
        log_ws.log_from_thread("Map render rejected: no account", "error")
        return None

    tz = resolve_timezone(account.timezone or options.timezone)
    date_format = account.date_format or options.date_format
    time_format = account.time_format or options.time_format

    encoder = RecordEncoder(
        separator=options.separator,
        include_status_color=options.include_status_color,
        status_provider=status_provider,
        optional_fields=optional_fields,
        icon_resolver=icon_resolver or DefaultIconResolver(),
        icon_selector=options.icon_selector,
        icon_keys=options.icon_keys,
        timezone=tz,
        date_format=date_format,
        time_format=time_format,
    )
    assembler = DatasetAssembler(
        encoder,
        min_proximity_m=options.min_proximity_m,
        use_route_display_color=options.use_route_display_color,
        fleet_pushpin_policy=options.fleet_pushpin_policy,
        split_fleet_by_device=options.split_fleet_by_device,
    )

    shapes = []
    if options.include_geozones and geozone_lookup is not None and request.points:
        resolver = GeozoneResolver(
            geozone_lookup,
            show_all_contained=options.show_all_contained_geozones,
            nearby_radius_m=options.nearby_geozone_radius_m,
            parked_color=options.parked_shape_color,
            default_zone_color=options.default_zone_color,
            icon_keys=options.icon_keys,
        )
        shapes = resolver.resolve(account.account_id, request.points, request.is_fleet)
    else:
        print(f"[MAP_DATA] Geozone shapes not included for {account.account_id}")

    datasets = []
    poi_dataset = assembler.assemble_pois(request.pois)
    if poi_dataset is not None:
        datasets.append(poi_dataset)
    datasets.extend(assembler.assemble(
        request.points,
        is_fleet=request.is_fleet,
        selected_id=request.selected_id,
        fleet_route=request.fleet_route,
    ))

    last_event = None
    if not request.is_fleet and request.last_event is not None:
        le = request.last_event
        last_event = LastEventBlock(
            device=le.device_id or request.selected_id,
            time=time_block(le.timestamp, tz, date_format, time_format),
            battery=le.battery,
            signal=le.signal,
        )

    return MapDocument(
        is_fleet=request.is_fleet,
        time=time_block(int(time.time()) if now is None else now, tz, date_format, time_format),
        last_event=last_event,
        shapes=shapes,
        data_columns=data_columns(options.separator),
        datasets=datasets,
        actions=parse_actions(request.actions),
        separator=options.separator,
    )


def write_map_events(
    fmt: MapDataFormat,
    out: TextIO,
    account: Optional[AccountInfo],
    request: MapRenderRequest,
    options: MapDisplayOptions,
    top_level: bool = True,
    **collaborators: Any,
) -> bool:
    """
    Render and write one map document.

    Args:
        fmt: MapDataFormat.XML or MapDataFormat.JSON
        out: Text stream receiving the document
        account / request / options: See render_map_document()
        top_level: XML only, emit the XML declaration
        **collaborators: geozone_lookup, optional_fields, icon_resolver,
            status_provider, now

    Returns:
        bool: False when nothing was written (missing account)
    """
    doc = render_map_document(account, request, options, **collaborators)
    if doc is None:
        return False

    fmt = MapDataFormat(fmt)
    if fmt is MapDataFormat.XML:
        out.write(to_xml(doc, top_level=top_level))
    else:
        out.write(to_json(doc))

    n_points = sum(len(ds) for ds in doc.datasets)
    print(f"[MAP_DATA] Wrote {fmt.value} map for {account.account_id}: "
          f"{len(doc.datasets)} dataset(s), {n_points} point(s), {len(doc.shapes)} shape(s)")
    return True
