# src/Services/map_events/__init__.py
"""
Map Events Module
=================
Serialization of device events and points of interest into the map
documents consumed by the browser map client.

Components:
- record_encoder: Fixed-field record format and text sanitizer
- motion_state: Moving / stopped / stop-transition classification
- proximity: Greedy point decimation
- geozone_resolver: Geofence shapes for a point set
- dataset_assembler: Per-device datasets, colors and fleet pushpins
- document_builder: MapData XML and JMapData JSON documents
- map_writer: Render entry points
"""

from .points import DeviceInfo, EventPoint, PoiPoint, RenderablePoint, epoch_seconds
from .icons import DefaultIconResolver, IconResolver, pushpin_icon_index
from .status_codes import StatusDescription, TableStatusDescriptionProvider, default_status_provider
from .optional_fields import ConfiguredOptionalFields, OptionalEventFields, optional_fields_from_settings
from .record_encoder import (
    CSV_SEPARATOR,
    DATA_COLUMNS,
    FIELD_NAMES,
    MAP_ESCAPE_B64,
    MAP_ESCAPE_HTML,
    RecordEncoder,
    encode_text
)
from .motion_state import MotionState, MotionStateClassifier
from .proximity import ProximityDecimator, decimate
from .geozone_resolver import GeofenceShape, Geozone, GeozoneKind, GeozoneLookup, GeozoneResolver
from .dataset_assembler import Dataset, DatasetAssembler, DatasetEntry
from .document_builder import Action, MapDocument, parse_action, to_json, to_xml
from .decoder_js import build_decoder_js
from .map_writer import (
    AccountInfo,
    MapDataFormat,
    MapRenderRequest,
    parse_map_data_format,
    render_map_document,
    write_map_events
)

__all__ = [
    # Points
    'DeviceInfo',
    'EventPoint',
    'PoiPoint',
    'RenderablePoint',
    'epoch_seconds',

    # Collaborators
    'DefaultIconResolver',
    'IconResolver',
    'pushpin_icon_index',
    'StatusDescription',
    'TableStatusDescriptionProvider',
    'default_status_provider',
    'ConfiguredOptionalFields',
    'OptionalEventFields',
    'optional_fields_from_settings',
    'GeozoneLookup',

    # Record
    'CSV_SEPARATOR',
    'DATA_COLUMNS',
    'FIELD_NAMES',
    'MAP_ESCAPE_B64',
    'MAP_ESCAPE_HTML',
    'RecordEncoder',
    'encode_text',

    # Pipeline
    'MotionState',
    'MotionStateClassifier',
    'ProximityDecimator',
    'decimate',
    'GeofenceShape',
    'Geozone',
    'GeozoneKind',
    'GeozoneResolver',
    'Dataset',
    'DatasetAssembler',
    'DatasetEntry',

    # Documents
    'Action',
    'MapDocument',
    'parse_action',
    'to_json',
    'to_xml',
    'build_decoder_js',

    # Entry points
    'AccountInfo',
    'MapDataFormat',
    'MapRenderRequest',
    'parse_map_data_format',
    'render_map_document',
    'write_map_events',
]
