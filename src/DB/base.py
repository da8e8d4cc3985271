"""
src/DB/base.py
==========================
SQLAlchemy Model Registry
==========================

This module serves as the central registry for all SQLAlchemy models used
by the map data service. It imports all model classes to ensure they are
registered with SQLAlchemy's metadata system before database operations begin.

Purpose:
--------
By importing all models in a single location, this module ensures that:
1. SQLAlchemy's metadata contains complete schema information
2. Database initialization (create_all) can access all table definitions

Models Registered:
-----------------
- Account: Account display preferences (timezone, date/time formats)
- Device: Tracked devices (display color, parked circle, start/stop support)
- GPS_data: Stored device events rendered as map points
- Geofence: Geozones drawn as map shapes
- PointOfInterest: Static account markers rendered as the POI dataset

Important:
----------
Any new model classes MUST be imported here to be included in schema
operations.
"""

from src.DB.base_class import Base

# ============================================================
# MODEL IMPORTS - DO NOT REMOVE
# ============================================================
# Import all models to register them with SQLAlchemy metadata
from src.Models.account import Account
from src.Models.device import Device
from src.Models.gps_data import GPS_data
from src.Models.geofence import Geofence
from src.Models.point_of_interest import PointOfInterest
