# src/DB/database.py

"""
Schema bootstrap for development databases.

create_all_tables() enables PostGIS (geofences.geometry is a Geography
column) and creates every table registered in src/DB/base.py. It runs at
startup only when DB_CREATE_TABLES is set; managed databases are expected
to carry the schema already.
"""

from sqlalchemy import text
from src.DB.session import engine


def create_all_tables():
    """
    Create the accounts, devices, gps_data, geofences and points_of_interest
    tables if they do not exist yet. Idempotent.
    """
    from src.DB.base import Base

    print("[DB] 🔨 Creating all tables...")
    with engine.begin() as conn:
        conn.execute(text("CREATE EXTENSION IF NOT EXISTS postgis"))
    Base.metadata.create_all(bind=engine)
    print("[DB] ✅ Tables created successfully")


__all__ = [
    "create_all_tables",
]
