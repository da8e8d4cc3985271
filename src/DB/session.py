"""
src/DB/session.py
======================================
Database Session Configuration Module
======================================

Engine and session factory for the map data service. The map renderer
itself never opens sessions; the HTTP layer opens one per request and hands
it to the repository collaborators (event source, device lookup, geozone
lookup, POI source).

Usage Example:
-------------
    from src.DB.session import SessionLocal

    with SessionLocal() as db:
        lookup = GeofenceLookup(db)
        zones = lookup.zones_containing("acme", 4.60, -74.08)

Session Configuration:
---------------------
- autocommit=False: Transactions must be explicitly committed
- autoflush=False: Render calls are read-only; nothing needs flushing
- pool_pre_ping=True: Stale pooled connections are replaced transparently
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.Core.config import settings


# ============================================================
# DATABASE ENGINE CONFIGURATION
# ============================================================
engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

# ============================================================
# SESSION FACTORY CONFIGURATION
# ============================================================
# SessionLocal() returns new Session instances for database operations
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)
