#src/Controller/deps.py

from typing import Generator, Optional

from src.Core.config import settings
from src.DB.session import SessionLocal
from src.Services.map_events.optional_fields import OptionalEventFields, optional_fields_from_settings


def get_DB() -> Generator:
    DB = SessionLocal()
    try:
        yield DB
    finally:
        DB.close()


# Built once at import; read-only afterwards
OPTIONAL_EVENT_FIELDS: Optional[OptionalEventFields] = optional_fields_from_settings(settings)


def get_optional_fields() -> Optional[OptionalEventFields]:
    return OPTIONAL_EVENT_FIELDS
