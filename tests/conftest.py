import os

# settings are validated on import of src.Core.config; no database is opened by the tests
os.environ.setdefault("DATABASE_URL", "sqlite://")
