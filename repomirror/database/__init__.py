"""
Database module for repomirror.

Records which revisions of two repositories are known to be equivalent and
which migrations between them have been submitted.

Key components:
- base: The Db interface shared by every backend
- file_db: JSON file backend with atomic writes
- dummy: No-op backend for dry runs
- resolver: Location string -> backend selection
"""

from .base import Db
from .dummy import DummyDb
from .file_db import FileDb, FileDbFactory, DbWriter
from .resolver import (
    DUMMY_TOKEN,
    create_db,
    get_db_location,
    open_db,
)

__all__ = [
    'Db',
    'DummyDb',
    'FileDb',
    'FileDbFactory',
    'DbWriter',
    'DUMMY_TOKEN',
    'create_db',
    'get_db_location',
    'open_db',
]
