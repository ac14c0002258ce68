"""
Database location resolution for repomirror.

A location string picks the backend:

    dummy, dummy:<anything>   no-op in-memory database
    file:///abs/path.json     JSON file at the URL's decoded path
    /abs/path.json, rel.json  JSON file at that path (legacy form)

Anything that looks like a URL but cannot be used (a file URL naming a host,
an unknown scheme) is rejected before any file access.
"""

import os
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit
import logging

from ..errors import ConfigurationError
from .base import Db
from .dummy import DummyDb
from .file_db import FileDbFactory

logger = logging.getLogger(__name__)

DUMMY_TOKEN = "dummy"

DEFAULT_DB_PATH = Path.home() / '.repomirror' / 'db.json'


def is_dummy_location(location: str) -> bool:
    return location == DUMMY_TOKEN or location.startswith(DUMMY_TOKEN + ":")


def file_url_to_path(location: str) -> str:
    """
    Convert a file:// URL to a filesystem path.

    Raises:
        ConfigurationError: if the URL names a remote host or has no path
    """
    parts = urlsplit(location)
    if parts.netloc and parts.netloc != 'localhost':
        raise ConfigurationError(
            f"Malformed database URL {location!r}: file URLs must not name a host "
            f"(did you mean file:///{parts.netloc}{parts.path}?)"
        )
    path = unquote(parts.path)
    if not path:
        raise ConfigurationError(f"Malformed database URL {location!r}: no path")
    return path


def create_db(location: str, factory: Optional[FileDbFactory] = None) -> Db:
    """
    Create the database a location string describes.

    Args:
        location: Database location (see module docstring)
        factory: Factory for file-backed databases (default: FileDbFactory())

    Returns:
        A DummyDb or a FileDb

    Raises:
        ConfigurationError: for empty or malformed locations
        PersistenceError, ParseError: from loading a file database
    """
    if not location:
        raise ConfigurationError("Database location must not be empty")

    if is_dummy_location(location):
        logger.debug(f"Using dummy database for {location!r}")
        return DummyDb()

    scheme = urlsplit(location).scheme
    if scheme and ('://' in location or scheme == 'file'):
        if scheme != 'file':
            raise ConfigurationError(
                f"Unsupported database location {location!r}: "
                f"scheme {scheme!r} is not one of file, {DUMMY_TOKEN}"
            )
        path = Path(file_url_to_path(location))
    else:
        path = Path(location).expanduser()

    factory = factory or FileDbFactory()
    logger.debug(f"Using file database at {path}")
    return factory.load(path)


def get_db_location(config: Optional[dict] = None) -> str:
    """
    Get the database location string.

    Checks in order:
    1. REPOMIRROR_DB environment variable
    2. config['database']['uri'] if provided
    3. Default: ~/.repomirror/db.json

    Args:
        config: Optional configuration dictionary

    Returns:
        Location string suitable for create_db()
    """
    # Environment variable override
    if os.environ.get('REPOMIRROR_DB'):
        return os.environ['REPOMIRROR_DB']

    # Config override
    if config and config.get('database', {}).get('uri'):
        return config['database']['uri']

    # Default location
    return str(DEFAULT_DB_PATH)


def open_db(location: Optional[str] = None, config: Optional[dict] = None,
            factory: Optional[FileDbFactory] = None) -> Db:
    """Resolve location (or the configured default) and open that database."""
    return create_db(location or get_db_location(config), factory)
