"""
Error taxonomy for repomirror.

Every failure the core reports is one of these typed exceptions. None of
them are retried internally; callers decide what to do.

- ConfigurationError: unrecognized or malformed database location
- ParseError: durable content exists but does not match the schema
- PersistenceError: reading or writing durable storage failed
- StructureError: a revision graph invariant was violated
- HistoryError: a version-control backend could not answer a query
"""

from typing import Optional


class RepoMirrorError(Exception):
    """Base class for all repomirror failures."""


class ConfigurationError(RepoMirrorError):
    """Raised when a database location string cannot be resolved."""


class ParseError(RepoMirrorError):
    """Raised when stored equivalence data does not conform to the schema."""

    def __init__(self, message: str, path: Optional[str] = None):
        if path:
            message = f"{path}: {message}"
        super().__init__(message)
        self.path = path


class PersistenceError(RepoMirrorError):
    """Raised when the underlying storage cannot be read or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class StructureError(RepoMirrorError):
    """Raised when a revision graph is inconsistent."""


class HistoryError(RepoMirrorError):
    """Raised when revision history cannot be read from a repository."""
