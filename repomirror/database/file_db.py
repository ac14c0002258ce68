"""
JSON file database backend for repomirror.

- FileDbFactory: loads a FileDb from a path (missing file = empty database)
- DbWriter: serializes a store and hands it to the file system
- FileDb: the Db implementation tying the two together

Writes go through FileSystem.write, which replaces the file atomically, so a
failed write leaves the previous content intact.
"""

from pathlib import Path
from typing import Optional, Union
import logging

from ..domain import EquivalenceStore
from ..errors import ParseError, PersistenceError
from ..infra import FileSystem
from .base import Db

logger = logging.getLogger(__name__)


class DbWriter:
    """Serializes an EquivalenceStore and persists it."""

    def __init__(self, filesystem: Optional[FileSystem] = None):
        self.filesystem = filesystem or FileSystem()

    def write(self, storage: EquivalenceStore, path: str) -> None:
        """
        Write storage to path.

        Raises:
            PersistenceError: if the file system rejects the write
        """
        content = storage.to_json()
        try:
            self.filesystem.write(content, path)
        except OSError as e:
            raise PersistenceError(f"Cannot write database {path}: {e}", path) from e
        logger.info(
            f"Wrote {len(storage.equivalences)} equivalence(s) and "
            f"{len(storage.migrations)} migration(s) to {path}"
        )


class FileDb(Db):
    """
    Database stored as one JSON file.

    Example:
        db = FileDbFactory().load("~/.repomirror/db.json")
        db.note_equivalence(RepositoryEquivalence(internal_rev, public_rev))
        db.write()
    """

    def __init__(
        self,
        location: Optional[str],
        storage: Optional[EquivalenceStore] = None,
        writer: Optional[DbWriter] = None
    ):
        super().__init__(storage)
        self._location = location
        self._writer = writer or DbWriter()

    @property
    def location(self) -> Optional[str]:
        return self._location

    def write(self) -> None:
        """
        Persist the store, even when it is empty.

        Raises:
            PersistenceError: if no location is configured or the write fails
        """
        if not self._location:
            raise PersistenceError("File database has no location to write to")
        self._writer.write(self.storage, self._location)

    def __repr__(self) -> str:
        return f"FileDb({self._location!r})"


class FileDbFactory:
    """Creates FileDb instances from paths."""

    def __init__(self, filesystem: Optional[FileSystem] = None, writer: Optional[DbWriter] = None):
        self.filesystem = filesystem or FileSystem()
        self.writer = writer or DbWriter(self.filesystem)

    def load(self, path: Union[str, Path]) -> FileDb:
        """
        Load the database at path.

        A missing file yields an empty database (first run).

        Raises:
            PersistenceError: if the file exists but cannot be read
            ParseError: if the file exists but is not a valid database
        """
        location = str(path)
        if not self.filesystem.exists(path):
            logger.info(f"No database at {location}, starting empty")
            return FileDb(location, EquivalenceStore(), self.writer)

        try:
            text = self.filesystem.file_to_string(path)
        except OSError as e:
            raise PersistenceError(f"Cannot read database {location}: {e}", location) from e
        except UnicodeDecodeError as e:
            raise ParseError(f"not valid UTF-8: {e}", location) from e

        storage = EquivalenceStore.from_json(text, path=location)
        logger.debug(
            f"Loaded {len(storage.equivalences)} equivalence(s) and "
            f"{len(storage.migrations)} migration(s) from {location}"
        )
        return FileDb(location, storage, self.writer)
