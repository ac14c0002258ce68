"""
File system infrastructure for repomirror.

Provides the small file surface the database needs:
- Existence checks
- Whole-file reads
- Atomic writes (write to temp, fsync, then rename)
- Automatic parent directory creation

Errors from the operating system propagate as OSError; the database layer
decides how to report them.
"""

import os
import tempfile
from pathlib import Path
from typing import Union
import logging

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class FileSystem:
    """
    Thin abstraction over the local file system.

    Exists so the database can be tested against a mock.

    Example:
        fs = FileSystem()
        if fs.exists("~/.repomirror/db.json"):
            text = fs.file_to_string("~/.repomirror/db.json")
    """

    def _resolve(self, path: PathLike) -> Path:
        return Path(path).expanduser()

    def exists(self, path: PathLike) -> bool:
        """Check if a file exists at path."""
        return self._resolve(path).exists()

    def file_to_string(self, path: PathLike) -> str:
        """
        Read a whole file as text.

        Raises:
            OSError: if the file cannot be read
        """
        with open(self._resolve(path), 'r', encoding='utf-8') as f:
            return f.read()

    def write(self, content: str, path: PathLike) -> None:
        """
        Write content to path atomically.

        A concurrent reader sees either the old file or the new one, never
        a partial write.

        Raises:
            OSError: if the file cannot be written; the target is left untouched
        """
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)

        # Write to temp file in same directory
        fd, temp_path = tempfile.mkstemp(
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp"
        )

        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())

            # Atomic rename
            os.replace(temp_path, target)

        except BaseException:
            # Clean up temp file on error
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

        logger.debug(f"Wrote {len(content)} bytes to {target}")
