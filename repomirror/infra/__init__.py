"""
Infrastructure layer for repomirror.

Contains abstractions for external systems:
- GitClient: Git command execution
- FileSystem: Existence checks, reads and atomic writes

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, parse_metadata, LOG_DELIMITER
from .file_store import FileSystem

__all__ = [
    'GitClient',
    'parse_metadata',
    'LOG_DELIMITER',
    'FileSystem',
]
