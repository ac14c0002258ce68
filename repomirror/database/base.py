"""
Database interface for repomirror.

A Db wraps one EquivalenceStore and knows how to persist it. Every backend
offers the same operations; the backend is picked once, at startup, by
repomirror.database.resolver.

A Db is not safe for concurrent mutation. Callers with several writers must
serialize note_equivalence / note_migration / write themselves. Facts noted
in memory become durable only when write() succeeds.
"""

from abc import ABC, abstractmethod
from typing import FrozenSet, Optional
import logging

from ..domain import EquivalenceStore, RepositoryEquivalence, Revision, SubmittedMigration

logger = logging.getLogger(__name__)


class Db(ABC):
    """Equivalence database over an in-memory EquivalenceStore."""

    def __init__(self, storage: Optional[EquivalenceStore] = None):
        self._storage = storage if storage is not None else EquivalenceStore()

    @property
    def location(self) -> Optional[str]:
        """Durable location of this database, or None if it has none."""
        return None

    @property
    def storage(self) -> EquivalenceStore:
        return self._storage

    def get_equivalences(self) -> FrozenSet[RepositoryEquivalence]:
        return frozenset(self._storage.equivalences)

    def get_migrations(self) -> FrozenSet[SubmittedMigration]:
        return frozenset(self._storage.migrations)

    def find_equivalences(self, revision: Revision, other_repository_name: str) -> FrozenSet[Revision]:
        """
        Find revisions in other_repository_name recorded as equivalent to revision.

        Returns:
            The other side of every matching equivalence; empty if none match
        """
        found = set()
        for equivalence in self._storage.equivalences_for(revision):
            other = equivalence.other(revision)
            if other is not None and other.repository_name == other_repository_name:
                found.add(other)
        return frozenset(found)

    def note_equivalence(self, equivalence: RepositoryEquivalence) -> None:
        """Record an equivalence in memory. Re-noting a known one is a no-op."""
        if self._storage.add_equivalence(equivalence):
            logger.debug(f"Noted equivalence {equivalence}")
        else:
            logger.debug(f"Equivalence {equivalence} already known")

    def note_migration(self, migration: SubmittedMigration) -> bool:
        """
        Record a migration in memory.

        Returns:
            True if the migration was new, False if it was already recorded
        """
        added = self._storage.add_migration(migration)
        if added:
            logger.debug(f"Noted migration {migration}")
        else:
            logger.debug(f"Migration {migration} already known")
        return added

    def has_migration(self, migration: SubmittedMigration) -> bool:
        return self._storage.has_migration(migration)

    @abstractmethod
    def write(self) -> None:
        """Persist the current store to this database's durable location."""
