"""
Equivalence and migration records for repomirror.

- RepositoryEquivalence: two revisions in two repositories holding the
  same logical content (unordered)
- SubmittedMigration: a completed copy from one revision to another (ordered)
- EquivalenceStore: the serializable aggregate of both

The JSON form is fixed for interoperability with existing database files:

    {
      "equivalences": [{"rev1": {...}, "rev2": {...}}],
      "migrations": [{"from": {...}, "to": {...}}]
    }

where each revision is {"rev_id": "...", "repository_name": "..."}.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from ..errors import ParseError
from .revision import Revision


@dataclass(frozen=True, eq=False)
class RepositoryEquivalence:
    """
    Unordered pair of revisions from two different repositories.

    RepositoryEquivalence(a, b) == RepositoryEquivalence(b, a).
    """

    rev1: Revision
    rev2: Revision

    def __post_init__(self):
        if self.rev1.repository_name == self.rev2.repository_name:
            raise ValueError(
                f"Equivalence {self} must span two repositories, "
                f"both sides are in {self.rev1.repository_name}"
            )

    @property
    def revisions(self) -> FrozenSet[Revision]:
        return frozenset((self.rev1, self.rev2))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RepositoryEquivalence):
            return NotImplemented
        return self.revisions == other.revisions

    def __hash__(self) -> int:
        return hash(self.revisions)

    def __str__(self) -> str:
        return f"{self.rev1} == {self.rev2}"

    def get(self, repository_name: str) -> Optional[Revision]:
        """Return the side in the given repository, or None."""
        if self.rev1.repository_name == repository_name:
            return self.rev1
        if self.rev2.repository_name == repository_name:
            return self.rev2
        return None

    def other(self, revision: Revision) -> Optional[Revision]:
        """Return the side opposite to revision, or None if revision is not in this pair."""
        if revision == self.rev1:
            return self.rev2
        if revision == self.rev2:
            return self.rev1
        return None

    def has_revision(self, revision: Revision) -> bool:
        return revision == self.rev1 or revision == self.rev2

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rev1': self.rev1.to_dict(),
            'rev2': self.rev2.to_dict(),
        }


@dataclass(frozen=True)
class SubmittedMigration:
    """A completed migration. Unlike an equivalence, direction matters."""

    from_rev: Revision
    to_rev: Revision

    def __str__(self) -> str:
        return f"{self.from_rev} ==> {self.to_rev}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'from': self.from_rev.to_dict(),
            'to': self.to_rev.to_dict(),
        }


def _check_keys(data: Any, allowed: Tuple[str, ...], where: str, path: Optional[str]) -> None:
    if not isinstance(data, dict):
        raise ParseError(f"{where}: expected an object, got {type(data).__name__}", path)
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise ParseError(f"{where}: unknown field(s) {', '.join(unknown)}", path)


def _parse_revision(data: Any, where: str, path: Optional[str]) -> Revision:
    _check_keys(data, ('rev_id', 'repository_name'), where, path)
    try:
        return Revision(data.get('rev_id'), data.get('repository_name'))
    except ValueError as e:
        raise ParseError(f"{where}: {e}", path) from e


def _parse_list(data: Dict[str, Any], key: str, path: Optional[str]) -> List[Any]:
    items = data.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise ParseError(f"{key}: expected a list, got {type(items).__name__}", path)
    return items


@dataclass(eq=False)
class EquivalenceStore:
    """
    All known equivalences and migrations.

    Both collections behave as sets: adding a fact that is already present
    is a no-op reported through the return value. Insertion order is kept
    so the serialized file stays stable across writes.
    """

    equivalences: List[RepositoryEquivalence] = field(default_factory=list)
    migrations: List[SubmittedMigration] = field(default_factory=list)

    def __post_init__(self):
        given_equivalences, given_migrations = self.equivalences, self.migrations
        self.equivalences = []
        self.migrations = []
        self._equivalence_set = set()
        self._migration_set = set()
        self._index: Dict[Revision, List[RepositoryEquivalence]] = {}
        for e in given_equivalences:
            self.add_equivalence(e)
        for m in given_migrations:
            self.add_migration(m)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EquivalenceStore):
            return NotImplemented
        return (self._equivalence_set == other._equivalence_set
                and self._migration_set == other._migration_set)

    def add_equivalence(self, equivalence: RepositoryEquivalence) -> bool:
        """Add an equivalence. Returns False if it was already present."""
        if equivalence in self._equivalence_set:
            return False
        self._equivalence_set.add(equivalence)
        self.equivalences.append(equivalence)
        for revision in (equivalence.rev1, equivalence.rev2):
            self._index.setdefault(revision, []).append(equivalence)
        return True

    def add_migration(self, migration: SubmittedMigration) -> bool:
        """Add a migration. Returns False if it was already present."""
        if migration in self._migration_set:
            return False
        self._migration_set.add(migration)
        self.migrations.append(migration)
        return True

    def has_migration(self, migration: SubmittedMigration) -> bool:
        return migration in self._migration_set

    def equivalences_for(self, revision: Revision) -> Tuple[RepositoryEquivalence, ...]:
        """All equivalences with revision on either side, in insertion order."""
        return tuple(self._index.get(revision, ()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'equivalences': [e.to_dict() for e in self.equivalences],
            'migrations': [m.to_dict() for m in self.migrations],
        }

    def to_json(self) -> str:
        """Serialize deterministically: fixed key order, two-space indent, trailing newline."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + '\n'

    @classmethod
    def from_dict(cls, data: Any, path: Optional[str] = None) -> 'EquivalenceStore':
        """
        Build a store from decoded JSON, rejecting anything off-schema.

        Args:
            data: Decoded JSON document
            path: Source location, used in error messages

        Raises:
            ParseError: on unknown fields, wrong types or invalid revisions
        """
        _check_keys(data, ('equivalences', 'migrations'), 'database', path)

        store = cls()
        for i, item in enumerate(_parse_list(data, 'equivalences', path)):
            where = f"equivalences[{i}]"
            _check_keys(item, ('rev1', 'rev2'), where, path)
            rev1 = _parse_revision(item.get('rev1'), f"{where}.rev1", path)
            rev2 = _parse_revision(item.get('rev2'), f"{where}.rev2", path)
            try:
                store.add_equivalence(RepositoryEquivalence(rev1, rev2))
            except ValueError as e:
                raise ParseError(f"{where}: {e}", path) from e

        for i, item in enumerate(_parse_list(data, 'migrations', path)):
            where = f"migrations[{i}]"
            _check_keys(item, ('from', 'to'), where, path)
            store.add_migration(SubmittedMigration(
                from_rev=_parse_revision(item.get('from'), f"{where}.from", path),
                to_rev=_parse_revision(item.get('to'), f"{where}.to", path),
            ))

        return store

    @classmethod
    def from_json(cls, text: str, path: Optional[str] = None) -> 'EquivalenceStore':
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseError(f"invalid JSON: {e}", path) from e
        return cls.from_dict(data, path)


# Storage-level name for the same aggregate.
DbStorage = EquivalenceStore
