"""
Domain layer for repomirror.

Contains pure domain objects with no I/O or side effects:
- Revision: One commit in one named repository
- RevisionMetadata: Author, date, description and parents of a revision
- RepositoryEquivalence: Two revisions known to hold the same content
- SubmittedMigration: A completed copy from one revision to another
- EquivalenceStore: The serializable set of all equivalences and migrations
- RevisionGraph: Immutable DAG of revisions produced by a history walk
"""

from .revision import Revision, RevisionMetadata
from .equivalence import (
    RepositoryEquivalence,
    SubmittedMigration,
    EquivalenceStore,
    DbStorage,
)
from .graph import RevisionGraph, RevisionGraphBuilder

__all__ = [
    'Revision',
    'RevisionMetadata',
    'RepositoryEquivalence',
    'SubmittedMigration',
    'EquivalenceStore',
    'DbStorage',
    'RevisionGraph',
    'RevisionGraphBuilder',
]
