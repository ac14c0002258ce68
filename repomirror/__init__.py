"""
repomirror - Equivalence tracking for mirrored repositories.

repomirror keeps a durable record of where two independently-versioned
repositories (say, an internal tree and its public mirror) are known to hold
the same content, and of the migrations already copied between them.

Quick Start:
    import repomirror

    db = repomirror.open_db("~/.repomirror/db.json")
    db.note_equivalence(repomirror.RepositoryEquivalence(
        repomirror.Revision("1002", "internal"),
        repomirror.Revision("2", "public"),
    ))
    db.write()

    # Walk internal history back to its last equivalence with public
    history = repomirror.GitRevisionHistory("internal", "~/src/internal")
    matcher = repomirror.EquivalenceMatcher("public", db)
    result = repomirror.find_revisions(history, history.find_head_revisions(), matcher)
    for rev in result.revisions_since_equivalence.breadth_first():
        print(rev)

Domain Objects:
    Revision - One commit in one named repository
    RepositoryEquivalence - Two revisions holding the same content
    SubmittedMigration - A completed one-directional copy
    RevisionGraph - Revisions found by a history walk

Database backends (chosen by location string):
    dummy[:anything] - In memory, writes discarded
    file:///path, /path - JSON file, written atomically
"""

__version__ = "0.3.0"

# Domain objects
from .domain import (
    Revision,
    RevisionMetadata,
    RepositoryEquivalence,
    SubmittedMigration,
    EquivalenceStore,
    DbStorage,
    RevisionGraph,
)

# Database
from .database import (
    Db,
    DummyDb,
    FileDb,
    FileDbFactory,
    DbWriter,
    create_db,
    open_db,
)

# Services
from .services import (
    EquivalenceMatcher,
    MatchResult,
    RevisionHistory,
    GitRevisionHistory,
    SearchType,
    find_revisions,
)

# Errors
from .errors import (
    RepoMirrorError,
    ConfigurationError,
    ParseError,
    PersistenceError,
    StructureError,
    HistoryError,
)

# Configuration
from .config import load_config, save_config

__all__ = [
    "__version__",
    # Domain objects
    "Revision",
    "RevisionMetadata",
    "RepositoryEquivalence",
    "SubmittedMigration",
    "EquivalenceStore",
    "DbStorage",
    "RevisionGraph",
    # Database
    "Db",
    "DummyDb",
    "FileDb",
    "FileDbFactory",
    "DbWriter",
    "create_db",
    "open_db",
    # Services
    "EquivalenceMatcher",
    "MatchResult",
    "RevisionHistory",
    "GitRevisionHistory",
    "SearchType",
    "find_revisions",
    # Errors
    "RepoMirrorError",
    "ConfigurationError",
    "ParseError",
    "PersistenceError",
    "StructureError",
    "HistoryError",
    # Configuration
    "load_config",
    "save_config",
]
