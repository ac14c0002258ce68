"""
Revision domain objects for repomirror.

A Revision identifies one commit in one named repository. RevisionMetadata
carries what a version-control backend knows about that commit, including
its ordered parent links.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Revision:
    """
    Identity of a single commit.

    Equality and hashing use both fields, so the same revision id in two
    repositories names two different revisions.

    Example:
        Revision("1002", "internal") != Revision("1002", "public")
    """

    rev_id: str
    repository_name: str

    def __post_init__(self):
        if not isinstance(self.rev_id, str) or not self.rev_id:
            raise ValueError("Revision id must be a non-empty string")
        if not isinstance(self.repository_name, str) or not self.repository_name:
            raise ValueError("Repository name must be a non-empty string")

    def __str__(self) -> str:
        return f"{self.repository_name}{{{self.rev_id}}}"

    def to_dict(self) -> Dict[str, str]:
        return {
            'rev_id': self.rev_id,
            'repository_name': self.repository_name,
        }


@dataclass(frozen=True)
class RevisionMetadata:
    """
    Metadata for one revision as reported by a history backend.

    Attributes:
        id: Backend-native commit id
        author: Commit author
        date: Commit timestamp
        description: Full commit message
        parents: Parent revisions, in the order the backend reports them
    """

    id: str
    author: str
    date: Optional[datetime] = None
    description: str = ""
    parents: Tuple[Revision, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Accept any iterable of parents but store an immutable tuple.
        object.__setattr__(self, 'parents', tuple(self.parents))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'author': self.author,
            'date': self.date.isoformat() if self.date else None,
            'description': self.description,
            'parents': [p.to_dict() for p in self.parents],
        }
