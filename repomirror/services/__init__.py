"""
Service layer for repomirror.

Services contain business logic and orchestrate domain objects
and infrastructure. They are the primary API for operations.

Services:
- EquivalenceMatcher: Decides where history walks stop and what they found
- find_revisions: Backward history walk producing a MatchResult
- GitRevisionHistory: Revision history read from a git checkout
"""

from .equivalence_matcher import EquivalenceMatcher, MatchResult
from .history_service import (
    RevisionHistory,
    GitRevisionHistory,
    SearchType,
    find_revisions,
)

__all__ = [
    'EquivalenceMatcher',
    'MatchResult',
    'RevisionHistory',
    'GitRevisionHistory',
    'SearchType',
    'find_revisions',
]
