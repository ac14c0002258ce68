"""
Equivalence matching for repomirror.

Given a target repository and a database, the matcher decides where a
backward history walk stops (matches()) and assembles the walk's outcome
(make_result()): the revisions committed since the last equivalence, plus
the equivalences found at that frontier.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Tuple
import logging

from ..database import Db
from ..domain import RepositoryEquivalence, Revision, RevisionGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of matching a revision graph against the database.

    Attributes:
        revisions_since_equivalence: Revisions that have no recorded
            equivalence yet (the graph that was matched, unchanged)
        equivalences: Equivalences at the graph's frontier, in boundary order
    """

    revisions_since_equivalence: RevisionGraph
    equivalences: Tuple[RepositoryEquivalence, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        graph = self.revisions_since_equivalence
        return {
            'revisions_since_equivalence': [
                dict(graph[rev].to_dict(), revision=rev.to_dict())
                for rev in graph.breadth_first()
            ],
            'equivalences': [e.to_dict() for e in self.equivalences],
        }


class EquivalenceMatcher:
    """
    Matches revisions against equivalences into one target repository.

    Example:
        matcher = EquivalenceMatcher("public", db)
        if matcher.matches(Revision("1002", "internal")):
            ...
    """

    def __init__(self, target_repository_name: str, db: Db):
        self.target_repository_name = target_repository_name
        self.db = db

    def matches(self, revision: Revision) -> bool:
        """True if revision has a recorded equivalence in the target repository."""
        return bool(self.db.find_equivalences(revision, self.target_repository_name))

    def make_result(self, graph: RevisionGraph, boundary_revisions: Iterable[Revision]) -> MatchResult:
        """
        Collect the equivalences at the frontier of graph.

        Every equivalence of every boundary revision into the target repository
        is included once, in the order the boundary revisions are given. A
        revision with several equivalences contributes all of them.

        Args:
            graph: Revisions since the last equivalence
            boundary_revisions: Revisions at which the walk stopped

        Returns:
            MatchResult holding graph unchanged and the frontier equivalences
        """
        equivalences: List[RepositoryEquivalence] = []
        seen = set()
        for revision in boundary_revisions:
            others = self.db.find_equivalences(revision, self.target_repository_name)
            if len(others) > 1:
                logger.warning(
                    f"{revision} has {len(others)} equivalences in "
                    f"{self.target_repository_name}"
                )
            for other in sorted(others, key=lambda r: r.rev_id):
                equivalence = RepositoryEquivalence(other, revision)
                if equivalence not in seen:
                    seen.add(equivalence)
                    equivalences.append(equivalence)

        return MatchResult(
            revisions_since_equivalence=graph,
            equivalences=tuple(equivalences),
        )
