"""
Revision history walking for repomirror.

RevisionHistory is what a version-control backend has to offer: resolve a
revision, read its metadata. find_revisions() walks a history backward from
starting revisions, stopping at revisions the matcher recognizes, and hands
the graph plus its frontier to the matcher.
"""

from abc import ABC, abstractmethod
from collections import deque
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional
import logging

from ..domain import Revision, RevisionGraph, RevisionMetadata
from ..errors import HistoryError, StructureError
from ..infra import GitClient, parse_metadata
from .equivalence_matcher import EquivalenceMatcher, MatchResult

logger = logging.getLogger(__name__)


class SearchType(Enum):
    """Which parents a history walk follows."""
    LINEAR = "linear"      # First parent only
    BRANCHED = "branched"  # Every parent


class RevisionHistory(ABC):
    """Read access to one repository's revision history."""

    repository_name: str

    @abstractmethod
    def find_highest_revision(self, rev_id: Optional[str] = None) -> Revision:
        """Resolve rev_id (or the head, if None) to a Revision."""

    @abstractmethod
    def get_metadata(self, revision: Revision) -> RevisionMetadata:
        """Read metadata, including parents, for revision."""

    def find_head_revisions(self) -> List[Revision]:
        return [self.find_highest_revision(None)]


class GitRevisionHistory(RevisionHistory):
    """RevisionHistory of a local git checkout."""

    def __init__(self, repository_name: str, path: str, git_client: Optional[GitClient] = None):
        self.repository_name = repository_name
        self.path = str(Path(path).expanduser())
        self.git = git_client or GitClient()

    def find_highest_revision(self, rev_id: Optional[str] = None) -> Revision:
        return Revision(self.git.rev_parse(self.path, rev_id), self.repository_name)

    def get_metadata(self, revision: Revision) -> RevisionMetadata:
        if revision.repository_name != self.repository_name:
            raise HistoryError(
                f"Could not get metadata: revision {revision.rev_id} is in repository "
                f"{revision.repository_name} instead of {self.repository_name}"
            )
        metadata = parse_metadata(self.repository_name, self.git.log_metadata(self.path, revision.rev_id))
        if metadata is None:
            raise HistoryError(f"No such revision {revision} in {self.path}")
        return metadata


def find_revisions(
    history: RevisionHistory,
    start: Iterable[Revision],
    matcher: EquivalenceMatcher,
    search_type: SearchType = SearchType.BRANCHED,
    max_revisions: Optional[int] = None,
) -> MatchResult:
    """
    Walk history backward from start until every path hits a matched revision.

    Matched revisions form the boundary: they are not added to the graph and
    their ancestors are not visited. A path that reaches the beginning of
    history without a match simply ends.

    Args:
        history: History to read metadata from
        start: Revisions to walk back from
        matcher: Supplies the stopping predicate and assembles the result
        search_type: Follow all parents, or first parents only
        max_revisions: Give up after visiting this many unmatched revisions

    Returns:
        MatchResult of the unmatched revisions and their frontier equivalences

    Raises:
        StructureError: if max_revisions is exceeded
        HistoryError: if the backend cannot read a revision
    """
    start = list(start)
    roots = []
    boundary: List[Revision] = []
    nodes = {}

    visited = set()
    queue = deque(start)
    while queue:
        revision = queue.popleft()
        if revision in visited:
            continue
        visited.add(revision)

        if matcher.matches(revision):
            boundary.append(revision)
            continue

        if revision in start and revision not in roots:
            roots.append(revision)

        if max_revisions is not None and len(nodes) >= max_revisions:
            raise StructureError(
                f"Walked more than {max_revisions} revisions from "
                f"{', '.join(str(r) for r in start)} without reaching an equivalence"
            )

        metadata = history.get_metadata(revision)
        nodes[revision] = metadata
        parents = metadata.parents
        if search_type is SearchType.LINEAR:
            parents = parents[:1]
        queue.extend(parents)

    builder = RevisionGraph.builder(roots)
    for revision, metadata in nodes.items():
        builder.add_revision(revision, metadata)
    graph = builder.build()

    logger.info(
        f"Found {len(graph)} revision(s) since equivalence, "
        f"{len(boundary)} boundary revision(s)"
    )
    return matcher.make_result(graph, boundary)
