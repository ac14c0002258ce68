"""
Revision graph for repomirror.

A RevisionGraph is an immutable arena of revision -> metadata entries plus
the set of roots the history walk started from. Parent links are Revision
keys, not object references; a parent that is not itself a node lies on the
graph boundary (typically a revision that already has a known equivalence).
"""

from collections import deque
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple
import logging

from ..errors import StructureError
from .revision import Revision, RevisionMetadata

logger = logging.getLogger(__name__)


class RevisionGraph:
    """
    Immutable DAG of revisions, built with RevisionGraph.builder().

    Example:
        graph = (RevisionGraph.builder([head])
                 .add_revision(head, head_metadata)
                 .build())
        for rev in graph.breadth_first():
            print(rev, graph[rev].author)
    """

    def __init__(self, roots: Tuple[Revision, ...], nodes: Mapping[Revision, RevisionMetadata]):
        self._roots = tuple(roots)
        self._nodes = MappingProxyType(dict(nodes))

    @staticmethod
    def builder(roots: Iterable[Revision]) -> 'RevisionGraphBuilder':
        return RevisionGraphBuilder(roots)

    @classmethod
    def empty(cls) -> 'RevisionGraph':
        return cls((), {})

    @property
    def roots(self) -> Tuple[Revision, ...]:
        return self._roots

    @property
    def nodes(self) -> Mapping[Revision, RevisionMetadata]:
        return self._nodes

    def get_metadata(self, revision: Revision) -> Optional[RevisionMetadata]:
        return self._nodes.get(revision)

    def revisions(self) -> Tuple[Revision, ...]:
        return tuple(self._nodes)

    def parents(self, revision: Revision) -> Tuple[Revision, ...]:
        return self._nodes[revision].parents

    def boundary(self) -> Tuple[Revision, ...]:
        """Parents referenced by nodes but not present in the graph, first-seen order."""
        seen = []
        for revision in self.breadth_first():
            for parent in self._nodes[revision].parents:
                if parent not in self._nodes and parent not in seen:
                    seen.append(parent)
        return tuple(seen)

    def breadth_first(self) -> Iterator[Revision]:
        """Yield nodes from the roots backward through parent links."""
        visited = set()
        queue = deque(self._roots)
        while queue:
            revision = queue.popleft()
            if revision in visited or revision not in self._nodes:
                continue
            visited.add(revision)
            yield revision
            queue.extend(self._nodes[revision].parents)

    def __getitem__(self, revision: Revision) -> RevisionMetadata:
        return self._nodes[revision]

    def __contains__(self, revision: object) -> bool:
        return revision in self._nodes

    def __iter__(self) -> Iterator[Revision]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RevisionGraph):
            return NotImplemented
        return set(self._roots) == set(other._roots) and dict(self._nodes) == dict(other._nodes)

    def __hash__(self):
        return hash((frozenset(self._roots), frozenset(self._nodes.items())))

    def __repr__(self) -> str:
        roots = ', '.join(str(r) for r in self._roots)
        return f"RevisionGraph(roots=[{roots}], nodes={len(self._nodes)})"


class RevisionGraphBuilder:
    """Accumulates revisions and validates them into a RevisionGraph."""

    def __init__(self, roots: Iterable[Revision]):
        self._roots: List[Revision] = []
        for root in roots:
            if root not in self._roots:
                self._roots.append(root)
        self._nodes: Dict[Revision, RevisionMetadata] = {}

    def add_revision(self, revision: Revision, metadata: RevisionMetadata) -> 'RevisionGraphBuilder':
        """
        Register a revision and its metadata.

        Re-adding identical metadata is a no-op.

        Raises:
            StructureError: if the revision was already added with different metadata
        """
        existing = self._nodes.get(revision)
        if existing is not None and existing != metadata:
            raise StructureError(f"Conflicting metadata for revision {revision}")
        self._nodes[revision] = metadata
        return self

    def build(self) -> RevisionGraph:
        """
        Validate and freeze the graph.

        Raises:
            StructureError: if a root is missing, a cycle exists, or a node
                cannot be reached from any root
        """
        missing = [r for r in self._roots if r not in self._nodes]
        if missing:
            raise StructureError(
                "Root revision(s) not in graph: " + ', '.join(str(r) for r in missing)
            )

        self._check_acyclic()

        reachable = set()
        queue = deque(self._roots)
        while queue:
            revision = queue.popleft()
            if revision in reachable or revision not in self._nodes:
                continue
            reachable.add(revision)
            queue.extend(self._nodes[revision].parents)

        unreachable = [r for r in self._nodes if r not in reachable]
        if unreachable:
            raise StructureError(
                "Revision(s) not reachable from any root: "
                + ', '.join(str(r) for r in unreachable)
            )

        logger.debug(f"Built revision graph with {len(self._nodes)} node(s)")
        return RevisionGraph(tuple(self._roots), self._nodes)

    def _check_acyclic(self) -> None:
        # Iterative three-color DFS; only edges between nodes can form a cycle.
        WHITE, GREY, BLACK = 0, 1, 2
        color = {r: WHITE for r in self._nodes}

        for start in self._nodes:
            if color[start] != WHITE:
                continue
            color[start] = GREY
            stack = [(start, iter(self._nodes[start].parents))]
            while stack:
                revision, parents = stack[-1]
                for parent in parents:
                    if parent not in self._nodes:
                        continue
                    if color[parent] == GREY:
                        raise StructureError(f"Cycle detected at revision {parent}")
                    if color[parent] == WHITE:
                        color[parent] = GREY
                        stack.append((parent, iter(self._nodes[parent].parents)))
                        break
                else:
                    color[revision] = BLACK
                    stack.pop()
