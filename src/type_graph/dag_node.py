# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""DAG nodes and transitive closure for the type graph.

Each scanned entity becomes one DAGNode. Nodes reference each other by
name only; the builder owns the name -> node arena, so there are no
ownership cycles between node objects.

Edge types:
- Direct edges (parent -> child): superclass -> subclass,
  superinterface -> subinterface, meta-annotation -> annotation.
  These are the only edges followed by the closure.
- Cross-links: class -> implemented interface, annotation -> annotated
  entity. Never traversed by the closure.

Closure:
find_transitive_closure() orders one kind's nodes topologically and
computes every node's ancestor set from its parents' sets (and descendant
sets from children's sets in reverse order), so each set is built once and
reused. A cycle makes the ordering impossible and raises
GraphStructureError instead of producing undefined results.
"""

import logging
from collections import deque
from typing import Dict, FrozenSet, Iterable, List, Optional, Set

logger = logging.getLogger(__name__)


class GraphStructureError(Exception):
    """Raised when direct edges of one entity kind contain a cycle."""

    def __init__(self, message: str, cycle_names: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.cycle_names = cycle_names or []


class DAGNode:
    """A named entity with direct edges, cross-links and closure sets.

    Edge collections are ordered and deduplicated (insertion-ordered dicts
    keyed by name).
    """

    def __init__(self, name: str, kind: str) -> None:
        self.name = name
        self.kind = kind

        self._direct_parents: Dict[str, None] = {}
        self._direct_children: Dict[str, None] = {}
        self._cross_links: Dict[str, None] = {}

        # Set by find_transitive_closure()
        self._all_ancestors: Optional[FrozenSet[str]] = None
        self._all_descendants: Optional[FrozenSet[str]] = None

    def add_child(self, child: "DAGNode") -> None:
        """Add a direct parent -> child edge from this node to child."""
        self._direct_children[child.name] = None
        child._direct_parents[self.name] = None

    def add_cross_link(self, target: "DAGNode") -> None:
        """Add a cross-link from this node to target."""
        self._cross_links[target.name] = None

    @property
    def direct_parents(self) -> List[str]:
        return list(self._direct_parents)

    @property
    def direct_children(self) -> List[str]:
        return list(self._direct_children)

    @property
    def cross_links(self) -> List[str]:
        """Cross-linked names.

        For a standard type: the interfaces it implements.
        For an annotation: the non-annotation entities it annotates.
        """
        return list(self._cross_links)

    @property
    def closure_computed(self) -> bool:
        return self._all_ancestors is not None

    @property
    def all_ancestors(self) -> FrozenSet[str]:
        """Names of every node reachable through child -> parent edges (excluding self).

        Raises:
            GraphStructureError: If the closure has not been computed yet.
        """
        if self._all_ancestors is None:
            raise GraphStructureError(f"Transitive closure not computed for '{self.name}'")
        return self._all_ancestors

    @property
    def all_descendants(self) -> FrozenSet[str]:
        """Names of every node reachable through parent -> child edges (excluding self).

        Raises:
            GraphStructureError: If the closure has not been computed yet.
        """
        if self._all_descendants is None:
            raise GraphStructureError(f"Transitive closure not computed for '{self.name}'")
        return self._all_descendants

    def to_dict(self) -> Dict[str, object]:
        """Serialize edges (and closure sets if computed) to a JSON-compatible dict."""
        result: Dict[str, object] = {
            "name": self.name,
            "kind": self.kind,
            "direct_parents": self.direct_parents,
            "direct_children": self.direct_children,
            "cross_links": self.cross_links,
        }
        if self.closure_computed:
            result["all_ancestors"] = sorted(self.all_ancestors)
            result["all_descendants"] = sorted(self.all_descendants)
        return result

    def __repr__(self) -> str:
        return f"DAGNode(name={self.name!r}, kind={self.kind!r})"


def _topological_order(members: Dict[str, DAGNode]) -> List[str]:
    """Order member names so every parent precedes its children.

    Edges to nodes outside members are ignored. Roots keep their input order.

    Raises:
        GraphStructureError: If the member edges contain a cycle.
    """
    in_degree: Dict[str, int] = {
        name: sum(1 for parent in node._direct_parents if parent in members)
        for name, node in members.items()
    }
    queue = deque(name for name, degree in in_degree.items() if degree == 0)
    order: List[str] = []

    while queue:
        name = queue.popleft()
        order.append(name)
        for child in members[name]._direct_children:
            if child not in members:
                continue
            in_degree[child] -= 1
            if in_degree[child] == 0:
                queue.append(child)

    if len(order) != len(members):
        # Cycle members plus anything below them
        cyclic = sorted(name for name, degree in in_degree.items() if degree > 0)
        raise GraphStructureError(
            f"Cycle in direct edges; {len(cyclic)} entities unordered: {', '.join(cyclic)}",
            cycle_names=cyclic,
        )
    return order


def find_transitive_closure(nodes: Iterable[DAGNode]) -> None:
    """Compute all_ancestors and all_descendants for every node in nodes.

    nodes must be the complete set of one entity kind. Only direct edges
    between members are followed, so edges to nodes of another kind are
    kept on the nodes but do not contribute to this kind's closure.

    Args:
        nodes: All nodes of one entity kind, direct edges already wired.

    Raises:
        GraphStructureError: If the direct edges among nodes form a cycle.
    """
    members: Dict[str, DAGNode] = {node.name: node for node in nodes}
    order = _topological_order(members)

    ancestors: Dict[str, Set[str]] = {}
    for name in order:
        reached: Set[str] = set()
        for parent in members[name]._direct_parents:
            if parent in members:
                reached.add(parent)
                reached |= ancestors[parent]
        ancestors[name] = reached

    descendants: Dict[str, Set[str]] = {}
    for name in reversed(order):
        reached = set()
        for child in members[name]._direct_children:
            if child in members:
                reached.add(child)
                reached |= descendants[child]
        descendants[name] = reached

    for name, node in members.items():
        node._all_ancestors = frozenset(ancestors[name])
        node._all_descendants = frozenset(descendants[name])

    logger.debug(f"Computed transitive closure for {len(members)} nodes")
