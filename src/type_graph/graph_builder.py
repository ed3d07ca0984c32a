# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Type graph construction and query layer.

ClassGraphBuilder turns a list of TypeFacts into three DAGs (standard
types, interfaces, annotations), computes their transitive closures, and
answers reachability queries from lazily-built derived indices.

Flow: TypeFacts -> DAGNodes (one per name) -> edges -> closure per kind ->
LazyCache indices materialized on first query.

Edge wiring:
- superclass -> subclass: direct edge
- standard type implements interface: cross-link type -> interface
- interface "implements" interface: direct edge superinterface -> subinterface
- annotation on an annotation: direct edge meta-annotation -> annotation
- annotation on anything else: cross-link annotation -> annotated entity
- names that were never scanned, or interface/annotation names that resolve
  to another kind: dropped silently

Query results:
Every query returns a new sorted, deduplicated list of names. Unknown
names and names of the wrong kind return an empty list, never None.
Inverse views (annotations on an entity, meta-annotations on an
annotation) are transposes of the forward indices, so both directions
stay consistent.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from type_graph.config import Config
from type_graph.dag_node import DAGNode, find_transitive_closure
from type_graph.fact_normalizer import normalize_facts
from type_graph.lazy_cache import LazyCache, inverted_multimap_cache, sorted_multimap_cache
from type_graph.models import EntityKind, TypeFact
from type_graph.multimap import insert, sorted_values

logger = logging.getLogger(__name__)

EXPORT_FORMAT_VERSION = "1.0"


class ClassGraphBuilder:
    """Builds the type graph once and serves queries over it.

    The graph is read-only after construction; every derived index is a
    pure function of it and is cached for the builder's lifetime.

    Usage:
        builder = ClassGraphBuilder.from_facts(facts)
        builder.get_names_of_subclasses_of("com.example.Animal")
        builder.get_names_of_classes_with_annotation("com.example.Deprecated")
    """

    def __init__(self, facts: Iterable[TypeFact]) -> None:
        """Build nodes, wire edges and compute closures.

        Args:
            facts: One fact per entity. Relation names that match no fact
                are ignored. If a name repeats, the first fact decides the
                node's kind and later ones only add edges.

        Raises:
            GraphStructureError: If direct edges of one kind form a cycle.
        """
        all_facts = list(facts)

        self._nodes: Dict[str, DAGNode] = {}
        self._nodes_by_kind: Dict[str, List[DAGNode]] = {kind: [] for kind in EntityKind.ALL}

        # Pass 1: one node per name
        for fact in all_facts:
            if fact.name in self._nodes:
                logger.warning(
                    f"Duplicate fact for '{fact.name}', keeping kind "
                    f"{self._nodes[fact.name].kind}"
                )
                continue
            node = DAGNode(fact.name, fact.resolved_kind)
            self._nodes[fact.name] = node
            self._nodes_by_kind[node.kind].append(node)

        # Pass 2: edges
        self._dropped_references = 0
        for fact in all_facts:
            self._wire_edges(fact)

        # Closure per kind
        for kind in EntityKind.ALL:
            find_transitive_closure(self._nodes_by_kind[kind])

        logger.debug(
            f"Built type graph: {len(self._nodes_by_kind[EntityKind.STANDARD])} standard types, "
            f"{len(self._nodes_by_kind[EntityKind.INTERFACE])} interfaces, "
            f"{len(self._nodes_by_kind[EntityKind.ANNOTATION])} annotations, "
            f"{self._dropped_references} unresolved references dropped"
        )

        self._init_indices()

    @classmethod
    def from_facts(
        cls, facts: Iterable[TypeFact], config: Optional[Config] = None
    ) -> "ClassGraphBuilder":
        """Normalize raw scanner facts and build the graph.

        Args:
            facts: Raw facts, possibly with repeated names or Scala
                auxiliary classes.
            config: Configuration. If None, Scala auxiliary merging is on.

        Raises:
            FactFormatError: If repeated facts state conflicting kinds.
            GraphStructureError: If direct edges of one kind form a cycle.
        """
        merge_scala = config.merge_scala_aux_classes if config is not None else True
        return cls(normalize_facts(facts, merge_scala_aux_classes=merge_scala))

    # =========================================================================
    # Construction
    # =========================================================================

    def _resolve(self, name: str, expected_kind: Optional[str] = None) -> Optional[DAGNode]:
        """Look up a relation target; unknown names (or the wrong kind) count as dropped."""
        node = self._nodes.get(name)
        if node is None or (expected_kind is not None and node.kind != expected_kind):
            self._dropped_references += 1
            return None
        return node

    def _wire_edges(self, fact: TypeFact) -> None:
        """Connect one fact's node to the nodes its relations name."""
        node = self._nodes[fact.name]
        kind = node.kind

        for interface_name in fact.interface_names:
            interface_node = self._resolve(interface_name, EntityKind.INTERFACE)
            if interface_node is None:
                continue
            if kind == EntityKind.STANDARD:
                node.add_cross_link(interface_node)
            elif kind == EntityKind.INTERFACE:
                # An interface implementing an interface extends it
                interface_node.add_child(node)

        # Normally at most one superclass; Scala merging can leave several
        for superclass_name in fact.superclass_names:
            superclass_node = self._resolve(superclass_name)
            if superclass_node is not None:
                superclass_node.add_child(node)

        for annotation_name in fact.annotation_names:
            annotation_node = self._resolve(annotation_name, EntityKind.ANNOTATION)
            if annotation_node is None:
                continue
            if kind == EntityKind.ANNOTATION:
                # Annotations on an annotation are meta-annotations
                annotation_node.add_child(node)
            else:
                annotation_node.add_cross_link(node)

    def _init_indices(self) -> None:
        """Create (but do not populate) every derived index."""
        self._caches: Dict[str, LazyCache] = {}

        def register(cache: LazyCache) -> LazyCache:
            self._caches[cache.name] = cache
            return cache

        # Name -> node, one per kind
        self._standard_nodes = register(
            LazyCache.bulk(self._node_map(EntityKind.STANDARD), name="standard_nodes")
        )
        self._interface_nodes = register(
            LazyCache.bulk(self._node_map(EntityKind.INTERFACE), name="interface_nodes")
        )
        self._annotation_nodes = register(
            LazyCache.bulk(self._node_map(EntityKind.ANNOTATION), name="annotation_nodes")
        )

        # Kind -> sorted names ("" for all kinds)
        self._names_by_kind = register(LazyCache.bulk(self._populate_names, name="names_by_kind"))

        # Class and interface hierarchies
        self._subclasses = register(
            LazyCache.per_key(
                self._closure_names(self._standard_nodes, lambda n: n.all_descendants),
                name="subclasses",
            )
        )
        self._superclasses = register(
            LazyCache.per_key(
                self._closure_names(self._standard_nodes, lambda n: n.all_ancestors),
                name="superclasses",
            )
        )
        self._subinterfaces = register(
            LazyCache.per_key(
                self._closure_names(self._interface_nodes, lambda n: n.all_descendants),
                name="subinterfaces",
            )
        )
        self._superinterfaces = register(
            LazyCache.per_key(
                self._closure_names(self._interface_nodes, lambda n: n.all_ancestors),
                name="superinterfaces",
            )
        )

        # Interface -> implementing standard types
        self._implementors_set = register(
            LazyCache.bulk(self._populate_implementors, name="implementors_set")
        )
        self._implementors = register(
            sorted_multimap_cache(self._implementors_set, name="implementors")
        )

        # Annotation -> annotated entities (directly or through a sub-annotation)
        self._annotated_set = register(
            LazyCache.per_key(self._generate_annotated, name="annotated_set")
        )
        self._annotated = register(sorted_multimap_cache(self._annotated_set, name="annotated"))
        self._annotations_on_entity = register(
            sorted_multimap_cache(
                register(
                    inverted_multimap_cache(
                        self._annotated_set,
                        self._annotation_nodes.keys,
                        name="annotations_on_entity_set",
                    )
                ),
                name="annotations_on_entity",
            )
        )

        # Meta-annotation -> annotations carrying it
        self._meta_annotated_set = register(
            LazyCache.per_key(
                self._closure_set(self._annotation_nodes, lambda n: n.all_descendants),
                name="meta_annotated_set",
            )
        )
        self._meta_annotated = register(
            sorted_multimap_cache(self._meta_annotated_set, name="meta_annotated")
        )
        self._meta_annotations = register(
            sorted_multimap_cache(
                register(
                    inverted_multimap_cache(
                        self._meta_annotated_set,
                        self._annotation_nodes.keys,
                        name="meta_annotations_set",
                    )
                ),
                name="meta_annotations",
            )
        )

    # =========================================================================
    # Index generators
    # =========================================================================

    def _node_map(self, kind: str) -> Callable[[], Dict[str, DAGNode]]:
        def populate() -> Dict[str, DAGNode]:
            return {node.name: node for node in self._nodes_by_kind[kind]}

        return populate

    def _populate_names(self) -> Dict[str, List[str]]:
        names: Dict[str, List[str]] = {
            EntityKind.STANDARD: sorted_values(self._standard_nodes.keys()),
            EntityKind.INTERFACE: sorted_values(self._interface_nodes.keys()),
            EntityKind.ANNOTATION: sorted_values(self._annotation_nodes.keys()),
        }
        names[""] = sorted_values(
            names[EntityKind.STANDARD] + names[EntityKind.INTERFACE] + names[EntityKind.ANNOTATION]
        )
        return names

    @staticmethod
    def _closure_set(
        nodes: LazyCache, closure: Callable[[DAGNode], Iterable[str]]
    ) -> Callable[[str], Optional[Set[str]]]:
        def generate(name: str) -> Optional[Set[str]]:
            node = nodes.get(name)
            if node is None:
                return None
            return set(closure(node))

        return generate

    @staticmethod
    def _closure_names(
        nodes: LazyCache, closure: Callable[[DAGNode], Iterable[str]]
    ) -> Callable[[str], Optional[List[str]]]:
        def generate(name: str) -> Optional[List[str]]:
            node = nodes.get(name)
            if node is None:
                return None
            return sorted_values(closure(node))

        return generate

    def _populate_implementors(self) -> Dict[str, Set[str]]:
        """Map every interface to the standard types implementing it.

        A type implements an interface it is cross-linked to, and every
        superinterface of that interface; its subclasses implement all of
        them too.
        """
        implementors: Dict[str, Set[str]] = {}
        for class_name, class_node in self._standard_nodes.items():
            implementing = [class_name, *class_node.all_descendants]
            for interface_name in class_node.cross_links:
                interface_node = self._interface_nodes.get(interface_name)
                if interface_node is None:
                    # Cross-links of standard types only point at interfaces
                    continue
                for implemented in (interface_name, *interface_node.all_ancestors):
                    for implementor in implementing:
                        insert(implementors, implemented, implementor)
        return implementors

    def _generate_annotated(self, annotation_name: str) -> Optional[Set[str]]:
        """Entities carrying the annotation directly or via any sub-annotation."""
        annotation_node = self._annotation_nodes.get(annotation_name)
        if annotation_node is None:
            return None
        annotated: Set[str] = set(annotation_node.cross_links)
        for sub_annotation_name in annotation_node.all_descendants:
            annotated.update(self._nodes[sub_annotation_name].cross_links)
        return annotated

    # =========================================================================
    # Queries
    # =========================================================================

    @staticmethod
    def _lookup(cache: LazyCache, key: str) -> List[str]:
        values = cache.get(key)
        if values is None:
            return []
        return list(values)

    def get_names_of_all_classes(self) -> List[str]:
        """Sorted names of all standard types, interfaces and annotations."""
        return self._lookup(self._names_by_kind, "")

    def get_names_of_all_standard_classes(self) -> List[str]:
        """Sorted names of all standard (non-interface, non-annotation) types."""
        return self._lookup(self._names_by_kind, EntityKind.STANDARD)

    def get_names_of_all_interface_classes(self) -> List[str]:
        return self._lookup(self._names_by_kind, EntityKind.INTERFACE)

    def get_names_of_all_annotation_classes(self) -> List[str]:
        return self._lookup(self._names_by_kind, EntityKind.ANNOTATION)

    def get_names_of_subclasses_of(self, class_name: str) -> List[str]:
        """Sorted names of all direct and indirect subclasses of a standard type."""
        return self._lookup(self._subclasses, class_name)

    def get_names_of_superclasses_of(self, class_name: str) -> List[str]:
        """Sorted names of all direct and indirect superclasses of a standard type."""
        return self._lookup(self._superclasses, class_name)

    def get_names_of_subinterfaces_of(self, interface_name: str) -> List[str]:
        return self._lookup(self._subinterfaces, interface_name)

    def get_names_of_superinterfaces_of(self, interface_name: str) -> List[str]:
        return self._lookup(self._superinterfaces, interface_name)

    def get_names_of_classes_implementing(self, interface_name: str) -> List[str]:
        """Sorted names of standard types implementing the interface.

        Includes subclasses of implementors and implementors of any
        subinterface.
        """
        return self._lookup(self._implementors, interface_name)

    def get_names_of_classes_with_annotation(self, annotation_name: str) -> List[str]:
        """Sorted names of entities with the annotation or an annotation meta-annotated by it."""
        return self._lookup(self._annotated, annotation_name)

    def get_names_of_annotations_on_class(self, class_name: str) -> List[str]:
        """Sorted names of annotations and meta-annotations on a standard type or interface."""
        return self._lookup(self._annotations_on_entity, class_name)

    def get_names_of_meta_annotations_on_annotation(self, annotation_name: str) -> List[str]:
        """Sorted names of all meta-annotations on the annotation, transitively."""
        return self._lookup(self._meta_annotations, annotation_name)

    def get_names_of_annotations_with_meta_annotation(self, meta_annotation_name: str) -> List[str]:
        """Sorted names of annotations carrying the meta-annotation, transitively."""
        return self._lookup(self._meta_annotated, meta_annotation_name)

    # =========================================================================
    # Graph access and export
    # =========================================================================

    def get_node(self, name: str) -> Optional[DAGNode]:
        return self._nodes.get(name)

    @property
    def standard_class_nodes(self) -> Tuple[DAGNode, ...]:
        return tuple(self._nodes_by_kind[EntityKind.STANDARD])

    @property
    def interface_nodes(self) -> Tuple[DAGNode, ...]:
        return tuple(self._nodes_by_kind[EntityKind.INTERFACE])

    @property
    def annotation_nodes(self) -> Tuple[DAGNode, ...]:
        return tuple(self._nodes_by_kind[EntityKind.ANNOTATION])

    @property
    def dropped_reference_count(self) -> int:
        """Relation names during wiring that matched no fact (or the wrong kind)."""
        return self._dropped_references

    def cache_statistics(self) -> Dict[str, Dict[str, Any]]:
        """Statistics of every derived index, keyed by index name."""
        return {name: cache.get_statistics().to_dict() for name, cache in self._caches.items()}

    def generate_class_graph_dot(self, size: int = 400, layout: str = "neato") -> str:
        """Render the graph as a GraphViz .dot document."""
        from type_graph.dot_export import generate_class_graph_dot

        return generate_class_graph_dot(self, size=size, layout=layout)

    def export_to_dict(self) -> Dict[str, Any]:
        """Export the graph to a JSON-compatible dict.

        Returns:
            Dictionary containing:
            - metadata: timestamp, format version, entity counts per kind
            - nodes: per-node kind, direct edges, cross-links and closure sets
            - edges: counts of direct edges and cross-links per kind
        """
        metadata = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": EXPORT_FORMAT_VERSION,
            "total_entities": len(self._nodes),
            "standard_classes": len(self._nodes_by_kind[EntityKind.STANDARD]),
            "interfaces": len(self._nodes_by_kind[EntityKind.INTERFACE]),
            "annotations": len(self._nodes_by_kind[EntityKind.ANNOTATION]),
            "dropped_references": self._dropped_references,
        }

        edges: Dict[str, Dict[str, int]] = {}
        for kind in EntityKind.ALL:
            kind_nodes = self._nodes_by_kind[kind]
            edges[kind] = {
                "direct_edges": sum(len(node.direct_children) for node in kind_nodes),
                "cross_links": sum(len(node.cross_links) for node in kind_nodes),
            }

        return {
            "metadata": metadata,
            "nodes": [node.to_dict() for node in self._nodes.values()],
            "edges": edges,
        }
