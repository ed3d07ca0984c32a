# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Core data models for the type graph index.

This module defines the foundational data structures used throughout the system:
- EntityKind: Enum-like class for the three disjoint entity kinds
- TypeFact: One scanned entity and its declared direct relations
- FactFormatError: Raised for malformed or conflicting fact input
- LazyCacheStatistics: Hit/miss/computation counters for a lazy cache

All models use JSON-compatible primitives so fact lists can be read from and
written to JSON or YAML without custom encoders.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class FactFormatError(ValueError):
    """Raised when a fact is malformed or conflicts with another fact."""

    pass


class EntityKind:
    """Kinds of scanned entities.

    Design: Using class constants (not Enum) for JSON-compatible strings.
    """

    STANDARD = "standard"  # class Foo
    INTERFACE = "interface"  # interface Foo
    ANNOTATION = "annotation"  # @interface Foo

    ALL = (STANDARD, INTERFACE, ANNOTATION)

    @classmethod
    def is_valid(cls, kind: Any) -> bool:
        """Check whether a value is one of the known kinds."""
        return kind in cls.ALL


def _merge_names(first: Iterable[str], second: Iterable[str]) -> List[str]:
    """Order-preserving deduplicated union of two name lists."""
    return list(dict.fromkeys([*first, *second]))


@dataclass
class TypeFact:
    """A scanned entity and its declared direct relations.

    Produced by an external scanner, one per entity. Relation lists may name
    entities that were never scanned; such names are ignored when the graph
    is wired.

    Design Constraint: Uses primitives only for easy serialization.
    """

    name: str  # Fully qualified entity name, globally unique
    kind: Optional[str] = None  # EntityKind value, None if not stated by this fact
    superclass_names: List[str] = field(default_factory=list)
    interface_names: List[str] = field(default_factory=list)  # implemented or extended
    annotation_names: List[str] = field(default_factory=list)

    @property
    def resolved_kind(self) -> str:
        """Kind used when building the graph (unstated kinds are standard types)."""
        return self.kind if self.kind is not None else EntityKind.STANDARD

    def merge(self, other: "TypeFact", prefer_own_kind: bool = False) -> "TypeFact":
        """Combine two facts describing the same entity.

        Args:
            other: Fact to merge into this one.
            prefer_own_kind: If True, this fact's stated kind wins over a
                conflicting stated kind in other. If False, a conflict raises.

        Returns:
            New TypeFact with this fact's name and the union of both facts'
            relation lists.

        Raises:
            FactFormatError: If both facts state different kinds and
                prefer_own_kind is False.
        """
        kind = self.kind
        if kind is None:
            kind = other.kind
        elif other.kind is not None and other.kind != kind and not prefer_own_kind:
            raise FactFormatError(
                f"Conflicting kinds for '{self.name}': {kind} vs {other.kind}"
            )

        return TypeFact(
            name=self.name,
            kind=kind,
            superclass_names=_merge_names(self.superclass_names, other.superclass_names),
            interface_names=_merge_names(self.interface_names, other.interface_names),
            annotation_names=_merge_names(self.annotation_names, other.annotation_names),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        result: Dict[str, Any] = {"name": self.name}
        if self.kind is not None:
            result["kind"] = self.kind
        if self.superclass_names:
            result["superclass_names"] = list(self.superclass_names)
        if self.interface_names:
            result["interface_names"] = list(self.interface_names)
        if self.annotation_names:
            result["annotation_names"] = list(self.annotation_names)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TypeFact":
        """Deserialize from JSON-compatible dict.

        Accepts either a "kind" string or the boolean flags "is_interface" /
        "is_annotation" (annotation takes precedence, as annotations are
        interfaces at the binary level).

        Raises:
            FactFormatError: If the dict is not a valid fact.
        """
        if not isinstance(data, dict):
            raise FactFormatError(f"Fact must be a mapping, got {type(data).__name__}")

        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise FactFormatError(f"Fact name must be a non-empty string: {name!r}")

        kind = data.get("kind")
        if kind is None:
            if data.get("is_annotation"):
                kind = EntityKind.ANNOTATION
            elif data.get("is_interface"):
                kind = EntityKind.INTERFACE
        elif not EntityKind.is_valid(kind):
            raise FactFormatError(f"Unknown kind for '{name}': {kind!r}")

        return cls(
            name=name,
            kind=kind,
            superclass_names=_name_list(data, "superclass_names", name),
            interface_names=_name_list(data, "interface_names", name),
            annotation_names=_name_list(data, "annotation_names", name),
        )


def _name_list(data: Dict[str, Any], key: str, fact_name: str) -> List[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise FactFormatError(f"'{key}' of '{fact_name}' must be a list of strings")
    return list(value)


@dataclass
class LazyCacheStatistics:
    """Statistics for one lazy cache.

    computations counts bulk population passes plus per-key generation
    calls, so a repeated query that is served from the cache leaves it
    unchanged.
    """

    hits: int = 0
    misses: int = 0
    computations: int = 0
    absent_entries: int = 0  # keys cached as "no such key"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict.

        Returns:
            Dictionary with all statistics fields.
        """
        return {
            "hits": self.hits,
            "misses": self.misses,
            "computations": self.computations,
            "absent_entries": self.absent_entries,
        }
