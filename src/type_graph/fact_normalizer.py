# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Normalization of raw scanner facts before graph construction.

Two passes:
1. merge_duplicate_facts(): facts sharing a name are folded into one, so a
   scanner may report an entity's relations in several partial facts.
2. merge_scala_aux_facts(): Scala emits one binary class per companion
   object (Foo$) and per trait implementation (Foo$class) next to Foo
   itself. These auxiliary classes are folded into their base entity.
   This is why a normalized fact can carry more than one superclass name;
   the builder wires every one of them.
"""

import logging
from typing import Dict, Iterable, List

from type_graph.models import TypeFact

logger = logging.getLogger(__name__)

# Trait implementation classes (Foo$class) and companion objects (Foo$)
SCALA_AUX_SUFFIXES = ("$class", "$")


def scala_base_name(name: str) -> str:
    """Strip a Scala auxiliary-class suffix from name, if present.

    Examples:
        "a.Foo$" -> "a.Foo"
        "a.Foo$class" -> "a.Foo"
        "a.Outer$Inner" -> "a.Outer$Inner" (inner classes are real entities)
    """
    for suffix in SCALA_AUX_SUFFIXES:
        if name.endswith(suffix) and len(name) > len(suffix):
            return name[: -len(suffix)]
    return name


def merge_duplicate_facts(facts: Iterable[TypeFact]) -> List[TypeFact]:
    """Fold facts with the same name into one fact each, keeping first-seen order.

    Raises:
        FactFormatError: If two facts for the same name state different kinds.
    """
    merged: Dict[str, TypeFact] = {}
    duplicates = 0
    for fact in facts:
        existing = merged.get(fact.name)
        if existing is None:
            merged[fact.name] = fact
        else:
            merged[fact.name] = existing.merge(fact)
            duplicates += 1

    if duplicates:
        logger.debug(f"Merged {duplicates} duplicate facts into {len(merged)} entities")
    return list(merged.values())


def _rename(fact: TypeFact, name: str) -> TypeFact:
    return TypeFact(
        name=name,
        kind=fact.kind,
        superclass_names=list(fact.superclass_names),
        interface_names=list(fact.interface_names),
        annotation_names=list(fact.annotation_names),
    )


def _rewrite_references(fact: TypeFact) -> TypeFact:
    """Point relation names at base entities and drop resulting self-references."""

    def rewrite(names: List[str]) -> List[str]:
        rewritten = (scala_base_name(n) for n in names)
        return list(dict.fromkeys(n for n in rewritten if n != fact.name))

    return TypeFact(
        name=fact.name,
        kind=fact.kind,
        superclass_names=rewrite(fact.superclass_names),
        interface_names=rewrite(fact.interface_names),
        annotation_names=rewrite(fact.annotation_names),
    )


def merge_scala_aux_facts(facts: Iterable[TypeFact]) -> List[TypeFact]:
    """Fold Scala companion-object and trait-implementation facts into their base.

    The base fact's kind wins over the auxiliary's (a trait is an interface
    while its Foo$class is a standard class). An auxiliary fact with no base
    fact is renamed to the base name.

    Args:
        facts: Facts with unique names.

    Returns:
        Facts with auxiliary entities merged away, in first-seen order of
        their base names.
    """
    merged: Dict[str, TypeFact] = {}
    folded = 0
    for fact in facts:
        base = scala_base_name(fact.name)
        existing = merged.get(base)
        if base == fact.name:
            # Base fact: its kind takes precedence over anything already folded in
            merged[base] = fact if existing is None else fact.merge(existing, prefer_own_kind=True)
        else:
            renamed = _rename(fact, base)
            merged[base] = (
                renamed if existing is None else existing.merge(renamed, prefer_own_kind=True)
            )
            folded += 1

    if folded:
        logger.debug(f"Folded {folded} Scala auxiliary classes into their base entities")
    return [_rewrite_references(fact) for fact in merged.values()]


def normalize_facts(
    facts: Iterable[TypeFact], merge_scala_aux_classes: bool = True
) -> List[TypeFact]:
    """Run duplicate merging, then (optionally) Scala auxiliary-class merging."""
    normalized = merge_duplicate_facts(facts)
    if merge_scala_aux_classes:
        normalized = merge_scala_aux_facts(normalized)
    return normalized
