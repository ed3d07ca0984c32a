# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Helpers for key -> set-of-values mappings.

A multimap here is a plain dict whose values are sets. The helpers insert
into one, turn one into sorted lists for query results, and transpose one
against a restricting universe of keys.
"""

from typing import Any, Dict, Hashable, Iterable, List, Optional, Protocol, Set

MultiMap = Dict[Hashable, Set[Any]]


class SetLookup(Protocol):
    """Anything with a dict-style get() returning a set of values (dicts, LazyCache)."""

    def get(self, key: Any) -> Optional[Set[Any]]:
        ...


def insert(multimap: MultiMap, key: Hashable, value: Any) -> None:
    """Add value to the set stored under key, creating the set if needed.

    Inserting a value that is already present is a no-op.
    """
    values = multimap.get(key)
    if values is None:
        values = set()
        multimap[key] = values
    values.add(value)


def sorted_values(values: Iterable[Any]) -> List[Any]:
    """Deduplicate and sort values by their natural order."""
    return sorted(set(values))


def to_sorted_multimap(multimap: MultiMap) -> Dict[Hashable, List[Any]]:
    """Convert key -> set into key -> sorted list.

    Keys whose set is empty map to an empty list rather than being dropped.
    """
    return {key: sorted_values(values) for key, values in multimap.items()}


def invert(multimap: SetLookup, universe: Iterable[Hashable]) -> MultiMap:
    """Transpose key -> set-of-values into value -> set-of-keys.

    Only keys in universe are considered, so spurious keys present in the
    source never appear as values of the result.

    Args:
        multimap: Source mapping (a dict, or any object with get()).
        universe: Keys of the source to include.

    Returns:
        Mapping from each value seen to the set of universe keys that held it.
    """
    inverted: MultiMap = {}
    for key in universe:
        values = multimap.get(key)
        if not values:
            continue
        for value in values:
            insert(inverted, value, key)
    return inverted
