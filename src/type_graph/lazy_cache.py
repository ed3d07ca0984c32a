# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Memoizing key -> value caches populated on first use.

Every derived index of the type graph is a LazyCache. Two population
strategies are supported, chosen at construction:

- Bulk: the first access of any key runs one population pass that returns
  the whole mapping. Later accesses, hits or misses, never populate again.
- Per-key: the first access of a key runs a generator for that key only.
  The result is cached, including an explicit ABSENT marker when the
  generator returns None, so repeated misses are not recomputed.

Thread Safety:
- Single reentrant _lock per cache protects _values, _populated, _stats
- Population/generation runs under the lock, so concurrent callers asking
  for the same uncomputed key observe exactly one computation
- Generators may read other caches; cache dependencies form a DAG, so no
  lock cycle can occur
"""

import logging
import threading
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Set, Tuple

from type_graph.models import LazyCacheStatistics
from type_graph.multimap import SetLookup, invert, sorted_values

logger = logging.getLogger(__name__)


class _Absent:
    """Marker for a key whose generator reported "no such key"."""

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()


class LazyCacheMode:
    """Population strategies for LazyCache.

    Design: Using class constants (not Enum) for JSON-compatible strings.
    """

    BULK = "bulk"
    PER_KEY = "per_key"


class LazyCache:
    """Key -> value store computed on demand and cached for its lifetime.

    Usage:
        nodes = LazyCache.bulk(lambda: {n.name: n for n in node_list}, name="nodes")
        subclasses = LazyCache.per_key(compute_subclasses, name="subclasses")
        node = nodes.get("com.example.Foo")
    """

    def __init__(
        self,
        mode: str,
        populate: Optional[Callable[[], Dict[Hashable, Any]]] = None,
        generate: Optional[Callable[[Hashable], Any]] = None,
        name: str = "lazy_cache",
    ) -> None:
        """Initialize a lazy cache.

        Args:
            mode: LazyCacheMode value.
            populate: Bulk mode only. Returns the complete mapping.
            generate: Per-key mode only. Returns the value for one key, or
                None if the key has no value.
            name: Name used in logs and statistics.

        Raises:
            ValueError: If mode is unknown or the callables don't match it.
        """
        if mode == LazyCacheMode.BULK:
            if populate is None or generate is not None:
                raise ValueError("Bulk LazyCache requires populate and no generate")
        elif mode == LazyCacheMode.PER_KEY:
            if generate is None or populate is not None:
                raise ValueError("Per-key LazyCache requires generate and no populate")
        else:
            raise ValueError(f"Unknown LazyCache mode: {mode!r}")

        self._mode = mode
        self._populate = populate
        self._generate = generate
        self._name = name

        # Internal state (protected by _lock)
        self._values: Dict[Hashable, Any] = {}
        self._populated = False
        self._stats = LazyCacheStatistics()

        self._lock = threading.RLock()

    @classmethod
    def bulk(
        cls, populate: Callable[[], Dict[Hashable, Any]], name: str = "lazy_cache"
    ) -> "LazyCache":
        """Create a cache filled by one population pass on first access."""
        return cls(LazyCacheMode.BULK, populate=populate, name=name)

    @classmethod
    def per_key(cls, generate: Callable[[Hashable], Any], name: str = "lazy_cache") -> "LazyCache":
        """Create a cache that computes each key independently on first access."""
        return cls(LazyCacheMode.PER_KEY, generate=generate, name=name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def mode(self) -> str:
        return self._mode

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Get the value for key, computing it on first access.

        Args:
            key: Key to look up.
            default: Returned when the key has no value.

        Returns:
            Cached value, or default if the key is absent.
        """
        with self._lock:
            if self._mode == LazyCacheMode.BULK:
                self._ensure_populated()
            elif key not in self._values:
                self._generate_value(key)

            value = self._values.get(key, ABSENT)
            if value is ABSENT:
                self._stats.misses += 1
                return default
            self._stats.hits += 1
            return value

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            if self._mode == LazyCacheMode.BULK:
                self._ensure_populated()
            elif key not in self._values:
                self._generate_value(key)
            return self._values.get(key, ABSENT) is not ABSENT

    def is_computed(self, key: Hashable) -> bool:
        """Check whether key has already been computed (as a value or ABSENT)."""
        with self._lock:
            if self._mode == LazyCacheMode.BULK:
                return self._populated
            return key in self._values

    def keys(self) -> List[Hashable]:
        """Keys holding a value.

        Bulk caches are populated first. Per-key caches report only the keys
        computed so far, since their key space is open-ended.
        """
        return [key for key, _ in self.items()]

    def items(self) -> List[Tuple[Hashable, Any]]:
        """(key, value) pairs holding a value, in population order."""
        with self._lock:
            if self._mode == LazyCacheMode.BULK:
                self._ensure_populated()
            return [(key, value) for key, value in self._values.items() if value is not ABSENT]

    def get_statistics(self) -> LazyCacheStatistics:
        """Get cache statistics.

        Returns:
            Copy of the current LazyCacheStatistics.
        """
        with self._lock:
            return LazyCacheStatistics(
                hits=self._stats.hits,
                misses=self._stats.misses,
                computations=self._stats.computations,
                absent_entries=self._stats.absent_entries,
            )

    def _ensure_populated(self) -> None:
        """Run the bulk population pass once. Caller must hold _lock."""
        if self._populated:
            return
        assert self._populate is not None
        values = self._populate()
        self._stats.computations += 1
        self._values = dict(values)
        self._populated = True
        logger.debug(f"LazyCache '{self._name}' populated with {len(self._values)} entries")

    def _generate_value(self, key: Hashable) -> None:
        """Compute and store the value for one key. Caller must hold _lock."""
        assert self._generate is not None
        value = self._generate(key)
        self._stats.computations += 1
        if value is None:
            self._values[key] = ABSENT
            self._stats.absent_entries += 1
        else:
            self._values[key] = value

    def __repr__(self) -> str:
        return f"LazyCache(name={self._name!r}, mode={self._mode!r})"


def sorted_multimap_cache(source: LazyCache, name: Optional[str] = None) -> LazyCache:
    """Per-key view of a key -> set cache as key -> sorted list.

    Keys absent from source are absent from the view; an empty set becomes
    an empty list.
    """

    def generate(key: Hashable) -> Optional[List[Any]]:
        values = source.get(key)
        if values is None:
            return None
        return sorted_values(values)

    return LazyCache.per_key(generate, name=name or f"{source.name}:sorted")


def inverted_multimap_cache(
    source: SetLookup,
    universe: Callable[[], Iterable[Hashable]],
    name: str = "inverted",
) -> LazyCache:
    """Bulk cache holding the transpose of source restricted to universe.

    The inverse is built from the forward cache itself, so the two
    directions always agree.

    Args:
        source: Forward key -> set-of-values lookup.
        universe: Called once on population; yields the forward keys to include.
        name: Name used in logs and statistics.
    """

    def populate() -> Dict[Hashable, Set[Any]]:
        return invert(source, universe())

    return LazyCache.bulk(populate, name=name)
