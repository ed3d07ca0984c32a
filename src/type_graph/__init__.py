# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Type graph index: reachability queries over type-relationship facts."""

from .config import Config, ConfigurationError
from .dag_node import DAGNode, GraphStructureError, find_transitive_closure
from .dot_export import generate_class_graph_dot
from .fact_loader import load_facts, parse_facts
from .fact_normalizer import merge_duplicate_facts, merge_scala_aux_facts, normalize_facts
from .graph_builder import ClassGraphBuilder
from .lazy_cache import ABSENT, LazyCache, LazyCacheMode
from .models import EntityKind, FactFormatError, LazyCacheStatistics, TypeFact

__version__ = "0.1.0"

__all__ = [
    "ClassGraphBuilder",
    "TypeFact",
    "EntityKind",
    "FactFormatError",
    "DAGNode",
    "GraphStructureError",
    "find_transitive_closure",
    "LazyCache",
    "LazyCacheMode",
    "LazyCacheStatistics",
    "ABSENT",
    "Config",
    "ConfigurationError",
    "load_facts",
    "parse_facts",
    "merge_duplicate_facts",
    "merge_scala_aux_facts",
    "normalize_facts",
    "generate_class_graph_dot",
]
