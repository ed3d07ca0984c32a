# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Reading scanner fact lists from JSON or YAML files.

Accepted document shapes:
- a top-level list of fact objects
- a mapping with a "facts" list

Each fact object follows TypeFact.to_dict():
    {"name": "com.example.Dog", "kind": "standard",
     "superclass_names": ["com.example.Animal"],
     "interface_names": ["com.example.Pet"],
     "annotation_names": ["com.example.Deprecated"]}
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Union

import yaml

from type_graph.models import FactFormatError, TypeFact

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yml", ".yaml")


def parse_facts(data: Any, source: str = "<data>") -> List[TypeFact]:
    """Convert decoded JSON/YAML data into TypeFacts.

    Args:
        data: Decoded document.
        source: Description of where data came from, for error messages.

    Raises:
        FactFormatError: If the document shape or any fact is invalid.
    """
    if isinstance(data, dict):
        if "facts" not in data:
            raise FactFormatError(f"{source}: mapping document must contain a 'facts' list")
        data = data["facts"]

    if not isinstance(data, list):
        raise FactFormatError(f"{source}: expected a list of facts, got {type(data).__name__}")

    facts: List[TypeFact] = []
    for index, entry in enumerate(data):
        try:
            facts.append(TypeFact.from_dict(entry))
        except FactFormatError as e:
            raise FactFormatError(f"{source}: fact #{index}: {e}") from e
    return facts


def load_facts(path: Union[str, Path]) -> List[TypeFact]:
    """Load a fact list from a .json, .yml or .yaml file.

    Raises:
        FileNotFoundError: If path doesn't exist.
        FactFormatError: If the file can't be decoded or holds invalid facts.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Fact file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise FactFormatError(f"{path}: could not decode fact file: {e}") from e

    facts = parse_facts(data, source=str(path))
    logger.info(f"Loaded {len(facts)} facts from {path}")
    return facts
