# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Shared fixtures for type graph tests.

Provides the small pet-shop type hierarchy used across test modules:

    Animal <- Dog <- Puppy          (standard types)
    Pet <- ServiceAnimal            (interfaces; Dog implements Pet)
    Meta <- Deprecated              (annotations; Deprecated is meta-annotated by Meta)
    Dog carries @Deprecated
"""

from typing import List

import pytest

from type_graph.graph_builder import ClassGraphBuilder
from type_graph.models import EntityKind, TypeFact


@pytest.fixture
def pet_facts() -> List[TypeFact]:
    """Facts for the pet-shop hierarchy, with Dog's relations split over three facts."""
    return [
        TypeFact(name="Animal", kind=EntityKind.STANDARD),
        TypeFact(name="Dog", kind=EntityKind.STANDARD, superclass_names=["Animal"]),
        TypeFact(name="Puppy", kind=EntityKind.STANDARD, superclass_names=["Dog"]),
        TypeFact(name="Pet", kind=EntityKind.INTERFACE),
        TypeFact(name="ServiceAnimal", kind=EntityKind.INTERFACE, interface_names=["Pet"]),
        TypeFact(name="Dog", interface_names=["Pet"]),
        TypeFact(name="Meta", kind=EntityKind.ANNOTATION),
        TypeFact(name="Deprecated", kind=EntityKind.ANNOTATION, annotation_names=["Meta"]),
        TypeFact(name="Dog", annotation_names=["Deprecated"]),
    ]


@pytest.fixture
def pet_graph(pet_facts: List[TypeFact]) -> ClassGraphBuilder:
    """Built graph for the pet-shop hierarchy."""
    return ClassGraphBuilder.from_facts(pet_facts)
