# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for loading fact files."""

import json

import pytest
import yaml

from type_graph.fact_loader import load_facts, parse_facts
from type_graph.models import EntityKind, FactFormatError, TypeFact

FACTS = [
    {"name": "Animal", "kind": "standard"},
    {"name": "Dog", "superclass_names": ["Animal"], "interface_names": ["Pet"]},
    {"name": "Pet", "kind": "interface"},
]


class TestParseFacts:
    def test_list_document(self):
        facts = parse_facts(FACTS)
        assert [fact.name for fact in facts] == ["Animal", "Dog", "Pet"]
        assert facts[1] == TypeFact(name="Dog", superclass_names=["Animal"], interface_names=["Pet"])

    def test_mapping_document(self):
        facts = parse_facts({"facts": FACTS})
        assert facts[2].kind == EntityKind.INTERFACE

    def test_mapping_without_facts_key(self):
        with pytest.raises(FactFormatError, match="'facts' list"):
            parse_facts({"classes": FACTS})

    def test_scalar_document(self):
        with pytest.raises(FactFormatError, match="expected a list"):
            parse_facts("Dog")

    def test_error_names_entry_index(self):
        with pytest.raises(FactFormatError, match="fact #1"):
            parse_facts([{"name": "Ok"}, {"name": ""}], source="facts.json")


class TestLoadFacts:
    def test_load_json(self, tmp_path):
        path = tmp_path / "facts.json"
        path.write_text(json.dumps(FACTS))

        assert len(load_facts(path)) == 3

    @pytest.mark.parametrize("suffix", [".yml", ".yaml"])
    def test_load_yaml(self, tmp_path, suffix):
        path = tmp_path / f"facts{suffix}"
        with open(path, "w") as f:
            yaml.dump({"facts": FACTS}, f)

        facts = load_facts(str(path))

        assert [fact.name for fact in facts] == ["Animal", "Dog", "Pet"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_facts(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "facts.json"
        path.write_text("[{not json")

        with pytest.raises(FactFormatError, match="could not decode"):
            load_facts(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "facts.yml"
        path.write_text("facts: [unclosed\n")

        with pytest.raises(FactFormatError, match="could not decode"):
            load_facts(path)
