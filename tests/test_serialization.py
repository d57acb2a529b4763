"""
Tests for serialization and model file loading.

Dumped models use the authorization service's JSON shape, so they must
parse back to the same model through parse_model.
"""

import json

import pytest
import yaml

from fga_typegen.examples import EXAMPLE_DSL, build_example_model, build_example_payload
from fga_typegen.exceptions import MalformedModelError
from fga_typegen.expressions import ComputedUserset, DifferenceExpression, TupleToUserset
from fga_typegen.serialization import (
    load_model_file,
    model_from_dict,
    model_from_dsl,
    model_from_json,
    model_from_yaml,
    model_to_dict,
    model_to_json,
    model_to_yaml,
    rewrite_to_dict,
)


class TestRewriteToDict:
    """Test rewrite nodes are written with the service's camelCase keys."""

    def test_tuple_to_userset(self):
        assert rewrite_to_dict(TupleToUserset("parent", "viewer")) == {
            "tupleToUserset": {
                "tupleset": {"relation": "parent"},
                "computedUserset": {"relation": "viewer"},
            }
        }

    def test_difference(self):
        expr = DifferenceExpression(ComputedUserset("viewer"), ComputedUserset("blocked"))
        assert rewrite_to_dict(expr) == {
            "difference": {
                "base": {"computedUserset": {"relation": "viewer"}},
                "subtract": {"computedUserset": {"relation": "blocked"}},
            }
        }

    def test_unknown_node(self):
        with pytest.raises(TypeError):
            rewrite_to_dict("owner")


class TestModelRoundTrip:
    """Test dict/JSON/YAML round trips of the example model."""

    def test_dict_round_trip(self):
        model = build_example_model()
        assert model_from_dict(model_to_dict(model)) == model

    def test_json_round_trip(self):
        model = build_example_model()
        assert model_from_json(model_to_json(model)) == model

    def test_yaml_round_trip(self):
        model = build_example_model()
        assert model_from_yaml(model_to_yaml(model)) == model

    def test_metadata_only_for_relations_with_subjects(self):
        d = model_to_dict(build_example_model())
        user, organization = d["type_definitions"][0], d["type_definitions"][1]
        assert user["metadata"] is None
        assert organization["metadata"]["relations"]["member"] == {
            "directly_related_user_types": [
                {"type": "user"},
                {"type": "team", "relation": "member"},
            ]
        }

    def test_conditions_are_kept(self):
        d = model_to_dict(build_example_model())
        assert list(d["conditions"]) == ["non_expired"]

    def test_invalid_json(self):
        with pytest.raises(MalformedModelError, match="invalid JSON"):
            model_from_json("{not json")

    def test_invalid_yaml(self):
        with pytest.raises(MalformedModelError, match="invalid YAML"):
            model_from_yaml("type_definitions: [unclosed")


class TestLoadModelFile:
    """Test loading models from local files by suffix."""

    def test_json_file(self, tmp_path):
        path = tmp_path / "model.json"
        path.write_text(json.dumps(build_example_payload()), encoding="utf-8")
        assert load_model_file(path) == build_example_model()

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "model.yml"
        path.write_text(yaml.safe_dump(build_example_payload(), sort_keys=False), encoding="utf-8")
        assert load_model_file(path) == build_example_model()

    def test_dsl_file_uses_stem_as_id(self, tmp_path):
        path = tmp_path / "collab.fga"
        path.write_text(EXAMPLE_DSL, encoding="utf-8")
        model = load_model_file(path)
        assert model.id == "collab"
        assert model.type_definitions == build_example_model().type_definitions

    def test_dsl_file_with_explicit_id(self, tmp_path):
        path = tmp_path / "collab.fga"
        path.write_text(EXAMPLE_DSL, encoding="utf-8")
        assert load_model_file(path, model_id="01X").id == "01X"

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "model.txt"
        path.write_text("", encoding="utf-8")
        with pytest.raises(MalformedModelError, match="unsupported model file type"):
            load_model_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_model_file(tmp_path / "absent.json")

    def test_non_utf8_file(self, tmp_path):
        path = tmp_path / "model.json"
        path.write_bytes(b'{"type_definitions": [{"type": "\xff"}]}')
        with pytest.raises(MalformedModelError, match="not valid UTF-8") as exc_info:
            load_model_file(path)
        assert exc_info.value.location == str(path)

    def test_dsl_helper(self):
        assert model_from_dsl(EXAMPLE_DSL).id == ""
