"""
Tests for the Python backend.

The generated module is executed, so the helpers are tested as a
caller would use them, not only as text.
"""

from dataclasses import replace

import pytest

from fga_typegen.backends import Target
from fga_typegen.backends.python_generator import HELPER_NAMES, generate_python
from fga_typegen.examples import build_example_model
from fga_typegen.generator import generate_module
from fga_typegen.parser import parse_model
from fga_typegen.symbols import build_symbol_table
from fga_typegen.synthesizer import TUPLE_KEY_FIELDS, HelperRole, synthesize_module


GENERATED_AT = "2024-01-01T00:00:00+00:00"

ORGANIZATION_PAYLOAD = {
    "id": "01ORG",
    "schema_version": "1.1",
    "type_definitions": [
        {"type": "user"},
        {
            "type": "organization",
            "relations": {
                "owner": {"this": {}},
                "admin": {"union": {"child": [
                    {"this": {}},
                    {"computedUserset": {"relation": "owner"}},
                ]}},
            },
            "metadata": {"relations": {
                "owner": {"directly_related_user_types": [{"type": "user"}]},
                "admin": {"directly_related_user_types": [{"type": "user"}]},
            }},
        },
    ],
}


def render(payload=None, model=None) -> str:
    model = model or parse_model(payload or ORGANIZATION_PAYLOAD)
    return generate_module(model, Target.PYTHON, generated_at=GENERATED_AT).text


def load(text: str) -> dict:
    """Execute generated source and return its namespace."""
    namespace: dict = {"__name__": "fga_types"}
    exec(compile(text, "fga_types.py", "exec"), namespace)
    return namespace


@pytest.fixture
def organization_module():
    return load(render())


@pytest.fixture
def example_module():
    return load(render(model=build_example_model()))


class TestGeneratedSource:
    """Test the layout of the generated text."""

    def test_sections_in_order(self):
        text = render()
        positions = [
            text.index(f"# {title}\n")
            for title in ("OBJECT TYPES", "RELATIONS", "TUPLE KEYS", "HELPERS", "METADATA")
        ]
        assert positions == sorted(positions)

    def test_header_names_the_model(self):
        assert render().startswith('# Relationship types for authorization model "01ORG" (schema "1.1").')

    def test_relation_constants_carry_categories(self):
        text = render()
        assert "class organization_relations:" in text
        assert '    owner: Final = "owner"  # direct' in text
        assert '    admin: Final = "admin"  # computed' in text
        assert 'organization_relation = Literal["owner", "admin"]' in text

    def test_type_without_relations(self):
        text = render()
        assert "class user_relations:\n    pass\n" in text
        assert "user_relation = Never" in text

    def test_tuple_key_union(self):
        assert "TupleKey = Union[user_tuple_key, organization_tuple_key]" in render()

    def test_condition_name_without_conditions(self):
        assert "ConditionName = str" in render()

    def test_condition_name_with_conditions(self):
        assert 'ConditionName = Literal["non_expired"]' in render(model=build_example_model())

    def test_timestamp_on_one_line(self):
        lines = [line for line in render().splitlines() if GENERATED_AT in line]
        assert lines == [f'GENERATED_AT: Final = "{GENERATED_AT}"']

    def test_reserved_type_names_are_escaped(self):
        text = render({"type_definitions": [{"type": "class", "relations": {"import": {"this": {}}}}]})
        assert '    _class: Final = "class"' in text
        assert "class _class_relations:" in text
        assert '    _import: Final = "import"  # direct' in text
        assert load(text)["ObjectTypes"]._class == "class"

    def test_tuple_key_variant(self):
        assert (
            "class organization_tuple_key(TypedDict):\n"
            '    type: Literal["organization"]\n'
            "    object: str\n"
            "    relation: organization_relation\n"
            "    user: str\n"
            "    condition: NotRequired[TupleCondition]\n"
        ) in render()

    def test_variant_fields_drive_the_class_body(self):
        module = synthesize_module(build_symbol_table(parse_model(ORGANIZATION_PAYLOAD)))
        required = tuple(f for f in TUPLE_KEY_FIELDS if f.required)
        module = replace(
            module,
            tuple_key_variants=tuple(replace(v, fields=required) for v in module.tuple_key_variants),
        )
        text = generate_python(module, GENERATED_AT)
        assert "    condition: NotRequired[TupleCondition]" not in text
        assert "    user: str\n" in text

    def test_generate_python_directly(self):
        module = synthesize_module(build_symbol_table(parse_model(ORGANIZATION_PAYLOAD)))
        text = generate_python(module, GENERATED_AT)
        assert text.endswith("\n")
        assert text == render()


class TestGeneratedConstants:
    """Test the constants of the executed module."""

    def test_object_types(self, organization_module):
        assert organization_module["ObjectTypes"].organization == "organization"
        assert organization_module["OBJECT_TYPES"] == ("user", "organization")

    def test_relation_constants(self, organization_module):
        relations = organization_module["organization_relations"]
        assert (relations.owner, relations.admin) == ("owner", "admin")

    def test_metadata(self, organization_module):
        metadata = organization_module["AUTHORIZATION_MODEL"]
        assert metadata["modelId"] == "01ORG"
        assert metadata["schemaVersion"] == "1.1"
        assert metadata["objectTypes"] == ("user", "organization")
        assert metadata["relations"] == ("owner", "admin")
        assert metadata["relationsByObject"] == {"user": (), "organization": ("owner", "admin")}
        assert metadata["relationCategories"]["organization"] == {
            "direct": ("owner",),
            "computed": ("admin",),
            "inherited": (),
            "indirect": (),
        }
        assert metadata["generatedAt"] == GENERATED_AT

    def test_inherited_relation_in_metadata(self, example_module):
        categories = example_module["AUTHORIZATION_MODEL"]["relationCategories"]
        assert categories["team"]["inherited"] == ("can_view_team",)
        assert categories["document"]["indirect"] == ("can_share",)


class TestGeneratedHelpers:
    """Test format / parse / build / validate at runtime."""

    def test_helper_names(self, organization_module):
        for name in HELPER_NAMES.values():
            assert callable(organization_module[name])
        assert HELPER_NAMES[HelperRole.BUILD] == "build_tuple_key"

    def test_format(self, organization_module):
        assert organization_module["format_object"]("organization", "42") == "organization:42"

    def test_format_rejects_empty_id(self, organization_module):
        with pytest.raises(organization_module["EmptyIdentifierError"]) as exc_info:
            organization_module["format_object"]("organization", "")
        assert exc_info.value.object_type == "organization"
        assert isinstance(exc_info.value, ValueError)

    def test_parse(self, organization_module):
        parse = organization_module["parse_object"]
        assert parse("organization:42") == {"type": "organization", "id": "42"}

    @pytest.mark.parametrize("value", ["bogus", "organization:", "folder:1", ":1", ""])
    def test_parse_no_match(self, organization_module, value):
        assert organization_module["parse_object"](value) is None

    def test_parse_splits_on_first_colon(self, organization_module):
        parsed = organization_module["parse_object"]("organization:a:b")
        assert parsed == {"type": "organization", "id": "a:b"}

    def test_build(self, organization_module):
        key = organization_module["build_tuple_key"]("organization", "1", "owner", "user:alice")
        assert key == {
            "type": "organization",
            "object": "organization:1",
            "relation": "owner",
            "user": "user:alice",
        }

    def test_build_with_condition(self, example_module):
        condition = {"name": "non_expired", "context": {"expires_at": "2030-01-01T00:00:00Z"}}
        key = example_module["build_tuple_key"]("document", "readme", "editor", "user:bob", condition)
        assert key["condition"] == condition
        assert key["object"] == "document:readme"

    def test_build_rejects_unknown_relation(self, organization_module):
        error_class = organization_module["UnknownRelationError"]
        with pytest.raises(error_class) as exc_info:
            organization_module["build_tuple_key"]("organization", "1", "invalid_relation", "user:alice")
        assert (exc_info.value.object_type, exc_info.value.relation) == ("organization", "invalid_relation")

    def test_build_rejects_unknown_type(self, organization_module):
        with pytest.raises(organization_module["UnknownRelationError"]):
            organization_module["build_tuple_key"]("folder", "1", "owner", "user:alice")

    def test_build_rejects_empty_id(self, organization_module):
        with pytest.raises(organization_module["EmptyIdentifierError"]):
            organization_module["build_tuple_key"]("organization", "", "owner", "user:alice")

    def test_validate(self, organization_module):
        validate = organization_module["validate_relation"]
        assert validate("organization", "owner")
        assert validate("organization", "admin")
        assert not validate("organization", "viewer")
        assert not validate("user", "owner")
        assert not validate("folder", "owner")

    def test_validate_agrees_with_model(self, example_module):
        """validate is true exactly for the relations each type declares."""
        model = build_example_model()
        validate = example_module["validate_relation"]
        all_relations = example_module["AUTHORIZATION_MODEL"]["relations"]
        for type_def in model.type_definitions:
            for relation in all_relations:
                assert validate(type_def.name, relation) == (relation in type_def.relation_names)

    def test_format_parse_round_trip(self, example_module):
        for object_type in example_module["OBJECT_TYPES"]:
            formatted = example_module["format_object"](object_type, "id-1")
            assert example_module["parse_object"](formatted) == {"type": object_type, "id": "id-1"}
