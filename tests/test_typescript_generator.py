"""
Tests for the TypeScript backend.

There is no TypeScript toolchain in the test run, so these tests check
the emitted declarations as text.
"""

from fga_typegen.backends import Target
from fga_typegen.backends.typescript_generator import DEFAULT_FILE_NAME, HELPER_NAMES
from fga_typegen.examples import build_example_model
from fga_typegen.generator import generate_module
from fga_typegen.parser import parse_model


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
    return generate_module(model, Target.TYPESCRIPT, generated_at=GENERATED_AT).text


class TestObjectTypes:
    """Test the object-type constants."""

    def test_const_object(self):
        text = render()
        assert "export const ObjectTypes = {\n  user: \"user\",\n  organization: \"organization\",\n} as const;" in text

    def test_object_type_union(self):
        assert "export type ObjectType = (typeof ObjectTypes)[keyof typeof ObjectTypes];" in render()

    def test_object_types_array(self):
        assert 'export const OBJECT_TYPES: readonly ObjectType[] = ["user", "organization"];' in render()

    def test_reserved_words_are_escaped(self):
        text = render({"type_definitions": [{"type": "interface"}]})
        assert '  _interface: "interface",' in text
        assert "export const _interface_relations = {} as const;" in text


class TestRelations:
    """Test per-type relation groups."""

    def test_relation_group(self):
        text = render()
        assert (
            "export const organization_relations = {\n"
            '  owner: "owner", // direct\n'
            '  admin: "admin", // computed\n'
            "} as const;"
        ) in text

    def test_relation_union(self):
        assert 'export type organization_relation = "owner" | "admin";' in render()

    def test_empty_relation_union_is_never(self):
        text = render()
        assert "export const user_relations = {} as const;" in text
        assert "export type user_relation = never;" in text

    def test_relation_map(self):
        text = render()
        assert '  "organization": organization_relation;' in text
        assert "export type RelationFor<T extends ObjectType> = RelationMap[T];" in text

    def test_inherited_category_comment(self):
        assert '  can_view_team: "can_view_team", // inherited' in render(model=build_example_model())


class TestTupleKeys:
    """Test the tuple-key interfaces and their union."""

    def test_variant_interface(self):
        text = render()
        assert (
            "export interface organization_tuple_key {\n"
            '  type: "organization";\n'
            "  object: `organization:${string}`;\n"
            "  relation: organization_relation;\n"
            "  user: string;\n"
            "  condition?: TupleCondition;\n"
            "}"
        ) in text

    def test_union_has_one_variant_per_type(self):
        assert "export type TupleKey =\n  | user_tuple_key\n  | organization_tuple_key;" in render()

    def test_condition_names(self):
        assert "export type ConditionName = string;" in render()
        assert 'export type ConditionName = "non_expired";' in render(model=build_example_model())


class TestHelpers:
    """Test helper signatures and error classes."""

    def test_helper_names(self):
        assert set(HELPER_NAMES.values()) == {
            "formatObject", "parseObject", "buildTupleKey", "validateRelation",
        }

    def test_signatures(self):
        text = render()
        assert (
            "export function formatObject<T extends ObjectType>(objectType: T, objectId: string): "
            "`${T}:${string}` {"
        ) in text
        assert "export function parseObject(value: string): ParsedObject | null {" in text
        assert (
            "export function buildTupleKey<T extends ObjectType>(objectType: T, objectId: string, "
            "relation: RelationFor<T>, user: string, condition?: TupleCondition): TupleKeyFor<T> {"
        ) in text
        assert "export function validateRelation(objectType: string, relation: string): boolean {" in text

    def test_error_classes(self):
        text = render()
        assert "export class UnknownRelationError extends Error {" in text
        assert "export class EmptyIdentifierError extends Error {" in text
        assert "throw new UnknownRelationError(objectType, relation);" in text
        assert "throw new EmptyIdentifierError(objectType);" in text

    def test_parse_returns_null_on_no_match(self):
        assert "return null;" in render()


class TestMetadata:
    """Test the metadata block."""

    def test_relations_by_object(self):
        text = render()
        assert '  "user": [],\n  "organization": ["owner", "admin"],' in text

    def test_generated_at_on_one_line(self):
        lines = [line for line in render().splitlines() if GENERATED_AT in line]
        assert lines == [f'export const GENERATED_AT = "{GENERATED_AT}";']

    def test_authorization_model(self):
        text = render()
        assert '  modelId: "01ORG",' in text
        assert '  relations: ["owner", "admin"],' in text
        assert '      computed: ["admin"],' in text
        assert "  generatedAt: GENERATED_AT," in text

    def test_default_file_name(self):
        assert generate_module(parse_model(ORGANIZATION_PAYLOAD)).file_name == DEFAULT_FILE_NAME == "fga-types.ts"
