"""
Python module generator for synthesized authorization types.

Renders a SynthesizedModule as a self-contained Python module built on
typing constructs:

    ObjectTypes / ObjectType        class of Final constants + Literal alias
    <id>_relations / <id>_relation  per-type relation constants + Literal alias
    <id>_tuple_key / TupleKey       TypedDict variants + their Union
    format_object, parse_object,
    build_tuple_key, validate_relation
    AUTHORIZATION_MODEL             metadata block

The generated module targets Python 3.11+ (NotRequired, Never) and
evaluates its annotations eagerly, so definitions are emitted before use.
"""

import json
import keyword
from typing import Dict, Iterable, List

from fga_typegen.synthesizer import (
    EMPTY_IDENTIFIER_ERROR,
    UNKNOWN_RELATION_ERROR,
    FieldKind,
    HelperFunction,
    HelperRole,
    RelationGroup,
    SynthesizedModule,
    TupleKeyField,
    TupleKeyVariant,
)


DEFAULT_FILE_NAME = "fga_types.py"

RESERVED_WORDS = frozenset(keyword.kwlist) | frozenset(keyword.softkwlist)

_TYPING_IMPORTS = (
    "Any", "Final", "Literal", "Never", "NotRequired", "Optional", "TypedDict", "Union", "cast",
)

HELPER_NAMES: Dict[HelperRole, str] = {
    HelperRole.FORMAT: "format_object",
    HelperRole.PARSE: "parse_object",
    HelperRole.BUILD: "build_tuple_key",
    HelperRole.VALIDATE: "validate_relation",
}

# Module-level names defined regardless of the model.
MODULE_NAMES = frozenset(_TYPING_IMPORTS) | frozenset(HELPER_NAMES.values()) | frozenset({
    "ObjectTypes", "ObjectType", "OBJECT_TYPES", "ConditionName", "TupleCondition",
    "TupleKey", "ParsedObject", EMPTY_IDENTIFIER_ERROR, UNKNOWN_RELATION_ERROR,
    "RELATIONS_BY_OBJECT", "GENERATED_AT", "AUTHORIZATION_MODEL",
})

_PARAMETER_TYPES = {
    "object_type": "ObjectType",
    "relation": "str",
    "string": "str",
    "condition": "Optional[TupleCondition]",
}

_RETURN_TYPES = {
    HelperRole.FORMAT: "str",
    HelperRole.PARSE: "Optional[ParsedObject]",
    HelperRole.BUILD: "TupleKey",
    HelperRole.VALIDATE: "bool",
}


def _str(value: str) -> str:
    """Quote a string as a Python literal."""
    return json.dumps(value, ensure_ascii=False)


def _tuple(values: Iterable[str]) -> str:
    items = [_str(v) for v in values]
    if not items:
        return "()"
    if len(items) == 1:
        return f"({items[0]},)"
    return f"({', '.join(items)})"


def _literal(values: Iterable[str]) -> str:
    items = [_str(v) for v in values]
    if not items:
        return "Never"
    return f"Literal[{', '.join(items)}]"


def _banner(title: str) -> List[str]:
    rule = "# " + "=" * 77
    return ["", "", rule, f"# {title}", rule, ""]


# =============================================================================
# SECTIONS
# =============================================================================

def _header(module: SynthesizedModule) -> List[str]:
    meta = module.metadata
    return [
        f"# Relationship types for authorization model {_str(meta.model_id)} "
        f"(schema {_str(meta.schema_version)}).",
        "#",
        "# Generated by fga-typegen. Do not edit by hand; re-run the generator instead.",
        "",
        f"from typing import {', '.join(_TYPING_IMPORTS)}",
    ]


def _object_types(module: SynthesizedModule) -> List[str]:
    lines = _banner("OBJECT TYPES")
    lines.append("class ObjectTypes:")
    for object_type in module.object_types:
        lines.append(f"    {object_type.identifier}: Final = {_str(object_type.name)}")
    lines.append("")
    lines.append("")
    lines.append(f"ObjectType = {_literal(module.metadata.object_types)}")
    lines.append("")
    lines.append(
        f"OBJECT_TYPES: Final[tuple[str, ...]] = {_tuple(module.metadata.object_types)}"
    )
    return lines


def _relation_group(group: RelationGroup) -> List[str]:
    lines = [
        "",
        "",
        f"# Relations of object type {_str(group.object_type)}.",
        f"class {group.const_name}:",
    ]
    if group.is_empty:
        lines.append("    pass")
    for relation in group.members:
        lines.append(
            f"    {relation.identifier}: Final = {_str(relation.name)}"
            f"  # {relation.category.value}"
        )
    lines.append("")
    lines.append("")
    lines.append(f"{group.type_name} = {_literal(r.name for r in group.members)}")
    return lines


def _relations(module: SynthesizedModule) -> List[str]:
    lines = _banner("RELATIONS")[:-1]
    for group in module.relation_groups:
        lines.extend(_relation_group(group))
    return lines


def _field_type(field: TupleKeyField, variant: TupleKeyVariant) -> str:
    if field.kind is FieldKind.DISCRIMINATOR:
        return f"Literal[{_str(variant.object_type)}]"
    if field.kind is FieldKind.RELATION:
        return variant.relation_type
    if field.kind is FieldKind.CONDITION:
        return "TupleCondition"
    if field.kind in (FieldKind.OBJECT_REFERENCE, FieldKind.SUBJECT):
        return "str"
    raise TypeError(f"Unsupported field kind: {field.kind}")


def _tuple_key_variant(variant: TupleKeyVariant) -> List[str]:
    lines = [
        "",
        "",
        f"# Tuple key for {_str(variant.object_type)}: object is "
        f"{_str(variant.object_prefix + '<id>')}.",
        f"class {variant.type_name}(TypedDict):",
    ]
    for field in variant.fields:
        field_type = _field_type(field, variant)
        if not field.required:
            field_type = f"NotRequired[{field_type}]"
        lines.append(f"    {field.name}: {field_type}")
    return lines


def _tuple_keys(module: SynthesizedModule) -> List[str]:
    lines = _banner("TUPLE KEYS")
    if module.conditions:
        lines.append(f"ConditionName = {_literal(module.conditions)}")
    else:
        lines.append("ConditionName = str")
    lines.extend([
        "",
        "",
        "class TupleCondition(TypedDict):",
        "    name: ConditionName",
        "    context: NotRequired[dict[str, Any]]",
    ])
    for variant in module.tuple_key_variants:
        lines.extend(_tuple_key_variant(variant))
    members = ", ".join(v.type_name for v in module.tuple_key_variants)
    lines.extend(["", "", f"TupleKey = Union[{members}]"])
    return lines


def _errors() -> List[str]:
    return [
        "",
        "",
        f"class {EMPTY_IDENTIFIER_ERROR}(ValueError):",
        f'    """Raised by {HELPER_NAMES[HelperRole.FORMAT]} when the object id is empty."""',
        "",
        "    def __init__(self, object_type: str):",
        "        self.object_type = object_type",
        '        super().__init__(f"object id for type {object_type!r} must not be empty")',
        "",
        "",
        f"class {UNKNOWN_RELATION_ERROR}(ValueError):",
        f'    """Raised by {HELPER_NAMES[HelperRole.BUILD]} when the relation is not defined on the object type."""',
        "",
        "    def __init__(self, object_type: str, relation: str):",
        "        self.object_type = object_type",
        "        self.relation = relation",
        "        super().__init__(",
        '            f"relation {relation!r} is not defined on object type {object_type!r}"',
        "        )",
        "",
        "",
        "class ParsedObject(TypedDict):",
        "    type: ObjectType",
        "    id: str",
    ]


def _signature(helper: HelperFunction) -> str:
    params = []
    for p in helper.parameters:
        param = f"{p.name}: {_PARAMETER_TYPES[p.kind]}"
        if p.optional:
            param += " = None"
        params.append(param)
    return (
        f"def {HELPER_NAMES[helper.role]}({', '.join(params)}) "
        f"-> {_RETURN_TYPES[helper.role]}:"
    )


def _helper_body(helper: HelperFunction) -> List[str]:
    if helper.role is HelperRole.FORMAT:
        return [
            "    if not object_id:",
            f"        raise {EMPTY_IDENTIFIER_ERROR}(object_type)",
            '    return f"{object_type}:{object_id}"',
        ]
    if helper.role is HelperRole.PARSE:
        return [
            '    object_type, separator, object_id = value.partition(":")',
            "    if not separator or not object_id or object_type not in RELATIONS_BY_OBJECT:",
            "        return None",
            '    return {"type": cast(ObjectType, object_type), "id": object_id}',
        ]
    if helper.role is HelperRole.BUILD:
        return [
            f"    if not {HELPER_NAMES[HelperRole.VALIDATE]}(object_type, relation):",
            f"        raise {UNKNOWN_RELATION_ERROR}(object_type, relation)",
            "    tuple_key: dict[str, Any] = {",
            '        "type": object_type,',
            f'        "object": {HELPER_NAMES[HelperRole.FORMAT]}(object_type, object_id),',
            '        "relation": relation,',
            '        "user": user,',
            "    }",
            "    if condition is not None:",
            '        tuple_key["condition"] = condition',
            "    return cast(TupleKey, tuple_key)",
        ]
    if helper.role is HelperRole.VALIDATE:
        return [
            "    return relation in RELATIONS_BY_OBJECT.get(object_type, ())",
        ]
    raise TypeError(f"Unsupported helper role: {helper.role}")


def _helpers(module: SynthesizedModule) -> List[str]:
    lines = _banner("HELPERS")[:-1]
    lines.extend(_errors())
    for helper in module.helpers:
        lines.extend(["", "", _signature(helper)])
        lines.append(f'    """{helper.summary}"""')
        lines.extend(_helper_body(helper))
    return lines


def _metadata(module: SynthesizedModule, generated_at: str) -> List[str]:
    meta = module.metadata
    lines = _banner("METADATA")
    lines.append("RELATIONS_BY_OBJECT: Final[dict[str, tuple[str, ...]]] = {")
    for type_name, relations in meta.relations_by_object.items():
        lines.append(f"    {_str(type_name)}: {_tuple(relations)},")
    lines.append("}")
    lines.append("")
    lines.append(f"GENERATED_AT: Final = {_str(generated_at)}")
    lines.append("")
    lines.append("AUTHORIZATION_MODEL: Final[dict[str, Any]] = {")
    lines.append(f'    "modelId": {_str(meta.model_id)},')
    lines.append(f'    "schemaVersion": {_str(meta.schema_version)},')
    lines.append('    "objectTypes": OBJECT_TYPES,')
    lines.append(f'    "relations": {_tuple(meta.relations)},')
    lines.append('    "relationsByObject": RELATIONS_BY_OBJECT,')
    lines.append('    "relationCategories": {')
    for type_name, buckets in meta.relation_categories.items():
        lines.append(f"        {_str(type_name)}: {{")
        for category, names in buckets.items():
            lines.append(f"            {_str(category)}: {_tuple(names)},")
        lines.append("        },")
    lines.append("    },")
    lines.append('    "generatedAt": GENERATED_AT,')
    lines.append("}")
    return lines


def generate_python(module: SynthesizedModule, generated_at: str) -> str:
    """
    Generate the Python source for a synthesized module.

    Args:
        module: Output of synthesize_module
        generated_at: Timestamp written to the GENERATED_AT line

    Returns:
        Module source text, ending with a newline
    """
    lines: List[str] = []
    lines.extend(_header(module))
    lines.extend(_object_types(module))
    lines.extend(_relations(module))
    lines.extend(_tuple_keys(module))
    lines.extend(_helpers(module))
    lines.extend(_metadata(module, generated_at))
    return "\n".join(lines) + "\n"


__all__ = ["DEFAULT_FILE_NAME", "RESERVED_WORDS", "HELPER_NAMES", "MODULE_NAMES", "generate_python"]
