"""
TypeScript module generator for synthesized authorization types.

Renders a SynthesizedModule as one self-contained .ts file:

    ObjectTypes / ObjectType          `as const` object + literal union
    <id>_relations / <id>_relation    per-type relation constants + union
    <id>_tuple_key / TupleKey         interfaces + discriminated union
    formatObject, parseObject,
    buildTupleKey, validateRelation
    AUTHORIZATION_MODEL               metadata block

The relation/type coupling is expressed statically through
RelationMap; validateRelation and buildTupleKey enforce it at runtime.
"""

import json
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


DEFAULT_FILE_NAME = "fga-types.ts"

# ECMAScript reserved words, strict-mode reserved words and TypeScript
# type keywords that cannot name a binding.
RESERVED_WORDS = frozenset({
    "break", "case", "catch", "class", "const", "continue", "debugger",
    "default", "delete", "do", "else", "enum", "export", "extends", "false",
    "finally", "for", "function", "if", "import", "in", "instanceof", "new",
    "null", "return", "super", "switch", "this", "throw", "true", "try",
    "typeof", "var", "void", "while", "with",
    "implements", "interface", "let", "package", "private", "protected",
    "public", "static", "yield", "await",
    "any", "boolean", "never", "number", "object", "string", "symbol",
    "undefined", "unknown",
})

HELPER_NAMES: Dict[HelperRole, str] = {
    HelperRole.FORMAT: "formatObject",
    HelperRole.PARSE: "parseObject",
    HelperRole.BUILD: "buildTupleKey",
    HelperRole.VALIDATE: "validateRelation",
}

# Module-level names defined regardless of the model.
MODULE_NAMES = frozenset(HELPER_NAMES.values()) | frozenset({
    "ObjectTypes", "ObjectType", "OBJECT_TYPES", "RelationMap", "RelationFor",
    "ConditionName", "TupleCondition", "TupleKey", "TupleKeyFor", "ParsedObject",
    EMPTY_IDENTIFIER_ERROR, UNKNOWN_RELATION_ERROR,
    "RELATIONS_BY_OBJECT", "GENERATED_AT", "AUTHORIZATION_MODEL",
})

_PARAMETER_TYPES = {
    "object_type": "T",
    "relation": "RelationFor<T>",
    "string": "string",
    "condition": "TupleCondition",
}

_RETURN_TYPES = {
    HelperRole.FORMAT: "`${T}:${string}`",
    HelperRole.PARSE: "ParsedObject | null",
    HelperRole.BUILD: "TupleKeyFor<T>",
    HelperRole.VALIDATE: "boolean",
}

_INDENT = "  "


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _str(value: str) -> str:
    """Quote a string as a TypeScript literal."""
    return json.dumps(value, ensure_ascii=False)


def _array(values: Iterable[str]) -> str:
    return "[" + ", ".join(_str(v) for v in values) + "]"


def _union(values: Iterable[str]) -> str:
    items = list(values)
    return " | ".join(items) if items else "never"


def _banner(title: str) -> List[str]:
    rule = "// " + "=" * 76
    return ["", rule, f"// {title}", rule, ""]


# =============================================================================
# SECTIONS
# =============================================================================

def _header(module: SynthesizedModule) -> List[str]:
    meta = module.metadata
    return [
        f"// Relationship types for authorization model {_str(meta.model_id)} "
        f"(schema {_str(meta.schema_version)}).",
        "//",
        "// Generated by fga-typegen. Do not edit by hand; re-run the generator instead.",
        "/* eslint-disable */",
    ]


def _object_types(module: SynthesizedModule) -> List[str]:
    lines = _banner("OBJECT TYPES")
    lines.append("export const ObjectTypes = {")
    for object_type in module.object_types:
        lines.append(f"{_INDENT}{object_type.identifier}: {_str(object_type.name)},")
    lines.append("} as const;")
    lines.append("")
    lines.append("export type ObjectType = (typeof ObjectTypes)[keyof typeof ObjectTypes];")
    lines.append("")
    lines.append(
        f"export const OBJECT_TYPES: readonly ObjectType[] = "
        f"{_array(module.metadata.object_types)};"
    )
    return lines


def _relation_group(group: RelationGroup) -> List[str]:
    lines = ["", f"/** Relations of object type {_str(group.object_type)}. */"]
    if group.is_empty:
        lines.append(f"export const {group.const_name} = {{}} as const;")
    else:
        lines.append(f"export const {group.const_name} = {{")
        for relation in group.members:
            lines.append(
                f"{_INDENT}{relation.identifier}: {_str(relation.name)}, "
                f"// {relation.category.value}"
            )
        lines.append("} as const;")
    lines.append("")
    lines.append(
        f"export type {group.type_name} = "
        f"{_union(_str(r.name) for r in group.members)};"
    )
    return lines


def _relations(module: SynthesizedModule) -> List[str]:
    lines = _banner("RELATIONS")[:-1]
    for group in module.relation_groups:
        lines.extend(_relation_group(group))
    lines.extend(["", "export interface RelationMap {"])
    for group in module.relation_groups:
        lines.append(f"{_INDENT}{_str(group.object_type)}: {group.type_name};")
    lines.append("}")
    lines.append("")
    lines.append("export type RelationFor<T extends ObjectType> = RelationMap[T];")
    return lines


def _field_type(field: TupleKeyField, variant: TupleKeyVariant) -> str:
    if field.kind is FieldKind.DISCRIMINATOR:
        return _str(variant.object_type)
    if field.kind is FieldKind.OBJECT_REFERENCE:
        return f"`{variant.object_prefix}${{string}}`"
    if field.kind is FieldKind.RELATION:
        return variant.relation_type
    if field.kind is FieldKind.SUBJECT:
        return "string"
    if field.kind is FieldKind.CONDITION:
        return "TupleCondition"
    raise TypeError(f"Unsupported field kind: {field.kind}")


def _tuple_key_variant(variant: TupleKeyVariant) -> List[str]:
    lines = ["", f"export interface {variant.type_name} {{"]
    for field in variant.fields:
        optional = "" if field.required else "?"
        lines.append(f"{_INDENT}{field.name}{optional}: {_field_type(field, variant)};")
    lines.append("}")
    return lines


def _tuple_keys(module: SynthesizedModule) -> List[str]:
    lines = _banner("TUPLE KEYS")
    lines.append(
        f"export type ConditionName = "
        f"{_union(_str(c) for c in module.conditions) if module.conditions else 'string'};"
    )
    lines.extend([
        "",
        "export interface TupleCondition {",
        f"{_INDENT}name: ConditionName;",
        f"{_INDENT}context?: Record<string, unknown>;",
        "}",
    ])
    for variant in module.tuple_key_variants:
        lines.extend(_tuple_key_variant(variant))
    lines.append("")
    lines.append("export type TupleKey =")
    for variant in module.tuple_key_variants:
        lines.append(f"{_INDENT}| {variant.type_name}")
    lines[-1] += ";"
    lines.append("")
    lines.append("export type TupleKeyFor<T extends ObjectType> = Extract<TupleKey, { type: T }>;")
    return lines


def _errors() -> List[str]:
    return [
        "",
        f"export class {EMPTY_IDENTIFIER_ERROR} extends Error {{",
        f"{_INDENT}constructor(readonly objectType: string) {{",
        f"{_INDENT * 2}super(`object id for type \"${{objectType}}\" must not be empty`);",
        f"{_INDENT * 2}this.name = \"{EMPTY_IDENTIFIER_ERROR}\";",
        f"{_INDENT}}}",
        "}",
        "",
        f"export class {UNKNOWN_RELATION_ERROR} extends Error {{",
        f"{_INDENT}constructor(readonly objectType: string, readonly relation: string) {{",
        f"{_INDENT * 2}super(`relation \"${{relation}}\" is not defined on object type \"${{objectType}}\"`);",
        f"{_INDENT * 2}this.name = \"{UNKNOWN_RELATION_ERROR}\";",
        f"{_INDENT}}}",
        "}",
        "",
        "export interface ParsedObject {",
        f"{_INDENT}type: ObjectType;",
        f"{_INDENT}id: string;",
        "}",
    ]


def _signature(helper: HelperFunction) -> str:
    params = []
    generic = ""
    for p in helper.parameters:
        if p.kind == "object_type":
            generic = "<T extends ObjectType>"
        optional = "?" if p.optional else ""
        params.append(f"{_camel(p.name)}{optional}: {_PARAMETER_TYPES[p.kind]}")
    return (
        f"export function {HELPER_NAMES[helper.role]}{generic}({', '.join(params)}): "
        f"{_RETURN_TYPES[helper.role]} {{"
    )


def _helper_body(helper: HelperFunction) -> List[str]:
    i1, i2 = _INDENT, _INDENT * 2
    if helper.role is HelperRole.FORMAT:
        return [
            f"{i1}if (objectId.length === 0) {{",
            f"{i2}throw new {EMPTY_IDENTIFIER_ERROR}(objectType);",
            f"{i1}}}",
            f"{i1}return `${{objectType}}:${{objectId}}` as `${{T}}:${{string}}`;",
        ]
    if helper.role is HelperRole.PARSE:
        return [
            f'{i1}const index = value.indexOf(":");',
            f"{i1}if (index < 0) {{",
            f"{i2}return null;",
            f"{i1}}}",
            f"{i1}const type = value.slice(0, index);",
            f"{i1}const id = value.slice(index + 1);",
            f"{i1}if (id.length === 0 || !Object.prototype.hasOwnProperty.call(RELATIONS_BY_OBJECT, type)) {{",
            f"{i2}return null;",
            f"{i1}}}",
            f"{i1}return {{ type: type as ObjectType, id }};",
        ]
    if helper.role is HelperRole.BUILD:
        return [
            f"{i1}if (!{HELPER_NAMES[HelperRole.VALIDATE]}(objectType, relation)) {{",
            f"{i2}throw new {UNKNOWN_RELATION_ERROR}(objectType, relation);",
            f"{i1}}}",
            f"{i1}const tupleKey = {{",
            f"{i2}type: objectType,",
            f"{i2}object: {HELPER_NAMES[HelperRole.FORMAT]}(objectType, objectId),",
            f"{i2}relation,",
            f"{i2}user,",
            f"{i2}...(condition !== undefined ? {{ condition }} : {{}}),",
            f"{i1}}};",
            f"{i1}return tupleKey as unknown as TupleKeyFor<T>;",
        ]
    if helper.role is HelperRole.VALIDATE:
        return [
            f"{i1}if (!Object.prototype.hasOwnProperty.call(RELATIONS_BY_OBJECT, objectType)) {{",
            f"{i2}return false;",
            f"{i1}}}",
            f"{i1}const relations: readonly string[] = RELATIONS_BY_OBJECT[objectType as ObjectType];",
            f"{i1}return relations.includes(relation);",
        ]
    raise TypeError(f"Unsupported helper role: {helper.role}")


def _helpers(module: SynthesizedModule) -> List[str]:
    lines = _banner("HELPERS")[:-1]
    lines.extend(_errors())
    for helper in module.helpers:
        lines.append("")
        lines.append(f"/** {helper.summary} */")
        lines.append(_signature(helper))
        lines.extend(_helper_body(helper))
        lines.append("}")
    return lines


def _metadata(module: SynthesizedModule, generated_at: str) -> List[str]:
    meta = module.metadata
    lines = _banner("METADATA")
    lines.append("export const RELATIONS_BY_OBJECT: { readonly [K in ObjectType]: readonly RelationFor<K>[] } = {")
    for type_name, relations in meta.relations_by_object.items():
        lines.append(f"{_INDENT}{_str(type_name)}: {_array(relations)},")
    lines.append("};")
    lines.append("")
    lines.append(f"export const GENERATED_AT = {_str(generated_at)};")
    lines.append("")
    lines.append("export const AUTHORIZATION_MODEL = {")
    lines.append(f"{_INDENT}modelId: {_str(meta.model_id)},")
    lines.append(f"{_INDENT}schemaVersion: {_str(meta.schema_version)},")
    lines.append(f"{_INDENT}objectTypes: OBJECT_TYPES,")
    lines.append(f"{_INDENT}relations: {_array(meta.relations)},")
    lines.append(f"{_INDENT}relationsByObject: RELATIONS_BY_OBJECT,")
    lines.append(f"{_INDENT}relationCategories: {{")
    for type_name, buckets in meta.relation_categories.items():
        lines.append(f"{_INDENT * 2}{_str(type_name)}: {{")
        for category, names in buckets.items():
            lines.append(f"{_INDENT * 3}{category}: {_array(names)},")
        lines.append(f"{_INDENT * 2}}},")
    lines.append(f"{_INDENT}}},")
    lines.append(f"{_INDENT}generatedAt: GENERATED_AT,")
    lines.append("} as const;")
    return lines


def generate_typescript(module: SynthesizedModule, generated_at: str) -> str:
    """
    Generate the TypeScript source for a synthesized module.

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


__all__ = ["DEFAULT_FILE_NAME", "RESERVED_WORDS", "HELPER_NAMES", "MODULE_NAMES", "generate_typescript"]
