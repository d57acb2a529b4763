"""
Type/Constant and Helper-Function Synthesizers.

Turns a SymbolTable into backend-neutral artifacts:
    - relation groups (one per object type, with category buckets)
    - tuple-key variants (one per object type; their union is TupleKey)
    - helper function descriptions (format / parse / build / validate)
    - the metadata block

Backends only render these artifacts. They make no naming decisions
beyond target casing, so every target exposes the same module boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from fga_typegen.classifier import CATEGORY_ORDER
from fga_typegen.symbols import ObjectTypeSymbol, RelationSymbol, SymbolTable

UNKNOWN_RELATION_ERROR = "UnknownRelationError"
EMPTY_IDENTIFIER_ERROR = "EmptyIdentifierError"


class FieldKind(Enum):
    """Shape of one tuple-key field."""
    DISCRIMINATOR = "discriminator"      # literal object type name
    OBJECT_REFERENCE = "object"          # "<type>:<id>"
    RELATION = "relation"                # the type's relation literals
    SUBJECT = "subject"                  # free-form subject reference
    CONDITION = "condition"              # {name, context?}


@dataclass(frozen=True)
class TupleKeyField:
    name: str
    kind: FieldKind
    required: bool = True


TUPLE_KEY_FIELDS: Tuple[TupleKeyField, ...] = (
    TupleKeyField("type", FieldKind.DISCRIMINATOR),
    TupleKeyField("object", FieldKind.OBJECT_REFERENCE),
    TupleKeyField("relation", FieldKind.RELATION),
    TupleKeyField("user", FieldKind.SUBJECT),
    TupleKeyField("condition", FieldKind.CONDITION, required=False),
)


@dataclass(frozen=True)
class RelationGroup:
    """
    Relation constants for one object type.

    Properties:
        object_type: Type name the group belongs to
        const_name: Name of the constant group
        type_name: Name of the relation literal type
        members: Relation symbols in model order
        by_category: Relation names per category value, all four present
    """

    object_type: str
    const_name: str
    type_name: str
    members: Tuple[RelationSymbol, ...]
    by_category: Dict[str, Tuple[str, ...]]

    @property
    def is_empty(self) -> bool:
        return not self.members


@dataclass(frozen=True)
class TupleKeyVariant:
    """
    One member of the TupleKey discriminated union.

    The discriminator is the object type name; the object field must start
    with object_prefix and the relation field must be one of the literals
    named by relation_type.
    """

    object_type: str
    type_name: str
    object_prefix: str
    relation_type: str
    fields: Tuple[TupleKeyField, ...] = TUPLE_KEY_FIELDS


class HelperRole(Enum):
    FORMAT = "format"
    PARSE = "parse"
    BUILD = "build"
    VALIDATE = "validate"


@dataclass(frozen=True)
class HelperParameter:
    """
    Properties:
        name: Parameter name in snake_case (backends recase it)
        kind: "object_type", "relation", "string" or "condition"
        optional: Whether the parameter may be omitted
    """

    name: str
    kind: str
    optional: bool = False


@dataclass(frozen=True)
class HelperFunction:
    role: HelperRole
    parameters: Tuple[HelperParameter, ...]
    summary: str
    raises: Optional[str] = None


@dataclass(frozen=True)
class ModuleMetadata:
    model_id: str
    schema_version: str
    object_types: Tuple[str, ...]
    relations: Tuple[str, ...]
    relations_by_object: Dict[str, Tuple[str, ...]]
    relation_categories: Dict[str, Dict[str, Tuple[str, ...]]]


@dataclass(frozen=True)
class SynthesizedModule:
    """Everything a backend needs to emit the generated module."""

    symbols: SymbolTable
    relation_groups: Tuple[RelationGroup, ...]
    tuple_key_variants: Tuple[TupleKeyVariant, ...]
    helpers: Tuple[HelperFunction, ...]
    metadata: ModuleMetadata

    @property
    def object_types(self) -> Tuple[ObjectTypeSymbol, ...]:
        return self.symbols.object_types

    @property
    def conditions(self) -> Tuple[str, ...]:
        return self.symbols.conditions


# =============================================================================
# TYPE / CONSTANT SYNTHESIS
# =============================================================================

def _category_buckets(object_type: ObjectTypeSymbol) -> Dict[str, Tuple[str, ...]]:
    return {
        category.value: tuple(r.name for r in object_type.relations_in(category))
        for category in CATEGORY_ORDER
    }


def synthesize_relation_group(object_type: ObjectTypeSymbol) -> RelationGroup:
    return RelationGroup(
        object_type=object_type.name,
        const_name=object_type.relations_name,
        type_name=object_type.relation_type_name,
        members=object_type.relations,
        by_category=_category_buckets(object_type),
    )


def synthesize_tuple_key_variant(object_type: ObjectTypeSymbol) -> TupleKeyVariant:
    return TupleKeyVariant(
        object_type=object_type.name,
        type_name=object_type.tuple_key_name,
        object_prefix=f"{object_type.name}:",
        relation_type=object_type.relation_type_name,
    )


def synthesize_metadata(symbols: SymbolTable) -> ModuleMetadata:
    all_relations: List[str] = []
    for object_type in symbols.object_types:
        for name in object_type.relation_names:
            if name not in all_relations:
                all_relations.append(name)

    return ModuleMetadata(
        model_id=symbols.model_id,
        schema_version=symbols.schema_version,
        object_types=symbols.type_names,
        relations=tuple(all_relations),
        relations_by_object={t.name: t.relation_names for t in symbols.object_types},
        relation_categories={t.name: _category_buckets(t) for t in symbols.object_types},
    )


# =============================================================================
# HELPER-FUNCTION SYNTHESIS
# =============================================================================

def synthesize_helpers() -> Tuple[HelperFunction, ...]:
    """
    Describe the four runtime helpers.

    The helpers hold no state: they key off the relationsByObject table
    in the metadata block of the generated module.
    """
    return (
        HelperFunction(
            role=HelperRole.FORMAT,
            parameters=(
                HelperParameter("object_type", "object_type"),
                HelperParameter("object_id", "string"),
            ),
            summary='Build the canonical "<type>:<id>" object reference.',
            raises=EMPTY_IDENTIFIER_ERROR,
        ),
        HelperFunction(
            role=HelperRole.PARSE,
            parameters=(HelperParameter("value", "string"),),
            summary=(
                'Split "<type>:<id>" on the first colon. Returns no match '
                "for unknown types or empty ids."
            ),
        ),
        HelperFunction(
            role=HelperRole.BUILD,
            parameters=(
                HelperParameter("object_type", "object_type"),
                HelperParameter("object_id", "string"),
                HelperParameter("relation", "relation"),
                HelperParameter("user", "string"),
                HelperParameter("condition", "condition", optional=True),
            ),
            summary="Build a tuple key after checking the relation against the object type.",
            raises=UNKNOWN_RELATION_ERROR,
        ),
        HelperFunction(
            role=HelperRole.VALIDATE,
            parameters=(
                HelperParameter("object_type", "string"),
                HelperParameter("relation", "string"),
            ),
            summary="Whether the relation is defined on the object type.",
        ),
    )


def synthesize_module(symbols: SymbolTable) -> SynthesizedModule:
    """
    Run both synthesizers over a symbol table.

    Returns:
        SynthesizedModule with one relation group and one tuple-key
        variant per object type, in model order
    """
    return SynthesizedModule(
        symbols=symbols,
        relation_groups=tuple(synthesize_relation_group(t) for t in symbols.object_types),
        tuple_key_variants=tuple(synthesize_tuple_key_variant(t) for t in symbols.object_types),
        helpers=synthesize_helpers(),
        metadata=synthesize_metadata(symbols),
    )


__all__ = [
    "FieldKind",
    "TupleKeyField",
    "TUPLE_KEY_FIELDS",
    "RelationGroup",
    "TupleKeyVariant",
    "HelperRole",
    "HelperParameter",
    "HelperFunction",
    "ModuleMetadata",
    "SynthesizedModule",
    "UNKNOWN_RELATION_ERROR",
    "EMPTY_IDENTIFIER_ERROR",
    "synthesize_relation_group",
    "synthesize_tuple_key_variant",
    "synthesize_metadata",
    "synthesize_helpers",
    "synthesize_module",
]
