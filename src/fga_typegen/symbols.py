"""
Generated Symbol Table

The single source of truth the synthesizers and backends read from:
for every object type, its sanitized identifier, its derived names and
its ordered relations (name, identifier, category).

Derived names are the sanitized identifier plus a fixed suffix:
    <id>_relations    relation constant group
    <id>_relation     relation literal type
    <id>_tuple_key    tuple-key variant

Built fresh on every run from the model, the target's reserved words,
the target's own module-level names and the relation classification.
Sanitizer scopes live only inside build_symbol_table.
"""

from dataclasses import dataclass
from typing import AbstractSet, Optional, Tuple

from fga_typegen.classifier import RelationCategory, classify_model
from fga_typegen.model import AuthorizationModel
from fga_typegen.sanitizer import IdentifierScope


RELATIONS_SUFFIX = "_relations"
RELATION_TYPE_SUFFIX = "_relation"
TUPLE_KEY_SUFFIX = "_tuple_key"


@dataclass(frozen=True)
class RelationSymbol:
    name: str
    identifier: str
    category: RelationCategory


@dataclass(frozen=True)
class ObjectTypeSymbol:
    """
    One object type as it appears in the generated module.

    Properties:
        name: Type name from the model (the discriminator literal)
        identifier: Sanitized identifier, unique across the model
        relations: Relation symbols in model order
    """

    name: str
    identifier: str
    relations: Tuple[RelationSymbol, ...] = ()

    @property
    def relation_names(self) -> Tuple[str, ...]:
        return tuple(r.name for r in self.relations)

    @property
    def relations_name(self) -> str:
        return self.identifier + RELATIONS_SUFFIX

    @property
    def relation_type_name(self) -> str:
        return self.identifier + RELATION_TYPE_SUFFIX

    @property
    def tuple_key_name(self) -> str:
        return self.identifier + TUPLE_KEY_SUFFIX

    @property
    def derived_names(self) -> Tuple[str, ...]:
        return (self.relations_name, self.relation_type_name, self.tuple_key_name)

    def relations_in(self, category: RelationCategory) -> Tuple[RelationSymbol, ...]:
        return tuple(r for r in self.relations if r.category is category)


@dataclass(frozen=True)
class SymbolTable:
    model_id: str
    schema_version: str
    object_types: Tuple[ObjectTypeSymbol, ...]
    conditions: Tuple[str, ...] = ()

    @property
    def type_identifiers(self) -> Tuple[str, ...]:
        return tuple(t.identifier for t in self.object_types)

    @property
    def type_names(self) -> Tuple[str, ...]:
        return tuple(t.name for t in self.object_types)

    def get(self, type_name: str) -> Optional[ObjectTypeSymbol]:
        for object_type in self.object_types:
            if object_type.name == type_name:
                return object_type
        return None


def _check_module_names(
    object_types: Tuple[ObjectTypeSymbol, ...],
    fixed_names: AbstractSet[str],
) -> None:
    """
    Reserve every module-level name the generated module will define.

    Raises:
        IdentifierCollisionError: If a derived name equals a fixed name of
            the target module or a derived name of another type
    """
    module_scope = IdentifierScope("module names")
    for name in sorted(fixed_names):
        module_scope.reserve(name, f"generated {name}")
    for object_type in object_types:
        for derived in object_type.derived_names:
            module_scope.reserve(derived, f"type {object_type.name}")


def build_symbol_table(
    model: AuthorizationModel,
    reserved_words: AbstractSet[str] = frozenset(),
    fixed_names: AbstractSet[str] = frozenset(),
) -> SymbolTable:
    """
    Sanitize, classify and index a model.

    Args:
        model: Parsed authorization model
        reserved_words: Words the target language cannot use as identifiers
        fixed_names: Module-level names the target defines regardless of
            the model (helpers, unions, imports)

    Raises:
        IdentifierCollisionError: If two names sanitize identically within
            the model scope (types) or a type scope (relations), or a
            derived name clashes with another module-level name
    """
    classification = classify_model(model)
    type_scope = IdentifierScope("model types", reserved_words)

    object_types = []
    for type_def in model.type_definitions:
        type_identifier = type_scope.claim(type_def.name)
        relation_scope = IdentifierScope(
            f"relations of type {type_def.name!r}", reserved_words
        )
        relations = tuple(
            RelationSymbol(
                name=relation.name,
                identifier=relation_scope.claim(relation.name),
                category=classification.category_of(type_def.name, relation.name),
            )
            for relation in type_def.relations
        )
        object_types.append(
            ObjectTypeSymbol(
                name=type_def.name, identifier=type_identifier, relations=relations
            )
        )

    _check_module_names(tuple(object_types), fixed_names)

    return SymbolTable(
        model_id=model.id,
        schema_version=model.schema_version,
        object_types=tuple(object_types),
        conditions=model.conditions,
    )


__all__ = [
    "RELATIONS_SUFFIX",
    "RELATION_TYPE_SUFFIX",
    "TUPLE_KEY_SUFFIX",
    "RelationSymbol",
    "ObjectTypeSymbol",
    "SymbolTable",
    "build_symbol_table",
]
