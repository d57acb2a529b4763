"""
Core Authorization Model Objects

Defines the normalized, immutable representation of an authorization model:
    - RelationDefinition (one named rewrite on a type)
    - TypeDefinition (an object type and its relations)
    - AuthorizationModel (root container)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about TypeScript/Python output
        - Are immutable once parsed
        - Preserve the ordering of the source payload
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from fga_typegen.expressions import RelationExpression


@dataclass(frozen=True)
class RelationDefinition:
    """
    A named relation and the rewrite that defines its members.

    Properties:
        name: Relation name as written in the model (e.g., "can_view")
        expression: Root of the relation's rewrite tree
    """

    name: str
    expression: RelationExpression


@dataclass(frozen=True)
class TypeDefinition:
    """
    An object type declared by the model.

    Properties:
        name: Type name, unique across the model (e.g., "organization")
        relations: Relation definitions in declaration order.
            Types such as "user" usually declare none.
    """

    name: str
    relations: Tuple[RelationDefinition, ...] = ()

    @property
    def relation_names(self) -> Tuple[str, ...]:
        return tuple(r.name for r in self.relations)

    def get_relation(self, name: str) -> Optional[RelationDefinition]:
        """
        Retrieve a relation by name.

        Returns:
            RelationDefinition or None if the type does not declare it
        """
        for relation in self.relations:
            if relation.name == name:
                return relation
        return None


@dataclass(frozen=True)
class AuthorizationModel:
    """
    Root container for a parsed authorization model.

    Everything the generator emits is derived from this object alone.

    Properties:
        id: Model identifier assigned by the authorization service
            (empty for models loaded from DSL text)
        schema_version: Modeling language version (e.g., "1.1")
        type_definitions: Object types in payload order
        conditions: Names of the conditions the model declares

    INVARIANTS (enforced by the parser):
        - Type names are unique
        - Relation names are unique within a type
        - Every referenced relation, type and condition exists
    """

    id: str
    schema_version: str
    type_definitions: Tuple[TypeDefinition, ...]
    conditions: Tuple[str, ...] = ()

    @property
    def type_names(self) -> Tuple[str, ...]:
        return tuple(t.name for t in self.type_definitions)

    def get_type(self, name: str) -> Optional[TypeDefinition]:
        """
        Retrieve a type definition by name.

        Returns:
            TypeDefinition or None if not declared
        """
        for type_def in self.type_definitions:
            if type_def.name == name:
                return type_def
        return None


__all__ = ["RelationDefinition", "TypeDefinition", "AuthorizationModel"]
