"""
Relation Expression System

Every relation in an authorization model is defined by a rewrite: a
set-algebra tree over direct grants, references to sibling relations and
cross-object traversals. The tree is represented as a closed family of
immutable dataclasses, never as DSL strings.

Variants:
    - DirectAssignment         [user, team#member, user:*]
    - ComputedUserset          owner
    - TupleToUserset           member from parent
    - UnionExpression          a or b
    - IntersectionExpression   a and b
    - DifferenceExpression     a but not b

ARCHITECTURAL RULE:
    This module contains structure only.
    Classification belongs in classifier.py.
    Rendering belongs in the backends.
"""

from abc import ABC
from dataclasses import dataclass
from typing import Optional, Tuple


class RelationExpression(ABC):
    """
    Base class for all relation rewrite nodes.

    The set of subclasses is closed. Code that walks the tree handles
    every variant explicitly and raises TypeError on anything else.
    """
    pass


@dataclass(frozen=True)
class SubjectReference:
    """
    One entry of a direct assignment's allowed subject list.

    Examples:
        user                 SubjectReference("user")
        team#member          SubjectReference("team", relation="member")
        user:*               SubjectReference("user", wildcard=True)
        user with non_expired
                             SubjectReference("user", condition="non_expired")

    A reference is either a userset (relation set) or a wildcard, never both.
    """

    type: str
    relation: Optional[str] = None
    wildcard: bool = False
    condition: Optional[str] = None

    @property
    def reference(self) -> str:
        """Canonical textual form: <type>, <type>#<relation> or <type>:*."""
        if self.wildcard:
            return f"{self.type}:*"
        if self.relation:
            return f"{self.type}#{self.relation}"
        return self.type


@dataclass(frozen=True)
class DirectAssignment(RelationExpression):
    """
    Membership granted by writing a tuple directly ("this").

    Properties:
        subjects: Allowed subject references, in model order.
            Empty for models that carry no type restrictions (schema 1.0).
    """

    subjects: Tuple[SubjectReference, ...] = ()


@dataclass(frozen=True)
class ComputedUserset(RelationExpression):
    """
    Membership copied from another relation on the same object.

    Example:
        define admin: owner   ->   ComputedUserset("owner")
    """

    relation: str


@dataclass(frozen=True)
class TupleToUserset(RelationExpression):
    """
    Membership reached through a linked object ("X from Y").

    Example:
        define viewer: member from parent_organization

    Becomes:
        TupleToUserset(tupleset="parent_organization", computed_relation="member")

    Properties:
        tupleset: Relation on this object that points at the linked object(s)
        computed_relation: Relation evaluated on the linked object(s)
    """

    tupleset: str
    computed_relation: str


@dataclass(frozen=True)
class UnionExpression(RelationExpression):
    """Subjects in any child."""

    children: Tuple[RelationExpression, ...]


@dataclass(frozen=True)
class IntersectionExpression(RelationExpression):
    """Subjects in every child."""

    children: Tuple[RelationExpression, ...]


@dataclass(frozen=True)
class DifferenceExpression(RelationExpression):
    """
    Subjects in base that are not in subtract.

    Example:
        define can_read: viewer but not blocked
    """

    base: RelationExpression
    subtract: RelationExpression


__all__ = [
    "RelationExpression",
    "SubjectReference",
    "DirectAssignment",
    "ComputedUserset",
    "TupleToUserset",
    "UnionExpression",
    "IntersectionExpression",
    "DifferenceExpression",
]
