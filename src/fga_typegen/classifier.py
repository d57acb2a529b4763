"""
Relation Classifier: how each relation derives its membership.

Every relation gets exactly one category:

    inherited   the tree contains a tuple-to-userset ("X from Y") anywhere
    computed    a single reference to a sibling relation, or one flat set
                operation over sibling references plus at most one direct
                grant (e.g. "[user] or owner", "member or admin")
    direct      a direct grant, or a union made only of direct grants
    indirect    everything else (nested set operations, several direct
                grants mixed with references, ...)

Precedence is inherited > computed > indirect > direct. "direct" and
"computed" never overlap, so the checks below run inherited, computed,
direct, and fall back to indirect.

IMPORTANT: This module does NOT modify the model. It only derives a
read-only classification, rebuilt on every run.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterator, List, Tuple

from fga_typegen.expressions import (
    ComputedUserset,
    DifferenceExpression,
    DirectAssignment,
    IntersectionExpression,
    RelationExpression,
    TupleToUserset,
    UnionExpression,
)
from fga_typegen.model import AuthorizationModel, TypeDefinition


class RelationCategory(Enum):
    """Membership derivation categories, in emission order."""
    DIRECT = "direct"
    COMPUTED = "computed"
    INHERITED = "inherited"
    INDIRECT = "indirect"


CATEGORY_ORDER: Tuple[RelationCategory, ...] = tuple(RelationCategory)


def _operands(expr: RelationExpression) -> Tuple[RelationExpression, ...]:
    if isinstance(expr, (UnionExpression, IntersectionExpression)):
        return expr.children
    if isinstance(expr, DifferenceExpression):
        return (expr.base, expr.subtract)
    return ()


def _contains_tuple_to_userset(expr: RelationExpression) -> bool:
    """Recursively search the tree for a cross-object traversal."""
    if isinstance(expr, TupleToUserset):
        return True
    if isinstance(expr, (DirectAssignment, ComputedUserset)):
        return False
    if isinstance(expr, (UnionExpression, IntersectionExpression, DifferenceExpression)):
        return any(_contains_tuple_to_userset(child) for child in _operands(expr))
    raise TypeError(f"Unsupported RelationExpression type: {type(expr)}")


def _is_pure_direct(expr: RelationExpression) -> bool:
    if isinstance(expr, DirectAssignment):
        return True
    if isinstance(expr, UnionExpression):
        return all(_is_pure_direct(child) for child in expr.children)
    return False


def _is_flat_reference(expr: RelationExpression) -> bool:
    if isinstance(expr, ComputedUserset):
        return True
    operands = _operands(expr)
    if not operands:
        return False
    if not all(isinstance(o, (ComputedUserset, DirectAssignment)) for o in operands):
        return False
    references = sum(1 for o in operands if isinstance(o, ComputedUserset))
    grants = len(operands) - references
    return references >= 1 and grants <= 1


def classify_relation(expr: RelationExpression) -> RelationCategory:
    """
    Classify one relation rewrite.

    Args:
        expr: Root of the relation's expression tree

    Returns:
        The single RelationCategory for the relation

    Raises:
        TypeError: If the tree contains an unknown node type
    """
    if _contains_tuple_to_userset(expr):
        return RelationCategory.INHERITED
    if _is_flat_reference(expr):
        return RelationCategory.COMPUTED
    if _is_pure_direct(expr):
        return RelationCategory.DIRECT
    return RelationCategory.INDIRECT


class RelationClassification:
    """
    Total mapping (type, relation) → RelationCategory for one model.

    Relation order within each type follows the model.
    """

    def __init__(self, by_type: Dict[str, Dict[str, RelationCategory]]):
        self._by_type = by_type

    def category_of(self, type_name: str, relation: str) -> RelationCategory:
        """
        Raises:
            KeyError: If the type or relation is not part of the model
        """
        return self._by_type[type_name][relation]

    def categories_for(self, type_name: str) -> Dict[RelationCategory, Tuple[str, ...]]:
        """
        Group a type's relations into the four category buckets.

        Every bucket is present (possibly empty); together they partition
        the type's relation names.
        """
        buckets: Dict[RelationCategory, List[str]] = {c: [] for c in CATEGORY_ORDER}
        for relation, category in self._by_type[type_name].items():
            buckets[category].append(relation)
        return {c: tuple(names) for c, names in buckets.items()}

    def __iter__(self) -> Iterator[Tuple[str, str, RelationCategory]]:
        for type_name, relations in self._by_type.items():
            for relation, category in relations.items():
                yield type_name, relation, category

    def __len__(self) -> int:
        return sum(len(relations) for relations in self._by_type.values())


def classify_type(type_def: TypeDefinition) -> Dict[str, RelationCategory]:
    return {r.name: classify_relation(r.expression) for r in type_def.relations}


def classify_model(model: AuthorizationModel) -> RelationClassification:
    """Classify every relation of every type in the model."""
    return RelationClassification(
        {type_def.name: classify_type(type_def) for type_def in model.type_definitions}
    )


__all__ = [
    "RelationCategory",
    "CATEGORY_ORDER",
    "RelationClassification",
    "classify_relation",
    "classify_type",
    "classify_model",
]
