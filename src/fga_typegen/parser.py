"""
Model Parser (Layer 1: Raw Payload → AuthorizationModel).

Normalizes the authorization-model JSON returned by the authorization
service (or produced by dsl_parser.py) into immutable model objects.

Payload shape:
    {
        "id": "01HV...",
        "schema_version": "1.1",
        "type_definitions": [
            {
                "type": "organization",
                "relations": {"owner": {"this": {}}, ...},
                "metadata": {"relations": {"owner": {
                    "directly_related_user_types": [{"type": "user"}]
                }}}
            }
        ],
        "conditions": {"non_expired": {...}}
    }

Rewrite node keys are accepted in camelCase or snake_case.

The parser fails fast with MalformedModelError. It never guesses: an
unrecognized node, a dangling reference or a duplicate name stops the run
before anything downstream sees the model.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

from fga_typegen.exceptions import MalformedModelError
from fga_typegen.expressions import (
    ComputedUserset,
    DifferenceExpression,
    DirectAssignment,
    IntersectionExpression,
    RelationExpression,
    SubjectReference,
    TupleToUserset,
    UnionExpression,
)
from fga_typegen.model import AuthorizationModel, RelationDefinition, TypeDefinition


DEFAULT_SCHEMA_VERSION = "1.1"

_REWRITE_KINDS = {
    "this": "this",
    "computedUserset": "computed",
    "computed_userset": "computed",
    "tupleToUserset": "tuple_to_userset",
    "tuple_to_userset": "tuple_to_userset",
    "union": "union",
    "intersection": "intersection",
    "difference": "difference",
}


def _require_mapping(value: Any, location: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MalformedModelError(
            f"expected an object, got {type(value).__name__}", location
        )
    return value


def _require_name(value: Any, location: str) -> str:
    if not isinstance(value, str) or not value:
        raise MalformedModelError("expected a non-empty string", location)
    return value


def _first_present(node: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if node.get(key) is not None:
            return node[key]
    return None


def _parse_subject(raw: Any, location: str) -> SubjectReference:
    entry = _require_mapping(raw, location)
    subject_type = _require_name(entry.get("type"), f"{location}.type")

    relation = entry.get("relation") or None
    if relation is not None:
        _require_name(relation, f"{location}.relation")

    wildcard = entry.get("wildcard") is not None
    if relation and wildcard:
        raise MalformedModelError(
            "a subject reference cannot be both a userset and a wildcard", location
        )

    condition = entry.get("condition") or None
    if condition is not None:
        _require_name(condition, f"{location}.condition")

    return SubjectReference(
        type=subject_type, relation=relation, wildcard=wildcard, condition=condition
    )


def _parse_direct_subjects(
    metadata: Any, relation_names: List[str], location: str
) -> Dict[str, Tuple[SubjectReference, ...]]:
    """Collect directly_related_user_types per relation from type metadata."""
    if metadata is None:
        return {}
    metadata = _require_mapping(metadata, location)
    relations_meta = metadata.get("relations")
    if relations_meta is None:
        return {}
    relations_meta = _require_mapping(relations_meta, f"{location}.relations")

    subjects: Dict[str, Tuple[SubjectReference, ...]] = {}
    for relation_name, relation_meta in relations_meta.items():
        meta_location = f"{location}.relations.{relation_name}"
        if relation_name not in relation_names:
            raise MalformedModelError(
                "metadata describes a relation that is not defined", meta_location
            )
        if relation_meta is None:
            continue
        relation_meta = _require_mapping(relation_meta, meta_location)
        raw_types = relation_meta.get("directly_related_user_types") or []
        if not isinstance(raw_types, list):
            raise MalformedModelError(
                "directly_related_user_types must be a list", meta_location
            )
        subjects[relation_name] = tuple(
            _parse_subject(raw, f"{meta_location}.directly_related_user_types[{i}]")
            for i, raw in enumerate(raw_types)
        )
    return subjects


def _parse_userset_relation(value: Any, location: str) -> str:
    node = _require_mapping(value, location)
    return _require_name(node.get("relation"), f"{location}.relation")


def _parse_children(value: Any, location: str, subjects) -> Tuple[RelationExpression, ...]:
    node = _require_mapping(value, location)
    raw_children = _first_present(node, "child", "children")
    if not isinstance(raw_children, list) or not raw_children:
        raise MalformedModelError("set operation needs at least one child", location)
    return tuple(
        parse_rewrite(child, subjects, f"{location}.child[{i}]")
        for i, child in enumerate(raw_children)
    )


def parse_rewrite(
    raw: Any,
    subjects: Tuple[SubjectReference, ...] = (),
    location: str = "rewrite",
) -> RelationExpression:
    """
    Convert one rewrite node (recursively) to a RelationExpression.

    Args:
        raw: Rewrite node from the payload
        subjects: Allowed subjects for the relation, attached to every
            direct assignment found in the tree
        location: Path of the node, used in error messages

    Raises:
        MalformedModelError: If the node shape is not recognized
    """
    node = _require_mapping(raw, location)
    present = [key for key, value in node.items() if value is not None]

    unknown = [key for key in present if key not in _REWRITE_KINDS]
    if unknown:
        raise MalformedModelError(
            f"unrecognized rewrite node {sorted(unknown)}", location
        )
    if len(present) != 1:
        raise MalformedModelError(
            f"rewrite node must have exactly one operator, found {sorted(present)}",
            location,
        )

    key = present[0]
    kind = _REWRITE_KINDS[key]
    value = node[key]
    here = f"{location}.{key}"

    if kind == "this":
        return DirectAssignment(subjects=subjects)
    if kind == "computed":
        return ComputedUserset(relation=_parse_userset_relation(value, here))
    if kind == "tuple_to_userset":
        body = _require_mapping(value, here)
        tupleset = _parse_userset_relation(body.get("tupleset"), f"{here}.tupleset")
        computed = _first_present(body, "computedUserset", "computed_userset")
        return TupleToUserset(
            tupleset=tupleset,
            computed_relation=_parse_userset_relation(computed, f"{here}.computedUserset"),
        )
    if kind == "union":
        return UnionExpression(children=_parse_children(value, here, subjects))
    if kind == "intersection":
        return IntersectionExpression(children=_parse_children(value, here, subjects))

    body = _require_mapping(value, here)
    if body.get("base") is None or body.get("subtract") is None:
        raise MalformedModelError("difference needs both base and subtract", here)
    return DifferenceExpression(
        base=parse_rewrite(body["base"], subjects, f"{here}.base"),
        subtract=parse_rewrite(body["subtract"], subjects, f"{here}.subtract"),
    )


def _parse_type(raw: Any, location: str) -> Tuple[TypeDefinition, Dict[str, Tuple[SubjectReference, ...]]]:
    node = _require_mapping(raw, location)
    name = _require_name(node.get("type"), f"{location}.type")

    raw_relations = node.get("relations") or {}
    raw_relations = _require_mapping(raw_relations, f"{location}.relations")
    relation_names = list(raw_relations.keys())
    for relation_name in relation_names:
        _require_name(relation_name, f"{location}.relations")

    direct_subjects = _parse_direct_subjects(
        node.get("metadata"), relation_names, f"{location}.metadata"
    )

    relations = tuple(
        RelationDefinition(
            name=relation_name,
            expression=parse_rewrite(
                rewrite,
                direct_subjects.get(relation_name, ()),
                f"{location}.relations.{relation_name}",
            ),
        )
        for relation_name, rewrite in raw_relations.items()
    )
    return TypeDefinition(name=name, relations=relations), direct_subjects


# =============================================================================
# REFERENCE RESOLUTION
# =============================================================================

def _tupleset_targets(
    subjects: Dict[Tuple[str, str], Tuple[SubjectReference, ...]],
    type_name: str,
    tupleset: str,
) -> List[str]:
    """Object types a tupleset relation can point at."""
    return [
        s.type for s in subjects.get((type_name, tupleset), ())
        if not s.relation and not s.wildcard
    ]


def _check_expression(
    expr: RelationExpression,
    type_def: TypeDefinition,
    model: AuthorizationModel,
    subjects: Dict[Tuple[str, str], Tuple[SubjectReference, ...]],
    location: str,
) -> None:
    if isinstance(expr, DirectAssignment):
        for subject in expr.subjects:
            target = model.get_type(subject.type)
            if target is None:
                raise MalformedModelError(
                    f"subject type {subject.type!r} is not defined", location
                )
            if subject.relation and target.get_relation(subject.relation) is None:
                raise MalformedModelError(
                    f"subject relation {subject.reference!r} is not defined", location
                )
            if subject.condition and subject.condition not in model.conditions:
                raise MalformedModelError(
                    f"condition {subject.condition!r} is not defined", location
                )

    elif isinstance(expr, ComputedUserset):
        if type_def.get_relation(expr.relation) is None:
            raise MalformedModelError(
                f"relation {expr.relation!r} is not defined on type {type_def.name!r}",
                location,
            )

    elif isinstance(expr, TupleToUserset):
        if type_def.get_relation(expr.tupleset) is None:
            raise MalformedModelError(
                f"tupleset relation {expr.tupleset!r} is not defined on type "
                f"{type_def.name!r}",
                location,
            )
        targets = _tupleset_targets(subjects, type_def.name, expr.tupleset)
        candidates = [model.get_type(t) for t in targets] if targets else list(model.type_definitions)
        if not any(c is not None and c.get_relation(expr.computed_relation) for c in candidates):
            scope = f"types {targets}" if targets else "any type"
            raise MalformedModelError(
                f"relation {expr.computed_relation!r} (from {expr.tupleset!r}) is "
                f"not defined on {scope}",
                location,
            )

    elif isinstance(expr, (UnionExpression, IntersectionExpression)):
        for child in expr.children:
            _check_expression(child, type_def, model, subjects, location)

    elif isinstance(expr, DifferenceExpression):
        _check_expression(expr.base, type_def, model, subjects, location)
        _check_expression(expr.subtract, type_def, model, subjects, location)

    else:
        raise TypeError(f"Unsupported RelationExpression type: {type(expr)}")


def _check_references(
    model: AuthorizationModel,
    subjects: Dict[Tuple[str, str], Tuple[SubjectReference, ...]],
) -> None:
    for index, type_def in enumerate(model.type_definitions):
        for relation in type_def.relations:
            location = f"type_definitions[{index}].relations.{relation.name}"
            _check_expression(relation.expression, type_def, model, subjects, location)


def _collect_subjects(
    expr: RelationExpression, found: List[SubjectReference]
) -> None:
    if isinstance(expr, DirectAssignment):
        found.extend(s for s in expr.subjects if s not in found)
    elif isinstance(expr, (UnionExpression, IntersectionExpression)):
        for child in expr.children:
            _collect_subjects(child, found)
    elif isinstance(expr, DifferenceExpression):
        _collect_subjects(expr.base, found)
        _collect_subjects(expr.subtract, found)


def _direct_subjects(
    model: AuthorizationModel,
) -> Dict[Tuple[str, str], Tuple[SubjectReference, ...]]:
    """Allowed subjects per (type, relation), read back from the rewrite trees."""
    subjects: Dict[Tuple[str, str], Tuple[SubjectReference, ...]] = {}
    for type_def in model.type_definitions:
        for relation in type_def.relations:
            found: List[SubjectReference] = []
            _collect_subjects(relation.expression, found)
            if found:
                subjects[(type_def.name, relation.name)] = tuple(found)
    return subjects


def _check_structure(model: AuthorizationModel) -> None:
    if not model.type_definitions:
        raise MalformedModelError(
            "model must declare at least one type", "type_definitions"
        )

    seen: Dict[str, int] = {}
    for index, type_def in enumerate(model.type_definitions):
        location = f"type_definitions[{index}]"
        _require_name(type_def.name, f"{location}.type")
        if type_def.name in seen:
            raise MalformedModelError(
                f"type {type_def.name!r} is already defined at "
                f"type_definitions[{seen[type_def.name]}]",
                location,
            )
        seen[type_def.name] = index

        relation_names: List[str] = []
        for relation in type_def.relations:
            _require_name(relation.name, f"{location}.relations")
            if relation.name in relation_names:
                raise MalformedModelError(
                    f"relation {relation.name!r} is defined twice",
                    f"{location}.relations.{relation.name}",
                )
            relation_names.append(relation.name)


def _validate(
    model: AuthorizationModel,
    subjects: Dict[Tuple[str, str], Tuple[SubjectReference, ...]],
) -> None:
    _check_structure(model)
    _check_references(model, subjects)


def validate_model(model: AuthorizationModel) -> None:
    """
    Check the invariants of a model that did not come from parse_model.

    Applies the same checks parse_model does: at least one type, unique
    type names, unique relation names per type and no dangling relation,
    type or condition references.

    Raises:
        MalformedModelError: If the model breaks any of these invariants
    """
    _validate(model, _direct_subjects(model))


def parse_model(payload: Mapping[str, Any]) -> AuthorizationModel:
    """
    Parse a raw authorization-model payload.

    Accepts either the model object itself or a read response wrapping it
    under "authorization_model".

    Args:
        payload: Decoded JSON/YAML mapping

    Returns:
        AuthorizationModel preserving payload ordering

    Raises:
        MalformedModelError: If the payload is malformed or inconsistent
    """
    payload = _require_mapping(payload, "model")
    if "authorization_model" in payload:
        payload = _require_mapping(payload["authorization_model"], "authorization_model")

    model_id = payload.get("id") or ""
    if not isinstance(model_id, str):
        raise MalformedModelError("model id must be a string", "id")
    schema_version = payload.get("schema_version") or DEFAULT_SCHEMA_VERSION
    if not isinstance(schema_version, str):
        raise MalformedModelError("schema_version must be a string", "schema_version")

    raw_types = payload.get("type_definitions")
    if not isinstance(raw_types, list):
        raise MalformedModelError(
            "model must declare at least one type", "type_definitions"
        )

    raw_conditions = payload.get("conditions") or {}
    raw_conditions = _require_mapping(raw_conditions, "conditions")
    conditions = tuple(
        _require_name(name, "conditions") for name in raw_conditions.keys()
    )

    type_definitions: List[TypeDefinition] = []
    subjects: Dict[Tuple[str, str], Tuple[SubjectReference, ...]] = {}
    for index, raw_type in enumerate(raw_types):
        type_def, direct_subjects = _parse_type(raw_type, f"type_definitions[{index}]")
        type_definitions.append(type_def)
        for relation_name, refs in direct_subjects.items():
            subjects[(type_def.name, relation_name)] = refs

    model = AuthorizationModel(
        id=model_id,
        schema_version=schema_version,
        type_definitions=tuple(type_definitions),
        conditions=conditions,
    )
    _validate(model, subjects)
    return model


__all__ = ["parse_model", "parse_rewrite", "validate_model", "DEFAULT_SCHEMA_VERSION"]
