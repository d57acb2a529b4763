"""
Serialization helpers for authorization models.

Models are written back in the authorization service's own JSON shape
(camelCase rewrite keys, direct subjects in type metadata), so a dumped
model can be re-read by parse_model or posted to the service.

Also loads models from local files, picking the format by suffix:
    .json          JSON payload
    .yaml / .yml   the same payload as YAML
    .fga           modeling language text (dsl_parser)
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from fga_typegen.dsl_parser import parse_dsl
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
from fga_typegen.model import AuthorizationModel, TypeDefinition
from fga_typegen.parser import parse_model


MODEL_FILE_SUFFIXES = (".json", ".yaml", ".yml", ".fga")


def rewrite_to_dict(expr: RelationExpression) -> Dict[str, Any]:
    if isinstance(expr, DirectAssignment):
        return {"this": {}}
    if isinstance(expr, ComputedUserset):
        return {"computedUserset": {"relation": expr.relation}}
    if isinstance(expr, TupleToUserset):
        return {
            "tupleToUserset": {
                "tupleset": {"relation": expr.tupleset},
                "computedUserset": {"relation": expr.computed_relation},
            }
        }
    if isinstance(expr, UnionExpression):
        return {"union": {"child": [rewrite_to_dict(c) for c in expr.children]}}
    if isinstance(expr, IntersectionExpression):
        return {"intersection": {"child": [rewrite_to_dict(c) for c in expr.children]}}
    if isinstance(expr, DifferenceExpression):
        return {
            "difference": {
                "base": rewrite_to_dict(expr.base),
                "subtract": rewrite_to_dict(expr.subtract),
            }
        }
    raise TypeError(f"Unsupported RelationExpression type: {type(expr)}")


def subject_to_dict(s: SubjectReference) -> Dict[str, Any]:
    d: Dict[str, Any] = {"type": s.type}
    if s.relation:
        d["relation"] = s.relation
    if s.wildcard:
        d["wildcard"] = {}
    if s.condition:
        d["condition"] = s.condition
    return d


def _direct_subjects(expr: RelationExpression) -> Tuple[SubjectReference, ...]:
    """Subjects of the first direct assignment in the tree (all share them)."""
    if isinstance(expr, DirectAssignment):
        return expr.subjects
    if isinstance(expr, (UnionExpression, IntersectionExpression)):
        children: List[RelationExpression] = list(expr.children)
    elif isinstance(expr, DifferenceExpression):
        children = [expr.base, expr.subtract]
    else:
        return ()
    for child in children:
        subjects = _direct_subjects(child)
        if subjects:
            return subjects
    return ()


def type_to_dict(t: TypeDefinition) -> Dict[str, Any]:
    metadata_relations = {
        r.name: {"directly_related_user_types": [subject_to_dict(s) for s in subjects]}
        for r in t.relations
        for subjects in [_direct_subjects(r.expression)]
        if subjects
    }
    return {
        "type": t.name,
        "relations": {r.name: rewrite_to_dict(r.expression) for r in t.relations},
        "metadata": {"relations": metadata_relations} if metadata_relations else None,
    }


def model_to_dict(m: AuthorizationModel) -> Dict[str, Any]:
    d: Dict[str, Any] = {
        "id": m.id,
        "schema_version": m.schema_version,
        "type_definitions": [type_to_dict(t) for t in m.type_definitions],
    }
    if m.conditions:
        d["conditions"] = {name: {"name": name} for name in m.conditions}
    return d


def model_from_dict(d: Dict[str, Any]) -> AuthorizationModel:
    return parse_model(d)


def model_to_json(m: AuthorizationModel) -> str:
    return json.dumps(model_to_dict(m), indent=2)


def model_from_json(s: str) -> AuthorizationModel:
    try:
        d = json.loads(s)
    except json.JSONDecodeError as e:
        raise MalformedModelError(f"invalid JSON: {e}") from e
    return model_from_dict(d)


def model_to_yaml(m: AuthorizationModel) -> str:
    return yaml.safe_dump(model_to_dict(m), sort_keys=False)


def model_from_yaml(s: str) -> AuthorizationModel:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise MalformedModelError(f"invalid YAML: {e}") from e
    return model_from_dict(d)


def model_from_dsl(s: str, model_id: str = "") -> AuthorizationModel:
    return model_from_dict(parse_dsl(s, model_id=model_id))


def load_model_file(path: Union[str, Path], model_id: Optional[str] = None) -> AuthorizationModel:
    """
    Load a model from a local file.

    Args:
        path: .json, .yaml, .yml or .fga file
        model_id: Id for DSL models (defaults to the file stem)

    Raises:
        MalformedModelError: If the suffix is unsupported or the content is
            invalid (including text that is not UTF-8)
        OSError: If the file cannot be read
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in MODEL_FILE_SUFFIXES:
        raise MalformedModelError(
            f"unsupported model file type {suffix or '(none)'!r}; "
            f"expected one of {', '.join(MODEL_FILE_SUFFIXES)}",
            str(path),
        )

    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise MalformedModelError(f"model file is not valid UTF-8: {e}", str(path)) from e

    if suffix == ".json":
        return model_from_json(text)
    if suffix in (".yaml", ".yml"):
        return model_from_yaml(text)
    return model_from_dsl(text, model_id=model_id if model_id is not None else path.stem)


__all__ = [
    "MODEL_FILE_SUFFIXES",
    "rewrite_to_dict",
    "subject_to_dict",
    "type_to_dict",
    "model_to_dict",
    "model_from_dict",
    "model_to_json",
    "model_from_json",
    "model_to_yaml",
    "model_from_yaml",
    "model_from_dsl",
    "load_model_file",
]
