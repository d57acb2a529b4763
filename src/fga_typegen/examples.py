"""
Example authorization models for demos and tests.

The same team-collaboration model is provided twice: as the payload the
authorization service returns and as modeling language text. Both parse
to equal models (apart from the id).

Covers every category:
    direct      organization#owner, team#parent_organization
    computed    organization#admin, document#editor
    inherited   team#can_view_team, document#viewer
    indirect    document#can_share
"""
from typing import Any, Dict

from fga_typegen.model import AuthorizationModel
from fga_typegen.parser import parse_model


EXAMPLE_MODEL_ID = "01HVMMBCMGZNT3SED4Z17ECXCA"

EXAMPLE_DSL = """\
model
  schema 1.1

type user

type organization
  relations
    define owner: [user]
    define admin: [user] or owner
    define member: [user, team#member] or admin

type team
  relations
    define parent_organization: [organization]
    define member: [user, user:*]
    define admin: [user]
    define can_view_team: member or admin or member from parent_organization

type document
  relations
    define organization: [organization]
    define owner: [user]
    define editor: [user with non_expired] or owner
    define blocked: [user]
    define viewer: [user, team#member] or editor or member from organization
    define can_share: ([user] or editor) but not blocked

condition non_expired(current_time: timestamp, expires_at: timestamp) {
  current_time < expires_at
}
"""


def _direct(*type_names: str) -> Dict[str, Any]:
    return {"directly_related_user_types": [{"type": t} for t in type_names]}


def build_example_payload() -> Dict[str, Any]:
    """The example model in the authorization service's JSON shape."""
    return {
        "id": EXAMPLE_MODEL_ID,
        "schema_version": "1.1",
        "type_definitions": [
            {"type": "user", "relations": {}, "metadata": None},
            {
                "type": "organization",
                "relations": {
                    "owner": {"this": {}},
                    "admin": {"union": {"child": [
                        {"this": {}},
                        {"computedUserset": {"relation": "owner"}},
                    ]}},
                    "member": {"union": {"child": [
                        {"this": {}},
                        {"computedUserset": {"relation": "admin"}},
                    ]}},
                },
                "metadata": {"relations": {
                    "owner": _direct("user"),
                    "admin": _direct("user"),
                    "member": {"directly_related_user_types": [
                        {"type": "user"},
                        {"type": "team", "relation": "member"},
                    ]},
                }},
            },
            {
                "type": "team",
                "relations": {
                    "parent_organization": {"this": {}},
                    "member": {"this": {}},
                    "admin": {"this": {}},
                    "can_view_team": {"union": {"child": [
                        {"computedUserset": {"relation": "member"}},
                        {"computedUserset": {"relation": "admin"}},
                        {"tupleToUserset": {
                            "tupleset": {"relation": "parent_organization"},
                            "computedUserset": {"relation": "member"},
                        }},
                    ]}},
                },
                "metadata": {"relations": {
                    "parent_organization": _direct("organization"),
                    "member": {"directly_related_user_types": [
                        {"type": "user"},
                        {"type": "user", "wildcard": {}},
                    ]},
                    "admin": _direct("user"),
                }},
            },
            {
                "type": "document",
                "relations": {
                    "organization": {"this": {}},
                    "owner": {"this": {}},
                    "editor": {"union": {"child": [
                        {"this": {}},
                        {"computedUserset": {"relation": "owner"}},
                    ]}},
                    "blocked": {"this": {}},
                    "viewer": {"union": {"child": [
                        {"this": {}},
                        {"computedUserset": {"relation": "editor"}},
                        {"tupleToUserset": {
                            "tupleset": {"relation": "organization"},
                            "computedUserset": {"relation": "member"},
                        }},
                    ]}},
                    "can_share": {"difference": {
                        "base": {"union": {"child": [
                            {"this": {}},
                            {"computedUserset": {"relation": "editor"}},
                        ]}},
                        "subtract": {"computedUserset": {"relation": "blocked"}},
                    }},
                },
                "metadata": {"relations": {
                    "organization": _direct("organization"),
                    "owner": _direct("user"),
                    "editor": {"directly_related_user_types": [
                        {"type": "user", "condition": "non_expired"},
                    ]},
                    "blocked": _direct("user"),
                    "viewer": {"directly_related_user_types": [
                        {"type": "user"},
                        {"type": "team", "relation": "member"},
                    ]},
                    "can_share": _direct("user"),
                }},
            },
        ],
        "conditions": {
            "non_expired": {
                "name": "non_expired",
                "expression": "current_time < expires_at",
                "parameters": {
                    "current_time": {"type_name": "TYPE_NAME_TIMESTAMP"},
                    "expires_at": {"type_name": "TYPE_NAME_TIMESTAMP"},
                },
            },
        },
    }


def build_example_model() -> AuthorizationModel:
    return parse_model(build_example_payload())


__all__ = ["EXAMPLE_MODEL_ID", "EXAMPLE_DSL", "build_example_payload", "build_example_model"]
