"""
DSL Parser (Layer 0: Modeling Language Text → Raw Payload).

Converts the OpenFGA modeling language into the same JSON payload the
authorization service returns, so parse_model stays the one place where
models are validated and normalized.

Supported syntax:
    model
      schema 1.1

    type user

    type document
      relations
        define owner: [user, organization#member, user:*]
        define editor: [user with non_expired] or owner
        define viewer: editor or viewer from parent
        define auditor: (editor and approved) but not blocked

    condition non_expired(current_time: timestamp, expires_at: timestamp) {
      current_time < expires_at
    }

Syntax Notes:
    - "#" starts a comment when it begins a line or follows whitespace
      (so "team#member" is a userset reference, not a comment)
    - Each define fits on one line
    - "or" and "and" cannot be mixed at one level without parentheses;
      "but not" takes exactly one operand on each side
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from fga_typegen.exceptions import DSLParseError


_COMMENT_RE = re.compile(r"(^|\s)#.*$")
_TOKEN_RE = re.compile(r"\[|\]|,|\(|\)|[^\s\[\],()]+")
_SUBJECT_RE = re.compile(r"^([^\s:#]+)(?::(\*)|#([^\s:#]+))?$")
_NAME_RE = re.compile(r"^[^\s:#\[\],()]+$")

_SCHEMA_RE = re.compile(r"^schema\s+(\S+)$")
_TYPE_RE = re.compile(r"^type\s+(\S+)$")
_DEFINE_RE = re.compile(r"^define\s+([^\s:]+)\s*:\s*(.*)$")
_CONDITION_RE = re.compile(
    r"^condition\s+([^\s(]+)\s*\((.*?)\)\s*\{(.*)\}$", re.DOTALL
)
_PARAMETER_RE = re.compile(r"^([^\s:]+)\s*:\s*([a-z_]+)(?:<([a-z_]+)>)?$")

_KEYWORDS = {"or", "and", "but", "not", "from", "with"}


@dataclass
class _Definition:
    """Parsing state for one define statement."""
    line: Optional[int]
    subjects: List[Dict[str, Any]] = field(default_factory=list)

    def error(self, message: str) -> DSLParseError:
        return DSLParseError(message, self.line)


def _strip_comment(line: str) -> str:
    return _COMMENT_RE.sub("", line).strip()


def _tokenize(expr_str: str, definition: _Definition) -> List[str]:
    tokens = _TOKEN_RE.findall(expr_str)
    if not tokens:
        raise definition.error("relation definition is empty")
    return tokens


# =============================================================================
# RELATION EXPRESSIONS
# =============================================================================

def _parse_subject(token: str, definition: _Definition) -> Dict[str, Any]:
    match = _SUBJECT_RE.match(token)
    if not match or token in _KEYWORDS:
        raise definition.error(f"invalid subject reference {token!r}")
    subject_type, wildcard, relation = match.groups()
    subject: Dict[str, Any] = {"type": subject_type}
    if wildcard:
        subject["wildcard"] = {}
    if relation:
        subject["relation"] = relation
    return subject


def _parse_direct(tokens: List[str], pos: int, definition: _Definition) -> Tuple[Dict[str, Any], int]:
    """Parse "[a, b#r, c:*, d with cond]" starting after the "["."""
    if pos < len(tokens) and tokens[pos] == "]":
        raise definition.error("direct assignment lists no subjects")

    while True:
        if pos >= len(tokens):
            raise definition.error("missing closing ']'")
        subject = _parse_subject(tokens[pos], definition)
        pos += 1

        if pos < len(tokens) and tokens[pos] == "with":
            if pos + 1 >= len(tokens) or not _NAME_RE.match(tokens[pos + 1]):
                raise definition.error("expected a condition name after 'with'")
            subject["condition"] = tokens[pos + 1]
            pos += 2

        if subject not in definition.subjects:
            definition.subjects.append(subject)

        if pos >= len(tokens):
            raise definition.error("missing closing ']'")
        if tokens[pos] == "]":
            return {"this": {}}, pos + 1
        if tokens[pos] != ",":
            raise definition.error(f"expected ',' or ']', got {tokens[pos]!r}")
        pos += 1


def _parse_term(tokens: List[str], pos: int, definition: _Definition) -> Tuple[Dict[str, Any], int]:
    """Parse a direct assignment, a parenthesized expression or a reference."""
    if pos >= len(tokens):
        raise definition.error("unexpected end of relation definition")

    token = tokens[pos]

    if token == "[":
        return _parse_direct(tokens, pos + 1, definition)

    if token == "(":
        expr, pos = _parse_expression(tokens, pos + 1, definition)
        if pos >= len(tokens) or tokens[pos] != ")":
            raise definition.error("missing closing parenthesis")
        return expr, pos + 1

    if token in _KEYWORDS or not _NAME_RE.match(token):
        raise definition.error(f"unexpected {token!r}")

    # "<relation> from <tupleset>"
    if pos + 1 < len(tokens) and tokens[pos + 1] == "from":
        if pos + 2 >= len(tokens) or tokens[pos + 2] in _KEYWORDS or not _NAME_RE.match(tokens[pos + 2]):
            raise definition.error("expected a tupleset relation after 'from'")
        return {
            "tupleToUserset": {
                "tupleset": {"relation": tokens[pos + 2]},
                "computedUserset": {"relation": token},
            }
        }, pos + 3

    return {"computedUserset": {"relation": token}}, pos + 1


def _parse_expression(tokens: List[str], pos: int, definition: _Definition) -> Tuple[Dict[str, Any], int]:
    """
    Parse one level of set algebra.

    A level is a single term, a chain joined by one operator ("or" or
    "and"), or "<term> but not <term>".
    """
    first, pos = _parse_term(tokens, pos, definition)
    operands = [first]
    operator: Optional[str] = None

    while pos < len(tokens) and tokens[pos] in ("or", "and"):
        if operator is not None and tokens[pos] != operator:
            raise definition.error(
                f"cannot mix '{operator}' and '{tokens[pos]}' without parentheses"
            )
        operator = tokens[pos]
        term, pos = _parse_term(tokens, pos + 1, definition)
        operands.append(term)

    if pos < len(tokens) and tokens[pos] == "but":
        if operator is not None:
            raise definition.error(
                f"cannot combine '{operator}' and 'but not' without parentheses"
            )
        if pos + 1 >= len(tokens) or tokens[pos + 1] != "not":
            raise definition.error("expected 'not' after 'but'")
        subtract, pos = _parse_term(tokens, pos + 2, definition)
        return {"difference": {"base": first, "subtract": subtract}}, pos

    if operator is None:
        return first, pos
    key = "union" if operator == "or" else "intersection"
    return {key: {"child": operands}}, pos


def parse_relation_definition(expr_str: str, line: int = 0) -> Tuple[Dict[str, Any], List[Dict[str, Any]]]:
    """
    Parse the right-hand side of a define statement.

    Args:
        expr_str: Text after "define <name>:"
        line: Line number used in error messages

    Returns:
        (rewrite payload, directly related user types)

    Raises:
        DSLParseError: If the expression is invalid
    """
    definition = _Definition(line=line or None)
    tokens = _tokenize(expr_str, definition)
    rewrite, pos = _parse_expression(tokens, 0, definition)
    if pos < len(tokens):
        raise definition.error(f"unexpected {tokens[pos]!r}")
    return rewrite, definition.subjects


# =============================================================================
# CONDITIONS
# =============================================================================

def _parse_parameter_type(type_name: str, generic: Optional[str]) -> Dict[str, Any]:
    parameter: Dict[str, Any] = {"type_name": f"TYPE_NAME_{type_name.upper()}"}
    if generic:
        parameter["generic_types"] = [{"type_name": f"TYPE_NAME_{generic.upper()}"}]
    return parameter


def _parse_condition(text: str, line: int) -> Tuple[str, Dict[str, Any]]:
    match = _CONDITION_RE.match(text.strip())
    if not match:
        raise DSLParseError("expected 'condition <name>(<params>) { <expression> }'", line)
    name, raw_params, body = match.groups()

    parameters: Dict[str, Any] = {}
    for raw in filter(None, (p.strip() for p in raw_params.split(","))):
        param = _PARAMETER_RE.match(raw)
        if not param:
            raise DSLParseError(f"invalid condition parameter {raw!r}", line)
        param_name, type_name, generic = param.groups()
        parameters[param_name] = _parse_parameter_type(type_name, generic)

    expression = " ".join(body.split())
    if not expression:
        raise DSLParseError(f"condition {name!r} has an empty expression", line)
    return name, {"name": name, "expression": expression, "parameters": parameters}


# =============================================================================
# DOCUMENT
# =============================================================================

def parse_dsl(text: str, model_id: str = "") -> Dict[str, Any]:
    """
    Parse modeling-language text into an authorization-model payload.

    Args:
        text: Model source
        model_id: Id to record on the payload (the DSL carries none)

    Returns:
        Payload mapping accepted by parse_model

    Raises:
        DSLParseError: If the text is not valid modeling language
    """
    lines = text.splitlines()
    schema_version: Optional[str] = None
    seen_model = False
    type_definitions: List[Dict[str, Any]] = []
    conditions: Dict[str, Any] = {}

    current_type: Optional[Dict[str, Any]] = None
    in_relations = False

    index = 0
    while index < len(lines):
        line_no = index + 1
        statement = _strip_comment(lines[index])
        index += 1
        if not statement:
            continue

        if not seen_model:
            if statement != "model":
                raise DSLParseError("model must start with 'model'", line_no)
            seen_model = True
            continue

        schema = _SCHEMA_RE.match(statement)
        if schema:
            if schema_version is not None or type_definitions or conditions:
                raise DSLParseError("'schema' must directly follow 'model'", line_no)
            schema_version = schema.group(1)
            continue

        type_match = _TYPE_RE.match(statement)
        if type_match:
            current_type = {"type": type_match.group(1), "relations": {}, "metadata": None}
            type_definitions.append(current_type)
            in_relations = False
            continue

        if statement == "relations":
            if current_type is None or in_relations:
                raise DSLParseError("'relations' must follow a type declaration", line_no)
            in_relations = True
            continue

        define = _DEFINE_RE.match(statement)
        if define:
            if current_type is None or not in_relations:
                raise DSLParseError("'define' must appear in a relations block", line_no)
            relation_name, expr_str = define.groups()
            if relation_name in current_type["relations"]:
                raise DSLParseError(
                    f"relation {relation_name!r} is already defined on type "
                    f"{current_type['type']!r}",
                    line_no,
                )
            rewrite, subjects = parse_relation_definition(expr_str, line_no)
            current_type["relations"][relation_name] = rewrite
            if subjects:
                metadata = current_type["metadata"] or {"relations": {}}
                metadata["relations"][relation_name] = {"directly_related_user_types": subjects}
                current_type["metadata"] = metadata
            continue

        if statement.startswith("condition"):
            block = [statement]
            depth = statement.count("{") - statement.count("}")
            while (depth > 0 or "{" not in "".join(block)) and index < len(lines):
                block.append(lines[index])
                depth += lines[index].count("{") - lines[index].count("}")
                index += 1
            name, condition = _parse_condition("\n".join(block), line_no)
            if name in conditions:
                raise DSLParseError(f"condition {name!r} is already defined", line_no)
            conditions[name] = condition
            current_type = None
            in_relations = False
            continue

        raise DSLParseError(f"unrecognized statement {statement!r}", line_no)

    if not seen_model:
        raise DSLParseError("model text is empty")

    payload: Dict[str, Any] = {
        "id": model_id,
        "schema_version": schema_version or "1.1",
        "type_definitions": type_definitions,
    }
    if conditions:
        payload["conditions"] = conditions
    return payload


__all__ = ["parse_dsl", "parse_relation_definition"]
