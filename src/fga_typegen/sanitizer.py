"""
Identifier Sanitizer

Maps arbitrary model names (type and relation names may contain "-", ".",
"/" and so on) to identifiers that are valid in the generated module.

Rules:
    1. Every character outside [A-Za-z0-9_] becomes "_"
    2. If the result is empty, starts with a digit, or is a reserved word
       of the target language, it is prefixed with the escape marker "_"

Collisions are detected per scope, before anything is emitted:
    - model scope: all type names
    - type scope: the relation names of one type
    - module scope: derived per-type names plus the names the target
      module defines itself (helpers, unions, imports)

Scopes are plain objects created for each run and passed explicitly.
"""

import re
from typing import AbstractSet, Dict

from fga_typegen.exceptions import IdentifierCollisionError


ESCAPE_MARKER = "_"

_DISALLOWED_RE = re.compile(r"[^A-Za-z0-9_]")


def sanitize_identifier(name: str, reserved_words: AbstractSet[str] = frozenset()) -> str:
    """
    Convert a model name to a valid identifier.

    Example:
        >>> sanitize_identifier("can-view.team")
        'can_view_team'
        >>> sanitize_identifier("2fa")
        '_2fa'
        >>> sanitize_identifier("class", {"class"})
        '_class'
    """
    identifier = _DISALLOWED_RE.sub("_", name)
    if not identifier or identifier[0].isdigit() or identifier in reserved_words:
        identifier = ESCAPE_MARKER + identifier
    return identifier


class IdentifierScope:
    """
    Tracks which model name owns each identifier within one scope.

    Example:
        >>> scope = IdentifierScope("type 'document'")
        >>> scope.claim("can-view")
        'can_view'
        >>> scope.claim("can_view")  # raises IdentifierCollisionError
    """

    def __init__(self, scope: str, reserved_words: AbstractSet[str] = frozenset()):
        self.scope = scope
        self.reserved_words = reserved_words
        self._owners: Dict[str, str] = {}

    def claim(self, name: str) -> str:
        """
        Sanitize a name and reserve its identifier in this scope.

        Claiming the same name twice returns the same identifier.

        Raises:
            IdentifierCollisionError: If a different name already owns
                the identifier
        """
        return self.reserve(sanitize_identifier(name, self.reserved_words), name)

    def reserve(self, identifier: str, owner: str) -> str:
        """
        Reserve an identifier that is already valid, on behalf of owner.

        Raises:
            IdentifierCollisionError: If a different owner already holds
                the identifier
        """
        current = self._owners.get(identifier)
        if current is not None and current != owner:
            raise IdentifierCollisionError(self.scope, identifier, current, owner)
        self._owners[identifier] = owner
        return identifier


__all__ = ["ESCAPE_MARKER", "sanitize_identifier", "IdentifierScope"]
