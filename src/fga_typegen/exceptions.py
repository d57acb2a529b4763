"""Exceptions raised by the type generator and its collaborators."""

from typing import Optional


class TypegenError(Exception):
    """Base exception for type generation errors."""

    pass


class MalformedModelError(TypegenError):
    """Raised when a model payload is unparseable or internally inconsistent.

    Attributes:
        location: Path of the offending node inside the payload
            (e.g., "type_definitions[1].relations.admin"), if known
    """

    def __init__(self, message: str, location: Optional[str] = None):
        self.location = location
        if location:
            message = f"{location}: {message}"
        super().__init__(message)


class DSLParseError(MalformedModelError):
    """Raised when DSL text cannot be parsed.

    Attributes:
        line: 1-based line number of the offending statement, if known
    """

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        super().__init__(message, location=f"line {line}" if line else None)


class IdentifierCollisionError(TypegenError):
    """Raised when two distinct model names sanitize to the same identifier."""

    def __init__(self, scope: str, identifier: str, first: str, second: str):
        self.scope = scope
        self.identifier = identifier
        self.names = (first, second)
        super().__init__(
            f"{scope}: names {first!r} and {second!r} both map to identifier "
            f"{identifier!r}; rename one of them in the model"
        )


class ConfigurationError(TypegenError):
    """Raised when generator configuration is missing or invalid."""

    pass


class ModelRetrievalError(TypegenError):
    """Raised when the authorization model cannot be fetched."""

    pass
