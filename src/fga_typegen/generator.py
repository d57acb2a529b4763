"""
Model-to-types compiler entry points.

Pipeline (single pass, no I/O):

    payload ──parse_model──▶ AuthorizationModel
            ──validate_model──▶ (invariants re-checked)
            ──build_symbol_table──▶ SymbolTable   (sanitize + classify)
            ──synthesize_module──▶ SynthesizedModule
            ──backend.render──▶ source text

Every error is raised before any text is returned. The only
non-deterministic input is the timestamp, which callers may pin.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

import structlog

from fga_typegen.backends import Target, get_backend
from fga_typegen.model import AuthorizationModel
from fga_typegen.parser import parse_model, validate_model
from fga_typegen.symbols import build_symbol_table
from fga_typegen.synthesizer import synthesize_module


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GeneratedModule:
    """
    Generated source and where it should be written.

    Properties:
        text: Complete module source
        file_name: Output file name (backend default unless overridden)
        target: Backend that produced the text
        generated_at: ISO-8601 timestamp embedded in the GENERATED_AT line
    """

    text: str
    file_name: str
    target: Target
    generated_at: str


def current_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_module(
    model: AuthorizationModel,
    target: Union[Target, str] = Target.TYPESCRIPT,
    generated_at: Optional[str] = None,
    file_name: Optional[str] = None,
) -> GeneratedModule:
    """
    Compile a parsed model into a source module.

    Args:
        model: Parsed authorization model
        target: Backend to render with
        generated_at: Timestamp to embed; defaults to the current UTC time
        file_name: Output file name; defaults to the backend's file name

    Returns:
        GeneratedModule

    Raises:
        MalformedModelError: If the model breaks a model invariant
        IdentifierCollisionError: If sanitized or derived names collide
        ValueError: If the target is not supported
    """
    backend = get_backend(target)
    validate_model(model)
    symbols = build_symbol_table(model, backend.reserved_words, backend.module_names)
    module = synthesize_module(symbols)

    timestamp = generated_at if generated_at is not None else current_timestamp()
    text = backend.render(module, timestamp)

    logger.debug(
        "module_rendered",
        target=backend.target.value,
        model_id=model.id,
        object_types=len(symbols.object_types),
        relations=len(module.metadata.relations),
    )
    return GeneratedModule(
        text=text,
        file_name=file_name or backend.default_file_name,
        target=backend.target,
        generated_at=timestamp,
    )


def generate_from_payload(
    payload: Mapping[str, Any],
    target: Union[Target, str] = Target.TYPESCRIPT,
    generated_at: Optional[str] = None,
    file_name: Optional[str] = None,
) -> GeneratedModule:
    """
    Parse a raw authorization-model payload and compile it.

    Raises:
        MalformedModelError: If the payload is malformed or inconsistent
        IdentifierCollisionError: If sanitized names collide
    """
    return generate_module(
        parse_model(payload), target=target, generated_at=generated_at, file_name=file_name
    )


__all__ = ["GeneratedModule", "current_timestamp", "generate_module", "generate_from_payload"]
