"""Backends that render synthesized artifacts as source code (TypeScript, Python)."""

from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Callable, Dict

from fga_typegen.backends import python_generator, typescript_generator
from fga_typegen.synthesizer import SynthesizedModule


class Target(Enum):
    """Output language of the generated module."""
    TYPESCRIPT = "typescript"
    PYTHON = "python"


@dataclass(frozen=True)
class Backend:
    """
    Properties:
        target: Language this backend emits
        render: (module, generated_at) -> source text
        reserved_words: Identifiers the sanitizer must escape
        module_names: Module-level names the rendered module always defines
        default_file_name: File name used when none is configured
    """

    target: Target
    render: Callable[[SynthesizedModule, str], str]
    reserved_words: AbstractSet[str]
    module_names: AbstractSet[str]
    default_file_name: str


BACKENDS: Dict[Target, Backend] = {
    Target.TYPESCRIPT: Backend(
        target=Target.TYPESCRIPT,
        render=typescript_generator.generate_typescript,
        reserved_words=typescript_generator.RESERVED_WORDS,
        module_names=typescript_generator.MODULE_NAMES,
        default_file_name=typescript_generator.DEFAULT_FILE_NAME,
    ),
    Target.PYTHON: Backend(
        target=Target.PYTHON,
        render=python_generator.generate_python,
        reserved_words=python_generator.RESERVED_WORDS,
        module_names=python_generator.MODULE_NAMES,
        default_file_name=python_generator.DEFAULT_FILE_NAME,
    ),
}


def get_backend(target) -> Backend:
    """
    Look up a backend by Target or by its string value.

    Raises:
        ValueError: If the target is not supported
    """
    return BACKENDS[Target(target)]


__all__ = ["Target", "Backend", "BACKENDS", "get_backend"]
