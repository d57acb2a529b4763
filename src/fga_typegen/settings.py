"""Generator settings using pydantic-settings.

Values are resolved with the precedence (highest first):

    1. command line overrides
    2. the config file (openfga-types.config.json, or YAML by suffix)
    3. environment variables
    4. defaults

Config file keys use camelCase (storeId, apiUrl, ...); snake_case is
accepted too.

Environment variables:
    FGA_STORE_ID: Store to read the model from
    FGA_API_URL: Base URL of the authorization service API
    FGA_MODEL_ID: Model id (default: latest model of the store)
    FGA_OUTPUT_PATH: Output directory (default: ./generated)
    FGA_OUTPUT_FILE: Output file name (default: the backend's file name)
    FGA_API_TOKEN: Bearer token for the API
    FGA_TARGET: Output language, "typescript" or "python"
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from fga_typegen.backends import Target, get_backend
from fga_typegen.exceptions import ConfigurationError


DEFAULT_CONFIG_FILE = "openfga-types.config.json"
DEFAULT_OUTPUT_PATH = "./generated"

# Config file key → field name
_FILE_KEYS = {
    "storeId": "store_id",
    "apiUrl": "api_url",
    "authorizationModelId": "authorization_model_id",
    "outputPath": "output_path",
    "outputFileName": "output_file_name",
    "apiToken": "api_token",
    "target": "target",
}


class GeneratorSettings(BaseSettings):
    """Settings for fetching a model and writing the generated module."""

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
    )

    store_id: Optional[str] = Field(
        default=None,
        validation_alias="FGA_STORE_ID",
        description="Store to read the model from",
    )
    api_url: Optional[str] = Field(
        default=None,
        validation_alias="FGA_API_URL",
        description="Base URL of the authorization service API",
    )
    authorization_model_id: Optional[str] = Field(
        default=None,
        validation_alias="FGA_MODEL_ID",
        description="Model id; the latest model is used when unset",
    )
    output_path: str = Field(
        default=DEFAULT_OUTPUT_PATH,
        validation_alias="FGA_OUTPUT_PATH",
        description="Directory the generated module is written to",
    )
    output_file_name: Optional[str] = Field(
        default=None,
        validation_alias="FGA_OUTPUT_FILE",
        description="File name of the generated module",
    )
    api_token: Optional[SecretStr] = Field(
        default=None,
        validation_alias="FGA_API_TOKEN",
        description="Bearer token for the API",
    )
    target: Target = Field(
        default=Target.TYPESCRIPT,
        validation_alias="FGA_TARGET",
        description="Output language",
    )

    @property
    def file_name(self) -> str:
        """Output file name, falling back to the backend's default."""
        return self.output_file_name or get_backend(self.target).default_file_name

    def missing_remote_fields(self) -> List[str]:
        """Config keys required for fetching the model that are not set."""
        missing = []
        if not self.store_id:
            missing.append("storeId")
        if not self.api_url:
            missing.append("apiUrl")
        return missing


def read_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a config file and map its keys to setting names.

    A missing file yields an empty mapping. Unknown keys are ignored.

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    path = Path(path)
    if not path.exists():
        return {}

    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() in (".yaml", ".yml"):
            raw = yaml.safe_load(text)
        else:
            raw = json.loads(text)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(f"cannot read config file {str(path)!r}: {e}") from e

    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"config file {str(path)!r} must contain an object")

    values: Dict[str, Any] = {}
    for key, value in raw.items():
        name = _FILE_KEYS.get(key, key)
        if name in _FILE_KEYS.values() and value is not None:
            values[name] = value
    return values


def load_settings(
    config_path: Union[str, Path, None] = DEFAULT_CONFIG_FILE,
    overrides: Optional[Mapping[str, Any]] = None,
) -> GeneratorSettings:
    """
    Resolve settings from overrides, config file, environment and defaults.

    Args:
        config_path: Config file to read; None skips the file
        overrides: Values by setting name (e.g., from command line flags);
            None values are ignored

    Raises:
        ConfigurationError: If the config file or a value is invalid
    """
    values = read_config_file(config_path) if config_path is not None else {}
    values.update({k: v for k, v in (overrides or {}).items() if v is not None})

    # Keyed by environment name; init values override the environment source.
    fields = GeneratorSettings.model_fields
    values = {
        (fields[name].validation_alias if name in fields else name): value
        for name, value in values.items()
    }

    try:
        return GeneratorSettings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration: {e}") from e


__all__ = [
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_OUTPUT_PATH",
    "GeneratorSettings",
    "read_config_file",
    "load_settings",
]
