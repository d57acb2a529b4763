"""
Tests for settings resolution (overrides > config file > environment > defaults).
"""

import json

import pytest

from fga_typegen.backends import Target
from fga_typegen.exceptions import ConfigurationError
from fga_typegen.settings import (
    DEFAULT_OUTPUT_PATH,
    GeneratorSettings,
    load_settings,
    read_config_file,
)


ENV_VARS = [
    "FGA_STORE_ID", "FGA_API_URL", "FGA_MODEL_ID", "FGA_OUTPUT_PATH",
    "FGA_OUTPUT_FILE", "FGA_API_TOKEN", "FGA_TARGET",
    "STORE_ID", "API_URL", "AUTHORIZATION_MODEL_ID", "OUTPUT_PATH",
    "OUTPUT_FILE_NAME", "API_TOKEN", "TARGET",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def write_config(tmp_path, data, name="openfga-types.config.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestDefaults:
    """Test values with no file and no environment."""

    def test_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "absent.json")
        assert settings.store_id is None
        assert settings.api_url is None
        assert settings.authorization_model_id is None
        assert settings.output_path == DEFAULT_OUTPUT_PATH
        assert settings.target is Target.TYPESCRIPT
        assert settings.file_name == "fga-types.ts"

    def test_file_name_follows_target(self, tmp_path):
        settings = load_settings(tmp_path / "absent.json", overrides={"target": "python"})
        assert settings.file_name == "fga_types.py"

    def test_missing_remote_fields(self, tmp_path):
        settings = load_settings(tmp_path / "absent.json")
        assert settings.missing_remote_fields() == ["storeId", "apiUrl"]

    def test_no_config_file(self):
        assert load_settings(None).output_path == DEFAULT_OUTPUT_PATH


class TestEnvironment:
    """Test FGA_* environment fallbacks."""

    def test_environment_values(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FGA_STORE_ID", "01STORE")
        monkeypatch.setenv("FGA_API_URL", "http://localhost:8080")
        monkeypatch.setenv("FGA_MODEL_ID", "01MODEL")
        monkeypatch.setenv("FGA_OUTPUT_PATH", "out")
        monkeypatch.setenv("FGA_OUTPUT_FILE", "authz.ts")
        monkeypatch.setenv("FGA_API_TOKEN", "secret")
        monkeypatch.setenv("FGA_TARGET", "python")

        settings = load_settings(tmp_path / "absent.json")
        assert settings.store_id == "01STORE"
        assert settings.api_url == "http://localhost:8080"
        assert settings.authorization_model_id == "01MODEL"
        assert settings.output_path == "out"
        assert settings.output_file_name == "authz.ts"
        assert settings.api_token.get_secret_value() == "secret"
        assert settings.target is Target.PYTHON
        assert settings.missing_remote_fields() == []

    def test_only_prefixed_names_are_read(self, monkeypatch, tmp_path):
        monkeypatch.setenv("STORE_ID", "stray")
        monkeypatch.setenv("API_URL", "http://stray:8080")
        monkeypatch.setenv("TARGET", "python")
        settings = load_settings(tmp_path / "absent.json")
        assert settings.store_id is None
        assert settings.api_url is None
        assert settings.target is Target.TYPESCRIPT

    def test_overrides_beat_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FGA_TARGET", "python")
        monkeypatch.setenv("FGA_OUTPUT_PATH", "env-out")
        settings = load_settings(tmp_path / "absent.json", overrides={"target": "typescript"})
        assert settings.target is Target.TYPESCRIPT
        assert settings.output_path == "env-out"

    def test_token_is_not_printed(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FGA_API_TOKEN", "secret")
        assert "secret" not in repr(load_settings(tmp_path / "absent.json"))


class TestConfigFile:
    """Test config file parsing and precedence."""

    def test_camel_case_keys(self, tmp_path):
        path = write_config(tmp_path, {
            "storeId": "01STORE",
            "apiUrl": "http://fga:8080",
            "authorizationModelId": "01MODEL",
            "outputPath": "src/generated",
            "outputFileName": "authz.ts",
        })
        settings = load_settings(path)
        assert settings.store_id == "01STORE"
        assert settings.api_url == "http://fga:8080"
        assert settings.authorization_model_id == "01MODEL"
        assert settings.output_path == "src/generated"
        assert settings.file_name == "authz.ts"

    def test_file_beats_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FGA_STORE_ID", "from-env")
        monkeypatch.setenv("FGA_API_URL", "http://env:8080")
        path = write_config(tmp_path, {"storeId": "from-file"})
        settings = load_settings(path)
        assert settings.store_id == "from-file"
        assert settings.api_url == "http://env:8080"

    def test_overrides_beat_file(self, tmp_path):
        path = write_config(tmp_path, {"target": "typescript", "outputPath": "file-out"})
        settings = load_settings(path, overrides={"target": "python", "output_path": None})
        assert settings.target is Target.PYTHON
        assert settings.output_path == "file-out"

    def test_yaml_config(self, tmp_path):
        path = tmp_path / "fga.yaml"
        path.write_text("storeId: 01STORE\napiUrl: http://fga:8080\ntarget: python\n", encoding="utf-8")
        settings = load_settings(path)
        assert settings.store_id == "01STORE"
        assert settings.target is Target.PYTHON

    def test_unknown_keys_are_ignored(self, tmp_path):
        path = write_config(tmp_path, {"storeId": "01STORE", "colour": "blue"})
        assert read_config_file(path) == {"store_id": "01STORE"}

    def test_missing_file_is_empty(self, tmp_path):
        assert read_config_file(tmp_path / "absent.json") == {}

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "openfga-types.config.json"
        path.write_text("{storeId: ", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="cannot read config file"):
            load_settings(path)

    def test_config_must_be_an_object(self, tmp_path):
        path = write_config(tmp_path, ["storeId"])
        with pytest.raises(ConfigurationError, match="must contain an object"):
            load_settings(path)

    def test_invalid_target(self, tmp_path):
        path = write_config(tmp_path, {"target": "cobol"})
        with pytest.raises(ConfigurationError, match="invalid configuration"):
            load_settings(path)


class TestGeneratorSettings:
    """Test the settings model directly."""

    def test_field_names_are_accepted(self):
        settings = GeneratorSettings(store_id="s", api_url="http://fga")
        assert settings.missing_remote_fields() == []

    def test_empty_values_count_as_missing(self):
        settings = GeneratorSettings(store_id="", api_url="http://fga")
        assert settings.missing_remote_fields() == ["storeId"]
