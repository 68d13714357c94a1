"""Tests for the settings schema."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from cmdcatalog.core.domain.config_schema import CatalogSettings, validate_settings
from cmdcatalog.core.domain.errors import ConfigError


def _data(**overrides):
    data = {"token": "/work", "working_directory": "/work", "app_root": "/home/me/.cmdcatalog"}
    data.update(overrides)
    return data


class TestCatalogSettings:
    """Tests for CatalogSettings defaults and validation."""

    def test_defaults(self):
        settings = CatalogSettings(**_data())

        assert settings.token == Path("/work")
        assert settings.global_profile == "default"
        assert settings.local_profile == "default"
        assert settings.definitions_file == "definitions.json"
        assert settings.script_timeout == 30.0
        assert settings.max_concurrency == 4
        assert settings.default_language is None
        assert settings.executable_path is None

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            CatalogSettings(**_data(colour="blue"))

    def test_definitions_file_must_be_a_name(self):
        with pytest.raises(ValidationError):
            CatalogSettings(**_data(definitions_file="sub/definitions.json"))

    def test_blank_default_language_is_none(self):
        assert CatalogSettings(**_data(default_language="  ")).default_language is None

    @pytest.mark.parametrize("value", [0, 65])
    def test_max_concurrency_bounds(self, value):
        with pytest.raises(ValidationError):
            CatalogSettings(**_data(max_concurrency=value))

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            CatalogSettings(**_data(script_timeout=0))

    def test_frozen(self):
        settings = CatalogSettings(**_data())
        with pytest.raises(ValidationError):
            settings.default_language = "python"


class TestValidateSettings:
    """Tests for validate_settings."""

    def test_valid(self):
        settings = validate_settings(_data(default_language="python"))
        assert settings.default_language == "python"

    def test_invalid_raises_config_error_with_file(self):
        with pytest.raises(ConfigError) as exc_info:
            validate_settings(_data(max_concurrency="many"), file_path=Path("/c/config.yaml"))

        assert exc_info.value.file_path == "/c/config.yaml"
        assert "max_concurrency" in exc_info.value.message
