"""Tests for SettingsLoader."""

from pathlib import Path

import pytest

from cmdcatalog.application.settings_loader import (
    HOME_ENV,
    SettingsLoader,
    default_app_root,
    load_settings,
)
from cmdcatalog.core.domain.errors import ConfigError


class TestDefaultAppRoot:
    """Tests for application root resolution."""

    def test_environment_variable(self, monkeypatch, tmp_path):
        monkeypatch.setenv(HOME_ENV, str(tmp_path / "catalog"))
        assert default_app_root() == tmp_path / "catalog"

    def test_home_directory_fallback(self, monkeypatch):
        monkeypatch.delenv(HOME_ENV, raising=False)
        assert default_app_root() == Path.home() / ".cmdcatalog"


class TestSettingsLoader:
    """Tests for loading settings from config.yaml."""

    def test_defaults_without_config(self, app_root, project_dir):
        settings = SettingsLoader(app_root).load(project_dir)

        assert settings.app_root == app_root
        assert settings.token == project_dir.resolve()
        assert settings.working_directory == project_dir.resolve()
        assert settings.default_language is None

    def test_config_file_values(self, app_root, project_dir):
        (app_root / "config.yaml").write_text(
            "default_language: python\nscript_timeout: 5\nglobal_profile: team\n",
            encoding="utf-8",
        )

        settings = SettingsLoader(app_root).load(project_dir)

        assert settings.default_language == "python"
        assert settings.script_timeout == 5
        assert settings.global_profile == "team"

    def test_overrides_win(self, app_root, project_dir):
        (app_root / "config.yaml").write_text("default_language: python\n", encoding="utf-8")

        settings = load_settings(project_dir, app_root, default_language="node", local_profile=None)

        assert settings.default_language == "node"
        assert settings.local_profile == "default"

    def test_empty_config_file(self, app_root, project_dir):
        (app_root / "config.yaml").write_text("", encoding="utf-8")
        assert SettingsLoader(app_root).load(project_dir).global_profile == "default"

    def test_invalid_yaml(self, app_root, project_dir):
        (app_root / "config.yaml").write_text("key: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            SettingsLoader(app_root).load(project_dir)

        assert exc_info.value.file_path == str(app_root / "config.yaml")

    def test_non_mapping(self, app_root, project_dir):
        (app_root / "config.yaml").write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            SettingsLoader(app_root).load(project_dir)

    def test_unknown_key(self, app_root, project_dir):
        (app_root / "config.yaml").write_text("colour: blue\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            SettingsLoader(app_root).load(project_dir)

    def test_invocation_keys_rejected(self, app_root, project_dir):
        (app_root / "config.yaml").write_text("token: /elsewhere\n", encoding="utf-8")
        with pytest.raises(ConfigError) as exc_info:
            SettingsLoader(app_root).load(project_dir)
        assert "token" in exc_info.value.message
