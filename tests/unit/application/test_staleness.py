"""
Unit tests for StalenessDetector

Each test builds a layer on disk plus a cache describing it, then changes
one thing and checks whether the layer is reported stale.
"""

import os
import time
from datetime import timedelta
from unittest.mock import patch

import pytest

from conftest import posix_only, write_script
from cmdcatalog.application.staleness import StalenessDetector, companion_dir
from cmdcatalog.core.domain.definitions import DefinitionCache
from cmdcatalog.core.domain.enums import DefinitionKind
from cmdcatalog.core.interfaces.languages import LanguagePlugin
from cmdcatalog.core.utils.time import utc_now

pytestmark = posix_only

TWO_HOURS = 7200


def _age(path, seconds=TWO_HOURS):
    """Move a file's mtime into the past."""
    stamp = time.time() - seconds
    os.utime(path, (stamp, stamp))


@pytest.fixture
def layer(tmp_path):
    """A layer with one script, one language and one language script, all aged."""
    layer = tmp_path / "layer"
    deploy = write_script(layer / "scripts", "deploy", "exit 0")
    files = companion_dir(deploy)
    (files / "templates").mkdir(parents=True)
    (files / "templates" / "base.yaml").write_text("a: 1")
    (files / "state").mkdir()
    (files / "state" / "last-run").write_text("0")

    python = write_script(layer / "languages", "python", "exit 0")
    test = write_script(layer / "languages" / "python-files" / "scripts", "test", "exit 0")

    for path in [deploy, files / "templates" / "base.yaml", files / "state" / "last-run", python, test]:
        _age(path)
    return layer


def _cache_for(layer, built_at):
    cache = DefinitionCache()
    deploy = str(layer / "scripts" / "deploy")
    python = str(layer / "languages" / "python")
    test = str(layer / "languages" / "python-files" / "scripts" / "test")

    cache.add(DefinitionKind.SCRIPT, deploy, built_at, False, True, "deploy", "")
    language = cache.add(DefinitionKind.LANGUAGE, python, built_at, False, True, "python", "")
    cache.append(
        language, DefinitionKind.LANGUAGE_SCRIPT, test, built_at, False, True, "test", ""
    )
    return cache


@pytest.fixture
def built_at():
    return utc_now() - timedelta(hours=1)


@pytest.fixture
def detector():
    return StalenessDetector()


class TestProfileLayer:
    """Tests for is_stale."""

    def test_unchanged_layer_is_fresh(self, detector, layer, built_at):
        assert detector.is_stale(layer, _cache_for(layer, built_at)) is False

    def test_script_added(self, detector, layer, built_at):
        _age(write_script(layer / "scripts", "release", "exit 0"))
        assert detector.is_stale(layer, _cache_for(layer, built_at)) is True

    def test_script_removed(self, detector, layer, built_at):
        cache = _cache_for(layer, built_at)
        (layer / "scripts" / "deploy").unlink()
        assert detector.is_stale(layer, cache) is True

    def test_script_modified(self, detector, layer, built_at):
        (layer / "scripts" / "deploy").write_text("#!/bin/sh\nexit 1\n")
        assert detector.is_stale(layer, _cache_for(layer, built_at)) is True

    def test_failed_script_location_counts_as_known(self, detector, layer, built_at):
        broken = write_script(layer / "scripts", "broken", "exit 1")
        _age(broken)
        cache = _cache_for(layer, built_at)
        cache.record_location(DefinitionKind.SCRIPT, str(broken), built_at)

        assert detector.is_stale(layer, cache) is False

    def test_nested_companion_file_changed(self, detector, layer, built_at):
        (layer / "scripts" / "deploy-files" / "templates" / "base.yaml").write_text("a: 2")
        assert detector.is_stale(layer, _cache_for(layer, built_at)) is True

    def test_new_companion_file_deep_below(self, detector, layer, built_at):
        deep = layer / "scripts" / "deploy-files" / "templates" / "env" / "prod"
        deep.mkdir(parents=True)
        (deep / "values.yaml").write_text("x: 1")
        assert detector.is_stale(layer, _cache_for(layer, built_at)) is True

    def test_state_directory_is_ignored(self, detector, layer, built_at):
        (layer / "scripts" / "deploy-files" / "state" / "last-run").write_text("1")
        nested_state = layer / "scripts" / "deploy-files" / "templates" / "state"
        nested_state.mkdir()
        (nested_state / "scratch").write_text("x")

        assert detector.is_stale(layer, _cache_for(layer, built_at)) is False

    def test_language_added(self, detector, layer, built_at):
        _age(write_script(layer / "languages", "node", "exit 0"))
        assert detector.is_stale(layer, _cache_for(layer, built_at)) is True

    def test_language_modified(self, detector, layer, built_at):
        (layer / "languages" / "python").write_text("#!/bin/sh\nexit 2\n")
        assert detector.is_stale(layer, _cache_for(layer, built_at)) is True

    def test_language_script_added(self, detector, layer, built_at):
        _age(write_script(layer / "languages" / "python-files" / "scripts", "lint", "exit 0"))
        assert detector.is_stale(layer, _cache_for(layer, built_at)) is True

    def test_language_scripts_directory_removed(self, detector, layer, built_at):
        cache = _cache_for(layer, built_at)
        (layer / "languages" / "python-files" / "scripts" / "test").unlink()
        (layer / "languages" / "python-files" / "scripts").rmdir()

        assert detector.is_stale(layer, cache) is True

    def test_language_script_modified(self, detector, layer, built_at):
        (layer / "languages" / "python-files" / "scripts" / "test").write_text("#!/bin/sh\n")
        assert detector.is_stale(layer, _cache_for(layer, built_at)) is True

    def test_filesystem_error_is_stale(self, detector, layer, built_at):
        with patch(
            "cmdcatalog.application.staleness.file_time",
            side_effect=PermissionError("denied"),
        ):
            assert detector.is_stale(layer, _cache_for(layer, built_at)) is True

    def test_custom_language_provider(self, layer, built_at):
        python = str(layer / "languages" / "python")
        detector = StalenessDetector(languages=lambda _: [LanguagePlugin("python", python)])
        assert detector.is_stale(layer, _cache_for(layer, built_at)) is False

        detector = StalenessDetector(languages=lambda _: [])
        assert detector.is_stale(layer, _cache_for(layer, built_at)) is True

    def test_empty_layer_with_empty_cache(self, detector, tmp_path):
        assert detector.is_stale(tmp_path, DefinitionCache()) is False


class TestBuiltinLayer:
    """Tests for is_builtin_stale."""

    @pytest.fixture
    def executable(self, tmp_path):
        path = tmp_path / "cmdcatalog.py"
        path.write_text("")
        _age(path)
        return path

    def _builtin_cache(self, built_at):
        cache = DefinitionCache()
        cache.add(DefinitionKind.BUILTIN, None, built_at, False, True, "list", "")
        return cache

    def test_empty_cache_is_stale(self, detector, executable):
        assert detector.is_builtin_stale(DefinitionCache(), executable) is True

    def test_older_executable_is_fresh(self, detector, executable, built_at):
        assert detector.is_builtin_stale(self._builtin_cache(built_at), executable) is False

    def test_newer_executable_is_stale(self, detector, executable, built_at):
        executable.write_text("# upgraded")
        assert detector.is_builtin_stale(self._builtin_cache(built_at), executable) is True

    def test_missing_executable_is_stale(self, detector, tmp_path, built_at):
        cache = self._builtin_cache(built_at)
        assert detector.is_builtin_stale(cache, tmp_path / "gone.py") is True

    def test_no_executable_only_checks_content(self, detector, built_at):
        assert detector.is_builtin_stale(self._builtin_cache(built_at), None) is False
