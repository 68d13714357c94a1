"""Tests for file modification times."""

import os
import time
from datetime import UTC, datetime

import pytest

from cmdcatalog.infrastructure.persistence.file_times import file_time


def test_truncated_to_seconds(tmp_path):
    path = tmp_path / "script"
    path.write_text("x")
    os.utime(path, (1_700_000_000.75, 1_700_000_000.75))

    assert file_time(path) == datetime.fromtimestamp(1_700_000_000, UTC)


def test_future_time_is_clamped_and_written_back(tmp_path):
    path = tmp_path / "script"
    path.write_text("x")
    future = time.time() + 3600
    os.utime(path, (future, future))

    before = datetime.now(UTC)
    result = file_time(path)

    assert before <= result <= datetime.now(UTC)
    assert os.stat(path).st_mtime < future - 3000


def test_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        file_time(tmp_path / "missing")
