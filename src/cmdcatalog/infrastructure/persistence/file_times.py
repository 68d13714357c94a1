"""
File Timestamps

Modification times used for cache validation. Times are truncated to whole
seconds so sub-second clock jitter between the filesystem and the process
never reports a change.
"""

import os
from datetime import UTC, datetime
from pathlib import Path

import structlog

from cmdcatalog.core.utils.time import truncate_to_second, utc_now

logger = structlog.get_logger(__name__)


def file_time(path: str | Path) -> datetime:
    """
    Return a file's modification time.

    A modification time in the future (clock skew, files copied from
    another machine) is clamped to now and written back to the file, so the
    file does not look newer than every cache built from it.

    Args:
        path: File to inspect

    Returns:
        Timezone-aware UTC timestamp with second precision

    Raises:
        OSError: If the file cannot be inspected or touched
    """
    stat = os.stat(path)
    modified = truncate_to_second(datetime.fromtimestamp(stat.st_mtime, UTC))
    now = utc_now()
    if modified > now:
        logger.debug("file_time.clamped", path=str(path), modified=modified.isoformat())
        os.utime(path, (stat.st_atime, now.timestamp()))
        return now
    return modified
