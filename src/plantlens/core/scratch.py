"""Scratch file helpers for request-scoped files.

Uploads and reports only live for the duration of one request.  The helpers
here name those files and guarantee that an upload's scratch copy is removed
on every exit path of the ``with`` block that owns it.

Report files are different: the response streams them after the handler has
returned, so their removal is scheduled as a background task by the API
layer (see :func:`discard`).
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

REPORT_PREFIX = "plant_analysis_report_"


@contextmanager
def scratch_file(directory: Path, suffix: str = "") -> Iterator[Path]:
    """Reserve a uniquely named path in *directory* and remove it afterwards.

    The file itself is not created; the caller writes to the yielded path.
    Whatever happens inside the block, the path is unlinked on exit if it
    exists.

    Args:
        directory: Scratch directory.  Created if missing.
        suffix: Optional filename suffix, e.g. ``".jpg"``.

    Yields:
        Path of the scratch file.
    """
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{uuid.uuid4().hex}{suffix}"
    try:
        yield path
    finally:
        discard(path)


def discard(path: Path) -> None:
    """Delete *path* if it exists, logging instead of raising on failure.

    Used in cleanup positions where an exception would mask the error that
    is already propagating, or would surface after the response was sent.
    """
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove scratch file %s: %s", path, exc)


def report_path(reports_dir: Path, now_ms: int | None = None) -> Path:
    """Return the path for a new report file.

    The name embeds the current epoch time in milliseconds.  Two reports
    requested within the same millisecond get the same name.

    Args:
        reports_dir: Directory for report files.  Created if missing.
        now_ms: Timestamp override, mainly for tests.

    Returns:
        ``reports_dir / "plant_analysis_report_<ms>.pdf"``.
    """
    reports_dir.mkdir(parents=True, exist_ok=True)
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return reports_dir / f"{REPORT_PREFIX}{now_ms}.pdf"
