"""Crash-safe file writes.

Every persistence path in aix goes through ``write_atomic``: the payload is
written to a temp file in the destination directory and renamed over the
destination, so readers never see a half-written file.
"""

import json
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

TEMP_PREFIX = ".aix-atomic-"
TEMP_SUFFIX = ".tmp"
DEFAULT_PERM = 0o644


def write_atomic(path: Path, data: bytes | str, perm: int | None = None) -> None:
    """Atomically write data to path.

    The temp file lives in the same directory as ``path`` so the final
    rename never crosses a filesystem boundary.

    Args:
        path: Destination file
        data: Full payload; str is encoded as UTF-8
        perm: Permission bits applied before the rename. When omitted, an
            existing destination keeps its mode and a new file gets 0o644.

    Raises:
        OSError: If any step fails. The temp file is removed and a
            pre-existing destination is left untouched.
    """
    path = Path(path)
    if isinstance(data, str):
        data = data.encode("utf-8")
    if perm is None:
        perm = stat.S_IMODE(path.stat().st_mode) if path.exists() else DEFAULT_PERM

    fd, tmp_name = tempfile.mkstemp(
        prefix=TEMP_PREFIX, suffix=TEMP_SUFFIX, dir=path.parent
    )
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, perm)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise

    logger.debug("wrote %s (%d bytes)", path, len(data))


def write_json_atomic(path: Path, obj: Any, perm: int | None = None) -> None:
    """Atomically write obj as indented JSON with a trailing newline."""
    payload = json.dumps(obj, indent=2, ensure_ascii=False) + "\n"
    write_atomic(path, payload, perm)


def read_json(path: Path) -> dict[str, Any]:
    """Read a JSON object from path, returning {} when the file is missing."""
    path = Path(path)
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object at top level")
    return data
