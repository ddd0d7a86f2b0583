"""Key/value storage for the persisted lottery snapshot.

Each key maps to one UTF-8 JSON file under the data directory. Writes go
through a temp file in the same directory and an atomic rename, so a failed
write leaves the previous file intact.
"""

import contextlib
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

import structlog

logger = structlog.get_logger()

# Owner-only directory permissions for snapshot storage.
_DATA_DIR_MODE = 0o700

# Owner-only file permissions for snapshot files.
_DATA_FILE_MODE = 0o600

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class SnapshotStorage(Protocol):
    """Protocol for durable string storage addressed by a fixed key."""

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, content: str) -> None: ...


class LocalSnapshotStorage:
    """Stores each key as `<key>.json` inside a local directory."""

    def __init__(self, data_dir: str | Path) -> None:
        self._data_dir = Path(data_dir).resolve()

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        target = (self._data_dir / f"{key}.json").resolve()
        if not target.is_relative_to(self._data_dir):
            raise ValueError(f"Path traversal rejected: '{key}' resolves outside data directory")
        return target

    def read(self, key: str) -> str | None:
        """Return the stored content, or None when nothing was written yet.

        OSError and UnicodeDecodeError propagate to the caller.
        """
        target = self._path_for(key)
        if not target.exists():
            return None
        return target.read_text(encoding="utf-8")

    def write(self, key: str, content: str) -> None:
        """Atomically replace the content stored under key.

        Creates the directory lazily with owner-only permissions. Any OSError
        propagates after the temp file is cleaned up.
        """
        target = self._path_for(key)
        self._data_dir.mkdir(mode=_DATA_DIR_MODE, parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=str(self._data_dir), suffix=".tmp", prefix=f".{key}_")
        fd_owned = True
        try:
            with os.fdopen(fd, "wb") as f:
                fd_owned = False  # os.fdopen took ownership; it will close fd
                f.write(content.encode("utf-8"))
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, _DATA_FILE_MODE)  # noqa: PTH101
            Path(tmp_path).replace(target)
        except BaseException:
            if fd_owned:
                with contextlib.suppress(OSError):
                    os.close(fd)
            with contextlib.suppress(OSError):
                Path(tmp_path).unlink()
            raise
        logger.debug("snapshot written", key=key, path=str(target), size=len(content))
