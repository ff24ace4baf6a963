"""Key-value storage backends.

Components that persist anything (usage history, prompt overrides) depend on
the :class:`KeyValueStore` protocol, never on a concrete backend.  Values are
opaque strings, exactly like a browser's ``localStorage``; callers own the
(de)serialisation.

* :class:`InMemoryStore` — dict-backed, used in tests.
* :class:`FileStore` — one file per key under a data directory, used by the app.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


@runtime_checkable
class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryStore:
    """Process-local store.  Nothing survives a restart."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileStore:
    """Persist each key as ``<data_dir>/<key>.json``.

    Writes go through a temp file + ``os.replace`` so a crash mid-write never
    leaves a half-written value behind.  There is no cross-process locking:
    the application is single-user.
    """

    def __init__(self, data_dir: str | os.PathLike[str]) -> None:
        self.data_dir = Path(data_dir)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> str | None:
        """Stored text, or ``None`` when the key is absent or its file is not UTF-8."""
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as exc:
            logger.warning("Ignoring undecodable storage file %s: %s", path, exc)
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp_name, path)
        except OSError:
            logger.exception("Failed to write storage key %s", key)
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
