"""
PS Hunter - Key-Value Storage Backends

The history and preference stores only need get(key) / set(key, value) on
whole string documents. Two backends:

    InMemoryStore  - dict-backed, for tests and throwaway sessions
    JsonFileStore  - one file per key under a data directory; every write
                     goes to a temp file that is renamed over the target
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

import structlog

from pshunter.errors import StorageError

logger = structlog.get_logger(__name__)

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


@runtime_checkable
class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore:
    """
    File-per-key store rooted at a directory.

    Usage:
        store = JsonFileStore(Path(settings.DATA_DIR))
        store.set("ps_price_history_v1", "{}")

    Raises:
        StorageError: on any filesystem failure (wrapping OSError) or a
            file that is not valid UTF-8.
    """

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        return self._directory / f"{_SAFE_KEY.sub('_', key)}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Could not read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp_name: str | None = None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{path.stem}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise StorageError(f"Could not write {path}: {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

        logger.debug("storage_written", key=key, path=str(path), size_bytes=len(value))
