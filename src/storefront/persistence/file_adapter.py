"""JSON file storage adapter — one ``<key>.json`` file per key in a directory.

Writes go to a temporary file in the same directory and are renamed over the
target, so a crash mid-write leaves the previous value intact.
"""

import os
import re
import tempfile
from pathlib import Path

from storefront.exceptions import PersistenceError
from storefront.persistence.port import KeyValueStorage

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileStorage(KeyValueStorage):
    def __init__(self, directory: str | os.PathLike):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key) or key.startswith("."):
            raise PersistenceError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(f"Failed to read {path}: {exc}") from exc

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceError(f"Failed to write {path}: {exc}") from exc

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Failed to remove {path}: {exc}") from exc
