"""
Local Snapshot Storage

Key-value persistence of JSON values on the local file system,
one file per key. This is where offline copies of the transaction
list and the budgets live.
"""

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Optional

from groupledger.services.storage.interface import (
    SnapshotStoreInterface,
    StorageError,
)


KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileSnapshotStore(SnapshotStoreInterface):
    """
    Stores each key as <directory>/<key>.json.

    Writes go through a temporary file and an atomic rename so a crash
    mid-write never leaves a truncated snapshot behind.
    """

    def __init__(self, directory: Path):
        self._directory = Path(directory)

    def _path_for(self, key: str) -> Path:
        if not KEY_PATTERN.match(key):
            raise ValueError(f"Invalid snapshot key: {key!r}")
        return self._directory / f"{key}.json"

    def save(self, key: str, value: Any) -> None:
        path = self._path_for(key)
        tmp_name = None
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(value, fh, ensure_ascii=False, default=str)
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Failed to save snapshot {key}: {e}")

    def load(self, key: str) -> Optional[Any]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to load snapshot {key}: {e}")

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete snapshot {key}: {e}")
