"""
Key-value persistence for the history blob.

JsonFileStore keeps every key in a single JSON object on disk and rewrites
the whole file atomically on each set(). MemoryStore is the in-process
equivalent.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from common.errors import PersistenceReadError, PersistenceWriteError

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Minimal string key-value interface."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data = dict(initial or {})

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        self._data[key] = value


class JsonFileStore(KeyValueStore):
    """
    Key-value store backed by one JSON file.

    Args:
        path: File to read and write; parent directories are created on write
    """

    def __init__(self, path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceReadError(f"Cannot read {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceReadError(f"Unexpected content in {self.path}")

        return data

    def get(self, key):
        value = self._read_all().get(key)
        if value is not None and not isinstance(value, str):
            raise PersistenceReadError(f"Value for '{key}' is not a string")
        return value

    def set(self, key, value):
        try:
            data = self._read_all()
        except PersistenceReadError:
            logger.warning(f"Overwriting unreadable store at {self.path}")
            data = {}

        data[key] = value

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(data, f)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise PersistenceWriteError(f"Cannot write {self.path}: {e}") from e
