"""
Durable key-value storage.

A per-user store of short string entries that survives restarts. Reads never
fail (an unreadable store is just empty); writes raise ``PersistenceError``
so the caller decides whether losing the write matters.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from ..errors import PersistenceError

logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    """Abstract string key-value storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if missing or unreadable."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value.

        Raises:
            PersistenceError: if the storage is unavailable
        """
        ...


class MemoryStorage(KeyValueStorage):
    """Process-local storage, for tests and storage-disabled environments."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStorage(KeyValueStorage):
    """Storage backed by a single JSON object file."""

    def __init__(self, path: Optional[str] = None):
        """
        Initialize the storage.

        Args:
            path: JSON file location (defaults to theme.storage_path)
        """
        if path is None:
            from ..config import get_config
            path = get_config().theme.storage_path
        self.path = Path(path).expanduser()

    def _read_all(self) -> Dict[str, str]:
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.debug(f"Ignoring unreadable preferences file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.debug(f"Ignoring non-object preferences file {self.path}")
            return {}
        return data

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise PersistenceError(f"Could not write {self.path}: {e}") from e
