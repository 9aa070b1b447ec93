"""
Durable key/value storage backends for assignments and subject identity.

Mirrors a browser's per-origin storage: string keys, string values. The
JSON file backend persists across processes; the in-memory backend is used
in tests and as the fallback when persistence is unavailable.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the durable storage cannot be read or written."""


class InMemoryStorage:
    """Process-local storage; contents vanish with the object."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """
    Storage persisted as a single JSON object on disk.

    Every write rewrites the whole file. Concurrent writers are not
    coordinated: the last write wins.
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e
        except ValueError:
            # Covers JSONDecodeError and UnicodeDecodeError
            logger.warning(f"Storage file {self.path} is corrupt, starting fresh")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Storage file {self.path} does not hold an object, starting fresh")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(data, f)
            tmp.replace(self.path)
        except OSError as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


def read_serialized_variant(raw: Optional[str], experiment_id: str) -> Optional[str]:
    """
    Read one experiment's variant from a raw serialized assignments map.

    For server-side callers that only have the stored value (e.g. a cookie
    header) and no store instance.

    Returns:
        Variant id, or None if not assigned or the value is malformed
    """
    if not raw:
        return None
    try:
        assignments = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(assignments, dict):
        return None
    record = assignments.get(experiment_id)
    if not isinstance(record, dict):
        return None
    variant_id = record.get("variantId")
    return variant_id if isinstance(variant_id, str) and variant_id else None
