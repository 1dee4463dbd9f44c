"""Local key-value storage backed by a JSON file."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)

STORAGE_PREFIX = "blingus_"
DEFAULT_STORAGE_PATH = Path.home() / ".bardbook_storage.json"


class KeyValueStore(Protocol):
    """String key-value store used to persist search preferences."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class LocalStore:
    """
    Prefixed key-value store persisted to a single JSON file.

    Raw `get`/`set` keep string values. The `*_local` helpers JSON-encode
    values and never raise: failures are logged and reported as False or
    the default value.
    """

    def __init__(self, path: Path, prefix: str = STORAGE_PREFIX):
        self.path = path
        self.prefix = prefix

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Storage file {self.path} does not hold an object")
        # Values written by other tools may not be strings
        return {
            key: value if isinstance(value, str) else json.dumps(value)
            for key, value in data.items()
        }

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Optional[str]:
        """Raw string value for a key, or None. Raises on unreadable storage."""
        return self._read().get(self.prefix + key)

    def set(self, key: str, value: str) -> None:
        """Store a raw string value. Raises on unwritable storage."""
        data = self._read()
        data[self.prefix + key] = value
        self._write(data)

    def save_local(self, key: str, value: Any) -> bool:
        """JSON-encode and store a value. Returns success status."""
        try:
            self.set(key, json.dumps(value))
            return True
        except (OSError, ValueError, TypeError) as e:
            logger.error(f"Failed to save {key} to local storage: {e}")
            return False

    def load_local(self, key: str, default: Any = None) -> Any:
        """Load and decode a stored value, or return the default."""
        try:
            raw = self.get(key)
            return json.loads(raw) if raw else default
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load {key} from local storage: {e}")
            return default

    def remove_local(self, key: str) -> bool:
        try:
            data = self._read()
            data.pop(self.prefix + key, None)
            self._write(data)
            return True
        except (OSError, ValueError) as e:
            logger.error(f"Failed to remove {key} from local storage: {e}")
            return False

    def clear_local(self) -> bool:
        """Remove every key owned by this store's prefix."""
        try:
            data = self._read()
            kept = {k: v for k, v in data.items() if not k.startswith(self.prefix)}
            self._write(kept)
            return True
        except (OSError, ValueError) as e:
            logger.error(f"Failed to clear local storage: {e}")
            return False

    def export_data(self) -> dict[str, Any]:
        """All decoded values owned by this store, keyed without prefix."""
        try:
            data = self._read()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to export data: {e}")
            return {}

        exported = {}
        for key in data:
            if key.startswith(self.prefix):
                clean_key = key[len(self.prefix):]
                exported[clean_key] = self.load_local(clean_key)
        return exported

    def import_data(self, data: dict[str, Any]) -> bool:
        """Store every value of a previously exported mapping."""
        return all([self.save_local(key, value) for key, value in data.items()])

    def get_storage_usage(self) -> dict[str, int]:
        """Approximate size in characters of keys and values owned by this store."""
        try:
            data = self._read()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to measure local storage: {e}")
            return {"keys": 0, "size": 0}

        owned = {k: v for k, v in data.items() if k.startswith(self.prefix)}
        size = sum(len(k) + len(v) for k, v in owned.items())
        return {"keys": len(owned), "size": size}

    @classmethod
    def from_env(cls) -> "LocalStore":
        """Create a LocalStore from BARDBOOK_STORAGE_FILE or the default path."""
        path = os.environ.get("BARDBOOK_STORAGE_FILE")
        return cls(Path(path) if path else DEFAULT_STORAGE_PATH)
