"""Server-side stores for synced user data."""

import json
import logging
import os
import sqlite3
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

logging.basicConfig(
    level=logging.INFO,
    format="[SyncStore] %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

MAX_DATA_SIZE = 10 * 1024 * 1024

SYNCED_KEYS = [
    "favorites",
    "userItems",
    "deletedDefaults",
    "history",
    "voicePresets",
    "generators",
    "editedGeneratorDefaults",
    "deletedGeneratorDefaults",
    "darkMode",
    "version",
    "timestamp",
    "serverTimestamp",
]


class SyncError(Exception):
    """A save or load failure with a message safe to return to the client."""


def server_timestamp() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def stored_timestamp(data: dict[str, Any]) -> Optional[str]:
    return data.get("serverTimestamp") or data.get("timestamp")


class SyncStore:
    """Base class for stores holding one user's data object."""

    def save(self, data: Any) -> str:
        """Validate, stamp and persist data. Returns the server timestamp."""
        if not isinstance(data, dict):
            raise SyncError("Invalid data format: data must be an object")

        size = len(json.dumps(data))
        if size > MAX_DATA_SIZE:
            raise SyncError(
                f"Data too large: maximum size is {MAX_DATA_SIZE // 1024 // 1024}MB"
            )

        stamped = {**data, "serverTimestamp": server_timestamp()}
        self._write(stamped)
        return stamped["serverTimestamp"]

    def load(self) -> Optional[dict[str, Any]]:
        """Stored data, or None when nothing was saved yet."""
        raise NotImplementedError

    def _write(self, data: dict[str, Any]) -> None:
        raise NotImplementedError


class JsonFileStore(SyncStore):
    """Keeps the whole data object as one pretty-printed JSON document."""

    FILENAME = "blingus-data.json"

    def __init__(self, data_dir: Path):
        self.data_dir = data_dir
        self.data_file = data_dir / self.FILENAME

    def _write(self, data: dict[str, Any]) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create data directory {self.data_dir}: {e}")
            raise SyncError("Data directory is not writable") from e

        text = json.dumps(data, indent=4, ensure_ascii=False)
        try:
            self.data_file.write_text(text, encoding="utf-8")
        except OSError as e:
            raise SyncError(
                f"Failed to write data file: {e.strerror or e} (Path: {self.data_file})"
            ) from e

        logger.info(f"Saved {len(text)} bytes to {self.data_file}")

    def load(self) -> Optional[dict[str, Any]]:
        if not self.data_file.exists():
            return None

        try:
            data = json.loads(self.data_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise SyncError("Invalid JSON in data file") from e

        if not isinstance(data, dict):
            raise SyncError("Invalid JSON in data file")
        return data


class SqliteStore(SyncStore):
    """Keeps allow-listed fields as rows, one transaction per save."""

    FILENAME = "blingus-sync.db"

    def __init__(self, db_path: Path, user_id: str = "default"):
        self.db_path = db_path
        self.user_id = user_id
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            return sqlite3.connect(self.db_path)
        except (OSError, sqlite3.Error) as e:
            raise SyncError(f"Database error: {e}") from e

    def _init_db(self) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS user_data (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        user_id TEXT NOT NULL DEFAULT 'default',
                        data_key TEXT NOT NULL,
                        data_value TEXT NOT NULL,
                        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        UNIQUE(user_id, data_key)
                    )
                    """
                )
                conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_user_key ON user_data(user_id, data_key)"
                )
        except sqlite3.Error as e:
            raise SyncError(f"Database error: {e}") from e
        finally:
            conn.close()

    def _write(self, data: dict[str, Any]) -> None:
        conn = self._connect()
        try:
            # The connection context manager commits, or rolls back on error
            with conn:
                for key in SYNCED_KEYS:
                    if key not in data or data[key] is None:
                        continue
                    value = data[key]
                    if not isinstance(value, str):
                        value = json.dumps(value)
                    conn.execute(
                        """
                        INSERT OR REPLACE INTO user_data (user_id, data_key, data_value, updated_at)
                        VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                        """,
                        (self.user_id, key, value),
                    )
        except sqlite3.Error as e:
            raise SyncError(f"Database error: {e}") from e
        finally:
            conn.close()

        logger.info(f"Saved user data for {self.user_id} to {self.db_path}")

    def load(self) -> Optional[dict[str, Any]]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT data_key, data_value FROM user_data WHERE user_id = ?",
                (self.user_id,),
            ).fetchall()
        except sqlite3.Error as e:
            raise SyncError(f"Database error: {e}") from e
        finally:
            conn.close()

        if not rows:
            return None

        data: dict[str, Any] = {}
        for key, value in rows:
            try:
                data[key] = json.loads(value)
            except json.JSONDecodeError:
                data[key] = value
        return data


def store_from_env() -> SyncStore:
    """Create the store selected by BARDBOOK_SYNC_BACKEND (json or sqlite)."""
    data_dir = Path(os.environ.get("BARDBOOK_DATA_DIR", "data")).resolve()
    backend = os.environ.get("BARDBOOK_SYNC_BACKEND", "json").lower()

    logger.info(f"Using {backend} sync backend in {data_dir}")

    if backend == "json":
        return JsonFileStore(data_dir)
    if backend == "sqlite":
        return SqliteStore(data_dir / SqliteStore.FILENAME)

    raise ValueError(f"Unknown BARDBOOK_SYNC_BACKEND: {backend!r} (expected json or sqlite)")
