"""
Persistence backends for board snapshots.

A backend only moves opaque bytes: load() returns the last saved snapshot
(or None when nothing was ever saved) and save() replaces it. Decoding and
validation are the store's job.
"""
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "kanban_state_v1"


class Backend(Protocol):
    def load(self) -> Optional[bytes]:
        ...

    def save(self, raw: bytes) -> None:
        ...


class MemoryBackend:
    """In-process backend (tests, throwaway boards)."""

    def __init__(self, initial: Optional[bytes] = None):
        self.raw = initial
        self.saves = 0

    def load(self) -> Optional[bytes]:
        return self.raw

    def save(self, raw: bytes) -> None:
        self.raw = raw
        self.saves += 1


class FileBackend:
    """Single JSON file on disk, written atomically (temp file + rename)."""

    def __init__(self, path: str):
        self.path = Path(path).expanduser()

    def load(self) -> Optional[bytes]:
        if not self.path.exists():
            return None
        return self.path.read_bytes()

    def save(self, raw: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp_file.write_bytes(raw)
            tmp_file.replace(self.path)
        except OSError as e:
            logger.error(f"Failed to write board snapshot to {self.path}: {e}")
            raise


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection in WAL mode."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL")
    return conn


class SqliteBackend:
    """Key/value snapshot table in SQLite; one row per storage key."""

    def __init__(self, db_path: str, storage_key: str = DEFAULT_STORAGE_KEY):
        self.db_path = str(Path(db_path).expanduser())
        self.storage_key = storage_key
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        """Create the snapshot table if it doesn't exist."""
        with _connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS board_state (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()

    def load(self) -> Optional[bytes]:
        with _connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT value FROM board_state WHERE key = ? LIMIT 1",
                (self.storage_key,)
            ).fetchone()
        if not row:
            return None
        value = row["value"]
        return value.encode("utf-8") if isinstance(value, str) else bytes(value)

    def save(self, raw: bytes) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            with _connect(self.db_path) as conn:
                conn.execute("""
                    INSERT INTO board_state (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at
                """, (self.storage_key, raw, now))
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to save board snapshot '{self.storage_key}': {e}")
            raise
