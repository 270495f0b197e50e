from __future__ import annotations

import json
import os
import sqlite3
import tempfile
import threading
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol

from fxsim.core.config import StorageConfig
from fxsim.core.errors import PersistenceError


def _expand(path: str) -> str:
    return os.path.expandvars(os.path.expanduser(path))


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set_many(self, items: Mapping[str, str]) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """Dict-backed store. ``fail_writes``/``fail_reads`` simulate an unavailable backend."""

    def __init__(self, data: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(data or {})
        self.fail_writes = False
        self.fail_reads = False
        self.writes = 0

    def get(self, key: str) -> Optional[str]:
        if self.fail_reads:
            raise PersistenceError("storage unavailable")
        return self.data.get(key)

    def set_many(self, items: Mapping[str, str]) -> None:
        if self.fail_writes:
            raise PersistenceError("storage unavailable")
        self.data.update(items)
        self.writes += 1

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class SQLiteKeyValueStore:
    """SQLite-backed key/value table.

    Tables:
      - kv (key TEXT PRIMARY KEY, value TEXT, updated_at REAL)
    """

    def __init__(self, db_path: str = "~/.fxsim/ledger.db") -> None:
        # Allow overriding the DB path via environment to share state across sessions
        env_override = os.getenv("FXSIM_STORE_DB")
        self.db_path = _expand(env_override or db_path)
        self._lock = threading.Lock()
        try:
            Path(os.path.dirname(self.db_path) or ".").mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA synchronous=NORMAL;")
            self._init_schema()
        except sqlite3.Error as e:
            raise PersistenceError(f"cannot open {self.db_path}: {e}") from e
        except OSError as e:
            raise PersistenceError(f"cannot create directory for {self.db_path}: {e}") from e

    def _init_schema(self) -> None:
        with self._conn:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    updated_at REAL DEFAULT (strftime('%s','now'))
                );
                """
            )

    def get(self, key: str) -> Optional[str]:
        try:
            with self._lock:
                row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"read {key} failed: {e}") from e
        return row[0] if row else None

    def set_many(self, items: Mapping[str, str]) -> None:
        try:
            with self._lock, self._conn:
                self._conn.executemany(
                    """
                    INSERT INTO kv (key, value, updated_at) VALUES (?, ?, strftime('%s','now'))
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    list(items.items()),
                )
        except sqlite3.Error as e:
            raise PersistenceError(f"write {sorted(items)} failed: {e}") from e

    def delete(self, key: str) -> None:
        try:
            with self._lock, self._conn:
                self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise PersistenceError(f"delete {key} failed: {e}") from e

    def close(self) -> None:
        with self._lock:
            self._conn.close()


class JSONFileStore:
    """Single JSON document; each write replaces the file so all keys land together."""

    def __init__(self, path: str = "~/.fxsim/ledger.json") -> None:
        self.path = Path(_expand(path))
        self._lock = threading.Lock()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"cannot create directory for {self.path}: {e}") from e

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise PersistenceError(f"read {self.path} failed: {e}") from e
        except json.JSONDecodeError:
            # Corrupt document reads as empty; the ledger reseeds it
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, str]) -> None:
        try:
            fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), prefix=".fxsim-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp, self.path)
        except OSError as e:
            raise PersistenceError(f"write {self.path} failed: {e}") from e

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._read().get(key)
        return None if value is None else str(value)

    def set_many(self, items: Mapping[str, str]) -> None:
        with self._lock:
            data = self._read()
            data.update(items)
            self._write(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)


def build_store(cfg: StorageConfig) -> KeyValueStore:
    if cfg.type == "sqlite":
        return SQLiteKeyValueStore(db_path=cfg.path)
    if cfg.type == "json":
        return JSONFileStore(path=cfg.path)
    return MemoryStore()
