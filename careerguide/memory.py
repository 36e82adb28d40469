# careerguide/memory.py
# Session stores. Snapshots are plain JSON-ready dicts keyed by session id.

import json
import sqlite3
from time import time
from typing import Any, Dict

from . import config
from .errors import NotFoundError, PersistenceError

Snapshot = Dict[str, Any]


class InMemorySessionStore:
    """A tiny session store with soft TTL to keep memory bounded in demos."""
    def __init__(self, ttl_seconds: int = 3600):
        self._store: Dict[str, Dict[str, Any]] = {}
        self._ttl = ttl_seconds

    def get(self, session_id: str) -> Snapshot:
        s = self._store.get(session_id)
        if not s or time() - s["last_seen"] > self._ttl:
            self._store.pop(session_id, None)
            raise NotFoundError(session_id)
        s["last_seen"] = time()
        # Hand out a copy so callers never mutate what is stored
        return json.loads(s["snapshot"])

    def put(self, session_id: str, snapshot: Snapshot) -> None:
        # Full overwrite; storing the serialized form keeps repeated puts identical
        self._store[session_id] = {"snapshot": json.dumps(snapshot, sort_keys=True), "last_seen": time()}

    def delete(self, session_id: str) -> None:
        self._store.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._store)


class SQLiteSessionStore:
    """File-backed store; one row per session holding the JSON snapshot."""
    def __init__(self, db_path: str):
        self._db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS sessions (
                id TEXT PRIMARY KEY,
                state_json TEXT NOT NULL
            )
            """
        )
        return conn

    def get(self, session_id: str) -> Snapshot:
        try:
            conn = self._get_conn()
            try:
                row = conn.execute("SELECT state_json FROM sessions WHERE id = ?", (session_id,)).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError(f"could not read session {session_id}: {e}") from e
        if not row:
            raise NotFoundError(session_id)
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            raise PersistenceError(f"stored snapshot for {session_id} is corrupt") from e

    def put(self, session_id: str, snapshot: Snapshot) -> None:
        try:
            conn = self._get_conn()
            try:
                conn.execute(
                    "INSERT OR REPLACE INTO sessions (id, state_json) VALUES (?, ?)",
                    (session_id, json.dumps(snapshot, sort_keys=True)),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError(f"could not write session {session_id}: {e}") from e

    def delete(self, session_id: str) -> None:
        try:
            conn = self._get_conn()
            try:
                conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError(f"could not delete session {session_id}: {e}") from e


def get_store():
    """Build the store selected by SESSION_BACKEND."""
    if config.SESSION_BACKEND == "sqlite":
        return SQLiteSessionStore(config.SESSION_DB_PATH)
    return InMemorySessionStore(ttl_seconds=config.SESSION_TTL_SECONDS)
