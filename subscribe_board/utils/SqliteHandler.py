"""
SQLite Handler for board state persistence.

One row per actor key holding the JSON blob of its dashboard state.
"""
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Thread-local storage for SQLite connections
_local = threading.local()

# Default database path
DEFAULT_DB_PATH = "./data/subscribe_board.db"

TABLE_NAME = "board_state"


class SqliteHandler:
    """
    SQLite key/blob handler.

    Usage:
        from subscribe_board.utils.SqliteHandler import SqliteHandler

        db = SqliteHandler("./data/subscribe_board.db")
        db.put("-100123", '{"dateKey": "2025-01-06"}')
        blob = db.get("-100123")
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path
        self._lock = threading.Lock()
        self._initialized = False

    def _get_connection(self) -> sqlite3.Connection:
        """
        Get thread-local SQLite connection.

        Returns:
            sqlite3.Connection object
        """
        if not hasattr(_local, "connections"):
            _local.connections = {}

        if self.db_path not in _local.connections:
            # Ensure directory exists
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            conn = sqlite3.connect(self.db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            # Enable WAL mode for better concurrent access
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            _local.connections[self.db_path] = conn

        return _local.connections[self.db_path]

    def _ensure_table(self) -> None:
        if self._initialized:
            return

        with self._lock:
            if self._initialized:
                return
            conn = self._get_connection()
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                    state_key TEXT PRIMARY KEY,
                    blob TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.commit()
            self._initialized = True
            logger.info(f"Initialized table {TABLE_NAME} in {self.db_path}")

    def get(self, key: str) -> Optional[str]:
        """
        Read the blob stored under ``key``.

        Returns:
            The JSON blob, or None if the key was never written
        """
        self._ensure_table()
        conn = self._get_connection()
        row = conn.execute(
            f"SELECT blob FROM {TABLE_NAME} WHERE state_key = ?",
            (key,),
        ).fetchone()
        return row["blob"] if row else None

    def put(self, key: str, blob: str) -> None:
        """
        Insert or replace the blob stored under ``key``.
        """
        self._ensure_table()
        conn = self._get_connection()
        with self._lock:
            conn.execute(
                f"""
                INSERT INTO {TABLE_NAME} (state_key, blob, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(state_key) DO UPDATE SET
                    blob = excluded.blob,
                    updated_at = excluded.updated_at
                """,
                (key, blob, datetime.now(timezone.utc).isoformat()),
            )
            conn.commit()

    def close(self) -> None:
        """Close the connection opened by the calling thread."""
        connections = getattr(_local, "connections", {})
        conn = connections.pop(self.db_path, None)
        if conn is not None:
            conn.close()
