"""
SQLite key-value store using aiosqlite.

Values live in a single kv_store table keyed by string. The database
file and its parent directories are created on first connect.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from studyr.errors import StorageReadError, StorageWriteError
from studyr.store.interface import KeyValueStore

logger = logging.getLogger(__name__)

try:
    import aiosqlite
    HAS_AIOSQLITE = True
except ImportError:
    HAS_AIOSQLITE = False
    aiosqlite = None


SCHEMA = """
    CREATE TABLE IF NOT EXISTS kv_store (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TEXT
    )
"""


class SQLiteStore(KeyValueStore):
    """
    SQLite-backed key-value store.

    Uses aiosqlite for async database operations.
    """

    def __init__(self, db_path: str = "~/.studyr/studyr.db"):
        """
        Initialize SQLite store.

        Args:
            db_path: Path to SQLite database file.
                    Supports ~ expansion for home directory.
        """
        if not HAS_AIOSQLITE:
            raise RuntimeError(
                "aiosqlite not installed. Run: pip install studyr"
            )

        self.db_path = Path(db_path).expanduser()
        self._conn: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        """Open the database, creating file and table if needed."""
        if self._conn is not None:
            return

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = await aiosqlite.connect(str(self.db_path))

            # Use WAL mode for better concurrent access
            await self._conn.execute("PRAGMA journal_mode = WAL")
            await self._conn.execute(SCHEMA)
            await self._conn.commit()
        except (OSError, aiosqlite.Error) as e:
            raise StorageReadError(f"Cannot open SQLite store at {self.db_path}: {e}") from e

        logger.info(f"SQLite store connected: {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite store closed")

    async def _get_conn(self) -> "aiosqlite.Connection":
        """Get or create connection."""
        if self._conn is None:
            await self.connect()
        return self._conn

    async def get(self, key: str) -> str | None:
        conn = await self._get_conn()
        try:
            cursor = await conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StorageReadError(f"Failed to read '{key}': {e}", key=key) from e
        return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        conn = await self._get_conn()
        try:
            await conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, datetime.now().isoformat()),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            raise StorageWriteError(f"Failed to write '{key}': {e}", key=key) from e

    async def remove(self, key: str) -> None:
        conn = await self._get_conn()
        try:
            await conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            await conn.commit()
        except aiosqlite.Error as e:
            raise StorageWriteError(f"Failed to remove '{key}': {e}", key=key) from e

    async def keys(self) -> list[str]:
        """List stored keys, for diagnostics."""
        conn = await self._get_conn()
        try:
            cursor = await conn.execute("SELECT key FROM kv_store ORDER BY key")
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StorageReadError(f"Failed to list keys: {e}") from e
        return [row[0] for row in rows]

    @property
    def backend(self) -> str:
        return "sqlite"
