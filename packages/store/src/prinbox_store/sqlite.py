"""SQLiteStore: local file-based blob store.

Why SQLite as an alternative local store:
- Batteries included: ships with Python, no extra dependencies.
- Each write is a single committed statement, so a crash mid-save leaves
  the previous blob in place.
- Good when several tools share one state file and a directory of JSON
  files is awkward to manage.

Schema:
  blobs : one row per key; the whole JSON document lives in `content`.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone

from prinbox_store.base import BaseStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS blobs (
    key         TEXT PRIMARY KEY,
    content     TEXT NOT NULL,
    updated_at  TEXT
);
"""


class SQLiteStore(BaseStore):
    """Stores blobs in a local SQLite database file.

    The database file path defaults to `.prinbox.db` in the current working
    directory. Configure via .prinbox.yml: `store_path: /path/to/prinbox.db`.
    """

    def __init__(self, db_path: str = ".prinbox.db"):
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def read(self, key: str) -> str | None:
        row = self._conn.execute("SELECT content FROM blobs WHERE key=?", (key,)).fetchone()
        return row["content"] if row is not None else None

    def write(self, key: str, content: str) -> None:
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO blobs (key, content, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                  content=excluded.content,
                  updated_at=excluded.updated_at
                """,
                (key, content, datetime.now(timezone.utc).isoformat()),
            )
        logger.debug("SQLiteStore wrote %d bytes to %r", len(content), key)

    def close(self) -> None:
        self._conn.close()
