"""SQLiteLedger: the default durable ledger.

``INSERT OR IGNORE`` on the primary key is a single atomic statement, so
test-and-set holds across threads and across processes sharing the file.

Schema:
  ledger   one row per admitted event key; status moves from "admitted" to
           "fulfilled" when the review is published.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime, timezone

from prpilot_store.base import BaseLedger
from prpilot_store.models import ADMITTED, FULFILLED, Admission, LedgerEntry

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS ledger (
    key           TEXT PRIMARY KEY,
    status        TEXT NOT NULL DEFAULT 'admitted',
    admitted_at   TEXT NOT NULL,
    fulfilled_at  TEXT
);
CREATE INDEX IF NOT EXISTS idx_ledger_admitted_at ON ledger (admitted_at);
"""


class SQLiteLedger(BaseLedger):
    """Stores admitted keys in a local SQLite database file.

    The database path defaults to `.prpilot.db` in the current working
    directory. Configure via .prpilot.yml: `ledger_path: /path/to/prpilot.db`.
    """

    def __init__(self, db_path: str = ".prpilot.db"):
        # One connection shared by the webhook server's request threads; the
        # lock serialises use of the connection object itself.
        self._conn = sqlite3.connect(db_path, check_same_thread=False, timeout=30)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def admit(self, key: str) -> Admission:
        with self._lock:
            cursor = self._conn.execute(
                "INSERT OR IGNORE INTO ledger (key, status, admitted_at) VALUES (?, ?, ?)",
                (key, ADMITTED, datetime.now(timezone.utc).isoformat()),
            )
            self._conn.commit()
        if cursor.rowcount == 1:
            return Admission.granted()
        logger.debug("Ledger already holds %s", key)
        return Admission.already_seen()

    def commit(self, key: str) -> None:
        with self._lock:
            self._conn.execute(
                "UPDATE ledger SET status=?, fulfilled_at=? WHERE key=?",
                (FULFILLED, datetime.now(timezone.utc).isoformat(), key),
            )
            self._conn.commit()

    def release(self, key: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM ledger WHERE key=? AND status=?", (key, ADMITTED))
            self._conn.commit()

    def is_seen(self, key: str) -> bool:
        with self._lock:
            row = self._conn.execute("SELECT 1 FROM ledger WHERE key=?", (key,)).fetchone()
        return row is not None

    def list_entries(self, limit: int | None = None) -> list[LedgerEntry]:
        query = "SELECT * FROM ledger ORDER BY admitted_at DESC"
        params: tuple = ()
        if limit is not None:
            query += " LIMIT ?"
            params = (limit,)
        with self._lock:
            rows = self._conn.execute(query, params).fetchall()
        return [self._row_to_entry(r) for r in rows]

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> LedgerEntry:
        return LedgerEntry(
            key=row["key"],
            status=row["status"],
            admitted_at=row["admitted_at"] or "",
            fulfilled_at=row["fulfilled_at"] or "",
        )
