"""In-process ledger: the store for single-shot CLI runs and tests.

Nothing survives a restart, so production servers should use SQLiteLedger or
RedisLedger. The lock makes test-and-set atomic across request threads.
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone

from prpilot_store.base import BaseLedger
from prpilot_store.models import ADMITTED, FULFILLED, Admission, LedgerEntry


class MemoryLedger(BaseLedger):
    def __init__(self):
        self._lock = threading.Lock()
        self._entries: dict[str, LedgerEntry] = {}

    def admit(self, key: str) -> Admission:
        with self._lock:
            if key in self._entries:
                return Admission.already_seen()
            self._entries[key] = LedgerEntry(
                key=key, status=ADMITTED, admitted_at=datetime.now(timezone.utc).isoformat()
            )
            return Admission.granted()

    def commit(self, key: str) -> None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                entry.status = FULFILLED
                entry.fulfilled_at = datetime.now(timezone.utc).isoformat()

    def release(self, key: str) -> None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.status == ADMITTED:
                del self._entries[key]

    def is_seen(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def list_entries(self, limit: int | None = None) -> list[LedgerEntry]:
        with self._lock:
            entries = list(reversed(list(self._entries.values())))
        return entries[:limit] if limit is not None else entries
