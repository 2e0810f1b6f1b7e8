"""Abstract idempotency ledger.

A ledger answers one question atomically: has this event key been admitted
before? Any backend (SQLite, Redis, in-process) implements this interface, and
the pipeline depends on BaseLedger, not on a concrete backend.

Keys are never expired. A key is only ever removed by ``release``, and only
while its work has not been fulfilled.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prpilot_store.models import Admission, LedgerEntry


class BaseLedger(ABC):
    @abstractmethod
    def admit(self, key: str) -> Admission:
        """Atomically record key and report whether this call was the first.

        Of any number of concurrent calls with the same key, exactly one
        returns ``admitted=True``.
        """

    @abstractmethod
    def commit(self, key: str) -> None:
        """Mark an admitted key as fulfilled: its side effect was published."""

    @abstractmethod
    def release(self, key: str) -> None:
        """Forget an admitted key whose work failed, so a redelivery may retry.

        A fulfilled key is never released.
        """

    @abstractmethod
    def is_seen(self, key: str) -> bool:
        """Non-atomic membership check, used only as a fast path."""

    @abstractmethod
    def list_entries(self, limit: int | None = None) -> list[LedgerEntry]:
        """Return recorded keys, most recent first where the backend knows the order."""

    def close(self) -> None:
        """Release any resources held by the ledger (connections, file handles).

        Optional: subclasses that need cleanup should override this.
        """
