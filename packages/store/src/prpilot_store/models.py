"""Ledger data models.

Decoupled from prpilot_core so the store layer can be used independently
and prpilot_core has no knowledge of persistence concerns.
"""

from __future__ import annotations

from dataclasses import dataclass

ALREADY_SEEN = "AlreadySeen"

ADMITTED = "admitted"
FULFILLED = "fulfilled"


@dataclass(frozen=True)
class Admission:
    """Answer to ``admit(key)``: may this unit of work proceed?"""

    admitted: bool
    reason: str | None = None

    @classmethod
    def granted(cls) -> Admission:
        return cls(admitted=True)

    @classmethod
    def already_seen(cls) -> Admission:
        return cls(admitted=False, reason=ALREADY_SEEN)


@dataclass
class LedgerEntry:
    key: str
    status: str  # "admitted" | "fulfilled"
    admitted_at: str = ""  # ISO-8601 UTC timestamp, empty when the backend does not keep one
    fulfilled_at: str = ""
