"""RedisLedger: shared ledger for servers running several replicas.

Keys live in a Redis set (``processedEvents`` by default). ``SADD`` returns
the number of members actually added, so a reply of 1 means this caller was
first: test-and-set in one round trip. Fulfilled keys are mirrored into a
second set, ``<name>:fulfilled``, so release() can leave them alone.
"""

from __future__ import annotations

import logging

from prpilot_store.base import BaseLedger
from prpilot_store.models import ADMITTED, FULFILLED, Admission, LedgerEntry

logger = logging.getLogger(__name__)


class RedisLedger(BaseLedger):
    def __init__(self, url: str | None = None, set_name: str = "processedEvents", client=None):
        if client is None:
            try:
                import redis
            except ImportError:
                raise ImportError(
                    "The 'redis' package is required for the Redis ledger. "
                    "Install it with: pip install 'prpilot[redis]'"
                )
            if not url:
                raise ValueError("RedisLedger needs a Redis URL (set REDIS_URL).")
            client = redis.Redis.from_url(url, decode_responses=True)
        self._redis = client
        self._set = set_name
        self._fulfilled = f"{set_name}:fulfilled"

    def admit(self, key: str) -> Admission:
        if self._redis.sadd(self._set, key) == 1:
            return Admission.granted()
        logger.debug("Redis set %s already holds %s", self._set, key)
        return Admission.already_seen()

    def commit(self, key: str) -> None:
        self._redis.sadd(self._fulfilled, key)

    def release(self, key: str) -> None:
        # Only the pipeline run that admitted key ever commits or releases it,
        # so this check-then-remove does not race with commit().
        if not self._redis.sismember(self._fulfilled, key):
            self._redis.srem(self._set, key)

    def is_seen(self, key: str) -> bool:
        return bool(self._redis.sismember(self._set, key))

    def list_entries(self, limit: int | None = None) -> list[LedgerEntry]:
        fulfilled = {self._decode(k) for k in self._redis.smembers(self._fulfilled)}
        keys = sorted(self._decode(k) for k in self._redis.smembers(self._set))
        entries = [LedgerEntry(key=k, status=FULFILLED if k in fulfilled else ADMITTED) for k in keys]
        return entries[:limit] if limit is not None else entries

    def close(self) -> None:
        self._redis.close()

    @staticmethod
    def _decode(value) -> str:
        return value.decode() if isinstance(value, bytes) else value
