"""
multisig.runtime.rate_limit — outstanding request count per signer key.

A key may hold at most `limit` live requests (default 12). With a 15 minute
deletion cooldown that bounds a malicious key holder to 12 unconfirmed
requests per 15 minutes of storage griefing.
"""

from __future__ import annotations

import logging

from ..errors import RateLimitExceeded
from ..state.collections import CounterMap, U32Cell
from ..state.kv import KVStore
from ..state.layout import K_ACTIVE_REQUESTS_LIMIT, P_NUM_REQUESTS_PK
from ..types.context import to_hex

log = logging.getLogger(__name__)


class RateLimiter:
    def __init__(self, store: KVStore, *, default_limit: int) -> None:
        self._counts = CounterMap(store, P_NUM_REQUESTS_PK)
        self._limit = U32Cell(store, K_ACTIVE_REQUESTS_LIMIT, default=default_limit)

    @property
    def limit(self) -> int:
        return self._limit.get()

    def set_limit(self, limit: int) -> None:
        self._limit.set(limit)

    def count(self, pk: bytes) -> int:
        return self._counts.get(pk)

    def admit(self, pk: bytes) -> int:
        """Count one more request for `pk`; raises RateLimitExceeded at the cap."""
        n = self._counts.get(pk) + 1
        limit = self.limit
        if n > limit:
            raise RateLimitExceeded(signer=to_hex(pk), limit=limit)
        self._counts.set(pk, n)
        return n

    def release(self, pk: bytes) -> int:
        n = self._counts.get(pk)
        if n > 0:
            n -= 1
        else:
            log.warning("outstanding count underflow for %s", to_hex(pk))
        self._counts.set(pk, n)
        return n

    def reset(self, pk: bytes) -> None:
        self._counts.delete(pk)


__all__ = ["RateLimiter"]
