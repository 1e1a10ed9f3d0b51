"""
multisig.runtime.confirmations — per-request confirmation sets and quorum.

Each live request id owns one set of confirming public keys, stored as a
sorted CBOR list. The set is opened together with the request and discarded
together with it.

Quorum rule: when a key that is not yet in the set confirms, and
`len(set) + 1 >= k`, quorum is reached. The key is then *not* written to the
set (the set is about to be destroyed by the caller, which removes the
request and executes it). Otherwise the key is added and persisted.

`k` is a single global value. It is not tied to how many keys exist on the
account, so a `k` larger than the number of keys able to confirm makes every
request unreachable until `k` is lowered.
"""

from __future__ import annotations

import logging
from typing import List

from ..errors import DuplicateConfirmation, NotFound
from ..state.collections import RecordMap, U32Cell
from ..state.kv import KVStore
from ..state.layout import K_NUM_CONFIRMATIONS, P_CONFIRMATIONS, read_u32, u32
from ..types.context import to_hex

log = logging.getLogger(__name__)


class ConfirmationTracker:
    def __init__(self, store: KVStore) -> None:
        self._sets: RecordMap[int] = RecordMap(store, P_CONFIRMATIONS, u32, read_u32)
        self._threshold = U32Cell(store, K_NUM_CONFIRMATIONS)

    # ------------------------------ threshold -------------------------------

    @property
    def threshold(self) -> int:
        return self._threshold.get()

    def set_threshold(self, k: int) -> None:
        self._threshold.set(k)

    # ------------------------------ sets ------------------------------------

    def open(self, request_id: int) -> None:
        self._sets.set(request_id, [])

    def exists(self, request_id: int) -> bool:
        return self._sets.contains(request_id)

    def members(self, request_id: int) -> List[bytes]:
        raw = self._sets.get(request_id)
        if raw is None:
            raise NotFound(request_id=request_id)
        return [bytes(m) for m in raw]

    def discard(self, request_id: int) -> bool:
        return self._sets.delete(request_id)

    def confirm(self, request_id: int, pk: bytes) -> bool:
        """
        Record a confirmation by `pk`.

        Returns:
            True when this confirmation reaches quorum (the caller must remove
            and execute the request), False when it was recorded and more
            confirmations are needed.
        """
        members = self.members(request_id)
        if pk in members:
            raise DuplicateConfirmation(request_id=request_id)
        if len(members) + 1 >= self.threshold:
            log.debug("request %d: quorum reached by %s", request_id, to_hex(pk))
            return True
        members.append(pk)
        self._sets.set(request_id, sorted(members))
        log.debug(
            "request %d: confirmed by %s (%d/%d)",
            request_id, to_hex(pk), len(members), self.threshold,
        )
        return False


__all__ = ["ConfirmationTracker"]
