"""
multisig.runtime.requests — request records, ids and the signer index.

RequestStore owns:
  - the request nonce (next id; ids start at 0, strictly increase, never reuse)
  - the id -> RequestEnvelope map
  - the signer-key -> live-request-ids multi-map used by key revocation

and composes the RateLimiter (admission control) and ConfirmationTracker
(a set is opened and discarded together with its request).
"""

from __future__ import annotations

import logging
from typing import List

from ..errors import InternalInconsistency, NonceExhausted, NotFound
from ..state.collections import IdMultiMap, RecordMap, U32Cell
from ..state.kv import KVStore
from ..state.layout import K_REQUEST_NONCE, P_REQUESTS, U32_MAX, read_u32, u32
from ..types.context import to_hex
from ..types.request import Request, RequestEnvelope
from .confirmations import ConfirmationTracker
from .rate_limit import RateLimiter

log = logging.getLogger(__name__)


class RequestStore:
    def __init__(
        self,
        store: KVStore,
        rate_limiter: RateLimiter,
        confirmations: ConfirmationTracker,
    ) -> None:
        self._envelopes: RecordMap[int] = RecordMap(store, P_REQUESTS, u32, read_u32)
        self._nonce = U32Cell(store, K_REQUEST_NONCE)
        self._by_signer = IdMultiMap(store)
        self.rate_limiter = rate_limiter
        self.confirmations = confirmations

    # ------------------------------ reads -----------------------------------

    @property
    def nonce(self) -> int:
        return self._nonce.get()

    def contains(self, request_id: int) -> bool:
        return self._envelopes.contains(request_id)

    def get_envelope(self, request_id: int) -> RequestEnvelope:
        raw = self._envelopes.get(request_id)
        if raw is None:
            raise NotFound(request_id=request_id)
        try:
            return RequestEnvelope.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            raise InternalInconsistency(
                "Internal error: undecodable request record",
                data={"request_id": request_id, "error": str(e)},
            ) from e

    def get(self, request_id: int) -> Request:
        return self.get_envelope(request_id).request

    def ids(self) -> List[int]:
        return self._envelopes.keys()

    def ids_for_signer(self, pk: bytes) -> List[int]:
        return self._by_signer.members(pk)

    # ------------------------------ writes ----------------------------------

    def init_nonce(self) -> None:
        self._nonce.set(0)

    def add(self, envelope: RequestEnvelope) -> int:
        """
        Admit a request; raises RateLimitExceeded when the signer is at its cap
        and NonceExhausted once the last u32 id has been used.
        """
        request_id = self._nonce.get()
        if request_id >= U32_MAX:
            raise NonceExhausted(nonce=request_id)
        self.rate_limiter.admit(envelope.signer_pk)
        self._envelopes.set(request_id, envelope)
        self.confirmations.open(request_id)
        self._by_signer.add(envelope.signer_pk, request_id)
        self._nonce.set(request_id + 1)
        log.info(
            "request %d added by %s -> %s (%d actions)",
            request_id,
            to_hex(envelope.signer_pk),
            envelope.request.receiver_id,
            len(envelope.request.actions),
        )
        return request_id

    def remove(self, request_id: int) -> Request:
        """
        Delete the request and its confirmation set, release the signer's slot
        and drop the index entry. Returns the stored request.
        """
        envelope = self.get_envelope(request_id)
        self.confirmations.discard(request_id)
        self._envelopes.delete(request_id)
        if self._envelopes.contains(request_id):
            raise InternalInconsistency("Failed to remove existing element")
        self.rate_limiter.release(envelope.signer_pk)
        self._by_signer.remove(envelope.signer_pk, request_id)
        return envelope.request

    def remove_by_signer(self, pk: bytes) -> List[int]:
        """
        Remove every live request created by `pk`, with its confirmation set,
        and reset the key's outstanding count to 0. Returns the removed ids.
        """
        removed = self._by_signer.members(pk)
        for request_id in removed:
            self.confirmations.discard(request_id)
            self._envelopes.delete(request_id)
            self._by_signer.remove(pk, request_id)
        self.rate_limiter.reset(pk)
        if removed:
            log.info("removed %d requests of revoked key %s: %s", len(removed), to_hex(pk), removed)
        return removed


__all__ = ["RequestStore"]
