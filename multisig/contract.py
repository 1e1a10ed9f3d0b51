"""
multisig.contract — the multisig contract: public operations over one store.

`MultisigContract` wires the runtime components together over an injected
`KVStore` and `ExecutionCapability`. It holds no state of its own: every
value lives in the store, so a contract object can be rebuilt per call (the
local host does exactly that over a journaled store).

Lifecycle of a request
----------------------
    add_request ─► confirm … confirm ─┬─► quorum: removed, then executed
                                      └─► delete_request after cooldown: removed

Quorum removal happens *before* execution. If the resulting batch later fails
on the ledger, the request and its confirmations are already gone and the
client has to submit it again.

Every mutating call must be made directly by the signing account
(signer account == predecessor account). This stops another contract from
adding, confirming or deleting requests on a key holder's behalf.

Public API (call-level)
-----------------------
- MultisigContract.init(store, num_confirmations, capability, ...) -> MultisigContract
- add_request(ctx, request) -> int
- add_request_and_confirm(ctx, request) -> int
- confirm(ctx, request_id) -> bool          (True iff execution was triggered)
- delete_request(ctx, request_id) -> None
- execute_request(ctx, request) -> bool     (self-calls only)
- get_request(request_id) -> Request
- get_request_envelope(request_id) -> RequestEnvelope
- get_num_requests_pk(public_key) -> int
- list_request_ids() -> list[str]
- get_confirmations(request_id) -> list[bytes]
- get_num_confirmations() -> int
- get_request_nonce() -> int
- get_active_requests_limit() -> int
"""

from __future__ import annotations

import logging
from typing import List, Optional

from .config import MultisigConfig, get_config
from .errors import (
    AlreadyInitialized,
    AuthorizationMismatch,
    InternalInconsistency,
    NotFound,
    NotInitialized,
)
from .metrics import MultisigMetrics
from .runtime.batch import ExecutionCapability
from .runtime.code import CodeResource
from .runtime.confirmations import ConfirmationTracker
from .runtime.cooldown import CooldownGuard
from .runtime.executor import ActionExecutor
from .runtime.rate_limit import RateLimiter
from .runtime.requests import RequestStore
from .state.kv import KVStore
from .state.layout import K_INIT, U32_MAX
from .types.context import CallContext, to_hex
from .types.request import Request, RequestEnvelope

log = logging.getLogger(__name__)

_INIT_MARK = b"\x01"


class MultisigContract:
    def __init__(
        self,
        store: KVStore,
        capability: ExecutionCapability,
        *,
        config: Optional[MultisigConfig] = None,
        code: Optional[CodeResource] = None,
        metrics: Optional[MultisigMetrics] = None,
    ) -> None:
        self.config = config or get_config()
        self._store = store
        self._metrics = metrics
        self.rate_limiter = RateLimiter(store, default_limit=self.config.active_requests_limit)
        self.confirmations = ConfirmationTracker(store)
        self.requests = RequestStore(store, self.rate_limiter, self.confirmations)
        self.cooldown = CooldownGuard(self.config.request_cooldown_ns)
        self.executor = ActionExecutor(self.requests, capability, code=code, metrics=metrics)

    # ------------------------------ lifecycle -------------------------------

    @staticmethod
    def is_initialized(store: KVStore) -> bool:
        return store.get(K_INIT) == _INIT_MARK

    @classmethod
    def init(
        cls,
        store: KVStore,
        num_confirmations: int,
        capability: ExecutionCapability,
        *,
        config: Optional[MultisigConfig] = None,
        code: Optional[CodeResource] = None,
        metrics: Optional[MultisigMetrics] = None,
    ) -> "MultisigContract":
        """
        Initialize contract state in `store` with threshold `num_confirmations`
        (k of n signatures required). Nonce starts at 0, the active request
        cap at the configured default.
        """
        if store.contains(K_INIT):
            raise AlreadyInitialized()
        if isinstance(num_confirmations, bool) or not isinstance(num_confirmations, int):
            raise TypeError("num_confirmations must be int")
        if not 0 <= num_confirmations <= U32_MAX:
            raise ValueError(f"num_confirmations out of range: {num_confirmations}")
        contract = cls(store, capability, config=config, code=code, metrics=metrics)
        contract.confirmations.set_threshold(num_confirmations)
        contract.requests.init_nonce()
        contract.rate_limiter.set_limit(contract.config.active_requests_limit)
        store.set(K_INIT, _INIT_MARK)
        log.info(
            "multisig initialized: k=%d, limit=%d",
            num_confirmations, contract.config.active_requests_limit,
        )
        return contract

    # ------------------------------ guards ----------------------------------

    def _require_init(self) -> None:
        if not self.is_initialized(self._store):
            raise NotInitialized()

    def _assert_direct(self, ctx: CallContext) -> None:
        if not ctx.is_direct:
            raise AuthorizationMismatch(
                expected=ctx.signer_account_id, got=ctx.predecessor_account_id
            )

    def _assert_valid_request(self, ctx: CallContext, request_id: int) -> None:
        self._require_init()
        self._assert_direct(ctx)
        if not self.requests.contains(request_id):
            raise NotFound(request_id=request_id)
        if not self.confirmations.exists(request_id):
            raise InternalInconsistency(data={"request_id": request_id})

    def _observe_live(self) -> None:
        if self._metrics is not None:
            self._metrics.set_live_requests(len(self.requests.ids()))

    # ------------------------------ mutations -------------------------------

    def add_request(self, ctx: CallContext, request: Request) -> int:
        """Add a request; the signing key becomes its recorded signer."""
        self._require_init()
        self._assert_direct(ctx)
        envelope = RequestEnvelope(
            request=request,
            signer_pk=ctx.signer_public_key,
            added_timestamp=ctx.block_timestamp,
        )
        request_id = self.requests.add(envelope)
        if self._metrics is not None:
            self._metrics.request_added()
        self._observe_live()
        return request_id

    def add_request_and_confirm(self, ctx: CallContext, request: Request) -> int:
        """Add a request and confirm it with the same key."""
        request_id = self.add_request(ctx, request)
        self.confirm(ctx, request_id)
        return request_id

    def confirm(self, ctx: CallContext, request_id: int) -> bool:
        """
        Confirm `request_id` with the calling key. When this confirmation
        reaches quorum the request is removed and executed and True is
        returned; otherwise the confirmation is recorded and False returned.
        """
        self._assert_valid_request(ctx, request_id)
        reached = self.confirmations.confirm(request_id, ctx.signer_public_key)
        if self._metrics is not None:
            self._metrics.confirmation(quorum=reached)
        if not reached:
            return False

        request = self.requests.remove(request_id)
        if self._metrics is not None:
            self._metrics.request_removed("executed")
        log.info("request %d reached quorum; executing", request_id)
        self.executor.execute(request, ctx.current_account_id)
        self._observe_live()
        return True

    def delete_request(self, ctx: CallContext, request_id: int) -> None:
        """Remove a request and its confirmations once the cooldown has passed."""
        self._assert_valid_request(ctx, request_id)
        envelope = self.requests.get_envelope(request_id)
        self.cooldown.assert_deletable(envelope, ctx.block_timestamp, request_id=request_id)
        self.requests.remove(request_id)
        if self._metrics is not None:
            self._metrics.request_removed("deleted")
        log.info("request %d deleted by %s", request_id, to_hex(ctx.signer_public_key))
        self._observe_live()

    def execute_request(self, ctx: CallContext, request: Request) -> bool:
        """
        Execute `request` without going through confirmations. Only the
        contract account itself may call this directly.
        """
        self._require_init()
        self._assert_direct(ctx)
        if not ctx.is_self_call:
            raise AuthorizationMismatch(
                "execute_request can only be called by the contract account",
                expected=ctx.current_account_id,
                got=ctx.predecessor_account_id,
            )
        return self.executor.execute(request, ctx.current_account_id)

    # ------------------------------ views -----------------------------------

    def get_request(self, request_id: int) -> Request:
        self._require_init()
        return self.requests.get(request_id)

    def get_request_envelope(self, request_id: int) -> RequestEnvelope:
        self._require_init()
        return self.requests.get_envelope(request_id)

    def get_num_requests_pk(self, public_key: bytes) -> int:
        self._require_init()
        return self.rate_limiter.count(bytes(public_key))

    def list_request_ids(self) -> List[str]:
        self._require_init()
        return [str(i) for i in self.requests.ids()]

    def get_confirmations(self, request_id: int) -> List[bytes]:
        self._require_init()
        return self.confirmations.members(request_id)

    def get_num_confirmations(self) -> int:
        self._require_init()
        return self.confirmations.threshold

    def get_request_nonce(self) -> int:
        self._require_init()
        return self.requests.nonce

    def get_active_requests_limit(self) -> int:
        self._require_init()
        return self.rate_limiter.limit


__all__ = ["MultisigContract"]
