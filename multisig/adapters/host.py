"""
multisig.adapters.host — run the contract locally with ledger-like semantics.

`LocalHost` plays the part of the ledger runtime around one multisig account:

  - it owns the persistent store and a controllable clock (ns)
  - it builds the `CallContext` for each call
  - every call runs inside a journal checkpoint: if the call raises, all of
    its writes are reverted and any batches it produced are dropped
  - after a successful call, its writes are committed and the batches it
    produced are applied to an `InMemoryLedger`, in order

Batch application happens after commit and cannot undo the call. A batch the
ledger rejects leaves the multisig state exactly as the call left it (the
request stays removed).

Typical use
-----------
    host = LocalHost("wallet.test")
    host.init(2)
    rid = host.call("add_request_and_confirm", req, signer_pk=pk1)
    host.call("confirm", rid, signer_pk=pk2)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, TypeVar

from ..config import NS_PER_SECOND, MultisigConfig, get_config, summary
from ..contract import MultisigContract
from ..errors import MultisigError
from ..metrics import MultisigMetrics, get_metrics
from ..runtime.batch import ActionBatch
from ..runtime.code import CodeResource
from ..state.journal import JournaledKV
from ..state.kv import KVStore, MemoryKV
from ..types.context import CallContext, to_bytes
from ..version import build_label
from .ledger import BatchOutcome, InMemoryLedger

log = logging.getLogger(__name__)

T = TypeVar("T")

MUTATING_METHODS = frozenset(
    {
        "add_request",
        "add_request_and_confirm",
        "confirm",
        "delete_request",
        "execute_request",
    }
)

VIEW_METHODS = frozenset(
    {
        "get_request",
        "get_request_envelope",
        "get_num_requests_pk",
        "list_request_ids",
        "get_confirmations",
        "get_num_confirmations",
        "get_request_nonce",
        "get_active_requests_limit",
    }
)

# 2021-01-01T00:00:00Z, so timestamps look like real ledger time.
DEFAULT_GENESIS_NS = 1_609_459_200 * NS_PER_SECOND


class PendingBatches:
    """ExecutionCapability that holds batches until the call commits."""

    def __init__(self) -> None:
        self.batches: List[ActionBatch] = []

    def submit(self, batch: ActionBatch) -> None:
        self.batches.append(batch)


class LocalHost:
    def __init__(
        self,
        account_id: str = "multisig.test",
        *,
        store: Optional[KVStore] = None,
        ledger: Optional[InMemoryLedger] = None,
        config: Optional[MultisigConfig] = None,
        code: Optional[CodeResource] = None,
        metrics: Optional[MultisigMetrics] = None,
        now: int = DEFAULT_GENESIS_NS,
    ) -> None:
        self.config = config or get_config()

        # Basic logging if caller hasn't configured it
        if not logging.getLogger().handlers:
            logging.basicConfig(
                level=getattr(logging, self.config.log_level.upper(), logging.INFO),
                format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            )

        self.account_id = account_id
        self.store: KVStore = store if store is not None else MemoryKV()
        self.ledger = ledger if ledger is not None else InMemoryLedger()
        if not self.ledger.exists(account_id):
            self.ledger.create_account(account_id)
        self.code = code if code is not None else CodeResource.from_config(self.config)
        self.metrics = metrics if metrics is not None else get_metrics()
        self.now = now
        log.info("%s hosting %s: %s", build_label(), account_id, summary(self.config))

    # ------------------------------ clock -----------------------------------

    def advance(self, ns: int = 0, *, seconds: int = 0) -> int:
        """Move ledger time forward; returns the new timestamp."""
        delta = ns + seconds * NS_PER_SECOND
        if delta < 0:
            raise ValueError("time only moves forward")
        self.now += delta
        return self.now

    # ------------------------------ context ---------------------------------

    def context(
        self,
        signer_pk: Any,
        *,
        signer_account_id: Optional[str] = None,
        predecessor_account_id: Optional[str] = None,
    ) -> CallContext:
        """
        Context for a call signed by `signer_pk`. By default the key belongs to
        the multisig account and the call is made directly.
        """
        signer = signer_account_id or self.account_id
        return CallContext(
            signer_account_id=signer,
            signer_public_key=to_bytes(signer_pk),
            predecessor_account_id=predecessor_account_id or signer,
            current_account_id=self.account_id,
            block_timestamp=self.now,
        )

    # ------------------------------ calls -----------------------------------

    def _contract(self, store: KVStore, pending: PendingBatches) -> MultisigContract:
        return MultisigContract(
            store, pending, config=self.config, code=self.code, metrics=self.metrics
        )

    def _run(self, label: str, fn: Callable[[KVStore, PendingBatches], T]) -> T:
        journal = JournaledKV(self.store)
        journal.begin()
        pending = PendingBatches()
        try:
            result = fn(journal, pending)
        except Exception as e:
            journal.revert()
            if isinstance(e, MultisigError):
                self.metrics.call_rejected(e.code)
                log.warning("%s aborted: %s", label, e)
            else:
                log.error("%s aborted: %r", label, e)
            raise
        journal.commit()
        for batch in pending.batches:
            self._apply(batch)
        return result

    def _apply(self, batch: ActionBatch) -> BatchOutcome:
        outcome = self.ledger.apply(self.account_id, batch)
        self.metrics.batch("applied" if outcome.ok else "failed")
        if not outcome.ok:
            log.warning(
                "batch to %s rejected by ledger after commit: %s", batch.receiver_id, outcome.error
            )
        return outcome

    def init(self, num_confirmations: int) -> None:
        self._run(
            "init",
            lambda store, pending: MultisigContract.init(
                store,
                num_confirmations,
                pending,
                config=self.config,
                code=self.code,
                metrics=self.metrics,
            ),
        )

    def call(
        self,
        method: str,
        *args: Any,
        signer_pk: Any,
        signer_account_id: Optional[str] = None,
        predecessor_account_id: Optional[str] = None,
    ) -> Any:
        """
        Invoke a mutating contract method as `signer_pk`. Raises the
        contract's MultisigError when the call aborts.
        """
        if method not in MUTATING_METHODS:
            raise ValueError(f"not a callable contract method: {method!r}")
        ctx = self.context(
            signer_pk,
            signer_account_id=signer_account_id,
            predecessor_account_id=predecessor_account_id,
        )
        return self._run(
            method,
            lambda store, pending: getattr(self._contract(store, pending), method)(ctx, *args),
        )

    def view(self, method: str, *args: Any) -> Any:
        """Invoke a read-only contract method against committed state."""
        if method not in VIEW_METHODS:
            raise ValueError(f"not a view method: {method!r}")
        return getattr(self._contract(self.store, PendingBatches()), method)(*args)


__all__ = ["LocalHost", "PendingBatches", "MUTATING_METHODS", "VIEW_METHODS"]
