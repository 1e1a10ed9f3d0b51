"""
multisig.adapters.ledger — a small in-memory account ledger for local runs.

`InMemoryLedger` applies the native operation batches a multisig account hands
off. It models only what those operations touch: balances, access keys,
deployed code and recorded function calls.

A batch is all-or-nothing: it runs against a staged copy of the accounts and
replaces the live state only if every operation succeeds. A failing batch
leaves the ledger untouched and is reported as a `BatchOutcome` with
`ok=False`; it never raises into the caller, because by then the multisig
call that produced it has already committed.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..runtime.batch import ActionBatch, BatchOp
from ..types.context import to_hex

log = logging.getLogger(__name__)


class LedgerError(Exception):
    """An operation cannot be applied (missing account, low balance, ...)."""


@dataclass
class AccessKey:
    full_access: bool = True
    allowance: int = 0
    receiver_id: Optional[str] = None
    method_names: Tuple[str, ...] = ()


@dataclass
class LedgerAccount:
    balance: int = 0
    keys: Dict[bytes, AccessKey] = field(default_factory=dict)
    code: bytes = b""


@dataclass(frozen=True)
class FunctionCallRecord:
    predecessor_id: str
    receiver_id: str
    method_name: str
    args: bytes
    deposit: int
    gas: int


@dataclass(frozen=True)
class BatchOutcome:
    sender_id: str
    receiver_id: str
    ops: Tuple[str, ...]
    ok: bool
    error: Optional[str] = None


class InMemoryLedger:
    def __init__(self) -> None:
        self._accounts: Dict[str, LedgerAccount] = {}
        self.calls: List[FunctionCallRecord] = []
        self.outcomes: List[BatchOutcome] = []
        self._fail_next: Optional[str] = None

    # ------------------------------ setup -----------------------------------

    def create_account(
        self, account_id: str, *, balance: int = 0, full_access_keys: Iterable[bytes] = ()
    ) -> LedgerAccount:
        """Genesis-style account creation (outside any batch)."""
        if account_id in self._accounts:
            raise LedgerError(f"account already exists: {account_id}")
        acct = LedgerAccount(balance=balance)
        for pk in full_access_keys:
            acct.keys[bytes(pk)] = AccessKey()
        self._accounts[account_id] = acct
        return acct

    def fund(self, account_id: str, amount: int) -> int:
        acct = self.account(account_id)
        acct.balance += amount
        return acct.balance

    def fail_next(self, reason: str = "injected failure") -> None:
        """Make the next `apply()` fail without touching state."""
        self._fail_next = reason

    # ------------------------------ reads -----------------------------------

    def exists(self, account_id: str) -> bool:
        return account_id in self._accounts

    def account(self, account_id: str) -> LedgerAccount:
        try:
            return self._accounts[account_id]
        except KeyError:
            raise LedgerError(f"unknown account: {account_id}") from None

    def balance(self, account_id: str) -> int:
        return self.account(account_id).balance

    def keys(self, account_id: str) -> Dict[bytes, AccessKey]:
        return dict(self.account(account_id).keys)

    # ------------------------------ apply -----------------------------------

    def apply(self, sender_id: str, batch: ActionBatch) -> BatchOutcome:
        staged = copy.deepcopy(self._accounts)
        calls: List[FunctionCallRecord] = []
        try:
            if self._fail_next is not None:
                reason, self._fail_next = self._fail_next, None
                raise LedgerError(reason)
            for op in batch.ops:
                self._apply_op(staged, calls, sender_id, batch.receiver_id, op)
        except LedgerError as e:
            outcome = BatchOutcome(sender_id, batch.receiver_id, batch.kinds, ok=False, error=str(e))
            log.warning("batch %s -> %s failed: %s", sender_id, batch.receiver_id, e)
        else:
            self._accounts = staged
            self.calls.extend(calls)
            outcome = BatchOutcome(sender_id, batch.receiver_id, batch.kinds, ok=True)
            log.debug("batch %s -> %s applied: %s", sender_id, batch.receiver_id, ",".join(batch.kinds))
        self.outcomes.append(outcome)
        return outcome

    def _apply_op(
        self,
        accounts: Dict[str, LedgerAccount],
        calls: List[FunctionCallRecord],
        sender_id: str,
        receiver_id: str,
        op: BatchOp,
    ) -> None:
        p: Dict[str, Any] = op.params
        if op.kind == "create_account":
            if receiver_id in accounts:
                raise LedgerError(f"account already exists: {receiver_id}")
            accounts[receiver_id] = LedgerAccount()
            return

        receiver = accounts.get(receiver_id)
        if receiver is None:
            raise LedgerError(f"unknown account: {receiver_id}")

        if op.kind == "transfer":
            _debit(accounts, sender_id, p["amount"])
            receiver.balance += p["amount"]
        elif op.kind == "deploy_contract":
            receiver.code = bytes(p["code"])
        elif op.kind in ("add_access_key", "add_full_access_key"):
            pk = bytes(p["public_key"])
            if pk in receiver.keys:
                raise LedgerError(f"key already exists on {receiver_id}: {to_hex(pk)}")
            if op.kind == "add_full_access_key":
                receiver.keys[pk] = AccessKey()
            else:
                receiver.keys[pk] = AccessKey(
                    full_access=False,
                    allowance=p["allowance"],
                    receiver_id=p["receiver_id"],
                    method_names=tuple(p["method_names"]),
                )
        elif op.kind == "delete_key":
            pk = bytes(p["public_key"])
            if receiver.keys.pop(pk, None) is None:
                raise LedgerError(f"no such key on {receiver_id}: {to_hex(pk)}")
        elif op.kind == "function_call":
            _debit(accounts, sender_id, p["deposit"])
            receiver.balance += p["deposit"]
            calls.append(
                FunctionCallRecord(
                    predecessor_id=sender_id,
                    receiver_id=receiver_id,
                    method_name=p["method_name"],
                    args=bytes(p["args"]),
                    deposit=p["deposit"],
                    gas=p["gas"],
                )
            )
        else:
            raise LedgerError(f"unsupported operation: {op.kind}")


def _debit(accounts: Dict[str, LedgerAccount], account_id: str, amount: int) -> None:
    acct = accounts.get(account_id)
    if acct is None:
        raise LedgerError(f"unknown account: {account_id}")
    if acct.balance < amount:
        raise LedgerError(f"insufficient balance on {account_id}: {acct.balance} < {amount}")
    acct.balance -= amount


__all__ = [
    "AccessKey",
    "BatchOutcome",
    "FunctionCallRecord",
    "InMemoryLedger",
    "LedgerAccount",
    "LedgerError",
]
