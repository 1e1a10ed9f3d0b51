"""
multisig.runtime.batch — native operation batches and the execution capability.

An approved request becomes one `ActionBatch`: a target account plus native
operations in call order. The batch is handed to the host's
`ExecutionCapability`, which is fire-and-forget from the contract's point of
view: no result is observed within the same call.

Operation kinds and their params:

    transfer            {"amount"}
    create_account      {}
    deploy_contract     {"code"}
    add_access_key      {"public_key", "allowance", "receiver_id", "method_names"}
    add_full_access_key {"public_key"}
    delete_key          {"public_key"}
    function_call       {"method_name", "args", "deposit", "gas"}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol, Sequence, Tuple


@dataclass(frozen=True)
class BatchOp:
    kind: str
    params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "params": dict(self.params)}


@dataclass
class ActionBatch:
    receiver_id: str
    ops: List[BatchOp] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.ops)

    @property
    def kinds(self) -> Tuple[str, ...]:
        return tuple(op.kind for op in self.ops)

    def _push(self, kind: str, **params: Any) -> "ActionBatch":
        self.ops.append(BatchOp(kind, params))
        return self

    def transfer(self, amount: int) -> "ActionBatch":
        return self._push("transfer", amount=amount)

    def create_account(self) -> "ActionBatch":
        return self._push("create_account")

    def deploy_contract(self, code: bytes) -> "ActionBatch":
        return self._push("deploy_contract", code=code)

    def add_access_key(
        self, public_key: bytes, allowance: int, receiver_id: str, method_names: Sequence[str]
    ) -> "ActionBatch":
        return self._push(
            "add_access_key",
            public_key=public_key,
            allowance=allowance,
            receiver_id=receiver_id,
            method_names=tuple(method_names),
        )

    def add_full_access_key(self, public_key: bytes) -> "ActionBatch":
        return self._push("add_full_access_key", public_key=public_key)

    def delete_key(self, public_key: bytes) -> "ActionBatch":
        return self._push("delete_key", public_key=public_key)

    def function_call(self, method_name: str, args: bytes, deposit: int, gas: int) -> "ActionBatch":
        return self._push(
            "function_call", method_name=method_name, args=args, deposit=deposit, gas=gas
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"receiver_id": self.receiver_id, "ops": [op.to_dict() for op in self.ops]}


class ExecutionCapability(Protocol):
    """Accepts batches of native operations; never reports back synchronously."""

    def submit(self, batch: ActionBatch) -> None: ...


__all__ = ["BatchOp", "ActionBatch", "ExecutionCapability"]
