"""
multisig.runtime.executor — turn an approved request into native operations.

Semantics (high level)
----------------------
- Preflight: every *armed* self-target action (DeleteKey, SetNumConfirmations,
  SetActiveRequestsLimit) must target the contract's own account
  (AuthorizationMismatch), and every armed sole-effect action
  (SetNumConfirmations, SetActiveRequestsLimit) must be the only action in
  its request (InvalidBundling). Both raise before any effect.
- Actions then run in order. An action whose value precondition does not
  hold (zero amount, missing key, ...) is skipped silently; the rest still
  run.
- Sole-effect actions update contract state and end execution.
- Ledger-facing actions append to one `ActionBatch` for the request's
  target, submitted once at the end if it is non-empty.

Nothing here is atomic with the downstream ledger. By the time the batch
runs, the request is already gone from the store; a failing batch does not
bring it back.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, cast

from ..errors import AuthorizationMismatch, InvalidBundling
from ..metrics import MultisigMetrics
from ..types.action import (
    SELF_TARGET_KINDS,
    SOLE_EFFECT_KINDS,
    Action,
    ActionKind,
    AddKey,
    DeleteKey,
    FunctionCall,
    SetActiveRequestsLimit,
    SetNumConfirmations,
    Transfer,
)
from ..types.context import to_hex
from ..types.request import Request
from .batch import ActionBatch, ExecutionCapability
from .code import CodeResource, CodeResourceError
from .requests import RequestStore

log = logging.getLogger(__name__)

# Default allowance for scoped access keys (0 means unlimited on the ledger).
DEFAULT_ALLOWANCE = 0

# Handler return value: True ends execution of the request.
_Handler = Callable[[Action, ActionBatch], bool]


def is_armed(action: Action) -> bool:
    """Value precondition of an action; unarmed actions are skipped."""
    if isinstance(action, Transfer):
        return action.amount > 0
    if isinstance(action, (AddKey, DeleteKey)):
        return bool(action.public_key)
    if isinstance(action, FunctionCall):
        return bool(action.method_name) and bool(action.args) and action.deposit != 0 and action.gas != 0
    if isinstance(action, SetNumConfirmations):
        return action.num_confirmations != 0
    if isinstance(action, SetActiveRequestsLimit):
        return action.active_requests_limit != 0
    return True


class ActionExecutor:
    def __init__(
        self,
        requests: RequestStore,
        capability: ExecutionCapability,
        *,
        code: Optional[CodeResource] = None,
        metrics: Optional[MultisigMetrics] = None,
    ) -> None:
        self._requests = requests
        self._capability = capability
        self._code = code
        self._metrics = metrics
        self._handlers: Dict[ActionKind, _Handler] = {
            ActionKind.TRANSFER: self._transfer,
            ActionKind.CREATE_ACCOUNT: self._create_account,
            ActionKind.DEPLOY_CONTRACT: self._deploy_contract,
            ActionKind.ADD_KEY: self._add_key,
            ActionKind.DELETE_KEY: self._delete_key,
            ActionKind.FUNCTION_CALL: self._function_call,
            ActionKind.SET_NUM_CONFIRMATIONS: self._set_num_confirmations,
            ActionKind.SET_ACTIVE_REQUESTS_LIMIT: self._set_active_requests_limit,
        }
        missing = set(ActionKind) - set(self._handlers)
        if missing:
            raise RuntimeError(f"no handler for action kinds: {sorted(k.value for k in missing)}")

    # ------------------------------ entry -----------------------------------

    def preflight(self, request: Request, current_account_id: str) -> None:
        n = len(request.actions)
        for action in request.actions:
            if not is_armed(action):
                continue
            if action.kind in SELF_TARGET_KINDS and request.receiver_id != current_account_id:
                raise AuthorizationMismatch(
                    "This method only works when receiver_id is equal to the contract account",
                    expected=current_account_id,
                    got=request.receiver_id,
                )
            if action.kind in SOLE_EFFECT_KINDS and n != 1:
                raise InvalidBundling(kind=action.kind.value, num_actions=n)

    def execute(self, request: Request, current_account_id: str) -> bool:
        self.preflight(request, current_account_id)
        batch = ActionBatch(request.receiver_id)
        for index, action in enumerate(request.actions):
            if not is_armed(action):
                log.debug("skipping action %d (%s): precondition not met", index, action.kind)
                continue
            if self._handlers[action.kind](action, batch):
                break
        if batch.ops:
            self._capability.submit(batch)
            if self._metrics is not None:
                self._metrics.batch("submitted")
            log.info("submitted batch to %s: %s", batch.receiver_id, ",".join(batch.kinds))
        return True

    # ------------------------------ handlers --------------------------------

    def _transfer(self, action: Action, batch: ActionBatch) -> bool:
        a = cast(Transfer, action)
        batch.transfer(a.amount)
        return False

    def _create_account(self, action: Action, batch: ActionBatch) -> bool:
        batch.create_account()
        return False

    def _deploy_contract(self, action: Action, batch: ActionBatch) -> bool:
        if self._code is None:
            raise CodeResourceError("no contract code configured for DeployContract")
        batch.deploy_contract(self._code.load())
        return False

    def _add_key(self, action: Action, batch: ActionBatch) -> bool:
        a = cast(AddKey, action)
        if a.is_scoped:
            batch.add_access_key(
                a.public_key,
                a.allowance if a.allowance is not None else DEFAULT_ALLOWANCE,
                a.receiver_id or "",
                a.method_names,
            )
        else:
            batch.add_full_access_key(a.public_key)
        return False

    def _delete_key(self, action: Action, batch: ActionBatch) -> bool:
        a = cast(DeleteKey, action)
        removed = self._requests.remove_by_signer(a.public_key)
        if self._metrics is not None:
            self._metrics.request_removed("revoked", len(removed))
        batch.delete_key(a.public_key)
        log.info("deleting key %s", to_hex(a.public_key))
        return False

    def _function_call(self, action: Action, batch: ActionBatch) -> bool:
        a = cast(FunctionCall, action)
        batch.function_call(a.method_name, a.args, a.deposit, a.gas)
        return False

    def _set_num_confirmations(self, action: Action, batch: ActionBatch) -> bool:
        a = cast(SetNumConfirmations, action)
        self._requests.confirmations.set_threshold(a.num_confirmations)
        log.info("confirmation threshold set to %d", a.num_confirmations)
        return True

    def _set_active_requests_limit(self, action: Action, batch: ActionBatch) -> bool:
        a = cast(SetActiveRequestsLimit, action)
        self._requests.rate_limiter.set_limit(a.active_requests_limit)
        log.info("active requests limit set to %d", a.active_requests_limit)
        return True


__all__ = ["ActionExecutor", "DEFAULT_ALLOWANCE", "is_armed"]
