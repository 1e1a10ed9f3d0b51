"""
multisig.errors — typed exceptions for the multisig engine.

Every failure of a public operation is a *typed exception*. The host aborts
the current call when one escapes, discards the call's writes and surfaces
`message` verbatim to the caller. The core never rolls anything back itself.

Hierarchy
---------
MultisigError (base)
 ├─ AlreadyInitialized     : init() on a store that already holds contract state
 ├─ NotInitialized         : any other call before init()
 ├─ RateLimitExceeded      : signer key is at its outstanding-request cap
 ├─ NotFound               : unknown (or already executed/deleted) request id
 ├─ AuthorizationMismatch  : indirect call, or a self-target action aimed elsewhere
 ├─ DuplicateConfirmation  : key already in the request's confirmation set
 ├─ CooldownNotElapsed     : voluntary deletion attempted too early
 ├─ InvalidBundling        : sole-effect action bundled with other actions
 ├─ NonceExhausted         : every u32 request id has been handed out
 └─ InternalInconsistency  : request/confirmation maps out of sync, undecodable record

Messages default to the abort strings deployed clients already
match on. Failures of the downstream ledger after a request has been handed
off are *not* errors of this package (see multisig.adapters.ledger).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class MultisigError(Exception):
    """
    Base multisig error.

    Attributes:
        message: Human-readable abort reason (surfaced verbatim).
        code:    Stable machine code string (e.g., 'NOT_FOUND').
        data:    Optional structured details (kept JSON-serializable).
    """
    message: str = "multisig error"
    code: str = "MULTISIG_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for logs/RPC errors."""
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


def _details(data: Optional[Dict[str, Any]], **extra: Any) -> Optional[Dict[str, Any]]:
    d: Dict[str, Any] = {}
    if data:
        d.update(data)
    for k, v in extra.items():
        if v is not None:
            d.setdefault(k, v)
    return d or None


class AlreadyInitialized(MultisigError):
    def __init__(self, message: str = "Already initialized", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="ALREADY_INITIALIZED", data=data)


class NotInitialized(MultisigError):
    def __init__(
        self,
        message: str = "The contract should be initialized before usage.",
        *,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="NOT_INITIALIZED", data=data)


class RateLimitExceeded(MultisigError):
    """
    The signer already has `limit` outstanding requests.

    Bounds what one compromised key can do by flooding unconfirmed requests.
    """
    def __init__(
        self,
        message: str = "Account has too many active requests. Confirm or delete some.",
        *,
        signer: Optional[str] = None,
        limit: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="RATE_LIMIT_EXCEEDED",
            data=_details(data, signer=signer, limit=limit),
        )


class NotFound(MultisigError):
    def __init__(
        self,
        message: str = "No such request: either wrong number or already confirmed",
        *,
        request_id: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="NOT_FOUND", data=_details(data, request_id=request_id))


class AuthorizationMismatch(MultisigError):
    """
    Raised for two rule violations:
      - the call was relayed (predecessor differs from signer account)
      - a self-target action names an account other than the contract's own
    """
    def __init__(
        self,
        message: str = "Predecessor account must match sender account.",
        *,
        expected: Optional[str] = None,
        got: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="AUTHORIZATION_MISMATCH",
            data=_details(data, expected=expected, got=got),
        )


class DuplicateConfirmation(MultisigError):
    def __init__(
        self,
        message: str = "Already confirmed this request with this key",
        *,
        request_id: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="DUPLICATE_CONFIRMATION",
            data=_details(data, request_id=request_id),
        )


class CooldownNotElapsed(MultisigError):
    def __init__(
        self,
        message: str = "Request cannot be deleted immediately after creation.",
        *,
        request_id: Optional[int] = None,
        deletable_after: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="COOLDOWN_NOT_ELAPSED",
            data=_details(data, request_id=request_id, deletable_after=deletable_after),
        )


class InvalidBundling(MultisigError):
    def __init__(
        self,
        message: str = "This method should be a separate request",
        *,
        kind: Optional[str] = None,
        num_actions: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="INVALID_BUNDLING",
            data=_details(data, kind=kind, num_actions=num_actions),
        )


class NonceExhausted(MultisigError):
    def __init__(
        self,
        message: str = "Request ids exhausted",
        *,
        nonce: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="NONCE_EXHAUSTED", data=_details(data, nonce=nonce))


class InternalInconsistency(MultisigError):
    """Should be unreachable; signals corrupted or desynchronized state."""
    def __init__(
        self,
        message: str = "Internal error: confirmations mismatch requests",
        *,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="INTERNAL_INCONSISTENCY", data=data)


__all__ = [
    "MultisigError",
    "AlreadyInitialized",
    "NotInitialized",
    "RateLimitExceeded",
    "NotFound",
    "AuthorizationMismatch",
    "DuplicateConfirmation",
    "CooldownNotElapsed",
    "InvalidBundling",
    "NonceExhausted",
    "InternalInconsistency",
]
