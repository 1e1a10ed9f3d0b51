"""
multisig.types.context — per-call identity and clock delivered by the host.

The host authenticates the calling key before the contract runs; the contract
only sees the outcome as a `CallContext`. It contains pure data and performs
strict validation.

Fields mirror the ledger's call metadata:
  - signer_account_id:      account whose key signed the transaction
  - signer_public_key:      the key that signed it (raw bytes)
  - predecessor_account_id: account that made this particular call (differs
                            from the signer when the call is relayed by
                            another contract)
  - current_account_id:     the multisig account itself
  - block_timestamp:        ledger timestamp in nanoseconds
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Union


class ContextError(Exception):
    """Validation or coercion failure for CallContext."""


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_bytes(value: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """
    Coerce `value` to bytes.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise ContextError(f"hex string must have even length, got {len(h)}")
        try:
            return bytes.fromhex(h)
        except ValueError as e:
            raise ContextError(f"invalid hex string: {value!r}") from e
    raise ContextError(f"cannot convert type {type(value).__name__} to bytes")


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


def _require_account(name: str, v: Any) -> str:
    if not isinstance(v, str) or not v:
        raise ContextError(f"{name} must be a non-empty account id")
    return v


@dataclass(frozen=True)
class CallContext:
    signer_account_id: str
    signer_public_key: bytes
    predecessor_account_id: str
    current_account_id: str
    block_timestamp: int

    def __post_init__(self) -> None:
        _require_account("signer_account_id", self.signer_account_id)
        _require_account("predecessor_account_id", self.predecessor_account_id)
        _require_account("current_account_id", self.current_account_id)
        pk = to_bytes(self.signer_public_key)
        if not pk:
            raise ContextError("signer_public_key must be non-empty")
        object.__setattr__(self, "signer_public_key", pk)
        ts = self.block_timestamp
        if isinstance(ts, bool) or not isinstance(ts, int):
            raise ContextError(f"block_timestamp must be int, got {type(ts).__name__}")
        if ts < 0:
            raise ContextError(f"block_timestamp must be non-negative, got {ts}")

    @property
    def is_direct(self) -> bool:
        """True when the signer made this call itself (no relaying contract)."""
        return self.signer_account_id == self.predecessor_account_id

    @property
    def is_self_call(self) -> bool:
        """True when the multisig account is calling itself."""
        return self.predecessor_account_id == self.current_account_id

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "CallContext":
        return cls(
            signer_account_id=d.get("signer_account_id", ""),
            signer_public_key=to_bytes(d.get("signer_public_key", b"")),
            predecessor_account_id=d.get("predecessor_account_id", ""),
            current_account_id=d.get("current_account_id", ""),
            block_timestamp=d.get("block_timestamp", 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["signer_public_key"] = to_hex(self.signer_public_key)
        return d


__all__ = ["ContextError", "CallContext", "to_bytes", "to_hex"]
