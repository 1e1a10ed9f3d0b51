"""
multisig.types.request — requests and the envelope they are stored in.

A `Request` is what callers submit: the target account and an ordered tuple
of actions. The store wraps it in a `RequestEnvelope` recording the signer key
that created it and the ledger timestamp of admission; the envelope drives
rate limiting (per-signer counts), the deletion cooldown, and the cascade that
runs when a signer key is deleted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Tuple

from .action import Action, ActionKind, action_from_dict


@dataclass(frozen=True)
class Request:
    receiver_id: str
    actions: Tuple[Action, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.receiver_id, str) or not self.receiver_id:
            raise ValueError("receiver_id must be a non-empty account id")
        acts = tuple(self.actions)
        for a in acts:
            if not isinstance(a, Action):
                raise TypeError(f"actions must be Action instances, got {type(a).__name__}")
        object.__setattr__(self, "actions", acts)

    @classmethod
    def of(cls, receiver_id: str, *actions: Action) -> "Request":
        return cls(receiver_id=receiver_id, actions=tuple(actions))

    @property
    def kinds(self) -> Tuple[ActionKind, ...]:
        return tuple(a.kind for a in self.actions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "receiver_id": self.receiver_id,
            "actions": [a.to_dict() for a in self.actions],
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Request":
        raw: Iterable[Mapping[str, Any]] = d.get("actions") or ()
        return cls(
            receiver_id=d.get("receiver_id", ""),
            actions=tuple(action_from_dict(a) for a in raw),
        )


@dataclass(frozen=True)
class RequestEnvelope:
    """
    Fields
    ------
    request:          The submitted request (immutable).
    signer_pk:        Public key of the signer that created it.
    added_timestamp:  Ledger timestamp (ns) at admission.
    """
    request: Request
    signer_pk: bytes
    added_timestamp: int

    def __post_init__(self) -> None:
        if not isinstance(self.signer_pk, (bytes, bytearray)) or not self.signer_pk:
            raise ValueError("signer_pk must be non-empty bytes")
        object.__setattr__(self, "signer_pk", bytes(self.signer_pk))
        if isinstance(self.added_timestamp, bool) or not isinstance(self.added_timestamp, int):
            raise TypeError("added_timestamp must be int")
        if self.added_timestamp < 0:
            raise ValueError("added_timestamp must be non-negative")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "request": self.request.to_dict(),
            "signer_pk": self.signer_pk,
            "added_timestamp": self.added_timestamp,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "RequestEnvelope":
        return cls(
            request=Request.from_dict(d["request"]),
            signer_pk=d["signer_pk"],
            added_timestamp=d["added_timestamp"],
        )


__all__ = ["Request", "RequestEnvelope"]
