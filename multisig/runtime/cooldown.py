"""
multisig.runtime.cooldown — minimum age before a request may be deleted.

Only voluntary deletion is gated; quorum-triggered removal never is.
"""

from __future__ import annotations

from typing import Optional

from ..errors import CooldownNotElapsed
from ..types.request import RequestEnvelope


class CooldownGuard:
    def __init__(self, cooldown_ns: int) -> None:
        if cooldown_ns < 0:
            raise ValueError("cooldown must be non-negative")
        self.cooldown_ns = cooldown_ns

    def deletable_after(self, envelope: RequestEnvelope) -> int:
        """Deletion is allowed at any timestamp strictly greater than this."""
        return envelope.added_timestamp + self.cooldown_ns

    def is_deletable(self, envelope: RequestEnvelope, now: int) -> bool:
        return now > self.deletable_after(envelope)

    def assert_deletable(self, envelope: RequestEnvelope, now: int, *, request_id: Optional[int] = None) -> None:
        if not self.is_deletable(envelope, now):
            raise CooldownNotElapsed(
                request_id=request_id, deletable_after=self.deletable_after(envelope)
            )


__all__ = ["CooldownGuard"]
