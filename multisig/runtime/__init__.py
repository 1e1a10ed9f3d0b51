"""
multisig.runtime — the components the contract wires together:
rate limiting, confirmation tracking, cooldown, the request store and the
action executor.
"""

from .batch import ActionBatch, BatchOp, ExecutionCapability
from .code import CodeResource, CodeResourceError
from .confirmations import ConfirmationTracker
from .cooldown import CooldownGuard
from .executor import ActionExecutor
from .rate_limit import RateLimiter
from .requests import RequestStore

__all__ = [
    "ActionBatch",
    "BatchOp",
    "ExecutionCapability",
    "CodeResource",
    "CodeResourceError",
    "ConfirmationTracker",
    "CooldownGuard",
    "ActionExecutor",
    "RateLimiter",
    "RequestStore",
]
