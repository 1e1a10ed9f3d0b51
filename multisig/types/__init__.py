"""
multisig.types — plain data carried through the engine: actions, requests,
envelopes and the per-call context.
"""

from .action import (
    ACTION_TYPES,
    LEGACY_TAGS,
    SELF_TARGET_KINDS,
    SOLE_EFFECT_KINDS,
    Action,
    ActionKind,
    AddKey,
    CreateAccount,
    DeleteKey,
    DeployContract,
    FunctionCall,
    SetActiveRequestsLimit,
    SetNumConfirmations,
    Transfer,
    action_from_dict,
)
from .context import CallContext, ContextError
from .request import Request, RequestEnvelope

__all__ = [
    "ACTION_TYPES",
    "LEGACY_TAGS",
    "SELF_TARGET_KINDS",
    "SOLE_EFFECT_KINDS",
    "Action",
    "ActionKind",
    "AddKey",
    "CreateAccount",
    "DeleteKey",
    "DeployContract",
    "FunctionCall",
    "SetActiveRequestsLimit",
    "SetNumConfirmations",
    "Transfer",
    "action_from_dict",
    "CallContext",
    "ContextError",
    "Request",
    "RequestEnvelope",
]
