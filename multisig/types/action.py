"""
multisig.types.action — the action variants a request can carry.

Each action kind is its own frozen dataclass holding only the parameters that
kind uses. `ActionKind` is the tag; the executor dispatches on it with an
exhaustive handler table.

Wire form (canonical CBOR / JSON-friendly dict):

    {"kind": "transfer", "amount": 5}
    {"kind": "add_key", "public_key": b"...", "allowance": None,
     "receiver_id": "app.near", "method_names": ["vote"]}

Older clients send the positional integer tag of the v0 wire enum instead of
the string kind; `ActionKind.from_tag` resolves those through
`LEGACY_TAGS`, never by list position.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Type, Union

U32_MAX = (1 << 32) - 1
U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1


class ActionKind(str, Enum):
    TRANSFER = "transfer"
    CREATE_ACCOUNT = "create_account"
    DEPLOY_CONTRACT = "deploy_contract"
    ADD_KEY = "add_key"
    DELETE_KEY = "delete_key"
    FUNCTION_CALL = "function_call"
    SET_NUM_CONFIRMATIONS = "set_num_confirmations"
    SET_ACTIVE_REQUESTS_LIMIT = "set_active_requests_limit"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_tag(cls, tag: Union[str, int, "ActionKind"]) -> "ActionKind":
        """
        Resolve a kind from its string value, enum name or legacy integer tag.

        Raises:
            ValueError for unknown tags.
        """
        if isinstance(tag, ActionKind):
            return tag
        if isinstance(tag, bool):
            raise ValueError(f"invalid action tag: {tag!r}")
        if isinstance(tag, int):
            try:
                return LEGACY_TAGS[tag]
            except KeyError:
                raise ValueError(f"unknown legacy action tag: {tag}") from None
        s = str(tag).strip()
        for k in cls:
            if s == k.value or s.upper() == k.name:
                return k
        raise ValueError(f"unknown action kind: {tag!r}")


# Positional tags of the v0 wire enum, pinned explicitly.
LEGACY_TAGS: Dict[int, ActionKind] = {
    0: ActionKind.TRANSFER,
    1: ActionKind.CREATE_ACCOUNT,
    2: ActionKind.DEPLOY_CONTRACT,
    3: ActionKind.ADD_KEY,
    4: ActionKind.DELETE_KEY,
    5: ActionKind.FUNCTION_CALL,
    6: ActionKind.SET_NUM_CONFIRMATIONS,
    7: ActionKind.SET_ACTIVE_REQUESTS_LIMIT,
}

# Actions whose target must be the contract's own account.
SELF_TARGET_KINDS = frozenset(
    {
        ActionKind.DELETE_KEY,
        ActionKind.SET_NUM_CONFIRMATIONS,
        ActionKind.SET_ACTIVE_REQUESTS_LIMIT,
    }
)

# Actions that must be the only action in their request.
SOLE_EFFECT_KINDS = frozenset(
    {ActionKind.SET_NUM_CONFIRMATIONS, ActionKind.SET_ACTIVE_REQUESTS_LIMIT}
)


# ----------------------------- coercion ------------------------------------


def _uint(name: str, v: Any, bound: int) -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise TypeError(f"{name} must be int, got {type(v).__name__}")
    if v < 0 or v > bound:
        raise ValueError(f"{name} out of range: {v}")
    return v


def _key_bytes(name: str, v: Any) -> bytes:
    if v is None:
        return b""
    if isinstance(v, (bytes, bytearray, memoryview)):
        return bytes(v)
    raise TypeError(f"{name} must be bytes, got {type(v).__name__}")


# ----------------------------- variants ------------------------------------


@dataclass(frozen=True)
class Action:
    """Base class for all action variants."""

    kind: ClassVar[ActionKind]

    def params(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"kind": self.kind.value}
        d.update(self.params())
        return d


@dataclass(frozen=True)
class Transfer(Action):
    kind: ClassVar[ActionKind] = ActionKind.TRANSFER
    amount: int = 0

    def __post_init__(self) -> None:
        _uint("amount", self.amount, U128_MAX)

    def params(self) -> Dict[str, Any]:
        return {"amount": self.amount}


@dataclass(frozen=True)
class CreateAccount(Action):
    kind: ClassVar[ActionKind] = ActionKind.CREATE_ACCOUNT


@dataclass(frozen=True)
class DeployContract(Action):
    """Redeploys the contract code configured on the host (self-upgrade)."""

    kind: ClassVar[ActionKind] = ActionKind.DEPLOY_CONTRACT


@dataclass(frozen=True)
class AddKey(Action):
    """
    Add an access key to the target account.

    With `method_names` and `receiver_id` both set the key is scoped to
    those methods on that receiver; otherwise it is a full-access key.
    `allowance=None` means the default allowance (0, i.e. unlimited).
    """

    kind: ClassVar[ActionKind] = ActionKind.ADD_KEY
    public_key: bytes = b""
    allowance: Optional[int] = None
    receiver_id: Optional[str] = None
    method_names: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "public_key", _key_bytes("public_key", self.public_key))
        if self.allowance is not None:
            _uint("allowance", self.allowance, U128_MAX)
        object.__setattr__(
            self, "method_names", tuple(m for m in self.method_names if m)
        )

    @property
    def is_scoped(self) -> bool:
        return bool(self.method_names) and bool(self.receiver_id)

    def params(self) -> Dict[str, Any]:
        return {
            "public_key": self.public_key,
            "allowance": self.allowance,
            "receiver_id": self.receiver_id,
            "method_names": list(self.method_names),
        }


@dataclass(frozen=True)
class DeleteKey(Action):
    kind: ClassVar[ActionKind] = ActionKind.DELETE_KEY
    public_key: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "public_key", _key_bytes("public_key", self.public_key))

    def params(self) -> Dict[str, Any]:
        return {"public_key": self.public_key}


@dataclass(frozen=True)
class FunctionCall(Action):
    kind: ClassVar[ActionKind] = ActionKind.FUNCTION_CALL
    method_name: str = ""
    args: bytes = b""
    deposit: int = 0
    gas: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", _key_bytes("args", self.args))
        _uint("deposit", self.deposit, U128_MAX)
        _uint("gas", self.gas, U64_MAX)

    def params(self) -> Dict[str, Any]:
        return {
            "method_name": self.method_name,
            "args": self.args,
            "deposit": self.deposit,
            "gas": self.gas,
        }


@dataclass(frozen=True)
class SetNumConfirmations(Action):
    kind: ClassVar[ActionKind] = ActionKind.SET_NUM_CONFIRMATIONS
    num_confirmations: int = 0

    def __post_init__(self) -> None:
        _uint("num_confirmations", self.num_confirmations, U32_MAX)

    def params(self) -> Dict[str, Any]:
        return {"num_confirmations": self.num_confirmations}


@dataclass(frozen=True)
class SetActiveRequestsLimit(Action):
    kind: ClassVar[ActionKind] = ActionKind.SET_ACTIVE_REQUESTS_LIMIT
    active_requests_limit: int = 0

    def __post_init__(self) -> None:
        _uint("active_requests_limit", self.active_requests_limit, U32_MAX)

    def params(self) -> Dict[str, Any]:
        return {"active_requests_limit": self.active_requests_limit}


ACTION_TYPES: Dict[ActionKind, Type[Action]] = {
    ActionKind.TRANSFER: Transfer,
    ActionKind.CREATE_ACCOUNT: CreateAccount,
    ActionKind.DEPLOY_CONTRACT: DeployContract,
    ActionKind.ADD_KEY: AddKey,
    ActionKind.DELETE_KEY: DeleteKey,
    ActionKind.FUNCTION_CALL: FunctionCall,
    ActionKind.SET_NUM_CONFIRMATIONS: SetNumConfirmations,
    ActionKind.SET_ACTIVE_REQUESTS_LIMIT: SetActiveRequestsLimit,
}


def action_from_dict(d: Mapping[str, Any]) -> Action:
    """
    Build an action from its wire dict. Unknown parameter names are rejected.
    """
    if "kind" not in d:
        raise ValueError("action is missing 'kind'")
    kind = ActionKind.from_tag(d["kind"])
    cls = ACTION_TYPES[kind]
    params = {k: v for k, v in d.items() if k != "kind"}
    if "method_names" in params and params["method_names"] is not None:
        params["method_names"] = tuple(params["method_names"])
    try:
        return cls(**params)
    except TypeError as e:
        raise ValueError(f"bad parameters for {kind.value}: {e}") from e


__all__ = [
    "ActionKind",
    "LEGACY_TAGS",
    "SELF_TARGET_KINDS",
    "SOLE_EFFECT_KINDS",
    "Action",
    "Transfer",
    "CreateAccount",
    "DeployContract",
    "AddKey",
    "DeleteKey",
    "FunctionCall",
    "SetNumConfirmations",
    "SetActiveRequestsLimit",
    "ACTION_TYPES",
    "action_from_dict",
]
