"""
multisig.state.kv — the flat key/value substrate the contract persists into.

The contract never talks to a storage engine directly. It is handed an object
satisfying `KVStore`: bytes-in / bytes-out get/set/delete/contains plus
ordered prefix iteration. `MemoryKV` is the deterministic in-memory backend
used by the local host and the tests; a DB-backed store only has to provide
the same five methods.

Design goals
------------
- Pure Python, no I/O; deterministic semantics.
- Canonicalization: all inputs are copied to immutable `bytes`.
- Prefix iteration yields keys in lexicographic order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, MutableMapping, Optional, Protocol, Tuple, Union


def as_bytes(x: Union[bytes, bytearray, memoryview], *, name: str) -> bytes:
    if not isinstance(x, (bytes, bytearray, memoryview)):
        raise TypeError(f"{name} must be bytes-like")
    return bytes(x)


class KVStore(Protocol):
    """Minimal store API the contract relies on."""

    def get(self, key: bytes) -> Optional[bytes]: ...
    def set(self, key: bytes, value: bytes) -> None: ...
    def delete(self, key: bytes) -> bool: ...
    def contains(self, key: bytes) -> bool: ...
    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]: ...


@dataclass
class MemoryKV:
    """
    Dict-backed KVStore.

    Parameters
    ----------
    backend :
        Optional external mapping to store state. If not provided, an internal
        dict is used.
    """
    backend: Optional[MutableMapping[bytes, bytes]] = None

    _store: MutableMapping[bytes, bytes] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._store = self.backend if self.backend is not None else {}

    # ------------------------------ core ops --------------------------------

    def get(self, key: bytes) -> Optional[bytes]:
        return self._store.get(as_bytes(key, name="key"))

    def contains(self, key: bytes) -> bool:
        return as_bytes(key, name="key") in self._store

    def set(self, key: bytes, value: bytes) -> None:
        self._store[as_bytes(key, name="key")] = as_bytes(value, name="value")

    def delete(self, key: bytes) -> bool:
        """Returns True if a key existed and was removed."""
        return self._store.pop(as_bytes(key, name="key"), None) is not None

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        """Iterate (key, value) pairs under `prefix`, lexicographic by key."""
        p = as_bytes(prefix, name="prefix")
        items = sorted((k, v) for k, v in self._store.items() if k.startswith(p))
        yield from items

    # ------------------------------ diagnostics -----------------------------

    def __len__(self) -> int:
        return len(self._store)

    def snapshot(self) -> Dict[bytes, bytes]:
        """Copy of the full key space (tests and debugging)."""
        return dict(self._store)


__all__ = ["KVStore", "MemoryKV", "as_bytes"]
