"""
multisig.state.collections — typed views over the flat key/value store.

These wrappers own key encoding and value (de)serialization so that runtime
components deal in ints, bytes and decoded records only:

- `U32Cell`:   one scalar under a fixed key
- `RecordMap`: key -> canonical-CBOR record under a prefix
- `CounterMap`: key -> u32 under a prefix (missing means 0)
- `IdMultiMap`: key -> set of request ids, one store entry per member

None of them caches anything; every read goes to the store, so they are safe
to rebuild per call over a journaled store.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, List, Optional, TypeVar

from .. import encoding
from .kv import KVStore
from .layout import read_u32, signer_index_key, signer_prefix, u32

K = TypeVar("K")

_PRESENT = b"\x01"


class U32Cell:
    def __init__(self, store: KVStore, key: bytes, default: int = 0) -> None:
        self._store = store
        self._key = key
        self._default = default

    def get(self) -> int:
        v = self._store.get(self._key)
        return read_u32(v) if v is not None else self._default

    def set(self, value: int) -> None:
        self._store.set(self._key, u32(value))

    def is_set(self) -> bool:
        return self._store.contains(self._key)


class RecordMap(Generic[K]):
    """
    Prefix-scoped map with CBOR values.

    `encode_key` turns a logical key into the suffix after `prefix`;
    `decode_key` reverses it for `keys()`.
    """

    def __init__(
        self,
        store: KVStore,
        prefix: bytes,
        encode_key: Callable[[K], bytes],
        decode_key: Callable[[bytes], K],
    ) -> None:
        self._store = store
        self._prefix = prefix
        self._enc = encode_key
        self._dec = decode_key

    def _k(self, key: K) -> bytes:
        return self._prefix + self._enc(key)

    def get(self, key: K) -> Optional[Any]:
        raw = self._store.get(self._k(key))
        return encoding.loads(raw) if raw is not None else None

    def set(self, key: K, value: Any) -> None:
        self._store.set(self._k(key), encoding.dumps_canonical(value))

    def delete(self, key: K) -> bool:
        return self._store.delete(self._k(key))

    def contains(self, key: K) -> bool:
        return self._store.contains(self._k(key))

    def keys(self) -> List[K]:
        n = len(self._prefix)
        return [self._dec(k[n:]) for k, _ in list(self._store.iter_prefix(self._prefix))]


class CounterMap:
    """bytes key -> u32; absent entries read as 0."""

    def __init__(self, store: KVStore, prefix: bytes) -> None:
        self._store = store
        self._prefix = prefix

    def get(self, key: bytes) -> int:
        v = self._store.get(self._prefix + key)
        return read_u32(v) if v is not None else 0

    def set(self, key: bytes, value: int) -> None:
        self._store.set(self._prefix + key, u32(value))

    def delete(self, key: bytes) -> bool:
        return self._store.delete(self._prefix + key)


class IdMultiMap:
    """
    bytes key -> set of u32 ids.

    Each (key, id) pair is its own store entry, so adding and removing one
    member touches exactly one key, and listing a key's members is a single
    prefix scan.
    """

    def __init__(self, store: KVStore) -> None:
        self._store = store

    def add(self, key: bytes, member: int) -> None:
        self._store.set(signer_index_key(key, member), _PRESENT)

    def remove(self, key: bytes, member: int) -> bool:
        return self._store.delete(signer_index_key(key, member))

    def contains(self, key: bytes, member: int) -> bool:
        return self._store.contains(signer_index_key(key, member))

    def members(self, key: bytes) -> List[int]:
        p = signer_prefix(key)
        n = len(p)
        return [read_u32(k[n:]) for k, _ in list(self._store.iter_prefix(p))]


__all__ = ["U32Cell", "RecordMap", "CounterMap", "IdMultiMap"]
