"""
multisig.state.journal — journaled writes over a KVStore, commit/revert.

The contract core never undoes its own writes: when a call aborts, the host
throws away everything that call wrote. `JournaledKV` is how the local host
provides that guarantee. It layers overlays over a base `KVStore`; writes go
to the top overlay, reads consult overlays from top to base. `commit()` merges
the top overlay into its parent (or the base), `revert()` discards it.

Intended usage
--------------
    j = JournaledKV(base)
    j.begin()
    j.set(b"k", b"v")
    j.commit()          # or j.revert()

`JournaledKV` satisfies the `KVStore` protocol itself, so it can be handed to
the contract directly.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple

from .kv import KVStore, as_bytes

# Overlay value of None marks a deletion.
_Overlay = Dict[bytes, Optional[bytes]]


class JournaledKV:
    """
    A copy-on-write write journal with nested checkpoints.

    API highlights
    --------------
    - begin() / commit() / revert() / depth()
    - get() / set() / delete() / contains() / iter_prefix()
    """

    def __init__(self, base: KVStore) -> None:
        self._base = base
        self._layers: List[_Overlay] = []

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def depth(self) -> int:
        """Number of open overlays (0 means writes go straight to the base)."""
        return len(self._layers)

    def begin(self) -> int:
        """Start a new checkpoint. Returns the new depth marker."""
        self._layers.append({})
        return len(self._layers)

    def commit(self) -> None:
        """Merge the top overlay into its parent, or apply it to the base."""
        if not self._layers:
            raise RuntimeError("commit() without begin()")
        top = self._layers.pop()
        if self._layers:
            self._layers[-1].update(top)
            return
        for k in sorted(top):
            v = top[k]
            if v is None:
                self._base.delete(k)
            else:
                self._base.set(k, v)

    def revert(self) -> None:
        """Discard the top overlay."""
        if not self._layers:
            raise RuntimeError("revert() without begin()")
        self._layers.pop()

    def pending(self) -> int:
        """Number of staged keys across all overlays."""
        return len({k for layer in self._layers for k in layer})

    # --------------------------------------------------------------------- #
    # KVStore
    # --------------------------------------------------------------------- #

    def get(self, key: bytes) -> Optional[bytes]:
        k = as_bytes(key, name="key")
        for layer in reversed(self._layers):
            if k in layer:
                return layer[k]
        return self._base.get(k)

    def contains(self, key: bytes) -> bool:
        return self.get(key) is not None

    def set(self, key: bytes, value: bytes) -> None:
        k = as_bytes(key, name="key")
        v = as_bytes(value, name="value")
        if not self._layers:
            self._base.set(k, v)
            return
        self._layers[-1][k] = v

    def delete(self, key: bytes) -> bool:
        k = as_bytes(key, name="key")
        existed = self.get(k) is not None
        if not self._layers:
            return self._base.delete(k)
        self._layers[-1][k] = None
        return existed

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        """
        Iterate visible (key, value) under `prefix` with overlay precedence.
        Stable order by key. Deletions in overlays are respected.
        """
        p = as_bytes(prefix, name="prefix")
        merged: Dict[bytes, Optional[bytes]] = dict(self._base.iter_prefix(p))
        for layer in self._layers:
            for k, v in layer.items():
                if k.startswith(p):
                    merged[k] = v
        for k in sorted(merged):
            v = merged[k]
            if v is not None:
                yield k, v


__all__ = ["JournaledKV"]
