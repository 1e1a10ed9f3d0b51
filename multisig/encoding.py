"""
multisig.encoding — canonical CBOR for persisted records.

Requests, envelopes and confirmation sets are stored as canonical CBOR so that
the same logical state always produces the same bytes in the key/value store.

Canonical ordering
------------------
cbor2's canonical mode sorts map keys by their encoded form (RFC 8949
§4.2.1). We additionally normalize the object graph before encoding:

  - dataclasses → dict (via `to_dict()` when the class provides one)
  - tuples → lists
  - sets/frozensets → sorted lists (members must be mutually comparable)

Public API
----------
- dumps_canonical(obj) -> bytes
- loads(data) -> Any
"""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any

import cbor2

from .errors import InternalInconsistency


def _canon_obj(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        to_dict = getattr(obj, "to_dict", None)
        obj = to_dict() if callable(to_dict) else asdict(obj)

    if isinstance(obj, dict):
        return {k: _canon_obj(v) for k, v in obj.items()}

    if isinstance(obj, (set, frozenset)):
        return [_canon_obj(x) for x in sorted(obj)]

    if isinstance(obj, (list, tuple)):
        return [_canon_obj(x) for x in obj]

    return obj


def dumps_canonical(obj: Any) -> bytes:
    """Deterministic CBOR encoding of `obj`."""
    return cbor2.dumps(_canon_obj(obj), canonical=True)


def loads(data: bytes) -> Any:
    """
    Decode a stored record.

    Raises:
        InternalInconsistency if the bytes are not valid CBOR; a record we wrote
        ourselves failing to decode means the store was corrupted.
    """
    try:
        return cbor2.loads(data)
    except (cbor2.CBORDecodeError, ValueError) as e:
        raise InternalInconsistency(
            "Internal error: undecodable record", data={"error": str(e)}
        ) from e


__all__ = ["dumps_canonical", "loads"]
