"""
multisig.state.layout — storage key layout (never change once deployed).

Scalars live under fixed keys; collections live under short prefixes so they
never collide in the flat key space.

    init                         -> b"\\x01" once init() ran
    n                            -> u32   confirmation threshold k
    nonce                        -> u32   next request id
    limit                        -> u32   active requests per key
    r: + u32(id)                 -> CBOR  RequestEnvelope
    c: + u32(id)                 -> CBOR  sorted list of confirming keys
    k: + pk                      -> u32   outstanding requests for pk
    i: + u16(len(pk)) + pk + u32(id) -> b"\\x01"  signer index

Request ids are fixed-width big-endian so prefix iteration returns them in
ascending order. Public keys inside composite keys are length-prefixed, so
one key can never be a prefix of another key's entries.
"""

from __future__ import annotations

K_INIT = b"init"
K_NUM_CONFIRMATIONS = b"n"
K_REQUEST_NONCE = b"nonce"
K_ACTIVE_REQUESTS_LIMIT = b"limit"

P_REQUESTS = b"r:"
P_CONFIRMATIONS = b"c:"
P_NUM_REQUESTS_PK = b"k:"
P_SIGNER_INDEX = b"i:"

U32_MAX = (1 << 32) - 1


def u32(x: int) -> bytes:
    if not 0 <= x <= U32_MAX:
        raise ValueError(f"u32 out of range: {x}")
    return x.to_bytes(4, "big")


def read_u32(b: bytes) -> int:
    if len(b) != 4:
        raise ValueError(f"u32 must be 4 bytes, got {len(b)}")
    return int.from_bytes(b, "big")


def confirmations_key(request_id: int) -> bytes:
    return P_CONFIRMATIONS + u32(request_id)


def signer_prefix(pk: bytes) -> bytes:
    if len(pk) > 0xFFFF:
        raise ValueError("public key too long")
    return P_SIGNER_INDEX + len(pk).to_bytes(2, "big") + pk


def signer_index_key(pk: bytes, request_id: int) -> bytes:
    return signer_prefix(pk) + u32(request_id)


__all__ = [
    "K_INIT",
    "K_NUM_CONFIRMATIONS",
    "K_REQUEST_NONCE",
    "K_ACTIVE_REQUESTS_LIMIT",
    "P_REQUESTS",
    "P_CONFIRMATIONS",
    "P_NUM_REQUESTS_PK",
    "P_SIGNER_INDEX",
    "u32",
    "read_u32",
    "confirmations_key",
    "signer_prefix",
    "signer_index_key",
]
