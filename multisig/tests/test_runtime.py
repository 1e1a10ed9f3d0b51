from __future__ import annotations

import pytest

from multisig.errors import (
    CooldownNotElapsed,
    DuplicateConfirmation,
    NonceExhausted,
    NotFound,
    RateLimitExceeded,
)
from multisig.runtime.confirmations import ConfirmationTracker
from multisig.runtime.cooldown import CooldownGuard
from multisig.runtime.rate_limit import RateLimiter
from multisig.runtime.requests import RequestStore
from multisig.state.collections import U32Cell
from multisig.state.kv import MemoryKV
from multisig.state.layout import (
    K_REQUEST_NONCE,
    P_NUM_REQUESTS_PK,
    P_REQUESTS,
    U32_MAX,
    confirmations_key,
    signer_index_key,
    u32,
)
from multisig.types.action import Transfer
from multisig.types.request import Request, RequestEnvelope

from .conftest import PK_A, PK_B, PK_C

REQ = Request.of("alice.test", Transfer(amount=5))


def _envelope(pk: bytes, ts: int = 0) -> RequestEnvelope:
    return RequestEnvelope(request=REQ, signer_pk=pk, added_timestamp=ts)


@pytest.fixture
def requests(store: MemoryKV) -> RequestStore:
    rs = RequestStore(store, RateLimiter(store, default_limit=3), ConfirmationTracker(store))
    rs.confirmations.set_threshold(2)
    rs.init_nonce()
    return rs


# ---------------------------------------------------------------------------
# RateLimiter
# ---------------------------------------------------------------------------

def test_rate_limiter_admits_up_to_limit(store):
    rl = RateLimiter(store, default_limit=2)
    assert rl.admit(PK_A) == 1
    assert rl.admit(PK_A) == 2
    with pytest.raises(RateLimitExceeded) as ei:
        rl.admit(PK_A)
    assert ei.value.data["limit"] == 2
    assert rl.count(PK_A) == 2
    assert rl.admit(PK_B) == 1


def test_rate_limiter_release_floors_at_zero(store, caplog):
    rl = RateLimiter(store, default_limit=2)
    rl.admit(PK_A)
    assert rl.release(PK_A) == 0
    assert rl.release(PK_A) == 0
    assert "underflow" in caplog.text


def test_rate_limiter_limit_is_persisted(store):
    rl = RateLimiter(store, default_limit=12)
    assert rl.limit == 12
    rl.set_limit(1)
    assert RateLimiter(store, default_limit=12).limit == 1


# ---------------------------------------------------------------------------
# ConfirmationTracker
# ---------------------------------------------------------------------------

def test_confirm_records_until_quorum(store):
    ct = ConfirmationTracker(store)
    ct.set_threshold(3)
    ct.open(0)
    assert ct.confirm(0, PK_B) is False
    assert ct.confirm(0, PK_A) is False
    assert ct.members(0) == sorted([PK_A, PK_B])
    assert ct.confirm(0, PK_C) is True
    # the quorum-reaching key is never written
    assert PK_C not in ct.members(0)


def test_confirm_rejects_duplicates(store):
    ct = ConfirmationTracker(store)
    ct.set_threshold(3)
    ct.open(0)
    ct.confirm(0, PK_A)
    with pytest.raises(DuplicateConfirmation):
        ct.confirm(0, PK_A)


def test_threshold_zero_or_one_executes_on_first_confirmation(store):
    ct = ConfirmationTracker(store)
    ct.open(0)
    ct.set_threshold(0)
    assert ct.confirm(0, PK_A) is True
    ct.set_threshold(1)
    assert ct.confirm(0, PK_A) is True


def test_members_of_unknown_set_raise(store):
    with pytest.raises(NotFound):
        ConfirmationTracker(store).members(9)


# ---------------------------------------------------------------------------
# CooldownGuard
# ---------------------------------------------------------------------------

def test_cooldown_boundary_is_strict():
    guard = CooldownGuard(900)
    env = _envelope(PK_A, ts=100)
    assert guard.deletable_after(env) == 1000
    assert not guard.is_deletable(env, 999)
    assert not guard.is_deletable(env, 1000)
    assert guard.is_deletable(env, 1001)
    with pytest.raises(CooldownNotElapsed) as ei:
        guard.assert_deletable(env, 1000, request_id=4)
    assert ei.value.data == {"request_id": 4, "deletable_after": 1000}
    guard.assert_deletable(env, 1001)


def test_cooldown_rejects_negative():
    with pytest.raises(ValueError):
        CooldownGuard(-1)


# ---------------------------------------------------------------------------
# RequestStore
# ---------------------------------------------------------------------------

def test_add_assigns_sequential_ids_and_opens_sets(requests):
    assert requests.add(_envelope(PK_A)) == 0
    assert requests.add(_envelope(PK_B)) == 1
    assert requests.nonce == 2
    assert requests.ids() == [0, 1]
    assert requests.confirmations.members(1) == []
    assert requests.rate_limiter.count(PK_A) == 1
    assert requests.ids_for_signer(PK_A) == [0]


def test_rate_limited_add_leaves_no_trace(requests):
    for _ in range(3):
        requests.add(_envelope(PK_A))
    with pytest.raises(RateLimitExceeded):
        requests.add(_envelope(PK_A))
    assert requests.nonce == 3
    assert requests.ids() == [0, 1, 2]


def test_remove_releases_slot_and_never_reuses_id(requests):
    rid = requests.add(_envelope(PK_A))
    assert requests.remove(rid) == REQ
    assert not requests.contains(rid)
    assert not requests.confirmations.exists(rid)
    assert requests.rate_limiter.count(PK_A) == 0
    assert requests.ids_for_signer(PK_A) == []
    assert requests.add(_envelope(PK_A)) == rid + 1


def test_add_refuses_once_ids_are_exhausted(store, requests):
    U32Cell(store, K_REQUEST_NONCE).set(U32_MAX)
    with pytest.raises(NonceExhausted) as ei:
        requests.add(_envelope(PK_A))
    assert ei.value.code == "NONCE_EXHAUSTED"
    assert ei.value.data == {"nonce": U32_MAX}
    assert requests.rate_limiter.count(PK_A) == 0
    assert requests.ids() == []


def test_last_id_before_exhaustion_is_usable(store, requests):
    U32Cell(store, K_REQUEST_NONCE).set(U32_MAX - 1)
    assert requests.add(_envelope(PK_A)) == U32_MAX - 1
    assert requests.nonce == U32_MAX


def test_records_live_under_layout_keys(store, requests):
    rid = requests.add(_envelope(PK_A))
    assert store.get(P_REQUESTS + u32(rid)) is not None
    assert store.get(confirmations_key(rid)) is not None
    assert store.get(signer_index_key(PK_A, rid)) is not None
    assert [k for k, _ in store.iter_prefix(P_NUM_REQUESTS_PK)] == [P_NUM_REQUESTS_PK + PK_A]


def test_remove_unknown_raises(requests):
    with pytest.raises(NotFound):
        requests.remove(7)


def test_remove_by_signer_cascades_only_that_key(requests):
    a0 = requests.add(_envelope(PK_A))
    b0 = requests.add(_envelope(PK_B))
    b1 = requests.add(_envelope(PK_B))
    requests.confirmations.confirm(b0, PK_A)

    assert requests.remove_by_signer(PK_B) == [b0, b1]
    assert requests.ids() == [a0]
    assert not requests.confirmations.exists(b0)
    assert requests.rate_limiter.count(PK_B) == 0
    assert requests.rate_limiter.count(PK_A) == 1
    assert requests.remove_by_signer(PK_C) == []
