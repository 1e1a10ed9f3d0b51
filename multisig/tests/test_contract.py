"""
End-to-end flows through LocalHost: add, confirm, execute, delete, revoke.
"""
from __future__ import annotations

import pytest

from multisig.adapters.host import LocalHost
from multisig.config import NS_PER_SECOND
from multisig.contract import MultisigContract
from multisig.errors import (
    AlreadyInitialized,
    AuthorizationMismatch,
    CooldownNotElapsed,
    DuplicateConfirmation,
    InternalInconsistency,
    InvalidBundling,
    NotFound,
    NotInitialized,
    RateLimitExceeded,
)
from multisig.state.layout import confirmations_key
from multisig.types.action import (
    DeleteKey,
    DeployContract,
    SetActiveRequestsLimit,
    SetNumConfirmations,
    Transfer,
)
from multisig.types.request import Request

from .conftest import CONTRACT_CODE, PK_A, PK_B, PK_C, WALLET

PAY_ALICE = Request.of("alice.test", Transfer(amount=5))


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

def test_init_sets_initial_state(host: LocalHost):
    assert host.view("get_num_confirmations") == 2
    assert host.view("get_request_nonce") == 0
    assert host.view("get_active_requests_limit") == 12
    assert host.view("list_request_ids") == []
    assert MultisigContract.is_initialized(host.store)


def test_init_twice_fails(host: LocalHost):
    with pytest.raises(AlreadyInitialized) as ei:
        host.init(3)
    assert str(ei.value) == "Already initialized"
    assert host.view("get_num_confirmations") == 2


def test_calls_before_init_fail(cfg, metrics, ledger):
    h = LocalHost(WALLET, ledger=ledger, config=cfg, metrics=metrics)
    with pytest.raises(NotInitialized):
        h.call("add_request", PAY_ALICE, signer_pk=PK_A)
    with pytest.raises(NotInitialized):
        h.view("get_request_nonce")


def test_init_accepts_zero_threshold(cfg, metrics, ledger):
    h = LocalHost(WALLET, ledger=ledger, config=cfg, metrics=metrics)
    h.init(0)
    rid = h.call("add_request", PAY_ALICE, signer_pk=PK_A)
    assert h.call("confirm", rid, signer_pk=PK_A) is True


# ---------------------------------------------------------------------------
# the basic 2-of-n flow
# ---------------------------------------------------------------------------

def test_two_of_n_transfer_flow(host: LocalHost):
    rid = host.call("add_request", PAY_ALICE, signer_pk=PK_A)
    assert rid == 0
    assert host.view("get_request_nonce") == 1
    assert host.view("get_num_requests_pk", PK_A) == 1
    assert host.view("get_request", rid) == PAY_ALICE

    assert host.call("confirm", rid, signer_pk=PK_A) is False
    assert host.view("get_confirmations", rid) == [PK_A]

    assert host.call("confirm", rid, signer_pk=PK_B) is True
    assert host.view("list_request_ids") == []
    assert host.view("get_num_requests_pk", PK_A) == 0
    with pytest.raises(NotFound):
        host.view("get_request", rid)
    with pytest.raises(NotFound):
        host.view("get_confirmations", rid)

    assert host.ledger.balance("alice.test") == 5
    assert host.ledger.balance(WALLET) == 995


def test_add_request_and_confirm(host: LocalHost):
    rid = host.call("add_request_and_confirm", PAY_ALICE, signer_pk=PK_A)
    assert host.view("get_confirmations", rid) == [PK_A]
    assert host.call("confirm", rid, signer_pk=PK_B) is True


def test_envelope_records_signer_and_time(host: LocalHost):
    rid = host.call("add_request", PAY_ALICE, signer_pk=PK_C)
    env = host.view("get_request_envelope", rid)
    assert env.signer_pk == PK_C
    assert env.added_timestamp == host.now


def test_duplicate_confirmation_rejected(host: LocalHost):
    rid = host.call("add_request_and_confirm", PAY_ALICE, signer_pk=PK_A)
    with pytest.raises(DuplicateConfirmation) as ei:
        host.call("confirm", rid, signer_pk=PK_A)
    assert str(ei.value) == "Already confirmed this request with this key"
    assert host.view("get_confirmations", rid) == [PK_A]


def test_confirm_unknown_request(host: LocalHost):
    with pytest.raises(NotFound) as ei:
        host.call("confirm", 41, signer_pk=PK_A)
    assert ei.value.code == "NOT_FOUND"


def test_missing_confirmation_set_is_internal_error(host: LocalHost):
    rid = host.call("add_request", PAY_ALICE, signer_pk=PK_A)
    host.store.delete(confirmations_key(rid))
    with pytest.raises(InternalInconsistency):
        host.call("confirm", rid, signer_pk=PK_B)


def test_list_request_ids_are_decimal_strings(host: LocalHost):
    for _ in range(3):
        host.call("add_request", PAY_ALICE, signer_pk=PK_A)
    host.call("confirm", 1, signer_pk=PK_A)
    host.call("confirm", 1, signer_pk=PK_B)
    assert host.view("list_request_ids") == ["0", "2"]


# ---------------------------------------------------------------------------
# identity
# ---------------------------------------------------------------------------

def test_relayed_calls_are_rejected(host: LocalHost):
    with pytest.raises(AuthorizationMismatch) as ei:
        host.call("add_request", PAY_ALICE, signer_pk=PK_A, predecessor_account_id="relay.test")
    assert str(ei.value) == "Predecessor account must match sender account."
    rid = host.call("add_request", PAY_ALICE, signer_pk=PK_A)
    with pytest.raises(AuthorizationMismatch):
        host.call("confirm", rid, signer_pk=PK_B, predecessor_account_id="relay.test")
    with pytest.raises(AuthorizationMismatch):
        host.call("delete_request", rid, signer_pk=PK_A, predecessor_account_id="relay.test")
    with pytest.raises(AuthorizationMismatch):
        host.call(
            "execute_request",
            Request.of(WALLET, SetNumConfirmations(num_confirmations=1)),
            signer_pk=PK_A,
            signer_account_id="alice.test",
            predecessor_account_id=WALLET,
        )
    assert host.view("get_num_confirmations") == 2


def test_execute_request_is_self_call_only(host: LocalHost):
    with pytest.raises(AuthorizationMismatch):
        host.call(
            "execute_request", PAY_ALICE,
            signer_pk=PK_A, signer_account_id="alice.test",
        )
    assert host.call("execute_request", PAY_ALICE, signer_pk=PK_A) is True
    assert host.ledger.balance("alice.test") == 5


# ---------------------------------------------------------------------------
# rate limit
# ---------------------------------------------------------------------------

def test_rate_limit_per_key(host: LocalHost):
    for _ in range(12):
        host.call("add_request", PAY_ALICE, signer_pk=PK_A)
    with pytest.raises(RateLimitExceeded) as ei:
        host.call("add_request", PAY_ALICE, signer_pk=PK_A)
    assert str(ei.value) == "Account has too many active requests. Confirm or delete some."
    assert host.view("get_request_nonce") == 12
    assert host.call("add_request", PAY_ALICE, signer_pk=PK_B) == 12


def test_executing_a_request_frees_a_slot(host: LocalHost):
    for _ in range(12):
        host.call("add_request", PAY_ALICE, signer_pk=PK_A)
    host.call("confirm", 0, signer_pk=PK_A)
    host.call("confirm", 0, signer_pk=PK_B)
    assert host.view("get_num_requests_pk", PK_A) == 11
    host.call("add_request", PAY_ALICE, signer_pk=PK_A)


# ---------------------------------------------------------------------------
# deletion & cooldown
# ---------------------------------------------------------------------------

def test_delete_respects_cooldown(host: LocalHost):
    rid = host.call("add_request_and_confirm", PAY_ALICE, signer_pk=PK_A)
    with pytest.raises(CooldownNotElapsed):
        host.call("delete_request", rid, signer_pk=PK_A)
    host.advance(seconds=900)
    with pytest.raises(CooldownNotElapsed):
        host.call("delete_request", rid, signer_pk=PK_A)
    host.advance(1)
    host.call("delete_request", rid, signer_pk=PK_B)
    assert host.view("list_request_ids") == []
    assert host.view("get_num_requests_pk", PK_A) == 0
    with pytest.raises(NotFound):
        host.call("delete_request", rid, signer_pk=PK_A)


def test_quorum_removal_ignores_cooldown(host: LocalHost):
    rid = host.call("add_request_and_confirm", PAY_ALICE, signer_pk=PK_A)
    assert host.call("confirm", rid, signer_pk=PK_B) is True


# ---------------------------------------------------------------------------
# self-target actions
# ---------------------------------------------------------------------------

def test_delete_key_revokes_that_keys_requests(host: LocalHost):
    b0 = host.call("add_request", PAY_ALICE, signer_pk=PK_B)
    b1 = host.call("add_request_and_confirm", PAY_ALICE, signer_pk=PK_B)
    c0 = host.call("add_request", PAY_ALICE, signer_pk=PK_C)

    rid = host.call("add_request", Request.of(WALLET, DeleteKey(public_key=PK_B)), signer_pk=PK_A)
    host.call("confirm", rid, signer_pk=PK_A)
    assert host.call("confirm", rid, signer_pk=PK_B) is True

    assert host.view("list_request_ids") == [str(c0)]
    assert host.view("get_num_requests_pk", PK_B) == 0
    assert host.view("get_num_requests_pk", PK_A) == 0
    for gone in (b0, b1):
        with pytest.raises(NotFound):
            host.view("get_confirmations", gone)
    assert PK_B not in host.ledger.keys(WALLET)


def test_set_num_confirmations(host: LocalHost):
    rid = host.call(
        "add_request_and_confirm",
        Request.of(WALLET, SetNumConfirmations(num_confirmations=3)),
        signer_pk=PK_A,
    )
    host.call("confirm", rid, signer_pk=PK_B)
    assert host.view("get_num_confirmations") == 3

    pay = host.call("add_request_and_confirm", PAY_ALICE, signer_pk=PK_A)
    assert host.call("confirm", pay, signer_pk=PK_B) is False
    assert host.call("confirm", pay, signer_pk=PK_C) is True


def test_set_active_requests_limit(host: LocalHost):
    rid = host.call(
        "add_request_and_confirm",
        Request.of(WALLET, SetActiveRequestsLimit(active_requests_limit=1)),
        signer_pk=PK_A,
    )
    host.call("confirm", rid, signer_pk=PK_B)
    assert host.view("get_active_requests_limit") == 1
    host.call("add_request", PAY_ALICE, signer_pk=PK_A)
    with pytest.raises(RateLimitExceeded):
        host.call("add_request", PAY_ALICE, signer_pk=PK_A)


def test_bundled_config_change_aborts_quorum_call(host: LocalHost):
    bundled = Request.of(WALLET, SetNumConfirmations(num_confirmations=3), Transfer(amount=1))
    rid = host.call("add_request_and_confirm", bundled, signer_pk=PK_A)
    with pytest.raises(InvalidBundling) as ei:
        host.call("confirm", rid, signer_pk=PK_B)
    assert str(ei.value) == "This method should be a separate request"
    # the aborted call's removal was reverted
    assert host.view("list_request_ids") == [str(rid)]
    assert host.view("get_confirmations", rid) == [PK_A]
    assert host.view("get_num_confirmations") == 2


def test_bundled_limit_change_aborts_quorum_call(host: LocalHost):
    bundled = Request.of(WALLET, SetActiveRequestsLimit(active_requests_limit=5), Transfer(amount=1))
    rid = host.call("add_request_and_confirm", bundled, signer_pk=PK_A)
    with pytest.raises(InvalidBundling):
        host.call("confirm", rid, signer_pk=PK_B)
    assert host.view("list_request_ids") == [str(rid)]
    assert host.view("get_confirmations", rid) == [PK_A]
    assert host.view("get_num_requests_pk", PK_A) == 1
    assert host.view("get_active_requests_limit") == 12
    assert host.ledger.outcomes == []


def test_self_target_on_other_account_aborts(host: LocalHost):
    rid = host.call(
        "add_request_and_confirm",
        Request.of("alice.test", DeleteKey(public_key=PK_C)),
        signer_pk=PK_A,
    )
    with pytest.raises(AuthorizationMismatch):
        host.call("confirm", rid, signer_pk=PK_B)
    assert host.view("list_request_ids") == [str(rid)]


def test_deploy_contract_redeploys_configured_code(host: LocalHost):
    rid = host.call("add_request_and_confirm", Request.of(WALLET, DeployContract()), signer_pk=PK_A)
    host.call("confirm", rid, signer_pk=PK_B)
    assert host.ledger.account(WALLET).code == CONTRACT_CODE


# ---------------------------------------------------------------------------
# execution is not atomic with removal
# ---------------------------------------------------------------------------

def test_failed_batch_leaves_request_removed(host: LocalHost):
    rid = host.call(
        "add_request_and_confirm",
        Request.of("alice.test", Transfer(amount=10_000)),
        signer_pk=PK_A,
    )
    assert host.call("confirm", rid, signer_pk=PK_B) is True
    outcome = host.ledger.outcomes[-1]
    assert not outcome.ok
    assert "insufficient balance" in (outcome.error or "")
    assert host.view("list_request_ids") == []
    assert host.ledger.balance("alice.test") == 0
    assert host.metrics.value("multisig_batches_total", result="failed") == 1.0


def test_cooldown_uses_ledger_time(host: LocalHost):
    rid = host.call("add_request", PAY_ALICE, signer_pk=PK_A)
    host.advance(901 * NS_PER_SECOND)
    host.call("delete_request", rid, signer_pk=PK_A)
