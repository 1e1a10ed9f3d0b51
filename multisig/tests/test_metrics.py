from __future__ import annotations

from multisig.adapters.host import LocalHost
from multisig.metrics import MultisigMetrics
from multisig.types.action import Transfer
from multisig.types.request import Request

from .conftest import PK_A, PK_B


def test_disabled_metrics_record_nothing():
    m = MultisigMetrics(enabled=False)
    m.request_added()
    m.batch("submitted")
    m.set_live_requests(3)
    assert m.value("multisig_requests_added_total") == 0.0
    assert m.value("multisig_live_requests") == 0.0


def test_registries_are_isolated():
    a, b = MultisigMetrics(), MultisigMetrics()
    a.request_added()
    assert a.value("multisig_requests_added_total") == 1.0
    assert b.value("multisig_requests_added_total") == 0.0


def test_flow_updates_counters(host: LocalHost):
    m = host.metrics
    rid = host.call("add_request_and_confirm", Request.of("alice.test", Transfer(amount=1)), signer_pk=PK_A)
    assert m.value("multisig_requests_added_total") == 1.0
    assert m.value("multisig_live_requests") == 1.0
    assert m.value("multisig_confirmations_total", outcome="pending") == 1.0

    host.call("confirm", rid, signer_pk=PK_B)
    assert m.value("multisig_confirmations_total", outcome="quorum") == 1.0
    assert m.value("multisig_requests_removed_total", reason="executed") == 1.0
    assert m.value("multisig_batches_total", result="submitted") == 1.0
    assert m.value("multisig_batches_total", result="applied") == 1.0
    assert m.value("multisig_live_requests") == 0.0


def test_exposition_text_names_metrics(host: LocalHost):
    host.call("add_request", Request.of("alice.test", Transfer(amount=1)), signer_pk=PK_A)
    text = host.metrics.generate_latest_text().decode("utf-8")
    assert "multisig_requests_added_total 1.0" in text
    assert "multisig_live_requests 1.0" in text
