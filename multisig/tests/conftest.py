"""
Shared pytest fixtures:
- Deterministic signer keys (PK_A..PK_D)
- A config with the default limit and cooldown, isolated from the process env
- A private metrics registry per test
- A LocalHost around "wallet.test", funded and holding all four keys,
  initialized with k=2
"""
from __future__ import annotations

import hashlib

import pytest

from multisig.adapters.host import LocalHost
from multisig.adapters.ledger import InMemoryLedger
from multisig.config import MultisigConfig, load_config
from multisig.metrics import MultisigMetrics
from multisig.runtime.code import CodeResource
from multisig.state.kv import MemoryKV


def _pk(label: str) -> bytes:
    return hashlib.sha256(label.encode("utf-8")).digest()


PK_A = _pk("signer-a")
PK_B = _pk("signer-b")
PK_C = _pk("signer-c")
PK_D = _pk("signer-d")

WALLET = "wallet.test"
CONTRACT_CODE = b"\x00asm\x01\x00\x00\x00multisig"


@pytest.fixture
def cfg() -> MultisigConfig:
    return load_config(env={})


@pytest.fixture
def metrics() -> MultisigMetrics:
    return MultisigMetrics()


@pytest.fixture
def store() -> MemoryKV:
    return MemoryKV()


@pytest.fixture
def ledger() -> InMemoryLedger:
    led = InMemoryLedger()
    led.create_account(WALLET, balance=1_000, full_access_keys=[PK_A, PK_B, PK_C, PK_D])
    led.create_account("alice.test")
    return led


@pytest.fixture
def host(cfg: MultisigConfig, metrics: MultisigMetrics, ledger: InMemoryLedger) -> LocalHost:
    h = LocalHost(
        WALLET,
        ledger=ledger,
        config=cfg,
        code=CodeResource.from_bytes(CONTRACT_CODE),
        metrics=metrics,
    )
    h.init(2)
    return h
