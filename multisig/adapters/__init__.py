"""
multisig.adapters — host-side pieces for running the contract locally:
an in-memory ledger and a host that wraps each call in a journal.
"""

from .host import LocalHost, PendingBatches
from .ledger import BatchOutcome, InMemoryLedger, LedgerError

__all__ = ["LocalHost", "PendingBatches", "BatchOutcome", "InMemoryLedger", "LedgerError"]
