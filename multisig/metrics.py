"""
multisig.metrics — Prometheus counters & gauges for the multisig engine.

Exposed metrics (names are prefixed with `multisig_`):
  - requests_added_total                 : Counter — requests admitted
  - confirmations_total{outcome}         : Counter — outcome ∈ {pending, quorum}
  - requests_removed_total{reason}       : Counter — reason ∈ {executed, deleted, revoked}
  - calls_rejected_total{code}           : Counter — aborted calls by error code
  - batches_total{result}                : Counter — result ∈ {submitted, applied, failed}
  - live_requests                        : Gauge   — live requests after the last call

All metrics live on a dedicated CollectorRegistry so several engines (or test
runs) never clash on the process-global default registry. `get_metrics()`
returns the process singleton; tests build their own `MultisigMetrics()`.
"""

from __future__ import annotations

from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
)

_PREFIX = "multisig_"


class MultisigMetrics:
    def __init__(self, registry: Optional[CollectorRegistry] = None, *, enabled: bool = True) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.enabled = enabled

        self.requests_added = Counter(
            _PREFIX + "requests_added_total",
            "Requests admitted into the store.",
            registry=self.registry,
        )
        self.confirmations = Counter(
            _PREFIX + "confirmations_total",
            "Accepted confirmations by outcome.",
            labelnames=("outcome",),
            registry=self.registry,
        )
        self.requests_removed = Counter(
            _PREFIX + "requests_removed_total",
            "Requests removed from the store by reason.",
            labelnames=("reason",),
            registry=self.registry,
        )
        self.calls_rejected = Counter(
            _PREFIX + "calls_rejected_total",
            "Calls aborted with a multisig error, by error code.",
            labelnames=("code",),
            registry=self.registry,
        )
        self.batches = Counter(
            _PREFIX + "batches_total",
            "Native operation batches by result.",
            labelnames=("result",),
            registry=self.registry,
        )
        self.live_requests = Gauge(
            _PREFIX + "live_requests",
            "Live (unexecuted, undeleted) requests.",
            registry=self.registry,
        )

    # ------------------------------ helpers ---------------------------------

    def request_added(self) -> None:
        if self.enabled:
            self.requests_added.inc()

    def confirmation(self, *, quorum: bool) -> None:
        if self.enabled:
            self.confirmations.labels(outcome="quorum" if quorum else "pending").inc()

    def request_removed(self, reason: str, n: int = 1) -> None:
        if self.enabled and n > 0:
            self.requests_removed.labels(reason=reason).inc(n)

    def call_rejected(self, code: str) -> None:
        if self.enabled:
            self.calls_rejected.labels(code=code).inc()

    def batch(self, result: str) -> None:
        if self.enabled:
            self.batches.labels(result=result).inc()

    def set_live_requests(self, n: int) -> None:
        if self.enabled:
            self.live_requests.set(n)

    def value(self, name: str, **labels: str) -> float:
        """Current sample value (0.0 if never observed)."""
        v = self.registry.get_sample_value(name, labels or None)
        return float(v) if v is not None else 0.0

    def generate_latest_text(self) -> bytes:
        return generate_latest(self.registry)


_METRICS: Optional[MultisigMetrics] = None


def get_metrics() -> MultisigMetrics:
    """Process-wide metrics singleton (honours MULTISIG_METRICS)."""
    global _METRICS
    if _METRICS is None:
        from .config import get_config

        _METRICS = MultisigMetrics(enabled=get_config().metrics_enabled)
    return _METRICS


__all__ = ["MultisigMetrics", "get_metrics", "CONTENT_TYPE_LATEST"]
