from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from threading import Lock
from typing import Literal, TypedDict

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client import Counter as PromCounter
from prometheus_client import Histogram as PromHistogram

from nodepulse_core.models import HealthStatus, LatencySummary

PROBE_LATENCY_BUCKET_THRESHOLDS_MS = (50, 100, 150, 300, 800, 3000)

BlockQueryOutcome = Literal["ok", "degraded", "unreachable"]


class MetricsSnapshot(TypedDict):
    http_status_counts: dict[str, int]
    probe_round_status_counts: dict[str, int]
    probe_latency_ms_buckets: dict[str, int]
    probe_failure_count: int
    block_query_counts: dict[str, int]


def _latency_bucket(latency_ms: float) -> str:
    if latency_ms < 0:
        latency_ms = 0
    for threshold in PROBE_LATENCY_BUCKET_THRESHOLDS_MS:
        if latency_ms <= threshold:
            return f"le_{threshold}ms"
    return f"gt_{PROBE_LATENCY_BUCKET_THRESHOLDS_MS[-1]}ms"


@dataclass
class InMemoryMetrics:
    lock: Lock = field(default_factory=Lock)
    http_status_counts: Counter[int] = field(default_factory=Counter)
    probe_round_status_counts: Counter[str] = field(default_factory=Counter)
    probe_latency_ms_buckets: Counter[str] = field(default_factory=Counter)
    probe_failure_count: int = 0
    block_query_counts: Counter[str] = field(default_factory=Counter)
    _registry: CollectorRegistry = field(init=False, repr=False)
    _http_status_total: PromCounter = field(init=False, repr=False)
    _probe_round_total: PromCounter = field(init=False, repr=False)
    _probe_failure_total: PromCounter = field(init=False, repr=False)
    _probe_p95_ms: PromHistogram = field(init=False, repr=False)
    _block_query_total: PromCounter = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._registry = CollectorRegistry()
        self._http_status_total = PromCounter(
            "nodepulse_http_status_total",
            "Total HTTP responses by status code.",
            ["status_code"],
            registry=self._registry,
        )
        self._probe_round_total = PromCounter(
            "nodepulse_probe_round_total",
            "Total latency probe rounds by resulting health status.",
            ["status"],
            registry=self._registry,
        )
        self._probe_failure_total = PromCounter(
            "nodepulse_probe_failure_total",
            "Total failed probe calls recorded as penalty samples.",
            registry=self._registry,
        )
        histogram_buckets = tuple(float(value) for value in PROBE_LATENCY_BUCKET_THRESHOLDS_MS)
        self._probe_p95_ms = PromHistogram(
            "nodepulse_probe_p95_ms",
            "p95 round-trip latency per probe round in milliseconds.",
            buckets=histogram_buckets + (float("inf"),),
            registry=self._registry,
        )
        self._block_query_total = PromCounter(
            "nodepulse_block_query_total",
            "Total block height queries by outcome.",
            ["outcome"],
            registry=self._registry,
        )

    def record_http_status(self, status_code: int) -> None:
        with self.lock:
            self.http_status_counts[status_code] += 1
            self._http_status_total.labels(status_code=str(status_code)).inc()

    def record_probe_round(self, summary: LatencySummary) -> None:
        status = HealthStatus(summary.status).value
        with self.lock:
            self.probe_round_status_counts[status] += 1
            self.probe_failure_count += summary.failures
            self._probe_round_total.labels(status=status).inc()
            if summary.failures:
                self._probe_failure_total.inc(summary.failures)
            # Empty rounds have no p95 to bucket.
            if not math.isnan(summary.p95):
                self.probe_latency_ms_buckets[_latency_bucket(summary.p95)] += 1
                self._probe_p95_ms.observe(max(0.0, summary.p95))

    def record_block_query(self, outcome: BlockQueryOutcome) -> None:
        with self.lock:
            self.block_query_counts[outcome] += 1
            self._block_query_total.labels(outcome=outcome).inc()

    def snapshot(self) -> MetricsSnapshot:
        with self.lock:
            return {
                "http_status_counts": {
                    str(status): count for status, count in self.http_status_counts.items()
                },
                "probe_round_status_counts": dict(self.probe_round_status_counts),
                "probe_latency_ms_buckets": dict(self.probe_latency_ms_buckets),
                "probe_failure_count": self.probe_failure_count,
                "block_query_counts": dict(self.block_query_counts),
            }

    def reset(self) -> None:
        with self.lock:
            self.http_status_counts.clear()
            self.probe_round_status_counts.clear()
            self.probe_latency_ms_buckets.clear()
            self.probe_failure_count = 0
            self.block_query_counts.clear()

    def prometheus_text(self) -> str:
        return generate_latest(self._registry).decode("utf-8")


metrics = InMemoryMetrics()
