from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence

from nodepulse_core.models import LatencySummary, ProbeOutcome
from nodepulse_core.percentile import percentile
from nodepulse_core.status import DEFAULT_THRESHOLDS, StatusThresholds, classify

logger = logging.getLogger(__name__)

DEFAULT_ROUND_SIZE = 7
DEFAULT_PENALTY_MS = 3000.0


def summarize_round(
    samples: Sequence[float],
    *,
    thresholds: StatusThresholds = DEFAULT_THRESHOLDS,
    failures: int = 0,
) -> LatencySummary:
    p50 = percentile(samples, 0.50)
    p95 = percentile(samples, 0.95)
    return LatencySummary(
        p50=p50,
        p95=p95,
        sample_count=len(samples),
        failures=failures,
        status=classify(p95, thresholds),
    )


class LatencySampler:
    """Times ``probe`` calls one after another.

    Calls never overlap: each sample is the round trip of a single request.
    A failed call is recorded as ``penalty_ms`` so a broken node pushes the
    round towards ``down`` without a separate failure count.
    """

    def __init__(
        self,
        probe: Callable[[], bool],
        *,
        penalty_ms: float = DEFAULT_PENALTY_MS,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        if penalty_ms < 0:
            raise ValueError("penalty_ms must be >= 0")
        self.probe = probe
        self.penalty_ms = penalty_ms
        self.clock = clock

    def _probe_once(self) -> ProbeOutcome:
        start = self.clock()
        try:
            ok = bool(self.probe())
        except Exception as exc:
            logger.warning("probe raised; counting as failure: %s", exc)
            ok = False
        elapsed_ms = max(0.0, (self.clock() - start) * 1000)
        return ProbeOutcome(ok=ok, elapsed_ms=elapsed_ms)

    def sample_outcomes(self, round_size: int) -> list[ProbeOutcome]:
        if round_size < 0:
            raise ValueError("round_size must be >= 0")
        return [self._probe_once() for _ in range(round_size)]

    def sample(self, round_size: int) -> list[float]:
        return [outcome.sample_ms(self.penalty_ms) for outcome in self.sample_outcomes(round_size)]

    def run_round(
        self,
        round_size: int,
        thresholds: StatusThresholds = DEFAULT_THRESHOLDS,
    ) -> LatencySummary:
        outcomes = self.sample_outcomes(round_size)
        samples = [outcome.sample_ms(self.penalty_ms) for outcome in outcomes]
        failures = sum(1 for outcome in outcomes if not outcome.ok)
        return summarize_round(samples, thresholds=thresholds, failures=failures)
