from __future__ import annotations

import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

U64_MAX = 2**64 - 1
DEFAULT_RAW_HEX = "0x0"


class HealthStatus(str, Enum):
    """Node health, ordered by severity: ok < warn < down.

    Comparisons accept members or their string values; an unknown string
    raises ``ValueError`` rather than falling back to lexical order.
    """

    OK = "ok"
    WARN = "warn"
    DOWN = "down"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @classmethod
    def _coerce(cls, other: object) -> HealthStatus | None:
        if isinstance(other, cls):
            return other
        if isinstance(other, str):
            return cls(other)
        return None

    def __lt__(self, other: object) -> bool:
        coerced = self._coerce(other)
        if coerced is None:
            return NotImplemented
        return self.severity < coerced.severity

    def __le__(self, other: object) -> bool:
        coerced = self._coerce(other)
        if coerced is None:
            return NotImplemented
        return self.severity <= coerced.severity

    def __gt__(self, other: object) -> bool:
        coerced = self._coerce(other)
        if coerced is None:
            return NotImplemented
        return self.severity > coerced.severity

    def __ge__(self, other: object) -> bool:
        coerced = self._coerce(other)
        if coerced is None:
            return NotImplemented
        return self.severity >= coerced.severity


_SEVERITY = {HealthStatus.OK: 0, HealthStatus.WARN: 1, HealthStatus.DOWN: 2}


class ProbeOutcome(BaseModel):
    """One timed round trip, tagged with whether it succeeded."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    ok: bool
    elapsed_ms: float = Field(ge=0)

    def sample_ms(self, penalty_ms: float) -> float:
        if self.ok:
            return self.elapsed_ms
        return penalty_ms


class LatencySummary(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    p50: float
    p95: float
    sample_count: int = Field(ge=0)
    failures: int = Field(default=0, ge=0)
    status: HealthStatus


class BlockHeightResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    raw_hex: str = DEFAULT_RAW_HEX
    value: int = Field(default=0, ge=0, le=U64_MAX)
    chain_label: str
    degraded: bool = False


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    error_code: str
    message: str
    request_id: str | None = None


class NodeLatencyResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    p50_ms: float | None
    p95_ms: float | None
    samples: int = Field(ge=0)
    failures: int = Field(ge=0)
    status: HealthStatus

    @classmethod
    def from_summary(cls, summary: LatencySummary) -> NodeLatencyResponse:
        # NaN has no JSON encoding; an empty round reports null percentiles.
        return cls(
            p50_ms=None if math.isnan(summary.p50) else summary.p50,
            p95_ms=None if math.isnan(summary.p95) else summary.p95,
            samples=summary.sample_count,
            failures=summary.failures,
            status=summary.status,
        )


class LatestBlockResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    blockNumberHex: str
    blockNumber: int = Field(ge=0, le=U64_MAX)
    chain: str
    degraded: bool

    @classmethod
    def from_result(cls, result: BlockHeightResult) -> LatestBlockResponse:
        return cls(
            blockNumberHex=result.raw_hex,
            blockNumber=result.value,
            chain=result.chain_label,
            degraded=result.degraded,
        )


class MetricsResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    http_status_counts: dict[str, int]
    probe_round_status_counts: dict[str, int]
    probe_latency_ms_buckets: dict[str, int]
    probe_failure_count: int = Field(ge=0)
    block_query_counts: dict[str, int]
