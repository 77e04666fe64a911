from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, model_validator

from nodepulse_core.models import HealthStatus

DEFAULT_OK_THRESHOLD_MS = 300.0
DEFAULT_WARN_THRESHOLD_MS = 800.0


class StatusThresholds(BaseModel):
    """Inclusive upper bounds of the ok and warn bands, in milliseconds."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    ok_ms: float = Field(default=DEFAULT_OK_THRESHOLD_MS, ge=0)
    warn_ms: float = Field(default=DEFAULT_WARN_THRESHOLD_MS, ge=0)

    @model_validator(mode="after")
    def _check_order(self) -> StatusThresholds:
        if self.ok_ms > self.warn_ms:
            raise ValueError("ok_ms must be <= warn_ms")
        return self


DEFAULT_THRESHOLDS = StatusThresholds()


def classify(p95: float, thresholds: StatusThresholds = DEFAULT_THRESHOLDS) -> HealthStatus:
    if math.isnan(p95):
        return HealthStatus.DOWN
    if p95 <= thresholds.ok_ms:
        return HealthStatus.OK
    if p95 <= thresholds.warn_ms:
        return HealthStatus.WARN
    return HealthStatus.DOWN
