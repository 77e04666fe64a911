from __future__ import annotations

import math

import pytest
from pydantic import ValidationError

from nodepulse_core.models import HealthStatus
from nodepulse_core.status import StatusThresholds, classify


@pytest.mark.parametrize(
    ("p95", "expected"),
    [
        (0.0, HealthStatus.OK),
        (300.0, HealthStatus.OK),
        (300.0001, HealthStatus.WARN),
        (800.0, HealthStatus.WARN),
        (800.0001, HealthStatus.DOWN),
        (10000.0, HealthStatus.DOWN),
        (math.nan, HealthStatus.DOWN),
        (math.inf, HealthStatus.DOWN),
    ],
)
def test_classify_default_bands(p95: float, expected: HealthStatus) -> None:
    assert classify(p95) is expected


def test_classify_with_custom_thresholds() -> None:
    thresholds = StatusThresholds(ok_ms=50.0, warn_ms=100.0)
    assert classify(50.0, thresholds) is HealthStatus.OK
    assert classify(75.0, thresholds) is HealthStatus.WARN
    assert classify(100.5, thresholds) is HealthStatus.DOWN


def test_equal_thresholds_collapse_warn_band() -> None:
    thresholds = StatusThresholds(ok_ms=200.0, warn_ms=200.0)
    assert classify(200.0, thresholds) is HealthStatus.OK
    assert classify(200.1, thresholds) is HealthStatus.DOWN


def test_thresholds_must_be_ordered() -> None:
    with pytest.raises(ValidationError):
        StatusThresholds(ok_ms=900.0, warn_ms=800.0)


def test_thresholds_are_immutable() -> None:
    thresholds = StatusThresholds()
    with pytest.raises(ValidationError):
        thresholds.ok_ms = 1.0  # type: ignore[misc]


def test_health_status_severity_order() -> None:
    assert HealthStatus.OK < HealthStatus.WARN < HealthStatus.DOWN
    assert max([HealthStatus.WARN, HealthStatus.DOWN, HealthStatus.OK]) is HealthStatus.DOWN
    assert HealthStatus.DOWN >= HealthStatus.WARN
    assert HealthStatus.OK.severity == 0


def test_health_status_compares_with_string_values() -> None:
    assert HealthStatus.WARN < "down"
    assert HealthStatus.WARN > "ok"
    assert "down" > HealthStatus.WARN
    assert "ok" <= HealthStatus.OK
    assert HealthStatus.DOWN >= "warn"


def test_health_status_rejects_unknown_string() -> None:
    with pytest.raises(ValueError):
        _ = HealthStatus.OK < "degraded"
