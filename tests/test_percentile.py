from __future__ import annotations

import itertools
import math

import pytest

from nodepulse_core.percentile import percentile, round_half_away_from_zero


def test_percentile_empty_is_nan() -> None:
    for q in (0.0, 0.5, 0.95, 1.0):
        assert math.isnan(percentile([], q))


def test_percentile_bounds_are_min_and_max() -> None:
    values = [42.0, -3.5, 17.25, 1000.0, 0.0]
    assert percentile(values, 0.0) == min(values)
    assert percentile(values, 1.0) == max(values)


def test_percentile_single_value() -> None:
    assert percentile([7.5], 0.0) == 7.5
    assert percentile([7.5], 0.5) == 7.5
    assert percentile([7.5], 1.0) == 7.5


def test_percentile_p95_of_five_uses_nearest_rank() -> None:
    # 0.95 * 4 = 3.8 -> index 4
    assert percentile([1.0, 2.0, 3.0, 4.0, 5.0], 0.95) == 5.0


def test_percentile_rounds_ties_away_from_zero() -> None:
    # 0.5 * 1 = 0.5 -> index 1, where round() would give 0
    assert percentile([10.0, 20.0], 0.5) == 20.0
    # 0.5 * 5 = 2.5 -> index 3, where round() would give 2
    assert percentile([1.0, 2.0, 3.0, 4.0, 5.0, 6.0], 0.5) == 4.0


def test_percentile_is_order_independent() -> None:
    values = [130.0, 100.0, 120.0, 110.0, 105.0]
    expected = {q: percentile(values, q) for q in (0.0, 0.25, 0.5, 0.95, 1.0)}
    for permutation in itertools.permutations(values):
        for q, value in expected.items():
            assert percentile(list(permutation), q) == value


def test_percentile_does_not_mutate_input() -> None:
    values = [3.0, 1.0, 2.0]
    percentile(values, 0.5)
    assert values == [3.0, 1.0, 2.0]


def test_percentile_accepts_tuples() -> None:
    assert percentile((5.0, 1.0, 3.0), 0.5) == 3.0


def test_percentile_clamps_out_of_range_q() -> None:
    values = [1.0, 2.0, 3.0]
    assert percentile(values, -0.5) == 1.0
    assert percentile(values, 1.5) == 3.0


def test_percentile_rejects_nan_q() -> None:
    with pytest.raises(ValueError):
        percentile([1.0, 2.0], math.nan)


def test_p50_never_exceeds_p95() -> None:
    values = [900.0, 15.0, 3000.0, 250.0, 251.0, 80.0, 3000.0, 12.0]
    assert percentile(values, 0.50) <= percentile(values, 0.95)


def test_round_half_away_from_zero() -> None:
    assert round_half_away_from_zero(0.5) == 1
    assert round_half_away_from_zero(1.49) == 1
    assert round_half_away_from_zero(2.5) == 3
    assert round_half_away_from_zero(-0.5) == -1
    assert round_half_away_from_zero(0.0) == 0
