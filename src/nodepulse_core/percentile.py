from __future__ import annotations

import math
from collections.abc import Sequence


def round_half_away_from_zero(value: float) -> int:
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def percentile(values: Sequence[float], q: float) -> float:
    """Nearest-rank percentile of ``values`` for ``q`` in [0, 1].

    The rank is ``q * (n - 1)`` rounded half away from zero, so ties land
    on the higher sample (0.5 -> 1, 2.5 -> 3). Python's ``round`` rounds
    half to even and would pick a different sample on ties.

    Returns NaN for an empty input. The input is never reordered.
    """
    if math.isnan(q):
        raise ValueError("q must be a number")
    ordered = sorted(values)
    if not ordered:
        return math.nan
    last = len(ordered) - 1
    index = round_half_away_from_zero(q * last)
    index = min(max(index, 0), last)
    return ordered[index]
