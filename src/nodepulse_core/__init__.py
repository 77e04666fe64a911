"""Node health-probe core: sampling, percentiles, classification, block height."""

from __future__ import annotations

from nodepulse_core.block_height import BlockHeightQuery, parse_hex_quantity
from nodepulse_core.models import BlockHeightResult, HealthStatus, LatencySummary, ProbeOutcome
from nodepulse_core.percentile import percentile
from nodepulse_core.sampler import LatencySampler, summarize_round
from nodepulse_core.status import StatusThresholds, classify

__all__ = [
    "BlockHeightQuery",
    "BlockHeightResult",
    "HealthStatus",
    "LatencySampler",
    "LatencySummary",
    "ProbeOutcome",
    "StatusThresholds",
    "classify",
    "parse_hex_quantity",
    "percentile",
    "summarize_round",
]
