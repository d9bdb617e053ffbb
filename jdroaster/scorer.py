"""
Scorer — converts evidence buckets into bounded score deltas.

Every dimension starts at 50 and is clamped to [0, 100]. Per bucket:

  severity weight    info=0.5, warn=1, high=2
  evidence weight    1 - exp(-n / tau)           (tau default 2)
  cluster multiplier 1 + 0.2 * max(0, avg cluster size - 1)
  bucket score       min(3.0, severity * evidence * cluster)

  delta[dim] = clamp(round(scoreDelta[dim] * bucket score), ±maxPerRuleImpact)

Deltas are applied to the running vector one bucket at a time, with a
clamp after every application. Buckets are processed in priority/id
order, so results are reproducible even when a dimension saturates.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, Sequence

from jdroaster.catalog import DIMENSIONS, Rule

BASELINE_SCORE = 50
SCORE_MIN = 0
SCORE_MAX = 100

SEVERITY_WEIGHTS = {"info": 0.5, "warn": 1.0, "high": 2.0}
SEVERITY_RANK = {"high": 3, "warn": 2, "info": 1}

DEFAULT_TAU = 2.0
DEFAULT_CLUSTER_WINDOW = 2
CLUSTER_BONUS = 0.2
MAX_BUCKET_SCORE = 3.0
DEFAULT_MAX_PER_RULE_IMPACT = 25


@dataclass(frozen=True)
class BucketDelta:
    delta: dict[str, int]
    bucket_score: float
    cluster_multiplier: float


def round_half_up(value: float) -> int:
    """Round .5 toward positive infinity (so -2.5 -> -2, 2.5 -> 3)."""
    return math.floor(value + 0.5)


def clamp_score(value: float) -> int:
    return int(max(SCORE_MIN, min(SCORE_MAX, value)))


def base_scores() -> dict[str, int]:
    return {dim: BASELINE_SCORE for dim in DIMENSIONS}


def apply_deltas(scores: dict[str, int], delta: Mapping[str, int]) -> None:
    """Apply deltas to the running vector, clamping each touched dimension."""
    for dim, value in delta.items():
        scores[dim] = clamp_score(scores[dim] + value)


def severity_weight(severity: str) -> float:
    return SEVERITY_WEIGHTS.get(severity, SEVERITY_WEIGHTS["info"])


def evidence_weight(n: int, tau: float = DEFAULT_TAU) -> float:
    """Diminishing returns: the first piece of evidence matters most."""
    if n <= 0:
        return 0.0
    return 1.0 - math.exp(-n / tau)


def cluster_sizes(indices: Sequence[int], window: int = DEFAULT_CLUSTER_WINDOW) -> list[int]:
    """Group sorted document indices into runs whose neighbours are within `window`."""
    ordered = sorted(indices)
    if not ordered:
        return []
    sizes = [1]
    for prev, cur in zip(ordered, ordered[1:]):
        if cur - prev > window:
            sizes.append(1)
        else:
            sizes[-1] += 1
    return sizes


def cluster_multiplier(indices: Sequence[int], window: int = DEFAULT_CLUSTER_WINDOW) -> float:
    """Modest bonus for evidence concentrated in one part of the document."""
    if len(indices) <= 1:
        return 1.0
    sizes = cluster_sizes(indices, window)
    avg_cluster_size = len(indices) / len(sizes)
    return 1.0 + CLUSTER_BONUS * max(0.0, avg_cluster_size - 1)


def compute_bucket_delta(rule: Rule, evidence_indices: Sequence[int]) -> BucketDelta:
    """
    Score one bucket.

    Args:
        rule: The rule that produced the bucket.
        evidence_indices: Document indices of the (truncated) evidence.

    Returns:
        BucketDelta with the per-dimension integer deltas.
    """
    tau = rule.tau if rule.tau is not None else DEFAULT_TAU
    window = rule.cluster_window if rule.cluster_window is not None else DEFAULT_CLUSTER_WINDOW
    cap = (
        rule.max_per_rule_impact
        if rule.max_per_rule_impact is not None
        else DEFAULT_MAX_PER_RULE_IMPACT
    )

    cm = cluster_multiplier(evidence_indices, window)
    bucket_score = min(
        MAX_BUCKET_SCORE,
        severity_weight(rule.severity) * evidence_weight(len(evidence_indices), tau) * cm,
    )

    delta = {}
    for dim, base in rule.score_delta.items():
        raw = round_half_up(base * bucket_score)
        delta[dim] = max(-cap, min(cap, raw))

    return BucketDelta(delta=delta, bucket_score=bucket_score, cluster_multiplier=cm)
