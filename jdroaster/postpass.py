"""
Post-pass analyzers, run once after every bucket has been scored.

  - Contradictions: rules declaring `contradicts` whose partner also fired.
  - Imbalance: heavy responsibility load with no team/support signal.
  - Compensation fallback: no salary range green flag was found.

Each detector adjusts the running score vector (clamped) and returns
the synthetic insights it emits.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from jdroaster.aggregator import Bucket
from jdroaster.catalog import RESPONSIBILITY_TAG, SUPPORT_TAG, Rule
from jdroaster.report import EvidenceSummary, GreenFlag, Insight
from jdroaster.scorer import (
    DEFAULT_CLUSTER_WINDOW,
    apply_deltas,
    cluster_multiplier,
    round_half_up,
    severity_weight,
)

logger = logging.getLogger(__name__)

CONTRADICTION_EVIDENCE_CAP = 6
IMBALANCE_EVIDENCE_CAP = 8
IMBALANCE_MIN_RESPONSIBILITIES = 6
IMBALANCE_DELTA = {"scopeCreep": -10, "clarity": -5}
SALARY_FLAG_TYPE = "salary_range_present"
COMPENSATION_CEILING = 30


def summarize(evidence: Sequence[str], index_by_id: dict[str, int]) -> EvidenceSummary:
    """Display summary. `clustered` uses the default window, whatever the rule's clusterWindow."""
    indices = [index_by_id[sid] for sid in evidence]
    return EvidenceSummary(
        count=len(evidence),
        clustered=cluster_multiplier(indices, DEFAULT_CLUSTER_WINDOW) > 1,
        strongest=evidence[0] if evidence else None,
    )


def _document_order(ids: set[str], index_by_id: dict[str, int], cap: int) -> list[str]:
    valid = (sid for sid in ids if sid in index_by_id)
    return sorted(valid, key=index_by_id.__getitem__)[:cap]


# ============================================================
# CONTRADICTIONS
# ============================================================

def detect_contradictions(
    buckets: dict[str, Bucket],
    scores: dict[str, int],
    index_by_id: dict[str, int],
) -> list[Insight]:
    insights = []
    for bucket in buckets.values():
        rule = bucket.rule
        for other_id in rule.contradicts:
            other = buckets.get(other_id)
            if other is None or other_id == rule.id:
                continue

            weakest = min(severity_weight(rule.severity), severity_weight(other.rule.severity))
            penalty = -round_half_up(5 * weakest)
            apply_deltas(scores, {"clarity": penalty, "scopeCreep": min(-2, penalty)})

            evidence = _document_order(
                bucket.sentence_ids | other.sentence_ids, index_by_id, CONTRADICTION_EVIDENCE_CAP,
            )
            insights.append(Insight(
                id=f"in_contradiction_{rule.id}_{other_id}",
                type="contradiction",
                title=f"Contradictory statements detected: {rule.id} vs {other_id}",
                severity="warn",
                explanation="This job description contains statements that conflict with each other.",
                evidence_sentence_ids=tuple(evidence),
                bucket_score=weakest,
                evidence_summary=summarize(evidence, index_by_id),
            ))
            logger.debug("Contradiction detected", extra={"rule_id": rule.id})
    return insights


# ============================================================
# IMBALANCE
# ============================================================

def _mentions(rule: Rule, *needles: str) -> bool:
    rule_id = rule.id.lower()
    rule_type = rule.type.lower()
    return any(n in rule_id or n in rule_type for n in needles)


def is_responsibility_rule(rule: Rule) -> bool:
    return RESPONSIBILITY_TAG in rule.tags or _mentions(rule, "responsib")


def is_support_rule(rule: Rule) -> bool:
    return SUPPORT_TAG in rule.tags or _mentions(rule, "team", "support")


def detect_imbalance(
    buckets: dict[str, Bucket],
    scores: dict[str, int],
    index_by_id: dict[str, int],
) -> Optional[Insight]:
    responsibility = [b for b in buckets.values() if is_responsibility_rule(b.rule)]
    responsibility_count = sum(len(b.sentence_ids) for b in responsibility)
    support_count = sum(
        len(b.sentence_ids) for b in buckets.values() if is_support_rule(b.rule)
    )

    if responsibility_count < IMBALANCE_MIN_RESPONSIBILITIES or support_count > 0:
        return None

    apply_deltas(scores, IMBALANCE_DELTA)

    pooled: set[str] = set()
    for b in responsibility:
        pooled |= b.sentence_ids
    evidence = _document_order(pooled, index_by_id, IMBALANCE_EVIDENCE_CAP)

    logger.debug("Responsibility imbalance detected")
    return Insight(
        id="in_imbalance_responsibilities",
        type="scope",
        title="Many responsibilities listed with no support or resources",
        severity="warn",
        explanation=(
            "The role lists many responsibilities but provides no signals about "
            "team size, reporting, or support."
        ),
        evidence_sentence_ids=tuple(evidence),
        bucket_score=1.0,
        evidence_summary=summarize(evidence, index_by_id),
    )


# ============================================================
# COMPENSATION FALLBACK
# ============================================================

def compensation_fallback(
    green_flags: Sequence[GreenFlag],
    scores: dict[str, int],
) -> Optional[Insight]:
    if any(g.type == SALARY_FLAG_TYPE for g in green_flags):
        return None

    scores["compensationClarity"] = min(scores["compensationClarity"], COMPENSATION_CEILING)
    return Insight(
        id="in_comp_missing",
        type="compensation",
        title="Compensation not clearly stated",
        severity="warn",
        explanation=(
            "No obvious salary range or compensation details were detected. "
            "This often increases negotiation ambiguity."
        ),
        evidence_sentence_ids=(),
        bucket_score=1.0,
        evidence_summary=EvidenceSummary(count=0, clustered=False, strongest=None),
    )
