"""
Analyzer — the deterministic analysis pipeline.

    raw text -> normalize -> segment -> match x catalog -> buckets
             -> score -> post-pass -> Report

The analyzer holds only its (read-only) catalog. Each call builds all of
its state locally, so one instance can serve concurrent callers and
several catalog versions can coexist side by side.
"""

from __future__ import annotations

import logging
from typing import Optional

from jdroaster.aggregator import collect_buckets, index_sentences, processing_order
from jdroaster.catalog import RuleCatalog, default_catalog
from jdroaster.normalize import normalize
from jdroaster.postpass import (
    compensation_fallback,
    detect_contradictions,
    detect_imbalance,
    summarize,
)
from jdroaster.report import GreenFlag, Insight, Report, Scores
from jdroaster.scorer import (
    SEVERITY_RANK,
    apply_deltas,
    base_scores,
    clamp_score,
    compute_bucket_delta,
)
from jdroaster.sentences import segment

logger = logging.getLogger(__name__)


class Analyzer:
    """
    Runs a rule catalog over job-description text.

    Never raises for string input: text with no recognizable sentences
    produces a Report with empty or fallback-only findings.
    """

    def __init__(self, catalog: RuleCatalog):
        self.catalog = catalog

    def analyze(self, raw_text: str) -> Report:
        """Analyze raw text. Pure: identical input yields an identical Report."""
        # --- Phase 1: Normalize and segment ---
        normalized_text = normalize(raw_text)
        sentences = segment(normalized_text)
        index_by_id = index_sentences(sentences)

        # --- Phase 2: Match and aggregate ---
        buckets = collect_buckets(self.catalog, sentences)

        # --- Phase 3: Score buckets in priority order ---
        scores = base_scores()
        insights: list[Insight] = []
        green_flags: list[GreenFlag] = []

        for bucket in processing_order(buckets.values()):
            rule = bucket.rule
            evidence = bucket.evidence(index_by_id)
            scored = compute_bucket_delta(rule, [index_by_id[sid] for sid in evidence])
            apply_deltas(scores, scored.delta)

            fields = dict(
                type=rule.type,
                title=rule.title,
                explanation=rule.explanation,
                evidence_sentence_ids=tuple(evidence),
                priority=rule.priority,
                bucket_score=scored.bucket_score,
                evidence_summary=summarize(evidence, index_by_id),
            )
            if rule.is_green_flag:
                green_flags.append(GreenFlag(id=f"gf_{rule.id}", **fields))
            else:
                insights.append(Insight(id=f"in_{rule.id}", severity=rule.severity, **fields))

        # --- Phase 4: Post-pass analyzers ---
        insights.extend(detect_contradictions(buckets, scores, index_by_id))
        imbalance = detect_imbalance(buckets, scores, index_by_id)
        if imbalance is not None:
            insights.append(imbalance)
        missing_comp = compensation_fallback(green_flags, scores)
        if missing_comp is not None:
            insights.append(missing_comp)

        # --- Phase 5: Assemble ---
        insights.sort(key=lambda f: (-SEVERITY_RANK[f.severity], f.id))
        final_scores = {dim: clamp_score(value) for dim, value in scores.items()}

        logger.debug(
            "Analysis complete",
            extra={
                "catalog_version": self.catalog.version,
                "sentences_count": len(sentences),
                "insights_count": len(insights),
                "green_flags_count": len(green_flags),
            },
        )

        return Report(
            normalized_text=normalized_text,
            sentences=tuple(sentences),
            scores=Scores.from_vector(final_scores),
            insights=tuple(insights),
            green_flags=tuple(green_flags),
        )


def analyze(raw_text: str, catalog: Optional[RuleCatalog] = None) -> Report:
    """Analyze with the given catalog, or the process-wide default catalog."""
    if catalog is None:
        catalog = default_catalog()
    return Analyzer(catalog).analyze(raw_text)
