"""
Per-rule buckets of matched sentences.

A bucket exists only for rules with at least one post-exclusion hit.
Buckets are transient: they live for a single analysis call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from jdroaster.catalog import Rule, RuleCatalog
from jdroaster.matcher import exclusion_index, is_excluded, matches
from jdroaster.report import Sentence

logger = logging.getLogger(__name__)


@dataclass
class Bucket:
    """All sentence evidence matched by one rule during one analysis."""
    rule: Rule
    sentence_ids: set[str] = field(default_factory=set)
    match_tokens: dict[str, list[str]] = field(default_factory=dict)

    def add(self, sentence_id: str, token: str | None) -> None:
        self.sentence_ids.add(sentence_id)
        if token:
            self.match_tokens.setdefault(sentence_id, []).append(token)

    def ordered_ids(self, index_by_id: dict[str, int]) -> list[str]:
        """Valid sentence ids in document order."""
        valid = (sid for sid in self.sentence_ids if sid in index_by_id)
        return sorted(valid, key=index_by_id.__getitem__)

    def evidence(self, index_by_id: dict[str, int]) -> list[str]:
        """Document-ordered ids truncated to maxEvidence, earliest kept."""
        return self.ordered_ids(index_by_id)[: self.rule.max_evidence]


def index_sentences(sentences: Sequence[Sentence]) -> dict[str, int]:
    """Sentence id -> document index. Computed once per analysis."""
    return {s.id: i for i, s in enumerate(sentences)}


def collect_buckets(catalog: RuleCatalog, sentences: Sequence[Sentence]) -> dict[str, Bucket]:
    """
    Run every rule over every sentence.

    Returns buckets keyed by rule id, in catalog order.
    """
    buckets: dict[str, Bucket] = {}

    for rule in catalog.rules:
        excluded = exclusion_index(rule, sentences)
        if rule.exclude_scope == "document" and excluded:
            logger.debug("Rule suppressed by document exclusion", extra={"rule_id": rule.id})
            continue

        bucket = Bucket(rule=rule)
        for i, sentence in enumerate(sentences):
            if is_excluded(rule, i, excluded):
                continue
            res = matches(rule, sentence.text)
            if res.matched:
                bucket.add(sentence.id, res.token)

        if bucket.sentence_ids:
            buckets[rule.id] = bucket

    return buckets


def processing_order(buckets: Iterable[Bucket]) -> list[Bucket]:
    """Priority descending, then rule id ascending."""
    return sorted(buckets, key=lambda b: (-b.rule.priority, b.rule.id))
