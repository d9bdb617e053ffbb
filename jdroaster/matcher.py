"""
Evaluates one catalog rule against one sentence.

Phrase, regex, and combo payloads are dispatched on their type.
Exclusions are pre-indexed once per rule across the whole document
(exclusion_index) and then applied according to the rule's scope.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from jdroaster.catalog import (
    ComboMatch,
    ExcludePredicate,
    PhraseMatch,
    RegexMatch,
    Rule,
    compile_pattern,
)
from jdroaster.report import Sentence


@dataclass(frozen=True)
class MatchResult:
    matched: bool
    token: Optional[str] = None


NO_MATCH = MatchResult(matched=False)


def phrase_matches(
    text: str,
    phrases: Sequence[str],
    case_insensitive: bool = True,
    word_boundary: bool = False,
) -> MatchResult:
    """First configured phrase found in text. The token is the phrase as configured."""
    haystack = text.lower() if case_insensitive else text
    for raw in phrases:
        needle = raw.lower() if case_insensitive else raw
        if not word_boundary:
            if needle in haystack:
                return MatchResult(True, raw)
            continue
        flags = re.IGNORECASE if case_insensitive else 0
        if re.search(rf"\b{re.escape(needle)}\b", text, flags):
            return MatchResult(True, raw)
    return NO_MATCH


def regex_matches(text: str, patterns: Sequence[str], flags: str = "") -> MatchResult:
    """First configured pattern that matches. The token is the pattern source."""
    for pattern in patterns:
        if compile_pattern(pattern, flags).search(text):
            return MatchResult(True, pattern)
    return NO_MATCH


def _condition_matches(cond, text: str) -> MatchResult:
    if isinstance(cond, PhraseMatch):
        return phrase_matches(text, cond.phrases, cond.case_insensitive, cond.word_boundary)
    if isinstance(cond, RegexMatch):
        return regex_matches(text, cond.patterns, cond.flags)
    raise TypeError(f"Unsupported match condition: {type(cond).__name__}")


def matches(rule: Rule, sentence_text: str) -> MatchResult:
    """Evaluate a rule's match payload against one sentence."""
    payload = rule.match
    if isinstance(payload, ComboMatch):
        # Logical AND: every condition must hit somewhere in the sentence
        tokens = []
        for cond in payload.must_include:
            res = _condition_matches(cond, sentence_text)
            if not res.matched:
                return NO_MATCH
            tokens.append(res.token)
        return MatchResult(True, " + ".join(tokens))
    return _condition_matches(payload, sentence_text)


def exclude_matches(predicate: Optional[ExcludePredicate], text: str) -> bool:
    if predicate is None:
        return False
    if predicate.phrases and phrase_matches(text, predicate.phrases).matched:
        return True
    if predicate.patterns and regex_matches(text, predicate.patterns, predicate.flags).matched:
        return True
    return False


def exclusion_index(rule: Rule, sentences: Sequence[Sentence]) -> frozenset[int]:
    """Document indices of sentences on which the rule's exclude predicate fires."""
    if rule.exclude is None:
        return frozenset()
    return frozenset(
        i for i, s in enumerate(sentences) if exclude_matches(rule.exclude, s.text)
    )


def is_excluded(rule: Rule, index: int, excluded: frozenset[int]) -> bool:
    """
    Whether a candidate on sentence `index` is suppressed.

    document: any exclusion anywhere suppresses every candidate.
    sentence: only the excluded sentence itself.
    window:   any exclusion within [index - w, index + w].
    """
    if not excluded:
        return False
    if rule.exclude_scope == "document":
        return True
    if rule.exclude_scope == "sentence":
        return index in excluded
    w = rule.exclude_window
    return any(j in excluded for j in range(index - w, index + w + 1))
