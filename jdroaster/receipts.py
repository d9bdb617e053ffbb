"""
Read-only helpers for consumers of a Report.

These never mutate the report. This is the consumer API for displaying
a Report: sentence_by_id locates evidence text, build_pieces walks the
sentences over normalizedText (gaps rendered verbatim) for highlighting,
and score_label maps scores to display labels. format_report, used by
the CLI, is built on top of them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Literal, Optional

from jdroaster.report import Report, Sentence
from jdroaster.scorer import round_half_up

SentenceKind = Literal["insight", "green", "none"]


@dataclass(frozen=True)
class Piece:
    """A run of normalized text: either a gap or one sentence."""
    text: str
    sentence_id: Optional[str] = None
    kind: SentenceKind = "none"


def sentence_by_id(sentences: Iterable[Sentence]) -> dict[str, Sentence]:
    return {s.id: s for s in sentences}


def sentence_kinds(report: Report) -> dict[str, SentenceKind]:
    """Green flags first, then insights override on overlap."""
    kinds: dict[str, SentenceKind] = {}
    for finding in report.green_flags:
        for sid in finding.evidence_sentence_ids:
            kinds[sid] = "green"
    for finding in report.insights:
        for sid in finding.evidence_sentence_ids:
            kinds[sid] = "insight"
    return kinds


def build_pieces(report: Report) -> list[Piece]:
    """
    Ordered pieces covering the whole of normalizedText.

    Concatenating every piece's text reproduces normalizedText exactly.
    """
    text = report.normalized_text
    kinds = sentence_kinds(report)
    pieces: list[Piece] = []
    cursor = 0

    for s in report.sentences:
        if s.start > cursor:
            pieces.append(Piece(text[cursor:s.start]))
        pieces.append(Piece(text[s.start:s.end], s.id, kinds.get(s.id, "none")))
        cursor = s.end

    if cursor < len(text):
        pieces.append(Piece(text[cursor:]))
    return pieces


# ============================================================
# SCORE LABELS
# ============================================================

def display_score(score: float) -> int:
    """Clamp to [0, 100] and round for display."""
    if not math.isfinite(score):
        return 0
    return round_half_up(min(100, max(0, score)))


def score_label(score: float) -> str:
    """'Good' is earned at 75; below 30 is 'High risk'."""
    s = display_score(score)
    if s >= 75:
        return "Good"
    if s >= 50:
        return "Mixed"
    if s >= 30:
        return "Risky"
    return "High risk"


# ============================================================
# TEXT RENDERING
# ============================================================

_SEVERITY_MARK = {"high": "!!", "warn": "! ", "info": "  "}
_KIND_BRACKETS = {"insight": ("[!", "]"), "green": ("[+", "]"), "none": ("", "")}


def highlighted_text(report: Report) -> str:
    """normalizedText with cited sentences bracketed: [!risk] and [+positive]."""
    out = []
    for piece in build_pieces(report):
        opening, closing = _KIND_BRACKETS[piece.kind]
        out.append(f"{opening}{piece.text}{closing}")
    return "".join(out)


def format_report(report: Report) -> str:
    """Plain-text receipts view: scores, each finding with cited sentences, highlighted text."""
    by_id = sentence_by_id(report.sentences)
    lines = ["Scores"]
    for name, value in report.scores.as_vector().items():
        lines.append(f"  {name:<20} {value:>3}  {score_label(value)}")

    lines.append("")
    lines.append(f"Insights ({len(report.insights)})")
    for insight in report.insights:
        lines.append(f"{_SEVERITY_MARK[insight.severity]}[{insight.severity}] {insight.title}")
        lines.extend(_receipts(insight.evidence_sentence_ids, by_id))

    lines.append("")
    lines.append(f"Green flags ({len(report.green_flags)})")
    for flag in report.green_flags:
        lines.append(f"  + {flag.title}")
        lines.extend(_receipts(flag.evidence_sentence_ids, by_id))

    lines.append("")
    lines.append("Text")
    lines.append(highlighted_text(report))
    return "\n".join(lines)


def _receipts(ids: Iterable[str], by_id: dict[str, Sentence]) -> list[str]:
    out = []
    for sid in ids:
        sentence = by_id.get(sid)
        if sentence is not None:
            out.append(f"      {sid}: \"{sentence.text}\"")
    return out
