"""
Sentence Segmenter: offset-addressed units over normalized text.

Lines are classified as headings, bullets, or body text. Headings and
bullets become atomic sentences; contiguous body lines form a paragraph
which is split at line breaks and at terminal punctuation followed by
whitespace (a period followed by a lowercase word does not end a sentence).

Every returned Sentence satisfies text == normalized_text[start:end].
Ids are sequential and document-scoped ("s_0", "s_1", ... in base 36).
"""

from __future__ import annotations

import re
import string
from dataclasses import dataclass

from jdroaster.report import Sentence

# Units shorter than this (after trimming) are stray fragments
MIN_UNIT_LENGTH = 2

HEADING_MIN_LENGTH = 3
HEADING_MAX_LENGTH = 60

_BULLET_RE = re.compile(r"(?:[-*•] |\d{1,2}[.)]\s+|\([a-zA-Z]\)\s+)")
_ALL_CAPS_RE = re.compile(r"[A-Z0-9\s\W_]+")
_SENTENCE_END_RE = re.compile(r"[.!?]+[\"'’”)\]]*(?=\s)")
_LINE_RE = re.compile(r"[^\n]+")

_BASE36 = string.digits + string.ascii_lowercase


@dataclass(frozen=True)
class _Unit:
    start: int
    end: int
    kind: str  # "heading" | "bullet" | "text"


def sentence_id(index: int) -> str:
    """Document-scoped sentence id for the index-th sentence."""
    digits = ""
    n = index
    while True:
        n, rem = divmod(n, 36)
        digits = _BASE36[rem] + digits
        if n == 0:
            break
    return f"s_{digits}"


def is_heading_line(line: str) -> bool:
    """'Responsibilities:' style labels, or short ALL CAPS lines."""
    t = line.strip()
    if not HEADING_MIN_LENGTH <= len(t) <= HEADING_MAX_LENGTH:
        return False
    return t.endswith(":") or bool(_ALL_CAPS_RE.fullmatch(t))


def is_bullet_line(line: str) -> bool:
    """'- x', '* x', '• x', '12. x', '3) x', '(a) x'."""
    return bool(_BULLET_RE.match(line.lstrip()))


def _trim(text: str, start: int, end: int) -> tuple[int, int]:
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    return start, end


def _build_units(text: str) -> list[_Unit]:
    units: list[_Unit] = []
    para_start = None
    para_end = 0

    def flush():
        nonlocal para_start
        if para_start is not None:
            units.append(_Unit(para_start, para_end, "text"))
        para_start = None

    offset = 0
    for line in text.split("\n"):
        line_start = offset
        line_end = offset + len(line)
        offset = line_end + 1

        if not line.strip():
            flush()
            continue

        if is_heading_line(line):
            flush()
            units.append(_Unit(line_start, line_end, "heading"))
            continue

        if is_bullet_line(line):
            flush()
            units.append(_Unit(line_start, line_end, "bullet"))
            continue

        # Body line: start or continue the open paragraph
        if para_start is None:
            para_start = line_start
        para_end = line_end

    flush()
    return units


def _lowercase_follows(text: str, pos: int, end: int) -> bool:
    """Whether the next letter after pos, before any terminator, is lowercase."""
    for ch in text[pos:end]:
        if ch.isalpha():
            return ch.islower()
        if ch in ".!?":
            return False
    return False


def split_paragraph(text: str, start: int, end: int) -> list[tuple[int, int]]:
    """
    Split text[start:end] into sentence spans, in absolute offsets.

    A line break always ends a sentence. Within a line, '!' or '?'
    followed by whitespace ends one, and so does '.' unless the next
    word starts lowercase ("approx. five", "e.g. remote").
    """
    spans = []
    for line in _LINE_RE.finditer(text, start, end):
        cursor = line.start()
        for m in _SENTENCE_END_RE.finditer(text, line.start(), line.end()):
            abbreviated = not any(c in "!?" for c in m.group())
            if abbreviated and _lowercase_follows(text, m.end(), line.end()):
                continue
            spans.append((cursor, m.end()))
            cursor = m.end()
        if cursor < line.end():
            spans.append((cursor, line.end()))
    return spans


def segment(normalized_text: str) -> list[Sentence]:
    """Split normalized text into ordered, non-overlapping sentences."""
    text = normalized_text
    spans: list[tuple[int, int]] = []

    for unit in _build_units(text):
        start, end = _trim(text, unit.start, unit.end)
        if end <= start:
            continue
        if unit.kind in ("heading", "bullet"):
            spans.append((start, end))
        else:
            spans.extend(split_paragraph(text, start, end))

    sentences: list[Sentence] = []
    for span_start, span_end in spans:
        start, end = _trim(text, span_start, span_end)
        if end - start < MIN_UNIT_LENGTH:
            continue
        sentences.append(Sentence(
            id=sentence_id(len(sentences)),
            start=start,
            end=end,
            text=text[start:end],
        ))
    return sentences
