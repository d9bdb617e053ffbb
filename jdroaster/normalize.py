"""
Canonical working text for the analysis pipeline.

All sentence offsets in a report are relative to the string returned
here, never to the raw input.
"""

from __future__ import annotations

import re

_CRLF = re.compile(r"\r+\n")
_SPACE_RUN = re.compile(r" {2,}")
_NEWLINE_RUN = re.compile(r"\n{3,}")


def normalize(raw: str) -> str:
    """
    Canonicalize raw text. Idempotent.

    CRLF -> LF, tabs -> single spaces, runs of 2+ spaces -> one space,
    runs of 3+ newlines -> exactly two, then trim.
    """
    text = _CRLF.sub("\n", raw)
    text = text.replace("\t", " ")
    text = _SPACE_RUN.sub(" ", text)
    text = _NEWLINE_RUN.sub("\n\n", text)
    return text.strip()
