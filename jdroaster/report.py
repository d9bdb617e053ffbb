"""
Immutable output models of an analysis.

Pydantic models serialized with camelCase field names. Every model is
frozen; collections are tuples so a finished Report cannot be mutated
by consumers.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Report schema version (stamped on every report)
REPORT_VERSION = 1

Severity = Literal["info", "warn", "high"]


class _Frozen(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Sentence(_Frozen):
    """A sentence or atomic unit, addressed by half-open offsets into normalizedText."""
    id: str
    start: int
    end: int
    text: str


class Scores(_Frozen):
    """Five-dimension score vector. Higher is healthier on every dimension."""
    clarity: int = Field(50, ge=0, le=100)
    vagueness: int = Field(50, ge=0, le=100)
    scope_creep: int = Field(50, ge=0, le=100)
    on_call_in_disguise: int = Field(50, ge=0, le=100)
    compensation_clarity: int = Field(50, ge=0, le=100)

    @classmethod
    def from_vector(cls, vector: dict[str, int]) -> "Scores":
        """Build from a camelCase-keyed running score vector."""
        return cls.model_validate(vector)

    def as_vector(self) -> dict[str, int]:
        return self.model_dump(by_alias=True)


class EvidenceSummary(_Frozen):
    count: int
    clustered: bool
    strongest: Optional[str] = None


class _Finding(_Frozen):
    id: str
    type: str
    title: str
    explanation: str
    evidence_sentence_ids: tuple[str, ...] = ()
    priority: int = 0
    bucket_score: float = 0.0
    evidence_summary: EvidenceSummary = EvidenceSummary(count=0, clustered=False)


class GreenFlag(_Finding):
    """A positive signal, evidence-backed."""


class Insight(_Finding):
    """A risk signal, evidence-backed."""
    severity: Severity = "info"


class Report(_Frozen):
    version: int = REPORT_VERSION
    created_at: Optional[str] = None
    normalized_text: str
    sentences: tuple[Sentence, ...]
    scores: Scores
    insights: tuple[Insight, ...]
    green_flags: tuple[GreenFlag, ...]

    def stamped(self, created_at: str) -> "Report":
        """Return a copy carrying caller-assigned metadata."""
        return self.model_copy(update={"created_at": created_at})
