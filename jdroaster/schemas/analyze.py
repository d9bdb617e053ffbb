"""
API Schemas — Request and Response Models

Pydantic models for the JD Roaster HTTP API. Wire names are camelCase.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from jdroaster.config import settings
from jdroaster.report import Report, Sentence


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================
# ANALYZE
# ============================================================

class AnalyzeRequest(_Wire):
    """POST /api/analyze-text and /api/debug-sentences request body."""
    raw_text: str = Field("", max_length=settings.MAX_TEXT_LENGTH,
                          description="Job description text to analyze.")

    model_config = {"json_schema_extra": {"examples": [
        {"rawText": "We need a rockstar who wears many hats. Salary, $90k-$110k DOE."},
    ]}}


class AnalyzeResponse(_Wire):
    """POST /api/analyze-text response body."""
    ok: bool = True
    report: Report


class DebugSentencesResponse(_Wire):
    """POST /api/debug-sentences response body."""
    ok: bool = True
    normalized_text: str
    sentences: list[Sentence]


class ErrorResponse(_Wire):
    ok: bool = False
    error: str


# ============================================================
# CATALOG
# ============================================================

class RuleSummary(_Wire):
    id: str
    group: str
    kind: str
    type: str
    title: str
    severity: str
    mode: str
    priority: int
    contradicts: list[str] = []


class RulesResponse(_Wire):
    catalog_version: str
    total: int
    rules: list[RuleSummary]


# ============================================================
# HEALTH
# ============================================================

class HealthResponse(_Wire):
    status: str
    version: str
    report_version: int
    catalog_version: Optional[str] = None
    rules_loaded: int
