"""
JD Roaster — Deterministic Job Description Analyzer

Scores job-description text on five dimensions and lists risks
("insights") and positives ("green flags"), each backed by the exact
sentences that triggered it. Rule-based, catalog-driven, no ML.

Public API:
  - analyze:      Analyze raw text with the default (or a given) catalog
  - Analyzer:     Pipeline bound to an explicit RuleCatalog
  - load_catalog: Load and validate a rule catalog file (fails fast)
  - normalize:    Canonicalize raw text
  - segment:      Split normalized text into offset-addressed sentences

Usage:
    from jdroaster import Analyzer, load_catalog
    analyzer = Analyzer(load_catalog("rules.json"))
    report = analyzer.analyze(text)
"""

__version__ = "1.0.0"

from jdroaster.analyzer import Analyzer, analyze
from jdroaster.catalog import (
    CatalogError,
    Rule,
    RuleCatalog,
    default_catalog,
    load_catalog,
    parse_catalog,
)
from jdroaster.normalize import normalize
from jdroaster.report import (
    REPORT_VERSION,
    EvidenceSummary,
    GreenFlag,
    Insight,
    Report,
    Scores,
    Sentence,
)
from jdroaster.sentences import segment

__all__ = [
    "analyze",
    "Analyzer",
    "CatalogError",
    "Rule",
    "RuleCatalog",
    "default_catalog",
    "load_catalog",
    "parse_catalog",
    "normalize",
    "segment",
    "REPORT_VERSION",
    "EvidenceSummary",
    "GreenFlag",
    "Insight",
    "Report",
    "Scores",
    "Sentence",
]
