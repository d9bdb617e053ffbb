"""
Rule Catalog — versioned, read-only matching configuration.

The catalog is external data ({"version": ..., "rules": [...]}) loaded
once and validated up front. A malformed rule is a configuration error
raised at load time as CatalogError, never during an analysis.

Each rule's match payload is a tagged union keyed by `mode`:
  - phrase: {phrases, caseInsensitive=True, wordBoundary=False}
  - regex:  {patterns, flags=""}
  - combo:  {mustInclude: [phrase-or-regex condition, ...]}   (logical AND)

Regex flags use single letters (i, m, s, u, g). `g` and `u` have no
Python equivalent and are accepted as no-ops.
"""

from __future__ import annotations

import json
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from jdroaster.config import settings

logger = logging.getLogger(__name__)

DIMENSIONS = (
    "clarity",
    "vagueness",
    "scopeCreep",
    "onCallInDisguise",
    "compensationClarity",
)
Dimension = Literal[
    "clarity",
    "vagueness",
    "scopeCreep",
    "onCallInDisguise",
    "compensationClarity",
]

# Declarative membership in the imbalance detector's groups
RESPONSIBILITY_TAG = "responsibility-load"
SUPPORT_TAG = "support-signal"

DEFAULT_MAX_EVIDENCE = 8
DEFAULT_EXCLUDE_WINDOW = 2

_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "u": 0,
    "g": 0,
}


class CatalogError(Exception):
    """The rule catalog could not be loaded or failed validation."""


def regex_flags(flags: str) -> int:
    """Translate a flag-letter string ("i", "im", ...) into re flags."""
    value = 0
    for letter in flags:
        if letter not in _REGEX_FLAGS:
            raise ValueError(f"unsupported regex flag {letter!r}")
        value |= _REGEX_FLAGS[letter]
    return value


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str, flags: str = "") -> re.Pattern:
    return re.compile(pattern, regex_flags(flags))


# ============================================================
# MATCH PAYLOADS
# ============================================================

class _CatalogModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


def _check_patterns(patterns: tuple[str, ...], flags: str) -> None:
    regex_flags(flags)
    for pattern in patterns:
        try:
            compile_pattern(pattern, flags)
        except re.error as exc:
            raise ValueError(f"invalid regex {pattern!r}: {exc}") from exc


class PhraseMatch(_CatalogModel):
    mode: Literal["phrase"]
    phrases: tuple[str, ...] = Field(..., min_length=1)
    case_insensitive: bool = True
    word_boundary: bool = False


class RegexMatch(_CatalogModel):
    mode: Literal["regex"]
    patterns: tuple[str, ...] = Field(..., min_length=1)
    flags: str = ""

    @model_validator(mode="after")
    def _compiles(self) -> "RegexMatch":
        _check_patterns(self.patterns, self.flags)
        return self


Condition = Annotated[Union[PhraseMatch, RegexMatch], Field(discriminator="mode")]


class ComboMatch(_CatalogModel):
    mode: Literal["combo"]
    must_include: tuple[Condition, ...] = Field(..., min_length=1)


MatchSpec = Annotated[
    Union[PhraseMatch, RegexMatch, ComboMatch], Field(discriminator="mode"),
]


class ExcludePredicate(_CatalogModel):
    """Negative predicate. Phrases are case-insensitive substrings."""
    phrases: tuple[str, ...] = ()
    patterns: tuple[str, ...] = ()
    flags: str = ""

    @model_validator(mode="after")
    def _compiles(self) -> "ExcludePredicate":
        _check_patterns(self.patterns, self.flags)
        return self


# ============================================================
# RULES
# ============================================================

class Rule(_CatalogModel):
    """A single catalog rule. Immutable once loaded."""
    id: str = Field(..., min_length=1)
    group: str
    kind: Literal["insight", "greenFlag"] = "insight"
    type: str
    title: str
    explanation: str
    severity: Literal["info", "warn", "high"] = "info"
    score_delta: dict[Dimension, int] = Field(default_factory=dict)
    max_evidence: int = Field(DEFAULT_MAX_EVIDENCE, ge=1)
    priority: int = 0
    mode: Literal["phrase", "regex", "combo"]
    match: MatchSpec
    exclude: Optional[ExcludePredicate] = None
    exclude_scope: Literal["sentence", "document", "window"] = "sentence"
    exclude_window: int = Field(DEFAULT_EXCLUDE_WINDOW, ge=0)
    contradicts: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    # Scoring overrides (see scorer.py for defaults)
    tau: Optional[float] = Field(None, gt=0)
    cluster_window: Optional[int] = Field(None, ge=0)
    max_per_rule_impact: Optional[int] = Field(None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _tag_match_payload(cls, data: Any) -> Any:
        # The payload's shape is dictated by the rule-level mode
        if isinstance(data, dict) and isinstance(data.get("match"), dict):
            data = dict(data)
            data["match"] = {**data["match"], "mode": data.get("mode")}
        return data

    @field_validator("exclude_window", mode="before")
    @classmethod
    def _non_negative_window(cls, value: Any) -> Any:
        if isinstance(value, int) and value < 0:
            return 0
        return value

    @property
    def is_green_flag(self) -> bool:
        return self.kind == "greenFlag"


class RuleCatalog(_CatalogModel):
    """Ordered, versioned rule collection."""
    version: str = "0"
    rules: tuple[Rule, ...]

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_text(cls, value: Any) -> Any:
        # Catalog files may carry a bare number ("version": 3)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @model_validator(mode="after")
    def _check_references(self) -> "RuleCatalog":
        seen: set[str] = set()
        for rule in self.rules:
            if rule.id in seen:
                raise ValueError(f"duplicate rule id {rule.id!r}")
            seen.add(rule.id)
        for rule in self.rules:
            for other in rule.contradicts:
                if other not in seen:
                    raise ValueError(
                        f"rule {rule.id!r} contradicts unknown rule {other!r}"
                    )
        return self

    def get(self, rule_id: str) -> Optional[Rule]:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None

    def __len__(self) -> int:
        return len(self.rules)


# ============================================================
# LOADING
# ============================================================

def parse_catalog(data: Any) -> RuleCatalog:
    """Validate an already-decoded catalog document."""
    try:
        return RuleCatalog.model_validate(data)
    except ValidationError as exc:
        raise CatalogError(f"Invalid rule catalog: {exc}") from exc


def load_catalog(path: str | Path | None = None) -> RuleCatalog:
    """
    Load and validate a catalog file. Fails fast.

    Args:
        path: JSON catalog path. Defaults to settings.CATALOG_PATH.

    Raises:
        CatalogError on unreadable, undecodable, or invalid catalogs.
    """
    path = Path(path or settings.CATALOG_PATH)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CatalogError(f"Failed to read rule catalog '{path}': {exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CatalogError(f"Invalid JSON in rule catalog '{path}': {exc}") from exc

    catalog = parse_catalog(data)
    logger.info(
        "Rule catalog loaded",
        extra={
            "catalog_version": catalog.version,
            "catalog_path": str(path),
            "rule_count": len(catalog),
        },
    )
    return catalog


@lru_cache(maxsize=1)
def default_catalog() -> RuleCatalog:
    """The configured catalog, loaded once per process."""
    return load_catalog()
