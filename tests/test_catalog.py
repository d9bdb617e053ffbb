"""
Tests for rule catalog loading and validation.

A malformed catalog must fail at load time with CatalogError, never
later during an analysis.
"""

import json

import pytest

from jdroaster.catalog import (
    CatalogError,
    ComboMatch,
    PhraseMatch,
    RegexMatch,
    Rule,
    RuleCatalog,
    default_catalog,
    load_catalog,
    parse_catalog,
    regex_flags,
)


def rule_data(**overrides):
    data = {
        "id": "r1",
        "group": "vagueness",
        "type": "vague_language",
        "title": "Buzzwords",
        "explanation": "Buzzwords describe a vibe.",
        "mode": "phrase",
        "match": {"phrases": ["rockstar"]},
    }
    data.update(overrides)
    return data


def catalog_data(*rules, version="test"):
    return {"version": version, "rules": list(rules)}


class TestDefaultCatalog:

    def test_loads(self):
        catalog = default_catalog()
        assert isinstance(catalog, RuleCatalog)
        assert len(catalog) > 0
        assert catalog.version != "0"

    def test_cached(self):
        assert default_catalog() is default_catalog()

    def test_ids_unique(self):
        ids = [r.id for r in default_catalog().rules]
        assert len(ids) == len(set(ids))

    def test_covers_every_mode_and_scope(self):
        rules = default_catalog().rules
        assert {r.mode for r in rules} == {"phrase", "regex", "combo"}
        assert {r.exclude_scope for r in rules if r.exclude} == {"sentence", "document", "window"}

    def test_has_salary_flag(self):
        salary = default_catalog().get("salary_range")
        assert salary is not None
        assert salary.is_green_flag
        assert salary.type == "salary_range_present"

    def test_contradiction_partners_exist(self):
        catalog = default_catalog()
        for rule in catalog.rules:
            for other in rule.contradicts:
                assert catalog.get(other) is not None


class TestRuleParsing:

    def test_defaults(self):
        rule = Rule.model_validate(rule_data())
        assert rule.kind == "insight"
        assert rule.severity == "info"
        assert rule.max_evidence == 8
        assert rule.priority == 0
        assert rule.exclude is None
        assert rule.exclude_scope == "sentence"
        assert rule.exclude_window == 2
        assert rule.score_delta == {}
        assert rule.contradicts == ()
        assert not rule.is_green_flag

    def test_camel_case_fields(self):
        rule = Rule.model_validate(rule_data(
            kind="greenFlag",
            scoreDelta={"scopeCreep": -4, "onCallInDisguise": 2},
            maxEvidence=3,
            excludeScope="window",
            excludeWindow=1,
        ))
        assert rule.is_green_flag
        assert rule.score_delta == {"scopeCreep": -4, "onCallInDisguise": 2}
        assert rule.max_evidence == 3
        assert rule.exclude_scope == "window"
        assert rule.exclude_window == 1

    def test_phrase_payload(self):
        rule = Rule.model_validate(rule_data(
            match={"phrases": ["Guru"], "caseInsensitive": False, "wordBoundary": True},
        ))
        assert isinstance(rule.match, PhraseMatch)
        assert rule.match.case_insensitive is False
        assert rule.match.word_boundary is True

    def test_regex_payload(self):
        rule = Rule.model_validate(rule_data(
            mode="regex", match={"patterns": [r"\bninja\b"], "flags": "i"},
        ))
        assert isinstance(rule.match, RegexMatch)
        assert rule.match.flags == "i"

    def test_combo_payload(self):
        rule = Rule.model_validate(rule_data(
            mode="combo",
            match={"mustInclude": [
                {"mode": "phrase", "phrases": ["on-call"]},
                {"mode": "regex", "patterns": ["as needed"]},
            ]},
        ))
        assert isinstance(rule.match, ComboMatch)
        assert [type(c) for c in rule.match.must_include] == [PhraseMatch, RegexMatch]

    def test_negative_exclude_window_treated_as_zero(self):
        rule = Rule.model_validate(rule_data(excludeScope="window", excludeWindow=-3))
        assert rule.exclude_window == 0


class TestCatalogErrors:

    def test_unsupported_mode(self):
        with pytest.raises(CatalogError):
            parse_catalog(catalog_data(rule_data(mode="fuzzy")))

    def test_payload_not_matching_mode(self):
        with pytest.raises(CatalogError):
            parse_catalog(catalog_data(rule_data(mode="regex", match={"phrases": ["x"]})))

    def test_missing_required_field(self):
        data = rule_data()
        del data["title"]
        with pytest.raises(CatalogError):
            parse_catalog(catalog_data(data))

    def test_empty_phrase_list(self):
        with pytest.raises(CatalogError):
            parse_catalog(catalog_data(rule_data(match={"phrases": []})))

    def test_invalid_regex(self):
        with pytest.raises(CatalogError, match="invalid regex"):
            parse_catalog(catalog_data(rule_data(mode="regex", match={"patterns": ["(unclosed"]})))

    def test_invalid_exclude_regex(self):
        with pytest.raises(CatalogError):
            parse_catalog(catalog_data(rule_data(exclude={"patterns": ["[a-"]})))

    def test_unsupported_flag(self):
        with pytest.raises(CatalogError, match="unsupported regex flag"):
            parse_catalog(catalog_data(rule_data(mode="regex", match={"patterns": ["x"], "flags": "iq"})))

    def test_invalid_combo_condition(self):
        with pytest.raises(CatalogError):
            parse_catalog(catalog_data(rule_data(
                mode="combo",
                match={"mustInclude": [{"mode": "combo", "mustInclude": []}]},
            )))

    def test_unknown_dimension(self):
        with pytest.raises(CatalogError):
            parse_catalog(catalog_data(rule_data(scoreDelta={"happiness": 5})))

    def test_unknown_severity(self):
        with pytest.raises(CatalogError):
            parse_catalog(catalog_data(rule_data(severity="critical")))

    def test_zero_max_evidence(self):
        with pytest.raises(CatalogError):
            parse_catalog(catalog_data(rule_data(maxEvidence=0)))

    def test_unknown_key(self):
        with pytest.raises(CatalogError):
            parse_catalog(catalog_data(rule_data(weight=3)))

    def test_duplicate_ids(self):
        with pytest.raises(CatalogError, match="duplicate rule id"):
            parse_catalog(catalog_data(rule_data(), rule_data()))

    def test_unknown_contradicts(self):
        with pytest.raises(CatalogError, match="unknown rule"):
            parse_catalog(catalog_data(rule_data(contradicts=["nope"])))

    def test_forward_contradicts_reference_is_fine(self):
        catalog = parse_catalog(catalog_data(
            rule_data(id="a", contradicts=["b"]),
            rule_data(id="b"),
        ))
        assert catalog.get("a").contradicts == ("b",)

    def test_rules_required(self):
        with pytest.raises(CatalogError):
            parse_catalog({"version": "1"})


class TestLoadCatalog:

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps(catalog_data(rule_data(), version="7")), encoding="utf-8")
        catalog = load_catalog(path)
        assert catalog.version == "7"
        assert [r.id for r in catalog.rules] == ["r1"]

    def test_version_defaults(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"rules": [rule_data()]}), encoding="utf-8")
        assert load_catalog(path).version == "0"

    def test_numeric_version(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"version": 3, "rules": [rule_data()]}), encoding="utf-8")
        assert load_catalog(path).version == "3"

    def test_boolean_version_rejected(self):
        with pytest.raises(CatalogError):
            parse_catalog({"version": True, "rules": [rule_data()]})

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogError, match="Failed to read"):
            load_catalog(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(CatalogError, match="Invalid JSON"):
            load_catalog(path)

    def test_invalid_schema(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"rules": [{"id": "x"}]}), encoding="utf-8")
        with pytest.raises(CatalogError, match="Invalid rule catalog"):
            load_catalog(path)

    def test_two_versions_coexist(self, tmp_path):
        a = tmp_path / "a.json"
        b = tmp_path / "b.json"
        a.write_text(json.dumps(catalog_data(rule_data(), version="a")), encoding="utf-8")
        b.write_text(json.dumps(catalog_data(rule_data(id="other"), version="b")), encoding="utf-8")
        cat_a, cat_b = load_catalog(a), load_catalog(b)
        assert cat_a.version == "a" and cat_b.version == "b"
        assert cat_a.get("other") is None


class TestRegexFlags:

    def test_known_letters(self):
        import re
        assert regex_flags("") == 0
        assert regex_flags("i") == re.IGNORECASE
        assert regex_flags("ims") == re.IGNORECASE | re.MULTILINE | re.DOTALL

    def test_js_only_letters_are_noops(self):
        assert regex_flags("gu") == 0

    def test_unknown_letter(self):
        with pytest.raises(ValueError):
            regex_flags("x")
