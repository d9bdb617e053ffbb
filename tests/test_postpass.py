"""
Tests for the post-pass analyzers: contradictions, responsibility
imbalance, and the compensation fallback.
"""

from jdroaster.aggregator import Bucket
from jdroaster.catalog import Rule
from jdroaster.postpass import (
    compensation_fallback,
    detect_contradictions,
    detect_imbalance,
    is_responsibility_rule,
    is_support_rule,
)
from jdroaster.report import GreenFlag
from jdroaster.scorer import base_scores
from jdroaster.sentences import sentence_id


INDEX = {sentence_id(i): i for i in range(40)}


def make_rule(**overrides):
    data = {
        "id": "r1",
        "group": "g",
        "type": "t",
        "title": "T",
        "explanation": "E",
        "mode": "phrase",
        "match": {"phrases": ["x"]},
    }
    data.update(overrides)
    return Rule.model_validate(data)


def bucket(rule, *indices):
    return Bucket(rule=rule, sentence_ids={sentence_id(i) for i in indices})


class TestContradictions:

    def test_partner_fired(self):
        a = make_rule(id="remote", severity="warn", contradicts=["onsite"])
        b = make_rule(id="onsite", severity="high")
        buckets = {"remote": bucket(a, 4, 1), "onsite": bucket(b, 2)}
        scores = base_scores()

        insights = detect_contradictions(buckets, scores, INDEX)

        assert len(insights) == 1
        insight = insights[0]
        assert insight.id == "in_contradiction_remote_onsite"
        assert insight.type == "contradiction"
        assert insight.severity == "warn"
        assert insight.evidence_sentence_ids == ("s_1", "s_2", "s_4")
        assert insight.bucket_score == 1.0
        assert scores["clarity"] == 45
        assert scores["scopeCreep"] == 45

    def test_weakest_severity_sets_penalty(self):
        a = make_rule(id="a", severity="info", contradicts=["b"])
        b = make_rule(id="b", severity="high")
        scores = base_scores()
        detect_contradictions({"a": bucket(a, 0), "b": bucket(b, 1)}, scores, INDEX)
        # -round(5 * 0.5) == -3; scopeCreep takes at least -2
        assert scores["clarity"] == 47
        assert scores["scopeCreep"] == 47

    def test_scope_creep_floor_penalty(self):
        a = make_rule(id="a", severity="info", contradicts=["b"])
        b = make_rule(id="b", severity="info")
        scores = base_scores()
        detect_contradictions({"a": bucket(a, 0), "b": bucket(b, 1)}, scores, INDEX)
        assert scores["scopeCreep"] <= 48

    def test_partner_absent(self):
        a = make_rule(id="a", contradicts=["b"])
        scores = base_scores()
        assert detect_contradictions({"a": bucket(a, 0)}, scores, INDEX) == []
        assert scores == base_scores()

    def test_evidence_capped_in_document_order(self):
        a = make_rule(id="a", contradicts=["b"])
        b = make_rule(id="b")
        buckets = {"a": bucket(a, 9, 7, 5, 3), "b": bucket(b, 8, 6, 4, 2)}
        insight = detect_contradictions(buckets, base_scores(), INDEX)[0]
        assert insight.evidence_sentence_ids == ("s_2", "s_3", "s_4", "s_5", "s_6", "s_7")

    def test_each_declaration_is_separate(self):
        a = make_rule(id="a", contradicts=["b"])
        b = make_rule(id="b", contradicts=["a"])
        insights = detect_contradictions(
            {"a": bucket(a, 0), "b": bucket(b, 1)}, base_scores(), INDEX,
        )
        assert [i.id for i in insights] == ["in_contradiction_a_b", "in_contradiction_b_a"]


class TestImbalance:

    def responsibilities(self, *indices):
        rule = make_rule(id="duties", type="load", tags=["responsibility-load"])
        return bucket(rule, *indices)

    def test_fires_without_support(self):
        buckets = {"duties": self.responsibilities(*range(1, 9))}
        scores = base_scores()

        insight = detect_imbalance(buckets, scores, INDEX)

        assert insight is not None
        assert insight.id == "in_imbalance_responsibilities"
        assert insight.type == "scope"
        assert insight.severity == "warn"
        assert insight.bucket_score == 1.0
        assert insight.evidence_sentence_ids == tuple(sentence_id(i) for i in range(1, 9))
        assert scores["scopeCreep"] == 40
        assert scores["clarity"] == 45

    def test_threshold(self):
        buckets = {"duties": self.responsibilities(*range(5))}
        scores = base_scores()
        assert detect_imbalance(buckets, scores, INDEX) is None
        assert scores == base_scores()

        buckets = {"duties": self.responsibilities(*range(6))}
        assert detect_imbalance(buckets, base_scores(), INDEX) is not None

    def test_support_suppresses(self):
        support = make_rule(id="helpers", type="perk", tags=["support-signal"])
        buckets = {
            "duties": self.responsibilities(*range(10)),
            "helpers": bucket(support, 11),
        }
        scores = base_scores()
        assert detect_imbalance(buckets, scores, INDEX) is None
        assert scores == base_scores()

    def test_evidence_pooled_and_capped(self):
        other = make_rule(id="more_responsibilities", type="load")
        buckets = {
            "duties": self.responsibilities(10, 12, 14, 16, 18),
            "more_responsibilities": bucket(other, 1, 3, 5, 7, 9),
        }
        insight = detect_imbalance(buckets, base_scores(), INDEX)
        assert insight.evidence_sentence_ids == tuple(
            sentence_id(i) for i in (1, 3, 5, 7, 9, 10, 12, 14)
        )

    def test_classification(self):
        assert is_responsibility_rule(make_rule(id="x", tags=["responsibility-load"]))
        assert is_responsibility_rule(make_rule(id="responsibility_bullets"))
        assert is_responsibility_rule(make_rule(id="x", type="Responsibility_load"))
        assert not is_responsibility_rule(make_rule(id="x"))
        assert is_support_rule(make_rule(id="x", tags=["support-signal"]))
        assert is_support_rule(make_rule(id="team_size"))
        assert is_support_rule(make_rule(id="x", type="support"))
        assert not is_support_rule(make_rule(id="x"))


class TestCompensationFallback:

    def flag(self, type_):
        return GreenFlag(id=f"gf_{type_}", type=type_, title="T", explanation="E")

    def test_missing_salary(self):
        scores = base_scores()
        insight = compensation_fallback([], scores)
        assert insight.id == "in_comp_missing"
        assert insight.type == "compensation"
        assert insight.severity == "warn"
        assert insight.evidence_sentence_ids == ()
        assert insight.evidence_summary.count == 0
        assert scores["compensationClarity"] == 30

    def test_ceiling_never_raises(self):
        scores = base_scores()
        scores["compensationClarity"] = 12
        compensation_fallback([self.flag("remote")], scores)
        assert scores["compensationClarity"] == 12

    def test_salary_flag_present(self):
        scores = base_scores()
        scores["compensationClarity"] = 70
        assert compensation_fallback([self.flag("salary_range_present")], scores) is None
        assert scores["compensationClarity"] == 70

    def test_other_dimensions_untouched(self):
        scores = base_scores()
        compensation_fallback([], scores)
        assert {k: v for k, v in scores.items() if k != "compensationClarity"} == {
            "clarity": 50, "vagueness": 50, "scopeCreep": 50, "onCallInDisguise": 50,
        }
