"""Tests for confidence scoring."""

import pytest

from workload_review.confidence import ConfidenceScorer
from workload_review.schema import (
    Category,
    Evaluation,
    Evidence,
    Question,
    Resource,
    WorkloadModel,
)


QUESTION = Question(id="q1", category=Category.SECURITY, title="Question")


def _evaluation(base=0.9, evidence=None):
    return Evaluation(question=QUESTION, confidence_score=base, evidence=evidence or [])


def _model(count=5, source_type="plan"):
    return WorkloadModel(
        resources=[Resource(type="aws_instance", address=f"aws_instance.r{i}") for i in range(count)],
        source_type=source_type,
    )


CITED = [Evidence(choice_id="c1", explanation="bucket encrypted", resources=["aws_s3_bucket.data"])]
UNCITED = [Evidence(choice_id="c1", explanation="looks fine")]


class TestFactors:
    """Tests for individual data-quality factors."""

    @pytest.mark.parametrize("count,expected", [(0, 0.0), (1, 0.7), (4, 0.7), (5, 1.0), (40, 1.0)])
    def test_resource_factor(self, count, expected):
        assert ConfidenceScorer().resource_factor(_model(count)) == expected

    def test_evidence_factor(self):
        scorer = ConfidenceScorer()
        assert scorer.evidence_factor(_evaluation()) == 0.5
        assert scorer.evidence_factor(_evaluation(evidence=UNCITED)) == 0.7
        assert scorer.evidence_factor(_evaluation(evidence=UNCITED + CITED)) == 1.0

    @pytest.mark.parametrize("source_type,expected", [("plan", 1.0), ("hcl", 0.85), ("cdk", 0.7)])
    def test_source_factor(self, source_type, expected):
        assert ConfidenceScorer().source_factor(_model(source_type=source_type)) == expected


class TestScore:
    """Tests for the combined score."""

    def test_complete_data_keeps_base(self):
        score = ConfidenceScorer().score(_evaluation(0.8, CITED), _model(10))
        assert score == pytest.approx(0.8)

    def test_sparse_data_discounts(self):
        score = ConfidenceScorer().score(_evaluation(0.9), _model(0, "hcl"))
        assert score == pytest.approx(0.9 * (0.0 + 0.5 + 0.85) / 3)

    def test_missing_inputs_score_zero(self):
        scorer = ConfidenceScorer()
        assert scorer.score(None, _model()) == 0.0
        assert scorer.score(_evaluation(), None) == 0.0

    @pytest.mark.parametrize("count", [0, 2, 5])
    @pytest.mark.parametrize("source_type", ["plan", "hcl", "unknown"])
    @pytest.mark.parametrize("evidence", [[], UNCITED, CITED])
    def test_never_exceeds_base(self, count, source_type, evidence):
        evaluation = _evaluation(0.75, evidence)
        score = ConfidenceScorer().score(evaluation, _model(count, source_type))
        assert 0.0 <= score <= 0.75

    def test_more_resources_never_lower(self):
        scorer = ConfidenceScorer()
        evaluation = _evaluation(0.9, UNCITED)
        scores = [scorer.score(evaluation, _model(n)) for n in (0, 1, 5)]
        assert scores == sorted(scores)

    @pytest.mark.parametrize("count,source_type", [(0, "plan"), (3, "hcl"), (10, "plan")])
    def test_weaker_evidence_never_higher(self, count, source_type):
        scorer = ConfidenceScorer()
        model = _model(count, source_type)
        scores = [
            scorer.score(_evaluation(0.8, evidence), model)
            for evidence in (CITED, UNCITED, [])
        ]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.parametrize("count,evidence", [(0, []), (3, UNCITED), (10, CITED)])
    def test_weaker_source_never_higher(self, count, evidence):
        scorer = ConfidenceScorer()
        evaluation = _evaluation(0.8, evidence)
        scores = [
            scorer.score(evaluation, _model(count, source_type))
            for source_type in ("plan", "hcl", "unknown")
        ]
        assert scores == sorted(scores, reverse=True)

    def test_combine_clamps(self):
        scorer = ConfidenceScorer()
        assert scorer.combine(1.5, [1.0, 1.0, 1.0]) == 1.0
        assert scorer.combine(-0.5, [1.0]) == 0.0
        assert scorer.combine(0.9, []) == 0.0
