"""Tests for review entity models."""

import json

import pytest

from workload_review.errors import InputValidationError, ScopeValidationError
from workload_review.schema import (
    CATEGORY_ORDER,
    Category,
    Evaluation,
    MilestoneSnapshot,
    Question,
    RiskSeverity,
    Scope,
    ScopeLevel,
    WorkloadModel,
)


class TestCategory:
    """Tests for category parsing and ordering."""

    def test_fixed_order(self):
        assert [c.value for c in CATEGORY_ORDER] == [
            "operationalExcellence",
            "security",
            "reliability",
            "performance",
            "costOptimization",
            "sustainability",
        ]
        assert Category.ordered() == CATEGORY_ORDER

    @pytest.mark.parametrize("value,expected", [
        ("security", Category.SECURITY),
        ("operationalExcellence", Category.OPERATIONAL_EXCELLENCE),
        ("cost-optimization", Category.COST_OPTIMIZATION),
        ("Performance Efficiency", Category.PERFORMANCE_EFFICIENCY),
    ])
    def test_from_string(self, value, expected):
        assert Category.from_string(value) == expected

    def test_unknown_category(self):
        with pytest.raises(ValueError, match="unknown category"):
            Category.from_string("happiness")


class TestScope:
    """Tests for scope invariants."""

    def test_constructors_are_valid(self):
        Scope.workload().validate_scope()
        Scope.for_category(Category.RELIABILITY).validate_scope()
        Scope.for_item("rel_1").validate_scope()

    def test_category_required(self):
        with pytest.raises(ScopeValidationError) as exc_info:
            Scope(level=ScopeLevel.CATEGORY).validate_scope()
        assert exc_info.value.field == "category"
        assert isinstance(exc_info.value, InputValidationError)

    def test_item_required(self):
        with pytest.raises(ScopeValidationError, match="item ID is required"):
            Scope(level=ScopeLevel.ITEM, item_id="").validate_scope()


class TestModels:
    """Tests for model helpers."""

    @pytest.mark.parametrize("value,expected", [
        ("HIGH", RiskSeverity.HIGH),
        ("medium", RiskSeverity.MEDIUM),
        ("UNANSWERED", RiskSeverity.NONE),
        (None, RiskSeverity.NONE),
    ])
    def test_severity_from_remote(self, value, expected):
        assert RiskSeverity.from_remote(value) == expected

    def test_confidence_clamped(self):
        question = Question(id="q", category=Category.SECURITY)
        assert Evaluation(question=question, confidence_score=1.7).confidence_score == 1.0
        assert Evaluation(question=question, confidence_score=-0.2).confidence_score == 0.0

    def test_snapshot_count_defaults_to_zero(self):
        snapshot = MilestoneSnapshot(id="1", risk_counts={"HIGH": 2})
        assert snapshot.count(RiskSeverity.HIGH) == 2
        assert snapshot.count(RiskSeverity.MEDIUM) == 0

    def test_workload_model_from_file(self, tmp_path):
        path = tmp_path / "model.json"
        path.write_text(json.dumps({
            "source_type": "hcl",
            "resources": [
                {"type": "aws_s3_bucket", "address": "aws_s3_bucket.logs", "source_file": "main.tf"},
            ],
        }))

        model = WorkloadModel.from_file(path)

        assert model.framework == "terraform"
        assert model.source_type == "hcl"
        assert model.resources[0].address == "aws_s3_bucket.logs"
