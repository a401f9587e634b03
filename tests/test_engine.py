"""Tests for the review engine facade."""

import base64
import json
import logging
from unittest.mock import MagicMock

import pytest

from workload_review.config import ReviewerConfig
from workload_review.engine import ReviewEngine, build_summary
from workload_review.errors import (
    InputValidationError,
    RemoteAPIError,
    UnsupportedReportFormatError,
)
from workload_review.schema import (
    Category,
    Choice,
    Evaluation,
    Evidence,
    Question,
    Resource,
    Scope,
    WorkloadModel,
)


QUESTION = Question(
    id="sec_1",
    category=Category.SECURITY,
    title="How do you protect data at rest?",
)


class StubEvaluator:
    """Evaluator selecting the first choice with fixed confidence."""

    def __init__(self, confidence=0.9):
        self.confidence = confidence
        self.seen = []

    def evaluate_question(self, question, workload_model):
        self.seen.append(question.id)
        return Evaluation(
            question=question,
            selected_choices=question.choices[:1],
            evidence=[Evidence(choice_id="c1", explanation="found", resources=["aws_s3_bucket.main"])],
            confidence_score=self.confidence,
            notes="Encryption enabled",
        )


class FailingEvaluator:
    def evaluate_question(self, question, workload_model):
        raise RuntimeError("model offline")


@pytest.fixture
def engine(api):
    return ReviewEngine(api, ReviewerConfig(), logger=logging.getLogger("test.engine"))


@pytest.fixture
def workload_model():
    return WorkloadModel(resources=[
        Resource(type=t, address=f"{t}.main")
        for t in ("aws_s3_bucket", "aws_instance", "aws_kms_key", "aws_vpc", "aws_lb")
    ])


class TestCreateWorkload:
    """Tests for get-or-create workload semantics."""

    def test_reuses_exact_name(self, engine, boto_client):
        boto_client.list_workloads.return_value = {"WorkloadSummaries": [
            {"WorkloadId": "wl-other", "WorkloadName": "shop-api-v2"},
            {"WorkloadId": "wl-1", "WorkloadName": "shop-api"},
        ]}

        assert engine.create_workload("shop-api") == "wl-1"
        boto_client.create_workload.assert_not_called()

    def test_follows_pagination(self, engine, boto_client):
        boto_client.list_workloads.side_effect = [
            {"WorkloadSummaries": [{"WorkloadId": "x", "WorkloadName": "shop-api-2"}], "NextToken": "t"},
            {"WorkloadSummaries": [{"WorkloadId": "wl-1", "WorkloadName": "shop-api"}]},
        ]
        assert engine.create_workload("shop-api") == "wl-1"

    def test_creates_when_missing(self, engine, boto_client):
        boto_client.list_workloads.return_value = {"WorkloadSummaries": []}
        boto_client.create_workload.return_value = {"WorkloadId": "wl-new"}

        assert engine.create_workload("shop-api", "Shop API") == "wl-new"

        kwargs = boto_client.create_workload.call_args.kwargs
        assert kwargs["WorkloadName"] == "shop-api"
        assert kwargs["Description"] == "Shop API"
        assert kwargs["Lenses"] == ["wellarchitected"]
        assert kwargs["AwsRegions"] == ["us-east-1"]

    def test_conflict_reuses_existing(self, engine, boto_client, client_error):
        boto_client.list_workloads.side_effect = [
            {"WorkloadSummaries": []},
            {"WorkloadSummaries": [{"WorkloadId": "wl-1", "WorkloadName": "shop-api"}]},
        ]
        boto_client.create_workload.side_effect = client_error("ConflictException", "CreateWorkload")

        assert engine.create_workload("shop-api") == "wl-1"

    def test_other_errors_propagate(self, engine, boto_client, client_error):
        boto_client.list_workloads.return_value = {"WorkloadSummaries": []}
        boto_client.create_workload.side_effect = client_error("AccessDeniedException", "CreateWorkload")

        with pytest.raises(RemoteAPIError) as exc_info:
            engine.create_workload("shop-api")
        assert exc_info.value.error_code == "AccessDeniedException"

    def test_requires_name(self, engine, boto_client):
        with pytest.raises(InputValidationError):
            engine.create_workload("")
        boto_client.list_workloads.assert_not_called()


class TestEvaluateAndSubmit:
    """Tests for question evaluation and answer submission."""

    def test_evaluator_failure_returns_zero_confidence(self, engine, workload_model):
        evaluation = engine.evaluate_question(QUESTION, workload_model, FailingEvaluator())
        assert evaluation.confidence_score == 0.0
        assert evaluation.notes == "Evaluation failed: model offline"
        assert evaluation.question == QUESTION
        assert evaluation.selected_choices == []

    def test_confidence_is_rescored(self, engine):
        sparse = WorkloadModel(resources=[Resource(type="aws_s3_bucket", address="aws_s3_bucket.main")])
        evaluation = engine.evaluate_question(QUESTION, sparse, StubEvaluator(0.9))
        assert evaluation.confidence_score == pytest.approx(0.9 * (0.7 + 1.0 + 1.0) / 3)

    def test_requires_evaluator(self, engine, workload_model):
        with pytest.raises(InputValidationError):
            engine.evaluate_question(QUESTION, workload_model, None)

    def test_submit_answer(self, engine, boto_client):
        evaluation = Evaluation(
            question=QUESTION,
            selected_choices=[Choice(id="sec_1_c1")],
            confidence_score=0.75,
            notes="S3 encrypted",
        )

        engine.submit_answer("wl-1", "sec_1", evaluation)

        kwargs = boto_client.update_answer.call_args.kwargs
        assert kwargs["WorkloadId"] == "wl-1"
        assert kwargs["QuestionId"] == "sec_1"
        assert kwargs["SelectedChoices"] == ["sec_1_c1"]
        assert kwargs["Notes"] == "Automated analysis (confidence: 0.75)\n\nS3 encrypted"
        assert kwargs["IsApplicable"] is True

    def test_submit_requires_question_id(self, engine, boto_client):
        with pytest.raises(InputValidationError):
            engine.submit_answer("wl-1", "", Evaluation(question=QUESTION))
        boto_client.update_answer.assert_not_called()


class TestConsolidatedReport:
    """Tests for consolidated report retrieval."""

    def test_pdf_is_decoded(self, engine, boto_client):
        boto_client.get_consolidated_report.return_value = {
            "Base64String": base64.b64encode(b"%PDF-1.7 report").decode("ascii")
        }

        data = engine.get_consolidated_report("wl-1", "PDF")

        assert data == b"%PDF-1.7 report"
        boto_client.get_consolidated_report.assert_called_once_with(
            Format="PDF", IncludeSharedResources=False
        )

    def test_json_metrics(self, engine, boto_client):
        boto_client.get_consolidated_report.return_value = {
            "Metrics": [{"WorkloadId": "wl-1", "RiskCounts": {"HIGH": 2}}]
        }
        data = engine.get_consolidated_report("wl-1", "json")
        assert json.loads(data)[0]["RiskCounts"] == {"HIGH": 2}

    def test_pdf_without_payload_is_not_json(self, engine, boto_client):
        boto_client.get_consolidated_report.return_value = {"Metrics": []}
        assert engine.get_consolidated_report("wl-1", "pdf") == b""

    def test_unsupported_format(self, engine, boto_client):
        with pytest.raises(UnsupportedReportFormatError):
            engine.get_consolidated_report("wl-1", "docx")
        boto_client.get_consolidated_report.assert_not_called()


class TestRunReview:
    """Tests for a complete review run."""

    def _setup(self, boto_client, answer):
        boto_client.list_workloads.return_value = {"WorkloadSummaries": [
            {"WorkloadId": "wl-1", "WorkloadName": "shop-api"},
        ]}
        boto_client.list_answers.side_effect = lambda **kw: {
            "AnswerSummaries": (
                [
                    answer("sec_1", choices=("c1", "c2"), risk="HIGH"),
                    answer("sec_2", choices=("c1",), selected=("c1",), risk="NONE"),
                ]
                if kw["PillarId"] == "security" else []
            )
        }
        boto_client.create_milestone.return_value = {"MilestoneNumber": 4}

    def test_full_review(self, engine, boto_client, answer, workload_model):
        self._setup(boto_client, answer)
        evaluator = StubEvaluator(0.8)
        progress = MagicMock()

        results = engine.run_review(
            "shop-api",
            Scope.for_category(Category.SECURITY),
            workload_model,
            evaluator,
            progress=progress,
        )

        assert results.remote_workload_id == "wl-1"
        assert results.milestone_id == "4"
        assert evaluator.seen == ["sec_1", "sec_2"]
        assert boto_client.update_answer.call_count == 2
        assert results.summary.total_questions == 2
        assert results.summary.answers_submitted == 2
        assert results.summary.high_risks == 1
        assert results.summary.improvement_plan_size == 1
        assert results.summary.average_confidence == pytest.approx(0.8)
        assert results.improvement_plan[0].affected_resources
        progress.report_completion.assert_called_once_with(results.summary)
        assert progress.report_progress.call_count == 4

    def test_submission_failures_do_not_abort(self, engine, boto_client, answer, workload_model, client_error):
        self._setup(boto_client, answer)
        boto_client.update_answer.side_effect = client_error("ValidationException", "UpdateAnswer")

        results = engine.run_review(
            "shop-api", Scope.for_category(Category.SECURITY), workload_model, StubEvaluator()
        )

        assert results.summary.questions_evaluated == 2
        assert results.summary.answers_submitted == 0
        assert results.milestone_id == "4"

    def test_milestone_failure_leaves_id_empty(self, engine, boto_client, answer, workload_model, client_error):
        self._setup(boto_client, answer)
        boto_client.create_milestone.side_effect = client_error("AccessDeniedException", "CreateMilestone")

        results = engine.run_review(
            "shop-api", Scope.for_category(Category.SECURITY), workload_model, FailingEvaluator()
        )

        assert results.milestone_id is None
        assert results.summary.average_confidence == 0.0

    def test_build_summary_empty(self):
        summary = build_summary(0, [], 0, [])
        assert summary.average_confidence == 0.0
        assert summary.improvement_plan_size == 0
