"""Workload Review Engine.

Composes the resilient API client, scope resolver, risk deriver, confidence
scorer and milestone differ into the operations of a Well-Architected
review, and runs a complete review end to end.
"""

import json
import logging
import threading
from typing import Optional, Protocol

from .app_logging import get_logger
from .client import ReviewAPIClient
from .confidence import ConfidenceScorer
from .config import ReviewerConfig, get_config
from .errors import (
    InputValidationError,
    OperationCancelledError,
    RemoteAPIError,
    ReviewEngineError,
)
from .invoker import ResilientInvoker
from .milestones import MilestoneDiffer
from .report import decode_report, normalize_report_format
from .risk_deriver import RiskDeriver
from .schema import (
    Evaluation,
    ImprovementPlanItem,
    MilestoneComparison,
    Question,
    ResultsSummary,
    ReviewResults,
    RiskSeverity,
    Scope,
    WorkloadModel,
)
from .scope_resolver import ScopeResolver, require_workload_id


class QuestionEvaluator(Protocol):
    """AI backend that proposes an answer for a question."""

    def evaluate_question(self, question: Question, workload_model: WorkloadModel) -> Evaluation:
        ...


class ProgressReporter(Protocol):
    """Receives progress updates during a review run."""

    def report_step(self, step: str, message: str) -> None:
        ...

    def report_progress(self, current: int, total: int, message: str) -> None:
        ...

    def report_completion(self, summary: ResultsSummary) -> None:
        ...


class ReviewEngine:
    """Orchestrates a Well-Architected review for one workload.

    Principles:
    - Every remote call goes through the resilient invoker
    - Input is validated before anything is sent
    - AI evaluator failures degrade to zero-confidence answers
    - The engine holds configuration only; each call owns its data
    """

    def __init__(
        self,
        api: ReviewAPIClient,
        config: Optional[ReviewerConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or get_config()
        self.api = api
        self.logger = logger or get_logger("engine")
        self.resolver = ScopeResolver(api, logger=logger)
        self.risk_deriver = RiskDeriver(self.resolver, self.config.review, logger=logger)
        self.milestones = MilestoneDiffer(api, logger=logger)
        self.scorer = ConfidenceScorer()

    @classmethod
    def from_config(
        cls,
        config: Optional[ReviewerConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "ReviewEngine":
        """Create an engine talking to the Well-Architected Tool via boto3."""
        config = config or get_config()
        invoker = ResilientInvoker(config.retry, logger=logger)
        api = ReviewAPIClient.from_config(config.aws, invoker, config.review)
        return cls(api, config, logger=logger)

    # ------------------------------------------------------------------
    # Workloads
    # ------------------------------------------------------------------

    def find_workload(
        self,
        name: str,
        cancel: Optional[threading.Event] = None,
    ) -> Optional[str]:
        """ID of the workload named exactly ``name``, or None."""
        next_token: Optional[str] = None
        while True:
            page = self.api.list_workloads(name, next_token, cancel)
            for summary in page.get("WorkloadSummaries", []):
                if summary.get("WorkloadName") == name:
                    return summary.get("WorkloadId")
            next_token = page.get("NextToken")
            if not next_token:
                return None

    def create_workload(
        self,
        name: str,
        description: str = "",
        cancel: Optional[threading.Event] = None,
    ) -> str:
        """Create a workload, or reuse an existing one with the same name."""
        if not name:
            raise InputValidationError("workload_name", "workload name is required")

        try:
            existing = self.find_workload(name, cancel)
        except OperationCancelledError:
            raise
        except ReviewEngineError as err:
            self.logger.warning("workload lookup failed, creating instead: %s", err)
            existing = None
        if existing:
            self.logger.info(
                "workload %s already exists, reusing %s",
                name,
                existing,
                extra={"workload_name": name, "remote_workload_id": existing},
            )
            return existing

        try:
            response = self.api.create_workload(
                name, description or name, self.config.aws.region, cancel
            )
        except RemoteAPIError as err:
            if err.error_code == "ConflictException":
                existing = self.find_workload(name, cancel)
                if existing:
                    self.logger.info(
                        "workload %s exists (conflict), reusing %s",
                        name,
                        existing,
                        extra={"workload_name": name, "remote_workload_id": existing},
                    )
                    return existing
            raise

        remote_workload_id = response.get("WorkloadId", "")
        self.logger.info(
            "workload %s created as %s",
            name,
            remote_workload_id,
            extra={"workload_name": name, "remote_workload_id": remote_workload_id},
        )
        return remote_workload_id

    # ------------------------------------------------------------------
    # Questions and answers
    # ------------------------------------------------------------------

    def get_questions(
        self,
        remote_workload_id: str,
        scope: Scope,
        cancel: Optional[threading.Event] = None,
    ) -> list[Question]:
        return self.resolver.get_questions(remote_workload_id, scope, cancel)

    def evaluate_question(
        self,
        question: Question,
        workload_model: WorkloadModel,
        evaluator: QuestionEvaluator,
    ) -> Evaluation:
        """Evaluate a question with the AI backend and score the result.

        An evaluator failure never aborts the review: the question gets a
        zero-confidence evaluation whose notes carry the failure reason.
        """
        if question is None:
            raise InputValidationError("question", "question is required")
        if workload_model is None:
            raise InputValidationError("workload_model", "workload model is required")
        if evaluator is None:
            raise InputValidationError("evaluator", "evaluator is required")

        try:
            evaluation = evaluator.evaluate_question(question, workload_model)
        except Exception as err:
            self.logger.warning(
                "evaluation of %s failed, returning zero confidence: %s",
                question.id,
                err,
                extra={"question_id": question.id},
            )
            return Evaluation.insufficient_data(question, str(err))

        score = self.scorer.score(evaluation, workload_model)
        self.logger.info(
            "question %s evaluated (confidence %.2f)",
            question.id,
            score,
            extra={
                "question_id": question.id,
                "selected_choices": len(evaluation.selected_choices),
                "evidence_count": len(evaluation.evidence),
                "confidence": score,
            },
        )
        return evaluation.model_copy(update={"confidence_score": score})

    def submit_answer(
        self,
        remote_workload_id: str,
        question_id: str,
        evaluation: Evaluation,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        """Record an evaluation's choices and notes on the remote workload."""
        require_workload_id(remote_workload_id)
        if not question_id:
            raise InputValidationError("question_id", "question ID is required")
        if evaluation is None:
            raise InputValidationError("evaluation", "evaluation is required")

        choice_ids = [choice.id for choice in evaluation.selected_choices]
        notes = (
            f"Automated analysis (confidence: {evaluation.confidence_score:.2f})\n\n"
            f"{evaluation.notes}"
        )
        self.api.update_answer(remote_workload_id, question_id, choice_ids, notes, cancel)

        self.logger.info(
            "answer submitted for %s",
            question_id,
            extra={
                "remote_workload_id": remote_workload_id,
                "question_id": question_id,
                "choices_count": len(choice_ids),
                "confidence": evaluation.confidence_score,
            },
        )

    # ------------------------------------------------------------------
    # Risks, milestones and reports
    # ------------------------------------------------------------------

    def get_improvement_plan(
        self,
        remote_workload_id: str,
        workload_model: Optional[WorkloadModel] = None,
        cancel: Optional[threading.Event] = None,
    ) -> list[ImprovementPlanItem]:
        return self.risk_deriver.get_improvement_plan(remote_workload_id, workload_model, cancel)

    def create_milestone(
        self,
        remote_workload_id: str,
        name: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        return self.milestones.create_milestone(remote_workload_id, name, cancel)

    def compare_milestones(
        self,
        remote_workload_id: str,
        snapshot_id_1: str,
        snapshot_id_2: str,
        cancel: Optional[threading.Event] = None,
    ) -> MilestoneComparison:
        return self.milestones.compare(remote_workload_id, snapshot_id_1, snapshot_id_2, cancel)

    def get_consolidated_report(
        self,
        remote_workload_id: str,
        report_format: str,
        cancel: Optional[threading.Event] = None,
    ) -> bytes:
        """Fetch the consolidated report as raw bytes (PDF or JSON)."""
        require_workload_id(remote_workload_id)
        api_format = normalize_report_format(report_format)

        response = self.api.get_consolidated_report(api_format, cancel)
        if api_format == "JSON" and not response.get("Base64String"):
            # JSON reports arrive as structured metrics rather than base64
            data = json.dumps(response.get("Metrics", []), default=str).encode("utf-8")
        else:
            data = decode_report(response.get("Base64String"))

        self.logger.info(
            "consolidated %s report retrieved (%d bytes)",
            api_format,
            len(data),
            extra={"report_format": api_format, "size_bytes": len(data)},
        )
        return data

    # ------------------------------------------------------------------
    # Full review
    # ------------------------------------------------------------------

    def run_review(
        self,
        workload_name: str,
        scope: Scope,
        workload_model: WorkloadModel,
        evaluator: QuestionEvaluator,
        description: str = "",
        milestone_name: Optional[str] = None,
        progress: Optional[ProgressReporter] = None,
        cancel: Optional[threading.Event] = None,
    ) -> ReviewResults:
        """Run a review: questions, evaluation, submission, plan, milestone.

        Answer submission, plan and milestone failures are logged and the
        run continues with what it has.
        """
        scope.validate_scope()

        self._step(progress, "workload", "Preparing workload...")
        remote_workload_id = self.create_workload(workload_name, description, cancel)

        self._step(progress, "retrieve_questions", "Retrieving review questions...")
        questions = self.get_questions(remote_workload_id, scope, cancel)

        self._step(progress, "evaluate_questions", "Evaluating questions...")
        evaluations = []
        for index, question in enumerate(questions, start=1):
            if progress is not None:
                progress.report_progress(
                    index, len(questions), f"Evaluating question {index} of {len(questions)}"
                )
            evaluations.append(self.evaluate_question(question, workload_model, evaluator))

        self._step(progress, "submit_answers", "Submitting answers...")
        submitted = 0
        for index, evaluation in enumerate(evaluations, start=1):
            if progress is not None:
                progress.report_progress(
                    index, len(evaluations), f"Submitting answer {index} of {len(evaluations)}"
                )
            try:
                self.submit_answer(remote_workload_id, evaluation.question.id, evaluation, cancel)
                submitted += 1
            except OperationCancelledError:
                raise
            except ReviewEngineError as err:
                self.logger.error(
                    "failed to submit answer for %s, continuing: %s",
                    evaluation.question.id,
                    err,
                    extra={"question_id": evaluation.question.id},
                )

        self._step(progress, "improvement_plan", "Building improvement plan...")
        try:
            plan = self.get_improvement_plan(remote_workload_id, workload_model, cancel)
        except OperationCancelledError:
            raise
        except ReviewEngineError as err:
            self.logger.warning("failed to build improvement plan, continuing: %s", err)
            plan = []

        self._step(progress, "create_milestone", "Creating milestone...")
        milestone_id: Optional[str] = None
        try:
            milestone_id = self.create_milestone(remote_workload_id, milestone_name, cancel)
        except OperationCancelledError:
            raise
        except ReviewEngineError as err:
            self.logger.warning("failed to create milestone, continuing: %s", err)

        risks = [item.risk for item in plan]
        results = ReviewResults(
            remote_workload_id=remote_workload_id,
            milestone_id=milestone_id,
            evaluations=evaluations,
            risks=risks,
            improvement_plan=plan,
            summary=build_summary(len(questions), evaluations, submitted, plan),
        )
        if progress is not None:
            progress.report_completion(results.summary)
        return results

    def _step(self, progress: Optional[ProgressReporter], step: str, message: str) -> None:
        self.logger.info(message, extra={"step": step})
        if progress is not None:
            progress.report_step(step, message)


def build_summary(
    total_questions: int,
    evaluations: list[Evaluation],
    submitted: int,
    plan: list[ImprovementPlanItem],
) -> ResultsSummary:
    """Summary counters for a review run."""
    average = (
        sum(ev.confidence_score for ev in evaluations) / len(evaluations)
        if evaluations else 0.0
    )
    return ResultsSummary(
        total_questions=total_questions,
        questions_evaluated=len(evaluations),
        answers_submitted=submitted,
        high_risks=sum(1 for item in plan if item.risk.severity == RiskSeverity.HIGH),
        medium_risks=sum(1 for item in plan if item.risk.severity == RiskSeverity.MEDIUM),
        average_confidence=average,
        improvement_plan_size=len(plan),
    )
