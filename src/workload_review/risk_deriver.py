"""Risk & Plan Deriver - risks and improvement plan from review answers.

Converts answer summaries into typed risks, attaches the workload resources
each risk concerns, and builds a prioritized improvement plan. Priority and
effort are pure functions of a risk, so recomputing a plan is deterministic.
"""

import logging
import threading
from typing import Any, Optional

from .app_logging import get_logger
from .config import ReviewConfig
from .errors import OperationCancelledError
from .schema import (
    CATEGORY_ORDER,
    BestPractice,
    Category,
    EstimatedEffort,
    ImprovementPlanItem,
    Risk,
    RiskSeverity,
    WorkloadModel,
)
from .scope_resolver import ScopeResolver, answer_to_question, require_workload_id


# Remote risk values that do not represent a risk
NO_RISK_VALUES = frozenset(["NONE", "NOT_APPLICABLE"])

# Resource type prefixes relevant to each category's concerns
RELEVANT_RESOURCE_TYPES: dict[Category, tuple[str, ...]] = {
    Category.SECURITY: (
        "aws_s3_bucket",
        "aws_kms_key",
        "aws_iam_role",
        "aws_iam_policy",
        "aws_security_group",
        "aws_vpc",
        "aws_subnet",
    ),
    Category.RELIABILITY: (
        "aws_autoscaling_group",
        "aws_elb",
        "aws_lb",
        "aws_rds_instance",
        "aws_dynamodb_table",
        "aws_backup_plan",
    ),
    Category.PERFORMANCE_EFFICIENCY: (
        "aws_instance",
        "aws_lambda_function",
        "aws_cloudfront_distribution",
        "aws_elasticache_cluster",
    ),
    Category.COST_OPTIMIZATION: (
        "aws_instance",
        "aws_rds_instance",
        "aws_s3_bucket",
        "aws_ebs_volume",
    ),
    Category.OPERATIONAL_EXCELLENCE: (
        "aws_cloudwatch_log_group",
        "aws_cloudwatch_metric_alarm",
        "aws_sns_topic",
        "aws_lambda_function",
    ),
    Category.SUSTAINABILITY: (
        "aws_instance",
        "aws_autoscaling_group",
        "aws_lambda_function",
    ),
}

SEVERITY_BASE_PRIORITY = {
    RiskSeverity.HIGH: 100,
    RiskSeverity.MEDIUM: 50,
    RiskSeverity.NONE: 10,
}

MISSING_PRACTICE_WEIGHT = 5


def extract_missing_best_practices(answer: dict[str, Any]) -> list[BestPractice]:
    """Available choices whose IDs are not among the selected choices."""
    selected = set(answer.get("SelectedChoices", []))
    return [
        BestPractice(
            id=choice.get("ChoiceId", ""),
            title=choice.get("Title", ""),
            description=choice.get("Description", ""),
        )
        for choice in answer.get("Choices", [])
        if choice.get("ChoiceId", "") not in selected
    ]


def build_risk_description(answer: dict[str, Any]) -> str:
    title = answer.get("QuestionTitle", "")
    level = answer.get("Risk", "")
    description = f"Risk identified for question: {title} (Risk Level: {level})"

    unselected = len(answer.get("Choices", [])) - len(answer.get("SelectedChoices", []))
    if unselected > 0:
        description += f"\n{unselected} best practice(s) not implemented."
    return description


def answer_to_risk(answer: dict[str, Any], category: Category) -> Risk:
    """Convert one at-risk answer summary to a Risk."""
    question = answer_to_question(answer, category)
    return Risk(
        id=question.id,
        category=category,
        severity=RiskSeverity.from_remote(answer.get("Risk")),
        description=build_risk_description(answer),
        question=question,
        missing_best_practices=extract_missing_best_practices(answer),
    )


def matches_resource_type(resource_type: str, prefix: str) -> bool:
    return resource_type.startswith(prefix)


def find_affected_resources(risk: Risk, workload_model: WorkloadModel) -> list[str]:
    """Addresses of resources whose type matches the risk category's prefixes."""
    prefixes = RELEVANT_RESOURCE_TYPES.get(risk.category, ())
    return [
        resource.address
        for resource in workload_model.resources
        if any(matches_resource_type(resource.type, p) for p in prefixes)
    ]


def calculate_priority(risk: Risk) -> int:
    """Severity base plus a fixed weight per missing best practice."""
    base = SEVERITY_BASE_PRIORITY[risk.severity]
    return base + MISSING_PRACTICE_WEIGHT * len(risk.missing_best_practices)


def estimate_effort(risk: Risk) -> EstimatedEffort:
    complexity = len(risk.missing_best_practices) + len(risk.affected_resources)
    if complexity <= 2:
        return EstimatedEffort.LOW
    if complexity <= 5:
        return EstimatedEffort.MEDIUM
    return EstimatedEffort.HIGH


def best_practice_refs(risk: Risk, docs_base_url: str) -> list[str]:
    """Documentation link per missing best practice."""
    base = docs_base_url.rstrip("/")
    return [
        f"{base}/{risk.category.doc_path}.html#{bp.id}"
        for bp in risk.missing_best_practices
    ]


class RiskDeriver:
    """Derives risks and the improvement plan for a workload."""

    def __init__(
        self,
        resolver: ScopeResolver,
        review_config: Optional[ReviewConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.resolver = resolver
        self.review_config = review_config or ReviewConfig()
        self.logger = logger or get_logger("risk_deriver")

    def get_risks(
        self,
        remote_workload_id: str,
        cancel: Optional[threading.Event] = None,
    ) -> list[Risk]:
        """Risks across all categories.

        A category that cannot be fetched is logged and skipped; the result
        is a best-effort list rather than a failure.
        """
        require_workload_id(remote_workload_id)

        risks: list[Risk] = []
        for category in CATEGORY_ORDER:
            try:
                category_risks = [
                    answer_to_risk(answer, category)
                    for answer in self.resolver.iter_answers(remote_workload_id, category, cancel)
                    if answer.get("Risk") not in NO_RISK_VALUES
                ]
            except OperationCancelledError:
                raise
            except Exception as err:
                self.logger.warning(
                    "failed to get risks for category %s: %s",
                    category.value,
                    err,
                    extra={"category": category.value, "remote_workload_id": remote_workload_id},
                )
                continue
            risks.extend(category_risks)

        return risks

    def enhance_with_resources(
        self,
        risks: list[Risk],
        workload_model: Optional[WorkloadModel],
    ) -> list[Risk]:
        """Attach affected resource addresses to each risk.

        Returns new Risk objects; without a workload model the risks pass
        through unchanged.
        """
        if workload_model is None or not workload_model.resources:
            return risks

        self.logger.info(
            "enhancing %d risks with %d resources",
            len(risks),
            len(workload_model.resources),
            extra={"risk_count": len(risks), "resource_count": len(workload_model.resources)},
        )
        return [
            risk.model_copy(
                update={"affected_resources": find_affected_resources(risk, workload_model)}
            )
            for risk in risks
        ]

    def build_improvement_plan(self, risks: list[Risk]) -> list[ImprovementPlanItem]:
        """One plan item per risk, in input order."""
        return [
            ImprovementPlanItem(
                id=f"improvement-{index}",
                risk=risk,
                description=risk.description,
                best_practice_refs=best_practice_refs(risk, self.review_config.docs_base_url),
                affected_resources=list(risk.affected_resources),
                priority=calculate_priority(risk),
                estimated_effort=estimate_effort(risk),
            )
            for index, risk in enumerate(risks, start=1)
        ]

    def get_improvement_plan(
        self,
        remote_workload_id: str,
        workload_model: Optional[WorkloadModel] = None,
        cancel: Optional[threading.Event] = None,
    ) -> list[ImprovementPlanItem]:
        """Risks, resource enrichment and plan construction in one call."""
        risks = self.get_risks(remote_workload_id, cancel)
        risks = self.enhance_with_resources(risks, workload_model)
        plan = self.build_improvement_plan(risks)

        self.logger.info(
            "improvement plan built with %d items",
            len(plan),
            extra={"remote_workload_id": remote_workload_id, "improvement_items": len(plan)},
        )
        return plan
