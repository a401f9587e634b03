"""Pydantic models for the Workload Review Engine.

Review entities (questions, risks, improvement plan items, evaluations and
milestones) plus the workload resource model they are evaluated against.
Enum values match the identifiers used by the AWS Well-Architected Tool API.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ScopeValidationError


# =============================================================================
# Enums
# =============================================================================


class Category(str, Enum):
    """Top-level grouping of review questions (a framework pillar)."""
    OPERATIONAL_EXCELLENCE = "operationalExcellence"
    SECURITY = "security"
    RELIABILITY = "reliability"
    PERFORMANCE_EFFICIENCY = "performance"
    COST_OPTIMIZATION = "costOptimization"
    SUSTAINABILITY = "sustainability"

    @classmethod
    def ordered(cls) -> tuple["Category", ...]:
        """All categories in the fixed enumeration order."""
        return CATEGORY_ORDER

    @classmethod
    def from_string(cls, value: str) -> "Category":
        """Parse a category from its API ID or a human-friendly name."""
        normalized = value.lower().replace("_", "").replace("-", "").replace(" ", "")
        mapping = {
            "operationalexcellence": cls.OPERATIONAL_EXCELLENCE,
            "operations": cls.OPERATIONAL_EXCELLENCE,
            "security": cls.SECURITY,
            "reliability": cls.RELIABILITY,
            "performance": cls.PERFORMANCE_EFFICIENCY,
            "performanceefficiency": cls.PERFORMANCE_EFFICIENCY,
            "costoptimization": cls.COST_OPTIMIZATION,
            "cost": cls.COST_OPTIMIZATION,
            "sustainability": cls.SUSTAINABILITY,
        }
        if normalized not in mapping:
            raise ValueError(f"unknown category: {value}")
        return mapping[normalized]

    @property
    def doc_path(self) -> str:
        """URL path segment of this category in the framework documentation."""
        return _CATEGORY_DOC_PATHS[self]


CATEGORY_ORDER = (
    Category.OPERATIONAL_EXCELLENCE,
    Category.SECURITY,
    Category.RELIABILITY,
    Category.PERFORMANCE_EFFICIENCY,
    Category.COST_OPTIMIZATION,
    Category.SUSTAINABILITY,
)

_CATEGORY_DOC_PATHS = {
    Category.OPERATIONAL_EXCELLENCE: "operational-excellence",
    Category.SECURITY: "security",
    Category.RELIABILITY: "reliability",
    Category.PERFORMANCE_EFFICIENCY: "performance-efficiency",
    Category.COST_OPTIMIZATION: "cost-optimization",
    Category.SUSTAINABILITY: "sustainability",
}


class ScopeLevel(str, Enum):
    """Selection granularity of a review operation."""
    WORKLOAD = "workload"
    CATEGORY = "category"
    ITEM = "item"


class RiskSeverity(str, Enum):
    """Severity of an identified risk."""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    NONE = "NONE"

    @classmethod
    def from_remote(cls, value: Optional[str]) -> "RiskSeverity":
        """Map a remote risk string (HIGH, MEDIUM, NONE, NOT_APPLICABLE, UNANSWERED)."""
        if not value:
            return cls.NONE
        mapping = {
            "HIGH": cls.HIGH,
            "MEDIUM": cls.MEDIUM,
        }
        return mapping.get(value.upper(), cls.NONE)

    @property
    def label(self) -> str:
        return self.value.capitalize()


class EstimatedEffort(str, Enum):
    """Effort estimate of an improvement plan item."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class SourceType(str, Enum):
    """Kind of input a workload model was built from."""
    PLAN = "plan"  # Fully resolved infrastructure plan
    HCL = "hcl"  # Declarative source only, computed values unresolved


# =============================================================================
# Scope
# =============================================================================


class Scope(BaseModel):
    """Hierarchical review scope.

    A category scope must name its category and an item scope must name a
    non-empty item ID. Invalid combinations are rejected by
    ``validate_scope`` rather than coerced.
    """
    level: ScopeLevel = ScopeLevel.WORKLOAD
    category: Optional[Category] = None
    item_id: Optional[str] = None

    @classmethod
    def workload(cls) -> "Scope":
        return cls(level=ScopeLevel.WORKLOAD)

    @classmethod
    def for_category(cls, category: Category) -> "Scope":
        return cls(level=ScopeLevel.CATEGORY, category=category)

    @classmethod
    def for_item(cls, item_id: str) -> "Scope":
        return cls(level=ScopeLevel.ITEM, item_id=item_id)

    def validate_scope(self) -> None:
        """Raise ScopeValidationError if the level invariants are violated."""
        if self.level == ScopeLevel.CATEGORY and self.category is None:
            raise ScopeValidationError(
                "category", "category is required when scope level is category"
            )
        if self.level == ScopeLevel.ITEM and not self.item_id:
            raise ScopeValidationError(
                "item_id", "item ID is required when scope level is item"
            )


# =============================================================================
# Questions and Answers
# =============================================================================


class Choice(BaseModel):
    """A best-practice option available on a question."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    description: str = ""


class BestPractice(BaseModel):
    """A best practice that a workload does not yet follow."""
    id: str
    title: str = ""
    description: str = ""


class Question(BaseModel):
    """A review question converted from a remote answer summary."""
    model_config = ConfigDict(frozen=True)

    id: str
    category: Category
    title: str = ""
    description: str = ""  # Not available in answer summaries
    choices: list[Choice] = Field(default_factory=list)
    risk_tag: Optional[str] = None  # Current remote risk, when reported


# =============================================================================
# Workload Model
# =============================================================================


class Resource(BaseModel):
    """An infrastructure resource declared by the workload."""
    id: str = ""
    type: str
    address: str
    properties: dict[str, Any] = Field(default_factory=dict)
    dependencies: list[str] = Field(default_factory=list)
    source_file: Optional[str] = None
    source_line: Optional[int] = None
    is_from_plan: bool = False
    module_path: Optional[str] = None


class WorkloadModel(BaseModel):
    """Parsed infrastructure-as-code workload.

    Supplied by the caller; the engine reads it but never persists it.
    """
    resources: list[Resource] = Field(default_factory=list)
    framework: str = "terraform"
    source_type: str = SourceType.PLAN.value
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "WorkloadModel":
        """Load a workload model from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.model_validate(data)


# =============================================================================
# Evaluations
# =============================================================================


class Evidence(BaseModel):
    """Evidence supporting a choice selection."""
    choice_id: str = ""
    explanation: str = ""
    resources: list[str] = Field(default_factory=list)
    confidence: float = 0.0


class Evaluation(BaseModel):
    """Automated evaluation of a single question.

    A zero confidence score is valid and signals insufficient data.
    """
    question: Question
    selected_choices: list[Choice] = Field(default_factory=list)
    evidence: list[Evidence] = Field(default_factory=list)
    confidence_score: float = 0.0
    notes: str = ""

    @field_validator("confidence_score")
    @classmethod
    def clamp_confidence(cls, v: float) -> float:
        return min(max(v, 0.0), 1.0)

    @classmethod
    def insufficient_data(cls, question: Question, reason: str) -> "Evaluation":
        """Zero-confidence placeholder used when the AI evaluator fails."""
        return cls(
            question=question,
            confidence_score=0.0,
            notes=f"Evaluation failed: {reason}",
        )


# =============================================================================
# Risks and Improvement Plan
# =============================================================================


class Risk(BaseModel):
    """A gap between the workload and recommended best practices."""
    id: str
    category: Category
    severity: RiskSeverity
    description: str = ""
    question: Question
    missing_best_practices: list[BestPractice] = Field(default_factory=list)
    affected_resources: list[str] = Field(default_factory=list)


class ImprovementPlanItem(BaseModel):
    """A prioritized, effort-estimated remediation derived from one risk."""
    id: str
    risk: Risk
    description: str = ""
    best_practice_refs: list[str] = Field(default_factory=list)
    affected_resources: list[str] = Field(default_factory=list)
    priority: int
    estimated_effort: EstimatedEffort


# =============================================================================
# Milestones
# =============================================================================


class MilestoneSnapshot(BaseModel):
    """Read-only point-in-time copy of a workload review."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    recorded_at: Optional[datetime] = None
    risk_counts: dict[str, int] = Field(default_factory=dict)

    def count(self, severity: RiskSeverity) -> int:
        """Number of risks recorded at the given severity (0 if absent)."""
        return self.risk_counts.get(severity.value, 0)


class MilestoneComparison(BaseModel):
    """Categorized changes between two milestones.

    new_risks and resolved_risks are never populated by the count-based
    comparison; it cannot tell a new risk from a changed count.
    """
    snapshot_id_1: str
    snapshot_id_2: str
    improvements: list[str] = Field(default_factory=list)
    regressions: list[str] = Field(default_factory=list)
    new_risks: list[str] = Field(default_factory=list)
    resolved_risks: list[str] = Field(default_factory=list)
    snapshot_1: Optional[MilestoneSnapshot] = None
    snapshot_2: Optional[MilestoneSnapshot] = None


# =============================================================================
# Review Results
# =============================================================================


class ResultsSummary(BaseModel):
    """Counters summarizing a review run."""
    total_questions: int = 0
    questions_evaluated: int = 0
    answers_submitted: int = 0
    high_risks: int = 0
    medium_risks: int = 0
    average_confidence: float = 0.0
    improvement_plan_size: int = 0


class ReviewResults(BaseModel):
    """Complete output of a review run."""
    remote_workload_id: str
    milestone_id: Optional[str] = None
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    evaluations: list[Evaluation] = Field(default_factory=list)
    risks: list[Risk] = Field(default_factory=list)
    improvement_plan: list[ImprovementPlanItem] = Field(default_factory=list)
    summary: ResultsSummary = Field(default_factory=ResultsSummary)
