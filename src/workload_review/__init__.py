"""Workload review engine for the AWS Well-Architected Tool."""

from workload_review.config import ReviewerConfig, get_config, load_config
from workload_review.engine import ProgressReporter, QuestionEvaluator, ReviewEngine
from workload_review.errors import (
    InputValidationError,
    OperationCancelledError,
    RemoteAPIError,
    RetryExhaustedError,
    ReviewEngineError,
)
from workload_review.schema import Category, Scope, ScopeLevel, WorkloadModel

__version__ = "1.0.0"

__all__ = [
    "ReviewEngine",
    "QuestionEvaluator",
    "ProgressReporter",
    "ReviewerConfig",
    "get_config",
    "load_config",
    "Category",
    "Scope",
    "ScopeLevel",
    "WorkloadModel",
    "ReviewEngineError",
    "InputValidationError",
    "RemoteAPIError",
    "RetryExhaustedError",
    "OperationCancelledError",
]
