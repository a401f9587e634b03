"""
Custom exceptions for the workload review engine.
"""
from typing import Optional


class ReviewEngineError(Exception):
    """Base exception for the review engine."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class InputValidationError(ReviewEngineError, ValueError):
    """Raised when caller input is invalid, before any remote call is made."""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class ScopeValidationError(InputValidationError):
    """Raised when a review scope violates its level invariants."""


class UnsupportedReportFormatError(InputValidationError):
    """Raised when a consolidated report is requested in an unknown format."""
    def __init__(self, report_format: str):
        self.report_format = report_format
        super().__init__(
            "format",
            f"unsupported report format: {report_format} (supported: pdf, json)",
        )


class RemoteAPIError(ReviewEngineError):
    """Raised when the Well-Architected API rejects an operation."""
    def __init__(
        self,
        operation: str,
        message: str,
        error_code: Optional[str] = None,
    ):
        self.operation = operation
        self.error_code = error_code
        self.remote_message = message
        if error_code:
            text = f"{operation} failed [{error_code}]: {message}"
        else:
            text = f"{operation} failed: {message}"
        super().__init__(text)


class RetryExhaustedError(ReviewEngineError):
    """Raised when a retryable operation keeps failing after every attempt."""
    def __init__(self, operation: str, attempts: int, last_error: Exception):
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"max retries exceeded for {operation} after {attempts} attempts: {last_error}"
        )


class OperationCancelledError(ReviewEngineError):
    """Raised when the caller cancels an operation while it waits to retry."""
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"{operation} cancelled")


class QuestionNotFoundError(ReviewEngineError, LookupError):
    """Raised when an item-scoped lookup finds no matching question."""
    def __init__(self, question_id: str):
        self.question_id = question_id
        super().__init__(f"question {question_id} not found")


class CategoryFetchError(ReviewEngineError):
    """Raised when the answers of a single category cannot be fetched."""
    def __init__(self, category: str, cause: Exception):
        self.category = category
        self.cause = cause
        super().__init__(f"failed to get questions for category {category}: {cause}")


class MilestoneFetchError(ReviewEngineError):
    """Raised when one of the two compared milestones cannot be fetched."""
    def __init__(self, position: int, milestone_id: str, cause: Exception):
        self.position = position
        self.milestone_id = milestone_id
        self.cause = cause
        super().__init__(
            f"failed to get milestone {position} ({milestone_id}): {cause}"
        )
