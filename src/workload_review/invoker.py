"""Resilient Invoker - retry layer for Well-Architected API calls.

Wraps a single remote call with classification-driven retry and exponential
backoff. Only the error codes the review API documents as transient are
retried; everything else fails on the first attempt.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Optional, TypeVar

from botocore.exceptions import ClientError

from .app_logging import get_logger
from .config import RetryConfig
from .errors import OperationCancelledError, RetryExhaustedError

T = TypeVar("T")


class ErrorClass(str, Enum):
    """Retry classification of a failed call."""
    RETRYABLE = "retryable"
    TERMINAL = "terminal"
    UNCLASSIFIED = "unclassified"


RETRYABLE_ERROR_CODES = frozenset([
    "ThrottlingException",
    "ServiceUnavailableException",
    "InternalServerException",
])

TERMINAL_ERROR_CODES = frozenset([
    "ResourceNotFoundException",
    "AccessDeniedException",
    "ValidationException",
])


def error_code_of(err: BaseException) -> Optional[str]:
    """Extract the remote error code from a botocore or engine error."""
    if isinstance(err, ClientError):
        return err.response.get("Error", {}).get("Code")
    return getattr(err, "error_code", None)


def classify_error(err: BaseException) -> ErrorClass:
    """Classify an error as retryable, terminal or unclassified."""
    code = error_code_of(err)
    if code in RETRYABLE_ERROR_CODES:
        return ErrorClass.RETRYABLE
    if code in TERMINAL_ERROR_CODES:
        return ErrorClass.TERMINAL
    return ErrorClass.UNCLASSIFIED


class ResilientInvoker:
    """Executes remote operations with bounded, cancellable retries.

    The invoker holds only its retry configuration and logger; it is safe to
    share across concurrent requests.
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or RetryConfig()
        self.logger = logger or get_logger("invoker")

    def invoke(
        self,
        operation: str,
        fn: Callable[[], T],
        cancel: Optional[threading.Event] = None,
    ) -> T:
        """Run ``fn`` and retry it on transient failures.

        Args:
            operation: Remote operation name, used in logs and errors
            fn: Zero-argument callable performing the remote call
            cancel: Optional event; setting it aborts any pending backoff

        Returns:
            Whatever ``fn`` returns on its first successful attempt

        Raises:
            RetryExhaustedError: Retryable failures on every attempt
            OperationCancelledError: Cancelled while waiting to retry
            Exception: Terminal and unclassified errors, re-raised as-is
        """
        max_retries = self.config.max_retries
        backoff = self.config.base_delay
        waiter = cancel or threading.Event()

        for attempt in range(1, max_retries + 1):
            try:
                return fn()
            except Exception as err:
                classification = classify_error(err)
                code = error_code_of(err)

                if classification != ErrorClass.RETRYABLE:
                    self.logger.debug(
                        "%s failed with %s error, not retrying",
                        operation,
                        classification.value,
                        extra={
                            "operation": operation,
                            "attempt": attempt,
                            "error_code": code,
                            "classification": classification.value,
                        },
                    )
                    raise

                if attempt == max_retries:
                    self.logger.error(
                        "max retries exceeded for %s after %d attempts",
                        operation,
                        attempt,
                        extra={
                            "operation": operation,
                            "attempts": attempt,
                            "error_code": code,
                            "classification": classification.value,
                        },
                    )
                    raise RetryExhaustedError(operation, attempt, err) from err

                self.logger.warning(
                    "retryable error on %s (%s), backing off %.2fs",
                    operation,
                    code,
                    backoff,
                    extra={
                        "operation": operation,
                        "attempt": attempt,
                        "error_code": code,
                        "classification": classification.value,
                        "backoff": backoff,
                    },
                )
                if waiter.wait(backoff):
                    self.logger.info(
                        "%s cancelled during backoff",
                        operation,
                        extra={"operation": operation, "attempt": attempt},
                    )
                    raise OperationCancelledError(operation) from err
                backoff = min(backoff * 2, self.config.max_backoff)

        # max_retries >= 1 guarantees the loop returns or raises
        raise RetryExhaustedError(operation, max_retries, RuntimeError("no attempts made"))
