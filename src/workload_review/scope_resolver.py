"""Scope Resolver - question retrieval for a review scope.

Turns a workload, category or item scope into paginated ListAnswers
requests and flattens the pages into Question records. All fetches are
sequential: categories in their fixed order, pages in token order.
"""

import logging
import threading
from typing import Any, Iterator, Optional

from .app_logging import get_logger
from .client import ReviewAPIClient
from .errors import (
    CategoryFetchError,
    InputValidationError,
    OperationCancelledError,
    QuestionNotFoundError,
)
from .schema import CATEGORY_ORDER, Category, Choice, Question, Scope, ScopeLevel


def convert_choices(raw_choices: list[dict[str, Any]]) -> list[Choice]:
    """Convert remote choice records, preserving order."""
    return [
        Choice(
            id=c.get("ChoiceId", ""),
            title=c.get("Title", ""),
            description=c.get("Description", ""),
        )
        for c in raw_choices
    ]


def answer_to_question(answer: dict[str, Any], category: Category) -> Question:
    """Convert one remote answer summary to a Question."""
    return Question(
        id=answer.get("QuestionId", ""),
        category=category,
        title=answer.get("QuestionTitle", ""),
        choices=convert_choices(answer.get("Choices", [])),
        risk_tag=answer.get("Risk") or None,
    )


def require_workload_id(remote_workload_id: str) -> None:
    if not remote_workload_id:
        raise InputValidationError("workload_id", "workload ID is required")


class ScopeResolver:
    """Retrieves review questions for a scope."""

    def __init__(self, api: ReviewAPIClient, logger: Optional[logging.Logger] = None):
        self.api = api
        self.logger = logger or get_logger("scope_resolver")

    def iter_answers(
        self,
        remote_workload_id: str,
        category: Category,
        cancel: Optional[threading.Event] = None,
    ) -> Iterator[dict[str, Any]]:
        """Yield every answer summary of a category, following continuation tokens."""
        next_token: Optional[str] = None
        while True:
            page = self.api.list_answers(
                remote_workload_id, category.value, next_token, cancel
            )
            yield from page.get("AnswerSummaries", [])
            next_token = page.get("NextToken")
            if not next_token:
                break

    def fetch_category(
        self,
        remote_workload_id: str,
        category: Category,
        cancel: Optional[threading.Event] = None,
    ) -> list[Question]:
        """All questions of one category, in remote order."""
        return [
            answer_to_question(answer, category)
            for answer in self.iter_answers(remote_workload_id, category, cancel)
        ]

    def get_questions(
        self,
        remote_workload_id: str,
        scope: Scope,
        cancel: Optional[threading.Event] = None,
    ) -> list[Question]:
        """Retrieve the questions selected by ``scope``.

        Args:
            remote_workload_id: Well-Architected workload ID
            scope: Review scope, validated before any remote call
            cancel: Optional cancellation event for retry backoff

        Returns:
            Questions in category order, then remote page order

        Raises:
            InputValidationError: Empty workload ID or invalid scope
            CategoryFetchError: A category could not be fetched
            QuestionNotFoundError: Item scope found no matching question
        """
        require_workload_id(remote_workload_id)
        scope.validate_scope()

        if scope.level == ScopeLevel.WORKLOAD:
            questions: list[Question] = []
            for category in CATEGORY_ORDER:
                questions.extend(self._fetch_or_fail(remote_workload_id, category, cancel))
        elif scope.level == ScopeLevel.CATEGORY:
            questions = self._fetch_or_fail(remote_workload_id, scope.category, cancel)
        else:
            questions = [self.find_question(remote_workload_id, scope.item_id, cancel)]

        self.logger.info(
            "retrieved %d questions for %s scope",
            len(questions),
            scope.level.value,
            extra={
                "remote_workload_id": remote_workload_id,
                "scope_level": scope.level.value,
                "question_count": len(questions),
            },
        )
        return questions

    def find_question(
        self,
        remote_workload_id: str,
        question_id: str,
        cancel: Optional[threading.Event] = None,
    ) -> Question:
        """Linear scan for a question by ID; the first category in order wins.

        A category that fails to load is logged and skipped.
        """
        for category in CATEGORY_ORDER:
            try:
                for answer in self.iter_answers(remote_workload_id, category, cancel):
                    if answer.get("QuestionId") == question_id:
                        return answer_to_question(answer, category)
            except OperationCancelledError:
                raise
            except Exception as err:
                self.logger.warning(
                    "skipping category %s while searching for %s: %s",
                    category.value,
                    question_id,
                    err,
                    extra={"category": category.value, "question_id": question_id},
                )
        raise QuestionNotFoundError(question_id)

    def _fetch_or_fail(
        self,
        remote_workload_id: str,
        category: Category,
        cancel: Optional[threading.Event],
    ) -> list[Question]:
        try:
            return self.fetch_category(remote_workload_id, category, cancel)
        except OperationCancelledError:
            raise
        except Exception as err:
            raise CategoryFetchError(category.value, err) from err
