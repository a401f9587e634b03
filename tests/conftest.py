"""Shared fixtures for workload review tests."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from workload_review.client import ReviewAPIClient
from workload_review.config import ReviewConfig, RetryConfig, reset_config
from workload_review.invoker import ResilientInvoker


def make_client_error(code: str, operation: str = "ListAnswers", message: str = "boom") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def make_answer(
    question_id: str,
    title: str = "",
    choices: tuple = ("c1", "c2"),
    selected: tuple = (),
    risk: str = "HIGH",
) -> dict:
    """Build a ListAnswers answer summary."""
    return {
        "QuestionId": question_id,
        "QuestionTitle": title or f"Question {question_id}",
        "Choices": [
            {"ChoiceId": c, "Title": f"Choice {c}", "Description": f"Do {c}"}
            for c in choices
        ],
        "SelectedChoices": list(selected),
        "Risk": risk,
    }


@pytest.fixture(autouse=True)
def _reset_global_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def client_error():
    """Factory for botocore ClientError instances."""
    return make_client_error


@pytest.fixture
def answer():
    """Factory for answer summaries."""
    return make_answer


@pytest.fixture
def boto_client():
    """Fake boto3 wellarchitected client."""
    return MagicMock()


@pytest.fixture
def api(boto_client):
    """API client with retries that never sleep."""
    invoker = ResilientInvoker(RetryConfig(max_retries=3, base_delay=0.0, max_backoff=0.0))
    return ReviewAPIClient(boto_client, invoker, ReviewConfig())
