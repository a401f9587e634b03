"""Well-Architected Tool API client.

Thin wrapper over the boto3 ``wellarchitected`` client. Every call goes
through the ResilientInvoker, and botocore errors that escape it are
wrapped into RemoteAPIError carrying the operation name and error code.
"""

import threading
from typing import Any, Callable, Optional, TypeVar

import boto3
from botocore.client import BaseClient
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .config import AWSConfig, ReviewConfig
from .errors import RemoteAPIError
from .invoker import ResilientInvoker

T = TypeVar("T")


def create_wellarchitected_client(
    region: str = "us-east-1",
    profile: Optional[str] = None,
) -> BaseClient:
    """Build a boto3 Well-Architected client.

    SDK-level retries are disabled; the ResilientInvoker owns the retry
    policy so attempts stay observable and cancellable.
    """
    cfg = Config(
        retries={"max_attempts": 1, "mode": "standard"},
        connect_timeout=5,
        read_timeout=60,
    )
    session = boto3.Session(profile_name=profile) if profile else boto3.Session()
    return session.client("wellarchitected", region_name=region, config=cfg)


def wrap_api_error(operation: str, err: Exception) -> RemoteAPIError:
    """Wrap a botocore error with the operation that produced it."""
    if isinstance(err, ClientError):
        error = err.response.get("Error", {})
        return RemoteAPIError(
            operation,
            error.get("Message", str(err)),
            error_code=error.get("Code"),
        )
    return RemoteAPIError(operation, str(err))


class ReviewAPIClient:
    """Resilient access to the Well-Architected Tool operations the engine uses."""

    def __init__(
        self,
        client: BaseClient,
        invoker: Optional[ResilientInvoker] = None,
        review_config: Optional[ReviewConfig] = None,
    ):
        self.client = client
        self.invoker = invoker or ResilientInvoker()
        self.review_config = review_config or ReviewConfig()

    @classmethod
    def from_config(
        cls,
        aws_config: AWSConfig,
        invoker: ResilientInvoker,
        review_config: ReviewConfig,
    ) -> "ReviewAPIClient":
        client = create_wellarchitected_client(aws_config.region, aws_config.profile)
        return cls(client, invoker, review_config)

    @property
    def lens_alias(self) -> str:
        return self.review_config.lens_alias

    def call(
        self,
        operation: str,
        fn: Callable[[], T],
        cancel: Optional[threading.Event] = None,
    ) -> T:
        """Invoke ``fn`` resiliently, wrapping botocore failures."""
        try:
            return self.invoker.invoke(operation, fn, cancel)
        except (ClientError, BotoCoreError) as err:
            raise wrap_api_error(operation, err) from err

    # ------------------------------------------------------------------
    # Workloads
    # ------------------------------------------------------------------

    def list_workloads(
        self,
        name_prefix: str,
        next_token: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "WorkloadNamePrefix": name_prefix,
            "MaxResults": self.review_config.page_size,
        }
        if next_token:
            params["NextToken"] = next_token
        return self.call("ListWorkloads", lambda: self.client.list_workloads(**params), cancel)

    def create_workload(
        self,
        name: str,
        description: str,
        region: str,
        cancel: Optional[threading.Event] = None,
    ) -> dict[str, Any]:
        params = {
            "WorkloadName": name,
            "Description": description,
            "Environment": self.review_config.environment,
            "Lenses": [self.lens_alias],
            "ReviewOwner": self.review_config.review_owner,
            "AwsRegions": [region],
        }
        return self.call("CreateWorkload", lambda: self.client.create_workload(**params), cancel)

    # ------------------------------------------------------------------
    # Answers
    # ------------------------------------------------------------------

    def list_answers(
        self,
        workload_id: str,
        pillar_id: str,
        next_token: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "WorkloadId": workload_id,
            "LensAlias": self.lens_alias,
            "PillarId": pillar_id,
            "MaxResults": self.review_config.page_size,
        }
        if next_token:
            params["NextToken"] = next_token
        return self.call("ListAnswers", lambda: self.client.list_answers(**params), cancel)

    def update_answer(
        self,
        workload_id: str,
        question_id: str,
        selected_choices: list[str],
        notes: str,
        cancel: Optional[threading.Event] = None,
    ) -> dict[str, Any]:
        params = {
            "WorkloadId": workload_id,
            "LensAlias": self.lens_alias,
            "QuestionId": question_id,
            "SelectedChoices": selected_choices,
            "Notes": notes,
            "IsApplicable": True,
        }
        return self.call("UpdateAnswer", lambda: self.client.update_answer(**params), cancel)

    # ------------------------------------------------------------------
    # Milestones and reports
    # ------------------------------------------------------------------

    def create_milestone(
        self,
        workload_id: str,
        name: str,
        cancel: Optional[threading.Event] = None,
    ) -> dict[str, Any]:
        params = {"WorkloadId": workload_id, "MilestoneName": name}
        return self.call("CreateMilestone", lambda: self.client.create_milestone(**params), cancel)

    def get_milestone(
        self,
        workload_id: str,
        milestone_number: int,
        cancel: Optional[threading.Event] = None,
    ) -> dict[str, Any]:
        params = {"WorkloadId": workload_id, "MilestoneNumber": milestone_number}
        return self.call("GetMilestone", lambda: self.client.get_milestone(**params), cancel)

    def get_consolidated_report(
        self,
        report_format: str,
        cancel: Optional[threading.Event] = None,
    ) -> dict[str, Any]:
        params = {"Format": report_format, "IncludeSharedResources": False}
        return self.call(
            "GetConsolidatedReport",
            lambda: self.client.get_consolidated_report(**params),
            cancel,
        )
