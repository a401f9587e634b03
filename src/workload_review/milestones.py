"""Milestone Differ - compare two review snapshots.

Milestones are read-only copies of a workload review. Comparison looks at
the High and Medium risk counts only; it cannot see which individual risks
appeared or disappeared, so new_risks and resolved_risks stay empty.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Optional

from .app_logging import get_logger
from .client import ReviewAPIClient
from .errors import InputValidationError, MilestoneFetchError, OperationCancelledError
from .schema import MilestoneComparison, MilestoneSnapshot, RiskSeverity
from .scope_resolver import require_workload_id

# Severities compared between milestones, in reporting order
TRACKED_SEVERITIES = (RiskSeverity.HIGH, RiskSeverity.MEDIUM)


def parse_milestone(milestone_id: str, response: dict[str, Any]) -> MilestoneSnapshot:
    """Convert a GetMilestone response into a snapshot."""
    milestone = response.get("Milestone", {})
    workload = milestone.get("Workload", {})
    return MilestoneSnapshot(
        id=str(milestone.get("MilestoneNumber", milestone_id)),
        name=milestone.get("MilestoneName", ""),
        recorded_at=milestone.get("RecordedAt"),
        risk_counts={k: int(v) for k, v in workload.get("RiskCounts", {}).items()},
    )


def diff_snapshots(
    snapshot_1: MilestoneSnapshot,
    snapshot_2: MilestoneSnapshot,
) -> MilestoneComparison:
    """Classify risk-count deltas between two snapshots."""
    comparison = MilestoneComparison(
        snapshot_id_1=snapshot_1.id,
        snapshot_id_2=snapshot_2.id,
        snapshot_1=snapshot_1,
        snapshot_2=snapshot_2,
    )
    for severity in TRACKED_SEVERITIES:
        before = snapshot_1.count(severity)
        after = snapshot_2.count(severity)
        if before > after:
            comparison.improvements.append(
                f"{severity.label} risks reduced from {before} to {after}"
            )
        elif after > before:
            comparison.regressions.append(
                f"{severity.label} risks increased from {before} to {after}"
            )
    return comparison


def default_milestone_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"review-{now.strftime('%Y-%m-%d-%H-%M-%S')}"


class MilestoneDiffer:
    """Creates milestones and compares existing ones."""

    def __init__(self, api: ReviewAPIClient, logger: Optional[logging.Logger] = None):
        self.api = api
        self.logger = logger or get_logger("milestones")

    def create_milestone(
        self,
        remote_workload_id: str,
        name: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> str:
        """Record a milestone and return its number as a string."""
        require_workload_id(remote_workload_id)
        name = name or default_milestone_name()

        response = self.api.create_milestone(remote_workload_id, name, cancel)
        milestone_number = str(response.get("MilestoneNumber", ""))

        self.logger.info(
            "milestone %s created (%s)",
            milestone_number,
            name,
            extra={
                "remote_workload_id": remote_workload_id,
                "milestone_name": name,
                "milestone_number": milestone_number,
            },
        )
        return milestone_number

    def get_snapshot(
        self,
        remote_workload_id: str,
        milestone_id: str,
        cancel: Optional[threading.Event] = None,
    ) -> MilestoneSnapshot:
        response = self.api.get_milestone(remote_workload_id, int(milestone_id), cancel)
        return parse_milestone(milestone_id, response)

    def compare(
        self,
        remote_workload_id: str,
        snapshot_id_1: str,
        snapshot_id_2: str,
        cancel: Optional[threading.Event] = None,
    ) -> MilestoneComparison:
        """Compare two milestones of a workload.

        Args:
            remote_workload_id: Well-Architected workload ID
            snapshot_id_1: Earlier milestone number
            snapshot_id_2: Later milestone number
            cancel: Optional cancellation event for retry backoff

        Returns:
            Improvements and regressions in High and Medium risk counts

        Raises:
            InputValidationError: Missing workload ID or milestone IDs
            MilestoneFetchError: Milestone 1 or 2 could not be fetched
        """
        if not remote_workload_id:
            raise InputValidationError("workload_id", "workload ID is required")
        if not snapshot_id_1 or not snapshot_id_2:
            raise InputValidationError("milestone_id", "both milestone IDs are required")
        for milestone_id in (snapshot_id_1, snapshot_id_2):
            if not str(milestone_id).isdecimal():
                raise InputValidationError(
                    "milestone_id", f"milestone ID must be a milestone number: {milestone_id}"
                )

        snapshots = []
        for position, milestone_id in enumerate((snapshot_id_1, snapshot_id_2), start=1):
            try:
                snapshots.append(self.get_snapshot(remote_workload_id, milestone_id, cancel))
            except OperationCancelledError:
                raise
            except Exception as err:
                raise MilestoneFetchError(position, milestone_id, err) from err

        comparison = diff_snapshots(snapshots[0], snapshots[1])
        comparison.snapshot_id_1 = snapshot_id_1
        comparison.snapshot_id_2 = snapshot_id_2

        self.logger.info(
            "compared milestones %s and %s: %d improvements, %d regressions",
            snapshot_id_1,
            snapshot_id_2,
            len(comparison.improvements),
            len(comparison.regressions),
            extra={
                "remote_workload_id": remote_workload_id,
                "improvements": len(comparison.improvements),
                "regressions": len(comparison.regressions),
            },
        )
        return comparison
