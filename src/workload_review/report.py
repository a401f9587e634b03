"""Report helpers for consolidated reports and review results.

Consolidated reports are fetched from the Well-Architected Tool as base64
text and handed to the caller as raw bytes; PDF content is never inspected.
"""

import base64
import binascii
from datetime import datetime, timezone
from typing import Any, Optional

from .errors import ReviewEngineError, UnsupportedReportFormatError
from .schema import ReviewResults, WorkloadModel

SUPPORTED_REPORT_FORMATS = {
    "pdf": "PDF",
    "json": "JSON",
}


class ReportDecodeError(ReviewEngineError):
    """Raised when a consolidated report payload is not valid base64."""


def normalize_report_format(report_format: str) -> str:
    """Map a case-insensitive format name to the API's format value."""
    api_format = SUPPORTED_REPORT_FORMATS.get((report_format or "").lower())
    if api_format is None:
        raise UnsupportedReportFormatError(report_format)
    return api_format


def decode_report(payload: Optional[str]) -> bytes:
    try:
        return base64.b64decode(payload or "", validate=True)
    except (binascii.Error, ValueError) as err:
        raise ReportDecodeError(f"failed to decode report data: {err}") from err


def console_link(remote_workload_id: str, region: str) -> str:
    return (
        f"https://{region}.console.aws.amazon.com/wellarchitected/home"
        f"?region={region}#/workload/{remote_workload_id}"
    )


def build_results_document(
    results: ReviewResults,
    *,
    workload_name: str = "",
    region: str = "us-east-1",
    workload_model: Optional[WorkloadModel] = None,
    remote_report: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Build the JSON results document for a review run.

    Combines the review results with the workload's infrastructure details
    and, when available, the consolidated JSON report from the API.
    """
    document: dict[str, Any] = {
        "remote_workload_id": results.remote_workload_id,
        "workload_name": workload_name,
        "console_link": console_link(results.remote_workload_id, region),
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "milestone_id": results.milestone_id,
        "summary": results.summary.model_dump(),
        "evaluations": [
            {
                "question_id": ev.question.id,
                "question_title": ev.question.title,
                "category": ev.question.category.value,
                "selected_choices": [c.title or c.id for c in ev.selected_choices],
                "confidence_score": ev.confidence_score,
                "evidence": [e.explanation for e in ev.evidence],
                "notes": ev.notes,
            }
            for ev in results.evaluations
        ],
        "risks": [
            {
                "id": risk.id,
                "question_title": risk.question.title,
                "category": risk.category.value,
                "severity": risk.severity.value,
                "description": risk.description,
                "affected_resources": risk.affected_resources,
            }
            for risk in results.risks
        ],
        "improvement_plan": [
            {
                "id": item.id,
                "description": item.description,
                "priority": item.priority,
                "estimated_effort": item.estimated_effort.value,
                "best_practice_refs": item.best_practice_refs,
                "affected_resources": item.affected_resources,
            }
            for item in results.improvement_plan
        ],
    }

    if workload_model is not None:
        document["iac"] = {
            "framework": workload_model.framework,
            "source_type": workload_model.source_type,
            "resource_count": len(workload_model.resources),
            "resources": [r.address for r in workload_model.resources],
        }

    if remote_report is not None:
        document["remote_report"] = remote_report

    return document
