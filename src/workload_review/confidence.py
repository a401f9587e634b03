"""Confidence Scorer - data-quality discount on AI-reported confidence.

The evaluator's own confidence is multiplied by the mean of three factors
in [0, 1]. Low data quality can pull a score down, never push it above the
evaluator's estimate.
"""

from typing import Optional

from .schema import Evaluation, SourceType, WorkloadModel


class ConfidenceScorer:
    """Combines base confidence with data-completeness factors.

    Factors:
    - Resource availability: no resources, or too few to trust
    - Evidence quality: missing evidence, or evidence citing no resource
    - Source type: resolved plan vs declarative source vs unknown
    """

    # Below this many resources the input is likely incomplete
    MIN_COMPLETE_RESOURCES = 5

    SOURCE_TYPE_FACTORS = {
        SourceType.PLAN.value: 1.0,
        SourceType.HCL.value: 0.85,
    }
    UNKNOWN_SOURCE_FACTOR = 0.7

    def resource_factor(self, workload_model: WorkloadModel) -> float:
        count = len(workload_model.resources)
        if count == 0:
            return 0.0
        if count < self.MIN_COMPLETE_RESOURCES:
            return 0.7
        return 1.0

    def evidence_factor(self, evaluation: Evaluation) -> float:
        if not evaluation.evidence:
            return 0.5
        if any(ev.resources for ev in evaluation.evidence):
            return 1.0
        return 0.7

    def source_factor(self, workload_model: WorkloadModel) -> float:
        return self.SOURCE_TYPE_FACTORS.get(
            workload_model.source_type, self.UNKNOWN_SOURCE_FACTOR
        )

    def combine(self, base_confidence: float, factors: list[float]) -> float:
        """Base confidence times the mean factor, clamped to [0, 1]."""
        adjustment = sum(factors) / len(factors) if factors else 0.0
        return min(max(base_confidence * adjustment, 0.0), 1.0)

    def score(
        self,
        evaluation: Optional[Evaluation],
        workload_model: Optional[WorkloadModel],
    ) -> float:
        """Final confidence for an evaluation against a workload model."""
        if evaluation is None or workload_model is None:
            return 0.0

        factors = [
            self.resource_factor(workload_model),
            self.evidence_factor(evaluation),
            self.source_factor(workload_model),
        ]
        return self.combine(evaluation.confidence_score, factors)
