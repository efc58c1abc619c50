"""Quality scoring logic."""

from typing import Any, List, Optional

from ..models.data_models import AgentResult, AgentType, QualityMetrics
from .synthesis import DEFAULT_CONFIDENCE, average_confidence, first_successful


DEFAULT_COVERAGE = 50.0

WEIGHTS = {
    'code_quality': 0.3,
    'test_coverage': 0.2,
    'confidence': 0.3,
    'success_rate': 0.2,
}


def extract_metric(result: Optional[AgentResult], key: str) -> Optional[float]:
    """Read a numeric metric from a result's output.

    The key is looked up at the top level of the output and then under a
    nested ``metrics`` object. Non-numeric values are ignored.
    """
    if result is None or not isinstance(result.output, dict):
        return None

    output = result.output
    value = output.get(key)
    if value is None and isinstance(output.get('metrics'), dict):
        value = output['metrics'].get(key)

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


class QualityScorer:
    """Score a run's results."""

    def score(self, results: List[AgentResult]) -> QualityMetrics:
        """Compute quality metrics for a run.

        Args:
            results: All results of the run, failed ones included

        Returns:
            Quality metrics with ``overall_score`` in [0, 1]
        """
        reviewer = first_successful(results, AgentType.REVIEWER)
        debugger = first_successful(results, AgentType.DEBUGGER)

        code_quality = extract_metric(reviewer, 'overall_score')
        security_score = extract_metric(reviewer, 'security_score')
        test_coverage = extract_metric(debugger, 'coverage')
        performance_score = extract_metric(debugger, 'performance_score')

        # A reported 0 is a real score, only missing metrics take defaults
        quality_part = code_quality if code_quality is not None else DEFAULT_CONFIDENCE
        coverage_part = (test_coverage if test_coverage is not None else DEFAULT_COVERAGE) / 100
        confidence_part = average_confidence(results)
        success_part = (
            sum(1 for r in results if r.success) / len(results) if results else 0.0
        )

        overall = (
            quality_part * WEIGHTS['code_quality']
            + coverage_part * WEIGHTS['test_coverage']
            + confidence_part * WEIGHTS['confidence']
            + success_part * WEIGHTS['success_rate']
        )

        return QualityMetrics(
            code_quality=code_quality,
            test_coverage=test_coverage,
            # Reviewer covers security when it reports no separate score
            security_score=security_score if security_score is not None else code_quality,
            performance_score=performance_score,
            overall_score=_clamp(overall),
        )


def _clamp(value: Any) -> float:
    return min(1.0, max(0.0, value))
