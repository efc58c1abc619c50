"""Result synthesis."""

from typing import List, Optional

from ..models.data_models import AgentResult, FinalOutput, SynthesisMetadata, TaskType
from ..utils.logging import get_logger


DEFAULT_CONFIDENCE = 0.5


def average_confidence(results: List[AgentResult]) -> float:
    """Mean confidence over results that report one, 0.5 if none do."""
    confidences = [r.confidence for r in results if r.confidence is not None]
    if not confidences:
        return DEFAULT_CONFIDENCE
    return sum(confidences) / len(confidences)


class ResultSynthesizer:
    """Folds agent results into a single final output."""

    def __init__(self):
        self.logger = get_logger("synthesis")

    def synthesize(self, results: List[AgentResult], task_type: TaskType) -> FinalOutput:
        """Synthesize results.

        Later successful outputs from the same agent type replace earlier ones.

        Args:
            results: Results in execution order
            task_type: Type of the analyzed task

        Returns:
            Final output
        """
        agents = {}
        for result in results:
            if result.success and result.output:
                agents[result.agent_type.value] = result.output

        metadata = SynthesisMetadata(
            completed_steps=sum(1 for r in results if r.success),
            total_steps=len(results),
            average_confidence=average_confidence(results),
            total_issues=sum(len(r.issues) for r in results),
        )

        self.logger.info(f"Outputs collected from {len(agents)} agents")
        return FinalOutput(type=task_type, agents=agents, metadata=metadata)


def first_successful(results: List[AgentResult], agent_type) -> Optional[AgentResult]:
    """First successful result produced by an agent type."""
    for result in results:
        if result.agent_type == agent_type and result.success:
            return result
    return None
