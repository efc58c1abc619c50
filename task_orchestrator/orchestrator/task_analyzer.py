"""Task classification."""

from typing import List

from ..llm.client import ChatClient, ChatMessage
from ..models.data_models import AgentType, ComplexTask, TaskAnalysis, TaskComplexity, TaskType
from ..utils.logging import get_logger
from .analysis_parser import default_analysis, parse_with_fallback


SYSTEM_PROMPT = (
    "You are a software project lead. You classify engineering tasks and decide "
    "which specialists are needed. Reply with a single JSON object only."
)


class TaskAnalyzer:
    """Classifies tasks by type, complexity and required agents."""

    def __init__(self, chat_client: ChatClient):
        """Initialize task analyzer.

        Args:
            chat_client: Chat-completion collaborator
        """
        self.chat_client = chat_client
        self.logger = get_logger("task_analyzer")

    async def analyze(self, task: ComplexTask) -> TaskAnalysis:
        """Analyze a task.

        Never raises: an unreachable model yields the default analysis and an
        unparseable reply degrades to keyword inference.

        Args:
            task: Task to analyze

        Returns:
            Task analysis
        """
        messages = [
            ChatMessage(role="system", content=SYSTEM_PROMPT),
            ChatMessage(role="user", content=self.build_prompt(task)),
        ]

        try:
            response = await self.chat_client.chat(messages)
        except Exception as e:
            self.logger.warning(f"Task analysis call failed for {task.id}, using default: {e}")
            return default_analysis()

        try:
            analysis = parse_with_fallback(response)
        except Exception as e:
            self.logger.error(f"Unexpected error parsing analysis for {task.id}: {e}", exc_info=True)
            return default_analysis()

        self.logger.info(
            f"Task {task.id}: type={analysis.type.value} complexity={analysis.complexity.value} "
            f"agents={','.join(a.value for a in analysis.required_agents)}"
        )
        return analysis

    def build_prompt(self, task: ComplexTask) -> str:
        """Build the classification prompt for a task.

        Args:
            task: Task to describe

        Returns:
            Prompt text
        """
        lines: List[str] = [
            "Analyze this software development task.",
            "",
            f"Task: {task.description}",
        ]

        if task.requirements:
            lines.append("")
            lines.append("Requirements:")
            lines.extend(f"- {req}" for req in task.requirements)

        if task.constraints:
            lines.append("")
            lines.append("Constraints:")
            lines.extend(f"- {constraint}" for constraint in task.constraints)

        lines.extend([
            "",
            "Respond with JSON of this shape:",
            "{",
            f'  "type": one of {_choices(TaskType)},',
            f'  "complexity": one of {_choices(TaskComplexity)},',
            f'  "required_agents": list drawn from {_choices(AgentType)},',
            '  "estimated_steps": integer,',
            '  "risks": list of strings,',
            '  "opportunities": list of strings',
            "}",
        ])
        return "\n".join(lines)


def _choices(enum_cls) -> str:
    return "[" + ", ".join(f'"{member.value}"' for member in enum_cls) + "]"
