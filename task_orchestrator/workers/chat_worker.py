"""Chat-backed worker usable for any agent type."""

import json
from typing import Any, Dict, List

from ..exceptions import ParseError
from ..llm.client import ChatClient, ChatMessage
from ..models.data_models import (
    AgentCapability, AgentContext, AgentMetadata, AgentResult, AgentType, ExecutionStep
)
from ..utils.parsing import extract_json_object
from .base import BaseWorker


def _capabilities(*pairs) -> List[AgentCapability]:
    return [AgentCapability(name=name, description=description) for name, description in pairs]


WORKER_PROFILES: Dict[AgentType, AgentMetadata] = {
    AgentType.ARCHITECT: AgentMetadata(
        type=AgentType.ARCHITECT,
        name="Architect",
        specialty="System architecture and technical design",
        capabilities=_capabilities(
            ("system_design", "Component boundaries, data flow and interfaces"),
            ("technology_selection", "Choosing frameworks, storage and protocols"),
        ),
    ),
    AgentType.CODER: AgentMetadata(
        type=AgentType.CODER,
        name="Coder",
        specialty="Implementation of features and fixes",
        capabilities=_capabilities(
            ("implementation", "Writing production code from a design"),
            ("testing", "Writing unit and regression tests"),
        ),
    ),
    AgentType.REVIEWER: AgentMetadata(
        type=AgentType.REVIEWER,
        name="Reviewer",
        specialty="Code quality and security review",
        capabilities=_capabilities(
            ("code_review", "Readability, correctness and maintainability"),
            ("security_audit", "Vulnerability and secret detection"),
        ),
    ),
    AgentType.DEBUGGER: AgentMetadata(
        type=AgentType.DEBUGGER,
        name="Debugger",
        specialty="Root-cause analysis, testing and profiling",
        capabilities=_capabilities(
            ("root_cause", "Reproducing and isolating defects"),
            ("verification", "Running tests and measuring coverage"),
            ("profiling", "Finding performance bottlenecks"),
        ),
    ),
    AgentType.DEVOPS: AgentMetadata(
        type=AgentType.DEVOPS,
        name="DevOps",
        specialty="Deployment, CI/CD and infrastructure",
        capabilities=_capabilities(
            ("pipelines", "Build and release automation"),
            ("monitoring", "Alerting and observability setup"),
        ),
    ),
    AgentType.DESIGNER: AgentMetadata(
        type=AgentType.DESIGNER,
        name="Designer",
        specialty="UI/UX design",
        capabilities=_capabilities(
            ("interaction_design", "Flows, layouts and states"),
            ("visual_design", "Styling and component specifications"),
        ),
    ),
}

# Metric keys each role is asked to report alongside its output
_ROLE_METRICS = {
    AgentType.REVIEWER: '"metrics": {"overall_score": 0..1, "security_score": 0..1}',
    AgentType.DEBUGGER: '"metrics": {"coverage": 0..100, "performance_score": 0..1}',
}


class ChatWorker(BaseWorker):
    """Worker that delegates a step to a chat model.

    The reply's first JSON object becomes the step output; a reply without one
    is kept as ``{"content": text}``.
    """

    def __init__(self, agent_type: AgentType, chat_client: ChatClient):
        """Initialize chat worker.

        Args:
            agent_type: Role this worker plays
            chat_client: Chat-completion collaborator
        """
        self._metadata = WORKER_PROFILES[AgentType(agent_type)]
        super().__init__(name=self._metadata.name)
        self.chat_client = chat_client

    @property
    def metadata(self) -> AgentMetadata:
        return self._metadata

    async def process(self, step: ExecutionStep, context: AgentContext) -> Any:
        messages = [
            ChatMessage(role="system", content=self.system_prompt()),
            ChatMessage(role="user", content=self.build_prompt(step, context)),
        ]
        reply = await self.chat_client.chat(messages)
        return self.parse_reply(reply)

    def system_prompt(self) -> str:
        capabilities = "; ".join(f"{c.name}: {c.description}" for c in self._metadata.capabilities)
        return (
            f"You are the {self._metadata.name} on a software team. "
            f"Specialty: {self._metadata.specialty}. Capabilities: {capabilities}."
        )

    def build_prompt(self, step: ExecutionStep, context: AgentContext) -> str:
        """Describe the step, upstream results and memory to the model."""
        lines = [f"Step: {step.description}"]

        if step.requirements:
            lines.append("")
            lines.append("Requirements:")
            lines.extend(f"- {req}" for req in step.requirements)

        upstream = [r for r in context.previous_results if r.success]
        if upstream:
            lines.append("")
            lines.append("Work completed so far:")
            for result in upstream:
                lines.append(f"[{result.agent_type.value}] {_summarize(result)}")

        if context.memory:
            lines.append("")
            lines.append("Relevant project context:")
            lines.append(_dump(context.memory))

        lines.append("")
        fields = ['"summary": string', '"details": any']
        if self.type in _ROLE_METRICS:
            fields.append(_ROLE_METRICS[self.type])
        lines.append("Respond with a JSON object: {" + ", ".join(fields) + "}")
        return "\n".join(lines)

    def parse_reply(self, reply: str) -> Any:
        if not reply or not reply.strip():
            return None
        try:
            return extract_json_object(reply)
        except ParseError:
            self.logger.debug(f"{self.name} reply had no JSON object, keeping raw text")
            return {"content": reply.strip()}


def _summarize(result: AgentResult, limit: int = 500) -> str:
    text = _dump(result.output)
    return text if len(text) <= limit else text[:limit] + "..."


def _dump(value: Any) -> str:
    if hasattr(value, "model_dump_json"):
        return value.model_dump_json()
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def create_default_workers(chat_client: ChatClient) -> List[ChatWorker]:
    """Build one chat worker per agent type."""
    return [ChatWorker(agent_type, chat_client) for agent_type in AgentType]
