"""Custom exceptions for the task orchestrator."""

from typing import Optional


class OrchestratorError(Exception):
    """Base exception for orchestrator errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        """Initialize orchestrator error.

        Args:
            message: Error message
            original_error: Original exception that caused this error
        """
        super().__init__(message)
        self.original_error = original_error


class ParseError(OrchestratorError):
    """Structured data could not be extracted from model output."""


class WorkerNotFoundError(OrchestratorError):
    """No worker is registered for the requested agent type."""

    def __init__(self, agent_type: str):
        super().__init__(f"Agent not found: {agent_type}")
        self.agent_type = agent_type


class HandoffError(OrchestratorError):
    """Base exception for handoff errors."""


class HandoffPolicyError(HandoffError):
    """A handoff request violates the current policy."""


class HandoffRouteError(HandoffPolicyError):
    """The source agent may not hand off to the target agent."""

    def __init__(self, source_agent: str, target_agent: str):
        super().__init__(
            f"Handoff from {source_agent} to {target_agent} is not allowed by policy"
        )
        self.source_agent = source_agent
        self.target_agent = target_agent


class HandoffCapacityError(HandoffPolicyError):
    """The target agent already holds the maximum number of active handoffs."""

    def __init__(self, target_agent: str, max_concurrent: int):
        super().__init__(
            f"Target agent {target_agent} has reached max concurrent handoffs ({max_concurrent})"
        )
        self.target_agent = target_agent
        self.max_concurrent = max_concurrent


class HandoffNotFoundError(HandoffError):
    """No handoff exists with the given ID."""

    def __init__(self, handoff_id: str):
        super().__init__(f"Handoff not found: {handoff_id}")
        self.handoff_id = handoff_id


class HandoffStateError(HandoffError):
    """The handoff is not in a state that permits the operation."""

    def __init__(self, handoff_id: str, expected: str, actual: str):
        super().__init__(f"Handoff {handoff_id} is not {expected} (status: {actual})")
        self.handoff_id = handoff_id
        self.expected = expected
        self.actual = actual
