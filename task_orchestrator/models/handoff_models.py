"""Data models for worker-to-worker handoffs."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .data_models import AgentType, Priority


class HandoffStatus(str, Enum):
    """Lifecycle states of a handoff."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transitions are permitted."""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    HandoffStatus.COMPLETED,
    HandoffStatus.FAILED,
    HandoffStatus.REJECTED,
    HandoffStatus.CANCELLED,
})


DEFAULT_ALLOWED_ROUTES: Dict[AgentType, Tuple[AgentType, ...]] = {
    AgentType.ARCHITECT: (AgentType.CODER, AgentType.DESIGNER, AgentType.DEVOPS),
    AgentType.CODER: (AgentType.DEBUGGER, AgentType.REVIEWER, AgentType.ARCHITECT),
    AgentType.DEBUGGER: (AgentType.CODER, AgentType.REVIEWER),
    AgentType.REVIEWER: (AgentType.CODER, AgentType.ARCHITECT),
    AgentType.DEVOPS: (AgentType.ARCHITECT, AgentType.CODER),
    AgentType.DESIGNER: (AgentType.CODER, AgentType.ARCHITECT),
}


class HandoffRequest(BaseModel):
    """A delegation request from one worker type to another."""

    model_config = ConfigDict(frozen=True)

    id: str
    source_agent: AgentType
    target_agent: AgentType
    task: str
    context: Dict[str, Any] = Field(default_factory=dict)
    expectations: List[str] = Field(default_factory=list)
    priority: Priority = Priority.MEDIUM
    timeout: Optional[float] = None
    callback_data: Any = None
    created_at: datetime


class HandoffResult(BaseModel):
    """Terminal outcome of a handoff."""

    model_config = ConfigDict(frozen=True)

    handoff_id: str
    status: HandoffStatus
    success: bool
    artifacts: Dict[str, Any] = Field(default_factory=dict)
    notes: List[str] = Field(default_factory=list)
    duration: float = 0.0
    reason: Optional[str] = None
    completed_at: Optional[datetime] = None


class ActiveHandoff(BaseModel):
    """Mutable tracking record for a handoff, owned by the HandoffManager."""
    request: HandoffRequest
    status: HandoffStatus
    started_at: Optional[datetime] = None
    result: Optional[HandoffResult] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


class HandoffPolicy(BaseModel):
    """Routing, capacity and timeout rules for handoffs.

    A source agent without an ``allowed_routes`` entry may hand off to any
    target; a source with an entry may only hand off to the listed targets.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_concurrent: int = Field(default=5, ge=1)
    default_timeout: float = Field(default=60.0, gt=0)
    allowed_routes: Dict[AgentType, Tuple[AgentType, ...]] = Field(
        default_factory=lambda: dict(DEFAULT_ALLOWED_ROUTES)
    )
    require_acceptance: bool = False

    def is_route_allowed(self, source: AgentType, target: AgentType) -> bool:
        """Check a (source, target) pair against the routing table."""
        allowed = self.allowed_routes.get(source)
        return allowed is None or target in allowed


class HandoffStats(BaseModel):
    """Aggregate handoff statistics."""
    total_handoffs: int = 0
    active_handoffs: int = 0
    success_rate: float = 0.0
    average_duration: float = 0.0
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_route: Dict[str, int] = Field(default_factory=dict)
