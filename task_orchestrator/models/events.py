"""Typed notification payloads."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field

from .data_models import AgentType
from .handoff_models import HandoffPolicy, HandoffRequest, HandoffResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProgressPhase(str, Enum):
    """Coarse run phase reported in progress events."""
    PLANNING = "planning"
    EXECUTING = "executing"
    REVIEWING = "reviewing"
    COMPLETE = "complete"
    FAILED = "failed"


class ProgressEvent(BaseModel):
    """Run progress update."""
    event_type: Literal["progress"] = "progress"
    task_id: str
    phase: ProgressPhase
    percentage: int = Field(ge=0, le=100)
    message: str
    current_agent: Optional[AgentType] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class StepEvent(BaseModel):
    """Discrete step lifecycle event."""
    event_type: Literal["step_start", "step_complete", "step_failed", "replanning"]
    agent_type: AgentType
    step_id: Optional[str] = None
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utcnow)


class HandoffEvent(BaseModel):
    """Handoff lifecycle event."""
    event_type: Literal[
        "handoff_requested",
        "handoff_accepted",
        "handoff_rejected",
        "handoff_completed",
        "handoff_failed",
        "handoff_cancelled",
    ]
    request: HandoffRequest
    result: Optional[HandoffResult] = None
    reason: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)


class PolicyEvent(BaseModel):
    """Emitted after the handoff policy is replaced."""
    event_type: Literal["policy_updated"] = "policy_updated"
    policy: HandoffPolicy
    timestamp: datetime = Field(default_factory=_utcnow)


Notification = Union[ProgressEvent, StepEvent, HandoffEvent, PolicyEvent]
