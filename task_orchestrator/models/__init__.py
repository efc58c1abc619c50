"""Data models."""

from .data_models import (
    AgentCapability,
    AgentContext,
    AgentMetadata,
    AgentResult,
    AgentType,
    ComplexTask,
    ExecutionPlan,
    ExecutionStep,
    FinalOutput,
    Issue,
    IssueSeverity,
    OrchestrationResult,
    PlanPreview,
    Priority,
    QualityMetrics,
    RiskLevel,
    SynthesisMetadata,
    TaskAnalysis,
    TaskComplexity,
    TaskType,
)
from .handoff_models import (
    DEFAULT_ALLOWED_ROUTES,
    TERMINAL_STATUSES,
    ActiveHandoff,
    HandoffPolicy,
    HandoffRequest,
    HandoffResult,
    HandoffStats,
    HandoffStatus,
)
from .events import (
    HandoffEvent,
    Notification,
    PolicyEvent,
    ProgressEvent,
    ProgressPhase,
    StepEvent,
)

__all__ = [
    "AgentCapability",
    "AgentContext",
    "AgentMetadata",
    "AgentResult",
    "AgentType",
    "ComplexTask",
    "ExecutionPlan",
    "ExecutionStep",
    "FinalOutput",
    "Issue",
    "IssueSeverity",
    "OrchestrationResult",
    "PlanPreview",
    "Priority",
    "QualityMetrics",
    "RiskLevel",
    "SynthesisMetadata",
    "TaskAnalysis",
    "TaskComplexity",
    "TaskType",
    "DEFAULT_ALLOWED_ROUTES",
    "TERMINAL_STATUSES",
    "ActiveHandoff",
    "HandoffPolicy",
    "HandoffRequest",
    "HandoffResult",
    "HandoffStats",
    "HandoffStatus",
    "HandoffEvent",
    "Notification",
    "PolicyEvent",
    "ProgressEvent",
    "ProgressPhase",
    "StepEvent",
]
