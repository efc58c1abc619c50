"""Data models for tasks, plans and agent results."""

import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AgentType(str, Enum):
    """Specialized worker types."""
    ARCHITECT = "architect"
    CODER = "coder"
    REVIEWER = "reviewer"
    DEBUGGER = "debugger"
    DEVOPS = "devops"
    DESIGNER = "designer"


class TaskType(str, Enum):
    """Task classification."""
    FEATURE = "feature"
    BUG = "bug"
    REFACTOR = "refactor"
    DESIGN = "design"
    DEPLOYMENT = "deployment"
    OPTIMIZATION = "optimization"


class TaskComplexity(str, Enum):
    """Task complexity levels."""
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class Priority(str, Enum):
    """Priority levels shared by steps and handoffs."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RiskLevel(str, Enum):
    """Aggregate plan risk."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class IssueSeverity(str, Enum):
    """Severity of an issue reported by a worker."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class ComplexTask(BaseModel):
    """A natural-language software task submitted for orchestration."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    description: str = Field(..., min_length=1)
    requirements: List[str] = Field(default_factory=list)
    constraints: List[str] = Field(default_factory=list)

    @field_validator("description")
    @classmethod
    def description_not_blank(cls, v: str) -> str:
        """Reject whitespace-only descriptions."""
        if not v.strip():
            raise ValueError("Task description must not be blank")
        return v


class TaskAnalysis(BaseModel):
    """Classification of a task, produced once per run."""

    type: TaskType = TaskType.FEATURE
    complexity: TaskComplexity = TaskComplexity.MEDIUM
    required_agents: List[AgentType] = Field(default_factory=lambda: [AgentType.CODER])
    estimated_steps: int = Field(default=3, ge=1)
    risks: List[str] = Field(default_factory=list)
    opportunities: List[str] = Field(default_factory=list)

    @field_validator("required_agents")
    @classmethod
    def agents_not_empty(cls, v: List[AgentType]) -> List[AgentType]:
        """Keep first-seen order, drop duplicates, never leave the set empty."""
        unique = list(dict.fromkeys(v))
        return unique or [AgentType.CODER]


class ExecutionStep(BaseModel):
    """One planned unit of work bound to a worker type."""

    model_config = ConfigDict(frozen=True)

    id: str
    agent_type: AgentType
    description: str
    requirements: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    priority: Priority = Priority.MEDIUM
    estimated_duration: Optional[float] = None


class ExecutionPlan(BaseModel):
    """Ordered step sequence for a single run."""

    task_id: str
    steps: List[ExecutionStep] = Field(default_factory=list)
    parallelizable: List[List[str]] = Field(default_factory=list)
    estimated_duration: float = 0.0
    risk_level: RiskLevel = RiskLevel.MEDIUM

    def get_step(self, step_id: str) -> Optional[ExecutionStep]:
        """Look up a step by ID."""
        for step in self.steps:
            if step.id == step_id:
                return step
        return None


class Issue(BaseModel):
    """A problem reported alongside an agent result."""
    severity: IssueSeverity
    description: str
    suggested_fix: Optional[str] = None


class AgentResult(BaseModel):
    """Outcome of a single step execution."""

    step_id: str
    agent_type: AgentType
    success: bool
    output: Any = None
    duration: float = 0.0
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    issues: List[Issue] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    requires_replanning: bool = False


class AgentContext(BaseModel):
    """Per-step view handed to a worker; rebuilt for every step."""

    previous_results: List[AgentResult] = Field(default_factory=list)
    memory: Any = None
    current_step: ExecutionStep
    plan: ExecutionPlan


class AgentCapability(BaseModel):
    """A named capability advertised by a worker."""
    name: str
    description: str


class AgentMetadata(BaseModel):
    """Read-only descriptor of a worker."""

    model_config = ConfigDict(frozen=True)

    type: AgentType
    name: str
    specialty: str = ""
    capabilities: List[AgentCapability] = Field(default_factory=list)


class QualityMetrics(BaseModel):
    """Aggregate quality signal for a run."""
    code_quality: Optional[float] = None
    test_coverage: Optional[float] = None
    security_score: Optional[float] = None
    performance_score: Optional[float] = None
    overall_score: float = Field(default=0.0, ge=0.0, le=1.0)


class SynthesisMetadata(BaseModel):
    """Counters attached to the synthesized output."""
    completed_steps: int = 0
    total_steps: int = 0
    average_confidence: float = 0.5
    total_issues: int = 0


class FinalOutput(BaseModel):
    """Most recent successful output per worker type plus summary counters."""
    type: TaskType
    agents: Dict[str, Any] = Field(default_factory=dict)
    metadata: SynthesisMetadata = Field(default_factory=SynthesisMetadata)


class OrchestrationResult(BaseModel):
    """Terminal artifact of a run."""

    task_id: str
    success: bool
    results: List[AgentResult] = Field(default_factory=list)
    final_output: Optional[FinalOutput] = None
    total_duration: float = 0.0
    steps_completed: int = 0
    steps_total: int = 0
    quality: QualityMetrics = Field(default_factory=QualityMetrics)
    error: Optional[str] = None


class PlanPreview(BaseModel):
    """Analysis and plan returned without executing anything."""
    analysis: TaskAnalysis
    plan: ExecutionPlan
