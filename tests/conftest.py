"""Pytest configuration and fixtures."""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional
from unittest.mock import Mock

from task_orchestrator.models.data_models import (
    AgentContext, AgentMetadata, AgentType, ComplexTask, ExecutionPlan,
    ExecutionStep, RiskLevel, TaskAnalysis, TaskComplexity, TaskType
)
from task_orchestrator.orchestrator.notifications import NotificationChannel
from task_orchestrator.utils.config import Config
from task_orchestrator.workers.base import BaseWorker
from task_orchestrator.workers.chat_worker import WORKER_PROFILES


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


class ManualTimer:
    """Timer handle recorded by ManualScheduler."""

    def __init__(self, due: datetime, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose timers fire only when the shared clock is advanced."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.timers: List[ManualTimer] = []

    def call_later(self, delay: float, callback) -> ManualTimer:
        timer = ManualTimer(self.clock() + timedelta(seconds=delay), callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float):
        self.clock.advance(seconds)
        for timer in sorted(self.timers, key=lambda t: t.due):
            if not timer.cancelled and not timer.fired and timer.due <= self.clock():
                timer.fired = True
                timer.callback()

    @property
    def armed(self) -> List[ManualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]


class StubWorker(BaseWorker):
    """Worker returning a fixed output, or raising a fixed error."""

    def __init__(self, agent_type: AgentType, output: Any = None, error: Optional[Exception] = None):
        self._metadata = WORKER_PROFILES[agent_type]
        super().__init__(name=f"Stub{self._metadata.name}")
        self.output = output if output is not None else {"summary": f"{agent_type.value} done"}
        self.error = error
        self.calls: List[ExecutionStep] = []
        self.contexts: List[AgentContext] = []

    @property
    def metadata(self) -> AgentMetadata:
        return self._metadata

    async def process(self, step: ExecutionStep, context: AgentContext) -> Any:
        self.calls.append(step)
        self.contexts.append(context)
        if self.error is not None:
            raise self.error
        return self.output


class RaisingWorker(StubWorker):
    """Worker whose execute raises instead of reporting a failed result."""

    async def execute(self, step: ExecutionStep, context: AgentContext):
        self.calls.append(step)
        raise self.error or RuntimeError(f"{self.name} crashed")


class EventCollector:
    """Records every notification delivered on a channel."""

    def __init__(self, channel: NotificationChannel):
        self.events: List[Any] = []
        channel.subscribe(self.events.append)

    def of_type(self, *event_types: str) -> List[Any]:
        return [e for e in self.events if e.event_type in event_types]

    @property
    def types(self) -> List[str]:
        return [e.event_type for e in self.events]


@pytest.fixture
def mock_config():
    """Mock configuration for testing."""
    config = Mock(spec=Config)
    config.log_level = "INFO"
    config.log_file = None
    config.openai_api_key = "test-key"
    config.openai_base_url = None
    config.model = "gpt-4o-mini"
    config.temperature = 0.2
    config.memory_context_limit = 10
    return config


@pytest.fixture
def sample_task():
    """Sample complex task."""
    return ComplexTask(
        id="task-1",
        description="Add a password reset flow to the login page",
        requirements=["Email a one-time link", "Expire links after 1 hour"],
        constraints=["No new dependencies"],
    )


@pytest.fixture
def sample_analysis():
    """Sample feature analysis with architect, coder and reviewer."""
    return TaskAnalysis(
        type=TaskType.FEATURE,
        complexity=TaskComplexity.MEDIUM,
        required_agents=[AgentType.ARCHITECT, AgentType.CODER, AgentType.REVIEWER],
        estimated_steps=3,
    )


@pytest.fixture
def sample_step():
    """Sample coder step."""
    return ExecutionStep(id="task-1-code-1", agent_type=AgentType.CODER, description="Implement it")


@pytest.fixture
def sample_context(sample_step):
    """Context for the sample step."""
    return AgentContext(
        current_step=sample_step,
        plan=ExecutionPlan(task_id="task-1", steps=[sample_step], risk_level=RiskLevel.LOW),
    )


@pytest.fixture
def clock():
    """Fake clock."""
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    """Manual scheduler sharing the fake clock."""
    return ManualScheduler(clock)


@pytest.fixture
def channel():
    """Fresh notification channel."""
    return NotificationChannel()


@pytest.fixture
def collector(channel):
    """Event collector subscribed to the channel."""
    return EventCollector(channel)


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Set up test environment variables."""
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "test.log"))
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.delenv("OPENAI_BASE_URL", raising=False)
    monkeypatch.setenv("ORCHESTRATOR_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("HANDOFF_MAX_CONCURRENT", "5")
    monkeypatch.setenv("HANDOFF_DEFAULT_TIMEOUT", "60")
    monkeypatch.setenv("HANDOFF_REQUIRE_ACCEPTANCE", "false")
