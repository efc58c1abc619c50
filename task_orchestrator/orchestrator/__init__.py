"""Orchestrator modules."""

from .main import Orchestrator
from .task_analyzer import TaskAnalyzer
from .planner import ExecutionPlanner
from .coordinator import WorkerCoordinator
from .handoff import HandoffManager
from .notifications import NotificationChannel

__all__ = [
    "Orchestrator",
    "TaskAnalyzer",
    "ExecutionPlanner",
    "WorkerCoordinator",
    "HandoffManager",
    "NotificationChannel",
]
