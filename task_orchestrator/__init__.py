"""
Task Orchestrator

Multi-agent orchestration for software tasks: analysis, planning, sequential
execution by specialized workers, and policy-governed handoffs between them.
"""

__version__ = "0.1.0"
__author__ = "Task Orchestrator Team"

from .orchestrator.main import Orchestrator
from .orchestrator.handoff import HandoffManager
from .models.data_models import ComplexTask, OrchestrationResult

__all__ = [
    "Orchestrator",
    "HandoffManager",
    "ComplexTask",
    "OrchestrationResult",
]
