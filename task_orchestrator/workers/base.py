"""Base worker class for all workers."""

import asyncio
import json
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models.data_models import (
    AgentContext, AgentMetadata, AgentResult, AgentType, ExecutionPlan,
    ExecutionStep, Issue, IssueSeverity, Priority, RiskLevel
)
from ..models.handoff_models import HandoffRequest, HandoffResult, HandoffStatus
from ..utils.logging import get_logger


MEMORY_SUMMARY_LIMIT = 500


class BaseWorker(ABC):
    """Abstract base class for all workers.

    Subclasses describe themselves through :attr:`metadata` and do their work
    in :meth:`process`. :meth:`execute` wraps that call with timing,
    validation and failure handling, and is what the orchestrator dispatches.
    """

    def __init__(self, name: Optional[str] = None):
        """Initialize base worker.

        Args:
            name: Worker name for logging
        """
        self.name = name or self.__class__.__name__
        self.logger = get_logger(f"workers.{self.name}")
        self.handoff_manager = None
        self.memory = None
        self._running = False
        self._results: Dict[str, AgentResult] = {}

    @property
    @abstractmethod
    def metadata(self) -> AgentMetadata:
        """Read-only descriptor: type, name, specialty and capabilities."""

    @property
    def type(self) -> AgentType:
        return self.metadata.type

    @abstractmethod
    async def process(self, step: ExecutionStep, context: AgentContext) -> Any:
        """Produce the output for a single step.

        Args:
            step: Step to process
            context: Results so far, memory snapshot and plan

        Returns:
            Step output
        """

    async def execute(self, step: ExecutionStep, context: AgentContext) -> AgentResult:
        """Execute a step with error handling.

        Args:
            step: Step to execute
            context: Step context

        Returns:
            Agent result; failures are reported in the result, not raised
        """
        start = time.monotonic()

        try:
            self.logger.info(f"Starting step {step.id}: {step.description}")
            output = await self.process(step, context)

            issues = self.validate_output(output, step)
            duration = time.monotonic() - start

            if any(issue.severity == IssueSeverity.CRITICAL for issue in issues):
                self.logger.warning(f"Output validation failed for step {step.id}")
                result = AgentResult(
                    step_id=step.id,
                    agent_type=self.type,
                    success=False,
                    output=None,
                    duration=duration,
                    issues=issues,
                    requires_replanning=True,
                )
            else:
                result = AgentResult(
                    step_id=step.id,
                    agent_type=self.type,
                    success=True,
                    output=output,
                    duration=duration,
                    confidence=self.calculate_confidence(output),
                    issues=issues,
                    suggestions=self.generate_suggestions(output, context),
                )
                self.logger.info(f"Completed step {step.id} in {duration:.1f}s")
                self.remember_execution(step, output)

        except asyncio.CancelledError:
            self.logger.warning(f"Step {step.id} cancelled")
            raise

        except Exception as e:
            self.logger.error(f"Step {step.id} failed: {e}", exc_info=True)
            result = AgentResult(
                step_id=step.id,
                agent_type=self.type,
                success=False,
                output=None,
                duration=time.monotonic() - start,
                issues=[Issue(
                    severity=IssueSeverity.CRITICAL,
                    description=str(e),
                    suggested_fix="Retry with different parameters or consult other agents",
                )],
            )

        self._results[step.id] = result
        return result

    def validate_output(self, output: Any, step: ExecutionStep) -> List[Issue]:
        """Check output quality; critical issues fail the step."""
        if output is None or output == "" or output == {}:
            return [Issue(severity=IssueSeverity.CRITICAL, description="No output generated")]
        return []

    def calculate_confidence(self, output: Any) -> float:
        """Confidence in a successful output, between 0 and 1."""
        return 0.8 if output else 0.0

    def generate_suggestions(self, output: Any, context: AgentContext) -> List[str]:
        return []

    def bind_memory(self, memory):
        """Attach the store that successful outputs are recorded in."""
        self.memory = memory

    def remember_execution(self, step: ExecutionStep, output: Any):
        """Record a successful step so later steps can recall it.

        A failing store is logged; it never fails the step.
        """
        if self.memory is None or not hasattr(self.memory, 'remember'):
            return

        summary = output if isinstance(output, str) else json.dumps(output, default=str)
        try:
            self.memory.remember(
                f"{step.description}\n{summary[:MEMORY_SUMMARY_LIMIT]}",
                {"step_id": step.id, "agent_type": self.type.value, "worker": self.name},
            )
        except Exception as e:
            self.logger.warning(f"Could not record step {step.id} in memory: {e}")

    async def start(self):
        """Start the worker."""
        self._running = True
        self.logger.info(f"{self.name} started")

    async def stop(self):
        """Stop the worker."""
        self._running = False
        self.logger.info(f"{self.name} stopped")

    def is_running(self) -> bool:
        """Check if worker is running."""
        return self._running

    def get_step_status(self, step_id: str) -> Optional[str]:
        """Get status of a step this worker executed."""
        if step_id in self._results:
            return "completed" if self._results[step_id].success else "failed"
        return None

    def get_completed_steps(self) -> List[AgentResult]:
        """Get successful results."""
        return [r for r in self._results.values() if r.success]

    def get_failed_steps(self) -> List[AgentResult]:
        """Get unsuccessful results."""
        return [r for r in self._results.values() if not r.success]

    def clear_results(self):
        """Forget recorded results."""
        self._results.clear()

    # ------------------------------------------------------------------
    # Handoffs
    # ------------------------------------------------------------------

    def bind_handoffs(self, manager):
        """Attach the HandoffManager used by the handoff helpers."""
        self.handoff_manager = manager

    def _require_handoffs(self):
        if self.handoff_manager is None:
            raise RuntimeError(f"{self.name} is not bound to a handoff manager")
        return self.handoff_manager

    async def handoff_to(
        self,
        target_agent: AgentType,
        task: str,
        *,
        context: Optional[Dict[str, Any]] = None,
        expectations: Optional[List[str]] = None,
        priority: Priority = Priority.MEDIUM,
        timeout: Optional[float] = None,
        wait_timeout: Optional[float] = None
    ) -> HandoffResult:
        """Delegate a sub-task to another worker type and wait for the outcome.

        Policy violations raise immediately. A handoff that times out resolves
        to a failed result rather than raising.
        """
        manager = self._require_handoffs()
        self.logger.info(f"{self.metadata.name} requesting handoff to {AgentType(target_agent).value}")

        request = manager.request_handoff(
            self.type,
            target_agent,
            task,
            context=context,
            expectations=expectations,
            priority=priority,
            timeout=timeout,
            callback_data={"source_worker": self.metadata.name},
        )
        return await manager.wait_for_result(request.id, timeout=wait_timeout)

    async def receive_handoff(self, request: HandoffRequest) -> HandoffResult:
        """Accept (if needed), execute and settle a handoff addressed to this worker."""
        manager = self._require_handoffs()
        self.logger.info(f"{self.metadata.name} receiving handoff: {request.task}")

        handoff = manager.get_handoff(request.id)
        if handoff is not None and handoff.status == HandoffStatus.PENDING:
            manager.accept(request.id)

        step = ExecutionStep(
            id=request.id,
            agent_type=self.type,
            description=request.task,
            requirements=request.expectations,
            priority=request.priority,
        )
        context = AgentContext(
            memory=request.context,
            current_step=step,
            plan=ExecutionPlan(
                task_id=request.id,
                steps=[step],
                estimated_duration=60,
                risk_level=RiskLevel.LOW,
            ),
        )

        try:
            result = await self.execute(step, context)
        except Exception as e:
            if self._handoff_open(request.id):
                manager.fail(request.id, str(e))
            raise

        # Timed out or cancelled while we were working
        if not self._handoff_open(request.id):
            self.logger.warning(f"Handoff {request.id} settled before {self.metadata.name} finished")
            return await manager.wait_for_result(request.id)

        if result.success:
            return manager.complete(
                request.id,
                {"result": result.output},
                [f"Completed by {self.metadata.name}"],
            )

        reason = result.issues[0].description if result.issues else "Execution failed"
        return manager.fail(request.id, reason)

    def _handoff_open(self, handoff_id: str) -> bool:
        handoff = self.handoff_manager.get_handoff(handoff_id)
        return handoff is not None and not handoff.is_terminal

    def get_pending_handoffs(self):
        """Handoffs addressed to this worker that still await acceptance."""
        return self._require_handoffs().get_pending_handoffs(self.type)
