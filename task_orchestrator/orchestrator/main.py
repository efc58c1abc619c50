"""Main orchestrator for multi-agent task execution."""

import asyncio
import time
from typing import Any, List, Optional, Set

from ..analysis.scoring import QualityScorer
from ..analysis.synthesis import ResultSynthesizer
from ..llm.client import create_chat_client
from ..memory.store import InMemoryStore, MemorySnapshot, MemoryStore
from ..models.data_models import (
    AgentContext, AgentResult, AgentType, ComplexTask, ExecutionPlan, ExecutionStep,
    Issue, IssueSeverity, OrchestrationResult, PlanPreview, QualityMetrics, TaskAnalysis
)
from ..models.events import ProgressEvent, ProgressPhase, StepEvent
from ..utils.config import Config
from ..utils.logging import get_logger
from ..workers.chat_worker import create_default_workers
from .coordinator import WorkerCoordinator
from .handoff import HandoffManager
from .notifications import NotificationChannel
from .planner import ExecutionPlanner
from .task_analyzer import TaskAnalyzer


class Orchestrator:
    """Drives a task through analysis, planning, execution and synthesis."""

    def __init__(
        self,
        coordinator: WorkerCoordinator,
        task_analyzer: TaskAnalyzer,
        planner: ExecutionPlanner,
        memory: MemoryStore,
        notifications: Optional[NotificationChannel] = None,
        handoffs: Optional[HandoffManager] = None,
        synthesizer: Optional[ResultSynthesizer] = None,
        scorer: Optional[QualityScorer] = None
    ):
        """Initialize orchestrator.

        Args:
            coordinator: Worker registry used to dispatch steps
            task_analyzer: Task classifier
            planner: Execution planner
            memory: Memory collaborator queried once per step
            notifications: Channel for progress and step events
            handoffs: Handoff manager shared with the workers, if any
            synthesizer: Final output builder
            scorer: Quality scorer
        """
        self.coordinator = coordinator
        self.task_analyzer = task_analyzer
        self.planner = planner
        self.memory = memory
        self.notifications = notifications or NotificationChannel()
        self.handoffs = handoffs
        self.synthesizer = synthesizer or ResultSynthesizer()
        self.scorer = scorer or QualityScorer()
        self.logger = get_logger("orchestrator")
        self._running = False

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "Orchestrator":
        """Build the default component graph.

        Args:
            config: Configuration instance

        Returns:
            Orchestrator with one chat worker per agent type
        """
        config = config or Config()
        chat_client = create_chat_client(config)
        notifications = NotificationChannel()
        handoffs = HandoffManager(policy=config.handoff_policy(), notifications=notifications)

        memory = InMemoryStore(limit=config.memory_context_limit)

        workers = create_default_workers(chat_client)
        for worker in workers:
            worker.bind_handoffs(handoffs)
            worker.bind_memory(memory)

        return cls(
            coordinator=WorkerCoordinator(workers),
            task_analyzer=TaskAnalyzer(chat_client),
            planner=ExecutionPlanner(),
            memory=memory,
            notifications=notifications,
            handoffs=handoffs,
        )

    async def start(self):
        """Start the orchestrator."""
        self._running = True
        await self.coordinator.start()
        self.logger.info("Orchestrator started")

    async def stop(self):
        """Stop the orchestrator."""
        self._running = False
        await self.coordinator.stop()
        if self.handoffs is not None:
            self.handoffs.shutdown()
        self.logger.info("Orchestrator stopped")

    async def handle_task(self, task: ComplexTask) -> OrchestrationResult:
        """Run a task end to end.

        Never raises for task-level problems. Step faults are recorded as
        failed results; an analysis or planning fault ends the run with
        ``success=False``.

        Args:
            task: Task to run

        Returns:
            Orchestration result
        """
        start_time = time.monotonic()
        self.logger.info(f"Starting task {task.id}: {task.description}")

        try:
            self._progress(task.id, ProgressPhase.PLANNING, 0, "Analyzing task requirements")
            analysis = await self.task_analyzer.analyze(task)

            self._progress(task.id, ProgressPhase.PLANNING, 10, "Creating execution plan")
            plan = await self.planner.plan(task, analysis)

        except asyncio.CancelledError:
            raise

        except Exception as e:
            total_duration = time.monotonic() - start_time
            self.logger.error(f"Task {task.id} failed during planning: {e}", exc_info=True)
            self._progress(task.id, ProgressPhase.FAILED, 0, str(e))

            return OrchestrationResult(
                task_id=task.id,
                success=False,
                total_duration=total_duration,
                quality=QualityMetrics(overall_score=0.0),
                error=str(e),
            )

        self._progress(task.id, ProgressPhase.EXECUTING, 20, "Beginning agent execution")
        results, completed = await self.execute_plan(task, plan)

        self._progress(task.id, ProgressPhase.REVIEWING, 90, "Synthesizing results")
        final_output = None
        quality = QualityMetrics(overall_score=0.0)
        try:
            final_output = self.synthesizer.synthesize(results, analysis.type)
            quality = self.scorer.score(results)
        except Exception as e:
            # Step results are kept; only the summary is lost
            self.logger.error(f"Synthesis failed for task {task.id}: {e}", exc_info=True)

        total_duration = time.monotonic() - start_time
        self._progress(task.id, ProgressPhase.COMPLETE, 100, "Task complete")

        self.logger.info(
            f"Task {task.id} completed in {total_duration:.1f}s: "
            f"{len(completed)}/{len(plan.steps)} steps, quality {quality.overall_score:.1%}"
        )

        return OrchestrationResult(
            task_id=task.id,
            success=True,
            results=results,
            final_output=final_output,
            total_duration=total_duration,
            steps_completed=len(completed),
            steps_total=len(plan.steps),
            quality=quality,
        )

    async def get_plan(self, task: ComplexTask) -> PlanPreview:
        """Analyze and plan a task without executing it.

        Args:
            task: Task to preview

        Returns:
            Analysis and plan
        """
        analysis: TaskAnalysis = await self.task_analyzer.analyze(task)
        plan = await self.planner.plan(task, analysis)
        return PlanPreview(analysis=analysis, plan=plan)

    async def execute_plan(self, task: ComplexTask, plan: ExecutionPlan):
        """Walk the plan once, in order.

        Args:
            task: Task being executed
            plan: Its plan

        Returns:
            Tuple of (results in execution order, IDs of completed steps)
        """
        results: List[AgentResult] = []
        completed: Set[str] = set()
        total = len(plan.steps)

        for i, step in enumerate(plan.steps):
            missing = [dep for dep in step.dependencies if dep not in completed]
            if missing:
                self.logger.warning(f"Skipping step {step.id}: dependencies not met ({', '.join(missing)})")
                continue

            worker = self.coordinator.get_worker(step.agent_type)
            if worker is None:
                self.logger.error(f"Agent not found: {step.agent_type.value}, skipping step {step.id}")
                continue

            context = AgentContext(
                previous_results=list(results),
                memory=await self._relevant_memory(step),
                current_step=step,
                plan=plan,
            )

            name = worker.metadata.name
            self._progress(
                task.id, ProgressPhase.EXECUTING, 20 + round(i / total * 70),
                f"Executing: {name}", step.agent_type
            )
            self._step_event("step_start", step, f"{name} starting: {step.description}")

            try:
                result = await self.coordinator.dispatch(step, context)
                if not isinstance(result, AgentResult):
                    raise TypeError(
                        f"{name} returned {type(result).__name__} instead of an AgentResult"
                    )

                # Any returned result unlocks dependents; only a fault does not
                results.append(result)
                completed.add(step.id)

                if result.success:
                    message = f"{name} completed successfully"
                else:
                    reason = result.issues[0].description if result.issues else "unsuccessful result"
                    message = f"{name} completed with issues: {reason}"
                self._step_event(
                    "step_complete", step, message,
                    {"confidence": result.confidence, "success": result.success}
                )

                if result.requires_replanning:
                    # Plan is not modified; observers are told
                    self.logger.warning(f"Step {step.id} requested replanning")
                    self._step_event("replanning", step, "Replanning execution")

            except asyncio.CancelledError:
                raise

            except Exception as e:
                self.logger.error(f"Step {step.id} failed: {e}", exc_info=True)
                # Step IDs in results stay unique
                completed.discard(step.id)
                results[:] = [r for r in results if r.step_id != step.id]
                results.append(AgentResult(
                    step_id=step.id,
                    agent_type=step.agent_type,
                    success=False,
                    output=None,
                    duration=0.0,
                    issues=[Issue(severity=IssueSeverity.CRITICAL, description=str(e))],
                ))
                self._step_event("step_failed", step, f"{name} failed: {e}")

        return results, completed

    async def _relevant_memory(self, step: ExecutionStep) -> Any:
        try:
            return await self.memory.get_relevant_context(step.description)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.warning(f"Memory lookup failed for step {step.id}: {e}")
            return MemorySnapshot(query=step.description)

    def _progress(
        self,
        task_id: str,
        phase: ProgressPhase,
        percentage: int,
        message: str,
        current_agent: Optional[AgentType] = None
    ):
        self.notifications.emit(ProgressEvent(
            task_id=task_id,
            phase=phase,
            percentage=percentage,
            message=message,
            current_agent=current_agent,
        ))

    def _step_event(self, event_type: str, step: ExecutionStep, message: str, data=None):
        self.notifications.emit(StepEvent(
            event_type=event_type,
            agent_type=step.agent_type,
            step_id=step.id,
            message=message,
            data=data or {},
        ))
