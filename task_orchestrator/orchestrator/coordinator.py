"""Worker registration and dispatch."""

from typing import Any, Dict, Iterable, List, Optional

from ..exceptions import WorkerNotFoundError
from ..models.data_models import AgentContext, AgentResult, AgentType, ExecutionStep
from ..utils.logging import get_logger
from ..workers.base import BaseWorker


class WorkerCoordinator:
    """Holds one worker per agent type and dispatches steps to it."""

    def __init__(self, workers: Optional[Iterable[BaseWorker]] = None):
        """Initialize worker coordinator.

        Args:
            workers: Workers to register up front
        """
        self.logger = get_logger("coordinator")
        self.workers: Dict[AgentType, BaseWorker] = {}
        self._running = False
        self._dispatched = 0
        self._faults = 0

        for worker in workers or []:
            self.register(worker)

    async def start(self):
        """Start the coordinator and every registered worker."""
        for worker in self.workers.values():
            if hasattr(worker, 'start'):
                await worker.start()
        self._running = True
        self.logger.info(f"Worker coordinator started with {len(self.workers)} workers")

    async def stop(self):
        """Stop the coordinator and every registered worker."""
        self._running = False

        for worker in self.workers.values():
            if hasattr(worker, 'stop'):
                await worker.stop()

        self.logger.info("Worker coordinator stopped")

    def register(self, worker: BaseWorker):
        """Register a worker under its agent type, replacing any previous one.

        Args:
            worker: Worker to register
        """
        agent_type = worker.metadata.type
        if agent_type in self.workers:
            self.logger.warning(f"Replacing registered {agent_type.value} worker")
        self.workers[agent_type] = worker
        self.logger.debug(f"Registered {worker.metadata.name} as {agent_type.value}")

    def unregister(self, agent_type: AgentType) -> Optional[BaseWorker]:
        """Remove and return the worker for an agent type."""
        return self.workers.pop(AgentType(agent_type), None)

    def get_worker(self, agent_type: AgentType) -> Optional[BaseWorker]:
        """Get the worker for an agent type, or None if unregistered."""
        return self.workers.get(agent_type)

    def has_worker(self, agent_type: AgentType) -> bool:
        return agent_type in self.workers

    @property
    def agent_types(self) -> List[AgentType]:
        return list(self.workers.keys())

    async def dispatch(self, step: ExecutionStep, context: AgentContext) -> AgentResult:
        """Execute a step on the worker registered for its agent type.

        Args:
            step: Step to execute
            context: Fresh context for the step

        Returns:
            The worker's result

        Raises:
            WorkerNotFoundError: if no worker is registered for the step
            Exception: anything the worker raises is propagated unchanged
        """
        worker = self.get_worker(step.agent_type)
        if worker is None:
            raise WorkerNotFoundError(step.agent_type.value)

        self._dispatched += 1
        try:
            return await worker.execute(step, context)
        except Exception:
            self._faults += 1
            raise

    def get_worker_stats(self) -> Dict[str, Any]:
        """Get worker statistics.

        Returns:
            Worker statistics
        """
        stats = {
            'registered_workers': len(self.workers),
            'worker_types': [agent_type.value for agent_type in self.workers],
            'running': self._running,
            'dispatched_steps': self._dispatched,
            'dispatch_faults': self._faults,
        }

        completed = 0
        failed = 0
        for worker in self.workers.values():
            if hasattr(worker, 'get_completed_steps'):
                completed += len(worker.get_completed_steps())
                failed += len(worker.get_failed_steps())

        stats.update({
            'completed_steps': completed,
            'failed_steps': failed,
        })

        return stats
