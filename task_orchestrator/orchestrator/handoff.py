"""Worker-to-worker handoff management.

A handoff lets one worker type delegate a bounded sub-task to another worker
type outside the orchestrator's step loop. Lifecycle::

    pending --accept--> in_progress --complete--> completed
       |                    |
       +--reject--> rejected +--fail / timeout--> failed
       |
       +--timeout--> failed

    pending / in_progress --cancel--> cancelled

Every state-changing method is synchronous, so on the event loop the status
check and the transition cannot interleave with another caller.
"""

import asyncio
import uuid
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional

from ..exceptions import (
    HandoffCapacityError, HandoffNotFoundError, HandoffRouteError, HandoffStateError
)
from ..models.data_models import AgentType, Priority
from ..models.events import HandoffEvent, PolicyEvent
from ..models.handoff_models import (
    ActiveHandoff, HandoffPolicy, HandoffRequest, HandoffResult, HandoffStats, HandoffStatus
)
from ..utils.logging import get_logger
from ..utils.scheduling import AsyncioScheduler, Scheduler, TimerHandle
from .notifications import NotificationChannel


TIMEOUT_REASON = "Handoff timed out"
DEFAULT_CANCEL_REASON = "Cancelled by request"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HandoffManager:
    """Tracks handoffs between worker types under a shared policy."""

    MAX_HISTORY = 100

    def __init__(
        self,
        policy: Optional[HandoffPolicy] = None,
        notifications: Optional[NotificationChannel] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """Initialize handoff manager.

        Args:
            policy: Initial policy (defaults apply if omitted)
            notifications: Channel for handoff events
            scheduler: Arms timeout timers; defaults to the running asyncio loop
            clock: Source of timezone-aware timestamps
        """
        self._policy = policy or HandoffPolicy()
        self.notifications = notifications or NotificationChannel()
        self.scheduler = scheduler or AsyncioScheduler()
        self.clock = clock or _utcnow
        self.logger = get_logger("handoff")

        self._handoffs: Dict[str, ActiveHandoff] = {}
        self._timers: Dict[str, TimerHandle] = {}
        self._waiters: Dict[str, List[asyncio.Future]] = {}
        self._history: Deque[HandoffResult] = deque(maxlen=self.MAX_HISTORY)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def request_handoff(
        self,
        source_agent: AgentType,
        target_agent: AgentType,
        task: str,
        *,
        context: Optional[Dict[str, Any]] = None,
        expectations: Optional[List[str]] = None,
        priority: Priority = Priority.MEDIUM,
        timeout: Optional[float] = None,
        callback_data: Any = None
    ) -> HandoffRequest:
        """Request a handoff to another worker type.

        Args:
            source_agent: Requesting worker type
            target_agent: Worker type asked to do the work
            task: Description of the sub-task
            context: Data the target needs
            expectations: Expected deliverables
            priority: Request priority
            timeout: Seconds before the handoff fails automatically
            callback_data: Opaque data returned to the source

        Returns:
            The created request

        Raises:
            HandoffRouteError: if policy forbids the route
            HandoffCapacityError: if the target is at its concurrency cap
            ValueError: if ``timeout`` is not positive
        """
        source_agent = AgentType(source_agent)
        target_agent = AgentType(target_agent)
        policy = self._policy

        if not policy.is_route_allowed(source_agent, target_agent):
            raise HandoffRouteError(source_agent.value, target_agent.value)

        active_count = len(self.get_active_handoffs_for_agent(target_agent))
        if active_count >= policy.max_concurrent:
            raise HandoffCapacityError(target_agent.value, policy.max_concurrent)

        effective_timeout = policy.default_timeout if timeout is None else float(timeout)
        if effective_timeout <= 0:
            raise ValueError(f"Handoff timeout must be positive, got {timeout}")

        now = self.clock()
        request = HandoffRequest(
            id=f"handoff_{uuid.uuid4().hex[:12]}",
            source_agent=source_agent,
            target_agent=target_agent,
            task=task,
            context=dict(context or {}),
            expectations=list(expectations or []),
            priority=Priority(priority),
            timeout=effective_timeout,
            callback_data=callback_data,
            created_at=now,
        )

        if policy.require_acceptance:
            handoff = ActiveHandoff(request=request, status=HandoffStatus.PENDING)
        else:
            handoff = ActiveHandoff(request=request, status=HandoffStatus.IN_PROGRESS, started_at=now)

        # A record exists only once its timer is armed
        timer = self.scheduler.call_later(effective_timeout, lambda: self._on_timeout(request.id))
        self._handoffs[request.id] = handoff
        self._timers[request.id] = timer

        self.logger.info(
            f"Handoff {request.id} requested: {source_agent.value} -> {target_agent.value} "
            f"({handoff.status.value})"
        )
        self._emit("handoff_requested", handoff)
        return request

    def accept(self, handoff_id: str) -> ActiveHandoff:
        """Accept a pending handoff, moving it to in_progress."""
        handoff = self._require(handoff_id, HandoffStatus.PENDING, "pending")

        handoff.status = HandoffStatus.IN_PROGRESS
        handoff.started_at = self.clock()

        self.logger.info(f"Handoff {handoff_id} accepted by {handoff.request.target_agent.value}")
        self._emit("handoff_accepted", handoff)
        return handoff.model_copy()

    def reject(self, handoff_id: str, reason: str) -> HandoffResult:
        """Reject a pending handoff."""
        handoff = self._require(handoff_id, HandoffStatus.PENDING, "pending")
        return self._finish(
            handoff, HandoffStatus.REJECTED, "handoff_rejected",
            since=handoff.request.created_at, reason=reason
        )

    def complete(
        self,
        handoff_id: str,
        artifacts: Dict[str, Any],
        notes: Optional[List[str]] = None
    ) -> HandoffResult:
        """Complete an in-progress handoff successfully."""
        handoff = self._require(handoff_id, HandoffStatus.IN_PROGRESS, "in progress")
        return self._finish(
            handoff, HandoffStatus.COMPLETED, "handoff_completed",
            since=handoff.started_at or handoff.request.created_at,
            artifacts=artifacts, notes=notes
        )

    def fail(self, handoff_id: str, reason: str) -> HandoffResult:
        """Mark an in-progress handoff as failed."""
        handoff = self._require(handoff_id, HandoffStatus.IN_PROGRESS, "in progress")
        return self._finish(
            handoff, HandoffStatus.FAILED, "handoff_failed",
            since=handoff.started_at or handoff.request.created_at, reason=reason
        )

    def cancel(self, handoff_id: str, reason: Optional[str] = None) -> HandoffResult:
        """Cancel a pending or in-progress handoff."""
        handoff = self._get(handoff_id)
        if handoff.is_terminal:
            raise HandoffStateError(handoff_id, "active", handoff.status.value)

        return self._finish(
            handoff, HandoffStatus.CANCELLED, "handoff_cancelled",
            since=handoff.request.created_at, reason=reason or DEFAULT_CANCEL_REASON
        )

    async def wait_for_result(self, handoff_id: str, timeout: Optional[float] = None) -> HandoffResult:
        """Wait until a handoff reaches a terminal state.

        Args:
            handoff_id: Handoff to wait on
            timeout: Give up after this many seconds (asyncio.TimeoutError)

        Returns:
            The terminal result
        """
        handoff = self._get(handoff_id)
        if handoff.result is not None:
            return handoff.result

        future = asyncio.get_running_loop().create_future()
        self._waiters.setdefault(handoff_id, []).append(future)
        try:
            return await asyncio.wait_for(future, timeout)
        finally:
            waiters = self._waiters.get(handoff_id)
            if waiters and future in waiters:
                waiters.remove(future)
                if not waiters:
                    del self._waiters[handoff_id]

    def shutdown(self):
        """Disarm every pending timeout timer."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_handoff(self, handoff_id: str) -> Optional[ActiveHandoff]:
        """Get a snapshot of a handoff, or None if unknown."""
        handoff = self._handoffs.get(handoff_id)
        return handoff.model_copy() if handoff else None

    def get_active_handoffs(self) -> List[ActiveHandoff]:
        """Get all non-terminal handoffs."""
        return [h.model_copy() for h in self._handoffs.values() if not h.is_terminal]

    def get_active_handoffs_for_agent(self, agent_type: AgentType) -> List[ActiveHandoff]:
        """Get non-terminal handoffs targeting a worker type."""
        return [
            h for h in self.get_active_handoffs()
            if h.request.target_agent == agent_type
        ]

    def get_pending_handoffs(self, agent_type: AgentType) -> List[ActiveHandoff]:
        """Get handoffs awaiting acceptance by a worker type."""
        return [
            h.model_copy() for h in self._handoffs.values()
            if h.request.target_agent == agent_type and h.status == HandoffStatus.PENDING
        ]

    def get_history(self, limit: Optional[int] = None) -> List[HandoffResult]:
        """Get terminal results, newest first."""
        history = list(reversed(self._history))
        return history[:limit] if limit is not None else history

    # ------------------------------------------------------------------
    # Policy
    # ------------------------------------------------------------------

    def get_policy(self) -> HandoffPolicy:
        """Get a copy of the current policy."""
        return self._policy.model_copy(deep=True)

    def set_policy(self, changes: Optional[Mapping[str, Any]] = None, **kwargs) -> HandoffPolicy:
        """Merge changes into the policy.

        The merged policy replaces the old one in a single assignment and only
        affects later requests; handoffs already in flight keep the rules they
        were created under.

        Raises:
            pydantic.ValidationError: on unknown keys or invalid values
        """
        updates = dict(changes or {})
        updates.update(kwargs)

        merged = self._policy.model_dump()
        merged.update(updates)
        self._policy = HandoffPolicy(**merged)

        self.logger.info(f"Handoff policy updated: {sorted(updates)}")
        self.notifications.emit(PolicyEvent(policy=self.get_policy(), timestamp=self.clock()))
        return self.get_policy()

    def is_route_allowed(self, source: AgentType, target: AgentType) -> bool:
        """Check whether policy permits a route."""
        return self._policy.is_route_allowed(AgentType(source), AgentType(target))

    # ------------------------------------------------------------------
    # Statistics and housekeeping
    # ------------------------------------------------------------------

    def get_stats(self) -> HandoffStats:
        """Summarize recorded history and current activity."""
        history = list(self._history)
        successful = sum(1 for r in history if r.success)

        by_status = {status.value: 0 for status in HandoffStatus}
        for result in history:
            by_status[result.status.value] += 1

        active = [h for h in self._handoffs.values() if not h.is_terminal]
        by_route: Dict[str, int] = {}
        for handoff in active:
            route = f"{handoff.request.source_agent.value} -> {handoff.request.target_agent.value}"
            by_route[route] = by_route.get(route, 0) + 1

        return HandoffStats(
            total_handoffs=len(history),
            active_handoffs=len(active),
            success_rate=successful / len(history) if history else 0.0,
            average_duration=sum(r.duration for r in history) / len(history) if history else 0.0,
            by_status=by_status,
            by_route=by_route,
        )

    def cleanup(self, max_age: float = 3600.0) -> int:
        """Drop terminal handoffs that finished more than ``max_age`` seconds ago.

        History is kept separately and is not affected.

        Returns:
            Number of handoffs removed
        """
        cutoff = self.clock() - timedelta(seconds=max_age)
        expired = [
            handoff_id for handoff_id, handoff in self._handoffs.items()
            if handoff.is_terminal
            and handoff.result is not None
            and handoff.result.completed_at is not None
            and handoff.result.completed_at < cutoff
        ]

        for handoff_id in expired:
            del self._handoffs[handoff_id]

        if expired:
            self.logger.debug(f"Cleaned up {len(expired)} handoffs")
        return len(expired)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get(self, handoff_id: str) -> ActiveHandoff:
        handoff = self._handoffs.get(handoff_id)
        if handoff is None:
            raise HandoffNotFoundError(handoff_id)
        return handoff

    def _require(self, handoff_id: str, status: HandoffStatus, label: str) -> ActiveHandoff:
        handoff = self._get(handoff_id)
        if handoff.status != status:
            raise HandoffStateError(handoff_id, label, handoff.status.value)
        return handoff

    def _on_timeout(self, handoff_id: str):
        self._timers.pop(handoff_id, None)
        handoff = self._handoffs.get(handoff_id)
        if handoff is None or handoff.is_terminal:
            return

        self.logger.warning(f"Handoff {handoff_id} timed out after {handoff.request.timeout}s")
        self._finish(
            handoff, HandoffStatus.FAILED, "handoff_failed",
            since=handoff.started_at or handoff.request.created_at, reason=TIMEOUT_REASON
        )

    def _finish(
        self,
        handoff: ActiveHandoff,
        status: HandoffStatus,
        event_type: str,
        *,
        since: datetime,
        artifacts: Optional[Dict[str, Any]] = None,
        notes: Optional[List[str]] = None,
        reason: Optional[str] = None
    ) -> HandoffResult:
        handoff_id = handoff.request.id
        now = self.clock()

        result = HandoffResult(
            handoff_id=handoff_id,
            status=status,
            success=status == HandoffStatus.COMPLETED,
            artifacts=dict(artifacts or {}),
            notes=list(notes or []),
            duration=max(0.0, (now - since).total_seconds()),
            reason=reason,
            completed_at=now,
        )

        handoff.status = status
        handoff.result = result

        timer = self._timers.pop(handoff_id, None)
        if timer is not None:
            timer.cancel()

        self._history.append(result)

        for future in self._waiters.pop(handoff_id, []):
            if not future.done():
                future.set_result(result)

        self.logger.info(
            f"Handoff {handoff_id} {status.value}" + (f": {reason}" if reason else "")
        )
        self._emit(event_type, handoff, result=result, reason=reason)
        return result

    def _emit(
        self,
        event_type: str,
        handoff: ActiveHandoff,
        result: Optional[HandoffResult] = None,
        reason: Optional[str] = None
    ):
        self.notifications.emit(HandoffEvent(
            event_type=event_type,
            request=handoff.request,
            result=result,
            reason=reason,
            timestamp=self.clock(),
        ))
