"""Test worker implementations."""

import asyncio
import json

import pytest
from unittest.mock import AsyncMock, Mock

from conftest import RaisingWorker, StubWorker
from task_orchestrator.llm.client import ChatMessage
from task_orchestrator.memory.store import InMemoryStore
from task_orchestrator.models.data_models import (
    AgentContext, AgentResult, AgentType, IssueSeverity
)
from task_orchestrator.models.handoff_models import HandoffPolicy, HandoffStatus
from task_orchestrator.orchestrator.handoff import HandoffManager
from task_orchestrator.workers.chat_worker import WORKER_PROFILES, ChatWorker, create_default_workers


@pytest.fixture
def handoffs(channel, scheduler, clock):
    """Handoff manager on a manual scheduler."""
    return HandoffManager(notifications=channel, scheduler=scheduler, clock=clock)


class TestBaseWorker:
    """Test base worker behaviour."""

    @pytest.mark.asyncio
    async def test_execute_success(self, sample_step, sample_context):
        """Successful output is wrapped with timing and confidence."""
        worker = StubWorker(AgentType.CODER, output={"summary": "implemented"})

        result = await worker.execute(sample_step, sample_context)

        assert result.success is True
        assert result.step_id == sample_step.id
        assert result.agent_type == AgentType.CODER
        assert result.output == {"summary": "implemented"}
        assert result.confidence == 0.8
        assert result.duration >= 0
        assert worker.get_step_status(sample_step.id) == "completed"
        assert len(worker.get_completed_steps()) == 1

    @pytest.mark.asyncio
    async def test_execute_empty_output(self, sample_step, sample_context):
        """Empty output is a critical issue that asks for replanning."""
        worker = StubWorker(AgentType.CODER, output="")

        result = await worker.execute(sample_step, sample_context)

        assert result.success is False
        assert result.requires_replanning is True
        assert result.issues[0].severity == IssueSeverity.CRITICAL
        assert result.issues[0].description == "No output generated"

    @pytest.mark.asyncio
    async def test_execute_error_becomes_failed_result(self, sample_step, sample_context):
        """Exceptions from process are reported, not raised."""
        worker = StubWorker(AgentType.CODER, error=ValueError("syntax error"))

        result = await worker.execute(sample_step, sample_context)

        assert result.success is False
        assert result.output is None
        assert result.issues[0].severity == IssueSeverity.CRITICAL
        assert result.issues[0].description == "syntax error"
        assert worker.get_step_status(sample_step.id) == "failed"
        assert len(worker.get_failed_steps()) == 1

    @pytest.mark.asyncio
    async def test_execute_propagates_cancellation(self, sample_step, sample_context):
        """Cancellation is never turned into a result."""
        worker = StubWorker(AgentType.CODER, error=asyncio.CancelledError())

        with pytest.raises(asyncio.CancelledError):
            await worker.execute(sample_step, sample_context)

        assert worker.get_step_status(sample_step.id) is None

    @pytest.mark.asyncio
    async def test_successful_output_is_remembered(self, sample_step, sample_context):
        """Bound memory receives successful outputs only."""
        memory = InMemoryStore()
        worker = StubWorker(AgentType.CODER, output={"summary": "added reset endpoint"})
        worker.bind_memory(memory)

        await worker.execute(sample_step, sample_context)
        worker.output = ""
        await worker.execute(sample_step, sample_context)

        assert len(memory) == 1
        snapshot = await memory.get_relevant_context("reset endpoint")
        assert snapshot.entries[0].metadata["step_id"] == sample_step.id

    @pytest.mark.asyncio
    async def test_memory_failure_does_not_fail_step(self, sample_step, sample_context):
        """A store that raises is logged and ignored."""
        memory = Mock()
        memory.remember.side_effect = RuntimeError("disk full")
        worker = StubWorker(AgentType.CODER)
        worker.bind_memory(memory)

        result = await worker.execute(sample_step, sample_context)

        assert result.success is True
        memory.remember.assert_called_once()

    @pytest.mark.asyncio
    async def test_lifecycle(self):
        """Start and stop toggle the running flag."""
        worker = StubWorker(AgentType.DEVOPS)
        assert not worker.is_running()

        await worker.start()
        assert worker.is_running()

        await worker.stop()
        assert not worker.is_running()

    def test_metadata_and_type(self):
        """Type comes from metadata."""
        worker = StubWorker(AgentType.DESIGNER)

        assert worker.type == AgentType.DESIGNER
        assert worker.metadata.name == "Designer"
        assert worker.logger.name == "task_orchestrator.workers.StubDesigner"


class TestWorkerHandoffs:
    """Test worker handoff helpers."""

    @pytest.mark.asyncio
    async def test_handoff_round_trip(self, handoffs):
        """A coder delegates to a reviewer and receives the reviewer's output."""
        coder = StubWorker(AgentType.CODER)
        reviewer = StubWorker(AgentType.REVIEWER, output={"verdict": "approve"})
        coder.bind_handoffs(handoffs)
        reviewer.bind_handoffs(handoffs)

        waiting = asyncio.ensure_future(
            coder.handoff_to(AgentType.REVIEWER, "Review the login handler", expectations=["Verdict"])
        )
        await asyncio.sleep(0)

        [active] = handoffs.get_active_handoffs_for_agent(AgentType.REVIEWER)
        assert active.request.callback_data == {"source_worker": "Coder"}
        received = await reviewer.receive_handoff(active.request)
        result = await waiting

        assert received == result
        assert result.success is True
        assert result.artifacts == {"result": {"verdict": "approve"}}
        assert reviewer.calls[0].description == "Review the login handler"
        assert reviewer.calls[0].requirements == ["Verdict"]

    @pytest.mark.asyncio
    async def test_receive_accepts_pending(self, channel, scheduler, clock):
        """Pending handoffs are accepted before work starts."""
        manager = HandoffManager(
            policy=HandoffPolicy(require_acceptance=True),
            notifications=channel, scheduler=scheduler, clock=clock
        )
        debugger = StubWorker(AgentType.DEBUGGER)
        debugger.bind_handoffs(manager)

        request = manager.request_handoff(AgentType.CODER, AgentType.DEBUGGER, "Reproduce the crash")
        assert [h.request.id for h in debugger.get_pending_handoffs()] == [request.id]

        result = await debugger.receive_handoff(request)

        assert result.status == HandoffStatus.COMPLETED
        assert debugger.get_pending_handoffs() == []

    @pytest.mark.asyncio
    async def test_receive_failed_execution_fails_handoff(self, handoffs):
        """An unsuccessful result fails the handoff with the first issue."""
        reviewer = StubWorker(AgentType.REVIEWER, error=RuntimeError("linter crashed"))
        reviewer.bind_handoffs(handoffs)
        request = handoffs.request_handoff(AgentType.CODER, AgentType.REVIEWER, "Review")

        result = await reviewer.receive_handoff(request)

        assert result.status == HandoffStatus.FAILED
        assert result.reason == "linter crashed"

    @pytest.mark.asyncio
    async def test_receive_fault_fails_handoff_and_propagates(self, handoffs):
        """A fault escaping execute fails the handoff and is re-raised."""
        reviewer = RaisingWorker(AgentType.REVIEWER, error=RuntimeError("worker died"))
        reviewer.bind_handoffs(handoffs)
        request = handoffs.request_handoff(AgentType.CODER, AgentType.REVIEWER, "Review")

        with pytest.raises(RuntimeError):
            await reviewer.receive_handoff(request)

        handoff = handoffs.get_handoff(request.id)
        assert handoff.status == HandoffStatus.FAILED
        assert handoff.result.reason == "worker died"

    @pytest.mark.asyncio
    async def test_receive_after_timeout_returns_timeout_result(self, handoffs, scheduler):
        """Work finishing after the timeout does not reopen the handoff."""
        reviewer = StubWorker(AgentType.REVIEWER)
        reviewer.bind_handoffs(handoffs)
        request = handoffs.request_handoff(AgentType.CODER, AgentType.REVIEWER, "Review", timeout=1)

        original = reviewer.process

        async def slow_process(step, context):
            scheduler.advance(2)
            return await original(step, context)

        reviewer.process = slow_process
        result = await reviewer.receive_handoff(request)

        assert result.status == HandoffStatus.FAILED
        assert result.reason == "Handoff timed out"

    @pytest.mark.asyncio
    async def test_unbound_worker_cannot_hand_off(self):
        """Handoff helpers need a manager."""
        worker = StubWorker(AgentType.CODER)

        with pytest.raises(RuntimeError):
            await worker.handoff_to(AgentType.REVIEWER, "Review")
        with pytest.raises(RuntimeError):
            worker.get_pending_handoffs()


class TestChatWorker:
    """Test chat-backed worker."""

    def make_worker(self, agent_type, reply):
        client = Mock()
        client.chat = AsyncMock(return_value=reply)
        return ChatWorker(agent_type, client), client

    @pytest.mark.asyncio
    async def test_json_reply_becomes_output(self, sample_step, sample_context):
        """The first JSON object in the reply is the output."""
        worker, client = self.make_worker(
            AgentType.CODER, 'Here you go:\n```json\n{"summary": "added endpoint"}\n```'
        )

        result = await worker.execute(sample_step, sample_context)

        assert result.success is True
        assert result.output == {"summary": "added endpoint"}
        messages = client.chat.call_args[0][0]
        assert all(isinstance(m, ChatMessage) for m in messages)
        assert messages[0].role == "system"
        assert "Coder" in messages[0].content

    @pytest.mark.asyncio
    async def test_plain_reply_is_kept(self, sample_step, sample_context):
        """Replies without JSON are wrapped as content."""
        worker, _ = self.make_worker(AgentType.CODER, "  Done, see the diff.  ")

        result = await worker.execute(sample_step, sample_context)

        assert result.output == {"content": "Done, see the diff."}

    @pytest.mark.asyncio
    async def test_blank_reply_fails(self, sample_step, sample_context):
        """A blank reply is no output."""
        worker, _ = self.make_worker(AgentType.CODER, "   ")

        result = await worker.execute(sample_step, sample_context)

        assert result.success is False
        assert result.requires_replanning is True

    def test_prompt_includes_upstream_work_and_metrics(self, sample_step, sample_context):
        """Reviewer prompts carry earlier outputs and ask for metrics."""
        worker, _ = self.make_worker(AgentType.REVIEWER, "")
        context = AgentContext(
            previous_results=[
                AgentResult(step_id="a", agent_type=AgentType.ARCHITECT, success=True,
                            output={"summary": "use a queue"}),
                AgentResult(step_id="b", agent_type=AgentType.CODER, success=False),
            ],
            memory={"notes": "legacy auth"},
            current_step=sample_step,
            plan=sample_context.plan,
        )

        prompt = worker.build_prompt(sample_step, context)

        assert "[architect] " + json.dumps({"summary": "use a queue"}) in prompt
        assert "[coder]" not in prompt
        assert "legacy auth" in prompt
        assert "overall_score" in prompt

    def test_create_default_workers(self):
        """One worker per agent type, named from the profiles."""
        workers = create_default_workers(Mock())

        assert [w.type for w in workers] == list(AgentType)
        assert all(w.metadata == WORKER_PROFILES[w.type] for w in workers)
