"""Test synthesis, scoring and reporting."""

import json

import pytest

from task_orchestrator.analysis.report import ReportGenerator
from task_orchestrator.analysis.scoring import QualityScorer, extract_metric
from task_orchestrator.analysis.synthesis import ResultSynthesizer, average_confidence
from task_orchestrator.models.data_models import (
    AgentResult, AgentType, Issue, IssueSeverity, OrchestrationResult, TaskType
)


def ok(agent_type, output=None, confidence=0.8, step_id=None):
    return AgentResult(
        step_id=step_id or f"{agent_type.value}-1",
        agent_type=agent_type,
        success=True,
        output=output if output is not None else {"summary": agent_type.value},
        confidence=confidence,
    )


def failed(agent_type, message="boom"):
    return AgentResult(
        step_id=f"{agent_type.value}-failed",
        agent_type=agent_type,
        success=False,
        issues=[Issue(severity=IssueSeverity.CRITICAL, description=message)],
    )


class TestResultSynthesizer:
    """Test result synthesis."""

    def test_latest_output_per_agent_wins(self):
        """Later successful outputs of a type replace earlier ones."""
        results = [
            ok(AgentType.DEBUGGER, {"phase": "diagnose"}, step_id="d1"),
            ok(AgentType.CODER),
            ok(AgentType.DEBUGGER, {"phase": "verify"}, step_id="d2"),
            failed(AgentType.REVIEWER),
        ]

        output = ResultSynthesizer().synthesize(results, TaskType.BUG)

        assert output.type == TaskType.BUG
        assert output.agents["debugger"] == {"phase": "verify"}
        assert "reviewer" not in output.agents
        assert output.metadata.completed_steps == 3
        assert output.metadata.total_steps == 4
        assert output.metadata.total_issues == 1
        assert output.metadata.average_confidence == pytest.approx(0.8)

    def test_empty_results(self):
        """No results gives empty agents and the default confidence."""
        output = ResultSynthesizer().synthesize([], TaskType.FEATURE)

        assert output.agents == {}
        assert output.metadata.average_confidence == 0.5

    def test_average_confidence_ignores_missing(self):
        """Results without confidence do not count."""
        assert average_confidence([ok(AgentType.CODER, confidence=0.6), failed(AgentType.CODER)]) == 0.6


class TestQualityScorer:
    """Test quality scoring."""

    def test_defaults_without_metrics(self):
        """Missing metrics fall back to their defaults."""
        quality = QualityScorer().score([ok(AgentType.CODER, confidence=1.0)])

        assert quality.code_quality is None
        assert quality.test_coverage is None
        assert quality.overall_score == pytest.approx(0.15 + 0.1 + 0.3 + 0.2)

    def test_reviewer_and_debugger_metrics(self):
        """Metrics come from the first successful reviewer and debugger results."""
        results = [
            failed(AgentType.REVIEWER),
            ok(AgentType.REVIEWER, {"overall_score": 0.9, "security_score": 0.7}, confidence=0.5),
            ok(AgentType.REVIEWER, {"overall_score": 0.1}, confidence=0.5, step_id="r2"),
            ok(AgentType.DEBUGGER, {"metrics": {"coverage": 80, "performance_score": 0.6}}, confidence=0.5),
        ]

        quality = QualityScorer().score(results)

        assert quality.code_quality == 0.9
        assert quality.security_score == 0.7
        assert quality.test_coverage == 80
        assert quality.performance_score == 0.6
        assert quality.overall_score == pytest.approx(0.27 + 0.16 + 0.15 + 0.2 * 3 / 4)

    def test_zero_metric_is_respected(self):
        """A reported zero is not replaced by the default."""
        quality = QualityScorer().score([ok(AgentType.REVIEWER, {"overall_score": 0})])

        assert quality.code_quality == 0.0
        assert quality.security_score == 0.0
        assert quality.overall_score == pytest.approx(0.0 + 0.1 + 0.24 + 0.2)

    def test_no_results(self):
        """An empty run has a zero success term."""
        quality = QualityScorer().score([])

        assert quality.overall_score == pytest.approx(0.15 + 0.1 + 0.15)

    def test_score_is_clamped(self):
        """Out-of-range metrics cannot push the score past 1."""
        results = [
            ok(AgentType.REVIEWER, {"overall_score": 5}, confidence=1.0),
            ok(AgentType.DEBUGGER, {"coverage": 500}, confidence=1.0),
        ]

        assert QualityScorer().score(results).overall_score == 1.0

    def test_extract_metric_ignores_non_numbers(self):
        """Booleans and strings are not metrics."""
        assert extract_metric(ok(AgentType.REVIEWER, {"overall_score": True}), "overall_score") is None
        assert extract_metric(ok(AgentType.REVIEWER, {"overall_score": "high"}), "overall_score") is None
        assert extract_metric(ok(AgentType.REVIEWER, "text"), "overall_score") is None
        assert extract_metric(None, "overall_score") is None


class TestReportGenerator:
    """Test report rendering."""

    @pytest.fixture
    def result(self):
        results = [ok(AgentType.CODER), failed(AgentType.REVIEWER, "review service down")]
        return OrchestrationResult(
            task_id="task-1",
            success=True,
            results=results,
            final_output=ResultSynthesizer().synthesize(results, TaskType.FEATURE),
            total_duration=12.5,
            steps_completed=1,
            steps_total=2,
            quality=QualityScorer().score(results),
        )

    def test_markdown_report(self, result):
        """Markdown report lists summary, steps and outputs."""
        report = ReportGenerator().generate(result, "markdown")

        assert report.startswith("# Task Orchestration Report")
        assert "**Steps:** 1/2 completed" in report
        assert "[critical] review service down" in report
        assert "### coder" in report

    def test_json_report(self, result):
        """JSON report round-trips the result."""
        data = json.loads(ReportGenerator().generate(result, "json"))

        assert data["task_id"] == "task-1"
        assert data["results"][1]["issues"][0]["severity"] == "critical"
        assert OrchestrationResult.model_validate(data).steps_total == 2

    def test_text_report(self, result):
        """Text report summarizes each step."""
        report = ReportGenerator().generate(result, "TEXT")

        assert "TASK ORCHESTRATION REPORT" in report
        assert "reviewer-failed [reviewer] FAILED" in report

    def test_failed_run_report(self):
        """Failed runs show the error."""
        result = OrchestrationResult(task_id="task-2", success=False, error="analyzer exploded")

        report = ReportGenerator().generate(result)

        assert "**Status:** failed" in report
        assert "**Error:** analyzer exploded" in report

    def test_unknown_format(self, result):
        """Unknown formats are rejected."""
        with pytest.raises(ValueError):
            ReportGenerator().generate(result, "html")
