"""Run report rendering."""

import json
from datetime import datetime, timezone
from typing import List

from ..models.data_models import OrchestrationResult


REPORT_FORMATS = ("markdown", "json", "text")


class ReportGenerator:
    """Render an OrchestrationResult for humans or machines."""

    def generate(self, result: OrchestrationResult, format: str = "markdown") -> str:
        """Generate a run report.

        Args:
            result: Completed run
            format: One of markdown, json or text

        Returns:
            Rendered report
        """
        fmt = format.lower()
        if fmt == "markdown":
            return self._generate_markdown_report(result)
        elif fmt == "json":
            return json.dumps(result.model_dump(mode="json"), indent=2)
        elif fmt == "text":
            return self._generate_text_report(result)
        raise ValueError(f"Unsupported report format: {format}")

    def _generate_markdown_report(self, result: OrchestrationResult) -> str:
        """Generate markdown report."""
        report: List[str] = []

        report.append("# Task Orchestration Report")
        report.append(f"Generated: {datetime.now(timezone.utc).isoformat()}")
        report.append("")

        report.append("## Summary")
        report.append(f"**Task:** {result.task_id}")
        report.append(f"**Status:** {'succeeded' if result.success else 'failed'}")
        report.append(f"**Steps:** {result.steps_completed}/{result.steps_total} completed")
        report.append(f"**Duration:** {result.total_duration:.1f}s")
        report.append(f"**Quality Score:** {result.quality.overall_score:.1%}")
        if result.error:
            report.append(f"**Error:** {result.error}")
        report.append("")

        quality = result.quality
        rows = [
            ("Code quality", quality.code_quality, "{:.2f}"),
            ("Test coverage", quality.test_coverage, "{:.0f}%"),
            ("Security", quality.security_score, "{:.2f}"),
            ("Performance", quality.performance_score, "{:.2f}"),
        ]
        reported = [(label, fmt.format(value)) for label, value, fmt in rows if value is not None]
        if reported:
            report.append("## Quality Metrics")
            for label, value in reported:
                report.append(f"- **{label}:** {value}")
            report.append("")

        if result.results:
            report.append("## Steps")
            for i, step in enumerate(result.results, 1):
                status = "✅" if step.success else "❌"
                report.append(f"### {i}. {status} {step.agent_type.value} ({step.step_id})")
                report.append(f"- **Duration:** {step.duration:.1f}s")
                if step.confidence is not None:
                    report.append(f"- **Confidence:** {step.confidence:.0%}")

                if step.issues:
                    report.append("**Issues:**")
                    for issue in step.issues:
                        report.append(f"- [{issue.severity.value}] {issue.description}")

                if step.suggestions:
                    report.append("**Suggestions:**")
                    for suggestion in step.suggestions:
                        report.append(f"- {suggestion}")

                report.append("")

        if result.final_output and result.final_output.agents:
            report.append("## Outputs")
            for agent, output in result.final_output.agents.items():
                report.append(f"### {agent}")
                report.append("```json")
                report.append(json.dumps(output, indent=2, default=str))
                report.append("```")
                report.append("")

        report.append("---")
        report.append("*Generated by Task Orchestrator*")

        return "\n".join(report)

    def _generate_text_report(self, result: OrchestrationResult) -> str:
        """Generate plain text report."""
        report: List[str] = []

        report.append("TASK ORCHESTRATION REPORT")
        report.append("=" * 50)
        report.append(f"Generated: {datetime.now(timezone.utc).isoformat()}")
        report.append("")

        report.append(f"Task: {result.task_id}")
        report.append(f"Status: {'SUCCEEDED' if result.success else 'FAILED'}")
        report.append(f"Steps completed: {result.steps_completed}/{result.steps_total}")
        report.append(f"Quality score: {result.quality.overall_score:.1%}")
        if result.error:
            report.append(f"Error: {result.error}")
        report.append("")

        if result.results:
            report.append("STEPS")
            report.append("-" * 20)
            for step in result.results:
                status = "ok" if step.success else "FAILED"
                report.append(f"{step.step_id} [{step.agent_type.value}] {status} ({step.duration:.1f}s)")
                for issue in step.issues:
                    report.append(f"  - {issue.severity.value}: {issue.description}")

        return "\n".join(report)
