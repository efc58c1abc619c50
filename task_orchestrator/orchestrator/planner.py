"""Execution planning."""

from typing import List, Optional

from ..models.data_models import (
    AgentType, ComplexTask, ExecutionPlan, ExecutionStep, Priority,
    RiskLevel, TaskAnalysis, TaskComplexity, TaskType
)
from ..utils.logging import get_logger


DEFAULT_STEP_DURATION = 300.0

COMPLEXITY_MULTIPLIERS = {
    TaskComplexity.SIMPLE: 0.7,
    TaskComplexity.MEDIUM: 1.0,
    TaskComplexity.COMPLEX: 1.3,
}


class _StepBuilder:
    """Accumulates steps for one plan and hands out IDs."""

    def __init__(self, task: ComplexTask):
        self.task = task
        self.steps: List[ExecutionStep] = []

    def step_id(self, role: str, n: int = 1) -> str:
        return f"{self.task.id}-{role}-{n}"

    def has(self, step_id: str) -> bool:
        return any(step.id == step_id for step in self.steps)

    def add(
        self,
        role: str,
        agent_type: AgentType,
        description: str,
        requirements: Optional[List[str]] = None,
        dependencies: Optional[List[str]] = None,
        priority: Priority = Priority.MEDIUM,
        estimated_duration: float = DEFAULT_STEP_DURATION,
        n: int = 1
    ) -> str:
        # Only depend on steps that made it into this plan
        deps = [dep for dep in (dependencies or []) if self.has(dep)]
        step = ExecutionStep(
            id=self.step_id(role, n),
            agent_type=agent_type,
            description=description,
            requirements=list(requirements or []),
            dependencies=deps,
            priority=priority,
            estimated_duration=estimated_duration,
        )
        self.steps.append(step)
        return step.id


class ExecutionPlanner:
    """Creates dependency-ordered execution plans from task analyses."""

    def __init__(self):
        """Initialize execution planner."""
        self.logger = get_logger("planner")

    async def plan(self, task: ComplexTask, analysis: TaskAnalysis) -> ExecutionPlan:
        """Create an execution plan.

        Args:
            task: Task being planned
            analysis: Analysis of the task

        Returns:
            Execution plan
        """
        steps = self.create_steps(task, analysis)

        plan = ExecutionPlan(
            task_id=task.id,
            steps=steps,
            parallelizable=self.identify_parallel_steps(steps),
            estimated_duration=self.estimate_duration(steps, analysis.complexity),
            risk_level=self.assess_risk(analysis),
        )

        self.logger.info(
            f"Plan created: {len(steps)} steps, ~{round(plan.estimated_duration / 60)} minutes, "
            f"risk {plan.risk_level.value}"
        )
        return plan

    def create_steps(self, task: ComplexTask, analysis: TaskAnalysis) -> List[ExecutionStep]:
        """Build steps for the task type.

        Args:
            task: Task being planned
            analysis: Analysis of the task

        Returns:
            Ordered steps
        """
        builders = {
            TaskType.FEATURE: self._feature_steps,
            TaskType.BUG: self._bug_fix_steps,
            TaskType.REFACTOR: self._refactor_steps,
            TaskType.DESIGN: self._design_steps,
            TaskType.DEPLOYMENT: self._deployment_steps,
            TaskType.OPTIMIZATION: self._optimization_steps,
        }
        builder = _StepBuilder(task)
        builders[analysis.type](builder, task, set(analysis.required_agents))
        return builder.steps

    def _feature_steps(self, b: _StepBuilder, task: ComplexTask, agents: set):
        """Architecture and design first, then code, then review/test, then ops."""
        arch = b.step_id("arch")
        design = b.step_id("design")
        code = b.step_id("code")
        review = b.step_id("review")
        test = b.step_id("test")

        if AgentType.ARCHITECT in agents:
            b.add("arch", AgentType.ARCHITECT,
                  f"Design architecture for: {task.description}",
                  requirements=task.requirements,
                  priority=Priority.CRITICAL, estimated_duration=300)

        if AgentType.DESIGNER in agents:
            b.add("design", AgentType.DESIGNER,
                  f"Create UI/UX design for: {task.description}",
                  requirements=task.requirements,
                  dependencies=[arch],
                  priority=Priority.HIGH, estimated_duration=360)

        if AgentType.CODER in agents:
            b.add("code", AgentType.CODER,
                  f"Implement: {task.description}",
                  requirements=task.requirements,
                  dependencies=[arch, design],
                  priority=Priority.CRITICAL, estimated_duration=600)

        if AgentType.REVIEWER in agents:
            b.add("review", AgentType.REVIEWER,
                  "Review implementation quality and security",
                  requirements=["Check for security vulnerabilities", "Verify code quality"],
                  dependencies=[code],
                  priority=Priority.HIGH, estimated_duration=240)

        if AgentType.DEBUGGER in agents:
            b.add("test", AgentType.DEBUGGER,
                  "Test and debug implementation",
                  requirements=["Run all tests", "Find and fix bugs"],
                  dependencies=[code],
                  priority=Priority.HIGH, estimated_duration=420)

        if AgentType.DEVOPS in agents:
            deps = [review, test] if (b.has(review) or b.has(test)) else [code]
            b.add("devops", AgentType.DEVOPS,
                  "Setup deployment and infrastructure",
                  requirements=["Configure CI/CD", "Setup monitoring"],
                  dependencies=deps,
                  priority=Priority.MEDIUM, estimated_duration=480)

    def _bug_fix_steps(self, b: _StepBuilder, task: ComplexTask, agents: set):
        """Diagnose, fix, then review and verify."""
        debug = b.add("debug", AgentType.DEBUGGER,
                      f"Debug and identify root cause: {task.description}",
                      requirements=task.requirements,
                      priority=Priority.CRITICAL, estimated_duration=300)

        code = b.add("code", AgentType.CODER,
                     "Implement fix for bug",
                     requirements=["Fix the identified issue", "Add regression tests"],
                     dependencies=[debug],
                     priority=Priority.CRITICAL, estimated_duration=240)

        if AgentType.REVIEWER in agents:
            b.add("review", AgentType.REVIEWER,
                  "Review bug fix",
                  requirements=["Verify fix is correct", "Check for edge cases"],
                  dependencies=[code],
                  priority=Priority.HIGH, estimated_duration=180)

        b.add("test", AgentType.DEBUGGER,
              "Verify bug is fixed and no regressions",
              requirements=["Test the fix", "Run regression tests"],
              dependencies=[code],
              priority=Priority.CRITICAL, estimated_duration=240)

    def _refactor_steps(self, b: _StepBuilder, task: ComplexTask, agents: set):
        """Optional planning, the refactor itself, then verification."""
        arch = b.step_id("arch")
        if AgentType.ARCHITECT in agents:
            b.add("arch", AgentType.ARCHITECT,
                  f"Plan refactoring approach: {task.description}",
                  requirements=task.requirements,
                  priority=Priority.HIGH, estimated_duration=240)

        code = b.add("code", AgentType.CODER,
                     f"Refactor code: {task.description}",
                     requirements=task.requirements or ["Maintain functionality", "Improve code quality"],
                     dependencies=[arch],
                     priority=Priority.CRITICAL, estimated_duration=480)

        b.add("test", AgentType.DEBUGGER,
              "Verify refactoring didn't break anything",
              requirements=["Run all tests", "Verify functionality"],
              dependencies=[code],
              priority=Priority.CRITICAL, estimated_duration=300)

    def _design_steps(self, b: _StepBuilder, task: ComplexTask, agents: set):
        """Design, then implement if a coder is required."""
        design = b.add("design", AgentType.DESIGNER,
                       f"Create design: {task.description}",
                       requirements=task.requirements,
                       priority=Priority.CRITICAL, estimated_duration=420)

        if AgentType.CODER in agents:
            b.add("code", AgentType.CODER,
                  "Implement design",
                  requirements=["Match design exactly", "Ensure responsive"],
                  dependencies=[design],
                  priority=Priority.HIGH, estimated_duration=480)

    def _deployment_steps(self, b: _StepBuilder, task: ComplexTask, agents: set):
        b.add("devops", AgentType.DEVOPS,
              f"Setup deployment: {task.description}",
              requirements=task.requirements,
              priority=Priority.CRITICAL, estimated_duration=540)

    def _optimization_steps(self, b: _StepBuilder, task: ComplexTask, agents: set):
        """Profile, optimize, then verify the improvement."""
        debug = b.add("debug", AgentType.DEBUGGER,
                      "Profile and identify performance bottlenecks",
                      requirements=task.requirements,
                      priority=Priority.HIGH, estimated_duration=300)

        code = b.add("code", AgentType.CODER,
                     f"Optimize: {task.description}",
                     requirements=["Improve performance", "Maintain functionality"],
                     dependencies=[debug],
                     priority=Priority.CRITICAL, estimated_duration=420)

        b.add("test", AgentType.DEBUGGER,
              "Verify performance improvements",
              requirements=["Benchmark performance", "Verify no regressions"],
              dependencies=[code],
              priority=Priority.HIGH, estimated_duration=240)

    def identify_parallel_steps(self, steps: List[ExecutionStep]) -> List[List[str]]:
        """Group steps that share an identical dependency set.

        Args:
            steps: Plan steps

        Returns:
            Groups of step IDs, only groups with more than one member
        """
        groups = {}
        for step in steps:
            key = tuple(sorted(step.dependencies))
            groups.setdefault(key, []).append(step.id)

        return [group for group in groups.values() if len(group) > 1]

    def estimate_duration(self, steps: List[ExecutionStep], complexity: TaskComplexity) -> float:
        """Estimate total plan duration.

        Args:
            steps: Plan steps
            complexity: Task complexity

        Returns:
            Estimated duration in seconds
        """
        base = sum(
            step.estimated_duration if step.estimated_duration is not None else DEFAULT_STEP_DURATION
            for step in steps
        )
        return float(round(base * COMPLEXITY_MULTIPLIERS.get(complexity, 1.0)))

    def assess_risk(self, analysis: TaskAnalysis) -> RiskLevel:
        """Assess plan risk from the analysis.

        Args:
            analysis: Task analysis

        Returns:
            Risk level
        """
        if not analysis.risks and analysis.complexity == TaskComplexity.SIMPLE:
            return RiskLevel.LOW

        if len(analysis.risks) > 3 or analysis.complexity == TaskComplexity.COMPLEX:
            return RiskLevel.HIGH

        return RiskLevel.MEDIUM
