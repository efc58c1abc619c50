"""CLI commands for the task orchestrator."""

import asyncio
from typing import Tuple

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress
from rich.table import Table

from ..analysis.report import REPORT_FORMATS, ReportGenerator
from ..models.data_models import ComplexTask, OrchestrationResult, PlanPreview
from ..models.events import ProgressEvent, StepEvent
from ..orchestrator.main import Orchestrator
from ..utils.config import Config
from ..utils.logging import setup_logging
from ..workers.chat_worker import WORKER_PROFILES

console = Console()


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--config-file', type=click.Path(), help='Configuration file path')
@click.pass_context
def cli(ctx, debug, config_file):
    """Multi-agent task orchestrator CLI."""
    ctx.ensure_object(dict)

    # Load configuration
    config = Config(config_file)
    ctx.obj['config'] = config

    # Setup logging
    log_level = "DEBUG" if debug else config.log_level
    setup_logging(log_level=log_level, log_file=config.log_file, console_output=debug, rich_output=True)

    console.print(Panel.fit(
        "[bold blue]Task Orchestrator[/bold blue]\n"
        "Multi-agent planning and execution for software tasks",
        border_style="blue"
    ))


def build_task(description: str, requirements: Tuple[str, ...], constraints: Tuple[str, ...]) -> ComplexTask:
    return ComplexTask(
        description=description,
        requirements=list(requirements),
        constraints=list(constraints),
    )


@cli.command()
@click.argument('description')
@click.option('-r', '--requirement', 'requirements', multiple=True, help='Task requirement (repeatable)')
@click.option('-c', '--constraint', 'constraints', multiple=True, help='Task constraint (repeatable)')
@click.pass_context
def plan(ctx, description, requirements, constraints):
    """Analyze and plan a task without executing it."""
    config = ctx.obj['config']

    async def run_plan():
        orchestrator = Orchestrator.from_config(config)
        return await orchestrator.get_plan(build_task(description, requirements, constraints))

    try:
        preview = asyncio.run(run_plan())
    except Exception as e:
        console.print(f"[red]Planning failed: {e}[/red]")
        ctx.exit(1)
        return

    display_plan(preview)


@cli.command()
@click.argument('description')
@click.option('-r', '--requirement', 'requirements', multiple=True, help='Task requirement (repeatable)')
@click.option('-c', '--constraint', 'constraints', multiple=True, help='Task constraint (repeatable)')
@click.option('--output', type=click.Path(), help='Write the report to this file')
@click.option('--format', 'output_format', default='markdown',
              type=click.Choice(list(REPORT_FORMATS)), help='Report format')
@click.pass_context
def run(ctx, description, requirements, constraints, output, output_format):
    """Run a task through analysis, planning and execution."""
    config = ctx.obj['config']
    task = build_task(description, requirements, constraints)

    async def run_task():
        orchestrator = Orchestrator.from_config(config)

        try:
            await orchestrator.start()

            with Progress() as progress:
                bar = progress.add_task("Orchestrating...", total=100)

                def on_progress(event: ProgressEvent):
                    progress.update(bar, completed=event.percentage, description=event.message)

                def on_step(event: StepEvent):
                    if event.event_type == "step_failed":
                        progress.console.print(f"[red]✗ {event.message}[/red]")
                    elif event.data.get("success") is False:
                        progress.console.print(f"[yellow]! {event.message}[/yellow]")
                    else:
                        progress.console.print(f"[green]✓ {event.message}[/green]")

                orchestrator.notifications.subscribe(on_progress, ["progress"])
                orchestrator.notifications.subscribe(on_step, ["step_complete", "step_failed"])

                return await orchestrator.handle_task(task)
        finally:
            await orchestrator.stop()

    try:
        result = asyncio.run(run_task())
    except Exception as e:
        console.print(f"[red]Run failed: {e}[/red]")
        ctx.exit(1)
        return

    if output:
        report = ReportGenerator().generate(result, output_format)
        with open(output, 'w') as f:
            f.write(report)
        console.print(f"[green]Report saved to {output}[/green]")

    display_run_results(result)
    if not result.success:
        ctx.exit(1)


@cli.command()
def agents():
    """List the available agent profiles."""
    table = Table(title="Agents")
    table.add_column("Type", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Specialty", style="blue")
    table.add_column("Capabilities", style="magenta")

    for agent_type, profile in WORKER_PROFILES.items():
        table.add_row(
            agent_type.value,
            profile.name,
            profile.specialty,
            ", ".join(c.name for c in profile.capabilities)
        )

    console.print(table)


@cli.command()
@click.pass_context
def config(ctx):
    """Show the effective configuration."""
    settings = ctx.obj['config'].to_dict()

    table = Table(title="Configuration")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")

    for key, value in sorted(settings.items()):
        if key == "openai_api_key":
            value = "********" if value else "(not set)"
        table.add_row(key, str(value))

    console.print(table)


def display_plan(preview: PlanPreview):
    """Display an analysis and plan in the console."""
    analysis = preview.analysis
    console.print(f"\n[bold]Type:[/bold] {analysis.type.value}")
    console.print(f"[bold]Complexity:[/bold] {analysis.complexity.value}")
    console.print(f"[bold]Agents:[/bold] {', '.join(a.value for a in analysis.required_agents)}")

    if analysis.risks:
        console.print("\n[yellow]Risks:[/yellow]")
        for risk in analysis.risks:
            console.print(f"  ⚠ {risk}")

    table = Table(title="Execution Plan")
    table.add_column("#", style="cyan")
    table.add_column("Step", style="green")
    table.add_column("Agent", style="blue")
    table.add_column("Priority", style="magenta")
    table.add_column("Depends on", style="yellow")

    for i, step in enumerate(preview.plan.steps, 1):
        table.add_row(
            str(i),
            step.description,
            step.agent_type.value,
            step.priority.value,
            ", ".join(step.dependencies) or "-"
        )

    console.print(table)
    console.print(
        f"\n[dim]~{round(preview.plan.estimated_duration / 60)} minutes, "
        f"risk {preview.plan.risk_level.value}[/dim]"
    )


def display_run_results(result: OrchestrationResult):
    """Display run results in the console."""
    if not result.success:
        console.print(f"[red]Orchestration failed: {result.error}[/red]")
        return

    table = Table(title="Results")
    table.add_column("Step", style="cyan")
    table.add_column("Agent", style="blue")
    table.add_column("Status")
    table.add_column("Confidence", style="magenta")
    table.add_column("Duration", style="yellow")

    for step in result.results:
        table.add_row(
            step.step_id,
            step.agent_type.value,
            "[green]ok[/green]" if step.success else "[red]failed[/red]",
            f"{step.confidence:.0%}" if step.confidence is not None else "-",
            f"{step.duration:.1f}s"
        )

    console.print(table)
    console.print(
        f"\n[bold]Steps:[/bold] {result.steps_completed}/{result.steps_total}   "
        f"[bold]Quality:[/bold] {result.quality.overall_score:.1%}"
    )
    console.print(f"[dim]Completed in {result.total_duration:.1f}s[/dim]")


if __name__ == '__main__':
    cli()
