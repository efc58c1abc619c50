#!/usr/bin/env python3
"""
Console entry point: ``python -m task_orchestrator`` or ``task-orchestrator``.
"""

import sys
import click

from .cli.commands import cli
from .exceptions import OrchestratorError


def main():
    """Run the CLI, turning stray errors into a one-line message and exit code."""
    try:
        cli(prog_name="task-orchestrator")
    except KeyboardInterrupt:
        click.echo("\nInterrupted, pending agent work was abandoned.", err=True)
        sys.exit(130)
    except OrchestratorError as e:
        cause = f" (caused by {e.original_error!r})" if e.original_error else ""
        click.echo(f"\nOrchestrator error: {e}{cause}", err=True)
        sys.exit(2)
    except Exception as e:
        click.echo(f"\nError: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
