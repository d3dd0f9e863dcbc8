#!/usr/bin/env python3
"""
open-tasks Main Entry Point

Command-line interface for running workflows and storing or loading refs
in a directory-backed workflow context.
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from . import __version__
from .config import WorkflowConfig
from .contracts.models import RefRecord
from .output import ConsoleSink, describe_refs
from .utils.json_logger import configure_logging
from .workflow.decorators import TokenDecorator
from .workflow.errors import ConfigurationError
from .workflow.types import StringRef

app = typer.Typer(
    name="open-tasks",
    help="Composable workflow commands with traceable outputs",
    rich_markup_mode="rich",
)
console = Console()

_state = {"verbose": False, "json_logs": False}


# Cross-platform safe success/failure symbols (avoid Unicode on legacy Windows)
def _symbol(ok: bool) -> str:
    enc = (getattr(sys.stdout, "encoding", None) or "").lower()
    if "utf" in enc:
        return "✓" if ok else "✗"
    return "OK" if ok else "FAIL"


def _load_config(output_dir: Optional[Path] = None) -> WorkflowConfig:
    try:
        config = WorkflowConfig.load().ensure_valid()
    except ConfigurationError as e:
        console.print(f"[red]{_symbol(False)} Invalid configuration: {e}[/red]")
        raise typer.Exit(code=2)

    if output_dir is not None:
        config.output_dir = str(output_dir.resolve())
    if _state["json_logs"]:
        config.log_format = "json"
    if _state["verbose"]:
        config.log_level = "DEBUG"
    console.no_color = not config.colors

    configure_logging(config.log_level, config.log_format)
    return config


def _print_refs(refs: List[StringRef], as_json: bool) -> None:
    if as_json:
        records = [RefRecord.from_ref(ref).model_dump(mode="json") for ref in refs]
        typer.echo(json.dumps(records, indent=2))
        return
    for line in describe_refs(refs):
        console.print(f"  {line}", highlight=False)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed progress"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines"),
):
    """open-tasks: composable workflow commands."""
    _state["verbose"] = verbose
    _state["json_logs"] = json_logs


@app.command("run")
def run_workflow(
    workflow_file: Path = typer.Argument(..., help="Path to workflow YAML file"),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", "-o", help="Directory for stored refs"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would be done without executing"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print produced refs as JSON"),
):
    """Run a workflow file step by step."""
    from .workflow_runner import WorkflowRunner

    config = _load_config(output_dir)
    if not as_json:
        console.print(f"[bold blue]Running workflow:[/bold blue] {workflow_file}")
        if dry_run:
            console.print("[yellow]DRY RUN mode - no changes will be made[/yellow]")

    sink = ConsoleSink(console=console, verbose=_state["verbose"])
    runner = WorkflowRunner(config=config, sink=None if as_json else sink)
    result = runner.run(workflow_file=workflow_file, dry_run=dry_run, output_dir=output_dir)

    if result.success:
        if not as_json:
            console.print(
                f"[green]{_symbol(True)} Workflow completed successfully "
                f"({result.steps_completed} step(s))[/green]"
            )
        _print_refs(result.refs, as_json)
    else:
        console.print(f"[red]{_symbol(False)} Workflow failed: {result.error}[/red]")
        if result.refs and not as_json:
            console.print("[yellow]Refs stored before the failure:[/yellow]")
            _print_refs(result.refs, False)
        raise typer.Exit(code=1)


@app.command("store")
def store_value(
    value: str = typer.Argument(..., help="Value to store"),
    token: Optional[str] = typer.Option(None, "--token", "-t", help="Token name"),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", "-o", help="Directory for stored refs"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the ref as JSON"),
):
    """Store a value as a new ref in the output directory."""
    config = _load_config(output_dir)
    context = config.create_context()

    decorators = [TokenDecorator(token)] if token else []
    ref = asyncio.run(context.store(value, decorators))

    if not as_json:
        console.print(
            f"[green]{_symbol(True)} Stored[/green] {context.path_for(ref)}", highlight=False
        )
    _print_refs([ref], as_json)


@app.command("load")
def load_file(
    file: Path = typer.Argument(..., help="File to register as a ref"),
    token: Optional[str] = typer.Option(None, "--token", "-t", help="Token name"),
    as_json: bool = typer.Option(False, "--json", help="Print the ref as JSON"),
):
    """Register an existing file as a ref without copying it."""
    config = _load_config()
    context = config.create_context()

    if not file.is_file():
        console.print(f"[red]{_symbol(False)} File not found: {file}[/red]")
        raise typer.Exit(code=1)

    ref = asyncio.run(context.load(file, token))
    if not as_json:
        console.print(f"[green]{_symbol(True)} Loaded[/green] {file}", highlight=False)
    _print_refs([ref], as_json)


@app.command("version")
def show_version():
    """Show the installed version."""
    console.print(f"open-tasks {__version__}")


def main():
    """Main entry point for the open-tasks CLI."""
    app()


if __name__ == "__main__":
    main()
