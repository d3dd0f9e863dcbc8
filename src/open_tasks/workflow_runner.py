#!/usr/bin/env python3
"""
open-tasks Workflow Runner

Executes schema-validated YAML workflows: each step builds one command and
runs it against a single directory-backed context, strictly in order.
"""

import asyncio
import json
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import jsonschema
import yaml
from pydantic import ValidationError

from .commands import (
    ExtractCommand,
    JoinCommand,
    LoadCommand,
    ReadCommand,
    RegexMatchCommand,
    SetCommand,
    ShellCommand,
    SplitCommand,
    TemplateCommand,
    TokenReplaceCommand,
    WriteCommand,
    compile_pattern,
)
from .commands.base import BaseCommand
from .config import WorkflowConfig
from .contracts.models import StepStatus, WorkflowDefinition, WorkflowStep
from .integrations.process import ProcessRunner
from .utils.json_logger import create_workflow_logger
from .workflow.context import BaseWorkflowContext
from .workflow.directory_context import DirectoryWorkflowContext
from .workflow.errors import WorkflowDefinitionError
from .workflow.types import ProgressSink, StringRef

SCHEMA_PATH = Path(__file__).parent / "schemas" / "workflow.schema.json"


@dataclass
class WorkflowResult:
    """Result from workflow execution."""

    success: bool
    error: Optional[str] = None
    artifacts: List[str] = field(default_factory=list)
    refs: List[StringRef] = field(default_factory=list)
    steps_completed: int = 0
    step_status: Dict[str, StepStatus] = field(default_factory=dict)
    execution_time: Optional[float] = None


@dataclass
class StepEnvironment:
    """What step builders need besides the step's own parameters."""

    cwd: Path
    config: WorkflowConfig
    process_runner: ProcessRunner


StepBuilder = Callable[[Dict[str, Any], StepEnvironment], BaseCommand]


def _require(params: Dict[str, Any], key: str) -> Any:
    if key not in params or params[key] is None:
        raise WorkflowDefinitionError(f"missing parameter '{key}'")
    return params[key]


def _pattern(params: Dict[str, Any]):
    try:
        return compile_pattern(_require(params, "pattern"), params.get("flags", ""))
    except (ValueError, TypeError) as e:
        raise WorkflowDefinitionError(f"invalid pattern: {e}") from e


def _build_split(params: Dict[str, Any], env: StepEnvironment) -> BaseCommand:
    if "pattern" in params:
        delimiter = _pattern(params)
    else:
        delimiter = _require(params, "delimiter")
    return SplitCommand(_require(params, "input"), delimiter, params.get("prefix"))


def _build_shell(params: Dict[str, Any], env: StepEnvironment) -> BaseCommand:
    return ShellCommand(
        _require(params, "script"),
        output_token=params.get("output"),
        timeout=params.get("timeout", env.config.shell_timeout_seconds),
        cwd=env.cwd,
        runner=env.process_runner,
    )


STEP_BUILDERS: Dict[str, StepBuilder] = {
    "set": lambda p, env: SetCommand(_require(p, "value"), p.get("token")),
    "read": lambda p, env: ReadCommand(_require(p, "file"), p.get("token"), cwd=env.cwd),
    "load": lambda p, env: LoadCommand(_require(p, "file"), p.get("token"), cwd=env.cwd),
    "write": lambda p, env: WriteCommand(
        _require(p, "file"), _require(p, "input"), p.get("token"), cwd=env.cwd
    ),
    "template": lambda p, env: TemplateCommand(
        _require(p, "source"), p.get("output"), cwd=env.cwd
    ),
    "replace": lambda p, env: TokenReplaceCommand(_require(p, "input"), p.get("output")),
    "extract": lambda p, env: ExtractCommand(_require(p, "input"), _pattern(p), p.get("output")),
    "match": lambda p, env: RegexMatchCommand(_require(p, "input"), _pattern(p), p.get("output")),
    "split": _build_split,
    "join": lambda p, env: JoinCommand(
        list(_require(p, "inputs")), p.get("delimiter", "\n"), p.get("output")
    ),
    "shell": _build_shell,
}


class WorkflowRunner:
    """Loads, validates and executes workflow files."""

    def __init__(
        self,
        config: Optional[WorkflowConfig] = None,
        sink: Optional[ProgressSink] = None,
        process_runner: Optional[ProcessRunner] = None,
        cwd: Optional[Path] = None,
    ):
        self.config = config or WorkflowConfig()
        self.sink = sink
        self.cwd = Path(cwd or Path.cwd())
        self.process_runner = process_runner or ProcessRunner(shell=self.config.shell)

    def run(
        self,
        workflow_file: Path,
        dry_run: bool = False,
        output_dir: Optional[Path] = None,
    ) -> WorkflowResult:
        """Run a workflow file to completion (blocking)."""
        return asyncio.run(self.run_async(workflow_file, dry_run=dry_run, output_dir=output_dir))

    async def run_async(
        self,
        workflow_file: Path,
        dry_run: bool = False,
        output_dir: Optional[Path] = None,
    ) -> WorkflowResult:
        try:
            definition = self.load_definition(workflow_file)
        except WorkflowDefinitionError as e:
            return WorkflowResult(success=False, error=str(e))

        target_dir = output_dir or definition.output_dir or self.config.output_dir
        target_dir = Path(target_dir)
        if not target_dir.is_absolute():
            target_dir = self.cwd / target_dir

        context = replace(self.config, output_dir=str(target_dir)).create_context()
        return await self.execute(definition, context, dry_run=dry_run)

    def load_definition(self, workflow_file: Path) -> WorkflowDefinition:
        workflow = self._load_workflow(workflow_file)
        self._validate_schema(workflow)
        try:
            return WorkflowDefinition.model_validate(workflow)
        except ValidationError as e:
            raise WorkflowDefinitionError(f"Invalid workflow {workflow_file}: {e}") from e

    def _load_workflow(self, workflow_file: Path) -> Dict[str, Any]:
        """Load YAML workflow file."""
        workflow_file = Path(workflow_file)
        if not workflow_file.exists():
            raise WorkflowDefinitionError(f"Failed to load workflow: {workflow_file} not found")

        try:
            with open(workflow_file, "r", encoding="utf-8") as f:
                workflow = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise WorkflowDefinitionError(f"Failed to load workflow: {e}") from e

        if not isinstance(workflow, dict):
            raise WorkflowDefinitionError(
                f"Failed to load workflow: {workflow_file} does not contain a mapping"
            )
        return workflow

    def _validate_schema(self, workflow: Dict[str, Any]) -> None:
        """Validate workflow against the bundled JSON schema."""
        with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
            schema = json.load(f)

        try:
            jsonschema.validate(workflow, schema)
        except jsonschema.ValidationError as e:
            location = "/".join(str(p) for p in e.absolute_path) or "<root>"
            raise WorkflowDefinitionError(
                f"Workflow schema validation failed at {location}: {e.message}"
            ) from e

    def build_command(self, step: WorkflowStep) -> BaseCommand:
        builder = STEP_BUILDERS.get(step.command)
        if builder is None:
            raise WorkflowDefinitionError(f"Unknown command: {step.command}")
        env = StepEnvironment(cwd=self.cwd, config=self.config, process_runner=self.process_runner)
        return builder(step.params, env)

    async def execute(
        self,
        definition: WorkflowDefinition,
        context: BaseWorkflowContext,
        dry_run: bool = False,
    ) -> WorkflowResult:
        """Execute workflow steps in order against ``context``.

        A failing step stops the run; refs stored by earlier steps stay in
        the context and on disk.
        """
        start = time.time()
        refs: List[StringRef] = []
        status: Dict[str, StepStatus] = {}
        completed = 0

        for i, step in enumerate(definition.steps):
            step_id = step.id or f"step-{i + 1}"
            status[step_id] = StepStatus.pending
            log = create_workflow_logger(definition.name, step_id)
            self._report(f"Step {step_id}: {step.name or step.command}")

            if dry_run:
                status[step_id] = StepStatus.skipped
                completed += 1
                continue

            try:
                command = self.build_command(step)
                produced = await context.run(command, sink=self.sink)
            except Exception as e:
                status[step_id] = StepStatus.failed
                log.error(f"Step failed: {e}")
                return WorkflowResult(
                    success=False,
                    error=f"Step {step_id} failed: {e}",
                    artifacts=self._artifacts(context, refs),
                    refs=refs,
                    steps_completed=completed,
                    step_status=status,
                    execution_time=time.time() - start,
                )

            refs.extend(produced)
            status[step_id] = StepStatus.completed
            completed += 1
            log.info(f"Step completed: {len(produced)} ref(s)")

        return WorkflowResult(
            success=True,
            artifacts=self._artifacts(context, refs),
            refs=refs,
            steps_completed=completed,
            step_status=status,
            execution_time=time.time() - start,
        )

    def _artifacts(self, context: BaseWorkflowContext, refs: List[StringRef]) -> List[str]:
        if not isinstance(context, DirectoryWorkflowContext):
            return []
        return [str(context.path_for(ref)) for ref in refs if context.is_persisted(ref)]

    def _report(self, message: str) -> None:
        if self.sink is not None:
            self.sink.write(message, "verbose")
