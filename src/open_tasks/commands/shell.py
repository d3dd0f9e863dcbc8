"""Shell command: run a script and store its output."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..integrations.process import ProcessRunner
from ..workflow.errors import CommandExecutionError
from ..workflow.types import IWorkflowContext, ProgressSink, StringRef
from .base import PLACEHOLDER_PATTERN, BaseTransformCommand, replace_placeholders

DEFAULT_TIMEOUT_SECONDS = 30


class ShellCommand(BaseTransformCommand):
    """Runs a script through the shell and stores its trimmed stdout.

    ``{{name}}`` placeholders in the script are filled from the context
    before it runs. A non-zero exit or a timeout raises
    CommandExecutionError; nothing is stored in that case.
    """

    name = "shell"
    description = "Run a shell script"

    def __init__(
        self,
        script: str,
        output_token: Optional[str] = None,
        timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
        cwd: Optional[Union[str, Path]] = None,
        runner: Optional[ProcessRunner] = None,
    ):
        self.script = script
        self.output_token = output_token
        self.timeout = timeout
        self.cwd = cwd
        self.runner = runner or ProcessRunner()

    def get_transform_type(self) -> str:
        return "Shell"

    def get_input_tokens(self) -> List[str]:
        names: List[str] = []
        for match in PLACEHOLDER_PATTERN.finditer(self.script):
            name = match.group(1).strip()
            if name not in names:
                names.append(name)
        return names

    def get_transform_params(self) -> Dict[str, Any]:
        return {"script": self.script, "outputToken": self.output_token}

    async def execute(
        self,
        context: IWorkflowContext,
        args: List[Any],
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        self._log_execution_start()
        script, used = replace_placeholders(self.script, context.token)

        self._report(sink, "Executing shell script...", "verbose")
        result = self.runner.run(
            script,
            cwd=str(self.cwd) if self.cwd else None,
            timeout=self.timeout,
        )

        if result.timed_out:
            raise CommandExecutionError(
                f"Shell script timed out after {self.timeout}s",
                exit_code=result.code,
                stderr=result.stderr,
            )
        if not result.ok:
            raise CommandExecutionError(
                f"Shell script exited with code {result.code}\nStderr: {result.stderr.strip()}",
                exit_code=result.code,
                stderr=result.stderr,
            )

        ref = await self.store_with_metadata(
            context,
            result.stdout.strip(),
            self.output_token,
            {"exitCode": result.code},
            input_tokens=used,
        )
        self._report(sink, f"Shell script finished ({len(ref.content)} chars of output)")
        self._log_execution_complete([ref])
        return [ref]
