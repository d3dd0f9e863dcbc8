"""Process execution for shell workflow steps."""

import logging
import shutil
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Result of a process execution."""

    code: int
    stdout: str
    stderr: str
    ok: bool = False
    timed_out: bool = False
    details: str = ""

    def __post_init__(self):
        self.ok = self.code == 0 and not self.timed_out
        if not self.details:
            self.details = self.stderr if self.stderr else "Process completed"


class ProcessRunner:
    """Run scripts through a shell with timeout and dry-run support."""

    def __init__(self, shell: Optional[str] = None, dry_run: bool = False):
        """Initialize ProcessRunner.

        Args:
            shell: Shell executable for string commands (default: system shell)
            dry_run: If True, commands will be logged but not executed
        """
        self.shell = shell
        self.dry_run = dry_run

    def run(
        self,
        command: Union[str, List[str]],
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        """Run a command and return the result.

        String commands go through the shell; lists are executed directly.
        Failures to start the process are reported as a failed result rather
        than raised.
        """
        use_shell = isinstance(command, str)
        cmd_str = command if use_shell else " ".join(command)

        logger.info(f"{'[DRY RUN] ' if self.dry_run else ''}Running: {cmd_str}")

        if self.dry_run:
            return ProcessResult(
                code=0,
                stdout=f"[DRY RUN] Would execute: {cmd_str}",
                stderr="",
                details="Dry run - command not executed",
            )

        kwargs = {}
        if use_shell and self.shell:
            kwargs["executable"] = shutil.which(self.shell) or self.shell

        try:
            result = subprocess.run(
                command,
                cwd=cwd,
                env=env,
                timeout=timeout,
                capture_output=True,
                text=True,
                shell=use_shell,
                **kwargs,
            )
            return ProcessResult(
                code=result.returncode,
                stdout=result.stdout or "",
                stderr=result.stderr or "",
                details=result.stderr if result.returncode != 0 else "Success",
            )

        except subprocess.TimeoutExpired as e:
            return ProcessResult(
                code=-1,
                stdout=_decode(e.stdout),
                stderr=_decode(e.stderr),
                timed_out=True,
                details=f"Command timed out after {timeout} seconds",
            )

        except OSError as e:
            return ProcessResult(
                code=-1,
                stdout="",
                stderr=str(e),
                details=f"Process execution failed: {e}",
            )


def _decode(output: Union[bytes, str, None]) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode(errors="replace")
    return output
