"""Console progress output for commands."""

from typing import List, Optional

from rich.console import Console

from .workflow.types import StringRef


class ConsoleSink:
    """Progress sink that prints command messages to a rich console.

    Messages written at ``verbose`` level are dropped unless the sink was
    created with ``verbose=True``.
    """

    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        self.console = console or Console()
        self.verbose = verbose

    def write(self, message: str, verbosity: str = "summary") -> None:
        if verbosity == "quiet":
            return
        if verbosity == "verbose":
            if self.verbose:
                self.console.print(f"[dim]{message}[/dim]", highlight=False)
            return
        self.console.print(message, highlight=False)


def describe_refs(refs: List[StringRef]) -> List[str]:
    """One line per ref: label and file name."""
    lines = []
    for ref in refs:
        line = ref.label
        if ref.file_name:
            line += f" -> {ref.file_name}"
        lines.append(line)
    return lines
