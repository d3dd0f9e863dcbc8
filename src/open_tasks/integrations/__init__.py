"""External process integration for shell steps."""

from .process import ProcessResult, ProcessRunner

__all__ = ["ProcessResult", "ProcessRunner"]
