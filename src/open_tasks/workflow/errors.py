"""Error types raised by the workflow context and commands."""

from typing import Optional


class WorkflowError(Exception):
    """Base exception for workflow errors"""

    pass


class TokenNotFoundError(WorkflowError):
    """Raised when a required token has no stored value"""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Token '{token}' not found in context")


class PatternNotMatchedError(WorkflowError):
    """Raised when a regex pattern matches nothing in a token's content"""

    def __init__(self, token: str, pattern: str):
        self.token = token
        self.pattern = pattern
        super().__init__(
            f"Pattern did not match in content from token '{token}' (pattern: {pattern})"
        )


class ReferenceNotFoundError(WorkflowError):
    """Raised when a ref id or token is not present in the context"""

    def __init__(self, id_or_token: str):
        self.id_or_token = id_or_token
        super().__init__(f"Content reference not found: {id_or_token}")


class CommandExecutionError(WorkflowError):
    """Raised when an external process step fails"""

    def __init__(self, message: str, exit_code: int = -1, stderr: Optional[str] = None):
        self.exit_code = exit_code
        self.stderr = stderr or ""
        super().__init__(message)


class WorkflowDefinitionError(WorkflowError):
    """Raised when a workflow file is missing or invalid"""

    pass


class ConfigurationError(WorkflowError):
    """Raised when configuration is invalid"""

    pass
