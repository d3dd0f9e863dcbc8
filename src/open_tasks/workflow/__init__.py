"""
Reference & Workflow Context

Stored values (StringRef), the decorators that enrich them, and the contexts
that own them.
"""

from .context import BaseWorkflowContext, InMemoryWorkflowContext
from .decorators import (
    FileNameDecorator,
    MetadataDecorator,
    TimestampedFileNameDecorator,
    TokenDecorator,
)
from .directory_context import DirectoryWorkflowContext
from .errors import (
    CommandExecutionError,
    ConfigurationError,
    PatternNotMatchedError,
    ReferenceNotFoundError,
    TokenNotFoundError,
    WorkflowDefinitionError,
    WorkflowError,
)
from .types import (
    ICommand,
    IRefDecorator,
    IWorkflowContext,
    ProgressSink,
    StringRef,
    TransformMetadata,
)

__all__ = [
    "BaseWorkflowContext",
    "InMemoryWorkflowContext",
    "DirectoryWorkflowContext",
    "TokenDecorator",
    "FileNameDecorator",
    "TimestampedFileNameDecorator",
    "MetadataDecorator",
    "StringRef",
    "TransformMetadata",
    "ICommand",
    "IRefDecorator",
    "IWorkflowContext",
    "ProgressSink",
    "WorkflowError",
    "TokenNotFoundError",
    "PatternNotMatchedError",
    "ReferenceNotFoundError",
    "CommandExecutionError",
    "WorkflowDefinitionError",
    "ConfigurationError",
]
