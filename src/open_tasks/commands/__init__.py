"""
Workflow Commands

Composable operations over a workflow context. Transform commands record
lineage metadata on every ref they store.
"""

from .base import BaseCommand, BaseTransformCommand, replace_placeholders, to_text
from .basic import (
    JsonTransformCommand,
    LoadCommand,
    QuestionCommand,
    ReadCommand,
    SetCommand,
    TemplateCommand,
    TextTransformCommand,
    WriteCommand,
)
from .shell import ShellCommand
from .transforms import (
    ExtractCommand,
    JoinCommand,
    RegexMatchCommand,
    SplitCommand,
    TokenReplaceCommand,
    compile_pattern,
)

__all__ = [
    "BaseCommand",
    "BaseTransformCommand",
    "TokenReplaceCommand",
    "ExtractCommand",
    "RegexMatchCommand",
    "SplitCommand",
    "JoinCommand",
    "SetCommand",
    "ReadCommand",
    "LoadCommand",
    "WriteCommand",
    "TemplateCommand",
    "TextTransformCommand",
    "JsonTransformCommand",
    "QuestionCommand",
    "ShellCommand",
    "compile_pattern",
    "replace_placeholders",
    "to_text",
]
