"""
open-tasks: Composable Workflow Commands

Commands read and store values in a workflow context. Every stored value is
a StringRef that can be looked up by id or token and, in a directory-backed
context, is written to disk with its lineage as YAML frontmatter.
"""

__version__ = "0.1.0"
__author__ = "open-tasks Team"
__description__ = "Composable workflow commands with traceable outputs"
