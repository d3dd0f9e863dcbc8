"""
Provenance Encoding

Renders a ref's lineage trail as a YAML frontmatter block ahead of the
persisted content. The output is deterministic for a given metadata list and
is never parsed back by the workflow context.

    ---
    transforms:
      - type: TokenReplace
        inputs: [template]
        params:
          outputToken: "result"
        timestamp: 2025-01-31T12:00:00.123Z
    ---

    <content>
"""

import json
import re
from datetime import datetime, timezone
from typing import Any, Iterable, List

from .types import TransformMetadata

FRONTMATTER_DELIMITER = "---"

# Characters that would change the meaning of a bare flow-sequence item
_UNSAFE_SCALAR = re.compile(r"[,\[\]{}:#\"'&*!|>%@`]|^\s|\s$|^$")


def format_iso_timestamp(ts: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def format_param_value(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def _format_input(token: str) -> str:
    if _UNSAFE_SCALAR.search(token):
        return json.dumps(token, ensure_ascii=False)
    return token


def format_metadata_yaml(metadata: Iterable[TransformMetadata]) -> str:
    """Render the ``transforms:`` list, one item per entry, in order."""
    lines: List[str] = ["transforms:"]

    for transform in metadata:
        lines.append(f"  - type: {transform.type}")
        if transform.inputs:
            inputs = ", ".join(_format_input(t) for t in transform.inputs)
            lines.append(f"    inputs: [{inputs}]")
        if transform.params:
            lines.append("    params:")
            for key, value in transform.params.items():
                lines.append(f"      {key}: {format_param_value(value)}")
        lines.append(f"    timestamp: {format_iso_timestamp(transform.timestamp)}")

    return "\n".join(lines) + "\n"


def render_with_frontmatter(text: str, metadata: Iterable[TransformMetadata]) -> str:
    """Prepend the frontmatter block when there is any metadata."""
    metadata = list(metadata)
    if not metadata:
        return text
    block = format_metadata_yaml(metadata)
    return f"{FRONTMATTER_DELIMITER}\n{block}{FRONTMATTER_DELIMITER}\n\n{text}"
