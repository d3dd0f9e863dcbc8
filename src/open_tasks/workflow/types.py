"""
Workflow Reference Types

Core data model for stored values (StringRef), their lineage records
(TransformMetadata) and the contracts between contexts, decorators and
commands.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    runtime_checkable,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_ref_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class TransformMetadata:
    """One derivation step: which transform ran, on which tokens, with what params."""

    type: str
    inputs: Tuple[str, ...] = ()
    params: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "inputs": list(self.inputs),
            "params": dict(self.params),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class StringRef:
    """A stored value plus its derivation history.

    Refs are never updated in place. Decorators return modified copies
    before the ref is registered, and transforms always store new refs.
    """

    id: str
    content: Any
    timestamp: datetime = field(default_factory=utc_now)
    token: Optional[str] = None
    file_name: Optional[str] = None
    metadata: Tuple[TransformMetadata, ...] = ()

    @property
    def label(self) -> str:
        """Token when present, otherwise the id."""
        return self.token or self.id


@runtime_checkable
class IRefDecorator(Protocol):
    """Pure transformation applied to a ref before it is stored."""

    def decorate(self, ref: StringRef) -> StringRef:
        ...


@runtime_checkable
class ProgressSink(Protocol):
    """Human-readable progress output. Never read back by the core."""

    def write(self, message: str, verbosity: str = "summary") -> None:
        ...


@runtime_checkable
class IWorkflowContext(Protocol):
    """Owner of the ref store and the token index."""

    async def store(
        self, value: Any, decorators: Optional[Sequence[IRefDecorator]] = None
    ) -> StringRef:
        ...

    def token(self, name: str) -> Any:
        ...

    async def run(
        self,
        command: "ICommand",
        args: Optional[List[Any]] = None,
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        ...


@runtime_checkable
class ICommand(Protocol):
    """Composable unit of work: reads refs by token, stores new refs."""

    async def execute(
        self,
        context: IWorkflowContext,
        args: List[Any],
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        ...
