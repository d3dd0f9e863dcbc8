"""
Workflow Context

Owns the ref store (id -> StringRef) and the token index (token -> latest id)
and is the only mutation surface commands use. Subclasses decide how a
finalized ref is persisted.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from .decorators import TimestampedFileNameDecorator
from .errors import ReferenceNotFoundError
from .types import (
    ICommand,
    IRefDecorator,
    ProgressSink,
    StringRef,
    new_ref_id,
    utc_now,
)

logger = logging.getLogger(__name__)


class BaseWorkflowContext:
    """Shared store/lookup/run behaviour for all context backends."""

    def __init__(self, default_extension: str = "txt"):
        self.default_extension = default_extension
        self._memory: Dict[str, StringRef] = {}
        self._token_index: Dict[str, str] = {}

    async def store(
        self, value: Any, decorators: Optional[Sequence[IRefDecorator]] = None
    ) -> StringRef:
        """Decorate, persist and register a new ref for ``value``."""
        ref = StringRef(id=new_ref_id(), content=value, timestamp=utc_now())

        for decorator in decorators or ():
            ref = decorator.decorate(ref)

        if not ref.file_name:
            ref = self._fallback_file_name(ref)

        await self._persist(ref)
        self._register(ref)
        return ref

    async def load(self, file_path: Union[str, Path], token: Optional[str] = None) -> StringRef:
        """Register the content of an existing file as a new ref.

        The file is not copied; the ref's file name is the file's basename.
        """
        path = Path(file_path)
        content = path.read_text(encoding="utf-8")
        ref = StringRef(
            id=new_ref_id(),
            content=content,
            timestamp=utc_now(),
            token=token,
            file_name=path.name,
        )
        self._register(ref)
        logger.debug(
            "Loaded %s", path, extra={"ref_id": ref.id, "token": token, "file_name": ref.file_name}
        )
        return ref

    def token(self, name: str) -> Any:
        """Content of the most recently stored ref carrying ``name``, or None."""
        ref_id = self._token_index.get(name)
        if ref_id is None:
            return None
        ref = self._memory.get(ref_id)
        return ref.content if ref is not None else None

    def has_token(self, name: str) -> bool:
        return name in self._token_index

    def get(self, id_or_token: str) -> Optional[StringRef]:
        """Look up a ref by id first, then by token."""
        ref = self._memory.get(id_or_token)
        if ref is not None:
            return ref

        ref_id = self._token_index.get(id_or_token)
        if ref_id is not None:
            return self._memory.get(ref_id)

        return None

    def require(self, id_or_token: str) -> StringRef:
        """Like get, but raises ReferenceNotFoundError when nothing matches."""
        ref = self.get(id_or_token)
        if ref is None:
            raise ReferenceNotFoundError(id_or_token)
        return ref

    def list(self) -> List[StringRef]:
        return list(self._memory.values())

    async def run(
        self,
        command: ICommand,
        args: Optional[List[Any]] = None,
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        return await command.execute(self, list(args or []), sink)

    def clear(self) -> None:
        """Drop every ref and the token index. Files on disk are left alone."""
        self._memory = {}
        self._token_index = {}

    def __len__(self) -> int:
        return len(self._memory)

    async def _persist(self, ref: StringRef) -> None:
        """Write the finalized ref somewhere durable. No-op by default."""
        return None

    def _fallback_file_name(self, ref: StringRef) -> StringRef:
        return TimestampedFileNameDecorator(ref.label, self.default_extension).decorate(ref)

    def _register(self, ref: StringRef) -> None:
        self._memory[ref.id] = ref
        if ref.token:
            self._token_index[ref.token] = ref.id


class InMemoryWorkflowContext(BaseWorkflowContext):
    """Context that keeps refs in process memory only."""

    async def _persist(self, ref: StringRef) -> None:
        logger.debug(
            "Stored in memory",
            extra={"ref_id": ref.id, "token": ref.token, "file_name": ref.file_name},
        )
