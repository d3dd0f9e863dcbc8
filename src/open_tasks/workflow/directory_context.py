"""
Directory Output Context

Workflow context that writes every stored ref to a file in an output
directory, with the ref's lineage prepended as YAML frontmatter.
"""

import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Set, Union

from ..utils.json_logger import log_with_context
from .context import BaseWorkflowContext
from .provenance import render_with_frontmatter
from .types import StringRef

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = ".open-tasks/outputs"


def serialize_content(value: Any) -> str:
    """Strings are written verbatim, everything else as indented JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


class DirectoryWorkflowContext(BaseWorkflowContext):
    """Context that persists each stored ref under ``output_dir``.

    The directory is treated as append-only: generated file names never
    replace a file already present. Names supplied through a
    FileNameDecorator are written exactly as given.
    """

    def __init__(
        self,
        output_dir: Union[str, Path] = DEFAULT_OUTPUT_DIR,
        default_extension: str = "txt",
    ):
        super().__init__(default_extension=default_extension)
        self.output_dir = Path(output_dir)
        self._written: Set[str] = set()
        self._persisted_ids: Set[str] = set()

    def path_for(self, ref: StringRef) -> Path:
        if not ref.file_name:
            raise ValueError(f"Ref {ref.id} has no file name")
        return self.output_dir / ref.file_name

    def is_persisted(self, ref: StringRef) -> bool:
        """True if this context wrote ``ref`` to the output directory.

        Refs registered through load() point at files elsewhere.
        """
        return ref.id in self._persisted_ids

    def _fallback_file_name(self, ref: StringRef) -> StringRef:
        ref = super()._fallback_file_name(ref)
        if ref.file_name in self._written or (self.output_dir / ref.file_name).exists():
            stem, dot, ext = ref.file_name.rpartition(".")
            unique = f"{stem}-{ref.id[:8]}{dot}{ext}" if dot else f"{ref.file_name}-{ref.id[:8]}"
            logger.warning(
                "File name %s already used in %s, writing %s instead",
                ref.file_name,
                self.output_dir,
                unique,
            )
            ref = replace(ref, file_name=unique)
        return ref

    async def _persist(self, ref: StringRef) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)

        text = render_with_frontmatter(serialize_content(ref.content), ref.metadata)
        path = self.path_for(ref)
        path.write_text(text, encoding="utf-8")
        self._written.add(ref.file_name)
        self._persisted_ids.add(ref.id)

        log_with_context(
            logger,
            logging.DEBUG,
            f"Wrote {path} ({len(text)} chars)",
            ref_id=ref.id,
            token=ref.token,
            file_name=ref.file_name,
        )

    def clear(self) -> None:
        super().clear()
        self._written = set()
        self._persisted_ids = set()
