"""
Base Command Interface

Commands are the composable units of a workflow. Each one reads its inputs
from the context by token, computes a result and stores new refs. Transform
commands additionally attach a lineage record describing how the new content
was derived.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..workflow.decorators import MetadataDecorator, TokenDecorator
from ..workflow.errors import TokenNotFoundError
from ..workflow.types import (
    IRefDecorator,
    IWorkflowContext,
    ProgressSink,
    StringRef,
    TransformMetadata,
    utc_now,
)

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}]+)\}\}")


def to_text(value: Any) -> str:
    """Strings pass through, other values become compact JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def replace_placeholders(
    text: str, lookup: Callable[[str], Any]
) -> Tuple[str, List[str]]:
    """Substitute ``{{name}}`` occurrences using ``lookup``.

    Names are stripped of surrounding whitespace. Placeholders whose lookup
    returns None stay in the output unchanged.

    Returns:
        The substituted text and the names that were replaced, in order.
    """
    used: List[str] = []

    def _sub(match: "re.Match[str]") -> str:
        name = match.group(1).strip()
        value = lookup(name)
        if value is None:
            return match.group(0)
        used.append(name)
        return to_text(value)

    return PLACEHOLDER_PATTERN.sub(_sub, text), used


class BaseCommand(ABC):
    """Abstract base class for all workflow commands."""

    name: str = "command"
    description: str = ""

    @property
    def logger(self) -> logging.Logger:
        return logging.getLogger(f"command.{self.name}")

    @abstractmethod
    async def execute(
        self,
        context: IWorkflowContext,
        args: List[Any],
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        """
        Execute the command against a context.

        Args:
            context: The workflow context to read from and store into
            args: Extra positional arguments supplied by the caller
            sink: Optional progress output; never affects produced data

        Returns:
            The refs created by this invocation
        """
        pass

    def _require_token(self, context: IWorkflowContext, name: str) -> Any:
        value = context.token(name)
        if value is None:
            raise TokenNotFoundError(name)
        return value

    def _report(
        self, sink: Optional[ProgressSink], message: str, verbosity: str = "summary"
    ) -> None:
        if sink is not None:
            sink.write(message, verbosity)

    def _token_decorators(self, token: Optional[str]) -> List[IRefDecorator]:
        return [TokenDecorator(token)] if token else []

    def _log_execution_start(self) -> None:
        self.logger.info(f"Starting execution: {self.name}")

    def _log_execution_complete(self, refs: List[StringRef]) -> None:
        labels = ", ".join(ref.label for ref in refs)
        self.logger.info(f"Execution complete: {len(refs)} ref(s) [{labels}]")


class BaseTransformCommand(BaseCommand):
    """Template for commands that record lineage on the refs they store."""

    @abstractmethod
    def get_transform_type(self) -> str:
        pass

    @abstractmethod
    def get_input_tokens(self) -> List[str]:
        pass

    @abstractmethod
    def get_transform_params(self) -> Dict[str, Any]:
        pass

    def create_metadata(self) -> TransformMetadata:
        return TransformMetadata(
            type=self.get_transform_type(),
            inputs=tuple(self.get_input_tokens()),
            params=dict(self.get_transform_params()),
            timestamp=utc_now(),
        )

    async def store_with_metadata(
        self,
        context: IWorkflowContext,
        content: Any,
        output_token: Optional[str] = None,
        extra_params: Optional[Dict[str, Any]] = None,
        input_tokens: Optional[List[str]] = None,
    ) -> StringRef:
        """Store ``content`` with this transform's lineage record attached.

        ``input_tokens`` overrides the declared inputs when the tokens actually
        read are only known once the command has run.
        """
        metadata = self.create_metadata()
        if input_tokens is not None:
            metadata = replace(metadata, inputs=tuple(input_tokens))
        if extra_params:
            metadata = replace(metadata, params={**metadata.params, **extra_params})

        decorators: List[IRefDecorator] = [MetadataDecorator(metadata)]
        decorators.extend(self._token_decorators(output_token))
        return await context.store(content, decorators)
