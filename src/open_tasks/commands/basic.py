"""
Basic Commands

Building blocks for workflows: storing literals, reading and writing files,
templates, function-based transforms and interactive questions.
"""

import copy
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from rich.prompt import Prompt

from ..workflow.context import BaseWorkflowContext
from ..workflow.errors import WorkflowError
from ..workflow.types import IWorkflowContext, ProgressSink, StringRef
from .base import BaseCommand, BaseTransformCommand, replace_placeholders, to_text


def resolve_path(file_name: Union[str, Path], cwd: Optional[Union[str, Path]] = None) -> Path:
    path = Path(file_name)
    if path.is_absolute():
        return path
    return Path(cwd or Path.cwd()) / path


class SetCommand(BaseCommand):
    """Stores a literal value, optionally under a token."""

    name = "set"
    description = "Store a value"

    def __init__(self, value: Any, token: Optional[str] = None):
        self.value = value
        self.token = token

    async def execute(
        self,
        context: IWorkflowContext,
        args: List[Any],
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        ref = await context.store(self.value, self._token_decorators(self.token))
        self._report(sink, f"Stored {ref.label}")
        return [ref]


class ReadCommand(BaseCommand):
    """Reads a file and stores a copy of its content."""

    name = "read"
    description = "Read a file into the context"

    def __init__(
        self,
        file_name: Union[str, Path],
        token: Optional[str] = None,
        cwd: Optional[Union[str, Path]] = None,
    ):
        self.file_name = file_name
        self.token = token
        self.cwd = cwd

    async def execute(
        self,
        context: IWorkflowContext,
        args: List[Any],
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        path = resolve_path(self.file_name, self.cwd)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {self.file_name}")

        content = path.read_text(encoding="utf-8")
        ref = await context.store(content, self._token_decorators(self.token))
        self._report(sink, f"Read {path} ({len(content)} chars)")
        return [ref]


class LoadCommand(BaseCommand):
    """Registers an existing file with the context without copying it."""

    name = "load"
    description = "Load a file as a ref"

    def __init__(
        self,
        file_name: Union[str, Path],
        token: Optional[str] = None,
        cwd: Optional[Union[str, Path]] = None,
    ):
        self.file_name = file_name
        self.token = token
        self.cwd = cwd

    async def execute(
        self,
        context: BaseWorkflowContext,
        args: List[Any],
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        path = resolve_path(self.file_name, self.cwd)
        ref = await context.load(path, self.token)
        self._report(sink, f"Loaded {path}")
        return [ref]


class WriteCommand(BaseCommand):
    """Writes a token's content to a file and stores the written path."""

    name = "write"
    description = "Write a token's content to a file"

    def __init__(
        self,
        file_name: Union[str, Path],
        input_token: str,
        token: Optional[str] = None,
        cwd: Optional[Union[str, Path]] = None,
    ):
        self.file_name = file_name
        self.input_token = input_token
        self.token = token
        self.cwd = cwd

    async def execute(
        self,
        context: IWorkflowContext,
        args: List[Any],
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        content = to_text(self._require_token(context, self.input_token))

        path = resolve_path(self.file_name, self.cwd).resolve()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

        ref = await context.store(str(path), self._token_decorators(self.token))
        self._report(sink, f"Wrote '{self.input_token}' to {path}")
        return [ref]


class TemplateCommand(BaseTransformCommand):
    """Fills ``{{name}}`` placeholders in a template file or inline template."""

    name = "template"
    description = "Render a template with token values"

    def __init__(
        self,
        source: Union[str, Path],
        output_token: Optional[str] = None,
        cwd: Optional[Union[str, Path]] = None,
    ):
        self.source = source
        self.output_token = output_token
        self.cwd = cwd

    def get_transform_type(self) -> str:
        return "Template"

    def get_input_tokens(self) -> List[str]:
        return []

    def get_transform_params(self) -> Dict[str, Any]:
        return {"source": str(self.source), "outputToken": self.output_token}

    def _load_template(self) -> str:
        source = str(self.source)
        # Inline templates can contain characters a path cannot
        if "{{" not in source and "\n" not in source:
            path = resolve_path(source, self.cwd)
            if path.is_file():
                return path.read_text(encoding="utf-8")
        return source

    async def execute(
        self,
        context: IWorkflowContext,
        args: List[Any],
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        self._log_execution_start()
        result, used = replace_placeholders(self._load_template(), context.token)
        ref = await self.store_with_metadata(
            context, result, self.output_token, {"replacedTokens": used}
        )
        self._report(sink, f"Rendered template with {len(used)} value(s)")
        self._log_execution_complete([ref])
        return [ref]


class TextTransformCommand(BaseTransformCommand):
    """Applies a ``str -> str`` function to a token's content."""

    name = "text-transform"
    description = "Transform text with a function"

    def __init__(
        self,
        input_token: str,
        fn: Callable[[str], str],
        output_token: Optional[str] = None,
    ):
        self.input_token = input_token
        self.fn = fn
        self.output_token = output_token

    def get_transform_type(self) -> str:
        return "TextTransform"

    def get_input_tokens(self) -> List[str]:
        return [self.input_token]

    def get_transform_params(self) -> Dict[str, Any]:
        return {
            "function": getattr(self.fn, "__name__", repr(self.fn)),
            "outputToken": self.output_token,
        }

    async def execute(
        self,
        context: IWorkflowContext,
        args: List[Any],
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        source = to_text(self._require_token(context, self.input_token))
        ref = await self.store_with_metadata(context, self.fn(source), self.output_token)
        self._report(sink, f"Transformed '{self.input_token}'")
        return [ref]


class JsonTransformCommand(BaseTransformCommand):
    """Parses a token's content as JSON and applies a function to it.

    String results are stored verbatim, anything else as indented JSON.
    """

    name = "json-transform"
    description = "Transform JSON content with a function"

    def __init__(
        self,
        input_token: str,
        fn: Callable[[Any], Any],
        output_token: Optional[str] = None,
    ):
        self.input_token = input_token
        self.fn = fn
        self.output_token = output_token

    def get_transform_type(self) -> str:
        return "JsonTransform"

    def get_input_tokens(self) -> List[str]:
        return [self.input_token]

    def get_transform_params(self) -> Dict[str, Any]:
        return {
            "function": getattr(self.fn, "__name__", repr(self.fn)),
            "outputToken": self.output_token,
        }

    async def execute(
        self,
        context: IWorkflowContext,
        args: List[Any],
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        value = self._require_token(context, self.input_token)
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as e:
                raise WorkflowError(f"Failed to parse JSON: {e}") from e
        else:
            # fn may mutate its argument; stored content must not change
            value = copy.deepcopy(value)

        result = self.fn(value)
        if not isinstance(result, str):
            result = json.dumps(result, indent=2, ensure_ascii=False)

        ref = await self.store_with_metadata(context, result, self.output_token)
        self._report(sink, f"Transformed JSON from '{self.input_token}'")
        return [ref]


class QuestionCommand(BaseCommand):
    """Asks the user a question and stores the answer.

    The prompt is either literal text or, with ``from_token=True``, the name
    of a token whose content is the prompt.
    """

    name = "question"
    description = "Prompt the user for input"

    def __init__(
        self,
        prompt: str,
        token: Optional[str] = None,
        from_token: bool = False,
        ask: Optional[Callable[[str], str]] = None,
    ):
        self.prompt = prompt
        self.token = token
        self.from_token = from_token
        self.ask = ask or Prompt.ask

    async def execute(
        self,
        context: IWorkflowContext,
        args: List[Any],
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        message = self.prompt
        if self.from_token:
            message = to_text(self._require_token(context, self.prompt))

        answer = self.ask(message)
        ref = await context.store(answer, self._token_decorators(self.token))
        return [ref]
