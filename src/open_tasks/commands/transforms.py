"""
Transform Commands

Text transforms over token values. Each stores its result as a new ref with
a lineage record naming the input tokens and the parameters used.
"""

import re
from typing import Any, Dict, List, Optional, Sequence, Union

from ..workflow.errors import PatternNotMatchedError
from ..workflow.types import IWorkflowContext, ProgressSink, StringRef
from .base import BaseTransformCommand, replace_placeholders, to_text

_FLAG_LETTERS = (
    (re.IGNORECASE, "i"),
    (re.MULTILINE, "m"),
    (re.DOTALL, "s"),
    (re.VERBOSE, "x"),
)

PatternLike = Union[str, re.Pattern]


def compile_pattern(pattern: PatternLike, flags: str = "") -> re.Pattern:
    """Compile ``pattern`` with letter flags (``i``, ``m``, ``s``, ``x``).

    ``g`` is accepted and ignored; every command that wants all matches
    already iterates over them.
    """
    if not isinstance(pattern, str):
        return pattern

    value = 0
    for letter in flags or "":
        for flag, flag_letter in _FLAG_LETTERS:
            if letter == flag_letter:
                value |= flag
                break
        else:
            if letter != "g":
                raise ValueError(f"Unsupported regex flag: {letter!r}")
    return re.compile(pattern, value)


def pattern_flags(pattern: re.Pattern) -> str:
    return "".join(letter for flag, letter in _FLAG_LETTERS if pattern.flags & flag)


class TokenReplaceCommand(BaseTransformCommand):
    """Replaces ``{{name}}`` placeholders with the values of those tokens.

    Placeholders naming unknown tokens are left as they are.
    """

    name = "replace"
    description = "Replace {{token}} placeholders with stored values"

    def __init__(self, input_token: str, output_token: Optional[str] = None):
        self.input_token = input_token
        self.output_token = output_token

    def get_transform_type(self) -> str:
        return "TokenReplace"

    def get_input_tokens(self) -> List[str]:
        return [self.input_token]

    def get_transform_params(self) -> Dict[str, Any]:
        return {"outputToken": self.output_token}

    async def execute(
        self,
        context: IWorkflowContext,
        args: List[Any],
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        self._log_execution_start()
        source = to_text(self._require_token(context, self.input_token))

        result, used = replace_placeholders(source, context.token)
        ref = await self.store_with_metadata(
            context, result, self.output_token, {"replacedTokens": used}
        )

        self._report(sink, f"Replaced {len(used)} placeholder(s) in '{self.input_token}'")
        self._log_execution_complete([ref])
        return [ref]


class ExtractCommand(BaseTransformCommand):
    """Stores the first capture group of the first match, or the whole match."""

    name = "extract"
    description = "Extract text matching a regex pattern"

    def __init__(
        self,
        input_token: str,
        pattern: PatternLike,
        output_token: Optional[str] = None,
    ):
        self.input_token = input_token
        self.pattern = compile_pattern(pattern)
        self.output_token = output_token

    def get_transform_type(self) -> str:
        return "Extract"

    def get_input_tokens(self) -> List[str]:
        return [self.input_token]

    def get_transform_params(self) -> Dict[str, Any]:
        return {
            "pattern": self.pattern.pattern,
            "flags": pattern_flags(self.pattern),
            "outputToken": self.output_token,
        }

    async def execute(
        self,
        context: IWorkflowContext,
        args: List[Any],
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        self._log_execution_start()
        source = to_text(self._require_token(context, self.input_token))

        match = self.pattern.search(source)
        if match is None:
            raise PatternNotMatchedError(self.input_token, self.pattern.pattern)

        result = match.group(0)
        if self.pattern.groups and match.group(1):
            result = match.group(1)

        ref = await self.store_with_metadata(context, result, self.output_token)
        self._report(sink, f"Extracted {len(result)} chars from '{self.input_token}'")
        self._log_execution_complete([ref])
        return [ref]


class RegexMatchCommand(BaseTransformCommand):
    """Stores every match as a numbered list, one per line."""

    name = "match"
    description = "List all matches of a regex pattern"

    def __init__(
        self,
        input_token: str,
        pattern: PatternLike,
        output_token: Optional[str] = None,
    ):
        self.input_token = input_token
        self.pattern = compile_pattern(pattern)
        self.output_token = output_token

    def get_transform_type(self) -> str:
        return "RegexMatch"

    def get_input_tokens(self) -> List[str]:
        return [self.input_token]

    def get_transform_params(self) -> Dict[str, Any]:
        return {
            "pattern": self.pattern.pattern,
            "flags": pattern_flags(self.pattern),
            "outputToken": self.output_token,
        }

    async def execute(
        self,
        context: IWorkflowContext,
        args: List[Any],
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        self._log_execution_start()
        source = to_text(self._require_token(context, self.input_token))

        matches = list(self.pattern.finditer(source))
        if not matches:
            raise PatternNotMatchedError(self.input_token, self.pattern.pattern)

        lines = []
        for idx, match in enumerate(matches, start=1):
            line = f"{idx}. {match.group(0)}"
            groups = [g for g in match.groups() if g is not None]
            if groups:
                line += f" (groups: {', '.join(groups)})"
            lines.append(line)

        ref = await self.store_with_metadata(
            context, "\n".join(lines), self.output_token, {"matchCount": len(matches)}
        )
        self._report(sink, f"Found {len(matches)} match(es) in '{self.input_token}'")
        self._log_execution_complete([ref])
        return [ref]


class SplitCommand(BaseTransformCommand):
    """Stores each part of the split content as its own ref.

    An empty string delimiter splits the content into single characters.
    """

    name = "split"
    description = "Split content by a delimiter into separate refs"

    def __init__(
        self,
        input_token: str,
        delimiter: PatternLike,
        output_token_prefix: Optional[str] = None,
    ):
        self.input_token = input_token
        self.delimiter = delimiter
        self.output_token_prefix = output_token_prefix

    def get_transform_type(self) -> str:
        return "Split"

    def get_input_tokens(self) -> List[str]:
        return [self.input_token]

    def get_transform_params(self) -> Dict[str, Any]:
        delimiter = self.delimiter if isinstance(self.delimiter, str) else self.delimiter.pattern
        return {"delimiter": delimiter, "outputTokenPrefix": self.output_token_prefix}

    def _split(self, text: str) -> List[str]:
        if self.delimiter == "":
            return list(text)
        if isinstance(self.delimiter, str):
            return text.split(self.delimiter)
        return self.delimiter.split(text)

    async def execute(
        self,
        context: IWorkflowContext,
        args: List[Any],
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        self._log_execution_start()
        source = to_text(self._require_token(context, self.input_token))
        parts = self._split(source)

        refs: List[StringRef] = []
        for index, part in enumerate(parts, start=1):
            token = f"{self.output_token_prefix}-{index}" if self.output_token_prefix else None
            ref = await self.store_with_metadata(
                context, part, token, {"partIndex": index, "totalParts": len(parts)}
            )
            refs.append(ref)

        self._report(sink, f"Split '{self.input_token}' into {len(parts)} part(s)")
        self._log_execution_complete(refs)
        return refs


class JoinCommand(BaseTransformCommand):
    """Joins the values of several tokens with a delimiter."""

    name = "join"
    description = "Join several token values into one"

    def __init__(
        self,
        input_tokens: Sequence[str],
        delimiter: str = "\n",
        output_token: Optional[str] = None,
    ):
        self.input_tokens = list(input_tokens)
        self.delimiter = delimiter
        self.output_token = output_token

    def get_transform_type(self) -> str:
        return "Join"

    def get_input_tokens(self) -> List[str]:
        return list(self.input_tokens)

    def get_transform_params(self) -> Dict[str, Any]:
        return {"delimiter": self.delimiter, "outputToken": self.output_token}

    async def execute(
        self,
        context: IWorkflowContext,
        args: List[Any],
        sink: Optional[ProgressSink] = None,
    ) -> List[StringRef]:
        self._log_execution_start()
        values = [to_text(self._require_token(context, name)) for name in self.input_tokens]

        ref = await self.store_with_metadata(
            context,
            self.delimiter.join(values),
            self.output_token,
            {"tokenCount": len(self.input_tokens)},
        )
        self._report(sink, f"Joined {len(values)} token(s)")
        self._log_execution_complete([ref])
        return [ref]
