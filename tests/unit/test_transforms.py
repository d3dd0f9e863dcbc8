"""Unit tests for the transform commands."""

import re

import pytest

from open_tasks.commands import (
    ExtractCommand,
    JoinCommand,
    RegexMatchCommand,
    SplitCommand,
    TokenReplaceCommand,
    compile_pattern,
)
from open_tasks.workflow import (
    PatternNotMatchedError,
    TokenDecorator,
    TokenNotFoundError,
)


async def store(context, value, token):
    return await context.store(value, [TokenDecorator(token)])


class TestTokenReplace:
    async def test_replaces_known_tokens(self, memory_context):
        await store(memory_context, "World", "greeting")
        await store(memory_context, "Hello {{greeting}}!", "template")

        [ref] = await memory_context.run(TokenReplaceCommand("template", "result"))

        assert ref.content == "Hello World!"
        assert ref.token == "result"
        assert ref.metadata[0].type == "TokenReplace"
        assert list(ref.metadata[0].inputs) == ["template"]
        assert ref.metadata[0].params["replacedTokens"] == ["greeting"]

    async def test_unknown_placeholder_left_verbatim(self, memory_context):
        await store(memory_context, "Hi {{missing}}", "template")

        [ref] = await memory_context.run(TokenReplaceCommand("template"))

        assert ref.content == "Hi {{missing}}"
        assert ref.metadata[0].params["replacedTokens"] == []

    async def test_non_string_values_become_json(self, memory_context):
        await store(memory_context, {"n": 1}, "data")
        await store(memory_context, "data={{ data }}", "template")

        [ref] = await memory_context.run(TokenReplaceCommand("template"))
        assert ref.content == 'data={"n":1}'

    async def test_missing_input_token_raises(self, memory_context):
        with pytest.raises(TokenNotFoundError, match="template"):
            await memory_context.run(TokenReplaceCommand("template"))


class TestExtract:
    async def test_returns_first_group(self, memory_context):
        await store(memory_context, "Price: $42.99", "input")

        [ref] = await memory_context.run(ExtractCommand("input", r"\$([0-9.]+)", "price"))

        assert ref.content == "42.99"
        assert memory_context.token("price") == "42.99"
        assert ref.metadata[0].params["pattern"] == r"\$([0-9.]+)"

    async def test_returns_full_match_without_groups(self, memory_context):
        await store(memory_context, "order 1234 shipped", "input")

        [ref] = await memory_context.run(ExtractCommand("input", r"\d+"))
        assert ref.content == "1234"

    async def test_no_match_raises_pattern_error(self, memory_context):
        await store(memory_context, "nothing here", "input")

        with pytest.raises(PatternNotMatchedError) as exc_info:
            await memory_context.run(ExtractCommand("input", r"\$([0-9.]+)"))

        assert "did not match" in str(exc_info.value)
        assert exc_info.value.token == "input"
        assert len(memory_context) == 1

    async def test_compiled_pattern_flags_recorded(self, memory_context):
        await store(memory_context, "NAME: Ada", "input")

        [ref] = await memory_context.run(
            ExtractCommand("input", compile_pattern(r"name: (\w+)", "i"))
        )

        assert ref.content == "Ada"
        assert ref.metadata[0].params["flags"] == "i"


class TestRegexMatch:
    async def test_lists_all_matches_with_groups(self, memory_context):
        await store(memory_context, "a=1, b=2, c=3", "input")

        [ref] = await memory_context.run(
            RegexMatchCommand("input", r"(\w)=(\d)", "pairs")
        )

        assert ref.content == (
            "1. a=1 (groups: a, 1)\n" "2. b=2 (groups: b, 2)\n" "3. c=3 (groups: c, 3)"
        )
        assert ref.metadata[0].params["matchCount"] == 3

    async def test_matches_without_groups(self, memory_context):
        await store(memory_context, "x1 y22", "input")

        [ref] = await memory_context.run(RegexMatchCommand("input", r"\d+"))
        assert ref.content == "1. 1\n2. 22"

    async def test_zero_matches_raises(self, memory_context):
        await store(memory_context, "abc", "input")

        with pytest.raises(PatternNotMatchedError):
            await memory_context.run(RegexMatchCommand("input", r"\d"))


class TestSplitJoin:
    async def test_split_stores_each_part(self, memory_context):
        await store(memory_context, "a,b,c", "csv")

        refs = await memory_context.run(SplitCommand("csv", ",", "part"))

        assert [ref.content for ref in refs] == ["a", "b", "c"]
        assert [ref.token for ref in refs] == ["part-1", "part-2", "part-3"]
        assert refs[1].metadata[0].params["partIndex"] == 2
        assert refs[1].metadata[0].params["totalParts"] == 3

    async def test_split_by_pattern(self, memory_context):
        await store(memory_context, "a1b22c", "input")

        refs = await memory_context.run(SplitCommand("input", re.compile(r"\d+")))

        assert [ref.content for ref in refs] == ["a", "b", "c"]
        assert all(ref.token is None for ref in refs)
        assert refs[0].metadata[0].params["delimiter"] == r"\d+"

    async def test_split_with_empty_delimiter_yields_characters(self, memory_context):
        await store(memory_context, "abc", "in")

        refs = await memory_context.run(SplitCommand("in", "", "p"))

        assert [ref.content for ref in refs] == ["a", "b", "c"]
        assert [ref.token for ref in refs] == ["p-1", "p-2", "p-3"]
        assert refs[0].metadata[0].params["delimiter"] == ""

    async def test_join_reverses_split(self, memory_context):
        await store(memory_context, "a,b,c", "csv")
        await memory_context.run(SplitCommand("csv", ",", "part"))

        [ref] = await memory_context.run(
            JoinCommand(["part-1", "part-2", "part-3"], ",", "joined")
        )

        assert ref.content == "a,b,c"
        assert ref.metadata[0].params["tokenCount"] == 3
        assert list(ref.metadata[0].inputs) == ["part-1", "part-2", "part-3"]

    async def test_join_stringifies_non_strings(self, memory_context):
        await store(memory_context, [1, 2], "nums")
        await store(memory_context, "end", "tail")

        [ref] = await memory_context.run(JoinCommand(["nums", "tail"], " | "))
        assert ref.content == "[1,2] | end"

    async def test_join_raises_on_first_missing_token(self, memory_context):
        await store(memory_context, "a", "first")

        with pytest.raises(TokenNotFoundError) as exc_info:
            await memory_context.run(JoinCommand(["first", "second", "third"]))

        assert exc_info.value.token == "second"


class TestCompilePattern:
    def test_letter_flags(self):
        pattern = compile_pattern("x", "ims")
        assert pattern.flags & re.IGNORECASE
        assert pattern.flags & re.MULTILINE
        assert pattern.flags & re.DOTALL

    def test_global_flag_is_ignored(self):
        assert compile_pattern("x", "g").pattern == "x"

    def test_unknown_flag_rejected(self):
        with pytest.raises(ValueError, match="Unsupported regex flag"):
            compile_pattern("x", "q")
