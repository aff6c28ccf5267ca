"""Tests for script context extraction."""

import time

import pytest

from diff_context.context import script as script_module
from diff_context.context.script import extract_script_context
from diff_context.context.types import ANONYMOUS, UnitKind
from diff_context.core.config import AstConfig
from diff_context.core.exceptions import SourceParseError

SOURCE = (
    "class Counter {\n"  # 1
    "  constructor() {\n"  # 2
    "    this.n = 0;\n"  # 3
    "  }\n"  # 4
    "\n"  # 5
    "  increment() {\n"  # 6
    "    this.n += 1;\n"  # 7
    "    return this.n;\n"  # 8
    "  }\n"  # 9
    "}\n"  # 10
    "\n"  # 11
    "const double = (x) => {\n"  # 12
    "  return x * 2;\n"  # 13
    "};\n"  # 14
    "\n"  # 15
    "function outer() {\n"  # 16
    "  return function () {\n"  # 17
    "    return 1;\n"  # 18
    "  };\n"  # 19
    "}\n"  # 20
)


@pytest.fixture
def config() -> AstConfig:
    return AstConfig()


class TestSelection:
    """Tests for smallest-enclosing-unit selection on real source."""

    @pytest.mark.asyncio
    async def test_class_method(self, config: AstConfig) -> None:
        result = await extract_script_context(SOURCE, {7}, config)
        assert result.errors == []
        assert len(result.sections) == 1
        section = result.sections[0]
        assert section.kind is UnitKind.CLASS_METHOD
        assert section.name == "increment"
        assert (section.start_line, section.end_line) == (6, 9)
        assert section.added_lines == (7,)
        assert section.snippet.startswith("increment() {")

    @pytest.mark.asyncio
    async def test_arrow_function_named_by_variable(self, config: AstConfig) -> None:
        result = await extract_script_context(SOURCE, {13}, config)
        section = result.sections[0]
        assert section.kind is UnitKind.ARROW_FUNCTION
        assert section.name == "double"
        assert (section.start_line, section.end_line) == (12, 14)

    @pytest.mark.asyncio
    async def test_nested_anonymous_function(self, config: AstConfig) -> None:
        result = await extract_script_context(SOURCE, {18}, config)
        assert len(result.sections) == 1
        section = result.sections[0]
        assert section.kind is UnitKind.FUNCTION_EXPRESSION
        assert section.name == ANONYMOUS
        assert (section.start_line, section.end_line) == (17, 19)

    @pytest.mark.asyncio
    async def test_class_line_outside_methods(self, config: AstConfig) -> None:
        result = await extract_script_context(SOURCE, {1}, config)
        section = result.sections[0]
        assert section.kind is UnitKind.CLASS_DECLARATION
        assert section.name == "Counter"
        assert (section.start_line, section.end_line) == (1, 10)

    @pytest.mark.asyncio
    async def test_multiple_units(self, config: AstConfig) -> None:
        result = await extract_script_context(SOURCE, {3, 7, 13}, config)
        assert [s.name for s in result.sections] == ["constructor", "increment", "double"]

    @pytest.mark.asyncio
    async def test_line_outside_any_unit(self, config: AstConfig) -> None:
        result = await extract_script_context(SOURCE, {11}, config)
        assert result.sections == []
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_no_added_lines(self, config: AstConfig) -> None:
        result = await extract_script_context(SOURCE, set(), config)
        assert result.sections == []
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_idempotent(self, config: AstConfig) -> None:
        first = await extract_script_context(SOURCE, {3, 7, 18}, config)
        second = await extract_script_context(SOURCE, {3, 7, 18}, config)
        assert first.sections == second.sections


class TestNaming:
    """Tests for name resolution."""

    @pytest.mark.asyncio
    async def test_function_declaration(self, config: AstConfig) -> None:
        result = await extract_script_context("function hello() {\n  return 1;\n}\n", {2}, config)
        section = result.sections[0]
        assert section.kind is UnitKind.FUNCTION_DECLARATION
        assert section.name == "hello"

    @pytest.mark.asyncio
    async def test_generator_declaration(self, config: AstConfig) -> None:
        result = await extract_script_context("function* gen() {\n  yield 1;\n}\n", {2}, config)
        section = result.sections[0]
        assert section.kind is UnitKind.GENERATOR_FUNCTION_DECLARATION
        assert section.name == "gen"

    @pytest.mark.asyncio
    async def test_object_method(self, config: AstConfig) -> None:
        source = "const api = {\n  load() {\n    return 1;\n  },\n};\n"
        section = (await extract_script_context(source, {3}, config)).sections[0]
        assert section.kind is UnitKind.OBJECT_METHOD
        assert section.name == "load"

    @pytest.mark.asyncio
    async def test_function_named_by_property_key(self, config: AstConfig) -> None:
        source = "const api = {\n  handler: function () {\n    return 1;\n  },\n};\n"
        section = (await extract_script_context(source, {3}, config)).sections[0]
        assert section.kind is UnitKind.FUNCTION_EXPRESSION
        assert section.name == "handler"

    @pytest.mark.asyncio
    async def test_string_property_key(self, config: AstConfig) -> None:
        source = "const api = {\n  'on-save': () => {\n    return 1;\n  },\n};\n"
        section = (await extract_script_context(source, {3}, config)).sections[0]
        assert section.name == "on-save"

    @pytest.mark.asyncio
    async def test_named_function_expression_keeps_own_name(self, config: AstConfig) -> None:
        source = "const f = function inner() {\n  return 1;\n};\n"
        section = (await extract_script_context(source, {2}, config)).sections[0]
        assert section.name == "inner"

    @pytest.mark.asyncio
    async def test_callback_is_anonymous(self, config: AstConfig) -> None:
        source = "items.forEach((item) => {\n  console.log(item);\n});\n"
        section = (await extract_script_context(source, {2}, config)).sections[0]
        assert section.kind is UnitKind.ARROW_FUNCTION
        assert section.name == ANONYMOUS

    @pytest.mark.asyncio
    async def test_typescript_method(self, config: AstConfig) -> None:
        source = "class Svc {\n  run(x: number): number {\n    return x;\n  }\n}\n"
        result = await extract_script_context(source, {3}, config, language="typescript")
        section = result.sections[0]
        assert section.kind is UnitKind.CLASS_METHOD
        assert section.name == "run"


class TestDegradation:
    """Tests for error tags instead of exceptions."""

    @pytest.mark.asyncio
    async def test_syntax_errors_reported(self, config: AstConfig) -> None:
        source = "function ok() {\n  return 1;\n}\nfunction broken( {\n"
        result = await extract_script_context(source, {2}, config)
        assert any(tag.startswith("syntax_errors: ") for tag in result.errors)

    @pytest.mark.asyncio
    async def test_depth_exceeded_keeps_partial_results(self) -> None:
        config = AstConfig(max_depth=3)
        result = await extract_script_context(SOURCE, {7}, config)
        assert any(tag.startswith("depth_exceeded: ") for tag in result.errors)

    @pytest.mark.asyncio
    async def test_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        real_parse = script_module.parse_source

        def slow_parse(source: str, language: str = "javascript"):
            time.sleep(0.05)
            return real_parse(source, language)

        monkeypatch.setattr(script_module, "parse_source", slow_parse)
        result = await extract_script_context(SOURCE, {7}, AstConfig(timeout_ms=1))
        assert result.sections == []
        assert len(result.errors) == 1
        assert result.errors[0].startswith("timeout: ")

    @pytest.mark.asyncio
    async def test_parse_error(self, config: AstConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        def failing_parse(source: str, language: str = "javascript"):
            raise SourceParseError("no tree")

        monkeypatch.setattr(script_module, "parse_source", failing_parse)
        result = await extract_script_context(SOURCE, {7}, config)
        assert result.errors == ["parse_error: no tree"]

    @pytest.mark.asyncio
    async def test_traverse_error(self, config: AstConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        def failing_collect(*args, **kwargs):
            raise RuntimeError("walk failed")

        monkeypatch.setattr(script_module, "collect_candidates", failing_collect)
        result = await extract_script_context(SOURCE, {7}, config)
        assert result.errors == ["traverse_error: walk failed"]

    @pytest.mark.asyncio
    async def test_failing_context_probe_is_ignored(self, config: AstConfig) -> None:
        def probe(node, data):
            raise RuntimeError("probe failed")

        result = await extract_script_context(SOURCE, {7}, config, context_probe=probe)
        assert result.sections[0].name == "increment"
        assert result.sections[0].context is None

    @pytest.mark.asyncio
    async def test_char_limit_applied(self) -> None:
        result = await extract_script_context(SOURCE, {7}, AstConfig(max_snippet_length=10))
        section = result.sections[0]
        assert section.truncation_reason == "char_limit"
        assert section.snippet.startswith("increment(")
