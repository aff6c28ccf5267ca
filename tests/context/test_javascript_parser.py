"""Tests for JavaScript/TypeScript parsing."""

import pytest

from diff_context.context.parsers.javascript import (
    MAX_DIAGNOSTICS,
    language_for_lang_attr,
    parse_source,
)


class TestParseSource:
    """Tests for parse_source()."""

    def test_valid_javascript(self) -> None:
        outcome = parse_source("function add(a, b) {\n  return a + b;\n}\n")
        assert outcome.tree.root_node.type == "program"
        assert outcome.language == "javascript"
        assert not outcome.has_errors
        assert outcome.diagnostics == []

    def test_valid_typescript(self) -> None:
        outcome = parse_source(
            "function add(a: number, b: number): number {\n  return a + b;\n}\n",
            "typescript",
        )
        assert not outcome.has_errors

    def test_tsx(self) -> None:
        outcome = parse_source(
            "const App = (props: { title: string }) => <h1>{props.title}</h1>;\n", "tsx"
        )
        assert not outcome.has_errors

    def test_jsx_in_javascript(self) -> None:
        outcome = parse_source("const App = () => <div className=\"x\">hi</div>;\n")
        assert not outcome.has_errors

    def test_syntax_error_is_recovered(self) -> None:
        outcome = parse_source("function ok() {\n  return 1;\n}\nfunction broken( {\n")
        assert outcome.has_errors
        assert outcome.error_count >= 1
        assert outcome.diagnostics
        assert outcome.tree.root_node.type == "program"

    def test_diagnostics_are_bounded(self) -> None:
        source = "\n".join(f"let x{i} = ;" for i in range(MAX_DIAGNOSTICS * 2))
        outcome = parse_source(source)
        assert outcome.has_errors
        assert len(outcome.diagnostics) <= MAX_DIAGNOSTICS

    def test_empty_source(self) -> None:
        outcome = parse_source("")
        assert not outcome.has_errors
        assert outcome.tree.root_node.child_count == 0


class TestLanguageForLangAttr:
    """Tests for component lang attribute mapping."""

    @pytest.mark.parametrize(
        ("lang", "expected"),
        [
            (None, "javascript"),
            ("js", "javascript"),
            ("jsx", "javascript"),
            ("ts", "typescript"),
            ("TS", "typescript"),
            ("tsx", "tsx"),
        ],
    )
    def test_mapping(self, lang: str | None, expected: str) -> None:
        assert language_for_lang_attr(lang) == expected
