"""JavaScript/TypeScript parsing using tree-sitter.

tree-sitter is error-tolerant: malformed input still yields a tree, with
ERROR and MISSING nodes marking the damage. parse_source() returns that
tree together with a bounded list of diagnostics, so traversal can work
over best-effort structure without pretending the input was valid.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import Literal

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Parser, Tree

from diff_context.core.exceptions import SourceParseError

logger = logging.getLogger(__name__)

ScriptLanguage = Literal["javascript", "typescript", "tsx"]

# Diagnostics beyond this count are summarized, not listed
MAX_DIAGNOSTICS = 20


@dataclass
class ParseOutcome:
    """A (possibly partial) syntax tree plus its diagnostics.

    Attributes:
        tree: The tree-sitter tree.
        language: Grammar used.
        diagnostics: Human-readable ERROR/MISSING node descriptions.
        error_count: Total ERROR/MISSING nodes seen (may exceed len(diagnostics)).

    """

    tree: Tree
    language: ScriptLanguage
    diagnostics: list[str] = field(default_factory=list)
    error_count: int = 0

    @property
    def has_errors(self) -> bool:
        """True if the parser had to recover from syntax errors."""
        return self.error_count > 0


@functools.lru_cache(maxsize=None)
def _get_language(language: ScriptLanguage) -> Language:
    """Load a grammar once per process; Language objects are immutable."""
    if language == "typescript":
        return Language(tree_sitter_typescript.language_typescript())
    if language == "tsx":
        return Language(tree_sitter_typescript.language_tsx())
    return Language(tree_sitter_javascript.language())


def language_for_lang_attr(lang: str | None) -> ScriptLanguage:
    """Map a component ``<script lang=...>`` value to a grammar."""
    normalized = (lang or "js").lower()
    if normalized == "ts":
        return "typescript"
    if normalized == "tsx":
        return "tsx"
    return "javascript"


def parse_source(source: str, language: ScriptLanguage = "javascript") -> ParseOutcome:
    """Parse source text into a syntax tree.

    A fresh Parser is created per call so concurrent analyses never share
    parser state.

    Args:
        source: Script text.
        language: Grammar to use.

    Returns:
        ParseOutcome with the tree and any syntax diagnostics.

    Raises:
        SourceParseError: If the parser produces no tree.

    """
    parser = Parser(_get_language(language))
    tree = parser.parse(source.encode("utf-8"))
    if tree is None:
        raise SourceParseError(f"{language} parser returned no tree")

    outcome = ParseOutcome(tree=tree, language=language)
    if tree.root_node.has_error:
        _collect_diagnostics(outcome)
        logger.debug(
            "Recovered from %d syntax error(s) in %s source", outcome.error_count, language
        )
    return outcome


def _collect_diagnostics(outcome: ParseOutcome) -> None:
    """Record ERROR and MISSING nodes, descending only into damaged subtrees."""
    stack = [outcome.tree.root_node]
    while stack:
        node = stack.pop()
        row, column = node.start_point
        if node.type == "ERROR":
            outcome.error_count += 1
            if len(outcome.diagnostics) < MAX_DIAGNOSTICS:
                outcome.diagnostics.append(f"syntax error at {row + 1}:{column + 1}")
        elif node.is_missing:
            outcome.error_count += 1
            if len(outcome.diagnostics) < MAX_DIAGNOSTICS:
                outcome.diagnostics.append(f"missing {node.type} at {row + 1}:{column + 1}")
        if node.has_error:
            stack.extend(reversed(node.children))
