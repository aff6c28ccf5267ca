"""Script context extraction for one self-contained source text.

Pipeline: parse (under timeout) → pre-order traversal (under depth guard)
collecting candidate units that contain added lines → minimal-coverage
selection → size limits → sections.

Every failure becomes an error tag on the returned ExtractionResult; no
exception leaves extract_script_context().
"""

from __future__ import annotations

import bisect
import logging
from collections.abc import Callable, Iterable

from tree_sitter import Node

from diff_context.context.parsers.javascript import ParseOutcome, ScriptLanguage, parse_source
from diff_context.context.safety import DepthGuard, with_timeout
from diff_context.context.selector import select_smallest_sections
from diff_context.context.truncation import limit_section_size
from diff_context.context.types import ANONYMOUS, Candidate, ExtractionResult, UnitKind
from diff_context.core.config import AstConfig
from diff_context.core.exceptions import (
    AnalysisTimeoutError,
    DepthExceededError,
    SourceParseError,
)

logger = logging.getLogger(__name__)

ContextProbe = Callable[[Node, bytes], str | None]

# tree-sitter node type -> candidate kind; method_definition is resolved
# separately because its kind depends on the enclosing container
_NODE_KINDS: dict[str, UnitKind] = {
    "function_declaration": UnitKind.FUNCTION_DECLARATION,
    "generator_function_declaration": UnitKind.GENERATOR_FUNCTION_DECLARATION,
    "function_expression": UnitKind.FUNCTION_EXPRESSION,
    "function": UnitKind.FUNCTION_EXPRESSION,
    "generator_function": UnitKind.GENERATOR_FUNCTION,
    "arrow_function": UnitKind.ARROW_FUNCTION,
    "class_declaration": UnitKind.CLASS_DECLARATION,
    "abstract_class_declaration": UnitKind.CLASS_DECLARATION,
}

_IDENTIFIER_TYPES = frozenset({"identifier", "type_identifier"})
_KEY_TYPES = frozenset(
    {"property_identifier", "identifier", "private_property_identifier", "number"}
)
_FIELD_TYPES = frozenset({"field_definition", "public_field_definition"})


def classify_node(node: Node) -> UnitKind | None:
    """Return the candidate kind of a node, or None if it never qualifies."""
    if node.type == "method_definition":
        parent = node.parent
        if parent is not None and parent.type == "class_body":
            return UnitKind.CLASS_METHOD
        return UnitKind.OBJECT_METHOD
    return _NODE_KINDS.get(node.type)


def _is_same(a: Node | None, b: Node) -> bool:
    return (
        a is not None
        and a.type == b.type
        and a.start_byte == b.start_byte
        and a.end_byte == b.end_byte
    )


def _text(node: Node, data: bytes) -> str:
    return data[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def key_name(key: Node | None, data: bytes) -> str | None:
    """Name of a property key: identifier text or string literal value."""
    if key is None:
        return None
    if key.type in _KEY_TYPES:
        return _text(key, data)
    if key.type == "string":
        fragments = [_text(c, data) for c in key.children if c.type == "string_fragment"]
        return "".join(fragments) if fragments else _text(key, data)[1:-1]
    return None


def resolve_name(node: Node, kind: UnitKind, data: bytes) -> str:
    """Resolve a display name for a candidate node.

    Order: the node's own identifier, the variable it initializes, its
    method/property key, else ANONYMOUS.
    """
    if not kind.is_method:
        ident = node.child_by_field_name("name")
        if ident is not None and ident.type in _IDENTIFIER_TYPES:
            return _text(ident, data)

    parent = node.parent
    if (
        parent is not None
        and parent.type == "variable_declarator"
        and _is_same(parent.child_by_field_name("value"), node)
    ):
        declared = parent.child_by_field_name("name")
        if declared is not None and declared.type == "identifier":
            return _text(declared, data)

    key: Node | None = None
    if kind.is_method:
        key = node.child_by_field_name("name")
    elif parent is not None and _is_same(parent.child_by_field_name("value"), node):
        if parent.type == "pair":
            key = parent.child_by_field_name("key")
        elif parent.type in _FIELD_TYPES:
            key = parent.child_by_field_name("property") or parent.child_by_field_name("name")

    return key_name(key, data) or ANONYMOUS


class _CandidateCollector:
    """Pre-order visitor that turns qualifying nodes into candidates."""

    def __init__(
        self,
        data: bytes,
        added_lines: Iterable[int],
        context_probe: ContextProbe | None,
    ) -> None:
        self.data = data
        self.sorted_lines = sorted(set(added_lines))
        self.context_probe = context_probe
        self.candidates: list[Candidate] = []

    def visit(self, node: Node) -> None:
        kind = classify_node(node)
        if kind is None:
            return
        # MISSING nodes are zero-width and have no usable source span
        if node.is_missing or node.end_byte <= node.start_byte:
            return

        start_line = node.start_point[0] + 1
        end_line = node.end_point[0] + 1
        lo = bisect.bisect_left(self.sorted_lines, start_line)
        hi = bisect.bisect_right(self.sorted_lines, end_line)
        if lo == hi:
            return

        self.candidates.append(
            Candidate(
                kind=kind,
                name=resolve_name(node, kind, self.data),
                start_line=start_line,
                end_line=end_line,
                start_byte=node.start_byte,
                end_byte=node.end_byte,
                added_lines=tuple(self.sorted_lines[lo:hi]),
                context=self._probe(node),
            )
        )

    def _probe(self, node: Node) -> str | None:
        if self.context_probe is None:
            return None
        try:
            return self.context_probe(node, self.data)
        except Exception as e:
            logger.warning("Context detection failed at line %d: %s", node.start_point[0] + 1, e)
            return None


def collect_candidates(
    outcome: ParseOutcome,
    data: bytes,
    added_lines: Iterable[int],
    max_depth: int,
    context_probe: ContextProbe | None = None,
) -> tuple[list[Candidate], str | None]:
    """Walk the tree in pre-order and collect candidates.

    Args:
        outcome: Parsed tree.
        data: UTF-8 bytes the tree was parsed from.
        added_lines: Added lines in the tree's coordinate space.
        max_depth: Depth guard limit.
        context_probe: Optional naming-context detector per candidate node.

    Returns:
        (candidates, warning). When the depth limit is hit, traversal stops
        and the candidates found so far are returned with a warning message.

    """
    collector = _CandidateCollector(data, added_lines, context_probe)
    guard = DepthGuard(max_depth)
    cursor = outcome.tree.walk()

    try:
        guard.enter()
        collector.visit(cursor.node)
        while True:
            if cursor.goto_first_child():
                guard.enter()
                collector.visit(cursor.node)
                continue
            while not cursor.goto_next_sibling():
                if not cursor.goto_parent():
                    return collector.candidates, None
                guard.exit()
            collector.visit(cursor.node)
    except DepthExceededError as e:
        logger.warning("%s, keeping %d collected block(s)", e, len(collector.candidates))
        return collector.candidates, str(e)


async def extract_script_context(
    source: str,
    added_lines: Iterable[int],
    config: AstConfig,
    *,
    language: ScriptLanguage = "javascript",
    line_offset: int = 1,
    context_probe: ContextProbe | None = None,
) -> ExtractionResult:
    """Extract sections for the units of source that contain added lines.

    Args:
        source: Script text.
        added_lines: Added lines in source's own 1-based coordinates.
        config: AST limits.
        language: Grammar to parse with.
        line_offset: File line on which source starts; only affects the
            line numbers printed in windowed snippets.
        context_probe: Optional naming-context detector (component files).

    Returns:
        ExtractionResult with sections in discovery order and error tags.

    """
    result = ExtractionResult()
    wanted = frozenset(added_lines)
    if not wanted:
        return result

    try:
        outcome = await with_timeout(
            lambda: parse_source(source, language),
            config.timeout_ms,
            f"{language} parse timed out",
        )
    except AnalysisTimeoutError as e:
        result.errors.append(f"timeout: {e}")
        return result
    except (SourceParseError, ValueError) as e:
        result.errors.append(f"parse_error: {e}")
        return result

    if outcome.has_errors:
        result.errors.append(f"syntax_errors: {outcome.error_count}")

    data = source.encode("utf-8")
    try:
        candidates, warning = collect_candidates(
            outcome, data, wanted, config.max_depth, context_probe
        )
    except Exception as e:
        logger.warning("Traversal failed: %s", e)
        result.errors.append(f"traverse_error: {e}")
        return result

    if warning is not None:
        result.errors.append(f"depth_exceeded: {warning}")

    selected = select_smallest_sections(candidates, wanted)
    result.sections = [
        limit_section_size(candidate, source, config, line_offset=line_offset)
        for candidate in selected
    ]
    return result
