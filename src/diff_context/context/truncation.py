"""Size limits for selected units.

Checked in order:
1. Character limit: hard cut at max_snippet_length plus a length marker
2. Line limit: windowed snippet around each added line
3. Otherwise the unit's full text
"""

from __future__ import annotations

from diff_context.context.types import Candidate, Section
from diff_context.core.config import AstConfig

ADDED_MARKER = "  <- added"
ELISION = "\n\n...\n\n"


def truncation_marker(original_length: int) -> str:
    """Marker appended to hard-truncated snippets."""
    return f"\n\n/* ... truncated (original length {original_length} chars) */"


def extract_context_around_lines(
    lines: list[str],
    added_lines: tuple[int, ...],
    block_start: int,
    block_end: int,
    radius: int,
    line_offset: int = 1,
) -> str:
    """Render bands of lines around each added line.

    Bands are clamped to [block_start, block_end]; overlapping or touching
    bands are merged, and separate windows are joined by an elision marker.

    Args:
        lines: Source lines of the analysed text (index 0 is line 1).
        added_lines: Added lines within the block.
        block_start: First line of the block.
        block_end: Last line of the block.
        radius: Lines shown before and after each added line.
        line_offset: File line on which the analysed text starts, so the
            printed numbers are file-global.

    Returns:
        Windowed snippet with "<n>| " prefixes.

    """
    windows: list[list[int]] = []
    for line_no in sorted(added_lines):
        start = max(block_start, line_no - radius)
        end = min(block_end, line_no + radius)
        if windows and start <= windows[-1][1] + 1:
            windows[-1][1] = max(windows[-1][1], end)
        else:
            windows.append([start, end])

    marked = set(added_lines)
    parts: list[str] = []
    for start, end in windows:
        rendered: list[str] = []
        for line_no in range(start, end + 1):
            text = lines[line_no - 1] if line_no <= len(lines) else ""
            suffix = ADDED_MARKER if line_no in marked else ""
            rendered.append(f"{line_no + line_offset - 1}| {text}{suffix}")
        parts.append("\n".join(rendered))

    return ELISION.join(parts)


def limit_section_size(
    candidate: Candidate,
    source: str,
    config: AstConfig,
    line_offset: int = 1,
) -> Section:
    """Build the Section for a selected candidate, applying size limits.

    Args:
        candidate: Selected candidate.
        source: Text the candidate's spans refer to.
        config: AST limits.
        line_offset: File line on which source starts (for windowed numbering).

    Returns:
        Section with snippet and truncation fields set.

    """
    snippet = source.encode("utf-8")[candidate.start_byte : candidate.end_byte].decode(
        "utf-8", errors="replace"
    )
    common = {
        "kind": candidate.kind,
        "name": candidate.name,
        "start_line": candidate.start_line,
        "end_line": candidate.end_line,
        "added_lines": candidate.added_lines,
        "context": candidate.context,
    }

    if len(snippet) > config.max_snippet_length:
        return Section(
            **common,
            snippet=snippet[: config.max_snippet_length] + truncation_marker(len(snippet)),
            is_truncated=True,
            truncation_reason="char_limit",
        )

    if candidate.size > config.max_block_size_lines:
        windowed = extract_context_around_lines(
            source.split("\n"),
            candidate.added_lines,
            candidate.start_line,
            candidate.end_line,
            config.context_radius,
            line_offset=line_offset,
        )
        return Section(
            **common,
            snippet=windowed,
            is_truncated=True,
            truncation_reason="line_limit",
            summary=(
                f"Block is {candidate.size} lines; showing {config.context_radius} "
                "lines of context around each added line"
            ),
        )

    return Section(**common, snippet=snippet)
