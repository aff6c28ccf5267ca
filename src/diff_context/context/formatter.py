"""Render extraction results as text for prompt construction.

Provides two formatters:
- format_ast_context(): the AST context block for one file
- build_user_content(): numbered diff followed by the AST context block

A result with zero sections renders as an empty block; that is an
expected outcome, not an error.
"""

from __future__ import annotations

from diff_context.context.types import ExtractionResult, Section

AST_CONTEXT_HEADER = "# AST context (supporting information)"
AST_CONTEXT_INTRO = (
    "Complete function/class code containing the changed lines, "
    "to help understand the change.\n"
    "**Note**: not every diff change has AST context; this is normal. "
    "Review the diff first."
)


def _format_section(index: int, section: Section) -> str:
    kind = section.kind.value
    if section.context:
        kind = f"{kind} ({section.context})"
    added = ", ".join(str(line) for line in section.added_lines)

    parts = [
        f"## Section {index}: {section.name}",
        f"- **Kind**: {kind}",
        f"- **Location**: lines {section.start_line}-{section.end_line}",
        f"- **Added lines**: [{added}]",
    ]
    if section.summary:
        parts.append(f"- **Note**: {section.summary}")
    parts.append(f"- **Code**:\n```\n{section.snippet}\n```")
    return "\n".join(parts)


def format_ast_context(result: ExtractionResult | None) -> str:
    """Format sections (and any error tags) as a Markdown block.

    Args:
        result: Extraction result, or None when AST analysis is disabled.

    Returns:
        The block, or "" when there are no sections.

    """
    if result is None or not result.sections:
        return ""

    parts = [AST_CONTEXT_HEADER, AST_CONTEXT_INTRO, ""]
    for index, section in enumerate(result.sections, start=1):
        parts.append(_format_section(index, section))
        parts.append("")

    if result.errors:
        parts.append(f"**Note**: AST analysis reported: {', '.join(result.errors)}")

    return "\n".join(parts).rstrip("\n") + "\n"


def build_user_content(
    file_path: str,
    extended_diff: str,
    ast_context: ExtractionResult | None = None,
) -> str:
    """Build the per-file text handed to the reviewer.

    Args:
        file_path: Path of the reviewed file.
        extended_diff: Diff with ``(old, new)`` line numbers.
        ast_context: Optional extraction result.

    Returns:
        Header, numbered diff and, when available, the AST context block.

    """
    content = f"## new_path: {file_path}\n## old_path: {file_path}\n{extended_diff}"
    block = format_ast_context(ast_context)
    if block:
        content += "\n\n" + block
    return content
