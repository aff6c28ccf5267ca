"""AST context extraction for diff review.

Finds the smallest function, method or class enclosing each added line
of a JavaScript/TypeScript file or a single-file component's script
blocks, and returns bounded snippets.

Pipeline: parse → collect candidates → select_smallest_sections() →
limit_section_size() → ExtractionResult
"""

from diff_context.context.extractor import (
    detect_file_kind,
    extract_ast_context,
    extract_context_from_source,
)
from diff_context.context.formatter import build_user_content, format_ast_context
from diff_context.context.types import (
    ComponentInfo,
    ExtractionResult,
    Region,
    Section,
    UnitKind,
)

__all__ = [
    "detect_file_kind",
    "extract_ast_context",
    "extract_context_from_source",
    "build_user_content",
    "format_ast_context",
    "ComponentInfo",
    "ExtractionResult",
    "Region",
    "Section",
    "UnitKind",
]
