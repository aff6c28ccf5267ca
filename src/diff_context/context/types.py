"""Core data types for AST context extraction.

Defines the closed UnitKind enumeration, the transient Candidate record
produced during traversal, and the public Section / ExtractionResult
outputs, plus the Region and ComponentInfo types used for component files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

TruncationReason = Literal["none", "char_limit", "line_limit"]

ANONYMOUS = "anonymous"


class UnitKind(str, Enum):
    """Syntactic kinds that qualify as candidate units.

    Containers (programs, blocks, object literals) are deliberately absent
    so that context never grows to the whole file.
    """

    FUNCTION_DECLARATION = "function_declaration"
    GENERATOR_FUNCTION_DECLARATION = "generator_function_declaration"
    FUNCTION_EXPRESSION = "function_expression"
    GENERATOR_FUNCTION = "generator_function"
    ARROW_FUNCTION = "arrow_function"
    CLASS_METHOD = "class_method"
    OBJECT_METHOD = "object_method"
    CLASS_DECLARATION = "class_declaration"

    @property
    def is_method(self) -> bool:
        """True for class and object methods."""
        return self in (UnitKind.CLASS_METHOD, UnitKind.OBJECT_METHOD)


@dataclass(frozen=True, slots=True)
class Candidate:
    """A syntactic unit containing at least one added line.

    Attributes:
        kind: Syntactic kind.
        name: Resolved display name, or ANONYMOUS.
        start_line: 1-indexed inclusive start line.
        end_line: 1-indexed inclusive end line.
        start_byte: Start offset into the UTF-8 source.
        end_byte: End offset into the UTF-8 source.
        added_lines: Added lines inside [start_line, end_line], ascending.
        context: Naming context (e.g. "methods" inside a component export).

    """

    kind: UnitKind
    name: str
    start_line: int
    end_line: int
    start_byte: int
    end_byte: int
    added_lines: tuple[int, ...]
    context: str | None = None

    @property
    def size(self) -> int:
        """Unit size in lines."""
        return self.end_line - self.start_line + 1


@dataclass(frozen=True, slots=True)
class Section:
    """A selected unit with its (possibly truncated) snippet.

    Attributes:
        kind: Syntactic kind.
        name: Display name, or ANONYMOUS.
        start_line: 1-indexed inclusive start line.
        end_line: 1-indexed inclusive end line.
        added_lines: Added lines this section accounts for, ascending.
        snippet: Source text of the unit, or a truncated/windowed rendering.
        is_truncated: True if the snippet is not the full unit text.
        truncation_reason: Why the snippet was truncated.
        summary: Human-readable note for windowed snippets.
        context: Naming context for component members (e.g. "computed").

    """

    kind: UnitKind
    name: str
    start_line: int
    end_line: int
    added_lines: tuple[int, ...]
    snippet: str
    is_truncated: bool = False
    truncation_reason: TruncationReason = "none"
    summary: str | None = None
    context: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize for JSON output."""
        return {
            "kind": self.kind.value,
            "name": self.name,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "added_lines": list(self.added_lines),
            "snippet": self.snippet,
            "is_truncated": self.is_truncated,
            "truncation_reason": self.truncation_reason,
            "summary": self.summary,
            "context": self.context,
        }


@dataclass(frozen=True, slots=True)
class ComponentInfo:
    """Presence flags and counts for a component file's regions."""

    has_template: bool
    has_script: bool
    has_script_setup: bool
    style_blocks: int
    script_lang: str = "js"


@dataclass(frozen=True, slots=True)
class Region:
    """A named sub-language block inside a component file.

    Attributes:
        name: Region name ("script", "script_setup", "template", "style").
        content: Source text of the block.
        start_line: 1-based line in the parent file on which content begins.
        lang: Value of the block's ``lang`` attribute, if any.
        attrs: All attributes of the opening tag (flags map to True).

    """

    name: str
    content: str
    start_line: int
    lang: str | None = None
    attrs: dict[str, str | bool] = field(default_factory=dict)

    def to_local(self, line: int) -> int:
        """Map a file-global line to this region's 1-based local line."""
        return line - self.start_line + 1

    def to_global(self, line: int) -> int:
        """Map a region-local line back to the file-global line."""
        return line + self.start_line - 1


@dataclass
class ExtractionResult:
    """Sections and error tags for one file.

    Errors and sections may coexist: a non-empty error list means analysis
    degraded, not that the sections are wrong.

    Attributes:
        sections: Selected sections, ascending by start_line.
        errors: Error tags such as "parse_error: ..." or "unsupported_file_type".
        parse_time_ms: Wall-clock analysis time.
        component_info: Region metadata for component files.

    """

    sections: list[Section] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    parse_time_ms: float = 0.0
    component_info: ComponentInfo | None = None

    def to_dict(self) -> dict[str, object]:
        """Serialize for JSON output."""
        info = self.component_info
        return {
            "sections": [s.to_dict() for s in self.sections],
            "errors": list(self.errors),
            "parse_time_ms": round(self.parse_time_ms, 3),
            "component_info": (
                {
                    "has_template": info.has_template,
                    "has_script": info.has_script,
                    "has_script_setup": info.has_script_setup,
                    "style_blocks": info.style_blocks,
                    "script_lang": info.script_lang,
                }
                if info is not None
                else None
            ),
        }
