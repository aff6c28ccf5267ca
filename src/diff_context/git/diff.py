"""Unified diff line mapping.

Turns unified-diff text into precise old-file/new-file line numbers:
- split_file_diffs(): multi-file ``git diff`` output -> per-file diffs
- split_hunks(): per-file diff -> hunks (file header lines skipped)
- compute_hunk_line_numbers(): resolved old/new line per hunk line
- add_line_numbers_to_diff(): numbered diff text plus old/new line maps
- parse_diff_newline_map(): ordered (diff position, new line) for additions
- added_line_set(): the deduplicated Added-Line Set

Parsing is best-effort: a hunk with a malformed header contributes no
mapping, but never aborts the rest of the diff.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

_HUNK_RE = re.compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? \+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@"
)

_DIFF_GIT_RE = re.compile(r"^diff --git a/(?P<old>.+?) b/(?P<new>.+)$")

# Lines that precede the first hunk of a file and are never hunk content
_FILE_HEADER_PREFIXES: tuple[str, ...] = (
    "diff --git",
    "---",
    "+++",
    "index ",
    "new file ",
    "deleted file ",
    "similarity index",
    "rename from",
    "rename to",
    "old mode",
    "new mode",
    "Binary files",
)

# "\ No newline at end of file"
_NO_NEWLINE_MARKER = "\\"


@dataclass(frozen=True, slots=True)
class LineMapEntry:
    """One diff-text line resolved to file line numbers.

    Attributes:
        diff_position: 1-indexed line position within the diff text.
        old_line: Old-file line number (None for additions).
        new_line: New-file line number (None for deletions).
        text: The raw diff line, including its +/-/space prefix.

    """

    diff_position: int
    old_line: int | None
    new_line: int | None
    text: str


@dataclass
class Hunk:
    """A contiguous change block.

    Attributes:
        header: The ``@@ ... @@`` line.
        old_start: Old-file start line, None if the header is malformed.
        new_start: New-file start line, None if the header is malformed.
        lines: Body lines following the header.
        header_position: 1-indexed position of the header in the diff text.

    """

    header: str
    old_start: int | None
    new_start: int | None
    lines: list[str] = field(default_factory=list)
    header_position: int = 0

    @property
    def is_valid(self) -> bool:
        """True if the header yielded both start lines."""
        return self.old_start is not None and self.new_start is not None


@dataclass
class HunkLineNumbers:
    """Resolved line numbers for a single hunk.

    Attributes:
        numbered_lines: Header followed by body lines prefixed "(old, new)".
        entries: One LineMapEntry per body line (marker lines excluded).
        old_lines: Old-file line number -> diff line.
        new_lines: New-file line number -> diff line.

    """

    numbered_lines: list[str]
    entries: list[LineMapEntry] = field(default_factory=list)
    old_lines: dict[int, str] = field(default_factory=dict)
    new_lines: dict[int, str] = field(default_factory=dict)


@dataclass
class ExtendedDiff:
    """A diff re-rendered with line numbers, plus merged line maps."""

    extended_diff: str
    hunks: list[Hunk]
    entries: list[LineMapEntry]
    old_lines: dict[int, str]
    new_lines: dict[int, str]


def _parse_hunk_header(line: str) -> tuple[int | None, int | None]:
    """Return (old_start, new_start) from a hunk header, Nones if malformed."""
    match = _HUNK_RE.match(line)
    if not match:
        return None, None
    return int(match.group("old_start")), int(match.group("new_start"))


def split_file_diffs(diff_text: str) -> dict[str, str]:
    """Split multi-file ``git diff`` output into per-file diffs.

    Files are keyed by their new path (``+++ b/...``), or by the old path
    when the file was deleted. Text before the first ``diff --git`` line is
    ignored. Input without any ``diff --git`` line is treated as a single
    file keyed by its ``+++``/``---`` path when present.

    Args:
        diff_text: Output of ``git diff`` (any number of files).

    Returns:
        Ordered mapping of file path to that file's diff text.

    """
    sections: list[list[str]] = []
    current: list[str] | None = None

    for line in diff_text.split("\n"):
        if line.startswith("diff --git "):
            current = [line]
            sections.append(current)
        elif current is not None:
            current.append(line)

    if not sections and diff_text.strip():
        sections = [diff_text.split("\n")]

    result: dict[str, str] = {}
    for lines in sections:
        path = _section_path(lines)
        if path is None:
            logger.debug("Skipping diff section without a file path: %r", lines[0][:80])
            continue
        # Drop trailing blank line left by the split
        while lines and lines[-1] == "":
            lines = lines[:-1]
        result[path] = "\n".join(lines)

    return result


def _section_path(lines: list[str]) -> str | None:
    """Determine the file path for one per-file diff section."""
    new_path: str | None = None
    old_path: str | None = None

    for line in lines:
        if line.startswith("@@"):
            break
        if line.startswith("+++ "):
            target = line[4:].strip()
            if target != "/dev/null":
                new_path = target[2:] if target.startswith("b/") else target
        elif line.startswith("--- "):
            source = line[4:].strip()
            if source != "/dev/null":
                old_path = source[2:] if source.startswith("a/") else source

    if new_path or old_path:
        return new_path or old_path

    match = _DIFF_GIT_RE.match(lines[0]) if lines else None
    if match:
        return match.group("new")
    return None


def split_hunks(diff_text: str) -> list[Hunk]:
    """Split one file's diff into hunks.

    File header lines before the first ``@@`` are skipped. Hunks with a
    malformed header are still returned (``is_valid`` is False) so their
    text can be passed through.

    Args:
        diff_text: Unified diff for a single file.

    Returns:
        List of hunks in diff order.

    """
    hunks: list[Hunk] = []
    current: Hunk | None = None

    for position, line in enumerate(diff_text.split("\n"), start=1):
        if current is None and line.startswith(_FILE_HEADER_PREFIXES):
            continue

        if line.startswith("@@"):
            old_start, new_start = _parse_hunk_header(line)
            if old_start is None:
                logger.debug("Malformed hunk header at diff line %d: %r", position, line)
            current = Hunk(
                header=line,
                old_start=old_start,
                new_start=new_start,
                header_position=position,
            )
            hunks.append(current)
            continue

        if current is not None:
            current.lines.append(line)

    # A trailing newline in the diff leaves one empty line on the last hunk
    if hunks and hunks[-1].lines and hunks[-1].lines[-1] == "":
        hunks[-1].lines.pop()

    return hunks


def compute_hunk_line_numbers(hunk: Hunk) -> HunkLineNumbers:
    """Resolve old/new line numbers for every line of a hunk.

    A ``-`` line advances only the old counter, a ``+`` line only the new
    counter, any other line (context) advances both. ``\\ No newline``
    markers advance neither.

    Args:
        hunk: Hunk from split_hunks().

    Returns:
        HunkLineNumbers; empty maps and unnumbered lines for invalid hunks.

    """
    old_line = hunk.old_start
    new_line = hunk.new_start
    if old_line is None or new_line is None:
        return HunkLineNumbers(numbered_lines=[hunk.header, *hunk.lines])

    result = HunkLineNumbers(numbered_lines=[hunk.header])
    prefixed: list[tuple[str, str]] = []

    for offset, line in enumerate(hunk.lines, start=1):
        position = hunk.header_position + offset

        if line.startswith(_NO_NEWLINE_MARKER):
            prefixed.append(("", line))
            continue

        if line.startswith("-"):
            prefixed.append((f"({old_line}, )", line))
            result.old_lines[old_line] = line
            result.entries.append(LineMapEntry(position, old_line, None, line))
            old_line += 1
        elif line.startswith("+"):
            prefixed.append((f"( , {new_line})", line))
            result.new_lines[new_line] = line
            result.entries.append(LineMapEntry(position, None, new_line, line))
            new_line += 1
        else:
            prefixed.append((f"({old_line}, {new_line})", line))
            result.old_lines[old_line] = line
            result.new_lines[new_line] = line
            result.entries.append(LineMapEntry(position, old_line, new_line, line))
            old_line += 1
            new_line += 1

    width = max((len(prefix) for prefix, _ in prefixed), default=0)
    for prefix, line in prefixed:
        result.numbered_lines.append(f"{prefix.ljust(width)} {line}")

    return result


def add_line_numbers_to_diff(diff_text: str) -> ExtendedDiff:
    """Render a diff with per-line ``(old, new)`` numbers.

    Args:
        diff_text: Unified diff for a single file.

    Returns:
        ExtendedDiff with the numbered text and merged line maps.

    """
    hunks = split_hunks(diff_text)
    parts: list[str] = []
    entries: list[LineMapEntry] = []
    old_lines: dict[int, str] = {}
    new_lines: dict[int, str] = {}

    for hunk in hunks:
        numbered = compute_hunk_line_numbers(hunk)
        parts.append("\n".join(numbered.numbered_lines))
        entries.extend(numbered.entries)
        old_lines.update(numbered.old_lines)
        new_lines.update(numbered.new_lines)

    return ExtendedDiff(
        extended_diff="\n".join(parts),
        hunks=hunks,
        entries=entries,
        old_lines=old_lines,
        new_lines=new_lines,
    )


def parse_diff_newline_map(diff_text: str) -> list[tuple[int, int]]:
    """Map added diff lines to new-file line numbers.

    Built from the same hunk entries as add_line_numbers_to_diff(), so a
    hunk line is classified by its first character only: a deleted
    ``--x`` or an added ``++x`` is hunk content, never a file header.
    Lines before the first hunk header, and the lines of hunks with a
    malformed header, produce no mapping.

    Args:
        diff_text: Unified diff for a single file.

    Returns:
        Ordered list of (diff position, new-file line), positions 1-indexed.

    """
    return [
        (entry.diff_position, entry.new_line)
        for hunk in split_hunks(diff_text)
        for entry in compute_hunk_line_numbers(hunk).entries
        if entry.old_line is None and entry.new_line is not None
    ]


def added_line_set(diff_text: str) -> frozenset[int]:
    """Return the new-file line numbers of all added lines."""
    return frozenset(new_line for _, new_line in parse_diff_newline_map(diff_text))
