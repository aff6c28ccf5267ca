"""Unified diff parsing and line-number mapping."""

from diff_context.git.diff import (
    ExtendedDiff,
    Hunk,
    LineMapEntry,
    add_line_numbers_to_diff,
    added_line_set,
    parse_diff_newline_map,
    split_file_diffs,
    split_hunks,
)

__all__ = [
    "ExtendedDiff",
    "Hunk",
    "LineMapEntry",
    "add_line_numbers_to_diff",
    "added_line_set",
    "parse_diff_newline_map",
    "split_file_diffs",
    "split_hunks",
]
