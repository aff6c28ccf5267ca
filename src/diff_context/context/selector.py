"""Minimal-coverage selection of candidate units.

Smaller units carry more signal per token, so every added line is
attributed to the tightest candidate that contains it and an outer class
never swallows the changes of its methods.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from diff_context.context.types import Candidate


def select_smallest_sections(
    candidates: list[Candidate],
    added_lines: Iterable[int],
) -> list[Candidate]:
    """Select the fewest, smallest candidates covering every added line.

    Candidates are scanned by ascending size, ties broken by earlier start
    line and then discovery order. A candidate is selected if it contains an
    added line no smaller selected candidate covers yet; its added_lines are
    narrowed to exactly those newly covered lines.

    Args:
        candidates: Candidates in discovery (pre-order) order.
        added_lines: The Added-Line Set of the text being analysed.

    Returns:
        Selected candidates in discovery order. Zero candidates gives an
        empty list; a single candidate is returned unchanged.

    """
    if not candidates:
        return []
    if len(candidates) == 1:
        return list(candidates)

    wanted = set(added_lines)
    order = sorted(
        range(len(candidates)),
        key=lambda i: (candidates[i].size, candidates[i].start_line),
    )

    covered: set[int] = set()
    selected: dict[int, Candidate] = {}
    for index in order:
        candidate = candidates[index]
        uncovered = tuple(
            line for line in candidate.added_lines if line in wanted and line not in covered
        )
        if not uncovered:
            continue
        covered.update(uncovered)
        selected[index] = replace(candidate, added_lines=uncovered)

    return [selected[i] for i in sorted(selected)]
