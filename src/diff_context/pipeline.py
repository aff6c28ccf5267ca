"""Per-file review context preparation.

For every file of a diff: number the diff lines, derive the Added-Line
Set and, when enabled, extract AST context. prepare_files() fans out over
many files with at most ``max_parallel`` in flight. Parsing is CPU work on
the event loop thread, so only file reads overlap; results are keyed by
path and independent of completion order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass

from diff_context.context.extractor import extract_ast_context
from diff_context.context.formatter import build_user_content
from diff_context.context.types import ExtractionResult
from diff_context.core.config import ContextConfig
from diff_context.git.diff import add_line_numbers_to_diff, added_line_set

logger = logging.getLogger(__name__)


@dataclass
class FileContext:
    """Everything a reviewer needs for one file.

    Attributes:
        file_path: Path of the file.
        extended_diff: Diff with ``(old, new)`` line-number prefixes.
        added_lines: Added-Line Set in new-file coordinates.
        ast_context: Extraction result, None when AST analysis did not run.

    """

    file_path: str
    extended_diff: str
    added_lines: frozenset[int]
    ast_context: ExtractionResult | None = None

    @property
    def user_content(self) -> str:
        """Text block for prompt construction."""
        return build_user_content(self.file_path, self.extended_diff, self.ast_context)

    def to_dict(self) -> dict[str, object]:
        """Serialize for JSON output."""
        return {
            "file_path": self.file_path,
            "extended_diff": self.extended_diff,
            "added_lines": sorted(self.added_lines),
            "ast_context": self.ast_context.to_dict() if self.ast_context else None,
        }


async def prepare_file_context(
    file_path: str,
    diff_text: str,
    config: ContextConfig,
) -> FileContext:
    """Prepare the review context for one file.

    Args:
        file_path: Path of the file relative to config.project_root.
        diff_text: Unified diff for this file.
        config: Runtime configuration.

    Returns:
        FileContext; AST context is skipped when disabled or nothing was added.

    """
    extended = add_line_numbers_to_diff(diff_text)
    added_lines = added_line_set(diff_text)

    ast_context: ExtractionResult | None = None
    if config.enable_ast and added_lines:
        ast_context = await extract_ast_context(
            file_path, added_lines, config.project_root, config.ast
        )

    return FileContext(
        file_path=file_path,
        extended_diff=extended.extended_diff,
        added_lines=added_lines,
        ast_context=ast_context,
    )


async def prepare_files(
    files: Mapping[str, str],
    config: ContextConfig,
) -> dict[str, FileContext]:
    """Prepare review contexts for many files with bounded concurrency.

    Args:
        files: Mapping of file path to that file's diff text.
        config: Runtime configuration (max_parallel bounds concurrency).

    Returns:
        Mapping of file path to FileContext, in the input's order.

    """
    semaphore = asyncio.Semaphore(config.max_parallel)

    async def _prepare(path: str, diff_text: str) -> FileContext:
        async with semaphore:
            logger.info("Preparing context: %s", path)
            return await prepare_file_context(path, diff_text, config)

    logger.info("Preparing %d file(s) (max_parallel=%d)", len(files), config.max_parallel)
    contexts = await asyncio.gather(
        *(_prepare(path, diff_text) for path, diff_text in files.items())
    )
    return {context.file_path: context for context in contexts}
