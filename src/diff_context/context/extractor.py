"""Dispatch layer for AST context extraction.

Routes a file to the script or component extractor by extension and
always returns a well-formed ExtractionResult: unsupported kinds are a
no-op tagged ``unsupported_file_type`` and any unexpected exception is
converted into an ``unexpected_error: ...`` tag. The surrounding review
pipeline never aborts because one file could not be analysed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from pathlib import Path, PurePosixPath
from typing import Literal

from diff_context.context.component import extract_component_context
from diff_context.context.parsers.javascript import ScriptLanguage
from diff_context.context.safety import read_file_safe
from diff_context.context.script import extract_script_context
from diff_context.context.types import ExtractionResult
from diff_context.core.config import AstConfig
from diff_context.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

FileKind = Literal["script", "component", "unsupported"]

# Script grammar by file extension
_SCRIPT_LANGUAGES: dict[str, ScriptLanguage] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}

_COMPONENT_SUFFIXES: frozenset[str] = frozenset({".vue"})


def detect_file_kind(file_path: str) -> FileKind:
    """Classify a file by extension only (no content sniffing)."""
    suffix = PurePosixPath(file_path).suffix.lower()
    if suffix in _SCRIPT_LANGUAGES:
        return "script"
    if suffix in _COMPONENT_SUFFIXES:
        return "component"
    return "unsupported"


async def extract_context_from_source(
    source: str,
    file_path: str,
    added_lines: Iterable[int],
    config: AstConfig,
) -> ExtractionResult:
    """Run the extractor matching file_path's kind on in-memory source.

    Args:
        source: File content.
        file_path: Path used for kind classification only.
        added_lines: Added-Line Set in file coordinates.
        config: AST limits.

    Returns:
        ExtractionResult with sections ascending by start_line.

    """
    kind = detect_file_kind(file_path)
    if kind == "unsupported":
        return ExtractionResult(errors=["unsupported_file_type"])

    if kind == "component":
        return await extract_component_context(source, added_lines, config)

    language = _SCRIPT_LANGUAGES[PurePosixPath(file_path).suffix.lower()]
    result = await extract_script_context(source, added_lines, config, language=language)
    result.sections.sort(key=lambda s: s.start_line)
    return result


async def extract_ast_context(
    file_path: str,
    added_lines: Iterable[int],
    project_root: str | Path,
    config: AstConfig | None,
) -> ExtractionResult:
    """Extract AST context for one file of a diff.

    Args:
        file_path: Path of the file, relative to project_root or absolute.
        added_lines: Added-Line Set in new-file coordinates.
        project_root: Directory relative paths are resolved against.
        config: AST limits; required.

    Returns:
        ExtractionResult with parse_time_ms set. Never raises for per-file
        problems.

    Raises:
        ConfigError: If config is None (AST analysis cannot be initialized).

    """
    if config is None:
        raise ConfigError("AST configuration is required for AST analysis")

    started = time.perf_counter()
    try:
        if detect_file_kind(file_path) == "unsupported":
            result = ExtractionResult(errors=["unsupported_file_type"])
        else:
            source = await read_file_safe(file_path, project_root)
            if source is None:
                result = ExtractionResult(errors=["file_not_readable"])
            else:
                result = await extract_context_from_source(
                    source, file_path, added_lines, config
                )
    except Exception as e:
        logger.error("AST analysis failed for %s: %s", file_path, e)
        result = ExtractionResult(errors=[f"unexpected_error: {e}"])

    result.parse_time_ms = (time.perf_counter() - started) * 1000
    logger.debug(
        "AST analysis of %s: %d section(s), %d error(s) in %.1fms",
        file_path,
        len(result.sections),
        len(result.errors),
        result.parse_time_ms,
    )
    return result
