"""Safety primitives shared by the AST extractors.

- DepthGuard: enter/exit counter that fails past a maximum depth
- with_timeout(): cooperative deadline around synchronous work
- read_file_safe(): file reader that returns None instead of raising

Timeout limitation: parsing and traversal are synchronous CPU work on the
event loop thread. with_timeout() yields to the loop before the work and
checks the deadline after it, so a slow parse is reported as timed out
once it returns, but it is never interrupted while running. A hard
deadline would need the parse to run in a separate process that can be
killed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from diff_context.core.exceptions import AnalysisTimeoutError, DepthExceededError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DepthGuard:
    """Track traversal depth and fail once it exceeds max_depth.

    Example:
        >>> guard = DepthGuard(max_depth=2)
        >>> guard.enter(); guard.enter()
        >>> guard.depth
        2
        >>> guard.enter()
        Traceback (most recent call last):
        ...
        diff_context.core.exceptions.DepthExceededError: traversal depth exceeded (>2)

    """

    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        self.depth = 0

    def enter(self) -> None:
        """Descend one level.

        Raises:
            DepthExceededError: If the new depth is above max_depth.

        """
        self.depth += 1
        if self.depth > self.max_depth:
            raise DepthExceededError(self.max_depth)

    def exit(self) -> None:
        """Ascend one level."""
        self.depth -= 1


async def with_timeout(
    work: Callable[[], T],
    timeout_ms: int,
    message: str = "operation timed out",
) -> T:
    """Run synchronous work against a deadline.

    The deadline is armed before the work starts. Because the work cannot
    be interrupted, expiry is detected at the next suspension point or by
    comparing the loop clock once the work returns.

    Args:
        work: Zero-argument callable to run.
        timeout_ms: Deadline in milliseconds.
        message: Message for the AnalysisTimeoutError.

    Returns:
        The work's return value.

    Raises:
        AnalysisTimeoutError: If the deadline passed.

    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_ms / 1000
    try:
        async with asyncio.timeout_at(deadline):
            await asyncio.sleep(0)
            result = work()
            if loop.time() >= deadline:
                raise TimeoutError
            return result
    except TimeoutError as e:
        raise AnalysisTimeoutError(f"{message} (>{timeout_ms}ms)") from e


async def read_file_safe(file_path: str | Path, project_root: str | Path) -> str | None:
    """Read a file as UTF-8 text, resolving relative paths against project_root.

    Args:
        file_path: Absolute path, or path relative to project_root.
        project_root: Project root directory.

    Returns:
        File content, or None if the file cannot be read or decoded.

    """
    path = Path(project_root) / file_path
    try:
        return await asyncio.to_thread(path.read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("Cannot read %s: %s", path, e)
        return None
