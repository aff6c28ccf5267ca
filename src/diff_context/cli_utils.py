"""Helpers shared by the diff-context commands.

Messages go to stderr through a rich console so stdout stays clean for
the rendered context or JSON payload.
"""

import logging
import os
import sys
from collections.abc import Mapping
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

EXIT_SUCCESS: int = 0
EXIT_ERROR: int = 1  # unreadable patch, bad --project
EXIT_CONFIG_ERROR: int = 2

LOG_LEVEL_ENV = "DIFF_CONTEXT_LOG_LEVEL"

_NAMED_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

err_console = Console(stderr=True)


def _error(message: str) -> None:
    """Print a red error line to stderr.

    Args:
        message: Text shown after the "Error:" label.

    """
    err_console.print(f"[red]Error:[/red] {message}")


def _warning(message: str) -> None:
    """Print a yellow warning line to stderr.

    Args:
        message: Text shown after the "Warning:" label.

    """
    err_console.print(f"[yellow]Warning:[/yellow] {message}")


def resolve_log_level(
    verbose: bool,
    quiet: bool,
    environ: Mapping[str, str] | None = None,
) -> int:
    """Pick the root log level.

    DIFF_CONTEXT_LOG_LEVEL wins when it names a known level, then --verbose,
    then --quiet; the default is WARNING.
    """
    if environ is None:
        environ = os.environ
    named = _NAMED_LEVELS.get(environ.get(LOG_LEVEL_ENV, "").strip().upper())
    if named is not None:
        return named
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    return logging.WARNING


def _setup_logging(verbose: bool, quiet: bool) -> None:
    """Route all records through a single RichHandler on stderr."""
    level = resolve_log_level(verbose, quiet)
    logging.root.handlers.clear()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, show_path=False)],
    )


def _read_patch(patch: str) -> str:
    """Read a unified diff from a file, or from stdin when patch is "-".

    Raises:
        typer.Exit: If the file cannot be read as UTF-8 text.

    """
    if patch == "-":
        return sys.stdin.read()
    try:
        return Path(patch).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _error(f"Cannot read patch {patch}: {e}")
        raise typer.Exit(code=EXIT_ERROR) from e


def _resolve_project_root(project: str) -> Path:
    """Resolve --project to an existing directory.

    Raises:
        typer.Exit: If the path is missing or is not a directory.

    """
    root = Path(project).resolve()
    if not root.is_dir():
        reason = "is not a directory" if root.exists() else "does not exist"
        _error(f"Project root {project} {reason}")
        raise typer.Exit(code=EXIT_ERROR)
    return root
