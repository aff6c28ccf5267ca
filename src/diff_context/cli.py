"""Command line interface for diff-context.

Commands:
    analyze   Prepare per-file review context (numbered diff + AST context)
    line-map  Print the numbered diff and added lines of each file
"""

import asyncio
import json
import logging
from pathlib import Path

import typer

from diff_context.cli_utils import (
    EXIT_CONFIG_ERROR,
    _error,
    _read_patch,
    _resolve_project_root,
    _setup_logging,
    _warning,
)
from diff_context.core.config import ContextConfig, load_config
from diff_context.core.exceptions import ConfigError
from diff_context.git.diff import add_line_numbers_to_diff, added_line_set, split_file_diffs
from diff_context.pipeline import prepare_files

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="diff-context",
    help="Locate the smallest enclosing function, method or class for each change in a diff",
    no_args_is_help=True,
)


def _load_context_config(config_file: str | None, project: str | None) -> ContextConfig:
    """Load configuration, applying the --project override.

    Raises:
        typer.Exit: On configuration errors.

    """
    try:
        config = load_config(Path(config_file) if config_file else None)
    except ConfigError as e:
        _error(str(e))
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from e

    if project is not None:
        config = config.model_copy(update={"project_root": _resolve_project_root(project)})
    return config


def _split_patch(patch_text: str) -> dict[str, str]:
    files = split_file_diffs(patch_text)
    logger.debug("Patch contains %d file diff(s)", len(files))
    if not files:
        _warning("No file diffs found in patch")
    return files


@app.command("analyze")
def analyze(
    patch: str = typer.Argument(
        ...,
        help="Unified diff file, or - to read stdin",
    ),
    project: str | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Project root the diff applies to (default: PROJECT_ROOT or cwd)",
    ),
    config_file: str | None = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML configuration file",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Emit JSON instead of the rendered context blocks",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
) -> None:
    """Prepare review context for every file in a patch."""
    _setup_logging(verbose, quiet)
    config = _load_context_config(config_file, project)
    files = _split_patch(_read_patch(patch))
    if not files:
        return

    contexts = asyncio.run(prepare_files(files, config))

    if as_json:
        payload = {path: context.to_dict() for path, context in contexts.items()}
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    for context in contexts.values():
        typer.echo(context.user_content)
        typer.echo("")


@app.command("line-map")
def line_map(
    patch: str = typer.Argument(
        ...,
        help="Unified diff file, or - to read stdin",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Emit JSON instead of text",
    ),
) -> None:
    """Print each file's diff with (old, new) line numbers and its added lines."""
    files = _split_patch(_read_patch(patch))

    if as_json:
        payload = {
            path: {
                "extended_diff": add_line_numbers_to_diff(diff_text).extended_diff,
                "added_lines": sorted(added_line_set(diff_text)),
            }
            for path, diff_text in files.items()
        }
        typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    for path, diff_text in files.items():
        added = ", ".join(str(line) for line in sorted(added_line_set(diff_text)))
        typer.echo(f"## {path}")
        typer.echo(add_line_numbers_to_diff(diff_text).extended_diff)
        typer.echo(f"Added lines: [{added}]")
        typer.echo("")


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
