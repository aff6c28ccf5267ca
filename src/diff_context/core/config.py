"""Configuration models and loader for diff-context.

Configuration is an explicit, immutable value: load_config() builds it
once at process start and callers pass it down to every component that
needs it. There is no module-level cache.

Sources, lowest to highest precedence:
1. Model defaults
2. Optional YAML file (same field names, AST limits nested under ``ast:``)
3. Environment variables (AST_MAX_SNIPPET_LENGTH, AST_MAX_BLOCK_SIZE_LINES,
   AST_MAX_DEPTH, AST_TIMEOUT_MS, AST_CONTEXT_RADIUS, ENABLE_AST,
   MAX_PARALLEL, PROJECT_ROOT)

Example:
    >>> config = load_config(environ={"AST_MAX_DEPTH": "80"})
    >>> config.ast.max_depth
    80

"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from diff_context.core.exceptions import ConfigError, ConfigValidationError

logger = logging.getLogger(__name__)

# Environment variable -> AstConfig field
_AST_ENV_VARS: dict[str, str] = {
    "AST_MAX_SNIPPET_LENGTH": "max_snippet_length",
    "AST_MAX_BLOCK_SIZE_LINES": "max_block_size_lines",
    "AST_MAX_DEPTH": "max_depth",
    "AST_TIMEOUT_MS": "timeout_ms",
    "AST_CONTEXT_RADIUS": "context_radius",
}


class AstConfig(BaseModel):
    """Limits applied by the AST context extractors.

    Attributes:
        max_snippet_length: Characters after which a snippet is hard-truncated.
        max_block_size_lines: Lines after which a unit is windowed.
        max_depth: Maximum syntax tree traversal depth.
        timeout_ms: Deadline for parsing one source text or component.
        context_radius: Lines shown before and after each added line when
            a unit is windowed.

    """

    model_config = ConfigDict(frozen=True)

    max_snippet_length: int = Field(
        default=10000,
        ge=1,
        description="Maximum snippet length in characters before hard truncation",
    )
    max_block_size_lines: int = Field(
        default=150,
        ge=1,
        description="Maximum unit size in lines before windowing",
    )
    max_depth: int = Field(
        default=60,
        ge=1,
        description="Maximum syntax tree traversal depth",
    )
    timeout_ms: int = Field(
        default=8000,
        ge=1,
        description="Parse deadline in milliseconds",
    )
    context_radius: int = Field(
        default=8,
        ge=0,
        description="Lines of context around each added line in windowed snippets",
    )


class ContextConfig(BaseModel):
    """Root configuration for review-context preparation.

    Attributes:
        ast: AST extractor limits.
        enable_ast: Run AST analysis for each file (diff numbering always runs).
        max_parallel: Maximum number of files prepared concurrently.
        project_root: Directory against which relative file paths resolve.

    """

    model_config = ConfigDict(frozen=True)

    ast: AstConfig = Field(
        default_factory=AstConfig,
        description="AST extractor limits",
    )
    enable_ast: bool = Field(
        default=True,
        description="Enable AST context extraction",
    )
    max_parallel: int = Field(
        default=3,
        ge=1,
        description="Maximum files prepared concurrently",
    )
    project_root: Path = Field(
        default_factory=Path.cwd,
        description="Project root for resolving relative paths",
    )


def _read_yaml(config_path: Path) -> dict[str, Any]:
    """Read a YAML config file into a dict.

    Raises:
        ConfigError: If the file is unreadable, malformed, or not a mapping.

    """
    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Config file {config_path} must contain a mapping, got {type(data).__name__}"
        )
    return data


def _env_int(environ: Mapping[str, str], name: str) -> int | None:
    """Parse an integer environment variable, None if unset or blank."""
    raw = environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigValidationError(
            f"Environment variable {name} must be an integer, got {raw!r}",
            [{"loc": (name,), "msg": "value is not a valid integer", "type": "int_parsing"}],
        ) from e


def _apply_env(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Overlay environment variables onto raw config data."""
    merged = dict(data)
    ast_data = dict(merged.get("ast") or {})

    for env_name, field_name in _AST_ENV_VARS.items():
        value = _env_int(environ, env_name)
        if value is not None:
            ast_data[field_name] = value
    merged["ast"] = ast_data

    enable_ast = environ.get("ENABLE_AST")
    if enable_ast is not None and enable_ast.strip():
        merged["enable_ast"] = enable_ast.strip().lower() != "false"

    max_parallel = _env_int(environ, "MAX_PARALLEL")
    if max_parallel is not None:
        merged["max_parallel"] = max_parallel

    project_root = environ.get("PROJECT_ROOT", "").strip()
    if project_root:
        merged["project_root"] = project_root

    return merged


def load_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ContextConfig:
    """Build the configuration value from defaults, YAML file, and environment.

    Args:
        config_path: Optional YAML file.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        Frozen ContextConfig.

    Raises:
        ConfigError: If the YAML file cannot be used.
        ConfigValidationError: If any value fails validation.

    """
    if environ is None:
        environ = os.environ

    data: dict[str, Any] = {}
    if config_path is not None:
        data = _read_yaml(config_path)
        logger.debug("Loaded config file %s", config_path)

    data = _apply_env(data, environ)

    try:
        return ContextConfig.model_validate(data)
    except ValidationError as e:
        errors = [
            {"loc": err["loc"], "msg": err["msg"], "type": err["type"]}
            for err in e.errors()
        ]
        raise ConfigValidationError(f"Invalid configuration: {e}", errors) from e
