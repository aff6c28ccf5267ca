"""Exception hierarchy for diff-context.

Two families hang off DiffContextError:
- ConfigError: the configuration value cannot be built; fatal for AST analysis
- AstAnalysisError: one source text could not be analysed

AstAnalysisError never leaves the extractors. Each one is recorded as an
error tag on the ExtractionResult of the file being analysed.
"""

from typing import Any

__all__ = [
    "DiffContextError",
    "ConfigError",
    "ConfigValidationError",
    "AstAnalysisError",
    "DepthExceededError",
    "AnalysisTimeoutError",
    "SourceParseError",
]


class DiffContextError(Exception):
    """Base exception for all diff-context errors."""

    pass


class ConfigError(DiffContextError):
    """Configuration loading or validation error.

    Raised when:
    - The configuration file cannot be read or is not a YAML mapping
    - AST analysis is invoked without a configuration bundle
    """

    pass


class ConfigValidationError(ConfigError):
    """A configuration value was rejected.

    Attributes:
        errors: One dict per problem with "loc" (field path or env var
            name), "msg" and "type", in pydantic's error shape.

    """

    def __init__(self, message: str, errors: list[dict[str, Any]]) -> None:
        super().__init__(message)
        self.errors = errors


class AstAnalysisError(DiffContextError):
    """Base class for failures detected while analysing one source text."""

    pass


class DepthExceededError(AstAnalysisError):
    """Raised by DepthGuard when traversal goes deeper than allowed.

    Distinct from other traversal errors so callers can keep the
    candidates collected before the limit was hit.

    Attributes:
        max_depth: The configured maximum depth.

    """

    def __init__(self, max_depth: int) -> None:
        """Initialize with the depth limit that was exceeded."""
        super().__init__(f"traversal depth exceeded (>{max_depth})")
        self.max_depth = max_depth


class AnalysisTimeoutError(AstAnalysisError):
    """Raised by with_timeout() when work finishes after its deadline."""

    pass


class SourceParseError(AstAnalysisError):
    """Raised when a parser produces no usable tree."""

    pass
