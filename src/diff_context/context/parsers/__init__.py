"""Parsers for context extraction.

- javascript: JS/TS/TSX syntax trees (tree-sitter)
- sfc: single-file component descriptors (tree-sitter HTML grammar)
"""

from diff_context.context.parsers.javascript import ParseOutcome, parse_source
from diff_context.context.parsers.sfc import SfcDescriptor, parse_sfc

__all__ = ["ParseOutcome", "parse_source", "SfcDescriptor", "parse_sfc"]
