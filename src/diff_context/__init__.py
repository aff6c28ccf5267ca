"""diff-context: smallest-enclosing-unit context for diff review.

Maps unified-diff insertions to new-file line numbers and extracts the
smallest function, method or class containing each change, with size,
depth and time limits, so a reviewer sees just enough surrounding code.
"""

__version__ = "0.1.0"
