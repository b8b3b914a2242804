#!/usr/bin/env python3
"""
YAMLTREE ERRORS
---------------
Every parse failure is fatal and aborts the current document. Each error
carries the 1-based line (and, where known, column) at which it was detected.
"""

from typing import Optional


class YamlTreeError(Exception):
    """Base class for all yamltree failures."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(self._render())

    def _render(self) -> str:
        if self.line is None:
            return self.message
        if self.column is None:
            return f"{self.message} (line {self.line})"
        return f"{self.message} (line {self.line}, column {self.column})"


class ParseError(YamlTreeError):
    """Raised for any malformed input."""


class IndentError(ParseError):
    """Dedent below the root indent, unmatched ancestor indent, or content under a leaf."""


class DelimiterError(ParseError):
    """Missing ': ', unterminated quote or bracket, misplaced comma."""


class TagError(ParseError):
    """Unrecognized '!!tag' or a value that cannot be coerced to its tag."""


class AnchorError(ParseError):
    """Alias referencing an undefined, forward or enclosing anchor."""


class BlockScalarError(ParseError):
    """Malformed '|' / '>' header or block content indented too shallow."""
