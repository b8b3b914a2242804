#!/usr/bin/env python3
"""
YAMLTREE BLOCK SCALARS
----------------------
Consumes the raw lines of a literal (`|`) or folded (`>`) block scalar.
The first non-blank line fixes the content indent; the block ends at the
first non-blank line indented at or below the owning line's indent.
"""

from dataclasses import dataclass
from typing import List, Optional

from yamltree.core.errors import BlockScalarError
from yamltree.core.models import Chomping


@dataclass
class BlockScalar:
    value: str
    folded: bool
    chomping: Chomping
    next_offset: int      # Start of the first line not consumed
    next_line: int        # Line number of that line


class BlockScalarReader:
    """Reads block scalars straight out of the shared source buffer."""

    def __init__(self, source: str):
        self.source = source
        self.length = len(source)

    def _line_end(self, pos: int) -> int:
        end = self.source.find("\n", pos)
        return self.length if end == -1 else end

    def _parse_header(self, start: int, line: int, line_start: int):
        """Validates `|`, `>`, `|+`, `>-` ... followed only by blanks or a comment."""
        folded = self.source[start] == ">"
        i = start + 1
        chomping = Chomping.CLIP
        if i < self.length and self.source[i] == "+":
            chomping = Chomping.KEEP
            i += 1
        elif i < self.length and self.source[i] == "-":
            chomping = Chomping.STRIP
            i += 1

        end = self._line_end(start)
        rest = self.source[i:end]
        stripped = rest.strip()
        if stripped and not (stripped.startswith("#") and rest[:1] in (" ", "\t")):
            raise BlockScalarError(
                f"Expected a chomping indicator or end of line after '{self.source[start]}', found {stripped[0]!r}",
                line, i - line_start + 1,
            )
        return folded, chomping, end

    def read(self, start: int, base_indent: int, line: int, line_start: int) -> BlockScalar:
        """
        Args:
            start: offset of the '|' or '>' indicator.
            base_indent: indent of the record that owns the scalar.
            line: line number of the indicator.
            line_start: offset of the indicator's line, for column reporting.
        """
        folded, chomping, header_end = self._parse_header(start, line, line_start)

        pos = header_end + 1
        current_line = line + 1
        content_indent: Optional[int] = None
        lines: List[str] = []

        while pos < self.length:
            end = self._line_end(pos)
            raw = self.source[pos:end]
            if not raw.strip():
                lines.append("")
                pos, current_line = end + 1, current_line + 1
                continue

            indent = len(raw) - len(raw.lstrip(" "))
            if indent <= base_indent:
                break
            if content_indent is None:
                content_indent = indent
            elif indent < content_indent:
                raise BlockScalarError(
                    f"Block scalar line indented {indent} spaces, less than its content indent {content_indent}",
                    current_line, indent + 1,
                )
            lines.append(raw[content_indent:])
            pos, current_line = end + 1, current_line + 1

        value = self._assemble(lines, folded, chomping)
        return BlockScalar(value, folded, chomping, min(pos, self.length), current_line)

    @staticmethod
    def _fold(lines: List[str]) -> str:
        """Every interior line break becomes a space; a blank line adds one more."""
        return " ".join(lines)

    @staticmethod
    def _assemble(lines: List[str], folded: bool, chomping: Chomping) -> str:
        count = len(lines)
        while count > 0 and lines[count - 1] == "":
            count -= 1
        body_lines = lines[:count]
        trailing = len(lines) - count
        if body_lines:
            # The last content line carries its own terminator
            trailing += 1

        body = BlockScalarReader._fold(body_lines) if folded else "\n".join(body_lines)
        if chomping is Chomping.STRIP or not body_lines and chomping is Chomping.CLIP:
            return body
        if chomping is Chomping.CLIP:
            return body + "\n"
        return body + "\n" * trailing
