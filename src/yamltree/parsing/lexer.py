#!/usr/bin/env python3
"""
YAMLTREE LEXER - Line Scanner
-----------------------------
Decomposes raw text into a flat, ordered list of LineRecord models.
Each non-blank, non-comment line yields one record (or several for
`- - value` lines), carrying its indent, key, raw value, tag and the
structural flags the tree builder needs.

Block scalars and inline flow collections are handed to their own
sub-parsers, which may consume more than one physical line.
"""

import logging
from typing import List, Optional, Tuple

from yamltree.core.errors import AnchorError, DelimiterError, IndentError, TagError
from yamltree.core.models import TAG_NAMES, LineRecord, ScanResult, ValueType
from yamltree.parsing.block import BlockScalarReader
from yamltree.parsing.flow import FlowParser

logger = logging.getLogger("yamltree.lexer")

# Characters that open a value rather than a key after an array marker
VALUE_STARTS = ("{", "[", "&", "*", "|", ">", "!!")


def clean_artifacts(text: str) -> str:
    """
    Removes invisible UTF-8 BOM markers and standardizes line endings.
    """
    # Remove Byte Order Mark if present
    text = text.lstrip('\ufeff')
    # Standardize CRLF / CR to LF
    return text.replace('\r\n', '\n').replace('\r', '\n')


class LineLexer:
    """
    Scans one document segment at a time out of a shared source buffer.
    The same lexer is reused for every segment of a multi-document input,
    so line numbers and offsets are always absolute.
    """

    def __init__(self, source: str):
        self.source = source
        self.length = len(source)
        self.flow = FlowParser(source)
        self.blocks = BlockScalarReader(source)
        self.root_indent: Optional[int] = None

    # -- low level helpers -----------------------------------------------

    def _line_end(self, pos: int) -> int:
        end = self.source.find("\n", pos)
        return self.length if end == -1 else end

    def _skip_spaces(self, i: int, end: int) -> int:
        while i < end and self.source[i] in " \t":
            i += 1
        return i

    def _is_array_marker(self, i: int, end: int) -> bool:
        return self.source[i] == "-" and (i + 1 >= end or self.source[i + 1] in " \t")

    def _is_comment_start(self, i: int, line_start: int) -> bool:
        """A '#' starts a comment at line start or after whitespace."""
        return self.source[i] == "#" and (i == line_start or self.source[i - 1] in " \t")

    @staticmethod
    def _is_document_break(content: str) -> bool:
        if not content.startswith("---"):
            return False
        rest = content[3:]
        stripped = rest.strip()
        return not stripped or (stripped.startswith("#") and rest[0] in " \t")

    def _read_name(self, i: int, end: int) -> Tuple[str, int]:
        """Reads a contiguous non-space run (anchor, alias or tag name)."""
        j = i
        while j < end and self.source[j] not in " \t":
            j += 1
        return self.source[i:j], j

    def _find_key_delimiter(self, i: int, end: int, line_start: int) -> int:
        """
        Locates the ': ' (or trailing ':') that ends a key, ignoring colons
        inside a leading quoted key or inside brackets. Returns -1 if absent.
        """
        j = i
        if i < end and self.source[i] in "\"'":
            close = self.source.find(self.source[i], i + 1, end)
            if close != -1:
                j = close + 1
        depth = 0
        while j < end:
            ch = self.source[j]
            if self._is_comment_start(j, line_start) and j > i:
                return -1
            if ch in "[{":
                depth += 1
            elif ch in "]}":
                depth = max(0, depth - 1)
            elif ch == ":" and depth == 0 and (j + 1 >= end or self.source[j + 1] in " \t"):
                return j
            j += 1
        return -1

    @staticmethod
    def _clean_key(raw_key: str) -> str:
        key = raw_key.strip()
        if len(key) >= 2 and key[0] == key[-1] and key[0] in "\"'":
            return key[1:-1]
        return key

    # -- scanning ------------------------------------------------------------

    def scan(self, offset: int = 0, line_number: int = 1) -> ScanResult:
        """
        Scans from `offset` until the end of input or a '---' separator.
        Returns the records plus the offset/line where scanning stopped.
        """
        self.root_indent = None
        records: List[LineRecord] = []
        pos, line_no = offset, line_number

        while pos < self.length:
            end = self._line_end(pos)
            line = self.source[pos:end]
            content = line.lstrip(" ")
            indent = len(line) - len(content)

            # 1. Blank lines and full-line comments produce no record
            if not content.strip() or content.startswith("#"):
                pos, line_no = end + 1, line_no + 1
                continue

            # 2. Document separator ends this segment
            if self._is_document_break(content):
                logger.debug("Document break at line %d after %d records", line_no, len(records))
                return ScanResult(records, min(end + 1, self.length), line_no + 1, True)

            if content[0] == "\t":
                raise IndentError("Tab characters cannot be used for indentation", line_no, indent + 1)

            # 3. Root indent guard
            if self.root_indent is None:
                self.root_indent = indent
            elif indent < self.root_indent:
                raise IndentError(
                    f"Indent {indent} is less than the root indent {self.root_indent}", line_no, indent + 1
                )

            pos, line_no = self._scan_line(records, pos, pos + indent, end, indent, line_no)

        logger.debug("Scanned %d records up to line %d", len(records), line_no)
        return ScanResult(records, self.length, line_no, False)

    def _scan_line(self, records: List[LineRecord], line_start: int, i: int, end: int,
                   indent: int, line_no: int) -> Tuple[int, int]:
        """Scans one content line; returns the offset and line number to resume from."""
        is_array = False
        entry_column = indent

        # Array markers, possibly repeated: '- - value'
        while i < end and self._is_array_marker(i, end):
            if is_array:
                records.append(LineRecord(indent=entry_column, line_number=line_no, is_array_entry=True))
            is_array = True
            entry_column = i - line_start
            i = self._skip_spaces(i + 1, end)

        if is_array:
            if i >= end or self._is_comment_start(i, line_start):
                records.append(LineRecord(indent=entry_column, line_number=line_no, is_array_entry=True))
                return end + 1, line_no + 1

            if self.source.startswith(VALUE_STARTS, i):
                record = LineRecord(indent=entry_column, line_number=line_no, is_array_entry=True)
                return self._scan_value(records, record, line_start, i, end, line_no)

            colon = self._find_key_delimiter(i, end, line_start)
            if colon == -1:
                record = LineRecord(indent=entry_column, line_number=line_no, is_array_entry=True)
                return self._scan_value(records, record, line_start, i, end, line_no)

            # '- key: value' opens a mapping inside the array entry
            records.append(LineRecord(indent=entry_column, line_number=line_no, is_array_entry=True))
            indent = i - line_start

        else:
            colon = self._find_key_delimiter(i, end, line_start)
            if colon == -1:
                raise DelimiterError("Separator ': ' not found", line_no, i - line_start + 1)

        key = self._clean_key(self.source[i:colon])
        if not key:
            raise DelimiterError("Empty key before ': '", line_no, colon - line_start + 1)

        record = LineRecord(indent=indent, line_number=line_no, key=key)
        return self._scan_value(records, record, line_start, colon + 1, end, line_no)

    def _scan_value(self, records: List[LineRecord], record: LineRecord, line_start: int,
                    i: int, end: int, line_no: int) -> Tuple[int, int]:
        """Classifies the remainder of a line and appends the finished record."""
        tagged = False
        while True:
            i = self._skip_spaces(i, end)
            if i >= end or self._is_comment_start(i, line_start):
                # Nothing but a comment: children follow on deeper lines
                break

            ch = self.source[i]
            column = i - line_start + 1

            if ch == "&" and record.anchor_name is None:
                name, i = self._read_name(i + 1, end)
                if not name:
                    raise AnchorError("Anchor '&' must be followed by a name", line_no, column)
                record.anchor_name = name
                continue

            if self.source.startswith("!!", i):
                name, i = self._read_name(i + 2, end)
                if tagged:
                    raise TagError(f"Duplicate tag '!!{name}'", line_no, column)
                if name not in TAG_NAMES:
                    raise TagError(f"Unsupported tag '!!{name}'", line_no, column)
                record.value_type = TAG_NAMES[name]
                tagged = True
                continue

            if ch == "*":
                name, i = self._read_name(i + 1, end)
                if not name:
                    raise AnchorError("Alias '*' must be followed by a name", line_no, column)
                i = self._skip_spaces(i, end)
                if i < end and not self._is_comment_start(i, line_start):
                    raise DelimiterError(
                        f"Alias '*{name}' cannot be followed by a value", line_no, i - line_start + 1
                    )
                record.alias_name = name
                break

            if ch in "\"'":
                record.raw_value = self._scan_quoted(i, end, line_start, line_no)
                record.value_type = ValueType.STR
                record.is_leaf = True
                break

            if ch in "|>":
                block = self.blocks.read(i, record.indent, line_no, line_start)
                record.raw_value = block.value
                if record.value_type is ValueType.AUTO:
                    record.value_type = ValueType.STR
                record.is_leaf = True
                record.is_text_block = True
                record.is_folded = block.folded
                record.block_chomping = block.chomping
                records.append(record)
                return block.next_offset, block.next_line

            if ch in "{[":
                value, close = self.flow.parse(i)
                tail_end = self._line_end(close + 1)
                tail = self.source[close + 1:tail_end]
                stripped = tail.strip()
                if stripped and not stripped.startswith("#"):
                    raise DelimiterError(
                        f"Unexpected content {stripped[:20]!r} after flow collection",
                        line_no + self.source.count("\n", i, close), None,
                    )
                record.inline_value = value
                record.has_inline_value = True
                record.is_leaf = True
                records.append(record)
                return tail_end + 1, line_no + 1 + self.source.count("\n", i, tail_end)

            record.raw_value = self._scan_plain(i, end)
            record.is_leaf = bool(record.raw_value)
            break

        records.append(record)
        return end + 1, line_no + 1

    def _scan_quoted(self, i: int, end: int, line_start: int, line_no: int) -> str:
        """Raw content between matching quotes; only a comment may follow."""
        quote = self.source[i]
        close = self.source.find(quote, i + 1, end)
        if close == -1:
            raise DelimiterError(f"Closing quote {quote} not found", line_no, i - line_start + 1)
        k = self._skip_spaces(close + 1, end)
        if k < end and not self._is_comment_start(k, line_start):
            raise DelimiterError(
                f"Unexpected character {self.source[k]!r} after quoted value", line_no, k - line_start + 1
            )
        return self.source[i + 1:close]

    def _scan_plain(self, i: int, end: int) -> str:
        """Plain scalar up to a ' #' comment or end of line, trimmed."""
        j = i
        while j < end:
            if self.source[j] == "#" and self.source[j - 1] in " \t":
                break
            j += 1
        return self.source[i:j].strip()
