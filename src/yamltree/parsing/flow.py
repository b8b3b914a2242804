#!/usr/bin/env python3
"""
YAMLTREE FLOW PARSER - Inline Collections
-----------------------------------------
A self-contained recursive-descent parser for bracketed values such as
`{name: app, ports: [80, 443]}`. It works purely on character offsets of the
source buffer and knows nothing about lines or indentation, so a flow value
may span several physical lines.

Relaxed rules compared to JSON:
  * keys may be double-quoted, single-quoted or bare (up to ':', ',' or '}')
  * `{a, b}` is the same as `{a: null, b: null}`
  * bare tokens are classified as null / bool / int / float / str by content
"""

from typing import Any, Dict, List, Tuple

from yamltree.core.errors import DelimiterError
from yamltree.core.scalars import resolve_plain

ESCAPES = {
    '"': '"',
    "'": "'",
    "\\": "\\",
    "/": "/",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
}


class FlowParser:
    """
    Parses one flow collection starting at a '{' or '[' offset.
    Returns the value together with the offset of the closing bracket.
    """

    def __init__(self, source: str):
        self.source = source
        self.length = len(source)

    def parse(self, start: int) -> Tuple[Any, int]:
        """Entry point: `start` must point at '{' or '['."""
        opener = self.source[start] if start < self.length else ""
        if opener == "{":
            return self._parse_object(start)
        if opener == "[":
            return self._parse_array(start)
        raise self._error(f"Flow collection must start with '{{' or '[', found {opener!r}", start)

    # -- helpers ---------------------------------------------------------

    def _error(self, message: str, offset: int) -> DelimiterError:
        offset = min(offset, self.length)
        line = self.source.count("\n", 0, offset) + 1
        column = offset - (self.source.rfind("\n", 0, offset) + 1) + 1
        return DelimiterError(message, line, column)

    def _skip_whitespace(self, i: int) -> int:
        while i < self.length and self.source[i] in " \t\r\n":
            i += 1
        return i

    def _parse_string(self, start: int) -> Tuple[str, int]:
        """Decodes a quoted string; returns (text, offset of the closing quote)."""
        quote = self.source[start]
        chunks: List[str] = []
        i = start + 1
        segment_start = i
        while i < self.length:
            ch = self.source[i]
            if ch == quote:
                chunks.append(self.source[segment_start:i])
                return "".join(chunks), i
            if ch == "\\" and i + 1 < self.length:
                chunks.append(self.source[segment_start:i])
                escaped = self.source[i + 1]
                if escaped == "u":
                    digits = self.source[i + 2:i + 6]
                    try:
                        chunks.append(chr(int(digits, 16)))
                    except ValueError:
                        raise self._error(f"Invalid unicode escape '\\u{digits}'", i)
                    i += 6
                else:
                    # Unknown escapes pass the escaped character through
                    chunks.append(ESCAPES.get(escaped, escaped))
                    i += 2
                segment_start = i
                continue
            i += 1
        raise self._error(f"Closing quote {quote} not found", start)

    def _parse_bare(self, start: int, terminators: str) -> Tuple[Any, int]:
        """Reads a bare token up to a terminator; returns (value, offset of its last char)."""
        i = start
        while i < self.length and self.source[i] not in terminators:
            i += 1
        token = self.source[start:i].strip()
        if not token:
            raise self._error("Empty flow value", start)
        return resolve_plain(token), i - 1

    def _parse_value(self, i: int, terminators: str) -> Tuple[Any, int]:
        ch = self.source[i]
        if ch == "{":
            return self._parse_object(i)
        if ch == "[":
            return self._parse_array(i)
        if ch in "\"'":
            return self._parse_string(i)
        return self._parse_bare(i, terminators)

    # -- collections -----------------------------------------------------

    def _parse_array(self, start: int) -> Tuple[List[Any], int]:
        items: List[Any] = []
        i = start + 1
        while True:
            i = self._skip_whitespace(i)
            if i >= self.length:
                raise self._error("Closing symbol ']' not found", start)
            if self.source[i] == "]":
                if items:
                    raise self._error("Trailing ',' before ']' is not allowed", i)
                return items, i

            value, end = self._parse_value(i, ",]")
            items.append(value)

            i = self._skip_whitespace(end + 1)
            if i >= self.length:
                raise self._error("Closing symbol ']' not found", start)
            ch = self.source[i]
            if ch == "]":
                return items, i
            if ch != ",":
                raise self._error(f"Unexpected character {ch!r}, expected ',' or ']'", i)
            i += 1

    def _parse_key(self, i: int) -> Tuple[str, int]:
        """Returns (key, offset of the first character after the key)."""
        ch = self.source[i]
        if ch in "\"'":
            key, end = self._parse_string(i)
            return key, end + 1
        j = i
        while j < self.length and self.source[j] not in ":,}":
            j += 1
        key = self.source[i:j].strip()
        if not key:
            raise self._error("Empty key in flow mapping", i)
        return key, j

    def _parse_object(self, start: int) -> Tuple[Dict[str, Any], int]:
        result: Dict[str, Any] = {}
        i = start + 1
        while True:
            i = self._skip_whitespace(i)
            if i >= self.length:
                raise self._error("Closing symbol '}' not found", start)
            if self.source[i] == "}":
                if result:
                    raise self._error("Trailing ',' before '}' is not allowed", i)
                return result, i

            key, i = self._parse_key(i)
            i = self._skip_whitespace(i)
            if i >= self.length:
                raise self._error("Closing symbol '}' not found", start)

            ch = self.source[i]
            if ch == ":":
                i = self._skip_whitespace(i + 1)
                if i >= self.length:
                    raise self._error("Closing symbol '}' not found", start)
                if self.source[i] in ",}":
                    result[key] = None
                    end = i - 1
                else:
                    result[key], end = self._parse_value(i, ",}")
                i = self._skip_whitespace(end + 1)
                if i >= self.length:
                    raise self._error("Closing symbol '}' not found", start)
                ch = self.source[i]
            else:
                result[key] = None

            if ch == "}":
                return result, i
            if ch != ",":
                raise self._error(f"Unexpected character {ch!r}, expected ',' or '}}'", i)
            i += 1


def _stringify_scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value != value:
            return ".nan"
        if value in (float("inf"), float("-inf")):
            return ".inf" if value > 0 else "-.inf"
        return repr(value)
    if isinstance(value, int):
        return str(value)
    text = str(value)
    escaped = (text.replace("\\", "\\\\").replace('"', '\\"')
               .replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t"))
    return f'"{escaped}"'


def stringify(value: Any) -> str:
    """Serializes nested dicts/lists back into flow syntax the parser accepts."""
    if isinstance(value, dict):
        return "{" + ", ".join(f"{_stringify_scalar(str(k))}: {stringify(v)}" for k, v in value.items()) + "}"
    if isinstance(value, (set, frozenset)):
        # Written as a key-only mapping, which reads back as {key: null}
        return "{" + ", ".join(_stringify_scalar(str(k)) for k in sorted(value, key=str)) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(stringify(item) for item in value) + "]"
    return _stringify_scalar(value)
