#!/usr/bin/env python3
"""
YAMLTREE EXPORTER - Block-Style Writer
--------------------------------------
The inverse walk of the tree builder: re-emits indentation, array markers,
quoted string leaves and block-scalar markers. Comments and anchor
placement are not reconstructed; aliases are written expanded.
"""

import io
import os
from datetime import date, datetime
from typing import Any, List, Union

from yamltree.core.document import Document
from yamltree.core.models import ValueType
from yamltree.core.node import Node
from yamltree.parsing.flow import stringify

# Leading characters that would be read as syntax in a plain key
KEY_SPECIALS = "-?:,[]{}#&*!|>'\"%@`"
TAGGED_CONTAINERS = {ValueType.SET: "!!set", ValueType.ORDERED_MAP: "!!omap"}


class YamlExporter:
    """
    The Reconstructor: converts Documents (or single Nodes) back to text.
    """

    def __init__(self, indent: int = 2, line_terminator: str = os.linesep):
        if indent < 1:
            raise ValueError("indent must be at least 1")
        self.indent = indent
        self.line_terminator = line_terminator

    def export(self, target: Union[Document, Node]) -> str:
        stream = io.StringIO()
        self.write_to(target, stream)
        return stream.getvalue()

    def write_to(self, target: Union[Document, Node], writer) -> None:
        """Writes every root; multiple roots are separated by '---'."""
        roots = target.roots if isinstance(target, Document) else [target]
        for i, root in enumerate(roots):
            lines: List[str] = []
            if i > 0:
                lines.append("---")
            resolved = root.resolved
            if resolved.is_leaf:
                self._emit_leaf("-", resolved, 0, lines)
            else:
                self._emit_body(resolved, 0, lines)
            for line in lines:
                writer.write(line + self.line_terminator)

    # -- containers ------------------------------------------------------

    def _emit_body(self, node: Node, level: int, lines: List[str]) -> None:
        pad = " " * (self.indent * level)
        if node.array:
            for item in node.items:
                self._emit_entry(pad + "-", item, level, lines)
        else:
            for key, child in node.children.items():
                self._emit_entry(pad + self._format_key(key) + ":", child, level, lines)

    def _emit_entry(self, prefix: str, child: Node, level: int, lines: List[str]) -> None:
        target = child.resolved
        if target.is_leaf:
            self._emit_leaf(prefix, target, level, lines)
            return
        tag = TAGGED_CONTAINERS.get(target.tag)
        lines.append(f"{prefix} {tag}" if tag else prefix)
        self._emit_body(target, level + 1, lines)

    # -- leaves ----------------------------------------------------------

    def _emit_leaf(self, prefix: str, node: Node, level: int, lines: List[str]) -> None:
        value = node.resolved_value
        if isinstance(value, (dict, list, set, frozenset)):
            tag = "!!set" if isinstance(value, (set, frozenset)) else TAGGED_CONTAINERS.get(node.tag)
            lines.append(f"{prefix} {tag + ' ' if tag else ''}{stringify(value)}")
            return
        if isinstance(value, (datetime, date)):
            lines.append(f"{prefix} !!timestamp {value.isoformat()}")
            return
        if value is None or isinstance(value, (bool, int, float)):
            lines.append(f"{prefix} {stringify(value)}")
            return

        text = str(value)
        tag = "!!binary " if node.tag is ValueType.BINARY else ""
        if "\n" in text or ('"' in text and "'" in text):
            self._emit_block(f"{prefix} {tag}", text, level, lines)
        elif "'" in text:
            lines.append(f'{prefix} {tag}"{text}"')
        else:
            lines.append(f"{prefix} {tag}'{text}'")

    def _emit_block(self, head: str, text: str, level: int, lines: List[str]) -> None:
        """Literal block whose chomping indicator reproduces the trailing newlines."""
        body = text.rstrip("\n")
        trailing = len(text) - len(body)
        if trailing == 0:
            indicator, blanks = "|-", 0
        elif trailing == 1 and body:
            indicator, blanks = "|", 0
        else:
            indicator, blanks = "|+", trailing - 1 if body else trailing

        lines.append(head + indicator)
        pad = " " * (self.indent * (level + 1))
        if body:
            lines.extend(pad + line if line else "" for line in body.split("\n"))
        lines.extend("" for _ in range(blanks))

    @staticmethod
    def _format_key(key: Any) -> str:
        text = str(key)
        needs_quotes = (
            not text
            or text != text.strip()
            or text[0] in KEY_SPECIALS and text != "<<"
            or ": " in text or " #" in text or text.endswith(":")
            or "\n" in text
        )
        if not needs_quotes:
            return text
        return f"'{text}'" if '"' in text else f'"{text}"'
