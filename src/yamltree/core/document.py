#!/usr/bin/env python3
"""
YAMLTREE DOCUMENT
-----------------
Public entry points: `parse`, `read` and `read_path`, plus the Document
that owns one root Node per '---' segment.

Example:
    doc = parse("a: {x: 1, y: [1, 2, 3]}")
    doc.to_map()        # {'a': {'x': 1, 'y': [1, 2, 3]}}
"""

import io
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

from yamltree.core.node import Node
from yamltree.parsing.pipeline import ParsingPipeline


class Document:
    """Owns the parsed roots. Immutable apart from leaf point-writes."""

    def __init__(self, roots: List[Node]):
        self.roots = roots or [Node()]

    @property
    def root(self) -> Node:
        return self.roots[0]

    @property
    def multiple(self) -> bool:
        return len(self.roots) > 1

    def __len__(self) -> int:
        return len(self.roots)

    def __iter__(self):
        return iter(self.roots)

    def get(self, path: str) -> Any:
        return self.root.get(path)

    def to_map(self) -> Dict[str, Any]:
        """Ordered map view of the first root."""
        return self.root.to_map()

    def to_list(self) -> List[Any]:
        """Ordered list view of the first root; only valid when it is array-shaped."""
        return self.root.to_list()

    def to_maps(self) -> List[Any]:
        """One container view per document segment."""
        return [root.to_python() for root in self.roots]

    def write_to(self, writer, **options) -> None:
        """Serializes every root to a text writer. See YamlExporter for options."""
        from yamltree.parsing.exporter import YamlExporter
        YamlExporter(**options).write_to(self, writer)

    def to_yaml(self, **options) -> str:
        buffer = io.StringIO()
        self.write_to(buffer, **options)
        return buffer.getvalue()


def parse(text: Union[str, bytes, bytearray, Sequence[str]]) -> Document:
    """
    Parses a complete in-memory buffer.
    Raises a ParseError subclass (with line number) on malformed input.
    """
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("utf-8-sig")
    elif not isinstance(text, str):
        text = "".join(text)
    contexts = ParsingPipeline().run(text)
    return Document([context.root for context in contexts])


def read(stream) -> Document:
    """Drains a text or binary stream into memory, then parses it."""
    return parse(stream.read())


def read_path(path: Union[str, Path]) -> Document:
    with open(path, "r", encoding="utf-8-sig") as f:
        return read(f)
