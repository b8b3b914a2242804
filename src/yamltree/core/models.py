#!/usr/bin/env python3
"""
YAMLTREE CORE MODELS
--------------------
Defines the fundamental data structures shared by the scanner and the
tree builder. These models represent the lowest level of document
abstraction: one record per logical line.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class ValueType(Enum):
    """Explicit (or inferred) type of a scalar or container."""
    AUTO = "auto"
    STR = "str"
    FLOAT = "float"
    INT = "int"
    BOOL = "bool"
    BINARY = "binary"
    TIMESTAMP = "timestamp"
    SET = "set"
    ORDERED_MAP = "omap"
    SEQ = "seq"
    MAP = "map"

    @property
    def is_container(self) -> bool:
        return self in CONTAINER_TYPES


CONTAINER_TYPES = frozenset({ValueType.SET, ValueType.ORDERED_MAP, ValueType.SEQ, ValueType.MAP})

# Recognized `!!tag` names. `pairs` shares the ordered-map tag.
TAG_NAMES = {
    "str": ValueType.STR,
    "float": ValueType.FLOAT,
    "int": ValueType.INT,
    "bool": ValueType.BOOL,
    "binary": ValueType.BINARY,
    "timestamp": ValueType.TIMESTAMP,
    "set": ValueType.SET,
    "omap": ValueType.ORDERED_MAP,
    "pairs": ValueType.ORDERED_MAP,
    "seq": ValueType.SEQ,
    "map": ValueType.MAP,
}


class Chomping(Enum):
    """Trailing line terminator policy of a block scalar."""
    CLIP = ""
    KEEP = "+"
    STRIP = "-"


class NodeState(Enum):
    """
    Leafness of a node while the tree is being built.
    UNDETERMINED only exists during the single construction pass.
    """
    UNDETERMINED = 0
    LEAF = 1
    CONTAINER = 2


@dataclass
class LineRecord:
    """
    The atomic unit of a document.

    A LineRecord represents a single logical line (or one synthetic array
    level of a `- - value` line) extracted from the raw text by the lexer.
    """
    indent: int                            # Column of the record's first token
    line_number: int                       # 1-based line in the whole input
    key: Optional[str] = None              # Mapping key, quotes removed
    raw_value: Optional[str] = None        # Scalar text as written (plain, quoted or block)
    value_type: ValueType = ValueType.AUTO
    is_array_entry: bool = False           # True if the record was introduced by '-'
    is_leaf: bool = False                  # A value follows the key/marker on this line
    is_text_block: bool = False            # Value came from a '|' or '>' block scalar
    is_folded: bool = False                # Block scalar used '>'
    block_chomping: Chomping = Chomping.CLIP
    anchor_name: Optional[str] = None      # '&name' declared on this line
    alias_name: Optional[str] = None       # '*name' referenced on this line
    inline_value: Optional[Any] = None     # Fully parsed '{...}' / '[...]' value
    has_inline_value: bool = False         # inline_value may legitimately be empty


@dataclass
class ScanResult:
    """Output of one lexer pass over a single document segment."""
    records: List[LineRecord] = field(default_factory=list)
    end_offset: int = 0                    # Where scanning stopped
    end_line: int = 1                      # Line number at end_offset
    document_break: bool = False           # Stopped on a '---' separator
