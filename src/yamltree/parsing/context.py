#!/usr/bin/env python3
"""
YAMLTREE PARSE CONTEXT
----------------------
A state-management object for one document segment moving through the
pipeline. The lexer fills in the records, the structurer adds the tree.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from yamltree.core.models import LineRecord
from yamltree.core.node import Node


@dataclass
class ParseContext:
    """
    Maintains the state of a single document segment.

    This object is initialized by the ParsingPipeline and enriched by
    the LineLexer and TreeStructurer sequentially.
    """
    source: str                            # Whole cleaned input, shared by all segments
    index: int = 0                         # Position of the segment among '---' splits
    start_line: int = 1                    # First line of the segment
    end_line: int = 1                      # Line the lexer stopped at
    records: List[LineRecord] = field(default_factory=list)
    root: Optional[Node] = None            # Virtual root built by the structurer
    nodes: List[Node] = field(default_factory=list)    # Every node in record order
    anchors: List[Node] = field(default_factory=list)  # Anchored nodes in declaration order
