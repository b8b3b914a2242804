#!/usr/bin/env python3
"""
YAMLTREE NODE
-------------
One node of the parsed tree. A node owns either ordered map children or
ordered array items (never both), or, as a leaf, a resolved scalar value.
Alias nodes own neither: they hold a non-owning reference to their anchor
and delegate every lookup to it, so point-writes on the anchor are visible
through all of its aliases.
"""

from typing import Any, Dict, List, Optional

from yamltree.core.models import Chomping, LineRecord, NodeState, ValueType
from yamltree.core.scalars import convert_value

MERGE_KEY = "<<"


class Node:
    """A parsed mapping, array or leaf."""

    def __init__(self, record: Optional[LineRecord] = None):
        self.parent: Optional["Node"] = None
        self.reference: Optional["Node"] = None
        self.children: Dict[str, "Node"] = {}
        self.items: List["Node"] = []
        self.array = False
        self.index = -1
        self.resolved_value: Any = None

        if record is None:
            # Virtual root of a document segment
            self.key = None
            self.line = 0
            self.indent = -1
            self.tag = ValueType.AUTO
            self.state = NodeState.CONTAINER
            self.is_array_entry = False
            self.is_text_block = False
            self.is_folded = False
            self.chomping = Chomping.CLIP
            self.anchor = None
            self.alias_name = None
            self.raw_value = None
            self.inline_value = None
            self.has_inline_value = False
            return

        self.key = record.key
        self.line = record.line_number
        self.indent = record.indent
        self.tag = record.value_type
        self.state = NodeState.LEAF if record.is_leaf else NodeState.UNDETERMINED
        self.is_array_entry = record.is_array_entry
        self.is_text_block = record.is_text_block
        self.is_folded = record.is_folded
        self.chomping = record.block_chomping
        self.anchor = record.anchor_name
        self.alias_name = record.alias_name
        self.raw_value = record.raw_value
        self.inline_value = record.inline_value
        self.has_inline_value = record.has_inline_value

    def __repr__(self) -> str:
        kind = "array" if self.is_array else "leaf" if self.is_leaf else "map"
        label = self.key if self.key is not None else f"[{self.index}]" if self.index >= 0 else "<root>"
        return f"<Node {label} {kind} line={self.line}>"

    # -- structure -------------------------------------------------------

    @property
    def is_root(self) -> bool:
        return self.parent is None

    @property
    def is_alias(self) -> bool:
        return self.reference is not None

    @property
    def resolved(self) -> "Node":
        """The node whose content this node shows (itself unless an alias)."""
        node = self
        while node.reference is not None:
            node = node.reference
        return node

    @property
    def is_leaf(self) -> bool:
        return self.state is NodeState.LEAF

    @property
    def is_array(self) -> bool:
        return self.array

    @property
    def root(self) -> "Node":
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    @property
    def path(self) -> str:
        """Dotted full key, e.g. 'spec.ports.[0].name'."""
        if self.is_root:
            return ""
        label = f"[{self.index}]" if self.is_array_entry else str(self.key)
        prefix = self.parent.path
        return f"{prefix}.{label}" if prefix else label

    def entries(self) -> Dict[str, "Node"]:
        return self.resolved.children

    def elements(self) -> List["Node"]:
        return self.resolved.items

    # -- values ----------------------------------------------------------

    @property
    def value(self) -> Any:
        """The resolved scalar of a leaf (delegated for aliases)."""
        return self.resolved.resolved_value

    def get_value(self, kind: Any = None) -> Any:
        """
        Returns the leaf value, optionally coerced to a target kind hint
        (str, int, float, bool, Decimal, datetime, date or an Enum class).
        Containers return their generic container view.
        """
        if not self.is_leaf:
            return self.to_python()
        return convert_value(self.value, kind)

    def to_python(self) -> Any:
        """Generic container view of this node: dict, list, set or scalar."""
        target = self.resolved
        if target.is_leaf:
            return target.resolved_value
        if target.array:
            items = [item.to_python() for item in target.items]
            if target.tag is ValueType.ORDERED_MAP:
                ordered: Dict[str, Any] = {}
                for item in items:
                    ordered.update(item or {})
                return ordered
            return items
        mapping = target._build_map()
        if target.tag is ValueType.SET:
            return set(mapping)
        return mapping

    def _build_map(self) -> Dict[str, Any]:
        explicit = {key for key in self.children if key != MERGE_KEY}
        result: Dict[str, Any] = {}
        for key, node in self.children.items():
            if key != MERGE_KEY:
                result[key] = node.to_python()
                continue
            merged = node.to_python()
            sources = merged if isinstance(merged, list) else [merged]
            for source in sources:
                for merged_key, merged_value in (source or {}).items():
                    # Explicit keys win, earlier merge sources win over later ones
                    if merged_key not in explicit and merged_key not in result:
                        result[merged_key] = merged_value
        return result

    def to_map(self) -> Dict[str, Any]:
        """Ordered map view; only valid for map-shaped nodes."""
        target = self.resolved
        if target.array:
            raise TypeError("Node is an array and cannot be converted to a map, use to_list()")
        if target.is_leaf:
            value = target.resolved_value
            if isinstance(value, dict):
                return value
            raise TypeError("Node is a leaf value, use get_value()")
        return target._build_map()

    def to_list(self) -> List[Any]:
        """Ordered list view; only valid for array-shaped nodes."""
        target = self.resolved
        if target.is_leaf and isinstance(target.resolved_value, list):
            return target.resolved_value
        if not target.array:
            raise TypeError("Node is not an array and cannot be converted to a list, use to_map()")
        return [item.to_python() for item in target.items]

    # -- path access -----------------------------------------------------

    def get(self, path: Optional[str]) -> Optional["Node"]:
        """
        Looks up a descendant by '/'-separated path. Array items use '[n]'.
        A leading '/' starts from the document root.
        Example: node.get("spec/ports/[0]/name")
        """
        if path is None or not path.strip():
            return self
        path = path.strip()
        if path.startswith("/"):
            return self.root.get(path[1:])
        if self.is_leaf:
            return None
        head, _, rest = path.partition("/")
        child = self._child(head.strip())
        if child is None:
            return None
        return child.get(rest)

    def _child(self, segment: str) -> Optional["Node"]:
        if self.resolved.array:
            if not (segment.startswith("[") and segment.endswith("]")):
                raise ValueError(f"Node is an array, path segment should look like '[n]', got {segment!r}")
            index = int(segment[1:-1])
            items = self.elements()
            if -len(items) <= index < len(items):
                return items[index]
            return None
        return self.entries().get(segment)

    def get_path_value(self, path: str, kind: Any = None) -> Any:
        node = self.get(path)
        if node is None:
            return None
        return node.get_value(kind)

    def set_path_value(self, path: str, value: Any) -> bool:
        """
        Overrides the value of a leaf. Writes land on the anchor when the
        path names an alias, so every alias of it sees the change.
        Returns False if the path does not name a leaf.
        """
        node = self.get(path)
        if node is None or not node.is_leaf:
            return False
        node.resolved.resolved_value = value
        return True
