#!/usr/bin/env python3
"""
YAMLTREE STRUCTURER - Tree Builder
----------------------------------
Turns the flat LineRecord list of one document segment into a Node tree in
a single pass, using nothing but indent comparisons against the previous
record:

  * deeper indent        -> child of the previous record
  * same indent          -> sibling of the previous record (a '-' entry under
                            a plain key at the same column is that key's child)
  * shallower indent     -> sibling of the nearest ancestor at exactly that
                            indent; no exact match is fatal

Anchors are collected in declaration order and aliases are bound to the
latest earlier anchor of the same name as soon as they are seen.
"""

import logging
from typing import Any, List

from yamltree.core.errors import AnchorError, IndentError, ParseError, TagError
from yamltree.core.models import LineRecord, NodeState, ValueType
from yamltree.core.node import MERGE_KEY, Node
from yamltree.core.scalars import coerce_tagged
from yamltree.parsing.context import ParseContext

logger = logging.getLogger("yamltree.structurer")

EMPTY_CONTAINERS = {
    ValueType.SEQ: list,
    ValueType.MAP: dict,
    ValueType.ORDERED_MAP: dict,
    ValueType.SET: set,
}


class TreeStructurer:
    """Builds and finalizes the tree of one ParseContext."""

    def build(self, context: ParseContext) -> Node:
        root = Node()
        context.root = root
        prev = None

        for record in context.records:
            node = Node(record)
            if prev is None:
                self._attach(node, root)
            elif record.indent > prev.indent:
                self._attach(node, prev)
            elif record.indent == prev.indent:
                if record.is_array_entry and not prev.is_array_entry:
                    # 'key:' followed by '- item' at the same column
                    self._attach(node, prev)
                else:
                    self._seal(prev)
                    sibling = self._compact_owner(prev, record)
                    self._attach(node, sibling.parent)
            else:
                self._seal(prev)
                ancestor = self._find_ancestor(prev, record)
                self._attach(node, ancestor.parent)

            context.nodes.append(node)
            if record.anchor_name:
                context.anchors.append(node)
            if record.alias_name:
                self._bind_alias(node, context.anchors)
            prev = node

        self._finalize(context)
        logger.debug(
            "Built segment %d: %d nodes, %d anchors", context.index, len(context.nodes), len(context.anchors)
        )
        return root

    # -- placement -------------------------------------------------------

    @staticmethod
    def _seal(node: Node) -> None:
        """A node that got no deeper children is a (possibly empty) leaf."""
        if node.state is NodeState.UNDETERMINED:
            node.state = NodeState.LEAF

    @staticmethod
    def _compact_owner(node: Node, record: LineRecord) -> Node:
        """
        Climbs out of a compact sequence: a plain key at the column of a
        '- item' that sits at its own parent key's column belongs next to
        that parent key, not inside the sequence.
        """
        if record.is_array_entry:
            return node
        while (node.is_array_entry and node.parent is not None
               and node.parent.parent is not None and node.parent.indent == node.indent):
            node = node.parent
        return node

    def _find_ancestor(self, prev: Node, record: LineRecord) -> Node:
        node = prev.parent
        while node is not None and node.parent is not None:
            if node.indent == record.indent:
                return self._compact_owner(node, record)
            if node.indent < record.indent:
                break
            node = node.parent
        raise IndentError(
            f"Indent {record.indent} does not match any enclosing level", record.line_number, record.indent + 1
        )

    @staticmethod
    def _attach(node: Node, parent: Node) -> None:
        if parent.state is NodeState.LEAF:
            raise IndentError(
                f"Line is indented under '{parent.key if parent.key is not None else '-'}' "
                f"(line {parent.line}) which already holds a value",
                node.line, node.indent + 1,
            )
        if parent.is_alias:
            raise IndentError(
                f"Alias '*{parent.alias_name}' (line {parent.line}) cannot have children", node.line, node.indent + 1
            )
        parent.state = NodeState.CONTAINER
        node.parent = parent

        if node.is_array_entry:
            if parent.children:
                raise IndentError("Array entry found inside a mapping", node.line, node.indent + 1)
            parent.array = True
            node.index = len(parent.items)
            parent.items.append(node)
            return

        if parent.array:
            raise IndentError(f"Mapping key '{node.key}' found inside an array", node.line, node.indent + 1)
        if node.key in parent.children:
            logger.warning("Duplicate key '%s' at line %d replaces line %d",
                           node.key, node.line, parent.children[node.key].line)
        parent.children[node.key] = node

    # -- anchors ---------------------------------------------------------

    @staticmethod
    def _bind_alias(node: Node, anchors: List[Node]) -> None:
        name = node.alias_name
        for anchor in reversed(anchors):
            if anchor.anchor != name or anchor.line >= node.line:
                continue
            parent = node.parent
            while parent is not None:
                if parent is anchor:
                    raise AnchorError(f"Alias '*{name}' refers to its own enclosing anchor", node.line)
                parent = parent.parent
            node.reference = anchor
            node.state = anchor.resolved.state
            node.array = anchor.resolved.array
            logger.debug("Bound alias '*%s' at line %d to line %d", name, node.line, anchor.line)
            return
        raise AnchorError(f"Alias '*{name}' used before any matching anchor '&{name}'", node.line)

    # -- finalization ----------------------------------------------------

    def _finalize(self, context: ParseContext) -> None:
        for node in context.nodes:
            self._seal(node)

        for node in context.nodes:
            if node.is_alias:
                target = node.resolved
                node.state, node.array = target.state, target.array
            elif node.is_leaf:
                node.resolved_value = self._leaf_value(node)
            else:
                self._check_container_tag(node)

        for node in context.nodes:
            if node.key == MERGE_KEY and not node.is_array_entry:
                self._check_merge(node)

    @staticmethod
    def _leaf_value(node: Node) -> Any:
        tag = node.tag
        if node.has_inline_value:
            value = node.inline_value
            if tag is ValueType.AUTO:
                return value
            if tag is ValueType.SEQ and isinstance(value, list):
                return value
            if tag in (ValueType.MAP, ValueType.ORDERED_MAP) and isinstance(value, dict):
                return value
            if tag is ValueType.SET and isinstance(value, dict):
                return set(value)
            raise TagError(f"Tag '!!{tag.value}' does not match the inline value", node.line)

        if tag.is_container and node.raw_value is None:
            return EMPTY_CONTAINERS[tag]()
        return coerce_tagged(node.raw_value, tag, node.line)

    @staticmethod
    def _check_container_tag(node: Node) -> None:
        tag = node.tag
        if tag is ValueType.AUTO:
            return
        if not tag.is_container:
            raise TagError(f"Tag '!!{tag.value}' cannot be applied to a container", node.line)
        if tag is ValueType.SEQ and not node.array:
            raise TagError("Tag '!!seq' requires an array", node.line)
        if tag in (ValueType.MAP, ValueType.SET) and node.array:
            raise TagError(f"Tag '!!{tag.value}' requires a mapping", node.line)
        if tag is ValueType.ORDERED_MAP and node.array:
            for item in node.items:
                target = item.resolved
                if target.is_leaf or target.array:
                    raise TagError("Tag '!!omap' requires every array entry to be a mapping", item.line)

    @staticmethod
    def _check_merge(node: Node) -> None:
        target = node.resolved
        if target.tag is ValueType.SET:
            raise ParseError(f"Merge key '{MERGE_KEY}' cannot refer to a '!!set'", node.line)
        if target.is_leaf:
            if isinstance(target.resolved_value, dict):
                return
        elif not target.array:
            return
        elif all(item.resolved.tag is not ValueType.SET
                 and (not item.resolved.is_leaf and not item.resolved.array
                      or isinstance(item.resolved.resolved_value, dict))
                 for item in target.items):
            return
        raise ParseError(f"Merge key '{MERGE_KEY}' must refer to a mapping or a list of mappings", node.line)
