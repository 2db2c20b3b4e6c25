from __future__ import annotations

"""Node kinds and attribute vocabulary of the grid model.

The grid lives inside an lxml element tree. Every node is classified by
:func:`node_kind` into a closed set of kinds; the rest of the package only
compares against :class:`NodeKind` members and never probes tags directly.

This module is intentionally free of mutation code so that the helpers can
be used from the walker, the services and the tests alike.
"""

from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from lxml import etree as ET

__all__ = [
    "NodeKind",
    "GRID_TAG",
    "ROW_TAG",
    "CELL_TAG",
    "CONTENT_TAG",
    "PARAGRAPH_TAG",
    "BREAKPOINT_ATTRIBUTES",
    "CELL_ATTRIBUTES",
    "ALLOWED_CHILDREN",
    "node_kind",
    "tag_for",
    "get_attribute",
    "get_numeric_attribute",
    "get_rows",
    "find_ancestor",
    "get_cell_content",
]


class NodeKind(Enum):
    """Discriminant of a node in the document tree."""

    GRID = "grid"
    ROW = "row"
    CELL = "cell"
    CONTENT = "content"
    OTHER = "other"


GRID_TAG = "grid"
ROW_TAG = "gridRow"
CELL_TAG = "gridCell"
CONTENT_TAG = "gridCellContent"
PARAGRAPH_TAG = "paragraph"

_KIND_BY_TAG: Dict[str, NodeKind] = {
    GRID_TAG: NodeKind.GRID,
    ROW_TAG: NodeKind.ROW,
    CELL_TAG: NodeKind.CELL,
    CONTENT_TAG: NodeKind.CONTENT,
}

_TAG_BY_KIND: Dict[NodeKind, str] = {kind: tag for tag, kind in _KIND_BY_TAG.items()}

# Responsive width tiers, smallest first.
BREAKPOINT_ATTRIBUTES = ("col", "colSM", "colMD", "colLG", "colXL", "colXXL")

CELL_ATTRIBUTES: FrozenSet[str] = frozenset(("id", "colspan", "rowspan") + BREAKPOINT_ATTRIBUTES)

# Which child kinds each structural kind accepts. OTHER parents accept
# anything except rows, cells and content containers.
ALLOWED_CHILDREN: Dict[NodeKind, FrozenSet[NodeKind]] = {
    NodeKind.GRID: frozenset({NodeKind.ROW, NodeKind.OTHER}),
    NodeKind.ROW: frozenset({NodeKind.CELL}),
    NodeKind.CELL: frozenset({NodeKind.CONTENT}),
    NodeKind.CONTENT: frozenset({NodeKind.OTHER}),
    NodeKind.OTHER: frozenset({NodeKind.GRID, NodeKind.OTHER}),
}


def node_kind(node: Any) -> NodeKind:
    """Return the kind of *node*.

    Comments, processing instructions and unknown elements are all
    ``NodeKind.OTHER``.
    """
    tag = getattr(node, "tag", None)
    if not isinstance(tag, str):
        return NodeKind.OTHER
    return _KIND_BY_TAG.get(tag, NodeKind.OTHER)


def tag_for(kind: NodeKind) -> str:
    """Return the element tag used for a structural *kind*."""
    try:
        return _TAG_BY_KIND[kind]
    except KeyError:
        raise ValueError(f"No element tag for node kind {kind!r}") from None


def get_attribute(node: ET._Element, key: str) -> Optional[str]:
    """Return attribute *key* of *node*, or None when it is not stored."""
    return node.get(key)


def get_numeric_attribute(node: ET._Element, key: str, default: int = 1) -> int:
    """Return an integer attribute, falling back to *default* when unset."""
    value = node.get(key)
    if value is None or value == "":
        return default
    return int(value)


def get_rows(grid: ET._Element) -> List[ET._Element]:
    """Return the row children of *grid*, skipping any other child."""
    return [child for child in grid if node_kind(child) is NodeKind.ROW]


def find_ancestor(node: Optional[ET._Element], kind: NodeKind) -> Optional[ET._Element]:
    """Return *node* or its closest ancestor of the given *kind*."""
    while node is not None:
        if node_kind(node) is kind:
            return node
        node = node.getparent()
    return None


def get_cell_content(cell: ET._Element) -> Optional[ET._Element]:
    """Return the content container owned by *cell*."""
    for child in cell:
        if node_kind(child) is NodeKind.CONTENT:
            return child
    return None
