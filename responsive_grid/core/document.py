from __future__ import annotations

"""Host document adapter for the grid engine.

The document is a plain lxml element tree. All mutations go through a
:class:`GridWriter` obtained from :meth:`GridDocument.change`, which is the
explicit "who may mutate the document right now" object threaded through the
structural algorithms.

Design principles
-----------------
- One outermost change scope is one atomic batch. Nested ``change()`` calls
  reuse the active writer.
- Every primitive records its inverse. If the outermost scope exits with an
  exception, the recorded operations are reverted in reverse order and the
  exception propagates; element identity is preserved so references held by
  callers stay valid.
- Reading (attributes, positions, walking) never needs a scope.

Examples
--------
>>> document = GridDocument()
>>> with document.change() as writer:
...     grid = writer.insert_element(NodeKind.GRID, document.root)
"""

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, TypeVar, Union

from lxml import etree as ET

from responsive_grid.core.exceptions import GridSchemaError
from responsive_grid.core.models import ALLOWED_CHILDREN, NodeKind, find_ancestor, node_kind, tag_for

__all__ = ["Position", "Range", "Selection", "GridWriter", "GridDocument"]

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

Offset = Union[int, str]


def _resolve_offset(parent: ET._Element, offset: Offset) -> int:
    if offset == "end":
        return len(parent)
    if not isinstance(offset, int):
        raise ValueError(f"Invalid offset {offset!r}; expected an index or 'end'")
    return offset


@dataclass(frozen=True)
class Position:
    """A location between two children of *parent*.

    Attributes
    ----------
    parent
        Element that contains the position.
    offset
        Index of the child placed right after the position.
    """

    parent: ET._Element
    offset: int

    @property
    def node_after(self) -> Optional[ET._Element]:
        if 0 <= self.offset < len(self.parent):
            return self.parent[self.offset]
        return None

    @property
    def path(self) -> Tuple[int, ...]:
        """Child indexes from the tree root down to this position."""
        indexes = [self.offset]
        node = self.parent
        parent = node.getparent()
        while parent is not None:
            indexes.append(parent.index(node))
            node = parent
            parent = node.getparent()
        return tuple(reversed(indexes))

    def is_before(self, other: "Position") -> bool:
        return self.path < other.path

    def find_ancestor(self, kind: NodeKind) -> Optional[ET._Element]:
        return find_ancestor(self.parent, kind)


@dataclass(frozen=True)
class Range:
    """A flat range between two positions."""

    start: Position
    end: Position

    @property
    def is_collapsed(self) -> bool:
        return self.start.parent is self.end.parent and self.start.offset == self.end.offset

    def get_contained_element(self) -> Optional[ET._Element]:
        """Return the single element spanned by this range, if any."""
        if self.start.parent is not self.end.parent:
            return None
        if self.end.offset - self.start.offset != 1:
            return None
        return self.start.node_after

    def get_items(self) -> List[ET._Element]:
        """Return the sibling nodes between start and end."""
        if self.start.parent is not self.end.parent:
            raise ValueError("Only flat ranges (same parent) are supported")
        return list(self.start.parent)[self.start.offset:self.end.offset]


class Selection:
    """An ordered collection of ranges, as reported by the editing surface."""

    def __init__(self, ranges: Optional[List[Range]] = None) -> None:
        self._ranges: List[Range] = list(ranges or [])

    @classmethod
    def on(cls, *elements: ET._Element) -> "Selection":
        """Select each element from the outside."""
        ranges = []
        for element in elements:
            parent = element.getparent()
            index = parent.index(element)
            ranges.append(Range(Position(parent, index), Position(parent, index + 1)))
        return cls(ranges)

    @classmethod
    def at(cls, *positions: Position) -> "Selection":
        """Create collapsed ranges at each position."""
        return cls([Range(position, position) for position in positions])

    def get_ranges(self) -> Iterator[Range]:
        return iter(self._ranges)

    def get_first_position(self) -> Optional[Position]:
        if not self._ranges:
            return None
        return min((r.start for r in self._ranges), key=lambda p: p.path)

    def __len__(self) -> int:
        return len(self._ranges)


class GridWriter:
    """Mutation scope over a :class:`GridDocument`.

    Instances are created by :meth:`GridDocument.change` only. Each mutating
    method records how to undo itself so the owning document can roll the
    whole batch back.
    """

    def __init__(self, document: "GridDocument") -> None:
        self._document = document
        self._operations: List[Callable[[], None]] = []

    @property
    def document(self) -> "GridDocument":
        return self._document

    @property
    def operation_count(self) -> int:
        return len(self._operations)

    # ------------------------------------------------------------- Creation

    def create_element(self, kind: Union[NodeKind, str], attributes: Optional[Dict[str, Any]] = None) -> ET._Element:
        """Create a detached element of the given kind (or raw tag)."""
        tag = tag_for(kind) if isinstance(kind, NodeKind) else kind
        element = ET.Element(tag)
        for key, value in (attributes or {}).items():
            if value is not None:
                element.set(key, str(value))
        return element

    def clone_element(self, node: ET._Element) -> ET._Element:
        """Return a detached deep copy of *node* including its content."""
        clone = copy.deepcopy(node)
        clone.tail = None
        return clone

    # ------------------------------------------------------------ Positions

    def create_position_at(self, parent: ET._Element, offset: Offset = 0) -> Position:
        return Position(parent, _resolve_offset(parent, offset))

    def create_position_before(self, node: ET._Element) -> Position:
        parent = node.getparent()
        return Position(parent, parent.index(node))

    def create_position_after(self, node: ET._Element) -> Position:
        parent = node.getparent()
        return Position(parent, parent.index(node) + 1)

    def create_range_on(self, node: ET._Element) -> Range:
        return Range(self.create_position_before(node), self.create_position_after(node))

    # ------------------------------------------------------------- Mutation

    def insert(self, node: ET._Element, target: Union[Position, ET._Element], offset: Offset = 0) -> None:
        """Insert *node* at a position, or into *target* at *offset*.

        An attached node is moved; the target position is interpreted in the
        tree as it was before the node was detached.
        """
        if isinstance(target, Position):
            parent, index = target.parent, target.offset
        else:
            parent, index = target, _resolve_offset(target, offset)

        self._check_schema(parent, node)
        reference = parent[index] if 0 <= index < len(parent) else None
        if reference is node:
            return
        if node.getparent() is not None:
            self._detach(node)
        new_index = parent.index(reference) if reference is not None else len(parent)
        self._attach(node, parent, new_index)

    def append(self, node: ET._Element, parent: ET._Element) -> None:
        self.insert(node, parent, "end")

    def insert_element(self, kind: Union[NodeKind, str], parent: Union[Position, ET._Element],
                       offset: Offset = "end", attributes: Optional[Dict[str, Any]] = None) -> ET._Element:
        """Create an element and insert it in one step."""
        element = self.create_element(kind, attributes)
        self.insert(element, parent, offset)
        return element

    def append_text(self, text: str, element: ET._Element) -> None:
        previous = element.text
        element.text = (previous or "") + text

        def undo() -> None:
            element.text = previous

        self._operations.append(undo)

    def move(self, source: Range, target: Position) -> None:
        """Move the nodes of a flat *source* range to *target*."""
        nodes = source.get_items()
        if not nodes:
            return
        for node in nodes:
            self._check_schema(target.parent, node)
        reference = target.node_after
        if reference is not None and any(reference is node for node in nodes):
            return
        for node in nodes:
            self._detach(node)
        index = target.parent.index(reference) if reference is not None else len(target.parent)
        for shift, node in enumerate(nodes):
            self._attach(node, target.parent, index + shift)

    def remove(self, node: ET._Element) -> None:
        if node.getparent() is None:
            return
        self._detach(node)

    def set_attribute(self, key: str, value: Any, node: ET._Element) -> None:
        previous = node.get(key)
        node.set(key, str(value))
        self._operations.append(lambda: self._restore_attribute(node, key, previous))

    def remove_attribute(self, key: str, node: ET._Element) -> None:
        previous = node.get(key)
        if previous is None:
            return
        del node.attrib[key]
        self._operations.append(lambda: self._restore_attribute(node, key, previous))

    # ------------------------------------------------------------ Internals

    def _attach(self, node: ET._Element, parent: ET._Element, index: int) -> None:
        parent.insert(index, node)

        def undo() -> None:
            parent.remove(node)

        self._operations.append(undo)

    def _detach(self, node: ET._Element) -> None:
        parent = node.getparent()
        index = parent.index(node)
        parent.remove(node)

        def undo() -> None:
            parent.insert(index, node)

        self._operations.append(undo)

    @staticmethod
    def _restore_attribute(node: ET._Element, key: str, value: Optional[str]) -> None:
        if value is None:
            node.attrib.pop(key, None)
        else:
            node.set(key, value)

    @staticmethod
    def _check_schema(parent: ET._Element, node: ET._Element) -> None:
        parent_kind = node_kind(parent)
        child_kind = node_kind(node)
        if child_kind not in ALLOWED_CHILDREN[parent_kind]:
            raise GridSchemaError(
                f"A {child_kind.value} node cannot be placed inside a {parent_kind.value} node.",
                parent_tag=str(parent.tag),
                child_tag=str(node.tag),
            )

    def _revert(self) -> None:
        while self._operations:
            undo = self._operations.pop()
            undo()


class GridDocument:
    """Owner of the element tree and of the active change scope.

    Parameters
    ----------
    root : lxml element, optional
        Root of the document. A bare ``<root/>`` element is created when
        omitted.
    """

    def __init__(self, root: Optional[ET._Element] = None) -> None:
        self.root: ET._Element = root if root is not None else ET.Element("root")
        self.change_count: int = 0
        self._writer: Optional[GridWriter] = None

    @property
    def is_changing(self) -> bool:
        return self._writer is not None

    @contextmanager
    def change(self) -> Iterator[GridWriter]:
        """Open (or join) the atomic change scope.

        Yields
        ------
        GridWriter
            The writer to use for every mutation inside the scope.
        """
        if self._writer is not None:
            yield self._writer
            return

        writer = GridWriter(self)
        self._writer = writer
        try:
            yield writer
        except BaseException:
            reverted = writer.operation_count
            writer._revert()
            logger.warning("Change scope rolled back ops=%d", reverted)
            raise
        finally:
            self._writer = None

        self.change_count += 1
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Change scope committed ops=%d", writer.operation_count)

    def with_change_scope(self, callback: Callable[[GridWriter], _T]) -> _T:
        """Run *callback* with a writer inside one atomic change scope."""
        with self.change() as writer:
            return callback(writer)
