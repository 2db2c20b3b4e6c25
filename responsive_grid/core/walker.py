from __future__ import annotations

"""Row-major traversal of a grid's slots.

The grid is stored sparsely: a cell appears once, in the row where its
top-left corner (anchor) sits, and covers ``rowspan x colspan`` slots. The
:class:`GridWalker` rebuilds the dense coordinate space on the fly and yields
one :class:`GridSlot` per visited slot.

Given the grid below::

     +----+----+----+----+----+----+
     | 00      | 02 | 03 | 04 | 05 |
     |         +----+----+----+----+
     |         | 12      | 14 | 15 |
     |         +----+----+----+    +
     |         | 22           |    |
     |----+----+----+----+----+    +
     | 30 | 31 | 32 | 33 | 34 |    |
     +----+----+----+----+----+----+

``GridWalker(grid, start_row=1, end_row=2)`` yields the anchors at (1, 2),
(1, 4), (1, 5) and (2, 2). With ``row=1, include_all_slots=True`` it yields
every slot of row 1: (1, 0) and (1, 1) spanned by "00", (1, 2) anchored,
(1, 3) spanned by "12", (1, 4) and (1, 5) anchored.

``row`` is a shortcut for ``start_row == end_row`` and wins when both are
given; ``column`` behaves the same way for the column bounds.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Set

from lxml import etree as ET

from responsive_grid.core.document import Position
from responsive_grid.core.models import NodeKind, get_numeric_attribute, node_kind

__all__ = ["GridWalker", "GridSlot"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _SpanRecord:
    cell: ET._Element
    row: int
    column: int


class _SpannedSlots:
    """Maps (row, column) to the cell spanning over it from another anchor."""

    def __init__(self) -> None:
        self._rows: Dict[int, Dict[int, _SpanRecord]] = {}

    def record(self, cell: ET._Element, row: int, column: int, rowspan: int, colspan: int) -> None:
        data = _SpanRecord(cell, row, column)
        for row_to_update in range(row, row + rowspan):
            row_map = self._rows.setdefault(row_to_update, {})
            for column_to_update in range(column, column + colspan):
                if row_to_update != row or column_to_update != column:
                    row_map[column_to_update] = data

    def get(self, row: int, column: int) -> Optional[_SpanRecord]:
        row_map = self._rows.get(row)
        if not row_map:
            return None
        return row_map.get(column)

    def forget_row(self, row: int) -> None:
        self._rows.pop(row, None)


class GridSlot:
    """A slot visited by :class:`GridWalker`.

    Attributes
    ----------
    cell
        The cell covering this slot.
    row, column
        Coordinates of the slot itself.
    cell_anchor_row, cell_anchor_column
        Coordinates of the cell's anchor (top-left) slot.
    """

    __slots__ = (
        "cell",
        "row",
        "column",
        "cell_anchor_row",
        "cell_anchor_column",
        "_cell_index",
        "_row_index",
        "_row_element",
    )

    def __init__(self, walker: "GridWalker", cell: ET._Element, anchor_row: int, anchor_column: int,
                 row_element: ET._Element) -> None:
        self.cell = cell
        self.row = walker._row
        self.column = walker._column
        self.cell_anchor_row = anchor_row
        self.cell_anchor_column = anchor_column
        self._cell_index = walker._cell_index
        self._row_index = walker._row_index
        self._row_element = row_element

    @property
    def is_anchor(self) -> bool:
        """Whether the cell is anchored in this slot."""
        return self.row == self.cell_anchor_row and self.column == self.cell_anchor_column

    @property
    def cell_width(self) -> int:
        return get_numeric_attribute(self.cell, "colspan")

    @property
    def cell_height(self) -> int:
        return get_numeric_attribute(self.cell, "rowspan")

    @property
    def row_index(self) -> int:
        """Index of the row element among all grid children."""
        return self._row_index

    def get_position_before(self) -> Position:
        """Return the position at which new content for this slot goes.

        For spanned slots this is the position of the next cell anchored in
        the same row.
        """
        return Position(self._row_element, self._cell_index)

    def __repr__(self) -> str:
        kind = "anchor" if self.is_anchor else "spanned"
        return f"GridSlot(row={self.row}, column={self.column}, {kind})"


class GridWalker:
    """Lazy, single-pass iterator over the slots of a grid.

    Parameters
    ----------
    grid
        The grid element to traverse.
    row, start_row, end_row
        Row bounds. ``row`` sets both bounds and takes precedence.
    column, start_column, end_column
        Column bounds. ``column`` sets both bounds and takes precedence.
    include_all_slots
        Also yield slots covered by cells anchored elsewhere.
    skip_rows
        Row indexes never yielded. More can be added with :meth:`skip_row`.
    """

    def __init__(
        self,
        grid: ET._Element,
        row: Optional[int] = None,
        start_row: Optional[int] = None,
        end_row: Optional[int] = None,
        column: Optional[int] = None,
        start_column: Optional[int] = None,
        end_column: Optional[int] = None,
        include_all_slots: bool = False,
        skip_rows: Optional[Iterable[int]] = None,
    ) -> None:
        if row is not None and (start_row is not None or end_row is not None):
            logger.debug("Walker: 'row' given together with a row range; using row=%d", row)
        if column is not None and (start_column is not None or end_column is not None):
            logger.debug("Walker: 'column' given together with a column range; using column=%d", column)

        self._grid = grid
        self._start_row: int = row if row is not None else (start_row or 0)
        self._end_row: Optional[int] = row if row is not None else end_row
        self._start_column: int = column if column is not None else (start_column or 0)
        self._end_column: Optional[int] = column if column is not None else end_column
        self._include_all_slots = bool(include_all_slots)
        self._skip_rows: Set[int] = set(skip_rows or ())

        self._row = 0
        self._row_index = 0
        self._column = 0
        self._cell_index = 0
        self._next_column_at_column = -1
        self._spanned = _SpannedSlots()

    @property
    def grid(self) -> ET._Element:
        return self._grid

    def __iter__(self) -> "GridWalker":
        return self

    def __next__(self) -> GridSlot:
        while True:
            row = self._child(self._grid, self._row_index)

            if row is None or self._is_over_end_row():
                raise StopIteration

            # Stray children (captions and the like) are not rows.
            if node_kind(row) is not NodeKind.ROW:
                self._row_index += 1
                continue

            if self._is_over_end_column():
                self._advance_to_next_row()
                continue

            out_value: Optional[GridSlot] = None
            span = self._spanned.get(self._row, self._column)

            if span is not None:
                if self._include_all_slots and not self._should_skip_slot():
                    out_value = GridSlot(self, span.cell, span.row, span.column, row)
            else:
                cell = self._child(row, self._cell_index)

                if cell is None:
                    self._advance_to_next_row()
                    continue

                colspan = get_numeric_attribute(cell, "colspan")
                rowspan = get_numeric_attribute(cell, "rowspan")

                if colspan > 1 or rowspan > 1:
                    self._spanned.record(cell, self._row, self._column, rowspan, colspan)

                if not self._should_skip_slot():
                    out_value = GridSlot(self, cell, self._row, self._column, row)

                self._next_column_at_column = self._column + colspan

            self._column += 1

            if self._column == self._next_column_at_column:
                self._cell_index += 1

            if out_value is not None:
                return out_value

    def skip_row(self, row: int) -> None:
        """Never yield slots of *row*, including the rest of the current row."""
        self._skip_rows.add(row)

    # ------------------------------------------------------------ Internals

    @staticmethod
    def _child(parent: ET._Element, index: int) -> Optional[ET._Element]:
        if index < len(parent):
            return parent[index]
        return None

    def _advance_to_next_row(self) -> None:
        self._spanned.forget_row(self._row)
        self._row += 1
        self._row_index += 1
        self._column = 0
        self._cell_index = 0
        self._next_column_at_column = -1

    def _is_over_end_row(self) -> bool:
        return self._end_row is not None and self._row > self._end_row

    def _is_over_end_column(self) -> bool:
        return self._end_column is not None and self._column > self._end_column

    def _should_skip_slot(self) -> bool:
        row_is_marked_as_skipped = self._row in self._skip_rows
        row_is_before_start_row = self._row < self._start_row

        column_is_before_start_column = self._column < self._start_column
        column_is_after_end_column = self._end_column is not None and self._column > self._end_column

        return (
            row_is_marked_as_skipped
            or row_is_before_start_row
            or column_is_before_start_column
            or column_is_after_end_column
        )
