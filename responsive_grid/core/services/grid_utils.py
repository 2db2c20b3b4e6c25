from __future__ import annotations

"""Grid facade: structural mutators and geometry queries.

This module provides the single entry point that editing commands and other
collaborators use to change a grid's geometry. Each mutator opens one change
scope on the injected :class:`GridDocument`, reads the current geometry with
one or more :class:`GridWalker` passes and issues primitive writer calls, so
the whole mutation is applied (or rolled back) atomically.

Scope and guarantees:
- Range violations raise :class:`GridRangeError` before anything changes.
- After removals, rows and columns left without anchored cells are pruned.
- No UI code and no I/O.

Examples
--------
Basic usage:

    document = GridDocument()
    utils = GridUtils(document)
    with document.change() as writer:
        grid = utils.create_grid(rows=2, columns=3)
        writer.append(grid, document.root)
    utils.insert_columns(grid, at=1, columns=2)
"""

from dataclasses import dataclass
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from lxml import etree as ET

from responsive_grid.core.document import GridDocument, GridWriter, Range, Selection
from responsive_grid.core.exceptions import GridRangeError
from responsive_grid.core.models import NodeKind, find_ancestor, get_numeric_attribute, get_rows, node_kind
from responsive_grid.core.structure import remove_empty_columns, remove_empty_rows
from responsive_grid.core.utils import create_cells, create_empty_cell, create_empty_rows, update_numeric_attribute
from responsive_grid.core.walker import GridWalker

__all__ = ["IndexRange", "GridUtils"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexRange:
    """First and last index (inclusive) of a set of rows or columns."""

    first: int
    last: int


@dataclass
class _CellToUpdate:
    cell: ET._Element
    rowspan: int


class GridUtils:
    """Geometry-aware operations on grids living in a :class:`GridDocument`.

    Parameters
    ----------
    document
        The document whose change scope every mutation runs in.
    """

    def __init__(self, document: GridDocument) -> None:
        self._document = document
        self._logger = logging.getLogger(f"{__name__}.GridUtils")

    @property
    def document(self) -> GridDocument:
        return self._document

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_grid(self, rows: int = 1, columns: int = 1) -> ET._Element:
        """Create a detached grid of ``rows x columns`` blank cells.

        The grid still has to be inserted into the document, for instance
        with ``writer.append(grid, document.root)``.
        """
        rows = rows or 1
        columns = columns or 1
        with self._document.change() as writer:
            grid = writer.create_element(NodeKind.GRID)
            create_empty_rows(writer, grid, 0, rows, columns)
        return grid

    # -------------------------------------------------------------------------
    # Structural mutators
    # -------------------------------------------------------------------------

    def insert_rows(self, grid: ET._Element, at: int = 0, rows: int = 1,
                    copy_structure_from_above: Optional[bool] = None) -> None:
        """Insert *rows* rows before row *at*.

        Cells spanning over the insertion point are stretched; every other
        column gets a blank cell. When *copy_structure_from_above* is given,
        the column spans of the row above (True) or below (False) the
        insertion point are reproduced.

        Raises
        ------
        GridRangeError
            If *at* is negative or past the last row.
        """
        insert_at = at or 0
        rows_to_insert = rows or 1
        is_copy_structure = copy_structure_from_above is not None
        copy_structure_from = insert_at - 1 if copy_structure_from_above else insert_at

        row_count = self.get_row_count(grid)
        columns = self.get_column_count(grid)

        if insert_at < 0 or insert_at > row_count:
            logger.warning("Edit FAIL: insert_rows out_of_range at=%d rows=%d", insert_at, row_count)
            raise GridRangeError(
                f"Cannot insert rows at {insert_at}: the grid has {row_count} rows.",
                operation="insert_rows",
                details={"at": insert_at, "rows": rows_to_insert, "row_count": row_count},
            )

        logger.info("Edit: insert_rows at=%d rows=%d copy=%s", insert_at, rows_to_insert, copy_structure_from_above)

        with self._document.change() as writer:
            heading_rows = get_numeric_attribute(grid, "headingRows", 0)
            if insert_at < heading_rows:
                update_numeric_attribute("headingRows", heading_rows + rows_to_insert, grid, writer, 0)

            # A grid without rows has no column structure to follow.
            if not row_count:
                create_empty_rows(writer, grid, insert_at, rows_to_insert, columns or 1)
                return

            # Nothing spans over the first or the last row boundary.
            if not is_copy_structure and (insert_at == 0 or insert_at == row_count):
                create_empty_rows(writer, grid, insert_at, rows_to_insert, columns)
                return

            walker_end_row = max(insert_at, copy_structure_from) if is_copy_structure else insert_at

            # Column-indexed spans of the new row. A negative entry reserves
            # the slots of a cell stretched over the inserted rows.
            row_colspans_map = [1] * columns

            for slot in GridWalker(grid, end_row=walker_end_row):
                last_cell_row = slot.row + slot.cell_height - 1
                is_overlapping_inserted_row = slot.row < insert_at <= last_cell_row
                is_reference_row = slot.row <= copy_structure_from <= last_cell_row

                if is_overlapping_inserted_row:
                    writer.set_attribute("rowspan", slot.cell_height + rows_to_insert, slot.cell)
                    row_colspans_map[slot.column] = -slot.cell_width
                elif is_copy_structure and is_reference_row:
                    row_colspans_map[slot.column] = slot.cell_width

            grid_rows = get_rows(grid)
            if insert_at < len(grid_rows):
                position = writer.create_position_before(grid_rows[insert_at])
            else:
                position = writer.create_position_after(grid_rows[-1])

            for offset in range(rows_to_insert):
                grid_row = writer.create_element(NodeKind.ROW)
                writer.insert(grid_row, writer.create_position_at(position.parent, position.offset + offset))

                column_index = 0
                while column_index < len(row_colspans_map):
                    colspan = row_colspans_map[column_index]

                    if colspan > 0:
                        create_empty_cell(writer, writer.create_position_at(grid_row, "end"),
                                          {"colspan": colspan} if colspan > 1 else None)

                    # Column-spanned slots get no cell of their own.
                    column_index += abs(colspan)

        self._logger.debug("insert_rows done rows=%d", self.get_row_count(grid))

    def insert_columns(self, grid: ET._Element, at: int = 0, columns: int = 1) -> None:
        """Insert *columns* columns before column *at*.

        Given the grid on the left, ``insert_columns(grid, at=1, columns=2)``
        gives the grid on the right::

            0   1   2   3                   0   1   2   3   4   5
            +---+---+---+                   +---+---+---+---+---+
            | a     | b |                   | a             | b |
            +       +---+                   +               +---+
            |       | c |                   |               | c |
            +---+---+---+     will give:    +---+---+---+---+---+
            | d | e | f |                   | d |   |   | e | f |
            +---+   +---+                   +---+---+---+   +---+
            | g |   | h |                   | g |   |   |   | h |
            +---+---+---+                   +---+---+---+---+---+
            | i         |                   | i                 |
            +---+---+---+                   +---+---+---+---+---+
                ^---- insert here

        Raises
        ------
        GridRangeError
            If *at* is negative or past the last column.
        """
        insert_at = at or 0
        columns_to_insert = columns or 1
        grid_columns = self.get_column_count(grid)

        if insert_at < 0 or insert_at > grid_columns:
            logger.warning("Edit FAIL: insert_columns out_of_range at=%d columns=%d", insert_at, grid_columns)
            raise GridRangeError(
                f"Cannot insert columns at {insert_at}: the grid has {grid_columns} columns.",
                operation="insert_columns",
                details={"at": insert_at, "columns": columns_to_insert, "column_count": grid_columns},
            )

        logger.info("Edit: insert_columns at=%d columns=%d", insert_at, columns_to_insert)

        with self._document.change() as writer:
            heading_columns = get_numeric_attribute(grid, "headingColumns", 0)
            if insert_at < heading_columns:
                update_numeric_attribute("headingColumns", heading_columns + columns_to_insert, grid, writer, 0)

            # Nothing spans over the first or the last column boundary.
            if insert_at == 0 or insert_at == grid_columns:
                for grid_row in get_rows(grid):
                    create_cells(columns_to_insert, writer,
                                 writer.create_position_at(grid_row, "end" if insert_at else 0))
                return

            grid_walker = GridWalker(grid, column=insert_at, include_all_slots=True)

            # Each row at or above the current slot has been consumed already,
            # so inserting into it does not disturb the walker.
            for slot in grid_walker:
                if slot.cell_anchor_column < insert_at:
                    # A cell spanning over the new columns ("a", "i") grows instead.
                    writer.set_attribute("colspan", slot.cell_width + columns_to_insert, slot.cell)

                    last_cell_row = slot.cell_anchor_row + slot.cell_height - 1
                    for row in range(slot.row, last_cell_row + 1):
                        grid_walker.skip_row(row)
                else:
                    # Either a cell anchored here ("e") or a slot it spans over.
                    create_cells(columns_to_insert, writer, slot.get_position_before())

    def remove_rows(self, grid: ET._Element, at: int, rows: int = 1) -> None:
        """Remove *rows* rows starting at row *at*.

        Cells from above that overlap the removed rows are shortened; cells
        anchored in the removed rows that stick out below them move down to
        the first remaining row::

             row index
                 +---+---+---+        `at` = 1        +---+---+---+
               0 | a | b | c |        `rows` = 2      | a | b | c | 0
                 |   +---+---+                        |   +---+---+
               1 |   | d | e |  <-- remove from here  |   | d | g | 1
                 |   |   +---+        will give:      +---+---+---+
               2 |   |   | f |                        | h | i | j | 2
                 |   |   +---+                        +---+---+---+
               3 |   |   | g |
                 +---+---+---+
               4 | h | i | j |
                 +---+---+---+

        Raises
        ------
        GridRangeError
            If the removed range is not fully inside the grid.
        """
        rows_to_remove = rows or 1
        row_count = self.get_row_count(grid)
        first = at
        last = first + rows_to_remove - 1

        if first < 0 or last > row_count - 1:
            logger.warning("Edit FAIL: remove_rows out_of_range at=%d rows=%d count=%d", first, rows_to_remove, row_count)
            raise GridRangeError(
                f"Cannot remove rows {first}..{last}: the grid has {row_count} rows.",
                operation="remove_rows",
                details={"at": first, "rows": rows_to_remove, "row_count": row_count},
            )

        logger.info("Edit: remove_rows at=%d rows=%d", first, rows_to_remove)

        with self._document.change() as writer:
            # Everything is measured before the structure changes.
            cells_to_move, cells_to_trim = self._get_cells_to_move_and_trim_on_remove_row(grid, first, last)

            # Fill the gaps below the removed section first.
            if cells_to_move:
                self._move_cells_to_row(grid, last + 1, cells_to_move, writer)

            grid_rows = get_rows(grid)
            for index in range(last, first - 1, -1):
                writer.remove(grid_rows[index])

            for entry in cells_to_trim:
                update_numeric_attribute("rowspan", entry.rowspan, entry.cell, writer)

            self._adjust_heading_rows(grid, first, last, writer)

            if not remove_empty_columns(grid, self):
                # A row removal may itself come from row pruning, which removes
                # one row at a time.
                remove_empty_rows(grid, self)

    def remove_columns(self, grid: ET._Element, at: int, columns: int = 1) -> None:
        """Remove *columns* columns starting at column *at*.

        Cells spanning over a removed column are narrowed, cells anchored in
        it with a width of one are deleted::

               0   1   2   3   4                       0   1   2
             +---------------+---+                   +-------+---+
             | a             | b |                   | a     | b |
             |               +---+                   |       +---+
             |               | c |                   |       | c |
             +---+---+---+---+---+     will give:    +---+---+---+
             | d | e | f | g | h |                   | d | g | h |
             +---+---+---+   +---+                   +---+   +---+
             | i | j | k |   | l |                   | i |   | l |
             +---+---+---+---+---+                   +---+---+---+
             | m                 |                   | m         |
             +-------------------+                   +-----------+
                   ^---- remove from here

        Raises
        ------
        GridRangeError
            If the removed range is not fully inside the grid.
        """
        columns_to_remove = columns or 1
        column_count = self.get_column_count(grid)
        first = at
        last = at + columns_to_remove - 1

        if first < 0 or last > column_count - 1:
            logger.warning("Edit FAIL: remove_columns out_of_range at=%d columns=%d count=%d",
                           first, columns_to_remove, column_count)
            raise GridRangeError(
                f"Cannot remove columns {first}..{last}: the grid has {column_count} columns.",
                operation="remove_columns",
                details={"at": first, "columns": columns_to_remove, "column_count": column_count},
            )

        logger.info("Edit: remove_columns at=%d columns=%d", first, columns_to_remove)

        with self._document.change() as writer:
            for removed_column in range(last, first - 1, -1):
                for slot in list(GridWalker(grid)):
                    column, cell_width = slot.column, slot.cell_width

                    if column <= removed_column and cell_width > 1 and column + cell_width > removed_column:
                        update_numeric_attribute("colspan", cell_width - 1, slot.cell, writer)
                    elif column == removed_column:
                        writer.remove(slot.cell)

                heading_columns = get_numeric_attribute(grid, "headingColumns", 0)
                if removed_column < heading_columns:
                    update_numeric_attribute("headingColumns", heading_columns - 1, grid, writer, 0)

            if not remove_empty_rows(grid, self):
                # A column removal may itself come from column pruning, which
                # removes one column at a time.
                remove_empty_columns(grid, self)

    # -------------------------------------------------------------------------
    # Geometry queries
    # -------------------------------------------------------------------------

    def get_column_count(self, grid: ET._Element) -> int:
        """Return the grid width, measured on the first row."""
        grid_rows = get_rows(grid)
        if not grid_rows:
            return 0
        return sum(get_numeric_attribute(cell, "colspan") for cell in grid_rows[0])

    def get_row_count(self, grid: ET._Element) -> int:
        """Return the number of rows; other grid children are not counted."""
        return len(get_rows(grid))

    def create_walker(self, grid: ET._Element, **options: Any) -> GridWalker:
        """Return a :class:`GridWalker` over *grid* with the given options."""
        return GridWalker(grid, **options)

    def get_cell_location(self, cell: ET._Element) -> Tuple[int, int]:
        """Return the ``(row, column)`` anchor of *cell*."""
        grid = find_ancestor(cell, NodeKind.GRID)
        if grid is None:
            raise ValueError("The cell does not belong to a grid.")
        for slot in GridWalker(grid):
            if slot.cell is cell:
                return slot.row, slot.column
        raise ValueError("The cell was not found in its grid.")

    # -------------------------------------------------------------------------
    # Selection helpers
    # -------------------------------------------------------------------------

    def get_selection_affected_cells(self, selection: Selection) -> List[ET._Element]:
        """Return fully selected cells, else cells containing range starts."""
        selected_cells = self.get_selected_cells(selection)

        if selected_cells:
            return selected_cells

        return self.get_cells_containing_selection(selection)

    def get_selected_cells(self, selection: Selection) -> List[ET._Element]:
        """Return cells selected from the outside, in document order."""
        cells = []
        for selection_range in self.sort_ranges(selection.get_ranges()):
            element = selection_range.get_contained_element()
            if element is not None and node_kind(element) is NodeKind.CELL:
                cells.append(element)
        return cells

    def get_cells_containing_selection(self, selection: Selection) -> List[ET._Element]:
        """Return the cells each range starts in."""
        cells = []
        for selection_range in selection.get_ranges():
            cell = selection_range.start.find_ancestor(NodeKind.CELL)
            if cell is not None:
                cells.append(cell)
        return cells

    def sort_ranges(self, ranges: Iterable[Range]) -> List[Range]:
        """Return *ranges* sorted by their start positions."""
        # Cell ranges are disjoint, so comparing the starts is enough.
        return sorted(ranges, key=lambda r: r.start.path)

    def get_row_index_range(self, cells: List[ET._Element]) -> IndexRange:
        """Return the first and last row index of the given cells."""
        indexes = []
        for cell in cells:
            grid_row = cell.getparent()
            indexes.append(get_rows(grid_row.getparent()).index(grid_row))
        return self._get_first_last_indexes(indexes)

    def get_column_index_range(self, cells: List[ET._Element]) -> IndexRange:
        """Return the first and last anchor column of the given cells."""
        grid = find_ancestor(cells[0], NodeKind.GRID)
        indexes = [slot.column for slot in GridWalker(grid) if any(slot.cell is cell for cell in cells)]
        return self._get_first_last_indexes(indexes)

    def are_cells_in_same_section(self, cells: List[ET._Element]) -> bool:
        """Check that cells do not mix the heading section with the body.

        Valid selections below consist of cells with the same letter only::

            header columns
               v   v
             +---+---+---+---+
             | a | a | b | b |  <- header row
             +---+---+---+---+
             | c | c | d | d |
             +---+---+---+---+
        """
        grid = find_ancestor(cells[0], NodeKind.GRID)

        row_indexes = self.get_row_index_range(cells)
        heading_rows = get_numeric_attribute(grid, "headingRows", 0)

        # Row indexes are cheaper to compute, check them first.
        if not self._are_indexes_in_same_section(row_indexes, heading_rows):
            return False

        column_indexes = self.get_column_index_range(cells)
        heading_columns = get_numeric_attribute(grid, "headingColumns", 0)

        return self._are_indexes_in_same_section(column_indexes, heading_columns)

    def is_selection_rectangular(self, cells: List[ET._Element]) -> bool:
        """True when *cells* exactly fill one rectangle in a single section."""
        if len(cells) < 2 or not self.are_cells_in_same_section(cells):
            return False

        rows = set()
        columns = set()
        area_of_selected_cells = 0

        for cell in cells:
            row, column = self.get_cell_location(cell)
            rowspan = get_numeric_attribute(cell, "rowspan")
            colspan = get_numeric_attribute(cell, "colspan")

            rows.update((row, row + rowspan - 1))
            columns.update((column, column + colspan - 1))
            area_of_selected_cells += rowspan * colspan

        area_of_valid_selection = (max(rows) - min(rows) + 1) * (max(columns) - min(columns) + 1)
        return area_of_valid_selection == area_of_selected_cells

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @staticmethod
    def _get_first_last_indexes(indexes: List[int]) -> IndexRange:
        all_indexes_sorted = sorted(indexes)
        return IndexRange(first=all_indexes_sorted[0], last=all_indexes_sorted[-1])

    @staticmethod
    def _are_indexes_in_same_section(indexes: IndexRange, heading_section_size: int) -> bool:
        first_is_in_heading = indexes.first < heading_section_size
        last_is_in_heading = indexes.last < heading_section_size
        return first_is_in_heading == last_is_in_heading

    @staticmethod
    def _get_cells_to_move_and_trim_on_remove_row(
        grid: ET._Element, first: int, last: int
    ) -> Tuple[Dict[int, _CellToUpdate], List[_CellToUpdate]]:
        """Classify row-spanned cells affected by removing rows first..last.

        In the grid below, with rows 2 and 3 removed, "02", "03" and "04" are
        trimmed while "21" and "32" move down::

             +----+----+----+----+----+
             | 00 | 01 | 02 | 03 | 04 |
             +----+    +    +    +    +
             | 10 |    |    |    |    |
             +----+----+    +    +    +
             | 20 | 21 |    |    |    | <-- removed row
             +    +    +----+    +    +
             |    |    | 32 |    |    | <-- removed row
             +----+    +    +----+    +
             | 40 |    |    | 43 |    |
             +----+----+----+----+----+
        """
        cells_to_move: Dict[int, _CellToUpdate] = {}
        cells_to_trim: List[_CellToUpdate] = []

        for slot in GridWalker(grid, end_row=last):
            row, column, cell_height = slot.row, slot.column, slot.cell_height
            last_row_of_cell = row + cell_height - 1

            is_sticking_out_of_removed_rows = first <= row <= last < last_row_of_cell

            if is_sticking_out_of_removed_rows:
                rowspan_in_removed_section = last - row + 1
                cells_to_move[column] = _CellToUpdate(slot.cell, cell_height - rowspan_in_removed_section)

            is_overlapping_removed_rows = row < first <= last_row_of_cell

            if is_overlapping_removed_rows:
                if last_row_of_cell >= last:
                    # Covers the whole removed section.
                    rowspan_adjustment = last - first + 1
                else:
                    rowspan_adjustment = last_row_of_cell - first + 1

                cells_to_trim.append(_CellToUpdate(slot.cell, cell_height - rowspan_adjustment))

        return cells_to_move, cells_to_trim

    @staticmethod
    def _move_cells_to_row(grid: ET._Element, target_row_index: int,
                           cells_to_move: Dict[int, _CellToUpdate], writer: GridWriter) -> None:
        grid_row_map = list(GridWalker(grid, row=target_row_index, include_all_slots=True))
        target_row = get_rows(grid)[target_row_index]

        previous_cell = None

        for slot in grid_row_map:
            if slot.column in cells_to_move:
                entry = cells_to_move[slot.column]

                if previous_cell is not None:
                    target_position = writer.create_position_after(previous_cell)
                else:
                    target_position = writer.create_position_at(target_row, 0)

                writer.move(writer.create_range_on(entry.cell), target_position)
                update_numeric_attribute("rowspan", entry.rowspan, entry.cell, writer)

                previous_cell = entry.cell
            elif slot.is_anchor:
                # A spanned slot refers to a cell of another row; only anchors
                # mark an insertion point in this row.
                previous_cell = slot.cell

    @staticmethod
    def _adjust_heading_rows(grid: ET._Element, first: int, last: int, writer: GridWriter) -> None:
        heading_rows = get_numeric_attribute(grid, "headingRows", 0)

        if first < heading_rows:
            new_rows = heading_rows - (last - first + 1) if last < heading_rows else first
            update_numeric_attribute("headingRows", new_rows, grid, writer, 0)
