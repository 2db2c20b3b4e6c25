from __future__ import annotations

"""Shape utilities: cropping, splitting, overlap queries and pruning.

Every function here reads geometry through :class:`GridWalker`; the mutating
ones take the active :class:`GridWriter` explicitly. The pruning helpers call
back into :class:`GridUtils` because removing a row or column is itself a
structural mutation.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from lxml import etree as ET

from responsive_grid.core.document import GridWriter
from responsive_grid.core.models import NodeKind, get_numeric_attribute, get_rows
from responsive_grid.core.utils import create_empty_cell, update_numeric_attribute
from responsive_grid.core.walker import GridSlot, GridWalker

if TYPE_CHECKING:
    from responsive_grid.core.services.grid_utils import GridUtils

__all__ = [
    "crop_grid_to_dimensions",
    "get_vertically_overlapping_cells",
    "get_horizontally_overlapping_cells",
    "split_horizontally",
    "split_vertically",
    "trim_cell_if_needed",
    "remove_empty_columns",
    "remove_empty_rows",
    "remove_empty_rows_columns",
    "adjust_last_row_index",
    "adjust_last_column_index",
]

logger = logging.getLogger(__name__)


def crop_grid_to_dimensions(source_grid: ET._Element, start_row: int, start_column: int,
                            end_row: int, end_column: int, writer: GridWriter) -> ET._Element:
    """Return a new, detached grid holding a copy of the given rectangle.

    Calling ``crop_grid_to_dimensions(grid, 1, 1, 3, 3, writer)`` on::

            0   1   2   3   4                      0   1   2
          +---+---+---+---+---+
       0  | a | b | c | d | e |
          +---+---+   +---+---+                  +---+---+---+
       1  | f     |   | g     |                  |   |   | g |  0
          +---+---+---+---+---+   will return:   +---+---+---+
       2  | h | i     | j | k |                  | i     | j |  1
          +---+       +---+   +                  +       +---+
       3  | l |       | m |   |                  |       | m |  2
          +---+---+---+   +---+                  +---+---+---+
       4  | n | o | p |   | q |
          +---+---+---+---+---+

    Slots covered by cells anchored outside the rectangle ("c" and "f") are
    filled with blank cells; cells sticking out of it ("g" and "m") are
    trimmed.
    """
    cropped_grid = writer.create_element(NodeKind.GRID)
    crop_height = end_row - start_row + 1

    for _ in range(crop_height):
        writer.insert_element(NodeKind.ROW, cropped_grid, "end")

    target_rows = get_rows(cropped_grid)
    grid_map = list(GridWalker(source_grid, start_row=start_row, end_row=end_row,
                               start_column=start_column, end_column=end_column,
                               include_all_slots=True))

    for slot in grid_map:
        row = target_rows[slot.row - start_row]

        if not slot.is_anchor:
            # Only gaps left by cells anchored outside the crop need filling.
            if slot.cell_anchor_row < start_row or slot.cell_anchor_column < start_column:
                create_empty_cell(writer, writer.create_position_at(row, "end"))
        else:
            cell_copy = writer.clone_element(slot.cell)
            writer.append(cell_copy, row)
            trim_cell_if_needed(cell_copy, slot.row, slot.column, end_row, end_column, writer)

    _add_headings_to_cropped_grid(cropped_grid, source_grid, start_row, start_column, writer)

    return cropped_grid


def get_vertically_overlapping_cells(grid: ET._Element, overlap_row: int, start_row: int = 0) -> List[GridSlot]:
    """Return slots of cells anchored above *overlap_row* that extend into it.

    For ``overlap_row = 3``::

         +---+---+---+---+---+
      0  | a | b | c | d | e |
         |   +---+---+---+---+
      1  |   | f | g | h | i |
         +---+   +---+---+   |
      2  | j |   | k | l |   |
         |   |   |   +---+---+
      3  |   |   |   | m | n |  <- overlap row to check
         +---+---+   |   +---+
      4  | o | p |   |   | q |
         +---+---+---+---+---+

    the result holds "f", "j" and "k". *start_row* limits the scan when the
    rows above it are known not to overlap.
    """
    cells: List[GridSlot] = []

    for slot in GridWalker(grid, start_row=start_row, end_row=overlap_row - 1):
        cell_end_row = slot.row + slot.cell_height - 1

        if slot.row < overlap_row <= cell_end_row:
            cells.append(slot)

    return cells


def get_horizontally_overlapping_cells(grid: ET._Element, overlap_column: int) -> List[GridSlot]:
    """Return slots of cells anchored left of *overlap_column* that extend into it."""
    cells: List[GridSlot] = []

    for slot in GridWalker(grid):
        cell_end_column = slot.column + slot.cell_width - 1

        if slot.column < overlap_column <= cell_end_column:
            cells.append(slot)

    return cells


def split_horizontally(cell: ET._Element, split_row: int, writer: GridWriter) -> Optional[ET._Element]:
    """Split *cell* so that its lower part starts at *split_row*.

    The original cell keeps the rows above *split_row*; a fresh blank cell
    with the remaining height and the same width is created at the slot
    where *split_row* meets the cell's anchor column.

    Returns
    -------
    lxml element or None
        The created cell, or None when *split_row* is outside the cell.
    """
    grid_row = cell.getparent()
    grid = grid_row.getparent()
    row_index = get_rows(grid).index(grid_row)

    rowspan = get_numeric_attribute(cell, "rowspan")
    new_rowspan = split_row - row_index
    new_cell_rowspan = rowspan - new_rowspan

    if new_rowspan < 1 or new_cell_rowspan < 1:
        logger.debug("Split: row %d is outside the cell anchored at row %d", split_row, row_index)
        return None

    new_cell_attributes: Dict[str, Any] = {}

    if new_cell_rowspan > 1:
        new_cell_attributes["rowspan"] = new_cell_rowspan

    colspan = get_numeric_attribute(cell, "colspan")

    if colspan > 1:
        new_cell_attributes["colspan"] = colspan

    end_row = row_index + new_rowspan
    grid_map = list(GridWalker(grid, start_row=row_index, end_row=end_row, include_all_slots=True))

    new_cell = None
    column_index = None

    for slot in grid_map:
        if slot.cell is cell and column_index is None:
            column_index = slot.column

        if column_index is not None and slot.column == column_index and slot.row == end_row:
            new_cell = create_empty_cell(writer, slot.get_position_before(), new_cell_attributes)

    update_numeric_attribute("rowspan", new_rowspan, cell, writer)

    return new_cell


def split_vertically(cell: ET._Element, column_index: int, split_column: int, writer: GridWriter) -> ET._Element:
    """Split *cell* so that its right part starts at *split_column*.

    Parameters
    ----------
    cell
        Cell to split.
    column_index
        Anchor column of the cell.
    split_column
        First column of the new cell.

    Returns
    -------
    lxml element
        The created cell, placed right after *cell* in the same row.
    """
    colspan = get_numeric_attribute(cell, "colspan")
    new_colspan = split_column - column_index

    new_cell_attributes: Dict[str, Any] = {}
    new_cell_colspan = colspan - new_colspan

    if new_cell_colspan > 1:
        new_cell_attributes["colspan"] = new_cell_colspan

    rowspan = get_numeric_attribute(cell, "rowspan")

    if rowspan > 1:
        new_cell_attributes["rowspan"] = rowspan

    new_cell = create_empty_cell(writer, writer.create_position_after(cell), new_cell_attributes)

    update_numeric_attribute("colspan", new_colspan, cell, writer)

    return new_cell


def trim_cell_if_needed(cell: ET._Element, cell_row: int, cell_column: int,
                        limit_row: int, limit_column: int, writer: GridWriter) -> None:
    """Shrink the spans of *cell* so it ends at *limit_row*/*limit_column*."""
    colspan = get_numeric_attribute(cell, "colspan")
    rowspan = get_numeric_attribute(cell, "rowspan")

    end_column = cell_column + colspan - 1

    if end_column > limit_column:
        trimmed_span = limit_column - cell_column + 1
        update_numeric_attribute("colspan", trimmed_span, cell, writer, 1)

    end_row = cell_row + rowspan - 1

    if end_row > limit_row:
        trimmed_span = limit_row - cell_row + 1
        update_numeric_attribute("rowspan", trimmed_span, cell, writer, 1)


def _add_headings_to_cropped_grid(cropped_grid: ET._Element, source_grid: ET._Element,
                                  start_row: int, start_column: int, writer: GridWriter) -> None:
    heading_rows = get_numeric_attribute(source_grid, "headingRows", 0)

    if heading_rows > 0:
        update_numeric_attribute("headingRows", heading_rows - start_row, cropped_grid, writer, 0)

    heading_columns = get_numeric_attribute(source_grid, "headingColumns", 0)

    if heading_columns > 0:
        update_numeric_attribute("headingColumns", heading_columns - start_column, cropped_grid, writer, 0)


def remove_empty_columns(grid: ET._Element, grid_utils: "GridUtils") -> bool:
    """Remove the last column that has no cell anchored in it.

    In the grid below columns 2 and 5 are empty; one call removes column 5,
    and the resulting pruning pass takes care of the rest::

        +----+----+----+----+----+----+----+
        | 00 | 01      | 03 | 04      | 06 |
        +----+----+----+----+         +----+
        | 10 | 11      | 13 |         | 16 |
        +----+----+----+----+----+----+----+
        | 20 | 21      | 23 | 24      | 26 |
        +----+----+----+----+----+----+----+

    This is a low-level cleanup helper; use :meth:`GridUtils.remove_columns`
    to remove a column on purpose.

    Returns
    -------
    bool
        True if a column was removed.
    """
    width = grid_utils.get_column_count(grid)
    columns_map = [0] * width

    for slot in GridWalker(grid):
        if slot.column >= len(columns_map):
            columns_map.extend([0] * (slot.column - len(columns_map) + 1))
        columns_map[slot.column] += 1

    empty_columns = [column for column, cells_count in enumerate(columns_map) if not cells_count]

    if empty_columns:
        # Only the last one; removing it triggers the next pruning pass.
        empty_column = empty_columns[-1]
        logger.debug("Prune: removing empty column %d", empty_column)
        grid_utils.remove_columns(grid, at=empty_column)
        return True

    return False


def remove_empty_rows(grid: ET._Element, grid_utils: "GridUtils") -> bool:
    """Remove the last row that has no cell anchored in it.

    Returns
    -------
    bool
        True if a row was removed.
    """
    empty_rows = [index for index, row in enumerate(get_rows(grid)) if len(row) == 0]

    if empty_rows:
        # Only the last one; removing it triggers the next pruning pass.
        empty_row = empty_rows[-1]
        logger.debug("Prune: removing empty row %d", empty_row)
        grid_utils.remove_rows(grid, at=empty_row)
        return True

    return False


def remove_empty_rows_columns(grid: ET._Element, grid_utils: "GridUtils") -> None:
    """Remove rows and columns without anchored cells until none are left.

    In the grid below row 3 and column 1 are removed::

        +----+----+----+----+
        | 00      | 02      |
        +----+----+         +
        | 10      |         |
        +----+----+----+----+
        | 20      | 22 | 23 |
        +         +    +    +
        |         |    |    | <-- empty row
        +----+----+----+----+
                ^--- empty column
    """
    while True:
        removed = remove_empty_columns(grid, grid_utils)

        # A column removal already ran the row check.
        if not removed:
            removed = remove_empty_rows(grid, grid_utils)

        if not removed:
            return


def adjust_last_row_index(grid: ET._Element, first_row: int, first_column: int,
                          last_row: int, last_column: int) -> int:
    """Return the last row index of a rectangular selection, extended over spans.

    When the selection ends on a row whose cells continue below::

           +---+---+---+---+
         0 | a | b | c | d |
           +   +---+---+---+
         1 |   | e | f | g |
           +   +---+   +---+
         2 |   | h |   | i | <- last row, each cell has rowspan = 2,
           +   +   +   +   +    so 3 is returned, not 2
         3 |   |   |   |   |
           +---+---+---+---+
    """
    last_row_map = list(GridWalker(grid, start_column=first_column, end_column=last_column, row=last_row))

    if all(slot.cell_height == 1 for slot in last_row_map):
        return last_row

    # In a rectangular selection every cell there has the same height.
    return last_row + last_row_map[0].cell_height - 1


def adjust_last_column_index(grid: ET._Element, first_row: int, first_column: int,
                             last_row: int, last_column: int) -> int:
    """Return the last column index of a rectangular selection, extended over spans."""
    last_column_map = list(GridWalker(grid, start_row=first_row, end_row=last_row, column=last_column))

    if all(slot.cell_width == 1 for slot in last_column_map):
        return last_column

    return last_column + last_column_map[0].cell_width - 1
