from __future__ import annotations

"""Selection-driven editing commands on grids.

This module turns what a user selected into structural edits: inserting and
removing rows or columns next to the selection, merging a rectangular block
of cells, splitting a spanning cell and copying a selection as a standalone
grid. The geometry work itself is delegated to :class:`GridUtils` and the
shape utilities.

Scope and guarantees:
- Operates purely in-memory on a GridDocument, no UI imports.
- Expected invalid actions (empty selection, removing every row, merging a
  non-rectangular selection) return OperationResult(success=False, ...) and
  never raise.
- Each command is a single atomic change scope.

Examples
--------
Basic usage:

    service = GridEditingService(GridUtils(document))
    result = service.insert_row(Selection.on(cell), order="above")
    if not result.success:
        print(result.message)
"""

from dataclasses import dataclass
import logging
from typing import Any, Dict, List, Literal, Optional, Tuple

from lxml import etree as ET

from responsive_grid.core.document import GridWriter, Position, Range, Selection
from responsive_grid.core.exceptions import GridError
from responsive_grid.core.models import NodeKind, find_ancestor, get_cell_content, get_numeric_attribute
from responsive_grid.core.services.grid_utils import GridUtils
from responsive_grid.core.structure import (
    adjust_last_column_index,
    adjust_last_row_index,
    crop_grid_to_dimensions,
    remove_empty_rows_columns,
    split_horizontally,
    split_vertically,
)
from responsive_grid.core.utils import is_cell_content_empty, update_numeric_attribute

__all__ = ["OperationResult", "GridEditingService"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationResult:
    """Result of a grid editing operation.

    Attributes
    ----------
    success
        Whether the operation completed successfully.
    message
        Human-readable summary suitable for logs or UI display.
    details
        Optional structured details for diagnostics or caller logic.
    """
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None


class GridEditingService:
    """Encapsulates the editing commands offered on a grid selection.

    Parameters
    ----------
    grid_utils
        Facade bound to the document being edited.
    """

    def __init__(self, grid_utils: GridUtils) -> None:
        self._grid_utils = grid_utils
        self._document = grid_utils.document
        self._logger = logging.getLogger(f"{__name__}.GridEditingService")

    # -------------------------------------------------------------------------
    # Rows and columns
    # -------------------------------------------------------------------------

    def insert_row(self, selection: Selection, order: Literal["above", "below"] = "below") -> OperationResult:
        """Insert one row above or below the selected cells."""
        logger.info("Edit: insert_row order=%s", order)
        if order not in ("above", "below"):
            logger.warning("Edit FAIL: insert_row invalid_order order=%s", order)
            return OperationResult(False, f"Unknown row order '{order}'.", {"order": order})

        cells = self._grid_utils.get_selection_affected_cells(selection)
        if not cells:
            logger.warning("Edit FAIL: insert_row no_cells")
            return OperationResult(False, "Nothing selected in a grid.")

        grid = find_ancestor(cells[0], NodeKind.GRID)
        row_indexes = self._grid_utils.get_row_index_range(cells)
        insert_above = order == "above"
        at = row_indexes.first if insert_above else row_indexes.last + 1

        try:
            self._grid_utils.insert_rows(grid, at=at, rows=1, copy_structure_from_above=not insert_above)
        except GridError as exc:
            logger.warning("Edit FAIL: insert_row error=%s", exc)
            return OperationResult(False, str(exc), {"at": at})

        logger.info("Edit OK: insert_row at=%d", at)
        return OperationResult(True, f"Inserted a row {order} the selection.", {"at": at})

    def insert_column(self, selection: Selection, order: Literal["left", "right"] = "right") -> OperationResult:
        """Insert one column left or right of the selected cells."""
        logger.info("Edit: insert_column order=%s", order)
        if order not in ("left", "right"):
            logger.warning("Edit FAIL: insert_column invalid_order order=%s", order)
            return OperationResult(False, f"Unknown column order '{order}'.", {"order": order})

        cells = self._grid_utils.get_selection_affected_cells(selection)
        if not cells:
            logger.warning("Edit FAIL: insert_column no_cells")
            return OperationResult(False, "Nothing selected in a grid.")

        grid = find_ancestor(cells[0], NodeKind.GRID)
        column_indexes = self._grid_utils.get_column_index_range(cells)
        at = column_indexes.first if order == "left" else column_indexes.last + 1

        try:
            self._grid_utils.insert_columns(grid, at=at, columns=1)
        except GridError as exc:
            logger.warning("Edit FAIL: insert_column error=%s", exc)
            return OperationResult(False, str(exc), {"at": at})

        logger.info("Edit OK: insert_column at=%d", at)
        return OperationResult(True, f"Inserted a column {order} of the selection.", {"at": at})

    def remove_rows(self, selection: Selection) -> OperationResult:
        """Remove every row touched by the selection, unless that is all of them."""
        logger.info("Edit: remove_rows")
        cells = self._grid_utils.get_selection_affected_cells(selection)
        if not cells:
            logger.warning("Edit FAIL: remove_rows no_cells")
            return OperationResult(False, "Nothing selected in a grid.")

        grid = find_ancestor(cells[0], NodeKind.GRID)
        row_indexes = self._grid_utils.get_row_index_range(cells)
        row_count = self._grid_utils.get_row_count(grid)
        rows = row_indexes.last - row_indexes.first + 1
        details = {"at": row_indexes.first, "rows": rows}

        if row_indexes.first == 0 and row_indexes.last == row_count - 1:
            logger.warning("Edit FAIL: remove_rows all_rows_selected rows=%d", row_count)
            return OperationResult(False, "Cannot remove every row of a grid.", details)

        try:
            self._grid_utils.remove_rows(grid, at=row_indexes.first, rows=rows)
        except GridError as exc:
            logger.warning("Edit FAIL: remove_rows error=%s", exc)
            return OperationResult(False, str(exc), details)

        logger.info("Edit OK: remove_rows at=%d rows=%d", row_indexes.first, rows)
        return OperationResult(True, f"Removed {rows} row(s).", details)

    def remove_columns(self, selection: Selection) -> OperationResult:
        """Remove every column touched by the selection, unless that is all of them."""
        logger.info("Edit: remove_columns")
        cells = self._grid_utils.get_selection_affected_cells(selection)
        if not cells:
            logger.warning("Edit FAIL: remove_columns no_cells")
            return OperationResult(False, "Nothing selected in a grid.")

        grid = find_ancestor(cells[0], NodeKind.GRID)
        column_indexes = self._grid_utils.get_column_index_range(cells)
        column_count = self._grid_utils.get_column_count(grid)
        columns = column_indexes.last - column_indexes.first + 1
        details = {"at": column_indexes.first, "columns": columns}

        if column_indexes.first == 0 and column_indexes.last == column_count - 1:
            logger.warning("Edit FAIL: remove_columns all_columns_selected columns=%d", column_count)
            return OperationResult(False, "Cannot remove every column of a grid.", details)

        try:
            self._grid_utils.remove_columns(grid, at=column_indexes.first, columns=columns)
        except GridError as exc:
            logger.warning("Edit FAIL: remove_columns error=%s", exc)
            return OperationResult(False, str(exc), details)

        logger.info("Edit OK: remove_columns at=%d columns=%d", column_indexes.first, columns)
        return OperationResult(True, f"Removed {columns} column(s).", details)

    # -------------------------------------------------------------------------
    # Merge and split
    # -------------------------------------------------------------------------

    def can_merge_cells(self, selection: Selection) -> bool:
        """True when the selected cells form one rectangle within one grid section."""
        cells = self._grid_utils.get_selected_cells(selection)
        if len(cells) < 2:
            return False
        grid = find_ancestor(cells[0], NodeKind.GRID)
        if any(find_ancestor(cell, NodeKind.GRID) is not grid for cell in cells):
            return False
        return self._grid_utils.is_selection_rectangular(cells)

    def merge_cells(self, selection: Selection) -> OperationResult:
        """Merge the selected cells into the first one.

        The first cell (in document order) grows to cover the selection's
        rectangle and receives the content of every non-empty merged cell.
        Rows and columns left without anchored cells are pruned afterwards.
        """
        logger.info("Edit: merge_cells")
        if not self.can_merge_cells(selection):
            logger.warning("Edit FAIL: merge_cells not_rectangular")
            return OperationResult(False, "Only a rectangular selection of cells within one section can be merged.")

        cells = self._grid_utils.get_selected_cells(selection)
        first_cell = cells[0]
        grid = find_ancestor(first_cell, NodeKind.GRID)
        merge_width, merge_height = self._get_merge_dimensions(first_cell, cells)

        with self._document.change() as writer:
            update_numeric_attribute("colspan", merge_width, first_cell, writer)
            update_numeric_attribute("rowspan", merge_height, first_cell, writer)

            for cell in cells[1:]:
                self._merge_cell_into(cell, first_cell, writer)

            remove_empty_rows_columns(grid, self._grid_utils)

        logger.info("Edit OK: merge_cells cells=%d width=%d height=%d", len(cells), merge_width, merge_height)
        return OperationResult(
            True,
            f"Merged {len(cells)} cells.",
            {"cell": first_cell, "colspan": merge_width, "rowspan": merge_height},
        )

    def split_cell(self, selection: Selection,
                   direction: Literal["horizontal", "vertical"] = "vertical") -> OperationResult:
        """Split the selected spanning cell in two.

        ``"vertical"`` divides the columns the cell spans, ``"horizontal"``
        divides its rows. The first part keeps the larger half of the span.
        """
        logger.info("Edit: split_cell direction=%s", direction)
        if direction not in ("horizontal", "vertical"):
            logger.warning("Edit FAIL: split_cell invalid_direction direction=%s", direction)
            return OperationResult(False, f"Unknown split direction '{direction}'.", {"direction": direction})

        cells = self._grid_utils.get_selection_affected_cells(selection)
        if len(cells) != 1:
            logger.warning("Edit FAIL: split_cell cells=%d", len(cells))
            return OperationResult(False, "Select exactly one cell to split.", {"cells": len(cells)})

        cell = cells[0]
        row, column = self._grid_utils.get_cell_location(cell)
        span_key = "colspan" if direction == "vertical" else "rowspan"
        span = get_numeric_attribute(cell, span_key)

        if span < 2:
            logger.warning("Edit FAIL: split_cell no_span direction=%s", direction)
            return OperationResult(False, f"The cell has no {span_key} to split.", {"direction": direction})

        first_part = (span + 1) // 2

        with self._document.change() as writer:
            if direction == "vertical":
                new_cell = split_vertically(cell, column, column + first_part, writer)
            else:
                new_cell = split_horizontally(cell, row + first_part, writer)

        logger.info("Edit OK: split_cell direction=%s row=%d column=%d", direction, row, column)
        return OperationResult(True, "Split the cell in two.", {"cell": cell, "new_cell": new_cell})

    # -------------------------------------------------------------------------
    # Copy
    # -------------------------------------------------------------------------

    def copy_selection(self, selection: Selection) -> OperationResult:
        """Return the selected cells as a new, detached grid in ``details["grid"]``."""
        logger.info("Edit: copy_selection")
        cells = self._grid_utils.get_selected_cells(selection)
        if not cells:
            logger.warning("Edit FAIL: copy_selection no_cells")
            return OperationResult(False, "No cells selected.")

        grid = find_ancestor(cells[0], NodeKind.GRID)
        row_indexes = self._grid_utils.get_row_index_range(cells)
        column_indexes = self._grid_utils.get_column_index_range(cells)

        first_row, last_row = row_indexes.first, row_indexes.last
        first_column, last_column = column_indexes.first, column_indexes.last

        if self._grid_utils.is_selection_rectangular(cells):
            # Extend over spans so the copy keeps whole cells.
            adjusted_last_row = adjust_last_row_index(grid, first_row, first_column, last_row, last_column)
            adjusted_last_column = adjust_last_column_index(grid, first_row, first_column, last_row, last_column)
            last_row, last_column = adjusted_last_row, adjusted_last_column

        with self._document.change() as writer:
            cropped = crop_grid_to_dimensions(grid, first_row, first_column, last_row, last_column, writer)

        logger.info("Edit OK: copy_selection rows=%d..%d columns=%d..%d", first_row, last_row, first_column, last_column)
        return OperationResult(True, f"Copied {len(cells)} cell(s).", {"grid": cropped})

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _get_merge_dimensions(self, first_cell: ET._Element, cells: List[ET._Element]) -> Tuple[int, int]:
        max_width_offset = 0
        max_height_offset = 0

        for cell in cells:
            row, column = self._grid_utils.get_cell_location(cell)
            max_width_offset = max(max_width_offset, column + get_numeric_attribute(cell, "colspan"))
            max_height_offset = max(max_height_offset, row + get_numeric_attribute(cell, "rowspan"))

        first_row, first_column = self._grid_utils.get_cell_location(first_cell)
        return max_width_offset - first_column, max_height_offset - first_row

    @staticmethod
    def _merge_cell_into(cell: ET._Element, target_cell: ET._Element, writer: GridWriter) -> None:
        if not is_cell_content_empty(cell):
            source = get_cell_content(cell)
            target = get_cell_content(target_cell)

            if target is None:
                target = writer.insert_element(NodeKind.CONTENT, target_cell)
            elif is_cell_content_empty(target_cell):
                for child in list(target):
                    writer.remove(child)

            writer.move(Range(Position(source, 0), Position(source, len(source))),
                        writer.create_position_at(target, "end"))

        writer.remove(cell)
