from __future__ import annotations

"""Small reusable helpers shared by the walker consumers.

These helpers contain no traversal logic; they create cells and normalise
numeric attributes through an explicit :class:`GridWriter`.
"""

from typing import Any, Dict, Optional
import logging

from lxml import etree as ET

from responsive_grid.config import ConfigManager
from responsive_grid.core.document import GridWriter, Position
from responsive_grid.core.models import (
    PARAGRAPH_TAG,
    NodeKind,
    get_cell_content,
    node_kind,
)

__all__ = [
    "DEFAULT_EMPTY_CELL_TEXT",
    "empty_cell_text",
    "update_numeric_attribute",
    "create_empty_cell",
    "create_cells",
    "create_empty_rows",
    "is_cell_content_empty",
    "get_cell_text",
]

logger = logging.getLogger(__name__)

DEFAULT_EMPTY_CELL_TEXT = "Content goes here."


def empty_cell_text() -> str:
    """Return the placeholder text put in freshly created cells."""
    text = ConfigManager().get_grid_config().get("empty_cell_text")
    return DEFAULT_EMPTY_CELL_TEXT if text is None else str(text)


def update_numeric_attribute(key: str, value: Optional[int], item: ET._Element, writer: GridWriter,
                             default_value: int = 1) -> None:
    """Set a numeric attribute, or remove it when not above *default_value*.

    Spans equal to 1 and heading counts equal to 0 are never stored.
    """
    if value is not None and value > default_value:
        writer.set_attribute(key, value, item)
    else:
        writer.remove_attribute(key, item)


def create_empty_cell(writer: GridWriter, insert_position: Position,
                      attributes: Optional[Dict[str, Any]] = None) -> ET._Element:
    """Create a cell with a content container holding one placeholder paragraph.

    Parameters
    ----------
    writer
        The active writer.
    insert_position
        Where the new cell goes.
    attributes
        Cell attributes such as ``colspan``/``rowspan``.

    Returns
    -------
    lxml element
        The inserted cell.
    """
    cell = writer.create_element(NodeKind.CELL, attributes)
    content = writer.create_element(NodeKind.CONTENT)
    paragraph = writer.create_element(PARAGRAPH_TAG)

    writer.append_text(empty_cell_text(), paragraph)
    writer.append(paragraph, content)
    writer.append(content, cell)
    writer.insert(cell, insert_position)

    return cell


def create_cells(count: int, writer: GridWriter, insert_position: Position,
                 attributes: Optional[Dict[str, Any]] = None) -> None:
    """Create *count* flat cells at *insert_position*, in order."""
    for offset in range(count):
        position = Position(insert_position.parent, insert_position.offset + offset)
        create_empty_cell(writer, position, attributes)


def create_empty_rows(writer: GridWriter, grid: ET._Element, insert_at: int, rows: int, columns: int) -> None:
    """Insert *rows* rows of *columns* flat cells before row *insert_at*.

    *insert_at* is a logical row index; stray non-row children of the grid
    are not counted.
    """
    row_elements = [child for child in grid if node_kind(child) is NodeKind.ROW]
    if insert_at < len(row_elements):
        position = writer.create_position_before(row_elements[insert_at])
    elif row_elements:
        position = writer.create_position_after(row_elements[-1])
    else:
        position = writer.create_position_at(grid, 0)

    for offset in range(rows):
        row = writer.create_element(NodeKind.ROW)
        writer.insert(row, Position(position.parent, position.offset + offset))
        create_cells(columns, writer, writer.create_position_at(row, "end"))


def is_cell_content_empty(cell: ET._Element) -> bool:
    """True when the cell holds nothing but empty paragraphs."""
    content = get_cell_content(cell)
    if content is None:
        return True
    for child in content:
        if len(child) or (child.text or "").strip():
            return False
    return (content.text or "").strip() == ""


def get_cell_text(cell: ET._Element) -> str:
    """Return the concatenated text of a cell's content."""
    content = get_cell_content(cell)
    if content is None:
        return ""
    return "".join(content.itertext())

