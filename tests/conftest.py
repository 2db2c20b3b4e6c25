"""Test configuration and fixtures for the grid engine tests.

Grids are described row by row with a compact cell notation:

- ``"a"``       a 1x1 cell whose paragraph text is ``a``
- ``"a/c2"``    the same cell spanning two columns
- ``"a/r2c3"``  spanning two rows and three columns

:func:`grid_layout` renders a grid back into the same notation, with cells
created by the engine (placeholder text) shown as ``"_"``.
"""

import os
import re
import sys
import tempfile
import logging
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

# Ensure project root is importable when running pytest from repository root
sys.path.insert(0, str(Path(__file__).parent.parent))

# Keep per-user overrides out of the test run
os.environ["RESPONSIVE_GRID_CONFIG_DIR"] = os.path.join(
    tempfile.gettempdir(), "responsive-grid-tests-no-user-config"
)

from lxml import etree as ET

from responsive_grid.config import ConfigManager
from responsive_grid.core.document import GridDocument
from responsive_grid.core.models import CELL_TAG, CONTENT_TAG, GRID_TAG, PARAGRAPH_TAG, ROW_TAG, get_rows
from responsive_grid.core.services import ColumnPropertiesService, GridEditingService, GridUtils
from responsive_grid.core.utils import DEFAULT_EMPTY_CELL_TEXT, get_cell_text

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

_CELL_SPEC = re.compile(r"^(?P<name>[^/]+)(?:/(?:r(?P<rowspan>\d+))?(?:c(?P<colspan>\d+))?)?$")


def _parse_cell_spec(spec: str):
    match = _CELL_SPEC.match(spec)
    if match is None:
        raise ValueError(f"Bad cell spec {spec!r}")
    return match.group("name"), int(match.group("rowspan") or 1), int(match.group("colspan") or 1)


def make_grid(parent: ET._Element, rows: Sequence[Sequence[str]],
              heading_rows: int = 0, heading_columns: int = 0) -> ET._Element:
    """Append a grid built from the compact notation to *parent*."""
    grid = ET.SubElement(parent, GRID_TAG)
    if heading_rows:
        grid.set("headingRows", str(heading_rows))
    if heading_columns:
        grid.set("headingColumns", str(heading_columns))

    for row_spec in rows:
        row = ET.SubElement(grid, ROW_TAG)
        for spec in row_spec:
            name, rowspan, colspan = _parse_cell_spec(spec)
            cell = ET.SubElement(row, CELL_TAG)
            if rowspan > 1:
                cell.set("rowspan", str(rowspan))
            if colspan > 1:
                cell.set("colspan", str(colspan))
            content = ET.SubElement(cell, CONTENT_TAG)
            paragraph = ET.SubElement(content, PARAGRAPH_TAG)
            paragraph.text = name
    return grid


def grid_layout(grid: ET._Element) -> List[List[str]]:
    """Render *grid* in the compact notation."""
    layout = []
    for row in get_rows(grid):
        specs = []
        for cell in row:
            text = get_cell_text(cell)
            name = "_" if text == DEFAULT_EMPTY_CELL_TEXT else text
            rowspan = int(cell.get("rowspan", "1"))
            colspan = int(cell.get("colspan", "1"))
            suffix = ""
            if rowspan > 1:
                suffix += f"r{rowspan}"
            if colspan > 1:
                suffix += f"c{colspan}"
            specs.append(f"{name}/{suffix}" if suffix else name)
        layout.append(specs)
    return layout


def find_cell(grid: ET._Element, name: str) -> Optional[ET._Element]:
    """Return the cell whose text is *name*."""
    for row in get_rows(grid):
        for cell in row:
            if get_cell_text(cell) == name:
                return cell
    return None


@pytest.fixture(autouse=True)
def fresh_config():
    """Reload configuration for every test."""
    ConfigManager.reset()
    yield
    ConfigManager.reset()


@pytest.fixture
def document():
    return GridDocument()


@pytest.fixture
def grid_utils(document):
    return GridUtils(document)


@pytest.fixture
def editing_service(grid_utils):
    return GridEditingService(grid_utils)


@pytest.fixture
def column_properties_service(grid_utils):
    return ColumnPropertiesService(grid_utils)


@pytest.fixture
def build_grid(document):
    """Factory appending a grid in compact notation to the document root."""
    def _build(rows, heading_rows=0, heading_columns=0):
        return make_grid(document.root, rows, heading_rows, heading_columns)
    return _build


@pytest.fixture
def layout():
    return grid_layout


@pytest.fixture
def cell():
    return find_cell
