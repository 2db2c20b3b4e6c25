import pytest
from lxml import etree as ET

from responsive_grid.core.models import get_rows
from responsive_grid.core.structure import (
    adjust_last_column_index,
    adjust_last_row_index,
    crop_grid_to_dimensions,
    get_horizontally_overlapping_cells,
    get_vertically_overlapping_cells,
    remove_empty_columns,
    remove_empty_rows,
    remove_empty_rows_columns,
    split_horizontally,
    split_vertically,
    trim_cell_if_needed,
)
from responsive_grid.core.utils import get_cell_text
from responsive_grid.core.walker import GridWalker

#     0   1   2   3   4
#   +---+---+---+---+---+
# 0 | a | b | c | d | e |
#   +---+---+   +---+---+
# 1 | f     |   | g     |
#   +---+---+---+---+---+
# 2 | h | i     | j | k |
#   +---+       +---+   +
# 3 | l |       | m |   |
#   +---+---+---+   +---+
# 4 | n | o | p |   | q |
#   +---+---+---+---+---+
CROP_ROWS = [
    ["a", "b", "c/r2", "d", "e"],
    ["f/c2", "g/c2"],
    ["h", "i/r2c2", "j", "k/r2"],
    ["l", "m/r2"],
    ["n", "o", "p", "q"],
]

#   +---+---+---+---+---+
# 0 | a | b | c | d | e |
#   |   +---+---+---+---+
# 1 |   | f | g | h | i |
#   +---+   +---+---+   |
# 2 | j |   | k | l |   |
#   |   |   |   +---+---+
# 3 |   |   |   | m | n |
#   +---+---+   |   +---+
# 4 | o | p |   |   | q |
#   +---+---+---+---+---+
OVERLAP_ROWS = [
    ["a/r2", "b", "c", "d", "e"],
    ["f/r3", "g", "h", "i/r2"],
    ["j/r2", "k/r3", "l"],
    ["m/r2", "n"],
    ["o", "p", "q"],
]


def _names(slots):
    return [get_cell_text(slot.cell) for slot in slots]


class TestCrop:
    def test_crop_fills_gaps_and_trims_spans(self, document, build_grid, layout):
        grid = build_grid(CROP_ROWS)

        with document.change() as writer:
            cropped = crop_grid_to_dimensions(grid, 1, 1, 3, 3, writer)

        assert cropped.getparent() is None
        assert layout(cropped) == [["_", "_", "g"], ["i/r2c2", "j"], ["m"]]
        assert layout(grid) == [
            ["a", "b", "c/r2", "d", "e"],
            ["f/c2", "g/c2"],
            ["h", "i/r2c2", "j", "k/r2"],
            ["l", "m/r2"],
            ["n", "o", "p", "q"],
        ]

    @pytest.mark.parametrize(
        "start_row, start_column, end_row, end_column",
        [(0, 0, 4, 4), (0, 0, 0, 0), (1, 0, 2, 2), (2, 2, 4, 4), (3, 1, 4, 3), (0, 3, 2, 4)],
    )
    def test_cropped_cells_stay_inside_bounds(self, document, build_grid,
                                              start_row, start_column, end_row, end_column):
        grid = build_grid(CROP_ROWS)

        with document.change() as writer:
            cropped = crop_grid_to_dimensions(grid, start_row, start_column, end_row, end_column, writer)

        height = end_row - start_row + 1
        width = end_column - start_column + 1
        slots = list(GridWalker(cropped, include_all_slots=True))

        assert len(get_rows(cropped)) == height
        assert len(slots) == height * width
        for slot in slots:
            assert slot.cell_anchor_row + slot.cell_height <= height
            assert slot.cell_anchor_column + slot.cell_width <= width

    def test_crop_adjusts_headings(self, document, build_grid):
        grid = build_grid([["a", "b", "c"], ["d", "e", "f"], ["g", "h", "i"]], heading_rows=2, heading_columns=1)

        with document.change() as writer:
            cropped = crop_grid_to_dimensions(grid, 1, 1, 2, 2, writer)

        assert cropped.get("headingRows") == "1"
        assert cropped.get("headingColumns") is None


class TestOverlaps:
    def test_vertically_overlapping_cells(self, build_grid):
        grid = build_grid(OVERLAP_ROWS)

        assert _names(get_vertically_overlapping_cells(grid, 3)) == ["f", "j", "k"]

    def test_vertically_overlapping_cells_from_start_row(self, build_grid):
        grid = build_grid(OVERLAP_ROWS)

        assert _names(get_vertically_overlapping_cells(grid, 3, start_row=2)) == ["j", "k"]

    def test_horizontally_overlapping_cells(self, build_grid):
        grid = build_grid(CROP_ROWS)

        assert _names(get_horizontally_overlapping_cells(grid, 1)) == ["f"]
        assert _names(get_horizontally_overlapping_cells(grid, 2)) == ["i"]
        assert _names(get_horizontally_overlapping_cells(grid, 4)) == ["g"]
        assert get_horizontally_overlapping_cells(grid, 0) == []


class TestSplit:
    def test_split_horizontally_leaves_upper_part_in_place(self, document, build_grid, layout, cell):
        grid = build_grid([["a/r3", "b"], ["c"], ["d"]])

        with document.change() as writer:
            new_cell = split_horizontally(cell(grid, "a"), 1, writer)

        assert layout(grid) == [["a", "b"], ["_/r2", "c"], ["d"]]
        assert get_rows(grid)[1][0] is new_cell

    def test_split_horizontally_near_the_bottom(self, document, build_grid, layout, cell):
        grid = build_grid([["a/r3c2", "b"], ["c"], ["d"]])

        with document.change() as writer:
            split_horizontally(cell(grid, "a"), 2, writer)

        assert layout(grid) == [["a/r2c2", "b"], ["c"], ["_/c2", "d"]]

    @pytest.mark.parametrize("split_row", [0, 3, 5])
    def test_split_horizontally_outside_cell(self, document, build_grid, layout, cell, split_row):
        grid = build_grid([["a/r3", "b"], ["c"], ["d"]])

        with document.change() as writer:
            assert split_horizontally(cell(grid, "a"), split_row, writer) is None

        assert layout(grid) == [["a/r3", "b"], ["c"], ["d"]]

    def test_split_vertically(self, document, build_grid, layout, cell):
        grid = build_grid([["x", "a/r2c3", "b"], ["y", "c"]])

        with document.change() as writer:
            new_cell = split_vertically(cell(grid, "a"), 1, 3, writer)

        assert layout(grid) == [["x", "a/r2c2", "_/r2", "b"], ["y", "c"]]
        assert get_rows(grid)[0][2] is new_cell

    def test_trim_cell_if_needed(self, document, build_grid, layout, cell):
        grid = build_grid([["a/r3c3"], [], []])

        with document.change() as writer:
            trim_cell_if_needed(cell(grid, "a"), 0, 0, 1, 0, writer)

        assert layout(grid)[0] == ["a/r2"]


class TestPruning:
    def test_remove_empty_rows_columns(self, build_grid, layout, grid_utils):
        # +----+----+----+----+
        # | 00      | 02      |
        # +----+----+         +
        # | 10      |         |
        # +----+----+----+----+
        # | 20      | 22 | 23 |
        # +         +    +    +
        # |         |    |    | <-- empty row
        # +----+----+----+----+
        #         ^--- empty column
        grid = build_grid([["00/c2", "02/r2c2"], ["10/c2"], ["20/r2c2", "22/r2", "23/r2"], []])

        remove_empty_rows_columns(grid, grid_utils)

        assert layout(grid) == [["00", "02/r2c2"], ["10"], ["20", "22", "23"]]

    def test_pruning_is_idempotent(self, document, build_grid, grid_utils):
        grid = build_grid([["a/r2c2", "b/r2c2"], [], ["c", "d/c3"]])

        remove_empty_rows_columns(grid, grid_utils)
        once = ET.tostring(grid)
        changes = document.change_count

        remove_empty_rows_columns(grid, grid_utils)

        assert ET.tostring(grid) == once
        assert document.change_count == changes

    def test_nothing_to_prune(self, build_grid, grid_utils):
        grid = build_grid([["a", "b"], ["c", "d"]])

        assert remove_empty_columns(grid, grid_utils) is False
        assert remove_empty_rows(grid, grid_utils) is False

    def test_remove_empty_rows_cascades_through_pruning(self, build_grid, layout, grid_utils):
        grid = build_grid([["a/r4", "b/r2"], [], ["c/r2"], []])

        assert remove_empty_rows(grid, grid_utils) is True
        assert layout(grid) == [["a/r2", "b"], ["c"]]


class TestAdjustLastIndexes:
    #   +---+---+---+---+
    # 0 | a | b | c | d |
    #   +   +---+---+---+
    # 1 |   | e | f | g |
    #   +   +---+   +---+
    # 2 |   | h |   | i |
    #   +   +   +   +   +
    # 3 |   |   |   |   |
    #   +---+---+---+---+
    ROWS = [["a/r4", "b", "c", "d"], ["e", "f/r3", "g"], ["h/r2", "i/r2"], []]

    def test_last_row_extended_over_spans(self, build_grid):
        grid = build_grid(self.ROWS)
        assert adjust_last_row_index(grid, 1, 1, 2, 3) == 3

    def test_last_row_unchanged_without_spans(self, build_grid):
        grid = build_grid(self.ROWS)
        assert adjust_last_row_index(grid, 0, 1, 1, 3) == 1

    def test_last_column_extended_over_spans(self, build_grid):
        grid = build_grid([["a", "b/c2"], ["c", "d/c2"]])

        assert adjust_last_column_index(grid, 0, 0, 1, 1) == 2
        assert adjust_last_column_index(grid, 0, 0, 1, 0) == 0
