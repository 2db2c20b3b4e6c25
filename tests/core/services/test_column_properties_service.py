import pytest

from responsive_grid.config import ConfigManager
from responsive_grid.core.document import Selection
from responsive_grid.core.services.column_properties_service import (
    ColumnPropertiesService,
    normalize_default_properties,
)


def _on(grid, cell, *names):
    return Selection.on(*[cell(grid, name) for name in names])


class TestNormalizeDefaultProperties:
    def test_missing_breakpoints_default_to_zero(self):
        assert normalize_default_properties(None) == {
            "col": "0", "colSM": "0", "colMD": "0", "colLG": "0", "colXL": "0", "colXXL": "0",
        }

    def test_given_values_are_kept_as_strings(self):
        normalized = normalize_default_properties({"colMD": 6, "colXL": "", "bogus": "3"})

        assert normalized["colMD"] == "6"
        assert normalized["colXL"] == "0"
        assert "bogus" not in normalized


class TestColumnProperties:
    def test_is_enabled(self, build_grid, column_properties_service, cell):
        grid = build_grid([["a"]])

        assert column_properties_service.is_enabled(_on(grid, cell, "a"))
        assert not column_properties_service.is_enabled(Selection())

    def test_set_and_read_value(self, document, build_grid, column_properties_service, cell):
        grid = build_grid([["a", "b"]])
        selection = _on(grid, cell, "a", "b")

        result = column_properties_service.set_property(selection, "colMD", 6)

        assert result.success
        assert result.details == {"attribute": "colMD", "value": "6", "cells": 2}
        assert cell(grid, "a").get("colMD") == "6"
        assert cell(grid, "b").get("colMD") == "6"
        assert column_properties_service.get_value(selection, "colMD") == "6"
        assert document.change_count == 1

    def test_default_value_removes_attribute(self, build_grid, column_properties_service, cell):
        grid = build_grid([["a"]])
        selection = _on(grid, cell, "a")
        column_properties_service.set_property(selection, "col", "4")

        assert column_properties_service.set_property(selection, "col", "0").success
        assert cell(grid, "a").get("col") is None

        column_properties_service.set_property(selection, "col", "4")
        assert column_properties_service.set_property(selection, "col").success
        assert cell(grid, "a").get("col") is None

    def test_value_differs_between_cells(self, build_grid, column_properties_service, cell):
        grid = build_grid([["a", "b"]])
        column_properties_service.set_property(_on(grid, cell, "a"), "colLG", 3)

        assert column_properties_service.get_value(_on(grid, cell, "a", "b"), "colLG") is None
        assert column_properties_service.get_value(_on(grid, cell, "a"), "colLG") == "3"

    def test_stored_default_reads_as_none(self, build_grid, column_properties_service, cell):
        grid = build_grid([["a"]])
        cell(grid, "a").set("colSM", "0")

        assert column_properties_service.get_value(_on(grid, cell, "a"), "colSM") is None

    @pytest.mark.parametrize("value", [13, "-1", "six", "1.5"])
    def test_rejects_invalid_values(self, build_grid, column_properties_service, cell, value):
        grid = build_grid([["a"]])

        result = column_properties_service.set_property(_on(grid, cell, "a"), "colXL", value)

        assert not result.success
        assert cell(grid, "a").get("colXL") is None

    def test_rejects_unknown_attribute(self, build_grid, column_properties_service, cell):
        grid = build_grid([["a"]])

        assert not column_properties_service.set_property(_on(grid, cell, "a"), "width", 3).success
        with pytest.raises(ValueError):
            column_properties_service.get_value(_on(grid, cell, "a"), "width")

    def test_set_without_cells(self, column_properties_service):
        assert not column_properties_service.set_property(Selection(), "col", 3).success


class TestConfiguredDefaults:
    def test_defaults_and_values_from_user_config(self, tmp_path, monkeypatch, grid_utils, build_grid, cell):
        (tmp_path / "default_grid.yml").write_text(
            "column_values: [1, 2, 3, 12]\ndefault_properties:\n  col: '12'\n",
            encoding="utf-8",
        )
        monkeypatch.setenv("RESPONSIVE_GRID_CONFIG_DIR", str(tmp_path))
        ConfigManager.reset()
        service = ColumnPropertiesService(grid_utils)
        grid = build_grid([["a"]])
        selection = _on(grid, cell, "a")

        assert service.default_properties["col"] == "12"
        assert service.default_properties["colSM"] == "0"
        assert not service.set_property(selection, "colSM", 6).success
        assert service.set_property(selection, "colSM", 3).success
        assert service.set_property(selection, "col", 12).success
        assert cell(grid, "a").get("col") is None

    def test_explicit_defaults_win(self, grid_utils):
        service = ColumnPropertiesService(grid_utils, default_properties={"colXXL": "2"})

        assert service.default_properties["colXXL"] == "2"
