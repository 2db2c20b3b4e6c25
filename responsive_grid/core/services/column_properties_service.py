from __future__ import annotations

"""Responsive column properties of grid cells.

Each cell may carry one width per breakpoint (``col``, ``colSM``, ``colMD``,
``colLG``, ``colXL``, ``colXXL``). A value is a number of columns from 0 to
12; the default value of a breakpoint is never stored on the cell.
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Union

from lxml import etree as ET

from responsive_grid.config import ConfigManager
from responsive_grid.core.document import Selection
from responsive_grid.core.models import BREAKPOINT_ATTRIBUTES
from responsive_grid.core.services.grid_editing_service import OperationResult
from responsive_grid.core.services.grid_utils import GridUtils

__all__ = ["normalize_default_properties", "ColumnPropertiesService"]

logger = logging.getLogger(__name__)

_COLUMN_VALUE_PATTERN = re.compile(r"^(0|[1-9]|1[0-2])$")


def normalize_default_properties(config: Optional[Mapping[str, Any]] = None) -> Dict[str, str]:
    """Return one default value per breakpoint, as strings.

    Breakpoints missing from *config* default to ``"0"``; unknown keys are
    ignored.
    """
    normalized = {attribute: "0" for attribute in BREAKPOINT_ATTRIBUTES}
    for key, value in (config or {}).items():
        if key in normalized and value is not None and str(value) != "":
            normalized[key] = str(value)
    return normalized


class ColumnPropertiesService:
    """Reads and writes breakpoint widths on the selected cells.

    Parameters
    ----------
    grid_utils
        Facade used to resolve the selection and to open change scopes.
    default_properties
        Default value per breakpoint. Taken from the ``grid`` configuration
        section when omitted.
    """

    def __init__(self, grid_utils: GridUtils, default_properties: Optional[Mapping[str, Any]] = None) -> None:
        self._grid_utils = grid_utils
        grid_config = ConfigManager().get_grid_config()
        if default_properties is None:
            default_properties = grid_config.get("default_properties")
        self._defaults = normalize_default_properties(default_properties)
        self._allowed_values = self._load_allowed_values(grid_config.get("column_values"))

    @property
    def default_properties(self) -> Dict[str, str]:
        return dict(self._defaults)

    def is_enabled(self, selection: Selection) -> bool:
        """True when the selection touches at least one cell."""
        return bool(self._grid_utils.get_selection_affected_cells(selection))

    def get_value(self, selection: Selection, attribute: str) -> Optional[str]:
        """Return the value shared by every affected cell.

        None is returned when the cells disagree, when nothing is selected
        and when the shared value is the breakpoint default.
        """
        self._check_attribute(attribute)
        cells = self._grid_utils.get_selection_affected_cells(selection)
        if not cells:
            return None

        first_value = self._get_attribute(cells[0], attribute)
        if all(self._get_attribute(cell, attribute) == first_value for cell in cells):
            return first_value
        return None

    def set_property(self, selection: Selection, attribute: str,
                     value: Optional[Union[str, int]] = None) -> OperationResult:
        """Set *attribute* on every affected cell.

        An empty value, or the breakpoint default, removes the attribute.
        """
        logger.info("Edit: set_property attribute=%s value=%s", attribute, value)
        if attribute not in BREAKPOINT_ATTRIBUTES:
            logger.warning("Edit FAIL: set_property unknown_attribute attribute=%s", attribute)
            return OperationResult(False, f"Unknown column property '{attribute}'.", {"attribute": attribute})

        value_to_set = self._get_value_to_set(attribute, value)
        if value_to_set is not None and not self._is_allowed(value_to_set):
            logger.warning("Edit FAIL: set_property invalid_value attribute=%s value=%s", attribute, value)
            return OperationResult(
                False,
                f"Invalid value '{value}' for '{attribute}'; expected a number from 0 to 12.",
                {"attribute": attribute, "value": value},
            )

        cells = self._grid_utils.get_selection_affected_cells(selection)
        if not cells:
            logger.warning("Edit FAIL: set_property no_cells attribute=%s", attribute)
            return OperationResult(False, "Nothing selected in a grid.", {"attribute": attribute})

        with self._grid_utils.document.change() as writer:
            for cell in cells:
                if value_to_set is not None:
                    writer.set_attribute(attribute, value_to_set, cell)
                else:
                    writer.remove_attribute(attribute, cell)

        logger.info("Edit OK: set_property attribute=%s value=%s cells=%d", attribute, value_to_set, len(cells))
        return OperationResult(
            True,
            f"Updated '{attribute}' on {len(cells)} cell(s).",
            {"attribute": attribute, "value": value_to_set, "cells": len(cells)},
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_attribute(self, cell: ET._Element, attribute: str) -> Optional[str]:
        value = cell.get(attribute)
        if value == self._defaults[attribute]:
            return None
        return value

    def _get_value_to_set(self, attribute: str, value: Optional[Union[str, int]]) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        if text == "" or text == self._defaults[attribute]:
            return None
        return text

    def _is_allowed(self, value: str) -> bool:
        if self._allowed_values is not None:
            return value in self._allowed_values
        return bool(_COLUMN_VALUE_PATTERN.match(value))

    @staticmethod
    def _load_allowed_values(column_values: Any) -> Optional[List[str]]:
        if not column_values:
            return None
        return [str(item) for item in column_values]

    @staticmethod
    def _check_attribute(attribute: str) -> None:
        if attribute not in BREAKPOINT_ATTRIBUTES:
            raise ValueError(f"Unknown column property '{attribute}'")
