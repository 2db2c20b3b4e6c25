from __future__ import annotations

"""Grid services: the geometry facade and the selection-driven commands.

Services are instantiated directly; collaborators are passed to their
constructors.
"""

from .grid_utils import GridUtils, IndexRange  # noqa: F401
from .grid_editing_service import GridEditingService, OperationResult  # noqa: F401
from .column_properties_service import ColumnPropertiesService  # noqa: F401

__all__: list[str] = [
    "GridUtils",
    "IndexRange",
    "GridEditingService",
    "OperationResult",
    "ColumnPropertiesService",
]
