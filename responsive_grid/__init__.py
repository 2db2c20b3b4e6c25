"""Top-level package of the responsive grid engine.

Front-ends should only depend on the public API exposed here rather than
importing internal modules directly.
"""

from .core.document import GridDocument, Selection  # re-export for convenience
from .core.exceptions import GridError, GridRangeError, GridSchemaError
from .core.services import ColumnPropertiesService, GridEditingService, GridUtils, OperationResult
from .core.walker import GridWalker

__all__: list[str] = [
    "GridDocument",
    "Selection",
    "GridError",
    "GridRangeError",
    "GridSchemaError",
    "GridUtils",
    "GridEditingService",
    "ColumnPropertiesService",
    "OperationResult",
    "GridWalker",
]
