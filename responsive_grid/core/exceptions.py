from __future__ import annotations

"""Grid engine exception classes.

Range violations and invalid tree insertions are caller-contract errors: they
are raised immediately and never silently clamped. All of them derive from
:class:`GridError` so callers can catch the whole family at once.
"""

from typing import Any, Dict, Optional

__all__ = ["GridError", "GridRangeError", "GridSchemaError"]


class GridError(Exception):
    """Base exception for all grid-related errors.

    Parameters
    ----------
    message
        Human-readable description of the failure.
    operation
        Name of the operation that failed (e.g. ``"insert_rows"``).
    details
        Offending parameters, kept for diagnostics.
    """

    def __init__(self, message: str, operation: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.details = dict(details or {})

    def __str__(self) -> str:
        if self.operation:
            return f"[{self.operation}] {super().__str__()}"
        return super().__str__()


class GridRangeError(GridError):
    """Raised when a row or column index points outside the grid."""
    pass


class GridSchemaError(GridError):
    """Raised when a node would be inserted where the grid model forbids it.

    For example a cell directly inside a grid, or a row inside a cell's
    content container.
    """

    def __init__(self, message: str, parent_tag: Optional[str] = None,
                 child_tag: Optional[str] = None) -> None:
        super().__init__(message, operation="insert",
                         details={"parent": parent_tag, "child": child_tag})
        self.parent_tag = parent_tag
        self.child_tag = child_tag
