"""Sparse cell grid: models and store."""

from .models import (
    Coordinate,
    ValueKind,
    CellValue,
    Cell,
    SelectionRange,
    CellUpdate,
    BatchUpdate,
    SkippedCell,
    UpdateResult,
)
from .store import GridStore, CellWriteRejected

__all__ = [
    "Coordinate",
    "ValueKind",
    "CellValue",
    "Cell",
    "SelectionRange",
    "CellUpdate",
    "BatchUpdate",
    "SkippedCell",
    "UpdateResult",
    "GridStore",
    "CellWriteRejected",
]
