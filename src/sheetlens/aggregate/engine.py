"""Selection aggregate computation (count, sum, average)."""

import logging
import math
from typing import Iterable, Mapping, Optional, Union

from ..config import settings
from ..grid import Cell, Coordinate, GridStore, SelectionRange, ValueKind
from ..grid.models import parse_numeric
from .models import AggregateSummary

logger = logging.getLogger(__name__)

GridSnapshot = Union[GridStore, Mapping[Coordinate, Cell]]

__all__ = ["compute_aggregate", "numeric_value", "parse_numeric", "round_display"]


def round_display(value: float, places: int = 3) -> float:
    """Round half away from zero to a fixed number of decimal places."""
    factor = 10 ** places
    scaled = abs(value) * factor
    if not math.isfinite(scaled):
        # Too large to carry decimals (or already non-finite)
        return value
    scaled = math.floor(scaled + 0.5)
    # + 0.0 turns a negative zero into 0.0
    return math.copysign(scaled, value) / factor + 0.0


def numeric_value(cell: Cell) -> Optional[float]:
    """Return the number a cell contributes to sum/average, if any."""
    if cell.display_value is not None:
        return parse_numeric(cell.display_value)

    value = cell.value
    if value.kind == ValueKind.NUMBER:
        return value.number
    if value.kind == ValueKind.TEXT:
        return parse_numeric(value.text)
    if value.kind == ValueKind.EMPTY:
        return None
    raise ValueError(f"Unknown value kind: {value.kind}")


def compute_aggregate(
    selection: Optional[SelectionRange],
    grid: GridSnapshot,
    precision: Optional[int] = None,
    max_scan_cells: Optional[int] = None,
) -> Optional[AggregateSummary]:
    """
    Compute status bar aggregates for a selection.

    Args:
        selection: The selected range, or None when nothing is selected
        grid: A grid store or a coordinate -> cell mapping
        precision: Decimal places for sum and average (default from settings)
        max_scan_cells: Above this area, only populated cells are visited

    Returns:
        AggregateSummary, or None when the selection covers one cell or less
    """
    if selection is None or selection.cell_count <= 1:
        return None

    precision = settings.aggregate_precision if precision is None else precision
    if max_scan_cells is None:
        max_scan_cells = settings.max_aggregate_cells
    cells = grid.snapshot() if isinstance(grid, GridStore) else grid

    count = 0
    numeric_count = 0
    total = 0.0

    for cell in _cells_in_range(selection, cells, max_scan_cells):
        if cell is None or cell.is_empty:
            continue
        count += 1
        number = numeric_value(cell)
        if number is not None:
            total += number
            numeric_count += 1

    average = total / numeric_count if numeric_count else 0.0

    return AggregateSummary(
        cell_count=selection.cell_count,
        count=count,
        numeric_count=numeric_count,
        sum=round_display(total, precision),
        average=round_display(average, precision),
    )


def _cells_in_range(
    selection: SelectionRange,
    cells: Mapping[Coordinate, Cell],
    max_scan_cells: int,
) -> Iterable[Optional[Cell]]:
    if selection.cell_count > max_scan_cells:
        logger.debug(
            f"Selection {selection.a1} exceeds {max_scan_cells} cells, "
            f"scanning {len(cells)} populated cells instead"
        )
        return (cell for coordinate, cell in cells.items() if selection.contains(coordinate))
    return (cells.get(coordinate) for coordinate in selection.coordinates())
