"""Sparse in-memory cell store."""

import csv
import io
import logging
import threading
from typing import Any, Callable, Iterable, Iterator, Optional

from ..config import settings
from .models import (
    BatchUpdate,
    Cell,
    CellUpdate,
    CellValue,
    Coordinate,
    SkippedCell,
    UpdateResult,
    ValueKind,
)

logger = logging.getLogger(__name__)

GridObserver = Callable[[UpdateResult], None]


class CellWriteRejected(Exception):
    """Raised when the store refuses to write a cell."""

    def __init__(self, coordinate: Coordinate, reason: str):
        super().__init__(f"Cannot write {coordinate.a1}: {reason}")
        self.coordinate = coordinate
        self.reason = reason


class GridStore:
    """
    Sparse mapping from coordinate to cell.

    Reads see a consistent snapshot: batch writes build a new mapping and
    swap it in under the lock, so a reader observes either the grid before
    the batch or the grid after it, never a mix.
    """

    def __init__(
        self,
        cells: Optional[dict[Coordinate, Cell]] = None,
        max_cols: Optional[int] = None,
        max_rows: Optional[int] = None,
        max_cell_chars: Optional[int] = None,
    ):
        self._cells: dict[Coordinate, Cell] = dict(cells or {})
        self._lock = threading.Lock()
        self._observers: list[GridObserver] = []
        self.max_cols = settings.max_grid_cols if max_cols is None else max_cols
        self.max_rows = settings.max_grid_rows if max_rows is None else max_rows
        self.max_cell_chars = settings.max_cell_chars if max_cell_chars is None else max_cell_chars

    @classmethod
    def from_values(cls, values: dict[str, Any], **kwargs) -> "GridStore":
        """Build a store from an A1 -> raw value mapping."""
        store = cls(**kwargs)
        for ref, raw in values.items():
            value = CellValue.from_input(raw)
            if not value.is_empty:
                store._cells[Coordinate.from_a1(ref)] = Cell(value=value)
        return store

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, coordinate: Coordinate) -> bool:
        return coordinate in self._cells

    def get(self, coordinate: Coordinate) -> Optional[Cell]:
        """Get the cell at a coordinate, or None if it is not populated."""
        return self._cells.get(coordinate)

    def snapshot(self) -> dict[Coordinate, Cell]:
        """Return a point-in-time copy of the populated cells."""
        with self._lock:
            return dict(self._cells)

    def iterate(self) -> Iterator[tuple[Coordinate, Cell]]:
        """Yield populated cells in row-major order from a single snapshot."""
        cells = self.snapshot()
        for coordinate in sorted(cells, key=lambda c: c.sort_key):
            yield coordinate, cells[coordinate]

    def put_cell(self, coordinate: Coordinate, cell: Cell):
        """Place a fully-formed cell (formula, protection) without write checks."""
        with self._lock:
            cells = dict(self._cells)
            cells[coordinate] = cell
            self._cells = cells

    def check_write(self, update: CellUpdate) -> Optional[str]:
        """Return the reason a write would be rejected, or None if allowed."""
        coordinate = update.coordinate
        if coordinate.col >= self.max_cols or coordinate.row >= self.max_rows:
            return "outside grid bounds"

        existing = self._cells.get(coordinate)
        if existing is not None:
            if existing.protected:
                return "cell is protected"
            if existing.has_formula:
                return "cell contains a formula"

        value = update.new_value
        if value.kind == ValueKind.TEXT and len(value.text) > self.max_cell_chars:
            return f"text exceeds {self.max_cell_chars} characters"
        return None

    def set(self, coordinate: Coordinate, raw_value: Any) -> UpdateResult:
        """
        Write a single cell.

        Raises:
            CellWriteRejected: If the cell may not be written
        """
        update = CellUpdate(coordinate=coordinate, new_value=CellValue.from_input(raw_value))
        with self._lock:
            reason = self.check_write(update)
            if reason:
                raise CellWriteRejected(coordinate, reason)
            result = self._swap([update], description=f"Set {coordinate.a1}")
        return self._publish(result)

    def set_many(self, updates: Iterable[CellUpdate], description: str = "") -> UpdateResult:
        """
        Apply a group of writes atomically.

        Rejected writes are reported in ``skipped`` and do not stop the
        remaining writes from being applied. Validation and the swap happen
        under one hold of the lock.
        """
        accepted: list[CellUpdate] = []
        skipped: list[SkippedCell] = []

        with self._lock:
            for update in updates:
                reason = self.check_write(update)
                if reason:
                    skipped.append(SkippedCell(coordinate=update.coordinate, reason=reason))
                else:
                    accepted.append(update)
            result = self._swap(accepted, description=description, skipped=skipped)

        return self._publish(result)

    def apply_batch(self, batch: BatchUpdate) -> UpdateResult:
        """Apply a BatchUpdate; the default mutation sink for replacements."""
        return self.set_many(batch.updates, description=batch.description)

    def subscribe(self, observer: GridObserver) -> Callable[[], None]:
        """Register a callback for committed writes. Returns an unsubscribe function."""
        self._observers.append(observer)

        def unsubscribe():
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def load_csv(self, text: str) -> int:
        """
        Replace the grid contents with parsed CSV text.

        Returns:
            Number of populated cells after loading
        """
        cells: dict[Coordinate, Cell] = {}
        for row_index, row in enumerate(csv.reader(io.StringIO(text))):
            for col_index, field in enumerate(row):
                if row_index >= self.max_rows or col_index >= self.max_cols:
                    continue
                value = CellValue.from_input(field)
                if not value.is_empty:
                    cells[Coordinate(col=col_index, row=row_index)] = Cell(value=value)

        with self._lock:
            touched = set(self._cells) | set(cells)
            self._cells = cells

        logger.info(f"Loaded {len(cells)} cells from CSV")
        self._notify(
            UpdateResult(
                updated=sorted(touched, key=lambda c: c.sort_key),
                description="Load CSV",
            )
        )
        return len(cells)

    def _swap(
        self,
        updates: list[CellUpdate],
        description: str,
        skipped: Optional[list[SkippedCell]] = None,
    ) -> UpdateResult:
        # Caller holds self._lock
        result = UpdateResult(description=description, skipped=skipped or [])
        if not updates:
            return result

        cells = dict(self._cells)
        for update in updates:
            if update.new_value.is_empty:
                cells.pop(update.coordinate, None)
            else:
                cells[update.coordinate] = Cell(value=update.new_value)
            result.updated.append(update.coordinate)
        self._cells = cells
        return result

    def _publish(self, result: UpdateResult) -> UpdateResult:
        if result.updated:
            logger.debug(f"Committed {result.updated_cells} cell writes ({result.description})")
            self._notify(result)
        return result

    def _notify(self, result: UpdateResult):
        for observer in list(self._observers):
            observer(result)
