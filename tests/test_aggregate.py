"""Tests for selection aggregates."""

import logging
import math

import pytest

from sheetlens.aggregate import AggregateSummary, compute_aggregate, numeric_value, round_display
from sheetlens.grid import Cell, CellValue, Coordinate, GridStore, SelectionRange


def selection(notation: str) -> SelectionRange:
    return SelectionRange.from_a1(notation)


class TestRoundDisplay:
    """Test half-away-from-zero rounding."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0.9999999, 1.0),
            (2.0625, 2.063),
            (-2.0625, -2.063),
            (2.5, 2.5),
            (8.5, 8.5),
            (1 / 3, 0.333),
            (-0.0001, 0.0),
        ],
    )
    def test_rounding(self, value, expected):
        assert round_display(value) == expected

    def test_negative_zero_normalized(self):
        assert str(round_display(-0.0001)) == "0.0"

    def test_places(self):
        assert round_display(3.14159, 2) == 3.14

    def test_values_too_large_to_scale_pass_through(self):
        assert round_display(1e306) == 1e306
        assert round_display(-1e306) == -1e306
        assert round_display(math.inf) == math.inf


class TestComputeAggregate:
    """Test compute_aggregate."""

    def test_mixed_column(self, numbers_grid):
        """5, "3.5", "abc" and an empty cell."""
        summary = compute_aggregate(selection("A1:A4"), numbers_grid)

        assert summary.count == 3
        assert summary.numeric_count == 2
        assert summary.sum == 8.5
        assert summary.average == 4.25
        assert summary.cell_count == 4
        assert summary.show_numeric is True

    def test_single_cell_not_applicable(self, numbers_grid):
        assert compute_aggregate(selection("A1"), numbers_grid) is None

    def test_no_selection_not_applicable(self, numbers_grid):
        assert compute_aggregate(None, numbers_grid) is None

    def test_empty_range(self):
        summary = compute_aggregate(selection("C3:D9"), GridStore())

        assert summary.count == 0
        assert summary.numeric_count == 0
        assert summary.sum == 0
        assert summary.average == 0
        assert summary.show_numeric is False

    def test_repeating_thirds_round_to_one(self):
        grid = GridStore.from_values({"A1": 0.3333333, "A2": 0.3333333, "A3": 0.3333333})

        summary = compute_aggregate(selection("A1:A3"), grid)

        assert summary.sum == 1.0
        assert summary.average == 0.333

    def test_text_only_range(self):
        grid = GridStore.from_values({"A1": "x", "B1": "y"})

        summary = compute_aggregate(selection("A1:B1"), grid)

        assert summary.count == 2
        assert summary.numeric_count == 0
        assert summary.average == 0
        assert summary.to_status_text() == "Count: 2"

    def test_padded_numeric_text(self):
        grid = GridStore()
        grid.put_cell(Coordinate.from_a1("A1"), Cell(value=CellValue.of_text("  10 ")))
        grid.put_cell(Coordinate.from_a1("A2"), Cell(value=CellValue.of_text("10 kg")))

        summary = compute_aggregate(selection("A1:A2"), grid)

        assert summary.count == 2
        assert summary.numeric_count == 1
        assert summary.sum == 10

    def test_formula_cells_use_resolved_value(self):
        grid = GridStore.from_values({"A1": 4})
        grid.put_cell(
            Coordinate.from_a1("A2"),
            Cell(value=CellValue.of_number(6), formula="=A1+2", display_value="6"),
        )
        grid.put_cell(
            Coordinate.from_a1("A3"),
            Cell(formula="=1/0", display_value="#DIV/0!"),
        )

        summary = compute_aggregate(selection("A1:A3"), grid)

        assert summary.count == 3
        assert summary.numeric_count == 2
        assert summary.sum == 10
        assert summary.average == 5

    def test_order_of_corners_does_not_matter(self, numbers_grid):
        forward = compute_aggregate(selection("A1:A4"), numbers_grid)
        backward = compute_aggregate(
            SelectionRange.from_corners(Coordinate.from_a1("A4"), Coordinate.from_a1("A1")),
            numbers_grid,
        )
        assert forward == backward

    def test_accepts_plain_mapping(self, numbers_grid):
        summary = compute_aggregate(selection("A1:A4"), numbers_grid.snapshot())
        assert summary.sum == 8.5

    def test_large_selection_scans_populated_cells(self, numbers_grid):
        big = selection("A1:Z1000")

        sparse = compute_aggregate(big, numbers_grid, max_scan_cells=10)
        dense = compute_aggregate(big, numbers_grid, max_scan_cells=10**6)

        assert sparse == dense
        assert sparse.cell_count == 26000

    def test_negative_values(self):
        grid = GridStore.from_values({"A1": -1.25, "B1": "-2.5"})

        summary = compute_aggregate(selection("A1:B1"), grid)

        assert summary.sum == -3.75
        assert summary.average == -1.875

    def test_precision_override(self):
        grid = GridStore.from_values({"A1": 1, "A2": 2, "A3": 2})
        summary = compute_aggregate(selection("A1:A3"), grid, precision=1)
        assert summary.average == 1.7

    def test_huge_value_does_not_overflow(self):
        grid = GridStore.from_values({"A1": 1e306, "A2": 1})

        summary = compute_aggregate(selection("A1:A2"), grid)

        assert summary.numeric_count == 2
        assert summary.sum == 1e306
        assert summary.average == 5e305

    def test_overflowing_sum_reports_infinity(self):
        grid = GridStore.from_values({"A1": 1e308, "A2": 1e308})

        summary = compute_aggregate(selection("A1:A2"), grid)

        assert summary.sum == math.inf
        assert summary.average == math.inf
        assert summary.to_status_text() == "Count: 2 | Sum: Overflow | Avg: Overflow"
        assert summary.model_dump(mode="json")["sum"] is None

    def test_zero_scan_limit_is_respected(self, numbers_grid, caplog):
        with caplog.at_level(logging.DEBUG, logger="sheetlens.aggregate.engine"):
            summary = compute_aggregate(selection("A1:A4"), numbers_grid, max_scan_cells=0)

        assert summary.sum == 8.5
        assert "exceeds 0 cells" in caplog.text


class TestNumericValue:
    """Test per-cell numeric coercion."""

    def test_number(self):
        assert numeric_value(Cell(value=CellValue.of_number(2))) == 2

    def test_text(self):
        assert numeric_value(Cell(value=CellValue.of_text("1e2"))) == 100
        assert numeric_value(Cell(value=CellValue.of_text("abc"))) is None

    def test_empty(self):
        assert numeric_value(Cell()) is None


class TestAggregateSummary:
    """Test summary rendering."""

    def test_status_text(self):
        summary = AggregateSummary(cell_count=4, count=3, numeric_count=2, sum=8.5, average=4.25)
        assert summary.to_status_text() == "Count: 3 | Sum: 8.5 | Avg: 4.25"

    def test_integral_values_render_without_decimals(self):
        summary = AggregateSummary(cell_count=2, count=2, numeric_count=2, sum=10.0, average=5.0)
        assert summary.to_status_text() == "Count: 2 | Sum: 10 | Avg: 5"

    def test_serializes_show_numeric(self):
        summary = AggregateSummary(cell_count=2, count=1, numeric_count=0, sum=0, average=0)
        assert summary.model_dump()["show_numeric"] is False
