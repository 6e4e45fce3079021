"""Pytest configuration and shared fixtures."""

import pytest

from sheetlens.api import routes
from sheetlens.find import FindReplaceEngine
from sheetlens.grid import Cell, CellValue, Coordinate, GridStore
from sheetlens.session import EditorSession


@pytest.fixture
def sample_grid() -> GridStore:
    """A1="foo", A2="foobar", B1="baz"."""
    return GridStore.from_values({"A1": "foo", "A2": "foobar", "B1": "baz"})


@pytest.fixture
def numbers_grid() -> GridStore:
    """Column A holds 5, "3.5", "abc" and an empty A4."""
    store = GridStore.from_values({"A1": 5, "A3": "abc"})
    # Keep "3.5" as text so the aggregate has to parse it
    store.put_cell(Coordinate.from_a1("A2"), Cell(value=CellValue.of_text("3.5")))
    return store


@pytest.fixture
def guarded_grid() -> GridStore:
    """A grid with a formula cell and a protected cell among plain matches."""
    store = GridStore.from_values({"A1": "total", "A3": "subtotal"})
    store.put_cell(
        Coordinate.from_a1("B1"),
        Cell(
            value=CellValue.of_number(10),
            formula='=IF(A1="total",10,0)',
            display_value="10",
        ),
    )
    store.put_cell(
        Coordinate.from_a1("A2"),
        Cell(value=CellValue.of_text("grand total"), protected=True),
    )
    return store


@pytest.fixture
def engine(sample_grid) -> FindReplaceEngine:
    """An open engine over the sample grid."""
    engine = FindReplaceEngine(sample_grid, case_sensitive=False, match_formulas=True)
    engine.toggle_visibility()
    return engine


@pytest.fixture
def session(sample_grid) -> EditorSession:
    return EditorSession(sample_grid)


@pytest.fixture(autouse=True)
def reset_api_session():
    """Give every test a fresh process-wide API session."""
    routes.reset_session()
    yield
    routes.reset_session()
