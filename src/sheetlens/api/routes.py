"""API routes for SheetLens."""

from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..config import settings
from ..find import CommandResult, FindCommand, FindReplaceState
from ..grid import CellWriteRejected, Coordinate
from ..keymap import KeyEvent
from ..session import EditorSession

router = APIRouter()

# Global session instance
_session: Optional[EditorSession] = None


def get_session() -> EditorSession:
    """Get the global editor session."""
    global _session
    if _session is None:
        _session = EditorSession()
    return _session


def reset_session():
    """Drop the global session; the next request starts with an empty grid."""
    global _session
    _session = None


class CellEditRequest(BaseModel):
    """Request to write one cell."""

    value: Any = None


class CsvLoadRequest(BaseModel):
    """Request to replace the grid with CSV content."""

    csv: str


class SelectionRequest(BaseModel):
    """Request to change the selection, using A1 references."""

    anchor: str
    focus: Optional[str] = None


def _parse_ref(ref: str) -> Coordinate:
    try:
        return Coordinate.from_a1(ref)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _cell_payload(coordinate: Coordinate, cell) -> dict:
    return {
        "cell": coordinate.a1,
        "col": coordinate.col,
        "row": coordinate.row,
        "kind": cell.value.kind.value,
        "value": cell.resolved_text,
        "formula": cell.formula,
    }


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "sheetlens",
        "config": {
            "find_case_sensitive": settings.find_case_sensitive,
            "find_match_formulas": settings.find_match_formulas,
            "aggregate_precision": settings.aggregate_precision,
        },
    }


# Grid endpoints


@router.get("/grid")
async def read_grid():
    """List populated cells in row-major order."""
    session = get_session()
    return {
        "cells": [_cell_payload(coordinate, cell) for coordinate, cell in session.grid.iterate()],
        "active_cell": session.active_cell.a1,
    }


@router.put("/grid/cells/{ref}")
async def edit_cell(ref: str, request: CellEditRequest):
    """Write a single cell."""
    session = get_session()
    coordinate = _parse_ref(ref)
    try:
        session.edit_cell(coordinate, request.value)
    except CellWriteRejected as e:
        raise HTTPException(status_code=400, detail=str(e))

    cell = session.grid.get(coordinate)
    return {
        "cell": coordinate.a1,
        "value": cell.resolved_text if cell else None,
        "find": session.find.state,
    }


@router.post("/grid/csv")
async def load_csv(request: CsvLoadRequest):
    """Replace the grid contents with CSV data."""
    session = get_session()
    count = session.load_csv(request.csv)
    return {"status": "ok", "cells_loaded": count}


# Find/replace endpoints


@router.get("/find", response_model=FindReplaceState)
async def get_find_state():
    """Current find/replace state."""
    return get_session().find.state


@router.post("/find/commands", response_model=CommandResult)
async def find_command(command: FindCommand):
    """Apply a find/replace command."""
    return get_session().handle_command(command)


@router.post("/find/keys")
async def find_key(event: KeyEvent):
    """Dispatch a key press; reports whether it was handled."""
    result = get_session().handle_key(event)
    if result is None:
        return {"handled": False, "state": get_session().find.state}
    return {"handled": True, "state": result.state, "outcome": result.outcome}


# Selection endpoints


@router.post("/selection")
async def set_selection(request: SelectionRequest):
    """Select a cell or a range and return its aggregates."""
    session = get_session()
    anchor = _parse_ref(request.anchor)
    focus = _parse_ref(request.focus) if request.focus else None
    selection = session.select(anchor, focus)
    return {
        "selection": selection.a1,
        "active_cell": session.active_cell.a1,
        "aggregate": session.aggregate(),
    }


@router.get("/selection/aggregate")
async def get_aggregate():
    """Aggregates for the current selection, or null when not applicable."""
    return get_session().aggregate()
