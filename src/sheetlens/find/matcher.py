"""Substring matching and replacement over grid cells."""

import re
from typing import Iterable

from ..grid import Cell, Coordinate


def cell_matches(
    cell: Cell,
    term: str,
    case_sensitive: bool = False,
    match_formulas: bool = True,
) -> bool:
    """Check whether a cell's resolved text (or formula) contains the term."""
    if not term:
        return False

    haystacks = [cell.resolved_text]
    if match_formulas and cell.formula:
        haystacks.append(cell.formula)
    return any(text_contains(text, term, case_sensitive) for text in haystacks)


def text_contains(text: str, term: str, case_sensitive: bool = False) -> bool:
    if case_sensitive:
        return term in text
    return term.lower() in text.lower()


def compute_matches(
    cells: Iterable[tuple[Coordinate, Cell]],
    term: str,
    case_sensitive: bool = False,
    match_formulas: bool = True,
) -> list[Coordinate]:
    """
    Find every coordinate whose cell contains the term.

    Returns:
        Matching coordinates in row-major order, each at most once
    """
    if not term:
        return []
    matches = {
        coordinate
        for coordinate, cell in cells
        if cell_matches(cell, term, case_sensitive, match_formulas)
    }
    return sorted(matches, key=lambda c: c.sort_key)


def replace_in_text(
    text: str,
    term: str,
    replacement: str,
    case_sensitive: bool = False,
) -> str:
    """Replace every occurrence of the term in the text, in a single pass."""
    if not term:
        return text
    if case_sensitive:
        return text.replace(term, replacement)
    pattern = re.compile(re.escape(term), re.IGNORECASE)
    # A function replacement keeps backslashes in the replacement literal
    return pattern.sub(lambda _: replacement, text)
