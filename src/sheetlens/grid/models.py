"""Data models for the cell grid."""

import math
import re
from enum import Enum
from typing import Any, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Plain base-10 float: optional sign, digits with optional fraction, optional exponent.
# Rejects inf/nan, hex, underscores and trailing garbage that float() would accept.
_NUMERIC_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def col_letter_to_index(col: str) -> int:
    """Convert column letter(s) to 0-based index. A=0, B=1, ..., Z=25, AA=26, etc."""
    result = 0
    for char in col.upper():
        result = result * 26 + (ord(char) - ord("A") + 1)
    return result - 1


def index_to_col_letter(index: int) -> str:
    """Convert 0-based index to column letter(s)."""
    result = ""
    index += 1
    while index > 0:
        index -= 1
        result = chr(ord("A") + (index % 26)) + result
        index //= 26
    return result


def parse_cell_notation(cell: str) -> tuple[str, int]:
    """Parse A1 notation into column letters and row number."""
    match = re.fullmatch(r"\s*([A-Za-z]+)(\d+)\s*", cell)
    if not match or int(match.group(2)) < 1:
        raise ValueError(f"Invalid cell notation: {cell}")
    return match.group(1).upper(), int(match.group(2))


def parse_numeric(text: str) -> Optional[float]:
    """Parse text as a plain decimal number, tolerating surrounding whitespace.

    Returns None when the text is not unambiguously numeric, including
    literals too large to represent (such as "1e400").
    """
    stripped = text.strip()
    if not _NUMERIC_RE.fullmatch(stripped):
        return None
    number = float(stripped)
    return number if math.isfinite(number) else None


class Coordinate(BaseModel):
    """A 0-based (column, row) cell address."""

    model_config = ConfigDict(frozen=True)

    col: int = Field(ge=0)
    row: int = Field(ge=0)

    @property
    def sort_key(self) -> tuple[int, int]:
        """Row-major ordering key."""
        return (self.row, self.col)

    @property
    def a1(self) -> str:
        return f"{index_to_col_letter(self.col)}{self.row + 1}"

    @classmethod
    def from_a1(cls, cell: str) -> "Coordinate":
        letters, row = parse_cell_notation(cell)
        return cls(col=col_letter_to_index(letters), row=row - 1)

    def __str__(self) -> str:
        return self.a1


class ValueKind(str, Enum):
    """Tag for the cell value variant."""

    EMPTY = "empty"
    NUMBER = "number"
    TEXT = "text"


class CellValue(BaseModel):
    """Tagged cell content: empty, a number, or text."""

    model_config = ConfigDict(frozen=True)

    kind: ValueKind = ValueKind.EMPTY
    number: Optional[float] = None
    text: Optional[str] = None

    @model_validator(mode="after")
    def _check_payload(self) -> "CellValue":
        if self.kind == ValueKind.NUMBER and self.number is None:
            raise ValueError("number value requires a number payload")
        if self.kind == ValueKind.NUMBER and not math.isfinite(self.number):
            raise ValueError("number value must be finite")
        if self.kind == ValueKind.TEXT and self.text is None:
            raise ValueError("text value requires a text payload")
        return self

    @classmethod
    def empty(cls) -> "CellValue":
        return cls()

    @classmethod
    def of_number(cls, number: float) -> "CellValue":
        return cls(kind=ValueKind.NUMBER, number=float(number))

    @classmethod
    def of_text(cls, text: str) -> "CellValue":
        return cls(kind=ValueKind.TEXT, text=text)

    @classmethod
    def from_input(cls, raw: Any) -> "CellValue":
        """Type raw user input the way the editor does on commit."""
        if raw is None:
            return cls.empty()
        if isinstance(raw, CellValue):
            return raw
        if isinstance(raw, bool):
            return cls.of_text(str(raw).upper())
        if isinstance(raw, int):
            return cls.of_number(raw)
        if isinstance(raw, float):
            # inf and nan are not cell numbers; keep what the user typed
            return cls.of_number(raw) if math.isfinite(raw) else cls.of_text(str(raw))

        text = str(raw)
        if text == "":
            return cls.empty()
        number = parse_numeric(text)
        if number is not None:
            return cls.of_number(number)
        return cls.of_text(text)

    @property
    def is_empty(self) -> bool:
        return self.kind == ValueKind.EMPTY

    def as_text(self) -> str:
        """Render the value as the text a user sees and searches."""
        if self.kind == ValueKind.EMPTY:
            return ""
        if self.kind == ValueKind.NUMBER:
            if self.number.is_integer():
                return str(int(self.number))
            return str(self.number)
        if self.kind == ValueKind.TEXT:
            return self.text
        raise ValueError(f"Unknown value kind: {self.kind}")


class Cell(BaseModel):
    """Content of a single populated cell."""

    value: CellValue = Field(default_factory=CellValue)
    formula: Optional[str] = None
    display_value: Optional[str] = None  # Resolved formula output, if any
    protected: bool = False

    @property
    def has_formula(self) -> bool:
        return self.formula is not None and self.formula.startswith("=")

    @property
    def resolved_text(self) -> str:
        if self.display_value is not None:
            return self.display_value
        return self.value.as_text()

    @property
    def is_empty(self) -> bool:
        return self.value.is_empty and self.resolved_text == ""


class SelectionRange(BaseModel):
    """A rectangular cell range, always stored normalized."""

    model_config = ConfigDict(frozen=True)

    start_col: int = Field(ge=0)
    start_row: int = Field(ge=0)
    end_col: int = Field(ge=0)
    end_row: int = Field(ge=0)

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if isinstance(data, dict):
            keys = ("start_col", "start_row", "end_col", "end_row")
            if all(key in data for key in keys):
                data = dict(data)
                sc, sr, ec, er = (data[key] for key in keys)
                data["start_col"], data["end_col"] = min(sc, ec), max(sc, ec)
                data["start_row"], data["end_row"] = min(sr, er), max(sr, er)
        return data

    @classmethod
    def from_corners(
        cls, anchor: Coordinate, focus: Optional[Coordinate] = None
    ) -> "SelectionRange":
        """Build a range from an anchor/focus pair in any order."""
        focus = focus or anchor
        return cls(
            start_col=anchor.col,
            start_row=anchor.row,
            end_col=focus.col,
            end_row=focus.row,
        )

    @classmethod
    def from_a1(cls, notation: str) -> "SelectionRange":
        """Parse "B2" or "A1:C3"."""
        parts = notation.split(":")
        if len(parts) > 2:
            raise ValueError(f"Invalid range notation: {notation}")
        anchor = Coordinate.from_a1(parts[0])
        focus = Coordinate.from_a1(parts[1]) if len(parts) == 2 else None
        return cls.from_corners(anchor, focus)

    @property
    def cell_count(self) -> int:
        return (self.end_col - self.start_col + 1) * (self.end_row - self.start_row + 1)

    @property
    def a1(self) -> str:
        start = Coordinate(col=self.start_col, row=self.start_row).a1
        end = Coordinate(col=self.end_col, row=self.end_row).a1
        return start if start == end else f"{start}:{end}"

    def contains(self, coordinate: Coordinate) -> bool:
        return (
            self.start_col <= coordinate.col <= self.end_col
            and self.start_row <= coordinate.row <= self.end_row
        )

    def coordinates(self) -> Iterator[Coordinate]:
        """Yield every coordinate in the range, row-major."""
        for row in range(self.start_row, self.end_row + 1):
            for col in range(self.start_col, self.end_col + 1):
                yield Coordinate(col=col, row=row)


class CellUpdate(BaseModel):
    """Represents a single cell update."""

    coordinate: Coordinate
    new_value: CellValue


class BatchUpdate(BaseModel):
    """Represents a batch of cell updates."""

    updates: list[CellUpdate] = Field(default_factory=list)
    description: str = ""

    def add_update(self, coordinate: Coordinate, new_value: Any):
        """Add a cell update to the batch."""
        self.updates.append(
            CellUpdate(coordinate=coordinate, new_value=CellValue.from_input(new_value))
        )

    def get_statistics(self) -> dict:
        """Calculate statistics about this batch update."""
        rows = {update.coordinate.row for update in self.updates}
        columns = {index_to_col_letter(update.coordinate.col) for update in self.updates}
        return {
            "total_cells": len(self.updates),
            "row_count": len(rows),
            "affected_columns": sorted(columns, key=lambda c: (len(c), c)),
            "column_count": len(columns),
        }


class SkippedCell(BaseModel):
    """A write the grid store refused."""

    coordinate: Coordinate
    reason: str


class UpdateResult(BaseModel):
    """Result of applying updates."""

    updated: list[Coordinate] = Field(default_factory=list)
    skipped: list[SkippedCell] = Field(default_factory=list)
    description: str = ""

    @property
    def success(self) -> bool:
        return not self.skipped

    @property
    def updated_cells(self) -> int:
        return len(self.updated)
