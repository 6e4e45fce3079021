"""Data models for selection aggregates."""

import math
from typing import Optional

from pydantic import BaseModel, computed_field, field_serializer


class AggregateSummary(BaseModel):
    """Status bar statistics for a multi-cell selection."""

    cell_count: int  # Area of the selection
    count: int  # Non-empty cells
    numeric_count: int
    sum: float  # inf when the total overflows
    average: float

    @computed_field
    @property
    def show_numeric(self) -> bool:
        """Whether sum and average are worth displaying."""
        return self.numeric_count > 0

    @field_serializer("sum", "average", when_used="json")
    def _serialize_total(self, value: float) -> Optional[float]:
        # JSON has no infinity; an overflowed total goes out as null
        return value if math.isfinite(value) else None

    def to_status_text(self) -> str:
        """Render the summary the way the status bar shows it."""
        parts = [f"Count: {self.count}"]
        if self.show_numeric:
            parts.append(f"Sum: {_format_number(self.sum)}")
            parts.append(f"Avg: {_format_number(self.average)}")
        return " | ".join(parts)


def _format_number(value: float) -> str:
    if not math.isfinite(value):
        return "Overflow"
    if value.is_integer():
        return str(int(value))
    return str(value)
