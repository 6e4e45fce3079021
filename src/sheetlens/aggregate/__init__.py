"""Selection aggregates for the status bar."""

from .engine import compute_aggregate, numeric_value, round_display
from .models import AggregateSummary

__all__ = [
    "compute_aggregate",
    "numeric_value",
    "round_display",
    "AggregateSummary",
]
