"""Find and replace across the cell grid."""

from .engine import FindReplaceEngine
from .matcher import cell_matches, compute_matches, replace_in_text
from .models import (
    CommandType,
    FindStatus,
    FindCommand,
    FindReplaceState,
    ReplaceOutcome,
    CommandResult,
)

__all__ = [
    "FindReplaceEngine",
    "cell_matches",
    "compute_matches",
    "replace_in_text",
    "CommandType",
    "FindStatus",
    "FindCommand",
    "FindReplaceState",
    "ReplaceOutcome",
    "CommandResult",
]
