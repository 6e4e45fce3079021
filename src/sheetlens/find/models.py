"""Data models for the find/replace engine."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field, model_validator

from ..grid import Coordinate, SkippedCell


class CommandType(str, Enum):
    """Commands accepted by the find/replace engine."""

    TOGGLE_VISIBILITY = "toggle_visibility"
    SET_SEARCH_TERM = "set_search_term"
    SET_REPLACE_TERM = "set_replace_term"
    NEXT = "next"
    PREVIOUS = "previous"
    REPLACE_CURRENT = "replace_current"
    REPLACE_ALL = "replace_all"


TEXT_COMMANDS = {CommandType.SET_SEARCH_TERM, CommandType.SET_REPLACE_TERM}


class FindStatus(str, Enum):
    """Visible state of the find/replace panel."""

    CLOSED = "closed"
    OPEN_NO_MATCHES = "open_no_matches"
    OPEN_HAS_MATCHES = "open_has_matches"


class FindCommand(BaseModel):
    """A single user intent forwarded to the engine."""

    command_type: CommandType
    text: Optional[str] = None  # Required for SET_SEARCH_TERM / SET_REPLACE_TERM

    @model_validator(mode="after")
    def _require_text(self) -> "FindCommand":
        if self.command_type in TEXT_COMMANDS and self.text is None:
            raise ValueError(f"{self.command_type.value} requires text")
        return self

    @classmethod
    def toggle(cls) -> "FindCommand":
        return cls(command_type=CommandType.TOGGLE_VISIBILITY)

    @classmethod
    def search(cls, text: str) -> "FindCommand":
        return cls(command_type=CommandType.SET_SEARCH_TERM, text=text)

    @classmethod
    def replace_with(cls, text: str) -> "FindCommand":
        return cls(command_type=CommandType.SET_REPLACE_TERM, text=text)

    @classmethod
    def next(cls) -> "FindCommand":
        return cls(command_type=CommandType.NEXT)

    @classmethod
    def previous(cls) -> "FindCommand":
        return cls(command_type=CommandType.PREVIOUS)

    @classmethod
    def replace_current(cls) -> "FindCommand":
        return cls(command_type=CommandType.REPLACE_CURRENT)

    @classmethod
    def replace_all(cls) -> "FindCommand":
        return cls(command_type=CommandType.REPLACE_ALL)


class FindReplaceState(BaseModel):
    """Snapshot of the find/replace panel state."""

    is_open: bool = False
    search_term: str = ""
    replace_term: str = ""
    matches: list[Coordinate] = Field(default_factory=list)
    active_match_index: int = -1

    @model_validator(mode="after")
    def _check_cursor(self) -> "FindReplaceState":
        if not self.matches and self.active_match_index != -1:
            raise ValueError("active_match_index must be -1 when there are no matches")
        if self.matches and not 0 <= self.active_match_index < len(self.matches):
            raise ValueError(
                f"active_match_index {self.active_match_index} out of range "
                f"for {len(self.matches)} matches"
            )
        return self

    @computed_field
    @property
    def status(self) -> FindStatus:
        if not self.is_open:
            return FindStatus.CLOSED
        if self.matches:
            return FindStatus.OPEN_HAS_MATCHES
        return FindStatus.OPEN_NO_MATCHES

    @property
    def active_match(self) -> Optional[Coordinate]:
        if self.active_match_index < 0:
            return None
        return self.matches[self.active_match_index]

    @computed_field
    @property
    def match_label(self) -> str:
        """Counter text shown next to the navigation buttons."""
        if self.matches:
            return f"{self.active_match_index + 1} of {len(self.matches)}"
        if self.search_term:
            return "No matches"
        return ""


class ReplaceOutcome(BaseModel):
    """Cells written and cells skipped by a replace command."""

    replaced: list[Coordinate] = Field(default_factory=list)
    skipped: list[SkippedCell] = Field(default_factory=list)

    @property
    def replaced_count(self) -> int:
        return len(self.replaced)


class CommandResult(BaseModel):
    """Engine state after a command, plus the replace outcome if any."""

    state: FindReplaceState
    outcome: Optional[ReplaceOutcome] = None
