"""Editor session: the single owner of grid, selection and find state."""

import logging
from typing import Any, Optional

from .aggregate import AggregateSummary, compute_aggregate
from .find import CommandResult, CommandType, FindCommand, FindReplaceEngine
from .find.engine import MutationSink
from .grid import Coordinate, GridStore, SelectionRange, UpdateResult
from .keymap import KeyEvent, translate_key_event

logger = logging.getLogger(__name__)

# Commands after which the active cell follows the active match
_CURSOR_COMMANDS = {
    CommandType.SET_SEARCH_TERM,
    CommandType.NEXT,
    CommandType.PREVIOUS,
    CommandType.REPLACE_CURRENT,
}


class EditorSession:
    """Ties the grid store, the selection and the find/replace engine together."""

    def __init__(
        self,
        grid: Optional[GridStore] = None,
        apply_mutation: Optional[MutationSink] = None,
    ):
        self.grid = grid if grid is not None else GridStore()
        self.find = FindReplaceEngine(self.grid, apply_mutation=apply_mutation)
        self.active_cell = Coordinate(col=0, row=0)
        self.selection: Optional[SelectionRange] = None

    def select(self, anchor: Coordinate, focus: Optional[Coordinate] = None) -> SelectionRange:
        """Select a single cell or the rectangle spanned by anchor and focus."""
        self.selection = SelectionRange.from_corners(anchor, focus)
        self.active_cell = anchor
        return self.selection

    def clear_selection(self):
        self.selection = None

    def aggregate(self) -> Optional[AggregateSummary]:
        """Status bar aggregates for the current selection."""
        return compute_aggregate(self.selection, self.grid)

    def edit_cell(self, coordinate: Coordinate, raw_value: Any) -> UpdateResult:
        """
        Write one cell through the grid store.

        Raises:
            CellWriteRejected: If the store refuses the write
        """
        result = self.grid.set(coordinate, raw_value)
        self._refresh_find()
        return result

    def load_csv(self, text: str) -> int:
        count = self.grid.load_csv(text)
        self.selection = None
        self.active_cell = Coordinate(col=0, row=0)
        self._refresh_find()
        return count

    def handle_command(self, command: FindCommand) -> CommandResult:
        """
        Forward a command to the find engine.

        Navigation moves the active cell onto the active match and clears
        the selection, so aggregates stop describing the old range.
        """
        result = self.find.dispatch(command)
        match = result.state.active_match
        if command.command_type in _CURSOR_COMMANDS and match is not None:
            self.active_cell = match
            self.selection = None
            logger.debug(f"Active cell -> {match.a1}")
        return result

    def handle_key(self, event: KeyEvent) -> Optional[CommandResult]:
        """Run a key press through the shortcut map; None when the key is not bound."""
        command = translate_key_event(event, panel_open=self.find.state.is_open)
        if command is None:
            return None
        return self.handle_command(command)

    def _refresh_find(self):
        if self.find.state.search_term:
            self.find.refresh()
