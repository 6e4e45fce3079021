"""Find/replace state machine over the cell grid."""

import logging
from typing import Callable, Optional

from ..config import settings
from ..grid import BatchUpdate, Coordinate, GridStore, SkippedCell, UpdateResult
from .matcher import cell_matches, compute_matches, replace_in_text, text_contains
from .models import (
    CommandResult,
    CommandType,
    FindCommand,
    FindReplaceState,
    FindStatus,
    ReplaceOutcome,
)

logger = logging.getLogger(__name__)

MutationSink = Callable[[BatchUpdate], UpdateResult]

NOT_FOUND_REASON = "search term not in cell value"
UNCHANGED_REASON = "replacement leaves cell unchanged"


class FindReplaceEngine:
    """
    Stateful find/replace over a grid store.

    The engine owns a single FindReplaceState and moves it forward one
    command at a time. Every CommandType has exactly one handler; the
    state's cursor is always a valid match index, or -1 when there are
    no matches.

    Writes go through ``apply_mutation`` so an external history
    (undo/redo) can wrap them; by default they go straight to the grid.
    """

    def __init__(
        self,
        grid: GridStore,
        apply_mutation: Optional[MutationSink] = None,
        case_sensitive: Optional[bool] = None,
        match_formulas: Optional[bool] = None,
    ):
        self.grid = grid
        self.apply_mutation = apply_mutation or grid.apply_batch
        self.case_sensitive = (
            settings.find_case_sensitive if case_sensitive is None else case_sensitive
        )
        self.match_formulas = (
            settings.find_match_formulas if match_formulas is None else match_formulas
        )
        self._state = FindReplaceState()

        self._handlers: dict[CommandType, Callable[[FindCommand], Optional[ReplaceOutcome]]] = {
            CommandType.TOGGLE_VISIBILITY: self._on_toggle,
            CommandType.SET_SEARCH_TERM: self._on_set_search,
            CommandType.SET_REPLACE_TERM: self._on_set_replace,
            CommandType.NEXT: self._on_next,
            CommandType.PREVIOUS: self._on_previous,
            CommandType.REPLACE_CURRENT: self._on_replace_current,
            CommandType.REPLACE_ALL: self._on_replace_all,
        }
        missing = set(CommandType) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No handler for commands: {sorted(c.value for c in missing)}")

    @property
    def state(self) -> FindReplaceState:
        return self._state

    @property
    def status(self) -> FindStatus:
        return self._state.status

    def dispatch(self, command: FindCommand) -> CommandResult:
        """Apply one command and return the resulting state."""
        handler = self._handlers.get(command.command_type)
        if handler is None:
            raise ValueError(f"Unsupported command type: {command.command_type}")
        outcome = handler(command)
        return CommandResult(state=self._state, outcome=outcome)

    # ---- transitions ----

    def toggle_visibility(self) -> FindReplaceState:
        """Open or close the panel. Closing keeps the search state for reopening."""
        state = self._state
        if state.is_open:
            self._state = state.model_copy(update={"is_open": False})
            logger.debug("Find panel closed")
            return self._state

        previous = state.active_match
        matches = self._compute(state.search_term)
        if previous is not None and previous in matches:
            index = matches.index(previous)
        else:
            index = 0 if matches else -1
        self._state = state.model_copy(
            update={"is_open": True, "matches": matches, "active_match_index": index}
        )
        logger.debug(f"Find panel opened with {len(matches)} matches")
        return self._state

    def set_search_term(self, text: str) -> FindReplaceState:
        """Store a new search term and rescan the grid."""
        matches = self._compute(text)
        self._state = self._state.model_copy(
            update={
                "search_term": text,
                "matches": matches,
                "active_match_index": 0 if matches else -1,
            }
        )
        logger.info(f"Search for '{text}' found {len(matches)} matches")
        return self._state

    def set_replace_term(self, text: str) -> FindReplaceState:
        self._state = self._state.model_copy(update={"replace_term": text})
        return self._state

    def next_match(self) -> FindReplaceState:
        """Move the cursor forward, wrapping past the last match."""
        state = self._state
        if not state.matches:
            return state
        index = (state.active_match_index + 1) % len(state.matches)
        self._state = state.model_copy(update={"active_match_index": index})
        logger.debug(f"Active match -> {self._state.active_match}")
        return self._state

    def previous_match(self) -> FindReplaceState:
        """Move the cursor back, wrapping from the first match to the last."""
        state = self._state
        if not state.matches:
            return state
        index = (state.active_match_index - 1) % len(state.matches)
        self._state = state.model_copy(update={"active_match_index": index})
        logger.debug(f"Active match -> {self._state.active_match}")
        return self._state

    def replace_current(self) -> ReplaceOutcome:
        """
        Replace the search term inside the active match's cell.

        Every occurrence in that cell is replaced. The cursor then moves to
        the next remaining match after the replaced cell (wrapping), or to -1
        when nothing matches any more.
        """
        state = self._state
        target = state.active_match
        if target is None:
            return ReplaceOutcome()

        batch = BatchUpdate(description=f"Replace '{state.search_term}' in {target.a1}")
        skipped = self._plan_replacement(batch, [target], state)
        outcome = self._apply(batch, skipped)

        matches = self._compute(state.search_term)
        index = -1
        if matches:
            index = next(
                (i for i, c in enumerate(matches) if c.sort_key > target.sort_key),
                0,
            )
        self._state = state.model_copy(update={"matches": matches, "active_match_index": index})
        return outcome

    def replace_all(self) -> ReplaceOutcome:
        """
        Replace the search term in every matched cell as one batch.

        Single pass: text introduced by the replacement is not rescanned.
        Cells whose writes were rejected stay in the match list.
        """
        state = self._state
        if not state.matches:
            return ReplaceOutcome()

        batch = BatchUpdate(
            description=f"Replace all '{state.search_term}' with '{state.replace_term}'"
        )
        skipped = self._plan_replacement(batch, state.matches, state)
        outcome = self._apply(batch, skipped)

        remaining = [
            skip.coordinate for skip in outcome.skipped if self._matches_at(skip.coordinate)
        ]
        remaining.sort(key=lambda c: c.sort_key)
        self._state = state.model_copy(
            update={"matches": remaining, "active_match_index": 0 if remaining else -1}
        )
        logger.info(
            f"Replace all: {outcome.replaced_count} cells updated, "
            f"{len(outcome.skipped)} skipped ({batch.get_statistics()['column_count']} columns)"
        )
        return outcome

    def refresh(self) -> FindReplaceState:
        """Rescan after outside edits, keeping the cursor on the same cell if it still matches."""
        state = self._state
        previous = state.active_match
        matches = self._compute(state.search_term)
        if previous is not None and previous in matches:
            index = matches.index(previous)
        else:
            index = 0 if matches else -1
        self._state = state.model_copy(update={"matches": matches, "active_match_index": index})
        return self._state

    # ---- command handlers ----

    def _on_toggle(self, command: FindCommand) -> None:
        self.toggle_visibility()

    def _on_set_search(self, command: FindCommand) -> None:
        self.set_search_term(command.text)

    def _on_set_replace(self, command: FindCommand) -> None:
        self.set_replace_term(command.text)

    def _on_next(self, command: FindCommand) -> None:
        self.next_match()

    def _on_previous(self, command: FindCommand) -> None:
        self.previous_match()

    def _on_replace_current(self, command: FindCommand) -> ReplaceOutcome:
        return self.replace_current()

    def _on_replace_all(self, command: FindCommand) -> ReplaceOutcome:
        return self.replace_all()

    # ---- helpers ----

    def _compute(self, term: str) -> list[Coordinate]:
        return compute_matches(
            self.grid.iterate(),
            term,
            case_sensitive=self.case_sensitive,
            match_formulas=self.match_formulas,
        )

    def _matches_at(self, coordinate: Coordinate) -> bool:
        cell = self.grid.get(coordinate)
        return cell is not None and cell_matches(
            cell, self._state.search_term, self.case_sensitive, self.match_formulas
        )

    def _plan_replacement(
        self,
        batch: BatchUpdate,
        targets: list[Coordinate],
        state: FindReplaceState,
    ) -> list[SkippedCell]:
        """Add an update per target to the batch; return targets that cannot change."""
        skipped: list[SkippedCell] = []
        for coordinate in targets:
            cell = self.grid.get(coordinate)
            if cell is None:
                skipped.append(SkippedCell(coordinate=coordinate, reason="cell is empty"))
                continue

            old_text = cell.value.as_text()
            new_text = replace_in_text(
                old_text, state.search_term, state.replace_term, self.case_sensitive
            )
            if new_text == old_text:
                found = text_contains(old_text, state.search_term, self.case_sensitive)
                reason = UNCHANGED_REASON if found else NOT_FOUND_REASON
                skipped.append(SkippedCell(coordinate=coordinate, reason=reason))
                continue
            batch.add_update(coordinate, new_text)
        return skipped

    def _apply(self, batch: BatchUpdate, skipped: list[SkippedCell]) -> ReplaceOutcome:
        result = self.apply_mutation(batch) if batch.updates else UpdateResult()
        outcome = ReplaceOutcome(replaced=result.updated, skipped=skipped + result.skipped)
        for skip in outcome.skipped:
            if skip.reason == UNCHANGED_REASON:
                logger.debug(f"Nothing to replace in {skip.coordinate.a1}: {skip.reason}")
            else:
                logger.warning(f"Skipped replacement in {skip.coordinate.a1}: {skip.reason}")
        return outcome
