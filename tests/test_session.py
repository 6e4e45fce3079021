"""Tests for the editor session and keyboard shortcuts."""

import pytest

from sheetlens.find import CommandType, FindCommand, FindStatus
from sheetlens.grid import CellWriteRejected, Coordinate
from sheetlens.keymap import KeyEvent, translate_key_event


class TestKeyMap:
    """Test key event translation."""

    @pytest.mark.parametrize("modifier", ["ctrl", "meta"])
    def test_ctrl_or_cmd_f_toggles(self, modifier):
        event = KeyEvent(key="f", **{modifier: True})
        assert translate_key_event(event, panel_open=False).command_type == CommandType.TOGGLE_VISIBILITY
        assert translate_key_event(event, panel_open=True).command_type == CommandType.TOGGLE_VISIBILITY

    def test_plain_f_is_ignored(self):
        assert translate_key_event(KeyEvent(key="f"), panel_open=True) is None

    def test_enter_navigates_while_open(self):
        assert translate_key_event(KeyEvent(key="Enter"), panel_open=True).command_type == CommandType.NEXT
        assert (
            translate_key_event(KeyEvent(key="Enter", shift=True), panel_open=True).command_type
            == CommandType.PREVIOUS
        )

    def test_escape_closes(self):
        command = translate_key_event(KeyEvent(key="Escape"), panel_open=True)
        assert command.command_type == CommandType.TOGGLE_VISIBILITY

    def test_keys_ignored_while_closed(self):
        assert translate_key_event(KeyEvent(key="Enter"), panel_open=False) is None
        assert translate_key_event(KeyEvent(key="Escape"), panel_open=False) is None


class TestEditorSession:
    """Test the editor session."""

    def test_active_cell_follows_navigation(self, session):
        session.handle_command(FindCommand.toggle())
        session.handle_command(FindCommand.search("foo"))
        assert session.active_cell == Coordinate.from_a1("A1")

        session.handle_command(FindCommand.next())
        assert session.active_cell == Coordinate.from_a1("A2")

        session.handle_command(FindCommand.previous())
        assert session.active_cell == Coordinate.from_a1("A1")

    def test_navigation_clears_selection(self, session):
        session.edit_cell(Coordinate.from_a1("B2"), 3)
        session.select(Coordinate.from_a1("B1"), Coordinate.from_a1("B2"))
        session.handle_command(FindCommand.toggle())
        session.handle_command(FindCommand.search("foo"))

        session.handle_command(FindCommand.next())

        assert session.active_cell == Coordinate.from_a1("A2")
        assert session.selection is None
        assert session.aggregate() is None

    def test_search_without_matches_keeps_selection(self, session):
        session.select(Coordinate.from_a1("B1"), Coordinate.from_a1("B2"))
        session.handle_command(FindCommand.search("zzz"))

        assert session.selection.a1 == "B1:B2"

    def test_toggle_leaves_active_cell_alone(self, session):
        session.select(Coordinate.from_a1("C5"))
        session.handle_command(FindCommand.toggle())
        assert session.active_cell == Coordinate.from_a1("C5")

    def test_handle_key(self, session):
        result = session.handle_key(KeyEvent(key="f", ctrl=True))
        assert result.state.status == FindStatus.OPEN_NO_MATCHES

        session.handle_command(FindCommand.search("foo"))
        result = session.handle_key(KeyEvent(key="Enter"))
        assert result.state.active_match_index == 1

        assert session.handle_key(KeyEvent(key="x")) is None

        result = session.handle_key(KeyEvent(key="Escape"))
        assert result.state.status == FindStatus.CLOSED
        assert result.state.search_term == "foo"

    def test_select_and_aggregate(self, session):
        session.edit_cell(Coordinate.from_a1("C1"), "4")
        session.edit_cell(Coordinate.from_a1("C2"), 6)

        selection = session.select(Coordinate.from_a1("C2"), Coordinate.from_a1("C1"))
        summary = session.aggregate()

        assert selection.a1 == "C1:C2"
        assert session.active_cell == Coordinate.from_a1("C2")
        assert summary.sum == 10
        assert summary.average == 5

    def test_single_cell_selection_has_no_aggregate(self, session):
        session.select(Coordinate.from_a1("A1"))
        assert session.aggregate() is None

        session.clear_selection()
        assert session.aggregate() is None

    def test_edit_refreshes_matches(self, session):
        session.handle_command(FindCommand.toggle())
        session.handle_command(FindCommand.search("foo"))

        session.edit_cell(Coordinate.from_a1("A1"), "bar")

        assert session.find.state.matches == [Coordinate.from_a1("A2")]
        assert session.find.state.active_match_index == 0

    def test_edit_rejection_propagates(self, guarded_grid):
        from sheetlens.session import EditorSession

        session = EditorSession(guarded_grid)
        with pytest.raises(CellWriteRejected):
            session.edit_cell(Coordinate.from_a1("A2"), "x")

    def test_load_csv_resets_selection(self, session):
        session.handle_command(FindCommand.search("foo"))
        session.select(Coordinate.from_a1("A1"), Coordinate.from_a1("B2"))

        count = session.load_csv("foo,1\n2,food\n")

        assert count == 4
        assert session.selection is None
        assert session.find.state.matches == [Coordinate.from_a1("A1"), Coordinate.from_a1("B2")]
