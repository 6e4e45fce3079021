"""Keyboard shortcuts for the find/replace panel."""

from typing import Optional

from pydantic import BaseModel

from .find import FindCommand


class KeyEvent(BaseModel):
    """A raw key press as reported by the front end."""

    key: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    alt: bool = False


def translate_key_event(event: KeyEvent, panel_open: bool) -> Optional[FindCommand]:
    """
    Map a key press to a find/replace command.

    Ctrl/Cmd+F toggles the panel from anywhere. While the panel is open,
    Enter moves to the next match, Shift+Enter to the previous one, and
    Escape closes it. Anything else is not ours.
    """
    key = event.key.lower()

    if (event.ctrl or event.meta) and not event.alt and key == "f":
        return FindCommand.toggle()

    if not panel_open:
        return None

    if key == "enter":
        return FindCommand.previous() if event.shift else FindCommand.next()
    if key == "escape":
        return FindCommand.toggle()
    return None
