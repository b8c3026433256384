"""Keyboard shortcuts for the labeling screen."""
from __future__ import annotations
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..services.session_service import LabelingSession

logger = logging.getLogger(__name__)

NEXT_KEYS = ("d", "arrowright")
PREV_KEYS = ("a", "arrowleft")
DELETE_KEYS = ("delete", "backspace")


class KeyboardShortcuts:
    """Maps key presses to session actions.

    Keys typed while focus is in a text input are never handled.
    """

    def __init__(self, session: "LabelingSession"):
        self.session = session

    def handle(self, key: str, ctrl: bool = False, meta: bool = False,
               in_text_input: bool = False) -> bool:
        """Dispatch one key press; returns True when it was consumed."""
        if in_text_input or not key:
            return False
        lower = key.lower()

        if (ctrl or meta) and lower == "s":
            return self.session.save_current()

        class_id = self.session.registry.class_for_digit(key)
        if class_id is not None:
            self.session.select_class(class_id)
            return True
        if lower in NEXT_KEYS:
            return self.session.next()
        if lower in PREV_KEYS:
            return self.session.prev()
        if lower in DELETE_KEYS:
            return self.session.controller.delete_selected()
        return False
