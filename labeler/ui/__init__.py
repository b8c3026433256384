"""Canvas-side controllers: viewport transform, interaction and shortcuts."""

from .viewport import Viewport
from .interaction import InteractionController, NodeTransform
from .keyboard import KeyboardShortcuts

__all__ = ["Viewport", "InteractionController", "NodeTransform", "KeyboardShortcuts"]
