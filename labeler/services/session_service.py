"""Labeling session: image navigation, auto-save on switch, session files."""
from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from ..config.settings import LabelerConfig
from ..core.entities import AnnotationRecord, Box, ClassDef
from ..core.exceptions import ImageSourceError, SessionError
from ..ui.interaction import InteractionController
from .annotation_store import AnnotationStore
from .class_registry import DEFAULT_CLASSES, ClassRegistry
from .image_source import ImageSource
from .render_service import render_annotations
from .yolo_codec import box_to_record, record_to_box

logger = logging.getLogger(__name__)

SESSION_VERSION = 1

Persister = Callable[[str, List[AnnotationRecord]], None]
Loader = Callable[[str], List[AnnotationRecord]]


@dataclass
class SessionState:
    """Everything needed to resume labeling: classes, boxes and position."""
    classes: List[ClassDef] = field(default_factory=lambda: list(DEFAULT_CLASSES))
    annotations: Dict[str, List[Box]] = field(default_factory=dict)
    active_class_id: int = 0
    index: int = 0

    def to_dict(self) -> dict:
        return {
            "version": SESSION_VERSION,
            "classes": [{"id": c.id, "name": c.name} for c in self.classes],
            "annotations": {k: [b.to_dict() for b in v] for k, v in self.annotations.items()},
            "active_class_id": self.active_class_id,
            "index": self.index,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionState":
        state = cls()
        if data.get("classes"):
            state.classes = ClassRegistry.classes_from_dict(data["classes"])
        if data.get("annotations"):
            state.annotations = {
                k: [Box.from_dict(b) for b in v] for k, v in data["annotations"].items()
            }
        if isinstance(data.get("active_class_id"), int):
            state.active_class_id = data["active_class_id"]
        if isinstance(data.get("index"), int):
            state.index = data["index"]
        return state


def save_session(state: SessionState, path: str) -> None:
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(state.to_dict(), f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise SessionError(f"Failed to save session to {path}: {e}") from e
    logger.info(f"Session saved to {path}")


def load_session(path: str) -> Optional[SessionState]:
    """Load a session file; ``None`` when there is no saved session."""
    if not os.path.isfile(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise SessionError(f"Session file {path} does not contain a JSON object")
        return SessionState.from_dict(data)
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise SessionError(f"Failed to load session from {path}: {e}") from e


class LabelingSession:
    """Drives one labeling pass over an ordered list of images.

    Wires the class registry, annotation store and interaction controller
    together. Before the current image changes, its boxes are flushed to
    the persister when they have unsaved edits.
    """

    def __init__(self, images: List[str], image_source: ImageSource,
                 config: Optional[LabelerConfig] = None,
                 store: Optional[AnnotationStore] = None,
                 registry: Optional[ClassRegistry] = None,
                 persister: Optional[Persister] = None,
                 loader: Optional[Loader] = None):
        self.config = config or LabelerConfig()
        self.images = list(images)
        self.image_source = image_source
        self.store = store or AnnotationStore()
        self.registry = registry or ClassRegistry(
            colors=self.config.class_colors, default_color=self.config.default_color
        )
        self.controller = InteractionController(self.store, self.config)
        self.controller.active_class_id = self.registry.active_class_id
        self.persister = persister
        self.loader = loader
        self.index = 0

    @property
    def current_image(self) -> Optional[str]:
        if not self.images:
            return None
        return self.images[self.index]

    def _size_of(self, ref: str) -> Tuple[int, int]:
        try:
            return self.image_source.get_size(ref)
        except ImageSourceError as e:
            logger.error(f"Cannot size image {ref}: {e}")
            return (0, 0)

    # ------------------------------------------------------------ navigation

    def open(self, index: int = 0) -> bool:
        """Show image ``index`` without flushing (initial open)."""
        if not self.images:
            return False
        self.index = max(0, min(len(self.images) - 1, index))
        ref = self.images[self.index]
        width, height = self._size_of(ref)
        if self.loader is not None and not self.store.has_image(ref):
            self._load_from_loader(ref, width, height)
        self.controller.load_image(ref, width, height)
        return True

    def _load_from_loader(self, ref: str, width: int, height: int) -> None:
        try:
            records = self.loader(ref)
            self.store.load_boxes(ref, [record_to_box(r, width, height) for r in records])
        except Exception as e:
            logger.error(f"Failed to load annotations for {ref}: {e}")
            self.store.load_boxes(ref, [])

    def go_to(self, index: int) -> bool:
        if not self.images or not 0 <= index < len(self.images) or index == self.index:
            return False
        self.flush_current()
        return self.open(index)

    def next(self) -> bool:
        return self.go_to(self.index + 1)

    def prev(self) -> bool:
        return self.go_to(self.index - 1)

    # ----------------------------------------------------------------- saving

    def flush_current(self) -> bool:
        """Persist the current image if dirty; failures are logged, not raised."""
        ref = self.current_image
        if ref is None or not self.store.is_dirty(ref) or self.persister is None:
            return False
        try:
            self._persist(ref)
            return True
        except Exception as e:
            logger.error(f"Auto-save failed for {ref}: {e}")
            return False

    def save_current(self) -> bool:
        """Explicit save of the current image (Ctrl+S)."""
        ref = self.current_image
        if ref is None or self.persister is None:
            return False
        self._persist(ref)
        return True

    def _persist(self, ref: str) -> None:
        width, height = self._size_of(ref)
        records = [box_to_record(b, width, height) for b in self.store.get_boxes(ref)]
        self.persister(ref, records)
        self.store.mark_clean(ref)
        logger.info(f"Saved {len(records)} annotations for {ref}")

    # ---------------------------------------------------------------- classes

    def select_class(self, class_id: int) -> None:
        if self.registry.get(class_id) is None:
            return
        self.registry.set_active(class_id)
        self.controller.set_active_class(class_id)

    def delete_class(self, class_id: int) -> None:
        self.registry.delete_class(class_id)
        self.controller.active_class_id = self.registry.active_class_id

    # --------------------------------------------------------------- progress

    def progress(self) -> Tuple[int, int]:
        return self.store.labeled_count(self.images)

    # ------------------------------------------------------------ snapshots

    def snapshot(self) -> SessionState:
        return SessionState(
            classes=self.registry.classes,
            annotations={key: list(self.store.get_boxes(key)) for key in self._known_keys()},
            active_class_id=self.registry.active_class_id,
            index=self.index,
        )

    def _known_keys(self) -> List[str]:
        return [k for k in self.images if self.store.has_image(k)]

    def restore(self, state: SessionState) -> None:
        """Replace classes and boxes with a saved session and reopen its image.

        Images of this session that the saved state does not mention lose any
        boxes held in memory; they are fetched again through the loader.
        """
        self.registry = ClassRegistry(state.classes, colors=self.config.class_colors,
                                      active_class_id=state.active_class_id,
                                      default_color=self.config.default_color)
        for key in self.images:
            if key not in state.annotations:
                self.store.forget(key)
        for key, boxes in state.annotations.items():
            self.store.load_boxes(key, boxes)
        self.controller.active_class_id = self.registry.active_class_id
        self.open(state.index)

    def save(self, path: Optional[str] = None) -> str:
        path = path or self.config.session_path
        save_session(self.snapshot(), path)
        return path

    # -------------------------------------------------------------- rendering

    def render_current(self, image: np.ndarray) -> np.ndarray:
        """Draw the current image's boxes, selection and draft onto ``image``."""
        ctrl = self.controller
        return render_annotations(image, ctrl.display_boxes(), self.registry,
                                  selected_id=ctrl.selected_id, draft=ctrl.draft,
                                  draft_color=self.config.draft_color)
