"""Per-image box lists with change notification and dirty tracking."""
from __future__ import annotations
import logging
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from ..core.box_list import BoxList
from ..core.entities import Box

logger = logging.getLogger(__name__)

ChangeListener = Callable[[str, BoxList], None]


class AnnotationStore:
    """Holds one independent, ordered box list per image key.

    Lists are stored as tuples and replaced wholesale on every change, so
    a value handed out by ``get_boxes`` never changes underneath its holder.
    """

    def __init__(self, initial: Optional[Dict[str, Iterable[Box]]] = None):
        self._boxes: Dict[str, BoxList] = {}
        self._dirty: Set[str] = set()
        self._listeners: List[ChangeListener] = []
        for key, boxes in (initial or {}).items():
            self._boxes[key] = tuple(boxes)

    def get_boxes(self, image_key: str) -> BoxList:
        return self._boxes.get(image_key, ())

    def set_boxes(self, image_key: str, boxes: Iterable[Box]) -> None:
        new_boxes = tuple(boxes)
        if image_key in self._boxes and self._boxes[image_key] == new_boxes:
            return
        self._boxes[image_key] = new_boxes
        self._dirty.add(image_key)
        logger.debug(f"Boxes for {image_key} updated ({len(new_boxes)} boxes)")
        self._notify(image_key, new_boxes)

    def load_boxes(self, image_key: str, boxes: Iterable[Box]) -> None:
        """Install boxes fetched from storage without marking the image dirty."""
        self._boxes[image_key] = tuple(boxes)
        self._dirty.discard(image_key)
        self._notify(image_key, self._boxes[image_key])

    def has_image(self, image_key: str) -> bool:
        return image_key in self._boxes

    def forget(self, image_key: str) -> None:
        """Drop an image's boxes so the next open fetches them again."""
        if self._boxes.pop(image_key, None) is not None:
            self._dirty.discard(image_key)
            self._notify(image_key, ())

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, image_key: str, boxes: BoxList) -> None:
        for listener in list(self._listeners):
            listener(image_key, boxes)

    @property
    def dirty_keys(self) -> Set[str]:
        return set(self._dirty)

    def is_dirty(self, image_key: str) -> bool:
        return image_key in self._dirty

    def mark_clean(self, image_key: str) -> None:
        self._dirty.discard(image_key)

    def labeled_count(self, image_keys: Iterable[str]) -> Tuple[int, int]:
        """(images with at least one box, total images)."""
        keys = list(image_keys)
        labeled = sum(1 for k in keys if self._boxes.get(k))
        return labeled, len(keys)

    def to_dict(self) -> Dict[str, List[dict]]:
        return {key: [b.to_dict() for b in boxes] for key, boxes in self._boxes.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, List[dict]]) -> "AnnotationStore":
        return cls({key: [Box.from_dict(b) for b in boxes] for key, boxes in data.items()})
