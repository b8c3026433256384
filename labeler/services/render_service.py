"""Draw boxes onto an image for previews and saved reference images."""
from __future__ import annotations
import logging
from typing import Iterable, Optional, Tuple

import cv2
import numpy as np
from PIL import ImageColor

from ..core.entities import Box
from ..utils.geometry import box_corners
from .class_registry import ClassRegistry

logger = logging.getLogger(__name__)

FALLBACK_BGR = (255, 255, 255)


def color_to_bgr(color: str) -> Tuple[int, int, int]:
    """CSS color name or hex string to an OpenCV BGR tuple; white if unknown."""
    try:
        r, g, b = ImageColor.getrgb(color)[:3]
    except ValueError:
        logger.debug(f"Unknown color {color!r}, using white")
        return FALLBACK_BGR
    return (b, g, r)


def render_annotations(image: np.ndarray, boxes: Iterable[Box],
                       registry: Optional[ClassRegistry] = None,
                       selected_id: Optional[str] = None,
                       thickness: int = 2,
                       draw_labels: bool = True,
                       draft: Optional[Box] = None,
                       draft_color: str = "yellow") -> np.ndarray:
    """Return a copy of ``image`` (BGR) with every box outlined.

    Boxes are drawn as rotated polygons about their own centers, the same
    corners the OBB export writes. The selected box gets a thicker outline.
    A ``draft`` box still being drawn is outlined in ``draft_color`` without
    a label.
    """
    annotated = image.copy()
    registry = registry or ClassRegistry()

    for box in boxes:
        color = color_to_bgr(registry.color_for(box.class_id))
        pts = np.round(box_corners(box)).astype(np.int32).reshape(-1, 1, 2)
        width = thickness * 2 if box.id == selected_id else thickness
        cv2.polylines(annotated, [pts], isClosed=True, color=color, thickness=width)

        if draw_labels:
            x, y = pts[0, 0]
            label = registry.name_for(box.class_id)
            (text_w, text_h), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, 0.5, 1)
            top = max(0, int(y) - text_h - baseline - 4)
            cv2.rectangle(annotated, (int(x), top), (int(x) + text_w, top + text_h + baseline + 4),
                          color, -1)
            cv2.putText(annotated, label, (int(x), top + text_h + 2),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.5, (0, 0, 0), 1)

    if draft is not None:
        pts = np.round(box_corners(draft)).astype(np.int32).reshape(-1, 1, 2)
        cv2.polylines(annotated, [pts], isClosed=True, color=color_to_bgr(draft_color),
                      thickness=1)

    return annotated
