"""YOLO text codec for axis-aligned (BBox) and oriented (OBB) boxes.

BBox lines are ``class cx cy w h``; OBB lines are ``class x1 y1 x2 y2 x3 y3 x4 y4``.
All coordinates are normalized to [0, 1] and written with six decimals.
Pure and stateless: nothing here raises on odd geometry, only on malformed
text being parsed.
"""
from __future__ import annotations
import logging
import math
from dataclasses import replace
from enum import Enum
from typing import Iterable, List, Optional

import numpy as np

from ..core.entities import AnnotationRecord, Box
from ..core.exceptions import ValidationError
from ..utils.geometry import box_corners, polygon_to_box

logger = logging.getLogger(__name__)


class ExportMode(str, Enum):
    BBOX = "bbox"
    OBB = "obb"

    @classmethod
    def parse(cls, value: "str | ExportMode") -> "ExportMode":
        try:
            return cls(str(getattr(value, "value", value)).lower())
        except ValueError:
            raise ValidationError(f"Unknown export mode: {value!r}") from None


def _ratio(value: float, total: float) -> float:
    """``value / total`` with zero for a non-positive total or non-finite result."""
    if not total or total <= 0:
        return 0.0
    result = value / total
    return result if math.isfinite(result) else 0.0


def clamp01(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return min(1.0, max(0.0, value))


def _fmt(value: float) -> str:
    return f"{clamp01(value):.6f}"


def bbox_line(box: Box, img_w: float, img_h: float) -> str:
    values = (
        _ratio(box.cx, img_w),
        _ratio(box.cy, img_h),
        _ratio(box.w, img_w),
        _ratio(box.h, img_h),
    )
    return f"{box.class_id} " + " ".join(_fmt(v) for v in values)


def obb_corners(box: Box, img_w: float, img_h: float) -> np.ndarray:
    """Normalized, clamped (4, 2) corners in the box's own TL, TR, BR, BL order."""
    corners = box_corners(box)
    out = np.empty_like(corners)
    for i, (x, y) in enumerate(corners):
        out[i, 0] = clamp01(_ratio(float(x), img_w))
        out[i, 1] = clamp01(_ratio(float(y), img_h))
    return out


def obb_line(box: Box, img_w: float, img_h: float) -> str:
    pts = obb_corners(box, img_w, img_h)
    return f"{box.class_id} " + " ".join(_fmt(v) for v in pts.reshape(-1))


def export_bbox(boxes: Iterable[Box], img_w: float, img_h: float) -> str:
    """BBox YOLO text; rotation has no slot in this format and is dropped."""
    lines = []
    for box in boxes:
        if box.rotation % 360:
            logger.warning(
                f"Box {box.id} is rotated {box.rotation:.1f} deg; BBox export drops rotation"
            )
        lines.append(bbox_line(box, img_w, img_h))
    return "\n".join(lines)


def export_obb(boxes: Iterable[Box], img_w: float, img_h: float) -> str:
    return "\n".join(obb_line(box, img_w, img_h) for box in boxes)


def export_boxes(boxes: Iterable[Box], img_w: float, img_h: float,
                 mode: "str | ExportMode" = ExportMode.OBB) -> str:
    if ExportMode.parse(mode) is ExportMode.BBOX:
        return export_bbox(boxes, img_w, img_h)
    return export_obb(boxes, img_w, img_h)


def _split(line: str, expected: int) -> List[str]:
    parts = line.split()
    if len(parts) != expected:
        raise ValidationError(f"Expected {expected} fields, got {len(parts)}: {line!r}")
    return parts


def _class_id(token: str) -> int:
    try:
        class_id = int(float(token))
    except ValueError:
        raise ValidationError(f"Invalid class id: {token!r}") from None
    if class_id < 0:
        raise ValidationError(f"Negative class id: {class_id}")
    return class_id


def _floats(tokens: List[str]) -> List[float]:
    try:
        values = [float(t) for t in tokens]
    except ValueError as e:
        raise ValidationError(f"Invalid coordinate: {e}") from None
    if not all(math.isfinite(v) for v in values):
        raise ValidationError(f"Non-finite coordinate in {tokens}")
    return values


def parse_bbox_line(line: str, img_w: float, img_h: float) -> Box:
    """Denormalize a ``class cx cy w h`` line into a pixel-space box."""
    parts = _split(line, 5)
    cx, cy, w, h = _floats(parts[1:])
    return Box.create(_class_id(parts[0]), cx * img_w, cy * img_h, w * img_w, h * img_h)


def parse_obb_line(line: str, img_w: float, img_h: float) -> Box:
    """Denormalize a four-point polygon line into a rotated pixel-space box."""
    parts = _split(line, 9)
    coords = np.array(_floats(parts[1:])).reshape(4, 2) * np.array([img_w, img_h])
    return polygon_to_box(coords, class_id=_class_id(parts[0]))


def parse_labels(text: str, img_w: float, img_h: float,
                 mode: "str | ExportMode" = ExportMode.OBB) -> List[Box]:
    """Parse label text, skipping (and logging) malformed lines."""
    parser = parse_bbox_line if ExportMode.parse(mode) is ExportMode.BBOX else parse_obb_line
    boxes = []
    for number, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            boxes.append(parser(line, img_w, img_h))
        except ValidationError as e:
            logger.warning(f"Skipping label line {number}: {e}")
    return boxes


def box_to_record(box: Box, img_w: float, img_h: float) -> AnnotationRecord:
    """Normalized fields for storage, plus the pixel geometry as-is."""
    return AnnotationRecord(
        class_id=box.class_id,
        cx=clamp01(_ratio(box.cx, img_w)),
        cy=clamp01(_ratio(box.cy, img_h)),
        width=clamp01(_ratio(abs(box.w), img_w)),
        height=clamp01(_ratio(abs(box.h), img_h)),
        rotation=box.rotation,
        px_cx=box.cx,
        px_cy=box.cy,
        px_width=box.w,
        px_height=box.h,
        id=box.id,
    )


def _pick(pixel: Optional[float], normalized: float, size: float) -> float:
    return float(pixel) if pixel is not None else normalized * size


def record_to_box(record: AnnotationRecord, img_w: float, img_h: float) -> Box:
    """Rebuild a pixel-space box; stored pixel fields win over normalized ones."""
    box = Box.create(
        class_id=record.class_id,
        cx=_pick(record.px_cx, record.cx, img_w),
        cy=_pick(record.px_cy, record.cy, img_h),
        w=_pick(record.px_width, record.width, img_w),
        h=_pick(record.px_height, record.height, img_h),
        rotation=record.rotation,
    )
    if record.id is not None:
        return replace(box, id=str(record.id))
    return box


def record_from_dict(data: dict) -> AnnotationRecord:
    try:
        return AnnotationRecord(
            class_id=int(data["class_id"]),
            cx=float(data["cx"]),
            cy=float(data["cy"]),
            width=float(data["width"]),
            height=float(data["height"]),
            rotation=float(data.get("rotation") or 0.0),
            px_cx=_optional_float(data.get("px_cx")),
            px_cy=_optional_float(data.get("px_cy")),
            px_width=_optional_float(data.get("px_width")),
            px_height=_optional_float(data.get("px_height")),
            id=str(data["id"]) if data.get("id") is not None else None,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid annotation record {data!r}: {e}") from e


def _optional_float(value) -> Optional[float]:
    return None if value is None else float(value)
