"""Geometry helpers for rotated boxes (pure, easily unit tested).

All boxes rotate about their own center. Corner order is always the
box's own top-left, top-right, bottom-right, bottom-left, before rotation.
"""
from __future__ import annotations
import math
from typing import Sequence

import numpy as np

from ..core.entities import Box, ImageRect, Point

# Unit corners in the box-local frame, scaled by (w/2, h/2)
_UNIT_CORNERS = np.array([
    [-1.0, -1.0],  # Top-left
    [1.0, -1.0],   # Top-right
    [1.0, 1.0],    # Bottom-right
    [-1.0, 1.0],   # Bottom-left
])


def clamp(value: float, lo: float, hi: float) -> float:
    return min(hi, max(lo, value))


def distance(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def rotation_matrix(degrees: float) -> np.ndarray:
    """2x2 matrix applied to row vectors: ``points @ m.T``."""
    theta = math.radians(degrees)
    c, s = math.cos(theta), math.sin(theta)
    return np.array([[c, -s], [s, c]])


def rotate_point(point: Point, degrees: float) -> Point:
    theta = math.radians(degrees)
    c, s = math.cos(theta), math.sin(theta)
    x, y = point
    return (x * c - y * s, x * s + y * c)


def image_rect_of(box: Box) -> ImageRect:
    """Top-left rectangle of a box; rotation is applied about ``rect.pivot``."""
    return ImageRect(
        x=box.cx - box.w / 2.0,
        y=box.cy - box.h / 2.0,
        width=box.w,
        height=box.h,
        rotation=box.rotation,
    )


def box_corners(box: Box) -> np.ndarray:
    """Return a (4, 2) array of pixel corners: TL, TR, BR, BL pre-rotation."""
    local = _UNIT_CORNERS * np.array([box.w / 2.0, box.h / 2.0])
    rotated = local @ rotation_matrix(box.rotation).T
    return rotated + np.array([box.cx, box.cy])


def to_local(box: Box, point: Point) -> Point:
    """Map an image-space point into the box's unrotated, centered frame."""
    return rotate_point((point[0] - box.cx, point[1] - box.cy), -box.rotation)


def from_local(box: Box, point: Point) -> Point:
    rx, ry = rotate_point(point, box.rotation)
    return (box.cx + rx, box.cy + ry)


def contains_point(box: Box, point: Point, margin: float = 0.0) -> bool:
    lx, ly = to_local(box, point)
    return abs(lx) <= box.w / 2.0 + margin and abs(ly) <= box.h / 2.0 + margin


def angle_about(center: Point, point: Point) -> float:
    """Screen angle in degrees of ``point`` seen from ``center`` (0 = +x, clockwise)."""
    return math.degrees(math.atan2(point[1] - center[1], point[0] - center[0]))


def polygon_to_box(points: Sequence[Sequence[float]], class_id: int = 0) -> Box:
    """Rebuild a box from its four corners in TL, TR, BR, BL order."""
    pts = np.asarray(points, dtype=float).reshape(4, 2)
    cx, cy = pts.mean(axis=0)
    edge_w = pts[1] - pts[0]
    edge_h = pts[2] - pts[1]
    rotation = math.degrees(math.atan2(edge_w[1], edge_w[0]))
    return Box.create(
        class_id=class_id,
        cx=float(cx),
        cy=float(cy),
        w=float(np.hypot(*edge_w)),
        h=float(np.hypot(*edge_h)),
        rotation=rotation,
    )
