"""Domain entities (data-only structures) used across services."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple
import uuid

Point = Tuple[float, float]  # (x, y)
Size = Tuple[int, int]  # (width, height)


def new_box_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True, slots=True)
class Box:
    """A possibly rotated box in image pixel space.

    ``rotation`` is in degrees, clockwise on screen, and pivots about the
    box center ``(cx, cy)``.
    """
    id: str
    class_id: int
    cx: float
    cy: float
    w: float
    h: float
    rotation: float = 0.0

    @classmethod
    def create(cls, class_id: int, cx: float, cy: float, w: float, h: float,
               rotation: float = 0.0) -> "Box":
        return cls(new_box_id(), class_id, cx, cy, w, h, rotation)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "class_id": self.class_id,
            "cx": self.cx,
            "cy": self.cy,
            "w": self.w,
            "h": self.h,
            "rotation": self.rotation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Box":
        return cls(
            id=str(data.get("id") or new_box_id()),
            class_id=int(data["class_id"]),
            cx=float(data["cx"]),
            cy=float(data["cy"]),
            w=float(data["w"]),
            h=float(data["h"]),
            rotation=float(data.get("rotation", 0.0)),
        )


@dataclass(frozen=True, slots=True)
class ClassDef:
    id: int
    name: str


@dataclass(frozen=True, slots=True)
class LastSize:
    """Size remembered for the stamp gesture."""
    w: float
    h: float
    rotation: float = 0.0


@dataclass(frozen=True, slots=True)
class ImageRect:
    """Unrotated top-left rectangle plus rotation about its own center."""
    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0

    @property
    def pivot(self) -> Point:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)


@dataclass(frozen=True, slots=True)
class AnnotationRecord:
    """Persisted annotation: normalized fields plus optional pixel fields."""
    class_id: int
    cx: float
    cy: float
    width: float
    height: float
    rotation: float = 0.0
    px_cx: Optional[float] = None
    px_cy: Optional[float] = None
    px_width: Optional[float] = None
    px_height: Optional[float] = None
    id: Optional[str] = None

    def to_dict(self) -> dict:
        d = {
            "class_id": self.class_id,
            "cx": self.cx,
            "cy": self.cy,
            "width": self.width,
            "height": self.height,
            "rotation": self.rotation,
            "px_cx": self.px_cx,
            "px_cy": self.px_cy,
            "px_width": self.px_width,
            "px_height": self.px_height,
        }
        if self.id is not None:
            d["id"] = self.id
        return d
