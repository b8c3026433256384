"""Viewport transform between image space and screen space.

The map is ``screen = image * scale + pan``. Every other component goes
through :meth:`Viewport.screen_to_image` / :meth:`Viewport.image_to_screen`
and never does its own scale/pan arithmetic.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from ..config.settings import LabelerConfig
from ..core.entities import ImageRect, Point
from ..utils.geometry import clamp

MINIMAP_MAX_W = 200.0
MINIMAP_MAX_H = 140.0
MINIMAP_MIN_W = 80.0
MINIMAP_MIN_H = 60.0


@dataclass(frozen=True, slots=True)
class Minimap:
    scale: float
    width: float
    height: float


class Viewport:
    """Zoom scale and pan offset for one canvas.

    All operations are no-ops while the image or viewport size is unknown
    (zero), so no NaN or infinity can reach box geometry.
    """

    def __init__(self, config: Optional[LabelerConfig] = None):
        self.config = config or LabelerConfig()
        self.scale: float = 1.0
        self.pan_x: float = 0.0
        self.pan_y: float = 0.0
        self.image_w: float = 0.0
        self.image_h: float = 0.0
        self.view_w: float = 0.0
        self.view_h: float = 0.0

    # ------------------------------------------------------------------ sizes

    def set_image_size(self, width: float, height: float) -> None:
        self.image_w = max(0.0, float(width or 0))
        self.image_h = max(0.0, float(height or 0))

    def set_viewport_size(self, width: float, height: float) -> None:
        self.view_w = max(0.0, float(width or 0))
        self.view_h = max(0.0, float(height or 0))

    @property
    def has_image(self) -> bool:
        return self.image_w > 0 and self.image_h > 0

    @property
    def is_ready(self) -> bool:
        return self.has_image and self.view_w > 0 and self.view_h > 0

    @property
    def pan(self) -> Point:
        return (self.pan_x, self.pan_y)

    # ------------------------------------------------------------ scale limits

    @property
    def fit_scale(self) -> float:
        if not self.is_ready:
            return 1.0
        return min(self.view_w / self.image_w, self.view_h / self.image_h)

    @property
    def min_scale(self) -> float:
        return max(self.config.min_scale_floor, self.fit_scale * self.config.min_scale_fit_ratio)

    @property
    def max_scale(self) -> float:
        return self.config.max_scale

    @property
    def zoom_percent(self) -> int:
        return round(self.scale * 100)

    # ---------------------------------------------------------------- actions

    def fit_to_screen(self) -> bool:
        """Scale the whole image into the viewport and center it."""
        if not self.is_ready:
            return False
        self._set_centered(self.fit_scale)
        return True

    def actual_size(self) -> bool:
        """Show the image at 100% and center it."""
        if not self.is_ready:
            return False
        self._set_centered(1.0)
        return True

    def _set_centered(self, scale: float) -> None:
        self.scale = scale
        self.pan_x = (self.view_w - self.image_w * scale) / 2.0
        self.pan_y = (self.view_h - self.image_h * scale) / 2.0

    def zoom_at(self, factor: float, screen_point: Optional[Point] = None) -> bool:
        """Zoom by ``factor`` keeping the image point under ``screen_point`` fixed.

        ``screen_point`` defaults to the viewport center.
        """
        if not self.is_ready or not factor or factor <= 0:
            return False
        if screen_point is None:
            screen_point = (self.view_w / 2.0, self.view_h / 2.0)
        sx, sy = screen_point
        ix, iy = self.screen_to_image(screen_point)
        new_scale = clamp(self.scale * factor, self.min_scale, self.max_scale)
        self.scale = new_scale
        self.pan_x = sx - ix * new_scale
        self.pan_y = sy - iy * new_scale
        return True

    def pan_by(self, dx: float, dy: float) -> None:
        if not self.is_ready:
            return
        self.pan_x += dx
        self.pan_y += dy

    def set_pan(self, x: float, y: float) -> None:
        if not self.is_ready:
            return
        self.pan_x = x
        self.pan_y = y

    def center_on_image_point(self, ix: float, iy: float) -> None:
        if not self.is_ready:
            return
        self.pan_x = self.view_w / 2.0 - ix * self.scale
        self.pan_y = self.view_h / 2.0 - iy * self.scale

    # ------------------------------------------------------------- transforms

    def screen_to_image(self, screen_point: Point) -> Point:
        return ((screen_point[0] - self.pan_x) / self.scale,
                (screen_point[1] - self.pan_y) / self.scale)

    def image_to_screen(self, image_point: Point) -> Point:
        return (image_point[0] * self.scale + self.pan_x,
                image_point[1] * self.scale + self.pan_y)

    def screen_length(self, length: float) -> float:
        """Convert a screen-pixel length (handle sizes) to image pixels."""
        return length / self.scale

    def visible_image_rect(self) -> ImageRect:
        """Part of the image currently shown, clamped to the image."""
        if not self.has_image:
            return ImageRect(0.0, 0.0, 0.0, 0.0)
        return ImageRect(
            x=clamp(-self.pan_x / self.scale, 0.0, self.image_w),
            y=clamp(-self.pan_y / self.scale, 0.0, self.image_h),
            width=clamp(self.view_w / self.scale, 0.0, self.image_w),
            height=clamp(self.view_h / self.scale, 0.0, self.image_h),
        )

    # ---------------------------------------------------------------- minimap

    def minimap(self) -> Minimap:
        if not self.has_image:
            return Minimap(1.0, 180.0, 120.0)
        scale = min(MINIMAP_MAX_W / self.image_w, MINIMAP_MAX_H / self.image_h)
        return Minimap(
            scale=scale,
            width=max(MINIMAP_MIN_W, self.image_w * scale),
            height=max(MINIMAP_MIN_H, self.image_h * scale),
        )

    def minimap_to_image(self, point: Point) -> Optional[Point]:
        if not self.has_image:
            return None
        mm = self.minimap()
        mx = clamp(point[0], 0.0, mm.width)
        my = clamp(point[1], 0.0, mm.height)
        return (mx / mm.scale, my / mm.scale)

    def center_on_minimap_point(self, point: Point) -> None:
        image_point = self.minimap_to_image(point)
        if image_point is not None:
            self.center_on_image_point(*image_point)
