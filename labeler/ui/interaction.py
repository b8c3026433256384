"""Pointer/keyboard driven editing of one image's boxes.

The controller turns screen-space pointer events into box edits. It owns
the gesture state (a tagged union: exactly one of ``Idle``, ``Drawing``,
``Panning``, ``Dragging``, ``Resizing``, ``Rotating``), the selection, the
pan-mode flag and the last-used size for the stamp gesture. Box lists live
in an :class:`AnnotationStore` and are replaced, never mutated.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional, Tuple, Union

from ..config.settings import LabelerConfig
from ..core import box_list
from ..core.entities import Box, ImageRect, LastSize, Point
from ..utils.geometry import (
    angle_about, clamp, contains_point, distance, from_local, image_rect_of, to_local
)
from .viewport import Viewport

if TYPE_CHECKING:
    from ..services.annotation_store import AnnotationStore

logger = logging.getLogger(__name__)

# Handle name -> (sx, sy) position in units of the half extents
HANDLES: Dict[str, Tuple[int, int]] = {
    "top-left": (-1, -1),
    "top-center": (0, -1),
    "top-right": (1, -1),
    "middle-left": (-1, 0),
    "middle-right": (1, 0),
    "bottom-left": (-1, 1),
    "bottom-center": (0, 1),
    "bottom-right": (1, 1),
}
ROTATE_HANDLE = "rotate"


# --------------------------------------------------------------------- states

@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class Drawing:
    anchor: Point  # image space, clamped to the image
    draft: Box


@dataclass(frozen=True, slots=True)
class Panning:
    anchor: Point  # screen space
    origin_pan: Point


@dataclass(frozen=True, slots=True)
class Dragging:
    start: Point  # image space
    origin: Box
    preview: Box


@dataclass(frozen=True, slots=True)
class Resizing:
    handle: str
    origin: Box
    preview: Box


@dataclass(frozen=True, slots=True)
class Rotating:
    start_angle: float
    origin: Box
    preview: Box


GestureState = Union[Idle, Drawing, Panning, Dragging, Resizing, Rotating]
EditState = (Dragging, Resizing, Rotating)


@dataclass(frozen=True, slots=True)
class NodeTransform:
    """Geometry of a center-pivot scene-graph node after a transform gesture.

    ``x, y`` is the node position, which is the box center because the
    node's offset is set to half its size.
    """
    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0


# -------------------------------------------------------------- draw decision

class DrawOutcome(Enum):
    STAMP = "stamp"
    COMMIT = "commit"
    DISCARD = "discard"


# (pointer barely moved, last size remembered) -> use the stamp or the drawn draft
_DRAW_DECISIONS = {
    (True, True): DrawOutcome.STAMP,
    (True, False): DrawOutcome.COMMIT,
    (False, True): DrawOutcome.COMMIT,
    (False, False): DrawOutcome.COMMIT,
}


def decide_draw_outcome(drag_distance: float, has_last_size: bool, draft: Box,
                        stamp_distance: float, min_size: float) -> DrawOutcome:
    outcome = _DRAW_DECISIONS[(drag_distance < stamp_distance, has_last_size)]
    if outcome is DrawOutcome.COMMIT and (draft.w < min_size or draft.h < min_size):
        return DrawOutcome.DISCARD
    return outcome


def draft_rect(draft: Box, anchor: Point, point: Point, min_size: float) -> Box:
    """Axis-aligned draft spanning the anchor and the pointer."""
    left, right = sorted((anchor[0], point[0]))
    top, bottom = sorted((anchor[1], point[1]))
    return replace(
        draft,
        cx=(left + right) / 2.0,
        cy=(top + bottom) / 2.0,
        w=max(min_size, right - left),
        h=max(min_size, bottom - top),
    )


def resize_box(box: Box, handle: str, point: Point) -> Box:
    """Move one handle to ``point`` keeping the opposite side fixed.

    Works in the box-local frame so rotated boxes resize along their own axes.
    The result may be arbitrarily small; callers clamp on commit.
    """
    sx, sy = HANDLES[handle]
    lx, ly = to_local(box, point)
    if sx:
        anchor_x = -sx * box.w / 2.0
        new_w, mid_x = abs(lx - anchor_x), (lx + anchor_x) / 2.0
    else:
        new_w, mid_x = box.w, 0.0
    if sy:
        anchor_y = -sy * box.h / 2.0
        new_h, mid_y = abs(ly - anchor_y), (ly + anchor_y) / 2.0
    else:
        new_h, mid_y = box.h, 0.0
    cx, cy = from_local(box, (mid_x, mid_y))
    return replace(box, cx=cx, cy=cy, w=new_w, h=new_h)


# ----------------------------------------------------------------- controller

class InteractionController:
    """Editing state machine for the image currently on the canvas."""

    def __init__(self, store: "AnnotationStore", config: Optional[LabelerConfig] = None,
                 viewport: Optional[Viewport] = None):
        self.store = store
        self.config = config or LabelerConfig()
        self.viewport = viewport or Viewport(self.config)
        self.image_key: Optional[str] = None
        self.state: GestureState = Idle()
        self.selected_id: Optional[str] = None
        self.active_class_id: int = 0
        self.last_size: Optional[LastSize] = None
        self.ghost_pos: Optional[Point] = None
        self.pan_mode: bool = False
        self._fit_pending: bool = False

    # ----------------------------------------------------------- image switch

    def load_image(self, image_key: str, width: float, height: float) -> None:
        """Show another image. Any gesture in progress is abandoned uncommitted."""
        if not isinstance(self.state, Idle):
            logger.debug(f"Abandoning {type(self.state).__name__} gesture on image switch")
        self.image_key = image_key
        self.state = Idle()
        self.clear_selection()
        self.ghost_pos = None
        self.viewport.set_image_size(width, height)
        self._fit_pending = True
        self._fit_if_pending()

    def set_viewport_size(self, width: float, height: float) -> None:
        self.viewport.set_viewport_size(width, height)
        self._fit_if_pending()

    def _fit_if_pending(self) -> None:
        if self._fit_pending and self.viewport.fit_to_screen():
            self._fit_pending = False

    # ------------------------------------------------------------------ boxes

    @property
    def boxes(self) -> box_list.BoxList:
        if self.image_key is None:
            return ()
        return self.store.get_boxes(self.image_key)

    def _write(self, boxes: box_list.BoxList) -> None:
        if self.image_key is not None:
            self.store.set_boxes(self.image_key, boxes)

    @property
    def selected_box(self) -> Optional[Box]:
        return box_list.find_box(self.boxes, self.selected_id)

    @property
    def draft(self) -> Optional[Box]:
        return self.state.draft if isinstance(self.state, Drawing) else None

    @property
    def is_drawing(self) -> bool:
        return isinstance(self.state, Drawing)

    @property
    def is_panning(self) -> bool:
        return isinstance(self.state, Panning)

    def display_boxes(self) -> box_list.BoxList:
        """Committed boxes with any in-progress edit preview substituted."""
        if isinstance(self.state, EditState):
            preview = self.state.preview
            return tuple(preview if b.id == preview.id else b for b in self.boxes)
        return self.boxes

    # --------------------------------------------------------------- pointer

    def pointer_down(self, sx: float, sy: float) -> None:
        if self.image_key is None:
            return
        if self.pan_mode:
            self.state = Panning(anchor=(sx, sy), origin_pan=self.viewport.pan)
            return
        if not self.viewport.has_image:
            return

        point = self.viewport.screen_to_image((sx, sy))
        selected = self.selected_box
        if selected is not None:
            handle = self.handle_at(selected, point)
            if handle == ROTATE_HANDLE:
                self.state = Rotating(
                    start_angle=angle_about((selected.cx, selected.cy), point),
                    origin=selected, preview=selected,
                )
                return
            if handle is not None:
                self.state = Resizing(handle=handle, origin=selected, preview=selected)
                return

        hit = self.box_at(point)
        if hit is not None:
            self.selected_id = hit.id
            self.state = Dragging(start=point, origin=hit, preview=hit)
            return

        px = clamp(point[0], 0.0, self.viewport.image_w)
        py = clamp(point[1], 0.0, self.viewport.image_h)
        self.clear_selection()
        self.state = Drawing(
            anchor=(px, py),
            draft=Box.create(self.active_class_id, px, py, 1.0, 1.0, 0.0),
        )

    def pointer_move(self, sx: float, sy: float) -> None:
        state = self.state
        if isinstance(state, Panning):
            self.viewport.set_pan(state.origin_pan[0] + sx - state.anchor[0],
                                  state.origin_pan[1] + sy - state.anchor[1])
            return
        if not self.viewport.has_image:
            return

        point = self.viewport.screen_to_image((sx, sy))
        clamped = (clamp(point[0], 0.0, self.viewport.image_w),
                   clamp(point[1], 0.0, self.viewport.image_h))

        if isinstance(state, Idle):
            if self.last_size is not None and not self.pan_mode:
                self.ghost_pos = clamped
        elif isinstance(state, Drawing):
            self.state = Drawing(
                anchor=state.anchor,
                draft=draft_rect(state.draft, state.anchor, clamped, self.config.draft_min_size),
            )
        elif isinstance(state, Dragging):
            dx, dy = point[0] - state.start[0], point[1] - state.start[1]
            preview = replace(state.origin, cx=state.origin.cx + dx, cy=state.origin.cy + dy)
            self.state = replace(state, preview=preview)
        elif isinstance(state, Resizing):
            self.state = replace(state, preview=resize_box(state.origin, state.handle, point))
        elif isinstance(state, Rotating):
            angle = angle_about((state.origin.cx, state.origin.cy), point)
            rotation = state.origin.rotation + angle - state.start_angle
            self.state = replace(state, preview=replace(state.origin, rotation=rotation))

    def pointer_up(self, sx: float, sy: float) -> None:
        state = self.state
        self.state = Idle()
        if isinstance(state, Panning) or isinstance(state, Idle):
            return
        if isinstance(state, Drawing):
            self._finish_draw(state, self.viewport.screen_to_image((sx, sy)))
        elif isinstance(state, Dragging):
            if (state.preview.cx, state.preview.cy) != (state.origin.cx, state.origin.cy):
                self.move_box(state.origin.id, state.preview.cx, state.preview.cy)
        elif isinstance(state, (Resizing, Rotating)):
            if state.preview != state.origin:
                p = state.preview
                self._commit_geometry(p.id, p.cx, p.cy, p.w, p.h, p.rotation)

    def pointer_leave(self, sx: float, sy: float) -> None:
        """Leaving the canvas ends the gesture exactly like releasing the pointer."""
        self.pointer_up(sx, sy)

    def _finish_draw(self, state: Drawing, up_point: Point) -> None:
        moved = distance(up_point, state.anchor)
        outcome = decide_draw_outcome(
            moved, self.last_size is not None, state.draft,
            self.config.stamp_distance, self.config.commit_min_size,
        )
        if outcome is DrawOutcome.STAMP:
            size = self.last_size
            box = Box.create(self.active_class_id, up_point[0], up_point[1],
                             size.w, size.h, size.rotation)
            self._write(box_list.add_box(self.boxes, box))
            self.selected_id = box.id
            logger.debug(f"Stamped box {box.id} at ({up_point[0]:.1f}, {up_point[1]:.1f})")
        elif outcome is DrawOutcome.COMMIT:
            box = state.draft
            self._write(box_list.add_box(self.boxes, box))
            self.selected_id = box.id
            self.last_size = LastSize(box.w, box.h, box.rotation)
            logger.debug(f"Committed box {box.id} {box.w:.1f}x{box.h:.1f}")
        else:
            logger.debug(f"Discarded draft {state.draft.w:.1f}x{state.draft.h:.1f}")

    # ------------------------------------------------------------ hit testing

    def _handle_radius(self) -> float:
        return self.viewport.screen_length(self.config.handle_size)

    def handle_positions(self, box: Box) -> Dict[str, Point]:
        """Image-space position of every resize handle plus the rotate handle."""
        positions = {
            name: from_local(box, (sx * box.w / 2.0, sy * box.h / 2.0))
            for name, (sx, sy) in HANDLES.items()
        }
        offset = self.viewport.screen_length(self.config.rotate_handle_offset)
        positions[ROTATE_HANDLE] = from_local(box, (0.0, -box.h / 2.0 - offset))
        return positions

    def handle_at(self, box: Box, point: Point) -> Optional[str]:
        if self.pan_mode:
            return None
        radius = self._handle_radius()
        for name, (hx, hy) in self.handle_positions(box).items():
            if abs(point[0] - hx) <= radius and abs(point[1] - hy) <= radius:
                return name
        return None

    def box_at(self, point: Point) -> Optional[Box]:
        """Topmost (last drawn) box under ``point``."""
        for box in reversed(self.boxes):
            if contains_point(box, point):
                return box
        return None

    # --------------------------------------------------------- direct edits

    def select(self, box_id: Optional[str]) -> None:
        if self.pan_mode:
            return
        if box_id is None or box_list.find_box(self.boxes, box_id) is not None:
            self.selected_id = box_id

    def clear_selection(self) -> None:
        self.selected_id = None

    def delete_selected(self) -> bool:
        if self.selected_id is None:
            return False
        box_id = self.selected_id
        self._write(box_list.remove_box(self.boxes, box_id))
        self.clear_selection()
        logger.debug(f"Deleted box {box_id}")
        return True

    def set_active_class(self, class_id: int) -> None:
        """Change the class for new boxes and re-tag the selected box."""
        self.active_class_id = class_id
        if self.selected_id is not None:
            self._write(box_list.retag_box(self.boxes, self.selected_id, class_id))

    def move_box(self, box_id: str, cx: float, cy: float) -> None:
        self._write(box_list.update_box(self.boxes, box_id, cx=cx, cy=cy))

    def _commit_geometry(self, box_id: str, cx: float, cy: float, w: float, h: float,
                         rotation: float) -> None:
        w = max(self.config.draft_min_size, abs(w))
        h = max(self.config.draft_min_size, abs(h))
        self._write(box_list.update_box(self.boxes, box_id, cx=cx, cy=cy, w=w, h=h,
                                        rotation=rotation))
        self.last_size = LastSize(w, h, rotation)

    def apply_node_transform(self, box_id: str, node: NodeTransform) -> NodeTransform:
        """Fold a scene-graph node's scale into the box and reset the scale to 1.

        Returns the node geometry to write back, so later transforms start
        from scale 1 and never compound.
        """
        w = node.width * node.scale_x
        h = node.height * node.scale_y
        self._commit_geometry(box_id, node.x, node.y, w, h, node.rotation)
        box = box_list.find_box(self.boxes, box_id)
        width, height = (box.w, box.h) if box else (abs(w), abs(h))
        return NodeTransform(node.x, node.y, width, height, node.rotation, 1.0, 1.0)

    # ---------------------------------------------------------- view actions

    def wheel(self, delta_x: float, delta_y: float, screen_point: Point,
              ctrl: bool = False, meta: bool = False, shift: bool = False) -> None:
        """Ctrl/Meta + wheel zooms at the cursor; a plain wheel pans."""
        if ctrl or meta:
            step = self.config.wheel_zoom_step
            self.viewport.zoom_at(1.0 / step if delta_y > 0 else step, screen_point)
            return
        factor = self.config.wheel_pan_factor
        if shift:
            self.viewport.pan_by(-delta_y * factor, 0.0)
        else:
            self.viewport.pan_by(-delta_x * factor, -delta_y * factor)

    def zoom_in(self) -> None:
        self.viewport.zoom_at(self.config.button_zoom_step)

    def zoom_out(self) -> None:
        self.viewport.zoom_at(1.0 / self.config.button_zoom_step)

    def fit(self) -> None:
        self.viewport.fit_to_screen()

    def actual_size(self) -> None:
        self.viewport.actual_size()

    def double_click(self) -> None:
        self.fit()

    def toggle_pan_mode(self) -> bool:
        """Flip pan mode; an unfinished draw or edit is dropped."""
        self.pan_mode = not self.pan_mode
        if not isinstance(self.state, (Idle, Panning)):
            self.state = Idle()
        if self.pan_mode:
            self.ghost_pos = None
        return self.pan_mode

    @property
    def handles_visible(self) -> bool:
        return self.selected_id is not None and not self.pan_mode

    def ghost_rect(self) -> Optional[ImageRect]:
        """Preview of the box a click would stamp."""
        if (self.pan_mode or not isinstance(self.state, Idle)
                or self.last_size is None or self.ghost_pos is None):
            return None
        size = self.last_size
        gx, gy = self.ghost_pos
        return image_rect_of(Box("ghost", self.active_class_id, gx, gy,
                                 size.w, size.h, size.rotation))
