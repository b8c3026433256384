"""Pure replace-on-write operations over an image's box list.

Every function returns a new tuple; the input is never mutated.
"""
from __future__ import annotations
from dataclasses import replace
from typing import Iterable, Optional, Tuple

from .entities import Box

BoxList = Tuple[Box, ...]


def add_box(boxes: Iterable[Box], box: Box) -> BoxList:
    return tuple(boxes) + (box,)


def update_box(boxes: Iterable[Box], box_id: str, **patch) -> BoxList:
    return tuple(replace(b, **patch) if b.id == box_id else b for b in boxes)


def remove_box(boxes: Iterable[Box], box_id: str) -> BoxList:
    return tuple(b for b in boxes if b.id != box_id)


def retag_box(boxes: Iterable[Box], box_id: str, class_id: int) -> BoxList:
    return update_box(boxes, box_id, class_id=class_id)


def find_box(boxes: Iterable[Box], box_id: Optional[str]) -> Optional[Box]:
    if box_id is None:
        return None
    for b in boxes:
        if b.id == box_id:
            return b
    return None
