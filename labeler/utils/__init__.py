"""Utility functions package."""

from .geometry import (
    clamp, distance, rotate_point, image_rect_of, box_corners, to_local, from_local,
    contains_point, angle_about, polygon_to_box
)
from .file_utils import label_filename, list_images, read_label_lines, write_text_file

__all__ = [
    "clamp", "distance", "rotate_point", "image_rect_of", "box_corners", "to_local",
    "from_local", "contains_point", "angle_about", "polygon_to_box",
    "label_filename", "list_images", "read_label_lines", "write_text_file",
]
