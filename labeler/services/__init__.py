"""Labeling services: codec, storage, classes, images, export, sessions."""

from .annotation_store import AnnotationStore
from .class_registry import ClassRegistry, load_class_names
from .image_source import ImageSource
from .yolo_codec import (
    ExportMode, export_bbox, export_obb, export_boxes, parse_labels,
    box_to_record, record_to_box
)
from .export_service import ExportService
from .render_service import render_annotations
from .session_service import LabelingSession, SessionState, load_session, save_session

__all__ = [
    "AnnotationStore", "ClassRegistry", "load_class_names", "ImageSource",
    "ExportMode", "export_bbox", "export_obb", "export_boxes", "parse_labels",
    "box_to_record", "record_to_box", "ExportService", "render_annotations",
    "LabelingSession", "SessionState", "load_session", "save_session",
]
