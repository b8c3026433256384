"""Core domain entities, list operations and exceptions."""

from .entities import Box, ClassDef, LastSize, ImageRect, AnnotationRecord, Point, Size
from .exceptions import (
    LabelerError, ConfigError, ValidationError, ImageSourceError, ExportError, SessionError
)

__all__ = [
    "Box", "ClassDef", "LastSize", "ImageRect", "AnnotationRecord", "Point", "Size",
    "LabelerError", "ConfigError", "ValidationError", "ImageSourceError",
    "ExportError", "SessionError",
]
