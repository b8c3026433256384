"""
Box and oriented-box annotation engine for YOLO datasets.
"""

__version__ = "1.0.0"

from .config.settings import LabelerConfig, load_config, save_config
from .core.entities import Box, ClassDef, LastSize, ImageRect, AnnotationRecord

__all__ = [
    "LabelerConfig", "load_config", "save_config",
    "Box", "ClassDef", "LastSize", "ImageRect", "AnnotationRecord",
]
