"""Bulk export of per-image box lists to YOLO label files."""
from __future__ import annotations
import logging
import os
import zipfile
from typing import Dict, Iterable

from ..core.exceptions import ExportError
from ..core.logging_config import CorrelationContext
from ..utils.file_utils import label_filename, write_text_file
from .annotation_store import AnnotationStore
from .image_source import ImageSource
from .yolo_codec import ExportMode, export_boxes

logger = logging.getLogger(__name__)


class ExportService:
    """Turns every image's boxes into one label text per image."""

    def __init__(self, image_source: ImageSource):
        self.image_source = image_source

    def build(self, image_refs: Iterable[str], store: AnnotationStore,
              mode: "str | ExportMode" = ExportMode.OBB) -> Dict[str, str]:
        """Encode label text for each image, in the order given.

        Args:
            image_refs: Image references, also used as the store keys
            store: Per-image box lists
            mode: ``obb`` (four-point polygon) or ``bbox``

        Returns:
            Mapping of label file name to label text
        """
        mode = ExportMode.parse(mode)
        files: Dict[str, str] = {}
        with CorrelationContext():
            for ref in image_refs:
                boxes = store.get_boxes(ref)
                width, height = self.image_source.get_size(ref)
                name = label_filename(ref)
                if name in files:
                    logger.warning(f"Label file {name} produced by more than one image; keeping the last")
                files[name] = export_boxes(boxes, width, height, mode)
            logger.info(f"Encoded {len(files)} label files ({mode.value})")
        return files

    @staticmethod
    def default_archive_name(mode: "str | ExportMode") -> str:
        return f"labels_{ExportMode.parse(mode).value}.zip"

    def write_archive(self, files: Dict[str, str], path: str) -> str:
        """Bundle label files into a zip archive."""
        try:
            directory = os.path.dirname(path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for name, text in files.items():
                    zf.writestr(name, text.encode("utf-8"))
        except OSError as e:
            raise ExportError(f"Failed to write archive {path}: {e}") from e
        logger.info(f"Wrote {len(files)} label files to {path}")
        return path

    def write_labels_dir(self, files: Dict[str, str], directory: str) -> str:
        """Write each label file into ``directory``."""
        try:
            for name, text in files.items():
                write_text_file(os.path.join(directory, name), text)
        except OSError as e:
            raise ExportError(f"Failed to write labels to {directory}: {e}") from e
        logger.info(f"Wrote {len(files)} label files to {directory}/")
        return directory
