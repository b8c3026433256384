"""Decoded image dimensions, read once per image and cached."""
from __future__ import annotations
import logging
import os
from typing import Dict, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from ..core.entities import Size
from ..core.exceptions import ImageSourceError

logger = logging.getLogger(__name__)


class ImageSource:
    """Resolves an image reference (a file path) to its pixel size."""

    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = base_dir
        self._sizes: Dict[str, Size] = {}

    def resolve(self, ref: str) -> str:
        if self.base_dir and not os.path.isabs(ref):
            return os.path.join(self.base_dir, ref)
        return ref

    def remember(self, ref: str, size: Tuple[int, int]) -> None:
        """Record dimensions already known from a metadata record."""
        self._sizes[ref] = (int(size[0]), int(size[1]))

    def get_size(self, ref: str, known: Optional[Tuple[int, int]] = None) -> Size:
        """Return ``(width, height)``, decoding the image only the first time.

        Args:
            ref: Image reference (file name relative to ``base_dir`` or a path)
            known: Dimensions from a metadata record; used and cached as-is

        Raises:
            ImageSourceError: The image cannot be opened or identified
        """
        if known is not None:
            self.remember(ref, known)
        if ref in self._sizes:
            return self._sizes[ref]

        path = self.resolve(ref)
        try:
            # Image.open reads only the header; pixel data is never decoded here
            with Image.open(path) as im:
                size = (int(im.width), int(im.height))
        except (OSError, UnidentifiedImageError) as e:
            raise ImageSourceError(f"Failed to read image {path}: {e}") from e

        logger.debug(f"Image {ref}: {size[0]}x{size[1]}")
        self._sizes[ref] = size
        return size

    def forget(self, ref: str) -> None:
        self._sizes.pop(ref, None)
