"""File system utilities for label files and image folders."""

import os
import logging
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp", ".webp")


def is_image(name: str) -> bool:
    return name.lower().endswith(IMAGE_EXTENSIONS)


def list_images(directory: str) -> List[str]:
    """Image file names in a folder, sorted by name."""
    names = [n for n in os.listdir(directory)
             if is_image(n) and os.path.isfile(os.path.join(directory, n))]
    return sorted(names)


def label_filename(image_name: str) -> str:
    """Image basename with its last extension replaced by ``.txt``."""
    base = os.path.basename(image_name)
    stem, ext = os.path.splitext(base)
    return f"{stem if ext else base}.txt"


def read_label_lines(path: str) -> List[str]:
    """Non-empty stripped lines of a label file; a missing file reads as empty."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return [line.strip() for line in f if line.strip()]
    except FileNotFoundError:
        return []


def write_text_file(path: str, content: str) -> None:
    """Write UTF-8 text, creating parent directories."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    logger.debug(f"Wrote {len(content)} characters to {path}")


def ensure_dirs(*dirs) -> None:
    """Create directories if they don't exist."""
    for d in dirs:
        Path(d).mkdir(parents=True, exist_ok=True)
