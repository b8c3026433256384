"""Class definitions, active-class selection and class colors."""
from __future__ import annotations
import json
import logging
from typing import Dict, Iterable, List, Optional

import yaml

from ..core.entities import ClassDef
from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CLASSES = (ClassDef(0, "class0"), ClassDef(1, "class1"))
BUILTIN_COLORS: Dict[int, str] = {0: "red", 1: "lime"}
MAX_CLASS_ID = 99


class ClassRegistry:
    """Ordered class list (sorted by id) plus the active class id."""

    def __init__(self, classes: Optional[Iterable[ClassDef]] = None,
                 colors: Optional[Dict[int, str]] = None,
                 active_class_id: int = 0,
                 default_color: str = "white"):
        self._classes: List[ClassDef] = sorted(
            classes if classes is not None else DEFAULT_CLASSES, key=lambda c: c.id
        )
        self.colors: Dict[int, str] = dict(colors or {})
        self.active_class_id = active_class_id
        self.default_color = default_color

    @property
    def classes(self) -> List[ClassDef]:
        return list(self._classes)

    def get(self, class_id: int) -> Optional[ClassDef]:
        for c in self._classes:
            if c.id == class_id:
                return c
        return None

    def name_for(self, class_id: int) -> str:
        c = self.get(class_id)
        return c.name if c else f"class{class_id}"

    def add_class(self, name: Optional[str] = None) -> ClassDef:
        """Add a class using the lowest unused id."""
        used = {c.id for c in self._classes}
        class_id = 0
        while class_id in used and class_id < MAX_CLASS_ID:
            class_id += 1
        if class_id in used:
            raise ValidationError(f"No free class id below {MAX_CLASS_ID}")
        new_class = ClassDef(class_id, name or f"class{class_id}")
        self._classes = sorted(self._classes + [new_class], key=lambda c: c.id)
        logger.info(f"Added class {new_class.id} '{new_class.name}'")
        return new_class

    def rename_class(self, class_id: int, name: str) -> None:
        self._classes = [ClassDef(c.id, name) if c.id == class_id else c for c in self._classes]

    def delete_class(self, class_id: int) -> None:
        self._classes = [c for c in self._classes if c.id != class_id]
        if self.active_class_id == class_id:
            self.active_class_id = 0
        logger.info(f"Deleted class {class_id}")

    def set_active(self, class_id: int) -> bool:
        """Make ``class_id`` active if it exists; returns whether it changed."""
        if self.get(class_id) is None or class_id == self.active_class_id:
            return False
        self.active_class_id = class_id
        return True

    def class_for_digit(self, key: str) -> Optional[int]:
        """Digit N (1-9) selects class id N-1 when that class exists."""
        if len(key) != 1 or key not in "123456789":
            return None
        class_id = int(key) - 1
        return class_id if self.get(class_id) is not None else None

    def color_for(self, class_id: int, fallback: Optional[str] = None) -> str:
        """Configured color, then the built-in one, then the fallback color."""
        return (self.colors.get(class_id) or BUILTIN_COLORS.get(class_id)
                or fallback or self.default_color)

    def to_dict(self) -> List[dict]:
        return [{"id": c.id, "name": c.name} for c in self._classes]

    @staticmethod
    def classes_from_dict(data: Iterable[dict]) -> List[ClassDef]:
        return [ClassDef(int(c["id"]), str(c["name"])) for c in data]


def load_class_names(path: str) -> List[ClassDef]:
    """Load class names from a YAML, JSON or plain text file.

    YAML files may carry a ``names`` list or mapping (dataset yaml);
    JSON files map ids to names; text files list one name per line.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.endswith((".yaml", ".yml")):
                data = yaml.safe_load(f) or {}
                names = data.get("names", {}) if isinstance(data, dict) else data
            elif path.endswith(".json"):
                names = json.load(f)
            else:
                names = [line.strip() for line in f if line.strip()]
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ValidationError(f"Failed to load class names from {path}: {e}") from e

    if isinstance(names, dict):
        items = sorted((int(k), str(v)) for k, v in names.items())
    elif isinstance(names, list):
        items = [(i, str(n)) for i, n in enumerate(names)]
    else:
        raise ValidationError(f"Unsupported class name layout in {path}")
    return [ClassDef(i, n) for i, n in items]
