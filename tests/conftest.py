"""Pytest configuration and shared fixtures for the labeler.

Provides configuration objects, sample boxes, small generated images and
ready-wired stores, controllers and sessions.
"""
import sys
import tempfile
import logging
from pathlib import Path
from typing import Dict, List

import pytest
from PIL import Image

# Add the project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from labeler.config.settings import LabelerConfig
from labeler.core.entities import AnnotationRecord, Box
from labeler.core.logging_config import logging_manager
from labeler.services.annotation_store import AnnotationStore
from labeler.services.image_source import ImageSource
from labeler.services.session_service import LabelingSession
from labeler.ui.interaction import InteractionController
from labeler.ui.viewport import Viewport


# Configure logging for tests
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler()]
)
logging.getLogger('PIL').setLevel(logging.WARNING)


@pytest.fixture(autouse=True)
def reset_logging():
    """Detach handlers installed by the CLI so they never outlive a test."""
    yield
    logging_manager.shutdown()


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config():
    """Default configuration."""
    return LabelerConfig()


@pytest.fixture
def sample_box():
    """Axis-aligned 40x20 box centered at (100, 50)."""
    return Box("b1", 0, 100.0, 50.0, 40.0, 20.0, 0.0)


@pytest.fixture
def sample_boxes():
    return (
        Box("b1", 0, 100.0, 50.0, 40.0, 20.0, 0.0),
        Box("b2", 1, 300.0, 200.0, 60.0, 30.0, 45.0),
        Box("b3", 0, 500.0, 400.0, 20.0, 20.0, 90.0),
    )


def _write_image(path: Path, width: int, height: int, color=(40, 80, 120)) -> Path:
    Image.new("RGB", (width, height), color).save(path)
    return path


@pytest.fixture
def image_dir(temp_dir):
    """Folder with three small images of different sizes."""
    folder = temp_dir / "images"
    folder.mkdir()
    _write_image(folder / "a.jpg", 200, 100)
    _write_image(folder / "b.png", 300, 150)
    _write_image(folder / "c.jpg", 64, 64)
    (folder / "notes.txt").write_text("not an image")
    return folder


@pytest.fixture
def image_source(image_dir):
    return ImageSource(base_dir=str(image_dir))


@pytest.fixture
def store():
    return AnnotationStore()


@pytest.fixture
def viewport(config):
    """Viewport at identity transform: 800x600 view over an 800x600 image."""
    vp = Viewport(config)
    vp.set_viewport_size(800, 600)
    vp.set_image_size(800, 600)
    vp.actual_size()
    return vp


@pytest.fixture
def controller(store, config, viewport):
    """Controller showing an 800x600 image at scale 1 with zero pan."""
    ctrl = InteractionController(store, config, viewport)
    ctrl.load_image("img.jpg", 800, 600)
    assert viewport.scale == 1.0 and viewport.pan == (0.0, 0.0)
    return ctrl


class MemoryPersistence:
    """In-memory persister/loader pair recording every call."""

    def __init__(self, records: Dict[str, List[AnnotationRecord]] = None):
        self.records: Dict[str, List[AnnotationRecord]] = dict(records or {})
        self.saved: List[str] = []
        self.fail_on_save = False

    def persist(self, ref: str, records: List[AnnotationRecord]) -> None:
        if self.fail_on_save:
            raise IOError("disk full")
        self.records[ref] = list(records)
        self.saved.append(ref)

    def load(self, ref: str) -> List[AnnotationRecord]:
        return list(self.records.get(ref, []))


@pytest.fixture
def persistence():
    return MemoryPersistence()


@pytest.fixture
def session(image_dir, image_source, config, persistence):
    """Session over the three sample images, opened on the first one."""
    images = ["a.jpg", "b.png", "c.jpg"]
    s = LabelingSession(images, image_source, config,
                        persister=persistence.persist, loader=persistence.load)
    s.controller.set_viewport_size(800, 600)
    s.open(0)
    return s
