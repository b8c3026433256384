"""Unit tests for the annotation renderer."""
import numpy as np

from labeler.core.entities import Box
from labeler.services.class_registry import ClassRegistry
from labeler.services.render_service import color_to_bgr, render_annotations


class TestColorToBgr:

    def test_named_colors(self):
        assert color_to_bgr("red") == (0, 0, 255)
        assert color_to_bgr("lime") == (0, 255, 0)

    def test_hex_color(self):
        assert color_to_bgr("#0000ff") == (255, 0, 0)

    def test_unknown_color_falls_back_to_white(self):
        assert color_to_bgr("not-a-color") == (255, 255, 255)


class TestRenderAnnotations:
    """Test suite for drawing boxes onto images."""

    def test_returns_copy_with_outline(self):
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        box = Box("a", 0, 50, 50, 40, 20)
        out = render_annotations(image, [box], draw_labels=False)
        assert image.sum() == 0
        # Top edge of the box is drawn in the class 0 color (red)
        assert tuple(out[40, 50]) == (0, 0, 255)
        assert tuple(out[50, 50]) == (0, 0, 0)

    def test_rotated_box_drawn_at_rotated_corners(self):
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        out = render_annotations(image, [Box("a", 1, 50, 50, 40, 20, 90)], draw_labels=False)
        # After a quarter turn the long side is vertical at x = 60
        assert tuple(out[50, 60]) == (0, 255, 0)
        assert tuple(out[40, 50]) == (0, 0, 0)

    def test_labels_use_registry_names(self):
        image = np.zeros((120, 200, 3), dtype=np.uint8)
        registry = ClassRegistry()
        registry.rename_class(0, "car")
        out = render_annotations(image, [Box("a", 0, 100, 80, 60, 30)], registry)
        # Label background is filled above the box's first corner
        assert out[40:65, 70:100].any()

    def test_no_boxes_leaves_image_unchanged(self):
        image = np.full((10, 10, 3), 7, dtype=np.uint8)
        assert np.array_equal(render_annotations(image, []), image)

    def test_unknown_class_uses_registry_default_color(self):
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        registry = ClassRegistry(default_color="blue")
        out = render_annotations(image, [Box("a", 7, 50, 50, 40, 20)], registry, draw_labels=False)
        assert tuple(out[40, 50]) == (255, 0, 0)

    def test_draft_outlined_in_draft_color(self):
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        out = render_annotations(image, [], draft=Box("d", 0, 50, 50, 40, 20),
                                 draft_color="yellow")
        assert tuple(out[40, 50]) == (0, 255, 255)
        assert tuple(out[50, 50]) == (0, 0, 0)
