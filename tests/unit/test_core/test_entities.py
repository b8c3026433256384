"""Unit tests for core entities and replace-on-write box list operations."""
import pytest
from dataclasses import FrozenInstanceError

from labeler.core import box_list
from labeler.core.entities import AnnotationRecord, Box, ImageRect, LastSize, new_box_id


class TestBox:
    """Test suite for Box entity."""

    def test_create_assigns_unique_ids(self):
        a = Box.create(0, 10, 10, 5, 5)
        b = Box.create(0, 10, 10, 5, 5)
        assert a.id != b.id
        assert a.rotation == 0.0

    def test_box_immutability(self, sample_box):
        with pytest.raises(FrozenInstanceError):
            sample_box.cx = 5.0

    def test_dict_round_trip_keeps_id(self, sample_boxes):
        for box in sample_boxes:
            assert Box.from_dict(box.to_dict()) == box

    def test_from_dict_without_id_generates_one(self):
        box = Box.from_dict({"class_id": 2, "cx": 1, "cy": 2, "w": 3, "h": 4})
        assert box.id
        assert box.class_id == 2
        assert box.rotation == 0.0

    def test_new_box_id_is_short_hex(self):
        box_id = new_box_id()
        assert len(box_id) == 12
        int(box_id, 16)


class TestValueObjects:
    """Test suite for LastSize, ImageRect and AnnotationRecord."""

    def test_last_size_defaults(self):
        assert LastSize(40, 30) == LastSize(40, 30, 0.0)

    def test_image_rect_pivot_is_center(self):
        rect = ImageRect(10, 20, 40, 30, 15)
        assert rect.pivot == (30.0, 35.0)

    def test_record_to_dict_includes_id_only_when_set(self):
        record = AnnotationRecord(0, 0.5, 0.5, 0.1, 0.1)
        assert "id" not in record.to_dict()
        assert record.to_dict()["px_cx"] is None
        with_id = AnnotationRecord(0, 0.5, 0.5, 0.1, 0.1, id="abc")
        assert with_id.to_dict()["id"] == "abc"


class TestBoxList:
    """Box list operations return new tuples and never mutate their input."""

    def test_add_box_appends(self, sample_boxes, sample_box):
        new = Box.create(1, 1, 1, 10, 10)
        result = box_list.add_box(sample_boxes, new)
        assert result[-1] is new
        assert len(result) == len(sample_boxes) + 1
        assert len(sample_boxes) == 3

    def test_update_box_patches_only_target(self, sample_boxes):
        result = box_list.update_box(sample_boxes, "b2", cx=1.0, rotation=10.0)
        assert result[1].cx == 1.0 and result[1].rotation == 10.0
        assert result[1].w == sample_boxes[1].w
        assert result[0] is sample_boxes[0]
        assert sample_boxes[1].cx == 300.0

    def test_update_unknown_id_is_unchanged(self, sample_boxes):
        assert box_list.update_box(sample_boxes, "missing", cx=0) == sample_boxes

    def test_remove_box(self, sample_boxes):
        result = box_list.remove_box(sample_boxes, "b1")
        assert [b.id for b in result] == ["b2", "b3"]

    def test_retag_box(self, sample_boxes):
        result = box_list.retag_box(sample_boxes, "b3", 7)
        assert result[2].class_id == 7
        assert result[2].cx == sample_boxes[2].cx

    def test_find_box(self, sample_boxes):
        assert box_list.find_box(sample_boxes, "b2") is sample_boxes[1]
        assert box_list.find_box(sample_boxes, "nope") is None
        assert box_list.find_box(sample_boxes, None) is None
