"""End-to-end labeling: draw, navigate, save a session, export and render."""
import json
import zipfile

import cv2
import pytest

from labeler.main import main
from labeler.services.export_service import ExportService
from labeler.services.session_service import load_session
from labeler.ui.keyboard import KeyboardShortcuts


@pytest.mark.integration
class TestLabelingWorkflow:

    def test_draw_stamp_navigate_and_export(self, session, image_source, persistence, temp_dir):
        keys = KeyboardShortcuts(session)
        ctrl = session.controller

        # a.jpg (200x100) is shown at scale 4 with a 100px vertical offset
        ctrl.pointer_down(40, 140)
        ctrl.pointer_move(200, 300)
        ctrl.pointer_up(200, 300)
        keys.handle("2")
        ctrl.pointer_down(600, 300)
        ctrl.pointer_up(601, 301)
        assert [b.class_id for b in session.store.get_boxes("a.jpg")] == [1, 1]

        keys.handle("d")
        assert persistence.saved == ["a.jpg"]
        assert session.progress() == (1, 3)

        files = ExportService(image_source).build(session.images, session.store, "obb")
        lines = files["a.txt"].splitlines()
        assert len(lines) == 2
        assert lines[0] == "1 0.050000 0.100000 0.250000 0.100000 0.250000 0.500000 0.050000 0.500000"
        assert files["b.txt"] == ""

        path = session.save(str(temp_dir / "session.json"))
        state = load_session(path)
        assert state.index == 1
        assert len(state.annotations["a.jpg"]) == 2


@pytest.mark.integration
class TestCommandLine:
    """``labeler`` console entry point."""

    @pytest.fixture
    def saved_session(self, session, temp_dir):
        ctrl = session.controller
        ctrl.pointer_down(40, 140)
        ctrl.pointer_move(200, 300)
        ctrl.pointer_up(200, 300)
        return session.save(str(temp_dir / "session.json"))

    def test_export_writes_zip_and_labels(self, saved_session, image_dir, temp_dir, capsys):
        zip_path = temp_dir / "out.zip"
        labels = temp_dir / "labels"
        code = main(["--config", str(temp_dir / "none.json"), "export",
                     "--session", saved_session, "--images", str(image_dir),
                     "--mode", "bbox", "--zip", str(zip_path), "--labels-dir", str(labels)])
        assert code == 0
        with zipfile.ZipFile(zip_path) as zf:
            assert sorted(zf.namelist()) == ["a.txt", "b.txt", "c.txt"]
        assert (labels / "a.txt").read_text() == "0 0.150000 0.300000 0.200000 0.400000"
        assert "Wrote 3 label files" in capsys.readouterr().out

    def test_bare_labels_dir_uses_configured_folder(self, saved_session, image_dir, temp_dir):
        config_path = temp_dir / "labeler.json"
        config_path.write_text(json.dumps({"labels_dir": str(temp_dir / "from_config")}))
        code = main(["--config", str(config_path), "export",
                     "--session", saved_session, "--images", str(image_dir),
                     "--zip", str(temp_dir / "out.zip"), "--labels-dir"])
        assert code == 0
        assert sorted(p.name for p in (temp_dir / "from_config").iterdir()) == ["a.txt", "b.txt", "c.txt"]

    def test_export_without_session_fails(self, image_dir, temp_dir):
        code = main(["--config", str(temp_dir / "none.json"), "export",
                     "--session", str(temp_dir / "missing.json"), "--images", str(image_dir)])
        assert code == 1

    def test_export_with_corrupt_session_fails(self, image_dir, temp_dir, capsys):
        bad = temp_dir / "bad.json"
        bad.write_text(json.dumps([1, 2]))
        code = main(["--config", str(temp_dir / "none.json"), "export",
                     "--session", str(bad), "--images", str(image_dir)])
        assert code == 1
        assert "Error:" in capsys.readouterr().err

    def test_render(self, image_dir, temp_dir):
        labels = temp_dir / "a.txt"
        labels.write_text("0 0.5 0.5 0.5 0.5\n")
        out = temp_dir / "preview" / "a.png"
        code = main(["--config", str(temp_dir / "none.json"), "render",
                     str(image_dir / "a.jpg"), str(labels), "--out", str(out), "--mode", "bbox"])
        assert code == 0
        image = cv2.imread(str(out))
        assert image.shape[:2] == (100, 200)

    def test_info(self, image_dir, temp_dir, capsys):
        code = main(["--config", str(temp_dir / "none.json"), "info", str(image_dir / "b.png")])
        assert code == 0
        assert "300x150" in capsys.readouterr().out

    def test_bad_log_dir_fails_cleanly(self, image_dir, temp_dir, capsys):
        blocker = temp_dir / "file"
        blocker.write_text("x")
        config_path = temp_dir / "labeler.json"
        config_path.write_text(json.dumps({"enable_file_logging": True,
                                           "log_dir": str(blocker / "logs")}))
        code = main(["--config", str(config_path), "info", str(image_dir / "b.png")])
        assert code == 1
        assert "Cannot write log files" in capsys.readouterr().err

    def test_info_on_non_image(self, image_dir, temp_dir):
        code = main(["--config", str(temp_dir / "none.json"), "info", str(image_dir / "notes.txt")])
        assert code == 1
