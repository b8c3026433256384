"""Command line entry point: export sessions, render previews, inspect images."""

import argparse
import os
import sys
import logging
from typing import List, Optional

import cv2

from .config.settings import load_config
from .core.exceptions import LabelerError
from .core.logging_config import configure_from_config
from .services.annotation_store import AnnotationStore
from .services.class_registry import ClassRegistry, load_class_names
from .services.export_service import ExportService
from .services.image_source import ImageSource
from .services.render_service import render_annotations
from .services.session_service import load_session
from .services.yolo_codec import ExportMode, parse_labels
from .utils.file_utils import ensure_dirs, list_images, read_label_lines

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="labeler", description="YOLO BBox/OBB labeling tools")
    parser.add_argument("--config", default="labeler.json", help="Configuration file")
    sub = parser.add_subparsers(dest="command", required=True)

    export = sub.add_parser("export", help="Export a saved session to YOLO label files")
    export.add_argument("--session", help="Session file (defaults to config session_path)")
    export.add_argument("--images", required=True, help="Folder holding the session's images")
    export.add_argument("--mode", choices=["obb", "bbox"], help="Label format")
    export.add_argument("--zip", dest="zip_path", help="Archive path (default labels_<mode>.zip)")
    export.add_argument("--labels-dir", nargs="?", const="",
                        help="Also write one .txt per image into this folder "
                             "(config labels_dir when given without a value)")

    render = sub.add_parser("render", help="Draw a label file onto its image")
    render.add_argument("image")
    render.add_argument("labels")
    render.add_argument("--out", required=True)
    render.add_argument("--mode", choices=["obb", "bbox"], help="Label format")
    render.add_argument("--classes", help="Class names file (yaml, json or txt)")

    info = sub.add_parser("info", help="Print image dimensions")
    info.add_argument("image")
    return parser


def run_export(args, config) -> int:
    session_path = args.session or config.session_path
    state = load_session(session_path)
    if state is None:
        print(f"No session found at {session_path}", file=sys.stderr)
        return 1

    mode = ExportMode.parse(args.mode or config.export_mode)
    store = AnnotationStore(state.annotations)
    images = list_images(args.images)
    service = ExportService(ImageSource(base_dir=args.images))
    files = service.build(images, store, mode)

    zip_path = args.zip_path or service.default_archive_name(mode)
    service.write_archive(files, zip_path)
    print(f"Wrote {len(files)} label files to {zip_path}")
    if args.labels_dir is not None:
        labels_dir = args.labels_dir or config.labels_dir
        service.write_labels_dir(files, labels_dir)
        print(f"Wrote {len(files)} label files to {labels_dir}")
    return 0


def run_render(args, config) -> int:
    image = cv2.imread(args.image)
    if image is None:
        print(f"Cannot read image {args.image}", file=sys.stderr)
        return 1
    height, width = image.shape[:2]
    mode = ExportMode.parse(args.mode or config.export_mode)
    boxes = parse_labels("\n".join(read_label_lines(args.labels)), width, height, mode)

    classes = load_class_names(args.classes) if args.classes else None
    registry = ClassRegistry(classes, colors=config.class_colors,
                             default_color=config.default_color)
    annotated = render_annotations(image, boxes, registry)
    out_dir = os.path.dirname(args.out)
    if out_dir:
        ensure_dirs(out_dir)
    if not cv2.imwrite(args.out, annotated):
        print(f"Failed to write {args.out}", file=sys.stderr)
        return 1
    print(f"Rendered {len(boxes)} boxes to {args.out}")
    return 0


def run_info(args, config) -> int:
    width, height = ImageSource().get_size(args.image)
    print(f"{args.image}: {width}x{height}")
    return 0


COMMANDS = {"export": run_export, "render": run_render, "info": run_info}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    try:
        configure_from_config(config)
        return COMMANDS[args.command](args, config)
    except LabelerError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
