"""Default configuration values."""

from typing import Any, Dict

DEFAULT_CONFIG: Dict[str, Any] = {
    # Drawing / editing thresholds (image pixels)
    "draft_min_size": 2.0,
    "commit_min_size": 5.0,
    "stamp_distance": 5.0,

    # Viewport
    "max_scale": 20.0,
    "min_scale_floor": 0.02,
    "min_scale_fit_ratio": 0.2,
    "button_zoom_step": 1.2,
    "wheel_zoom_step": 1.1,
    "wheel_pan_factor": 0.9,

    # Handles (screen pixels)
    "handle_size": 8.0,
    "rotate_handle_offset": 20.0,

    # Export
    "export_mode": "obb",  # obb | bbox
    "labels_dir": "labels",
    "session_path": "session.json",

    # Class colors
    "class_colors": {0: "red", 1: "lime"},
    "default_color": "white",
    "draft_color": "yellow",

    # Debug and Logging Settings
    "log_level": "INFO",
    "log_dir": "logs",
    "enable_file_logging": False,
    "structured_logging": False,
}

VALID_EXPORT_MODES = ("obb", "bbox")
