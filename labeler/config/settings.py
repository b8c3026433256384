"""Configuration dataclass and loading utilities.

Provides a strongly-typed configuration object that is injected into the
viewport, interaction controller and services instead of relying on
module-level constants.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict
import json, os, logging
from .defaults import DEFAULT_CONFIG, VALID_EXPORT_MODES

logger = logging.getLogger(__name__)

_POSITIVE_KEYS = (
    "draft_min_size", "commit_min_size", "stamp_distance", "max_scale",
    "min_scale_floor", "min_scale_fit_ratio", "button_zoom_step",
    "wheel_zoom_step", "handle_size", "rotate_handle_offset",
)

_ENV_OVERRIDES = {
    "LABELER_LOG_LEVEL": "log_level",
    "LABELER_EXPORT_MODE": "export_mode",
}


@dataclass(slots=True)
class LabelerConfig:
    draft_min_size: float = DEFAULT_CONFIG["draft_min_size"]
    commit_min_size: float = DEFAULT_CONFIG["commit_min_size"]
    stamp_distance: float = DEFAULT_CONFIG["stamp_distance"]

    max_scale: float = DEFAULT_CONFIG["max_scale"]
    min_scale_floor: float = DEFAULT_CONFIG["min_scale_floor"]
    min_scale_fit_ratio: float = DEFAULT_CONFIG["min_scale_fit_ratio"]
    button_zoom_step: float = DEFAULT_CONFIG["button_zoom_step"]
    wheel_zoom_step: float = DEFAULT_CONFIG["wheel_zoom_step"]
    wheel_pan_factor: float = DEFAULT_CONFIG["wheel_pan_factor"]

    handle_size: float = DEFAULT_CONFIG["handle_size"]
    rotate_handle_offset: float = DEFAULT_CONFIG["rotate_handle_offset"]

    export_mode: str = DEFAULT_CONFIG["export_mode"]
    labels_dir: str = DEFAULT_CONFIG["labels_dir"]
    session_path: str = DEFAULT_CONFIG["session_path"]

    class_colors: Dict[int, str] = field(default_factory=lambda: dict(DEFAULT_CONFIG["class_colors"]))
    default_color: str = DEFAULT_CONFIG["default_color"]
    draft_color: str = DEFAULT_CONFIG["draft_color"]

    log_level: str = DEFAULT_CONFIG["log_level"]
    log_dir: str = DEFAULT_CONFIG["log_dir"]
    enable_file_logging: bool = DEFAULT_CONFIG["enable_file_logging"]
    structured_logging: bool = DEFAULT_CONFIG["structured_logging"]

    # Arbitrary extra values retained for forward compatibility
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        # merge extra keys at top-level for saving
        extra = d.pop("extra", {})
        d.update(extra)
        return d

    def get(self, key: str, default: Any = None) -> Any:
        return getattr(self, key, self.extra.get(key, default))


def load_config(path: str = "labeler.json") -> LabelerConfig:
    """Load configuration from a JSON file, falling back to defaults.

    Args:
        path: Path to the JSON configuration file

    Returns:
        LabelerConfig: Loaded and validated configuration. Never raises for
        a missing or malformed file; problems are logged instead.
    """
    data: Dict[str, Any] = {}

    if os.path.isfile(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded_data = json.load(f)
            if not isinstance(loaded_data, dict):
                logger.error(f"Configuration file '{path}' does not contain a JSON object, using defaults")
            else:
                data = loaded_data
                logger.info(f"Loaded configuration from '{path}'")
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse configuration file '{path}': {e}. Using defaults.")
        except OSError as e:
            logger.error(f"Could not read configuration file '{path}': {e}. Using defaults.")
    else:
        logger.info(f"Configuration file '{path}' does not exist. Using defaults.")

    merged = {**DEFAULT_CONFIG, **data}
    merged = _apply_environment_overrides(merged)
    _validate_settings(merged)

    known = set(LabelerConfig.__annotations__) - {"extra"}
    extra = {k: v for k, v in merged.items() if k not in known}
    if extra:
        logger.info(f"Found extra configuration keys: {list(extra.keys())}")

    return LabelerConfig(**{k: merged[k] for k in known}, extra=extra)


def save_config(cfg: LabelerConfig, path: str = "labeler.json") -> None:
    """Save configuration to a JSON file. Errors are logged, not raised."""
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(cfg.to_dict(), f, indent=2, ensure_ascii=False)
        logger.info(f"Configuration saved to '{path}'")
    except OSError as e:
        logger.error(f"Failed to save configuration file '{path}': {e}")


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(config_dict)
    for env_key, config_key in _ENV_OVERRIDES.items():
        value = os.environ.get(env_key)
        if value:
            result[config_key] = value.strip()
            logger.debug(f"Configuration '{config_key}' overridden from {env_key}")
    return result


def _validate_settings(config_dict: Dict[str, Any]) -> None:
    """Replace invalid values with defaults in place."""
    mode = str(config_dict.get("export_mode", "")).lower()
    if mode not in VALID_EXPORT_MODES:
        logger.warning(f"Unknown export_mode '{config_dict.get('export_mode')}', using 'obb'")
        mode = "obb"
    config_dict["export_mode"] = mode

    for key in _POSITIVE_KEYS:
        value = config_dict.get(key)
        if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
            logger.warning(f"Setting '{key}' must be a positive number, got {value!r}. Using default.")
            config_dict[key] = DEFAULT_CONFIG[key]
        else:
            config_dict[key] = float(value)

    colors = config_dict.get("class_colors") or {}
    if not isinstance(colors, dict):
        logger.warning("Setting 'class_colors' must be a mapping. Using default.")
        colors = DEFAULT_CONFIG["class_colors"]
    # JSON object keys are strings
    parsed = {}
    for key, value in colors.items():
        try:
            parsed[int(key)] = str(value)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring class color with non-integer id {key!r}")
    config_dict["class_colors"] = parsed
