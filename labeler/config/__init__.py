"""Configuration management package."""

from .settings import LabelerConfig, load_config, save_config
from .defaults import DEFAULT_CONFIG

__all__ = ["LabelerConfig", "load_config", "save_config", "DEFAULT_CONFIG"]
