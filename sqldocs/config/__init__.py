"""Configuration package: environment-backed settings and the YAML loader."""

from sqldocs.config.loader import load_config, load_settings
from sqldocs.config.settings import Settings

__all__ = ["Settings", "load_config", "load_settings"]
