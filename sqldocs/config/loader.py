"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. Defaults declared on :class:`~sqldocs.config.settings.Settings`
  2. ``config/config.yaml`` -- static defaults checked into the repo
  3. ``.env`` file and environment variables

The YAML file is grouped into sections for readability::

    retrieval:
      semantic_weight: 0.7
    chunking:
      strategy: markdown

Section keys are flattened to settings names (``chunking.strategy`` becomes
``chunking_strategy`` unless the key already names a setting).
"""

import os
from pathlib import Path

import yaml
from dotenv import dotenv_values

from sqldocs.config.settings import Settings
from sqldocs.utils.errors import ConfigurationError


def load_config(path: str = "config/config.yaml") -> dict:
    """Load the YAML config file as a flat ``{setting_name: value}`` dict.

    A missing file yields an empty dict.

    Raises
    ------
    ConfigurationError
        If the file is not valid YAML or not a mapping.
    """
    config_path = Path(path)
    if not config_path.exists():
        return {}

    try:
        with open(config_path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{config_path} must contain a mapping at the top level")

    return _flatten(raw)


def load_settings(path: str = "config/config.yaml") -> Settings:
    """Build :class:`Settings` from YAML defaults plus environment overrides.

    YAML values are passed as init arguments, which pydantic-settings ranks
    above the environment, so keys set in the environment or ``.env`` are
    removed from the YAML layer first.
    """
    yaml_values = load_config(path)
    env_keys = {key.lower() for key in os.environ}
    env_file = Settings.model_config.get("env_file")
    if env_file and Path(str(env_file)).exists():
        env_keys |= {key.lower() for key in dotenv_values(str(env_file))}

    init_values = {
        key: value
        for key, value in yaml_values.items()
        if key in Settings.model_fields and key not in env_keys
    }
    return Settings(**init_values)


def _flatten(raw: dict) -> dict:
    flat: dict = {}
    for section, value in raw.items():
        if isinstance(value, dict):
            for key, inner in value.items():
                name = key if key in Settings.model_fields else f"{section}_{key}"
                flat[name] = inner
        else:
            flat[section] = value
    return flat
