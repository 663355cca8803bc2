# dirmirror/core/config/loader.py
"""
Configuration loader for dirmirror.

Responsibilities:
- Load default config
- Load user config (optional)
- Expand ${ENV_VAR} placeholders
- Validate via schema
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from dirmirror.core.config.schema import MirrorConfig
from dirmirror.core.exceptions import ConfigError
from dirmirror.logging import get_logger
from dirmirror.logging.tags import CONFIG

logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"
CONFIG_ENV_VAR = "MIRROR_CONFIG"


def _expand_env(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    return value


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")

    return _expand_env(data)


def _deep_merge(base: dict, override: dict) -> dict:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(user_config_path: Optional[Path] = None) -> MirrorConfig:
    """
    Load and validate dirmirror configuration.

    Precedence:
    - defaults
    - user config (explicit path, else $MIRROR_CONFIG), merged key by key
    """
    logger.debug(f"{CONFIG} Loading default config from {DEFAULT_CONFIG_PATH}")
    cfg = _load_yaml(DEFAULT_CONFIG_PATH)

    if user_config_path is None and os.environ.get(CONFIG_ENV_VAR):
        user_config_path = Path(os.environ[CONFIG_ENV_VAR])

    if user_config_path is not None:
        logger.debug(f"{CONFIG} Loading user config from {user_config_path}")
        cfg = _deep_merge(cfg, _load_yaml(Path(user_config_path)))

    try:
        return MirrorConfig.model_validate(cfg)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
