# dirmirror/core/config/__init__.py
from .loader import CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH, load_config
from .schema import LoggingConfig, MirrorConfig, ScanConfig, StoreConfig

__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "MirrorConfig",
    "StoreConfig",
    "ScanConfig",
    "LoggingConfig",
]
