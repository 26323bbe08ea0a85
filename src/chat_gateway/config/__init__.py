"""
Configuration de Chat Gateway.
"""

from .loader import load_config, reload_config, get_config
from .settings import (
    Settings,
    ServerConfig,
    CacheConfig,
    TimeoutConfig,
    SearchSettings,
)

__all__ = [
    "load_config",
    "reload_config",
    "get_config",
    "Settings",
    "ServerConfig",
    "CacheConfig",
    "TimeoutConfig",
    "SearchSettings",
]
