"""
Dataclasses pour la configuration.
"""
from dataclasses import dataclass, field
from typing import Dict, Any, Optional

import httpx

from ..core.constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_DATA_DIR,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_STREAM_READ_TIMEOUT,
    MAX_SEARCH_RESULTS,
    BROWSER_USER_AGENT,
)


@dataclass
class ServerConfig:
    """Configuration du serveur HTTP."""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServerConfig":
        """Crée une instance depuis un dictionnaire."""
        return cls(
            host=data.get("host", DEFAULT_HOST),
            port=int(data.get("port", DEFAULT_PORT)),
        )


@dataclass
class CacheConfig:
    """Configuration du cache média."""
    data_dir: str = DEFAULT_DATA_DIR

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheConfig":
        """Crée une instance depuis un dictionnaire."""
        return cls(data_dir=data.get("data_dir", DEFAULT_DATA_DIR))


@dataclass
class TimeoutConfig:
    """Délais des appels upstream, en secondes."""
    connect: float = DEFAULT_CONNECT_TIMEOUT
    read: float = DEFAULT_READ_TIMEOUT
    stream_read: float = DEFAULT_STREAM_READ_TIMEOUT

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeoutConfig":
        """Crée une instance depuis un dictionnaire."""
        return cls(
            connect=float(data.get("connect", DEFAULT_CONNECT_TIMEOUT)),
            read=float(data.get("read", DEFAULT_READ_TIMEOUT)),
            stream_read=float(data.get("stream_read", DEFAULT_STREAM_READ_TIMEOUT)),
        )

    def as_httpx(self, streaming: bool = False) -> httpx.Timeout:
        # Le read timeout est critique pour le streaming
        read = self.stream_read if streaming else self.read
        return httpx.Timeout(read, connect=self.connect)


@dataclass
class SearchSettings:
    """Configuration de l'agrégateur de recherche."""
    max_results: int = MAX_SEARCH_RESULTS
    searxng_url: Optional[str] = None
    user_agent: str = BROWSER_USER_AGENT

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchSettings":
        """Crée une instance depuis un dictionnaire."""
        return cls(
            max_results=min(int(data.get("max_results", MAX_SEARCH_RESULTS)), MAX_SEARCH_RESULTS),
            searxng_url=data.get("searxng_url") or None,
            user_agent=data.get("user_agent", BROWSER_USER_AGENT),
        )


@dataclass
class Settings:
    """Configuration globale de l'application."""
    server: ServerConfig = field(default_factory=ServerConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)
    search: SearchSettings = field(default_factory=SearchSettings)
    log_level: str = "INFO"

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "Settings":
        """Crée une instance depuis la configuration chargée."""
        return cls(
            server=ServerConfig.from_dict(config.get("server", {})),
            cache=CacheConfig.from_dict(config.get("cache", {})),
            timeouts=TimeoutConfig.from_dict(config.get("timeouts", {})),
            search=SearchSettings.from_dict(config.get("search", {})),
            log_level=str(config.get("logging", {}).get("level", "INFO")).upper(),
        )
