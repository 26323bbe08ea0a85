"""
Interface commune des providers de recherche.

Chaque provider produit la même forme normalisée (SearchResult),
quel que soit le format upstream (JSON structuré ou page HTML).
"""
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional

import httpx

from ...core.constants import BROWSER_USER_AGENT, MAX_SEARCH_RESULTS
from ...core.exceptions import InvalidRequestError, SearchProviderError
from ...core.models import SearchResult
from ...proxy.client import ProxyClient


class SearchProviderType(str, Enum):
    """Énumération fermée des providers supportés."""
    TAVILY = "tavily"
    BING = "bing"
    DUCKDUCKGO = "duckduckgo"
    BING_WEB = "bing_web"
    BAIDU = "baidu"
    SEARXNG = "searxng"

    @classmethod
    def parse(cls, value: Any) -> "SearchProviderType":
        """Sélecteur client -> provider; inconnu = erreur client."""
        try:
            return cls(value)
        except ValueError:
            raise InvalidRequestError("Invalid provider", field="provider")


@dataclass
class SearchConfig:
    """Configuration d'un appel de recherche (clé API, options spécifiques)."""
    api_key: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)
    max_results: int = MAX_SEARCH_RESULTS
    user_agent: str = BROWSER_USER_AGENT
    default_instance_url: Optional[str] = None

    @property
    def instance_url(self) -> Optional[str]:
        """URL de l'instance méta-recherche: extraConfig d'abord, puis configuration."""
        return (
            self.extra.get("instanceUrl")
            or self.extra.get("baseUrl")
            or self.default_instance_url
        )

    @property
    def limit(self) -> int:
        return max(0, min(self.max_results, MAX_SEARCH_RESULTS))


def clean_text(value: Optional[str]) -> str:
    """Espaces normalisés, None -> ""."""
    return re.sub(r"\s+", " ", value or "").strip()


class SearchProvider(ABC):
    """Provider de recherche: `search(query, config) -> [SearchResult]`."""

    provider_type: SearchProviderType

    def __init__(self, client: ProxyClient):
        self.client = client

    @property
    def name(self) -> str:
        return self.provider_type.value

    @abstractmethod
    async def search(self, query: str, config: SearchConfig) -> List[SearchResult]:
        """Retourne au plus `config.limit` résultats pour `query`."""
        ...

    def _require_api_key(self, config: SearchConfig) -> str:
        if not config.api_key:
            label = self.name.replace("_", " ").title()
            raise InvalidRequestError(f"Missing {label} API Key", field="apiKey")
        return config.api_key

    def _raise_for_status(self, response: httpx.Response):
        if not response.is_success:
            raise SearchProviderError(self.name, response.status_code, response.text)
