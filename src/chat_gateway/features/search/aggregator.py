"""
Agrégateur de recherche: sélection du provider, normalisation, mise en forme.

Un seul provider répond à une requête donnée: pas de fusion ni de re-classement,
l'ordre est celui du provider, tronqué à MAX_SEARCH_RESULTS.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Type

from ...config.settings import SearchSettings
from ...core.constants import NO_RESULTS_TEXT
from ...core.exceptions import InvalidRequestError, SearchProviderError
from ...core.models import SearchResult
from ...proxy.client import ProxyClient
from .base import SearchConfig, SearchProvider, SearchProviderType
from .scraped import BaiduProvider, BingWebProvider, DuckDuckGoProvider
from .searxng import SearxngProvider
from .structured import BingApiProvider, TavilyProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: Dict[SearchProviderType, Type[SearchProvider]] = {
    SearchProviderType.TAVILY: TavilyProvider,
    SearchProviderType.BING: BingApiProvider,
    SearchProviderType.DUCKDUCKGO: DuckDuckGoProvider,
    SearchProviderType.BING_WEB: BingWebProvider,
    SearchProviderType.BAIDU: BaiduProvider,
    SearchProviderType.SEARXNG: SearxngProvider,
}


@dataclass
class SearchResponse:
    """Bloc texte pour le prompt + résultats normalisés."""
    results: str
    data: List[SearchResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": self.results,
            "data": [r.to_dict() for r in self.data],
        }


def format_results(results: List[SearchResult]) -> str:
    """
    Bloc texte numéroté, prêt à être injecté dans un prompt.

    Exemple:
        [1] Title: ...
        URL: ...
        Content: ...
    """
    if not results:
        return NO_RESULTS_TEXT
    return "\n\n".join(
        f"[{i}] Title: {r.title}\nURL: {r.url}\nContent: {r.content}"
        for i, r in enumerate(results, start=1)
    )


class SearchAggregator:
    """Dispatch vers un provider et normalisation du résultat."""

    def __init__(self, client: ProxyClient, settings: SearchSettings = None):
        self.settings = settings or SearchSettings()
        self.providers: Dict[SearchProviderType, SearchProvider] = {
            provider_type: cls(client) for provider_type, cls in PROVIDER_CLASSES.items()
        }

    def get_provider(self, selector: Any) -> SearchProvider:
        """
        Raises:
            InvalidRequestError: Sélecteur inconnu (aucun provider appelé)
        """
        return self.providers[SearchProviderType.parse(selector)]

    def build_config(self, api_key: Optional[str], extra_config: Optional[Dict[str, Any]]) -> SearchConfig:
        """
        Raises:
            InvalidRequestError: extraConfig qui n'est pas un objet
        """
        if extra_config is None:
            extra_config = {}
        if not isinstance(extra_config, dict):
            raise InvalidRequestError("extraConfig must be an object", field="extraConfig")
        return SearchConfig(
            api_key=api_key or "",
            extra=dict(extra_config),
            max_results=self.settings.max_results,
            user_agent=self.settings.user_agent,
            default_instance_url=self.settings.searxng_url,
        )

    async def search(
        self,
        query: str,
        provider: Any,
        api_key: Optional[str] = None,
        extra_config: Optional[Dict[str, Any]] = None
    ) -> SearchResponse:
        """
        Recherche `query` avec le provider demandé.

        Raises:
            InvalidRequestError: Query absente, provider inconnu, clé manquante,
                extraConfig invalide
            SearchProviderError: Réponse upstream non-2xx ou illisible
        """
        if not query or not isinstance(query, str):
            raise InvalidRequestError("Missing query", field="query")

        adapter = self.get_provider(provider)
        config = self.build_config(api_key, extra_config)

        try:
            results = await adapter.search(query, config)
        except json.JSONDecodeError as e:
            raise SearchProviderError(adapter.name, 502, f"Invalid JSON response: {e}")

        results = results[:config.limit]
        logger.info(f"[SEARCH] {adapter.name}: {len(results)} résultat(s) pour {query[:80]!r}")
        return SearchResponse(results=format_results(results), data=results)
