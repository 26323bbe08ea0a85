"""
Provider méta-recherche: instance SearXNG auto-hébergée (endpoint JSON).
"""
from typing import List

from ...core.exceptions import InvalidRequestError
from ...core.models import SearchResult
from .base import SearchConfig, SearchProvider, SearchProviderType


class SearxngProvider(SearchProvider):
    """
    Proxy vers `{instance}/search?format=json`.

    L'URL d'instance peut venir du client (extraConfig) ou de la
    configuration de la passerelle. Le format JSON doit être activé
    côté instance (`search.formats` dans settings.yml).
    """

    provider_type = SearchProviderType.SEARXNG

    async def search(self, query: str, config: SearchConfig) -> List[SearchResult]:
        instance_url = config.instance_url
        if not instance_url:
            raise InvalidRequestError("Missing SearXNG instance URL", field="extraConfig.instanceUrl")

        response = await self.client.request(
            "GET",
            f"{instance_url.rstrip('/')}/search",
            params={"q": query, "format": "json"},
            headers={"Accept": "application/json"},
        )
        self._raise_for_status(response)

        items = response.json().get("results") or []
        return [
            SearchResult(
                title=item.get("title") or "",
                url=item.get("url") or "",
                content=item.get("content") or "",
            )
            for item in items[:config.limit]
        ]
