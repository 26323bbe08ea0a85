"""
Providers structurés: APIs JSON avec clé (Tavily, Bing Web Search API).
"""
from typing import List

from ...core.models import SearchResult
from .base import SearchConfig, SearchProvider, SearchProviderType

TAVILY_SEARCH_URL = "https://api.tavily.com/search"
BING_SEARCH_URL = "https://api.bing.microsoft.com/v7.0/search"


class TavilyProvider(SearchProvider):
    """API Tavily: POST JSON, résultats `results[].{title,url,content}`."""

    provider_type = SearchProviderType.TAVILY

    async def search(self, query: str, config: SearchConfig) -> List[SearchResult]:
        api_key = self._require_api_key(config)
        response = await self.client.request(
            "POST",
            TAVILY_SEARCH_URL,
            json={
                "api_key": api_key,
                "query": query,
                "search_depth": "basic",
                "include_answer": False,
                "include_images": False,
                "max_results": config.limit,
            },
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


class BingApiProvider(SearchProvider):
    """Bing Web Search API v7: `webPages.value[].{name,url,snippet}`."""

    provider_type = SearchProviderType.BING

    async def search(self, query: str, config: SearchConfig) -> List[SearchResult]:
        api_key = self._require_api_key(config)
        response = await self.client.request(
            "GET",
            BING_SEARCH_URL,
            params={"q": query, "count": config.limit},
            headers={"Ocp-Apim-Subscription-Key": api_key},
        )
        self._raise_for_status(response)

        items = (response.json().get("webPages") or {}).get("value") or []
        return [
            SearchResult(
                title=item.get("name") or "",
                url=item.get("url") or "",
                content=item.get("snippet") or "",
            )
            for item in items[:config.limit]
        ]
