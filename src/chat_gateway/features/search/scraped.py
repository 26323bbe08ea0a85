"""
Providers par scraping HTML (DuckDuckGo, Bing, Baidu).

Le balisage de ces pages n'est pas documenté et change sans préavis:
un sélecteur qui ne trouve rien donne une liste vide, pas une erreur.
"""
from typing import Dict, List, Optional
from urllib.parse import parse_qs, urlparse

from bs4 import BeautifulSoup

from ...core.models import SearchResult
from .base import SearchConfig, SearchProvider, SearchProviderType, clean_text


class ScrapedSearchProvider(SearchProvider):
    """
    Base des providers HTML: GET de la page de résultats avec un
    User-Agent de navigateur, puis extraction par sélecteurs CSS.
    """

    SEARCH_URL: str
    QUERY_PARAM = "q"
    ITEM_SELECTOR: str
    LINK_SELECTOR: str
    SNIPPET_SELECTORS: tuple = ()

    def _headers(self, config: SearchConfig) -> Dict[str, str]:
        return {
            "User-Agent": config.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }

    async def search(self, query: str, config: SearchConfig) -> List[SearchResult]:
        response = await self.client.request(
            "GET",
            self.SEARCH_URL,
            params={self.QUERY_PARAM: query},
            headers=self._headers(config),
        )
        self._raise_for_status(response)
        return self.parse(response.text, config.limit)

    def parse(self, html: str, limit: int) -> List[SearchResult]:
        """Extrait au plus `limit` résultats de la page."""
        soup = BeautifulSoup(html, "html.parser")
        results: List[SearchResult] = []
        if limit <= 0:
            return results

        for item in soup.select(self.ITEM_SELECTOR):
            link = item.select_one(self.LINK_SELECTOR)
            if not link:
                continue

            url = self.resolve_link(link.get("href", "").strip())
            title = clean_text(link.get_text(" ", strip=True))
            if not url or not title:
                continue

            results.append(SearchResult(title=title, url=url, content=self._snippet(item)))
            if len(results) >= limit:
                break

        return results

    def _snippet(self, item) -> str:
        for selector in self.SNIPPET_SELECTORS:
            node = item.select_one(selector)
            if node:
                return clean_text(node.get_text(" ", strip=True))
        return ""

    def resolve_link(self, href: str) -> Optional[str]:
        return href or None


class DuckDuckGoProvider(ScrapedSearchProvider):
    """Version HTML sans JavaScript de DuckDuckGo."""

    provider_type = SearchProviderType.DUCKDUCKGO
    SEARCH_URL = "https://html.duckduckgo.com/html/"
    ITEM_SELECTOR = "div.result:not(.result--ad)"
    LINK_SELECTOR = "a.result__a"
    SNIPPET_SELECTORS = (".result__snippet",)

    def resolve_link(self, href: str) -> Optional[str]:
        # Liens de redirection: //duckduckgo.com/l/?uddg=<url encodée>
        if not href:
            return None
        parsed = urlparse(href)
        if parsed.path.startswith("/l/"):
            target = parse_qs(parsed.query).get("uddg")
            return target[0] if target else None
        if href.startswith("//"):
            return f"https:{href}"
        return href


class BingWebProvider(ScrapedSearchProvider):
    """Page de résultats bing.com (sans clé API)."""

    provider_type = SearchProviderType.BING_WEB
    SEARCH_URL = "https://www.bing.com/search"
    ITEM_SELECTOR = "li.b_algo"
    LINK_SELECTOR = "h2 a"
    SNIPPET_SELECTORS = (".b_caption p", "p")


class BaiduProvider(ScrapedSearchProvider):
    """Page de résultats baidu.com. Les liens sont des redirections Baidu."""

    provider_type = SearchProviderType.BAIDU
    SEARCH_URL = "https://www.baidu.com/s"
    QUERY_PARAM = "wd"
    ITEM_SELECTOR = "#content_left .result, #content_left .c-container"
    LINK_SELECTOR = "h3 a"
    SNIPPET_SELECTORS = (".c-abstract", "span.content-right_8Zs40", ".content-right_8Zs40")

