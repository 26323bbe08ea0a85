"""
Tests unitaires de l'agrégateur de recherche.

Pourquoi: six providers aux formats très différents doivent produire
la même forme normalisée, plafonnée à cinq résultats.
"""
import json

import pytest
import httpx

from chat_gateway.config.settings import SearchSettings
from chat_gateway.core.exceptions import InvalidRequestError, SearchProviderError
from chat_gateway.core.models import ChatMessage, SearchResult
from chat_gateway.features.search import (
    SearchAggregator,
    SearchProviderType,
    augment_messages,
    format_results,
    latest_user_query,
)

DDG_HTML = """
<html><body>
  <div class="result result--ad"><a class="result__a" href="https://ads.example.com">Pub</a></div>
  <div class="result">
    <a class="result__a" href="//duckduckgo.com/l/?uddg=https%3A%2F%2Fpython.org%2F&rut=abc">Python  Official</a>
    <a class="result__snippet">The official   home of Python.</a>
  </div>
  <div class="result">
    <a class="result__a" href="https://docs.python.org/3/">Docs</a>
    <div class="result__snippet">Documentation</div>
  </div>
  <div class="result"><span>Sans lien</span></div>
</body></html>
"""

BING_HTML = """
<ol id="b_results">
  <li class="b_algo"><h2><a href="https://a.example.com">Alpha</a></h2>
    <div class="b_caption"><p>Premier résultat</p></div></li>
  <li class="b_algo"><h2><a href="https://b.example.com">Beta</a></h2><p>Second</p></li>
</ol>
"""

BAIDU_HTML = """
<div id="content_left">
  <div class="result c-container"><h3><a href="http://www.baidu.com/link?url=1">百度一下</a></h3>
    <div class="c-abstract">摘要</div></div>
</div>
"""


def json_handler(payload, status=200):
    return lambda request: httpx.Response(status, json=payload)


@pytest.fixture
def make_aggregator(make_client):
    def _make(handler, settings=None):
        client = make_client(handler)
        return SearchAggregator(client, settings), client.transport
    return _make


class TestProviderSelection:
    """Tests du sélecteur de provider."""

    def test_closed_set(self):
        assert {p.value for p in SearchProviderType} == {
            "tavily", "bing", "duckduckgo", "bing_web", "baidu", "searxng"
        }

    @pytest.mark.anyio
    async def test_unknown_provider(self, make_aggregator):
        """Provider inconnu: erreur client, aucun appel upstream."""
        aggregator, transport = make_aggregator(json_handler({}))

        with pytest.raises(InvalidRequestError) as exc_info:
            await aggregator.search("python", "altavista")

        assert exc_info.value.message == "Invalid provider"
        assert transport.requests == []

    @pytest.mark.anyio
    async def test_extra_config_not_object(self, make_aggregator):
        """extraConfig sous forme de chaîne: erreur client, aucun appel upstream."""
        aggregator, transport = make_aggregator(json_handler({}))

        with pytest.raises(InvalidRequestError) as exc_info:
            await aggregator.search("python", "searxng", extra_config="http://s")

        assert exc_info.value.message == "extraConfig must be an object"
        assert transport.requests == []

    @pytest.mark.anyio
    async def test_missing_query(self, make_aggregator):
        aggregator, transport = make_aggregator(json_handler({}))
        with pytest.raises(InvalidRequestError):
            await aggregator.search("", "tavily", api_key="k")
        assert transport.requests == []


class TestStructuredProviders:
    """Tests Tavily et Bing API."""

    @pytest.mark.anyio
    async def test_tavily(self, make_aggregator):
        items = [{"title": f"T{i}", "url": f"https://t/{i}", "content": f"c{i}"} for i in range(8)]
        aggregator, transport = make_aggregator(json_handler({"results": items}))

        response = await aggregator.search("python", "tavily", api_key="tvly-key")

        request = transport.requests[0]
        assert str(request.url) == "https://api.tavily.com/search"
        body = json.loads(request.content)
        assert body["api_key"] == "tvly-key"
        assert body["query"] == "python"
        assert len(response.data) == 5
        assert response.data[0] == SearchResult(title="T0", url="https://t/0", content="c0")

    @pytest.mark.anyio
    async def test_tavily_missing_key(self, make_aggregator):
        aggregator, transport = make_aggregator(json_handler({}))
        with pytest.raises(InvalidRequestError) as exc_info:
            await aggregator.search("python", "tavily")
        assert exc_info.value.message == "Missing Tavily API Key"
        assert transport.requests == []

    @pytest.mark.anyio
    async def test_bing_api(self, make_aggregator):
        payload = {"webPages": {"value": [{"name": "N", "url": "https://n", "snippet": "S"}]}}
        aggregator, transport = make_aggregator(json_handler(payload))

        response = await aggregator.search("python", "bing", api_key="bing-key")

        request = transport.requests[0]
        assert request.url.host == "api.bing.microsoft.com"
        assert request.url.params["q"] == "python"
        assert request.headers["Ocp-Apim-Subscription-Key"] == "bing-key"
        assert response.data == [SearchResult(title="N", url="https://n", content="S")]

    @pytest.mark.anyio
    async def test_bing_api_no_pages(self, make_aggregator):
        aggregator, _ = make_aggregator(json_handler({}))
        response = await aggregator.search("python", "bing", api_key="k")
        assert response.data == []
        assert response.results == "No results"

    @pytest.mark.anyio
    async def test_provider_error(self, make_aggregator):
        """Statut non-2xx du provider: SearchProviderError (502)."""
        aggregator, _ = make_aggregator(lambda request: httpx.Response(401, text="Unauthorized"))

        with pytest.raises(SearchProviderError) as exc_info:
            await aggregator.search("python", "tavily", api_key="bad")

        assert exc_info.value.status_code == 502
        assert exc_info.value.message == "Tavily Error: Unauthorized"

    @pytest.mark.anyio
    async def test_invalid_json(self, make_aggregator):
        aggregator, _ = make_aggregator(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(SearchProviderError):
            await aggregator.search("python", "tavily", api_key="k")


class TestScrapedProviders:
    """Tests des providers HTML."""

    @pytest.mark.anyio
    async def test_duckduckgo(self, make_aggregator):
        """Pubs ignorées, liens de redirection résolus, espaces normalisés."""
        aggregator, transport = make_aggregator(lambda request: httpx.Response(200, text=DDG_HTML))

        response = await aggregator.search("python", "duckduckgo")

        request = transport.requests[0]
        assert request.url.host == "html.duckduckgo.com"
        assert "Mozilla" in request.headers["User-Agent"]
        assert response.data == [
            SearchResult(title="Python Official", url="https://python.org/", content="The official home of Python."),
            SearchResult(title="Docs", url="https://docs.python.org/3/", content="Documentation"),
        ]

    @pytest.mark.anyio
    async def test_bing_web(self, make_aggregator):
        aggregator, _ = make_aggregator(lambda request: httpx.Response(200, text=BING_HTML))

        response = await aggregator.search("python", "bing_web")

        assert [r.title for r in response.data] == ["Alpha", "Beta"]
        assert response.data[0].content == "Premier résultat"
        assert response.data[1].content == "Second"

    @pytest.mark.anyio
    async def test_baidu(self, make_aggregator):
        aggregator, transport = make_aggregator(lambda request: httpx.Response(200, text=BAIDU_HTML))

        response = await aggregator.search("百度", "baidu")

        assert transport.requests[0].url.params["wd"] == "百度"
        assert response.data == [
            SearchResult(title="百度一下", url="http://www.baidu.com/link?url=1", content="摘要")
        ]

    @pytest.mark.anyio
    async def test_markup_changed(self, make_aggregator):
        """Sélecteurs sans correspondance: liste vide, pas d'erreur."""
        aggregator, _ = make_aggregator(lambda request: httpx.Response(200, text="<html><p>captcha</p></html>"))
        response = await aggregator.search("python", "duckduckgo")
        assert response.data == []
        assert response.results == "No results"

    @pytest.mark.anyio
    async def test_capped_at_five(self, make_aggregator):
        items = "".join(
            f'<li class="b_algo"><h2><a href="https://r/{i}">R{i}</a></h2></li>' for i in range(9)
        )
        aggregator, _ = make_aggregator(lambda request: httpx.Response(200, text=f"<ol>{items}</ol>"))

        response = await aggregator.search("python", "bing_web")

        assert [r.title for r in response.data] == ["R0", "R1", "R2", "R3", "R4"]


class TestSearxng:
    """Tests du provider SearXNG."""

    @pytest.mark.anyio
    async def test_instance_from_extra_config(self, make_aggregator):
        payload = {"results": [{"title": "S", "url": "https://s", "content": "c"}]}
        aggregator, transport = make_aggregator(json_handler(payload))

        response = await aggregator.search(
            "python", "searxng", extra_config={"instanceUrl": "https://searx.example.org/"}
        )

        url = transport.requests[0].url
        assert str(url).startswith("https://searx.example.org/search")
        assert url.params["format"] == "json"
        assert response.data[0].title == "S"

    @pytest.mark.anyio
    async def test_instance_from_settings(self, make_aggregator):
        settings = SearchSettings(searxng_url="https://searx.local")
        aggregator, transport = make_aggregator(json_handler({"results": []}), settings)

        await aggregator.search("python", "searxng")

        assert transport.requests[0].url.host == "searx.local"

    @pytest.mark.anyio
    async def test_missing_instance(self, make_aggregator):
        aggregator, transport = make_aggregator(json_handler({}))
        with pytest.raises(InvalidRequestError):
            await aggregator.search("python", "searxng")
        assert transport.requests == []


class TestFormatting:
    """Tests du bloc texte et de l'augmentation du prompt."""

    def test_format_results(self):
        text = format_results([
            SearchResult(title="A", url="https://a", content="ca"),
            SearchResult(title="B", url="https://b", content="cb"),
        ])
        assert text == (
            "[1] Title: A\nURL: https://a\nContent: ca\n\n"
            "[2] Title: B\nURL: https://b\nContent: cb"
        )

    def test_format_empty(self):
        assert format_results([]) == "No results"

    def test_augment_last_user_message(self):
        """Seul le dernier message utilisateur est augmenté, l'original reste intact."""
        messages = [
            ChatMessage(role="user", content="première"),
            ChatMessage(role="assistant", content="réponse"),
            ChatMessage(role="user", content="météo Paris", images=["QQ=="]),
        ]

        augmented = augment_messages(messages, "[1] Title: Météo")

        assert augmented[0] is messages[0]
        assert "[1] Title: Météo" in augmented[2].content
        assert augmented[2].content.endswith("météo Paris")
        assert augmented[2].images == ["QQ=="]
        assert messages[2].content == "météo Paris"

    def test_latest_user_query(self):
        messages = [ChatMessage(role="user", content="a"), ChatMessage(role="assistant", content="b")]
        assert latest_user_query(messages) == "a"
        assert latest_user_query([]) == ""
