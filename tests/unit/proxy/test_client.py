"""
Tests unitaires pour le client proxy HTTPX.

Pourquoi: tous les appels upstream passent par ce client (timeouts,
transport injectable, fermeture du stream).
"""
import pytest
import httpx

from chat_gateway.config.settings import TimeoutConfig
from chat_gateway.proxy.client import ProxyClient, UpstreamStream, create_proxy_client


class TestTimeoutConfig:
    """Tests des délais HTTPX."""

    def test_normal_timeout(self):
        """Appel classique: read timeout normal."""
        timeout = TimeoutConfig(connect=5, read=30, stream_read=200).as_httpx()
        assert timeout.connect == 5
        assert timeout.read == 30

    def test_streaming_timeout(self):
        """Streaming: read timeout long."""
        timeout = TimeoutConfig(connect=5, read=30, stream_read=200).as_httpx(streaming=True)
        assert timeout.read == 200


class TestProxyClient:
    """Tests du client proxy."""

    def test_init_default_values(self):
        """Initialisation avec valeurs par défaut."""
        client = ProxyClient()
        assert client.timeouts == TimeoutConfig()
        assert client.transport is None

    def test_build_request(self):
        """Construction de requête."""
        client = ProxyClient()
        req = client.build_request(
            "POST",
            "https://api.example.com/chat",
            {"Content-Type": "application/json"},
            b'{"messages": []}'
        )

        assert req.method == "POST"
        assert str(req.url) == "https://api.example.com/chat"
        assert req.headers["Content-Type"] == "application/json"

    @pytest.mark.anyio
    async def test_request_uses_transport(self, make_client):
        """Le transport injecté reçoit la requête."""
        client = make_client(lambda request: httpx.Response(200, json={"ok": True}))

        response = await client.request("GET", "https://api.example.com/ping")

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert str(client.transport.requests[0].url) == "https://api.example.com/ping"

    @pytest.mark.anyio
    async def test_no_retry_on_error(self, make_client):
        """Un 503 est remonté tel quel, sans nouvel essai."""
        client = make_client(lambda request: httpx.Response(503, text="busy"))

        response = await client.request("GET", "https://api.example.com/ping")

        assert response.status_code == 503
        assert len(client.transport.requests) == 1

    @pytest.mark.anyio
    async def test_stream_closes_upstream(self, make_client):
        """Le stream est fermé en sortie de bloc."""
        client = make_client(lambda request: httpx.Response(200, content=b"abc"))
        request = client.build_request("GET", "https://api.example.com/stream")

        async with client.stream(request) as upstream:
            assert isinstance(upstream, UpstreamStream)
            assert upstream.status_code == 200
            body = b"".join([chunk async for chunk in upstream.aiter_bytes()])

        assert body == b"abc"
        assert upstream.response.is_closed
        assert upstream.client.is_closed


class TestCreateProxyClient:
    """Tests de la factory."""

    def test_factory_default(self):
        """Factory crée un client avec valeurs par défaut."""
        client = create_proxy_client()
        assert isinstance(client, ProxyClient)
        assert client.timeouts.read == TimeoutConfig().read

    def test_factory_custom(self):
        """Factory accepte des délais custom."""
        client = create_proxy_client(timeouts=TimeoutConfig(read=90.0))
        assert client.timeouts.read == 90.0
