"""
Client HTTPX pour tous les appels upstream de la passerelle.

Un seul point de construction des `httpx.AsyncClient`:
- délais explicites (connect + read), plus longs pour le streaming
- transport injectable (tests avec `httpx.MockTransport`)
- aucun retry: chaque échec est remonté une seule fois à l'appelant
"""
from contextlib import asynccontextmanager
from typing import Dict, Any, Optional, AsyncIterator

import httpx

from ..config.settings import TimeoutConfig


class UpstreamStream:
    """
    Réponse upstream ouverte en streaming, avec son client.

    Le client doit rester vivant tant que le body est consommé:
    `aclose()` ferme les deux.
    """

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response):
        self.client = client
        self.response = response

    @property
    def status_code(self) -> int:
        return self.response.status_code

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        async for chunk in self.response.aiter_bytes():
            yield chunk

    async def aclose(self):
        try:
            await self.response.aclose()
        finally:
            await self.client.aclose()


class ProxyClient:
    """
    Client HTTP pour les appels vers les upstreams.

    Gère:
    - Timeouts configurables (normal / streaming)
    - Limites de connexions
    - Transport injectable
    """

    def __init__(
        self,
        timeouts: TimeoutConfig = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeouts = timeouts or TimeoutConfig()
        self.transport = transport

    def _make_client(self, streaming: bool = False) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeouts.as_httpx(streaming=streaming),
            transport=self.transport,
            follow_redirects=True,
            # Évite l'épuisement des connexions
            limits=httpx.Limits(
                max_keepalive_connections=20,
                max_connections=50
            ),
        )

    def build_request(
        self,
        method: str,
        url: str,
        headers: Dict[str, str] = None,
        content: Optional[bytes] = None,
        params: Dict[str, Any] = None,
    ) -> httpx.Request:
        """Construit une requête HTTPX."""
        return httpx.Request(method, url, headers=headers, content=content, params=params)

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Envoie une requête et retourne la réponse complète (body lu)."""
        async with self._make_client() as client:
            return await client.send(request)

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Raccourci `client.request(...)` avec body lu."""
        async with self._make_client() as client:
            return await client.request(method, url, **kwargs)

    async def send_streaming(self, request: httpx.Request) -> UpstreamStream:
        """
        Envoie une requête en mode streaming.

        Returns:
            UpstreamStream à fermer par l'appelant (aclose)
        """
        client = self._make_client(streaming=True)
        try:
            response = await client.send(request, stream=True)
        except BaseException:
            await client.aclose()
            raise
        return UpstreamStream(client, response)

    @asynccontextmanager
    async def stream(self, request: httpx.Request) -> AsyncIterator[UpstreamStream]:
        """
        Ouvre un stream upstream et le ferme en sortie de bloc,
        y compris sur annulation (déconnexion du client).
        """
        upstream = await self.send_streaming(request)
        try:
            yield upstream
        finally:
            await upstream.aclose()


def create_proxy_client(
    timeouts: TimeoutConfig = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ProxyClient:
    """
    Crée un client proxy.

    Args:
        timeouts: Délais connect/read/stream_read
        transport: Transport HTTPX (tests)

    Returns:
        Instance de ProxyClient
    """
    return ProxyClient(timeouts=timeouts, transport=transport)
