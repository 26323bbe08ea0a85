"""
Configuration des tests pytest.
"""
import json
import os
import sys
from typing import Callable, Dict, Any, List

import httpx
import pytest

# Ajoute src au path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from chat_gateway.config.settings import Settings, CacheConfig  # noqa: E402
from chat_gateway.proxy.client import ProxyClient  # noqa: E402


@pytest.fixture
def anyio_backend():
    """Tests async exécutés sur asyncio uniquement."""
    return "asyncio"


def sse_delta(content: str) -> str:
    """Trame SSE OpenAI contenant un delta texte."""
    return "data: " + json.dumps({"choices": [{"delta": {"content": content}}]}) + "\n\n"


def sse_body(*deltas: str, done: bool = True) -> bytes:
    body = "".join(sse_delta(d) for d in deltas)
    if done:
        body += "data: [DONE]\n\n"
    return body.encode("utf-8")


class RecordingTransport(httpx.MockTransport):
    """MockTransport qui garde la liste des requêtes reçues."""

    def __init__(self, handler: Callable[[httpx.Request], Any]):
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request):
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def sse():
    """Construit un body SSE à partir de deltas."""
    return sse_body


@pytest.fixture
def make_transport():
    """Fabrique de transports enregistreurs."""
    return RecordingTransport


@pytest.fixture
def make_client():
    """ProxyClient branché sur un handler HTTPX."""
    def _make(handler) -> ProxyClient:
        return ProxyClient(transport=RecordingTransport(handler))
    return _make


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings avec un répertoire de cache isolé."""
    return Settings(cache=CacheConfig(data_dir=str(tmp_path / "data")))


@pytest.fixture
def sample_messages() -> List[Dict[str, Any]]:
    """Fixture pour des messages de test."""
    return [
        {"role": "system", "content": "Tu es un assistant utile."},
        {"role": "user", "content": "Bonjour, comment ça va?"},
        {"role": "assistant", "content": "Je vais bien, merci!"},
        {"role": "user", "content": "Quelle est la météo à Paris?"},
    ]
