"""
Modèles de données de la passerelle.

Dataclasses simples, construites par appel et jamais persistées
(sauf les octets des entrées de cache, écrits sur disque).
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .constants import EVENT_STREAM_CONTENT_TYPE
from .exceptions import InvalidRequestError


@dataclass(frozen=True)
class UpstreamRequestDescriptor:
    """Description générique d'un appel proxifié (URL, méthode, headers, body)."""
    target_url: str
    method: str = "POST"
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Any] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UpstreamRequestDescriptor":
        """Crée une instance depuis le corps JSON `{targetUrl, method, headers, body}`."""
        if not isinstance(data, dict):
            raise InvalidRequestError("Request body must be a JSON object")

        target_url = data.get("targetUrl")
        if not target_url:
            raise InvalidRequestError("Missing targetUrl", field="targetUrl")

        headers = data.get("headers") or {}
        if not isinstance(headers, dict):
            raise InvalidRequestError("headers must be an object", field="headers")

        return cls(
            target_url=target_url,
            method=(data.get("method") or "POST").upper(),
            headers={str(k): str(v) for k, v in headers.items()},
            body=data.get("body"),
        )

    @property
    def wants_event_stream(self) -> bool:
        """True si la requête demande un flux SSE (header Accept ou `stream: true`)."""
        for name, value in self.headers.items():
            if name.lower() == "accept" and EVENT_STREAM_CONTENT_TYPE in value:
                return True
        return isinstance(self.body, dict) and self.body.get("stream") is True

    def encoded_body(self) -> Optional[bytes]:
        """Body sérialisé: structuré -> JSON, texte -> UTF-8, absent -> None."""
        if self.body is None:
            return None
        if isinstance(self.body, bytes):
            return self.body
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return json.dumps(self.body).encode("utf-8")


@dataclass
class ChatMessage:
    """Message de conversation, avec pièces jointes image optionnelles."""
    role: str
    content: str
    images: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        """Crée une instance depuis un dictionnaire."""
        if not isinstance(data, dict) or "role" not in data:
            raise InvalidRequestError("Each message needs a role", field="messages")
        images = data.get("images") or []
        if not isinstance(images, list):
            raise InvalidRequestError("images must be a list", field="messages")
        return cls(
            role=data["role"],
            content=data.get("content") or "",
            images=list(images),
        )


@dataclass(frozen=True)
class ConnectionConfig:
    """Connexion vers l'API modèle: URL de base + clé."""
    base_url: str
    api_key: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConnectionConfig":
        base_url = data.get("baseUrl")
        if not base_url:
            raise InvalidRequestError("Missing baseUrl", field="baseUrl")
        return cls(base_url=base_url, api_key=data.get("apiKey") or "")


@dataclass
class SearchResult:
    """Résultat normalisé, identique pour tous les providers."""
    title: str
    url: str
    content: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "url": self.url, "content": self.content}


@dataclass
class CachedMedia:
    """Octets d'une entrée de cache et leur Content-Type."""
    content: bytes
    content_type: str
    filename: Optional[str] = None
    from_cache: bool = False


@dataclass
class SavedImage:
    """Image générée persistée dans le cache."""
    url: str
    filename: str

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "filename": self.filename}
