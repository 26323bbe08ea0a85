"""
Mise en forme des requêtes vers l'API OpenAI-compatible.
"""
from typing import Dict, Any, List

from ..core.constants import API_VERSION_SEGMENT, DEFAULT_IMAGE_DATA_URI_PREFIX
from ..core.models import ChatMessage, ConnectionConfig


def normalize_base_url(base_url: str) -> str:
    """
    Normalise l'URL de base pour qu'elle se termine par /v1.

    Exemples:
        https://api.example.com/    -> https://api.example.com/v1
        https://api.example.com/v1  -> https://api.example.com/v1
    """
    url = base_url.strip()
    if url.endswith("/"):
        url = url[:-1]
    if not url.endswith(API_VERSION_SEGMENT):
        url += API_VERSION_SEGMENT
    return url


def build_endpoint(connection: ConnectionConfig, path: str) -> str:
    """Construit `{base normalisée}/{path}`."""
    return f"{normalize_base_url(connection.base_url)}/{path.lstrip('/')}"


def auth_headers(connection: ConnectionConfig) -> Dict[str, str]:
    """Headers JSON + Bearer pour l'API modèle."""
    return {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {connection.api_key}",
    }


def to_data_uri(image: str) -> str:
    """Une image déjà en data URI est gardée telle quelle, sinon préfixée base64 JPEG."""
    if image.startswith("data:"):
        return image
    return f"{DEFAULT_IMAGE_DATA_URI_PREFIX}{image}"


def serialize_message(message: ChatMessage) -> Dict[str, Any]:
    """
    Sérialise un message au format OpenAI.

    Avec images, `content` devient une liste: une partie texte
    puis une partie `image_url` par pièce jointe.
    """
    if message.images:
        parts: List[Dict[str, Any]] = [{"type": "text", "text": message.content}]
        for image in message.images:
            parts.append({
                "type": "image_url",
                "image_url": {"url": to_data_uri(image)},
            })
        return {"role": message.role, "content": parts}

    return {"role": message.role, "content": message.content}


def build_chat_payload(messages: List[ChatMessage], model: str) -> Dict[str, Any]:
    """Body d'un appel chat/completions en streaming."""
    return {
        "model": model,
        "messages": [serialize_message(m) for m in messages],
        "stream": True,
    }
