"""
Génération d'images: relais vers `/images/generations` et réécriture
des résultats vers les copies du cache média.

- `data[].url`      -> téléchargé dans le cache, servi par /api/media?url=...
- `data[].b64_json` -> enregistré comme image générée, servi par /data/{fichier}
"""
import json
import logging
from typing import Dict, Any, List, Optional
from urllib.parse import quote

from ..core.constants import MEDIA_ENDPOINT
from ..core.exceptions import InvalidRequestError, UpstreamError
from ..core.models import ConnectionConfig
from ..proxy.client import ProxyClient
from ..proxy.messages import auth_headers, build_endpoint
from .media_cache import MediaCache

logger = logging.getLogger(__name__)

# Paramètres optionnels transmis tels quels
IMAGE_OPTION_KEYS = ("size", "num_inference_steps", "negative_prompt", "width", "height", "seed")


def build_image_payload(prompt: str, model: str, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"prompt": prompt, "model": model}
    for key in IMAGE_OPTION_KEYS:
        value = (options or {}).get(key)
        if value is not None and value != "":
            payload[key] = value
    return payload


def media_proxy_url(url: str) -> str:
    return f"{MEDIA_ENDPOINT}?url={quote(url, safe='')}"


class ImageGenerator:
    """Relais de génération d'images avec mise en cache des résultats."""

    def __init__(self, client: ProxyClient, cache: MediaCache):
        self.client = client
        self.cache = cache

    async def generate(
        self,
        prompt: str,
        model: str,
        connection: ConnectionConfig,
        options: Optional[Dict[str, Any]] = None
    ) -> List[str]:
        """
        Génère des images et retourne leurs URLs locales.

        Raises:
            InvalidRequestError: Prompt ou modèle manquant
            UpstreamError: Réponse non-2xx du provider
        """
        if not prompt:
            raise InvalidRequestError("Missing prompt", field="prompt")
        if not model:
            raise InvalidRequestError("Missing model", field="model")

        payload = build_image_payload(prompt, model, options)
        response = await self.client.request(
            "POST",
            build_endpoint(connection, "images/generations"),
            headers=auth_headers(connection),
            content=json.dumps(payload).encode("utf-8"),
        )
        if not response.is_success:
            logger.error(f"❌ [IMAGES] Erreur {response.status_code}: {response.text[:500]}")
            raise UpstreamError(
                message=f"Image Generation Error: {response.status_code} - {response.text}",
                status=response.status_code,
                body=response.text,
            )

        items = response.json().get("data")
        if not isinstance(items, list):
            return []

        images: List[str] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            if item.get("url"):
                images.append(await self._cache_remote(item["url"]))
            elif item.get("b64_json"):
                saved = await self.cache.save_generated(f"data:image/png;base64,{item['b64_json']}")
                images.append(saved.url)

        logger.info(f"[IMAGES] {len(images)} image(s) générée(s) avec {model}")
        return images

    async def _cache_remote(self, url: str) -> str:
        # Les URLs signées des providers expirent: copie locale immédiate
        try:
            await self.cache.fetch(url)
        except UpstreamError as e:
            logger.warning(f"⚠️ [IMAGES] Mise en cache impossible pour {url}: {e}")
        return media_proxy_url(url)
