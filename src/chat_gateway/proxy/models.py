"""
Liste des modèles de l'API OpenAI-compatible.
"""
import logging
from typing import Dict, Any, List

from ..core.exceptions import UpstreamError
from ..core.models import ConnectionConfig
from .client import ProxyClient
from .messages import auth_headers, build_endpoint

logger = logging.getLogger(__name__)


async def list_models(client: ProxyClient, connection: ConnectionConfig) -> List[Dict[str, Any]]:
    """
    GET `{base}/v1/models`.

    Returns:
        Liste `data` de la réponse (vide si absente)

    Raises:
        UpstreamError: Réponse non-2xx
    """
    response = await client.request(
        "GET",
        build_endpoint(connection, "models"),
        headers=auth_headers(connection),
    )
    if not response.is_success:
        logger.error(f"❌ [MODELS] Erreur {response.status_code}: {response.text[:500]}")
        raise UpstreamError(
            message=f"Upstream Error: {response.status_code} - {response.text}",
            status=response.status_code,
            body=response.text,
        )
    return response.json().get("data") or []
