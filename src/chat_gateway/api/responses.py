"""
Conversion des exceptions en réponses JSON d'erreur.
"""
import json
import logging
from typing import Any, Dict

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse

from ..core.exceptions import GatewayError, InvalidRequestError

logger = logging.getLogger(__name__)


def error_response(exc: Exception, tag: str = "API") -> JSONResponse:
    """
    Mappe une exception vers `{"error": ...}` et le statut HTTP adéquat.

    - GatewayError: statut porté par l'exception
    - httpx.TimeoutException: 504
    - autre erreur httpx: 502
    - reste: 500
    """
    if isinstance(exc, GatewayError):
        if exc.status_code >= 500:
            logger.error(f"❌ [{tag}] {exc}")
        else:
            logger.info(f"[{tag}] {exc}")
        return JSONResponse(content=exc.to_dict(), status_code=exc.status_code)

    if isinstance(exc, httpx.TimeoutException):
        logger.error(f"🔴 [{tag}] Timeout upstream: {exc}")
        return JSONResponse(
            content={"error": "Upstream timeout", "detail": str(exc), "type": "timeout_error"},
            status_code=504
        )

    if isinstance(exc, httpx.HTTPError):
        logger.error(f"🔴 [{tag}] Erreur réseau upstream: {exc}")
        return JSONResponse(
            content={"error": str(exc) or "Upstream connection error", "type": "upstream_error"},
            status_code=502
        )

    logger.exception(f"🔴 [{tag}] Erreur inattendue: {exc}")
    return JSONResponse(content={"error": str(exc) or "Internal Server Error"}, status_code=500)


async def read_json_object(request: Request) -> Dict[str, Any]:
    """
    Lit le corps JSON de la requête.

    Raises:
        InvalidRequestError: Corps absent, JSON invalide ou pas un objet
    """
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidRequestError("Invalid JSON body")
    if not isinstance(data, dict):
        raise InvalidRequestError("Request body must be a JSON object")
    return data
