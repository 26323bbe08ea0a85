"""
Route proxy générique /api/proxy (contournement CORS pour le client).

POST: descripteur {targetUrl, method, headers, body}; réponse JSON ou flux SSE brut.
GET:  lecture seule, header Authorization transmis.
"""
import logging
from typing import AsyncIterator, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from ...core.constants import EVENT_STREAM_CONTENT_TYPE
from ...core.models import UpstreamRequestDescriptor
from ...proxy.client import ProxyClient, UpstreamStream
from ..dependencies import get_proxy_client
from ..responses import error_response, read_json_object

logger = logging.getLogger(__name__)

router = APIRouter()

# Headers recalculés par httpx pour la requête sortante
_DROPPED_REQUEST_HEADERS = {"host", "content-length", "connection", "transfer-encoding"}

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Désactive buffering nginx
}


def _upstream_error(status_code: int, text: str) -> JSONResponse:
    logger.error(f"❌ [PROXY] Erreur {status_code}: {text[:500]}")
    return JSONResponse(
        content={"error": f"Upstream Error: {status_code} - {text}"},
        status_code=status_code
    )


def _forward_body(response: httpx.Response, content: bytes) -> Response:
    try:
        return JSONResponse(content=response.json(), status_code=response.status_code)
    except ValueError:
        return Response(
            content=content,
            status_code=response.status_code,
            media_type=response.headers.get("content-type"),
        )


async def _passthrough(upstream: UpstreamStream) -> AsyncIterator[bytes]:
    """Recopie le body upstream tel quel puis ferme la connexion."""
    try:
        async for chunk in upstream.aiter_bytes():
            yield chunk
    except httpx.HTTPError as e:
        # Le statut est déjà envoyé: on ne peut que couper le flux
        logger.error(f"🔴 [PROXY] Stream interrompu: {e}")
    finally:
        await upstream.aclose()


@router.post("/proxy")
async def proxy_post(request: Request, client: ProxyClient = Depends(get_proxy_client)):
    """Transmet un appel décrit par le client; flux SSE relayé sans transformation."""
    try:
        descriptor = UpstreamRequestDescriptor.from_dict(await read_json_object(request))
    except Exception as e:
        return error_response(e, "PROXY")

    headers = {
        name: value for name, value in descriptor.headers.items()
        if name.lower() not in _DROPPED_REQUEST_HEADERS
    }
    upstream_request = client.build_request(
        descriptor.method,
        descriptor.target_url,
        headers=headers,
        content=descriptor.encoded_body(),
    )

    try:
        upstream = await client.send_streaming(upstream_request)
    except Exception as e:
        return error_response(e, "PROXY")

    try:
        if not upstream.response.is_success:
            text = (await upstream.response.aread()).decode("utf-8", errors="replace")
            await upstream.aclose()
            return _upstream_error(upstream.status_code, text)

        content_type = upstream.response.headers.get("content-type", "")
        if descriptor.wants_event_stream or EVENT_STREAM_CONTENT_TYPE in content_type:
            return StreamingResponse(
                _passthrough(upstream),
                media_type=EVENT_STREAM_CONTENT_TYPE,
                headers=SSE_HEADERS,
            )

        content = await upstream.response.aread()
        await upstream.aclose()
        return _forward_body(upstream.response, content)
    except Exception as e:
        await upstream.aclose()
        return error_response(e, "PROXY")


@router.get("/proxy")
async def proxy_get(
    request: Request,
    url: Optional[str] = None,
    client: ProxyClient = Depends(get_proxy_client)
):
    """GET en lecture seule vers `url`, avec le header Authorization du client."""
    if not url:
        return JSONResponse(content={"error": "Missing url parameter"}, status_code=400)

    try:
        response = await client.request(
            "GET",
            url,
            headers={
                "Authorization": request.headers.get("authorization", ""),
                "Content-Type": "application/json",
            },
        )
    except Exception as e:
        return error_response(e, "PROXY")

    if not response.is_success:
        return _upstream_error(response.status_code, response.text)
    return _forward_body(response, response.content)
