"""
Route chat /api/chat: relais streaming avec recherche web optionnelle.

Événements SSE émis vers le client:
- {"type": "search_results", "results": "...", "data": [...]}   (si recherche)
- {"type": "search_error", "error": "..."}                      (recherche en échec)
- {"type": "content", "content": "<texte cumulé>"}              (à chaque delta)
- {"type": "error", "error": "..."}                             (erreur après le début du flux)
- data: [DONE]
"""
import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from ...core.constants import EVENT_STREAM_CONTENT_TYPE, STREAM_DONE_SENTINEL
from ...core.exceptions import GatewayError, InvalidRequestError
from ...core.models import ChatMessage, ConnectionConfig
from ...features.search import SearchAggregator, augment_messages, latest_user_query
from ...proxy.stream import ChatRelay
from ..dependencies import get_chat_relay, get_search_aggregator
from ..responses import error_response, read_json_object
from .proxy import SSE_HEADERS

logger = logging.getLogger(__name__)

router = APIRouter()


def _sse(payload: Dict[str, Any]) -> bytes:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8")


def _parse_messages(raw: Any) -> List[ChatMessage]:
    if not isinstance(raw, list) or not raw:
        raise InvalidRequestError("Missing messages", field="messages")
    return [ChatMessage.from_dict(item) for item in raw]


async def _run_search(
    aggregator: SearchAggregator,
    messages: List[ChatMessage],
    search: Dict[str, Any]
) -> Dict[str, Any]:
    """Recherche sur le dernier message utilisateur; un échec n'empêche pas le chat."""
    query = latest_user_query(messages)
    try:
        response = await aggregator.search(
            query,
            search.get("provider"),
            api_key=search.get("apiKey"),
            extra_config=search.get("extraConfig") or {},
        )
    except (GatewayError, httpx.HTTPError) as e:
        logger.warning(f"⚠️ [CHAT] Recherche en échec, chat sans contexte web: {e}")
        message = e.message if isinstance(e, GatewayError) else str(e)
        return {"type": "search_error", "error": message}

    return {"type": "search_results", **response.to_dict()}


async def _events(
    first_text: Optional[str],
    updates: AsyncIterator[str],
    search_event: Optional[Dict[str, Any]],
    cancel_event: asyncio.Event
) -> AsyncIterator[bytes]:
    try:
        if search_event is not None:
            yield _sse(search_event)
        if first_text is not None:
            yield _sse({"type": "content", "content": first_text})
        async for text in updates:
            yield _sse({"type": "content", "content": text})
        yield f"{STREAM_DONE_SENTINEL}\n\n".encode("utf-8")
    except (GatewayError, httpx.HTTPError) as e:
        message = e.message if isinstance(e, GatewayError) else str(e)
        logger.error(f"🔴 [CHAT] Relais interrompu: {message}")
        yield _sse({"type": "error", "error": message})
    finally:
        # Déconnexion client ou fin normale: on arrête de consommer l'upstream
        cancel_event.set()
        await updates.aclose()


@router.post("/chat")
async def chat(
    request: Request,
    relay: ChatRelay = Depends(get_chat_relay),
    aggregator: SearchAggregator = Depends(get_search_aggregator)
):
    """
    Body: { messages: [{role, content, images?}], model, baseUrl, apiKey,
            search?: {provider, apiKey, extraConfig} }

    Les erreurs survenant avant le premier delta (validation, statut upstream
    non-2xx) sont renvoyées en JSON avec leur statut HTTP.
    """
    try:
        body = await read_json_object(request)
        messages = _parse_messages(body.get("messages"))
        model = body.get("model")
        if not model:
            raise InvalidRequestError("Missing model", field="model")
        connection = ConnectionConfig.from_dict(body)
    except Exception as e:
        return error_response(e, "CHAT")

    search_event = None
    outgoing = messages
    search = body.get("search")
    if isinstance(search, dict) and search.get("provider"):
        search_event = await _run_search(aggregator, messages, search)
        if search_event["type"] == "search_results":
            outgoing = augment_messages(messages, search_event["results"])

    cancel_event = asyncio.Event()
    updates = relay.stream_chat(outgoing, model, connection, cancel_event=cancel_event)

    # Premier delta lu ici: un statut upstream non-2xx devient une réponse d'erreur HTTP
    try:
        first_text = await updates.__anext__()
    except StopAsyncIteration:
        first_text = None
    except Exception as e:
        await updates.aclose()
        return error_response(e, "CHAT")

    return StreamingResponse(
        _events(first_text, updates, search_event, cancel_event),
        media_type=EVENT_STREAM_CONTENT_TYPE,
        headers=SSE_HEADERS,
    )
