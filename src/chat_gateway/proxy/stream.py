"""
Relais streaming chat/completions et décodage du flux SSE.

Pourquoi un buffer explicite:
- Une lecture réseau peut couper une ligne (ou un caractère UTF-8) en deux
- Seules les lignes complètes sont interprétées, le reste attend la lecture suivante
- Une trame malformée est ignorée, jamais fatale (keep-alive, commentaires)
"""
import asyncio
import codecs
import inspect
import json
import logging
from datetime import datetime
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Union

import httpx

from ..core.constants import STREAM_DATA_PREFIX, STREAM_DONE_SENTINEL
from ..core.exceptions import StreamingError, UpstreamError
from ..core.models import ChatMessage, ConnectionConfig
from .client import ProxyClient
from .messages import auth_headers, build_chat_payload, build_endpoint

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[str], Union[None, Awaitable[None]]]

# Types d'erreurs streaming connus
STREAMING_ERROR_TYPES = {
    "read_error": "Connexion interrompue par le provider",
    "connect_error": "Impossible de se connecter au provider",
    "timeout_error": "Timeout lors de la lecture du stream",
    "decode_error": "Erreur de décodage des données",
    "unknown": "Erreur streaming inconnue"
}


class SSELineBuffer:
    """
    Découpe un flux d'octets en lignes complètes.

    Le dernier segment (potentiellement incomplet) reste dans le buffer
    jusqu'à la lecture suivante.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> List[str]:
        """Ajoute un chunk et retourne les lignes complètes."""
        self._buffer += self._decoder.decode(chunk)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        return lines

    def flush(self) -> List[str]:
        """Fin de stream: retourne le segment restant s'il existe."""
        self._buffer += self._decoder.decode(b"", final=True)
        remaining, self._buffer = self._buffer, ""
        return [remaining] if remaining.strip() else []


def parse_stream_line(line: str) -> Optional[str]:
    """
    Interprète une ligne du flux.

    Returns:
        Le delta texte ("" si absent), ou None si la ligne est à ignorer
        (vide, sentinelle [DONE], ligne sans préfixe `data: `)

    Raises:
        ValueError: Si le JSON de la trame est invalide
    """
    line = line.strip()
    if not line or line == STREAM_DONE_SENTINEL:
        return None
    if not line.startswith(STREAM_DATA_PREFIX):
        return None

    data = json.loads(line[len(STREAM_DATA_PREFIX):])
    return _extract_delta(data)


def _extract_delta(data: Any) -> str:
    """Extrait `choices[0].delta.content` (chaîne vide si absent)."""
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return ""
    content = delta.get("content")
    return content if isinstance(content, str) else ""


class StreamAccumulator:
    """Concaténation des deltas reçus pendant un appel."""

    def __init__(self):
        self.text = ""
        self.deltas = 0

    def append(self, delta: str) -> str:
        """Ajoute un delta et retourne le texte cumulé."""
        self.text += delta
        self.deltas += 1
        return self.text


async def iter_cumulative_text(
    chunks: AsyncIterator[bytes],
    cancel_event: Optional[asyncio.Event] = None
) -> AsyncIterator[str]:
    """
    Décode un flux SSE et yield le texte cumulé à chaque delta non vide.

    Args:
        chunks: Itérateur async des octets bruts
        cancel_event: Jeton d'annulation vérifié entre chaque lecture

    Yields:
        Texte cumulé (croissant), dans l'ordre d'arrivée des trames
    """
    buffer = SSELineBuffer()
    accumulator = StreamAccumulator()
    skipped = 0

    def _consume(lines: List[str]) -> List[str]:
        nonlocal skipped
        updates = []
        for line in lines:
            try:
                delta = parse_stream_line(line)
            except ValueError as e:
                skipped += 1
                logger.warning(f"⚠️ [STREAM] Trame ignorée ({e}): {line[:120]!r}")
                continue
            if delta:
                updates.append(accumulator.append(delta))
        return updates

    async for chunk in chunks:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("[STREAM] Annulation demandée, lecture upstream interrompue")
            return
        for text in _consume(buffer.feed(chunk)):
            yield text

    for text in _consume(buffer.flush()):
        yield text

    logger.debug(
        f"[STREAM] Fin du flux: {accumulator.deltas} delta(s), "
        f"{len(accumulator.text)} caractère(s), {skipped} trame(s) malformée(s) ignorée(s)"
    )


def _log_streaming_error(error_type: str, chunks_received: int, error: str, start_time: datetime) -> None:
    """Log structuré d'une erreur streaming."""
    duration = (datetime.now() - start_time).total_seconds()
    error_msg = STREAMING_ERROR_TYPES.get(error_type, STREAMING_ERROR_TYPES["unknown"])
    logger.error(
        f"🔴 [STREAM_ERROR] {error_msg} - chunks reçus: {chunks_received}, "
        f"durée: {duration:.2f}s, détail: {error[:200]}"
    )


class ChatRelay:
    """
    Relais chat/completions vers l'API OpenAI-compatible.

    Deux façons de consommer le flux:
    - `stream_chat`: itérateur async du texte cumulé
    - `send_chat`: callback à chaque mise à jour, retourne le texte final
    """

    def __init__(self, client: ProxyClient):
        self.client = client

    def build_request(
        self,
        messages: List[ChatMessage],
        model: str,
        connection: ConnectionConfig
    ) -> httpx.Request:
        payload = build_chat_payload(messages, model)
        return self.client.build_request(
            "POST",
            build_endpoint(connection, "chat/completions"),
            headers=auth_headers(connection),
            content=json.dumps(payload).encode("utf-8"),
        )

    async def stream_chat(
        self,
        messages: List[ChatMessage],
        model: str,
        connection: ConnectionConfig,
        cancel_event: Optional[asyncio.Event] = None
    ) -> AsyncIterator[str]:
        """
        Yield le texte cumulé au fil du stream upstream.

        Raises:
            UpstreamError: Statut non-2xx (avant tout streaming)
            StreamingError: Erreur de transport pendant la lecture
        """
        request = self.build_request(messages, model, connection)
        start_time = datetime.now()
        chunks_received = 0

        async with self.client.stream(request) as upstream:
            if not upstream.response.is_success:
                body = (await upstream.response.aread()).decode("utf-8", errors="replace")
                logger.error(f"❌ [STREAM] Erreur API {upstream.status_code}: {body[:500]}")
                raise UpstreamError(
                    message=f"API Error: {upstream.status_code} - {body}",
                    status=upstream.status_code,
                    body=body,
                )

            async def _counted() -> AsyncIterator[bytes]:
                nonlocal chunks_received
                async for chunk in upstream.aiter_bytes():
                    chunks_received += 1
                    yield chunk

            try:
                async for text in iter_cumulative_text(_counted(), cancel_event):
                    yield text
            except httpx.TimeoutException as e:
                _log_streaming_error("timeout_error", chunks_received, str(e), start_time)
                raise StreamingError(STREAMING_ERROR_TYPES["timeout_error"], "timeout_error", chunks_received) from e
            except httpx.ConnectError as e:
                _log_streaming_error("connect_error", chunks_received, str(e), start_time)
                raise StreamingError(STREAMING_ERROR_TYPES["connect_error"], "connect_error", chunks_received) from e
            except httpx.TransportError as e:
                _log_streaming_error("read_error", chunks_received, str(e), start_time)
                raise StreamingError(STREAMING_ERROR_TYPES["read_error"], "read_error", chunks_received) from e
            except httpx.DecodingError as e:
                _log_streaming_error("decode_error", chunks_received, str(e), start_time)
                raise StreamingError(STREAMING_ERROR_TYPES["decode_error"], "decode_error", chunks_received) from e

    async def send_chat(
        self,
        messages: List[ChatMessage],
        model: str,
        connection: ConnectionConfig,
        on_update: Optional[UpdateCallback] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> str:
        """
        Relaie un chat en streaming.

        Args:
            messages: Historique à envoyer
            model: Identifiant du modèle
            connection: URL de base + clé API
            on_update: Callback (sync ou async) appelé avec le texte cumulé
            cancel_event: Jeton d'annulation

        Returns:
            Texte final accumulé
        """
        final_text = ""
        async for text in self.stream_chat(messages, model, connection, cancel_event):
            final_text = text
            if on_update is not None:
                result = on_update(text)
                if inspect.isawaitable(result):
                    await result
        return final_text
