"""
Appels HTTP vers l'API modèle et relais streaming.
"""

from .client import create_proxy_client, ProxyClient, UpstreamStream
from .messages import (
    normalize_base_url,
    build_endpoint,
    serialize_message,
    build_chat_payload,
    to_data_uri,
)
from .stream import (
    ChatRelay,
    SSELineBuffer,
    StreamAccumulator,
    parse_stream_line,
    iter_cumulative_text,
    STREAMING_ERROR_TYPES,
)
from .models import list_models

__all__ = [
    "create_proxy_client",
    "ProxyClient",
    "UpstreamStream",
    "normalize_base_url",
    "build_endpoint",
    "serialize_message",
    "build_chat_payload",
    "to_data_uri",
    "ChatRelay",
    "SSELineBuffer",
    "StreamAccumulator",
    "parse_stream_line",
    "iter_cumulative_text",
    "STREAMING_ERROR_TYPES",
    "list_models",
]
