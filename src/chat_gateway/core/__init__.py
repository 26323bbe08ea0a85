"""
Noyau: constantes, exceptions et modèles de données.
"""

from .exceptions import (
    GatewayError,
    ConfigurationError,
    InvalidRequestError,
    UpstreamError,
    SearchProviderError,
    StreamingError,
    MediaNotFoundError,
)
from .models import (
    UpstreamRequestDescriptor,
    ChatMessage,
    ConnectionConfig,
    SearchResult,
    CachedMedia,
    SavedImage,
)

__all__ = [
    "GatewayError",
    "ConfigurationError",
    "InvalidRequestError",
    "UpstreamError",
    "SearchProviderError",
    "StreamingError",
    "MediaNotFoundError",
    "UpstreamRequestDescriptor",
    "ChatMessage",
    "ConnectionConfig",
    "SearchResult",
    "CachedMedia",
    "SavedImage",
]
