"""
Chat Gateway - Application FastAPI Factory.
Relais streaming + cache média + recherche web pour le client de chat.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.router import api_router
from .config.loader import load_config
from .config.settings import Settings
from .features.images import ImageGenerator
from .features.media_cache import MediaCache
from .features.search import SearchAggregator
from .proxy.client import create_proxy_client
from .proxy.stream import ChatRelay

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> FastAPI:
    """
    Factory pour créer l'application FastAPI.

    Args:
        settings: Configuration (chargée depuis config.toml si absente)
        transport: Transport HTTPX des appels upstream (tests)

    Returns:
        Instance configurée de FastAPI
    """
    if settings is None:
        settings = Settings.from_config(load_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Gestion du cycle de vie de l'application."""
        logger.info(f"🚀 Chat Gateway {__version__} - cache: {app.state.media_cache.root}")
        yield
        logger.info("👋 Arrêt du serveur")

    app = FastAPI(
        title="Chat Gateway",
        description="Passerelle HTTP: relais streaming, cache média, recherche web",
        version=__version__,
        lifespan=lifespan
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Services partagés, construits une fois et passés aux handlers
    proxy_client = create_proxy_client(timeouts=settings.timeouts, transport=transport)
    media_cache = MediaCache(settings.cache.data_dir, proxy_client)

    app.state.settings = settings
    app.state.proxy_client = proxy_client
    app.state.media_cache = media_cache
    app.state.chat_relay = ChatRelay(proxy_client)
    app.state.search_aggregator = SearchAggregator(proxy_client, settings.search)
    app.state.image_generator = ImageGenerator(proxy_client, media_cache)

    # Inclusion des routes API
    app.include_router(api_router)

    return app
