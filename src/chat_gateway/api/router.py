"""
Router principal de l'API.
"""
from fastapi import APIRouter

from .routes import (
    media,
    proxy,
    search,
    chat,
    images,
    models,
    health,
)

# Router principal
api_router = APIRouter()

# Inclusion des sous-routers
api_router.include_router(media.router, prefix="/api", tags=["media"])
api_router.include_router(proxy.router, prefix="/api", tags=["proxy"])
api_router.include_router(search.router, prefix="/api", tags=["search"])
api_router.include_router(chat.router, prefix="/api", tags=["chat"])
api_router.include_router(images.router, prefix="/api", tags=["images"])
api_router.include_router(models.router, prefix="/api", tags=["models"])

# Fichiers du cache servis à la racine (/data/{filename})
api_router.include_router(media.data_router, prefix="", tags=["data"])
api_router.include_router(health.router, prefix="", tags=["health"])
