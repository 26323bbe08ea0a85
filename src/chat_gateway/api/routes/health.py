"""
Routes API pour le health check.
"""
from fastapi import APIRouter, Depends

from ...features.media_cache import MediaCache
from ..dependencies import get_media_cache

router = APIRouter()


@router.get("/health")
async def health_check(cache: MediaCache = Depends(get_media_cache)):
    """Health check avec l'état du cache média."""
    return {"status": "ok", **cache.stats()}
