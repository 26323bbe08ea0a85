"""
Routes API du cache média: proxy média, images générées, fichiers statiques.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from ...core.constants import IMMUTABLE_CACHE_CONTROL
from ...core.models import CachedMedia
from ...features.media_cache import MediaCache
from ..dependencies import get_media_cache
from ..responses import error_response, read_json_object

# Monté sous /api
router = APIRouter()

# Monté à la racine (/data/{filename})
data_router = APIRouter()


def _media_response(media: CachedMedia) -> Response:
    return Response(
        content=media.content,
        media_type=media.content_type,
        headers={
            "Cache-Control": IMMUTABLE_CACHE_CONTROL,
            "X-Cache": "HIT" if media.from_cache else "MISS",
        },
    )


@router.get("/media")
async def get_media(url: Optional[str] = None, cache: MediaCache = Depends(get_media_cache)):
    """Sert un média distant depuis le cache, en le téléchargeant au premier appel."""
    if not url:
        return JSONResponse(content={"error": "Missing url parameter"}, status_code=400)

    try:
        media = await cache.fetch(url)
    except Exception as e:
        return error_response(e, "MEDIA")
    return _media_response(media)


@router.post("/save-image")
async def save_image(request: Request, cache: MediaCache = Depends(get_media_cache)):
    """
    Enregistre une image base64 et retourne son URL locale.

    Body: { image: "data:image/png;base64,..." } ou { image: "<base64>" }
    Retour: { url: "/data/<hash>.png", filename: "<hash>.png" }
    """
    try:
        body = await read_json_object(request)
        saved = await cache.save_generated(body.get("image"))
    except Exception as e:
        return error_response(e, "SAVE_IMAGE")
    return saved.to_dict()


@data_router.get("/data/{filename}")
async def get_data_file(filename: str, cache: MediaCache = Depends(get_media_cache)):
    """Sert un fichier du cache par son nom (sans traversée de répertoire)."""
    try:
        media = await cache.read_file(filename)
    except Exception as e:
        return error_response(e, "DATA")
    return _media_response(media)
