"""
Route API de génération d'images.
"""
from fastapi import APIRouter, Depends, Request

from ...core.models import ConnectionConfig
from ...features.images import ImageGenerator
from ..dependencies import get_image_generator
from ..responses import error_response, read_json_object

router = APIRouter()


@router.post("/images/generations")
async def generate_images(request: Request, generator: ImageGenerator = Depends(get_image_generator)):
    """
    Body: { prompt, model, baseUrl, apiKey, options: {size, seed, ...} }
    Retour: { images: ["/data/<hash>.png", "/api/media?url=..."] }
    """
    try:
        body = await read_json_object(request)
        images = await generator.generate(
            body.get("prompt"),
            body.get("model"),
            ConnectionConfig.from_dict(body),
            options=body.get("options") or {},
        )
    except Exception as e:
        return error_response(e, "IMAGES")
    return {"images": images}
