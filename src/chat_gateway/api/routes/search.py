"""
Route API de recherche web.
"""
from fastapi import APIRouter, Depends, Request

from ...features.search import SearchAggregator
from ..dependencies import get_search_aggregator
from ..responses import error_response, read_json_object

router = APIRouter()


@router.post("/search")
async def search(request: Request, aggregator: SearchAggregator = Depends(get_search_aggregator)):
    """
    Recherche via le provider demandé.

    Body: { query, provider, apiKey, extraConfig }
    Retour: { results: "<bloc texte numéroté>", data: [{title, url, content}] }
    """
    try:
        body = await read_json_object(request)
        response = await aggregator.search(
            body.get("query"),
            body.get("provider"),
            api_key=body.get("apiKey"),
            extra_config=body.get("extraConfig") or {},
        )
    except Exception as e:
        return error_response(e, "SEARCH")
    return response.to_dict()
