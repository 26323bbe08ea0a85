"""Routes API modèles: liste `/v1/models` de l'API configurée par le client."""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...core.models import ConnectionConfig
from ...proxy.client import ProxyClient
from ...proxy.models import list_models
from ..dependencies import get_proxy_client
from ..responses import error_response

router = APIRouter()


def _bearer_key(request: Request) -> str:
    authorization = request.headers.get("authorization", "")
    if authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return authorization.strip()


@router.get("/models")
async def get_models(
    request: Request,
    baseUrl: Optional[str] = None,
    client: ProxyClient = Depends(get_proxy_client)
):
    """Retourne `{data: [...]}` tel que fourni par l'upstream."""
    if not baseUrl:
        return JSONResponse(content={"error": "Missing baseUrl parameter"}, status_code=400)

    connection = ConnectionConfig(base_url=baseUrl, api_key=_bearer_key(request))
    try:
        models = await list_models(client, connection)
    except Exception as e:
        return error_response(e, "MODELS")
    return {"data": models}
