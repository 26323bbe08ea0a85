"""
Accès aux services partagés, construits au démarrage et stockés dans `app.state`.
"""
from fastapi import Request

from ..features.images import ImageGenerator
from ..features.media_cache import MediaCache
from ..features.search import SearchAggregator
from ..proxy.client import ProxyClient
from ..proxy.stream import ChatRelay


def get_proxy_client(request: Request) -> ProxyClient:
    return request.app.state.proxy_client


def get_media_cache(request: Request) -> MediaCache:
    return request.app.state.media_cache


def get_chat_relay(request: Request) -> ChatRelay:
    return request.app.state.chat_relay


def get_search_aggregator(request: Request) -> SearchAggregator:
    return request.app.state.search_aggregator


def get_image_generator(request: Request) -> ImageGenerator:
    return request.app.state.image_generator
