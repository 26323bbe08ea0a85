"""
Recherche web: six providers, une forme de résultat normalisée.
"""

from .base import SearchProvider, SearchProviderType, SearchConfig
from .aggregator import SearchAggregator, SearchResponse, format_results, PROVIDER_CLASSES
from .augment import augment_messages, latest_user_query

__all__ = [
    "SearchProvider",
    "SearchProviderType",
    "SearchConfig",
    "SearchAggregator",
    "SearchResponse",
    "format_results",
    "PROVIDER_CLASSES",
    "augment_messages",
    "latest_user_query",
]
