"""
Cache média: téléchargement, images générées et fichiers statiques.
"""

from .cache import MediaCache, hash_key
from .mime import (
    extension_from_content_type,
    extension_from_url,
    resolve_extension,
    content_type_for_filename,
)

__all__ = [
    "MediaCache",
    "hash_key",
    "extension_from_content_type",
    "extension_from_url",
    "resolve_extension",
    "content_type_for_filename",
]
