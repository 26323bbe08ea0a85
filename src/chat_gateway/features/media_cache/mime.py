"""
Résolution extension <-> Content-Type pour le cache média.
"""
import os
import re
from typing import Optional
from urllib.parse import urlparse

from ...core.constants import (
    CONTENT_TYPE_EXTENSIONS,
    EXTENSION_CONTENT_TYPES,
    DEFAULT_CONTENT_TYPE,
)

# /image.webp/0 -> /image.webp
_TRAILING_DIGITS_SEGMENT = re.compile(r"/+\d+$")


def extension_from_content_type(content_type: Optional[str]) -> str:
    """Extension pour un Content-Type connu (paramètres ignorés), "" sinon."""
    if not content_type:
        return ""
    mime = content_type.split(";")[0].strip().lower()
    return CONTENT_TYPE_EXTENSIONS.get(mime, "")


def extension_from_url(url: str) -> str:
    """Extension du chemin de l'URL, après retrait d'un segment final `/<chiffres>`."""
    path = urlparse(url).path
    clean_path = _TRAILING_DIGITS_SEGMENT.sub("", path)
    return os.path.splitext(clean_path)[1]


def resolve_extension(content_type: Optional[str], url: str) -> str:
    """Content-Type d'abord, puis heuristique sur l'URL. Peut retourner ""."""
    return extension_from_content_type(content_type) or extension_from_url(url)


def content_type_for_filename(filename: str) -> str:
    ext = os.path.splitext(filename)[1].lower()
    return EXTENSION_CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)
