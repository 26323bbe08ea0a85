"""
Routes API par domaine.
"""

from . import media
from . import proxy
from . import search
from . import chat
from . import images
from . import models
from . import health

__all__ = [
    "media",
    "proxy",
    "search",
    "chat",
    "images",
    "models",
    "health",
]
