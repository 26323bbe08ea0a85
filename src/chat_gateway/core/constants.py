"""
Constantes globales pour Chat Gateway.
"""

# ============================================================================
# CONFIGURATION PAR DÉFAUT
# ============================================================================
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000
DEFAULT_DATA_DIR = "data"
CONFIG_ENV_VAR = "CHAT_GATEWAY_CONFIG"

# ============================================================================
# TIMEOUTS UPSTREAM (secondes)
# ============================================================================
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_READ_TIMEOUT = 120.0
DEFAULT_STREAM_READ_TIMEOUT = 300.0

# ============================================================================
# API OPENAI-COMPATIBLE
# ============================================================================
API_VERSION_SEGMENT = "/v1"
STREAM_DATA_PREFIX = "data: "
STREAM_DONE_SENTINEL = "data: [DONE]"
EVENT_STREAM_CONTENT_TYPE = "text/event-stream"
DEFAULT_IMAGE_DATA_URI_PREFIX = "data:image/jpeg;base64,"

# ============================================================================
# CACHE MÉDIA
# ============================================================================
IMMUTABLE_CACHE_CONTROL = "public, max-age=31536000, immutable"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
GENERATED_IMAGE_DEFAULT_EXTENSION = ".png"
DATA_URL_PREFIX = "/data/"
MEDIA_ENDPOINT = "/api/media"

# Content-Type -> extension (écriture dans le cache)
CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "video/quicktime": ".mov",
}

# Extension -> Content-Type (lecture depuis le cache)
EXTENSION_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mov": "video/quicktime",
}

# ============================================================================
# RECHERCHE WEB
# ============================================================================
MAX_SEARCH_RESULTS = 5
NO_RESULTS_TEXT = "No results"

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/133.0.0.0 Safari/537.36"
)
