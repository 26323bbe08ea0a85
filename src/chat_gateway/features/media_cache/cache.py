"""
Cache média adressé par contenu.

Fonctionnement:
- Clé = md5 de l'URL source (ou du payload base64 pour les images générées)
- Fichier `{clé}{extension}` dans un répertoire plat, jamais réécrit ni supprimé
- Index mémoire clé -> fichier (un seul scan au démarrage), puis sonde directe
  sur les extensions connues pour les fichiers écrits par un autre processus
- Single-flight: les misses concurrents d'une même clé partagent un seul
  téléchargement et une seule écriture
"""
import asyncio
import base64
import binascii
import hashlib
import logging
import os
import re
import uuid
from pathlib import Path
from typing import Dict, Any, Optional, Union

import aiofiles
import aiofiles.os

from ...core.constants import (
    DATA_URL_PREFIX,
    DEFAULT_CONTENT_TYPE,
    EXTENSION_CONTENT_TYPES,
    GENERATED_IMAGE_DEFAULT_EXTENSION,
)
from ...core.exceptions import (
    GatewayError,
    InvalidRequestError,
    MediaNotFoundError,
    UpstreamError,
)
from ...core.models import CachedMedia, SavedImage
from ...proxy.client import ProxyClient
from .mime import content_type_for_filename, resolve_extension

logger = logging.getLogger(__name__)

_HASH_PREFIX = re.compile(r"^([0-9a-f]{32})")
_IMAGE_DATA_URI = re.compile(r"^data:image/(\w+);base64,(.+)$", re.DOTALL)

# "" en premier: entrée enregistrée sans extension
PROBE_EXTENSIONS = ("",) + tuple(EXTENSION_CONTENT_TYPES)


def hash_key(value: str) -> str:
    """Clé de cache stable: md5 hexadécimal de la chaîne."""
    return hashlib.md5(value.encode("utf-8")).hexdigest()


class MediaCache:
    """
    Service de cache média, construit avec un répertoire racine injecté.

    Si le répertoire ne peut pas être créé, le cache fonctionne en mode
    "toujours miss": les téléchargements sont servis mais rien n'est écrit.
    """

    def __init__(self, root: Union[str, Path], client: ProxyClient):
        self.root = Path(root)
        self.client = client
        self._index: Dict[str, str] = {}
        self._inflight: Dict[str, asyncio.Task] = {}
        self.available = self._prepare_directory()
        if self.available:
            self._load_index()

    # ------------------------------------------------------------------
    # Répertoire et index
    # ------------------------------------------------------------------

    def _prepare_directory(self) -> bool:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            return True
        except OSError as e:
            logger.error(f"❌ [MEDIA] Impossible de créer le répertoire de cache {self.root}: {e}")
            return False

    def _load_index(self):
        with os.scandir(self.root) as entries:
            for entry in entries:
                if entry.name.startswith(".") or not entry.is_file():
                    continue
                match = _HASH_PREFIX.match(entry.name)
                if match:
                    self._index.setdefault(match.group(1), entry.name)
        logger.info(f"[MEDIA] {len(self._index)} entrée(s) en cache dans {self.root}")

    async def lookup(self, key: str) -> Optional[str]:
        """
        Retourne le nom du fichier d'une clé, ou None.

        Index d'abord, puis sonde directe sur les extensions connues.
        """
        filename = self._index.get(key)
        if filename is not None:
            if await aiofiles.os.path.isfile(self.root / filename):
                return filename
            self._index.pop(key, None)

        for ext in PROBE_EXTENSIONS:
            candidate = f"{key}{ext}"
            if await aiofiles.os.path.isfile(self.root / candidate):
                self._index[key] = candidate
                return candidate
        return None

    def stats(self) -> Dict[str, Any]:
        return {
            "cache_dir": str(self.root),
            "cache_available": self.available,
            "cached_files": len(self._index),
        }

    # ------------------------------------------------------------------
    # Lecture / écriture
    # ------------------------------------------------------------------

    async def _read_bytes(self, filename: str) -> bytes:
        async with aiofiles.open(self.root / filename, "rb") as f:
            return await f.read()

    async def _read_entry(self, key: str) -> Optional[CachedMedia]:
        filename = await self.lookup(key)
        if filename is None:
            return None
        try:
            content = await self._read_bytes(filename)
        except FileNotFoundError:
            self._index.pop(key, None)
            return None
        logger.debug(f"[MEDIA] Hit {filename}")
        return CachedMedia(
            content=content,
            content_type=content_type_for_filename(filename),
            filename=filename,
            from_cache=True,
        )

    async def _write_atomic(self, filename: str, content: bytes):
        """Écrit via un fichier temporaire caché puis renomme (jamais de fichier partiel visible)."""
        tmp_path = self.root / f".{filename}.{uuid.uuid4().hex}.tmp"
        try:
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(content)
            await aiofiles.os.replace(tmp_path, self.root / filename)
        except BaseException:
            if await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.remove(tmp_path)
            raise

    async def _store(self, key: str, filename: str, content: bytes) -> bool:
        if not self.available:
            return False
        try:
            await self._write_atomic(filename, content)
        except OSError as e:
            logger.error(f"❌ [MEDIA] Écriture impossible pour {filename}: {e}")
            return False
        self._index[key] = filename
        return True

    # ------------------------------------------------------------------
    # Média distant
    # ------------------------------------------------------------------

    async def fetch(self, url: str) -> CachedMedia:
        """
        Retourne les octets d'un média distant, depuis le cache si possible.

        Raises:
            InvalidRequestError: URL absente
            UpstreamError: Réponse non-2xx de l'origine
        """
        if not url:
            raise InvalidRequestError("Missing url parameter", field="url")

        key = hash_key(url)
        cached = await self._read_entry(key)
        if cached is not None:
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._download(url, key))
            self._inflight[key] = task
            task.add_done_callback(lambda t: self._forget(key, t))
        else:
            logger.debug(f"[MEDIA] Téléchargement déjà en cours pour {key}, attente")

        # shield: l'annulation d'un appelant ne coupe pas le téléchargement partagé
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task):
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # Marque l'exception comme récupérée si plus personne n'attend
            task.exception()

    async def _download(self, url: str, key: str) -> CachedMedia:
        logger.info(f"[MEDIA] Téléchargement: {url}")
        response = await self.client.request("GET", url)

        if not response.is_success:
            logger.error(f"❌ [MEDIA] Échec {url}: {response.status_code}")
            raise UpstreamError(
                message=f"Failed to fetch media: {response.status_code}",
                status=response.status_code,
                body=response.text,
            )

        header_type = response.headers.get("content-type")
        filename = f"{key}{resolve_extension(header_type, url)}"
        content = response.content

        if await self._store(key, filename, content):
            logger.info(f"[MEDIA] Enregistré {filename} ({len(content)} octets)")

        return CachedMedia(
            content=content,
            content_type=header_type or DEFAULT_CONTENT_TYPE,
            filename=filename,
            from_cache=False,
        )

    # ------------------------------------------------------------------
    # Images générées
    # ------------------------------------------------------------------

    async def save_generated(self, image: Any) -> SavedImage:
        """
        Persiste une image base64 (brute ou data URI) et retourne son chemin relatif.

        La clé est le md5 du payload base64 lui-même. Un payload déjà
        enregistré est retourné avec son fichier existant, même si le
        sous-type annoncé diffère.

        Raises:
            InvalidRequestError: Image absente, data URI ou base64 invalide
        """
        if not image or not isinstance(image, str):
            raise InvalidRequestError("Missing or invalid image data", field="image")

        payload = image
        ext = GENERATED_IMAGE_DEFAULT_EXTENSION
        if image.startswith("data:"):
            match = _IMAGE_DATA_URI.match(image)
            if not match:
                raise InvalidRequestError("Invalid data URI format", field="image")
            image_format, payload = match.group(1), match.group(2)
            ext = ".jpg" if image_format == "jpeg" else f".{image_format}"

        key = hash_key(payload)

        # Un seul fichier par clé, quel que soit le sous-type annoncé
        existing = await self.lookup(key)
        if existing is not None:
            logger.info(f"[MEDIA] Image déjà présente: {existing}")
            return SavedImage(url=f"{DATA_URL_PREFIX}{existing}", filename=existing)

        filename = f"{key}{ext}"
        saved = SavedImage(url=f"{DATA_URL_PREFIX}{filename}", filename=filename)

        try:
            content = base64.b64decode(payload)
        except (binascii.Error, ValueError):
            raise InvalidRequestError("Invalid base64 image data", field="image")

        if not await self._store(key, filename, content):
            raise GatewayError(
                message="Cache directory unavailable",
                code="cache_unavailable",
                details={"cache_dir": str(self.root)}
            )

        logger.info(f"[MEDIA] Image générée enregistrée: {filename} ({len(content)} octets)")
        return saved

    # ------------------------------------------------------------------
    # Fichiers statiques
    # ------------------------------------------------------------------

    async def read_file(self, filename: str) -> CachedMedia:
        """
        Lit un fichier du cache par son nom (basename uniquement).

        Raises:
            MediaNotFoundError: Fichier absent
        """
        safe_name = os.path.basename(filename or "")
        if not safe_name or safe_name.startswith("."):
            raise MediaNotFoundError(filename)

        if not await aiofiles.os.path.isfile(self.root / safe_name):
            raise MediaNotFoundError(safe_name)

        content = await self._read_bytes(safe_name)
        return CachedMedia(
            content=content,
            content_type=content_type_for_filename(safe_name),
            filename=safe_name,
            from_cache=True,
        )
