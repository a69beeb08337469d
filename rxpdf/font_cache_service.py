# rxpdf/font_cache_service.py

import hashlib
import io
import logging
import threading
from concurrent.futures import Future
from functools import lru_cache
from pathlib import Path

import requests
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from rxpdf.config import (
    FONT_CACHE_BUCKET,
    FONT_FETCH_TIMEOUT,
    FontSource,
    FontSources,
    default_font_sources,
    local_font_cache_dir,
)
from rxpdf.models import DEFAULT_FONT_PAIR, FontPair
from rxpdf.supabase_client import get_supabase_client


logger = logging.getLogger(__name__)


class FontFetchError(RuntimeError):
    pass


# =========================
# PERSISTENT STORES
# =========================

class LocalFontStore:
    backend = "local"

    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir)

    def _path(self, key: str) -> Path:
        return self.base_dir / f"{key}.ttf"

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_bytes()

    def put(self, key: str, data: bytes) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)


class SupabaseFontStore:
    backend = "supabase"

    def __init__(self, client, bucket: str = FONT_CACHE_BUCKET):
        self.client = client
        self.bucket = bucket

    def get(self, key: str) -> bytes | None:
        data = self.client.storage.from_(self.bucket).download(f"{key}.ttf")
        if isinstance(data, (bytes, bytearray)) and data:
            return bytes(data)
        return None

    def put(self, key: str, data: bytes) -> None:
        self.client.storage.from_(self.bucket).upload(
            f"{key}.ttf",
            data,
            file_options={
                "content-type": "font/ttf",
                # Storage headers must be strings.
                "upsert": "true",
            },
        )


# =========================
# NETWORK
# =========================

def fetch_font_bytes(source: FontSource, timeout: float = FONT_FETCH_TIMEOUT) -> bytes:
    """Primary URL first, then the fallback. Raises FontFetchError if both fail."""
    for url in (source.url, source.fallback_url):
        if not url:
            continue
        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Font fetch from %s failed: %s", url, e)
            continue

        if response.content:
            logger.info("Font %s fetched from %s", source.key, url)
            return response.content
        logger.warning("Font fetch from %s returned an empty body", url)

    raise FontFetchError(f"Failed to load font {source.key}")


# =========================
# CACHE
# =========================

class FontCache:
    """
    Memory, then persistent store, then network. At most one fetch per key
    is in flight; concurrent callers wait on the same future.
    """

    def __init__(self, sources: FontSources, store=None, timeout: float = FONT_FETCH_TIMEOUT):
        self.sources = sources
        self.store = store
        self.timeout = timeout
        self._memory: dict[str, bytes] = {}
        self._in_flight: dict[str, Future] = {}
        self._lock = threading.Lock()
        self._store_lock = threading.Lock()

    def get(self, source: FontSource) -> bytes:
        with self._lock:
            cached = self._memory.get(source.key)
            if cached is not None:
                return cached

            future = self._in_flight.get(source.key)
            owner = future is None
            if owner:
                future = Future()
                self._in_flight[source.key] = future

        if not owner:
            return future.result()

        try:
            data = self._resolve(source)
        except Exception as e:
            with self._lock:
                self._in_flight.pop(source.key, None)
            future.set_exception(e)
            raise

        with self._lock:
            self._memory[source.key] = data
            self._in_flight.pop(source.key, None)
        future.set_result(data)
        return data

    def load_fonts(self) -> tuple[bytes, bytes]:
        return self.get(self.sources.regular), self.get(self.sources.bold)

    def _resolve(self, source: FontSource) -> bytes:
        stored = self._read_store(source.key)
        if stored:
            logger.info("Font %s loaded from %s store", source.key, self.store.backend)
            return stored

        data = fetch_font_bytes(source, self.timeout)
        self._write_store(source.key, data)
        return data

    def _read_store(self, key: str) -> bytes | None:
        if self.store is None:
            return None
        try:
            return self.store.get(key)
        except Exception as e:
            logger.warning("Font store read failed for %s: %s", key, e)
            return None

    def _write_store(self, key: str, data: bytes) -> None:
        if self.store is None:
            return
        with self._store_lock:
            try:
                self.store.put(key, data)
            except Exception as e:
                logger.warning("Failed to cache font %s: %s", key, e)


@lru_cache(maxsize=1)
def get_font_cache() -> FontCache:
    client = get_supabase_client()
    if client is not None:
        store = SupabaseFontStore(client)
    else:
        store = LocalFontStore(local_font_cache_dir())
        logger.warning("Supabase client not configured. Caching fonts locally at %s", store.base_dir)

    return FontCache(default_font_sources(), store=store)


# =========================
# REPORTLAB REGISTRATION
# =========================

_registry_lock = threading.Lock()


def _register_ttf(data: bytes, family: str) -> str:
    name = f"{family}-{hashlib.sha1(data).hexdigest()[:12]}"
    with _registry_lock:
        if name not in pdfmetrics.getRegisteredFontNames():
            pdfmetrics.registerFont(TTFont(name, io.BytesIO(data)))
    return name


def register_font_pair(regular_bytes: bytes, bold_bytes: bytes, family: str = "Tajawal") -> FontPair:
    return FontPair(
        regular=_register_ttf(regular_bytes, family),
        bold=_register_ttf(bold_bytes, f"{family}Bold"),
    )


def load_font_pair(cache: FontCache | None = None) -> FontPair:
    """
    Resolves and registers the regular/bold pair. Any failure degrades to
    the built-in Helvetica pair so the render can go on.
    """
    try:
        regular_bytes, bold_bytes = (cache or get_font_cache()).load_fonts()
        return register_font_pair(regular_bytes, bold_bytes)
    except Exception as e:
        logger.error("Failed to load Arabic fonts, using fallback: %s", e)
        return DEFAULT_FONT_PAIR
