import sys
import threading
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import reportlab
import requests
from reportlab.pdfbase import pdfmetrics

from rxpdf import font_cache_service
from rxpdf.config import FontSource, FontSources
from rxpdf.font_cache_service import (
    FontCache,
    FontFetchError,
    LocalFontStore,
    SupabaseFontStore,
    load_font_pair,
    register_font_pair,
)
from rxpdf.models import DEFAULT_FONT_PAIR


REPORTLAB_FONTS = Path(reportlab.__file__).resolve().parent / "fonts"

SOURCES = FontSources(
    regular=FontSource("regular-font", "https://primary.test/regular.ttf", "https://fallback.test/regular.ttf"),
    bold=FontSource("bold-font", "https://primary.test/bold.ttf", "https://fallback.test/bold.ttf"),
)


class _FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class _FakeHttp:
    def __init__(self, responses: dict):
        self.responses = responses
        self.calls = []

    def get(self, url, timeout):
        self.calls.append(url)
        response = self.responses.get(url)
        if response is None:
            raise requests.ConnectionError(f"cannot reach {url}")
        return response


class _FakeStorageBucket:
    def __init__(self, files=None):
        self.files = dict(files or {})
        self.upload_calls = []

    def download(self, path):
        if path not in self.files:
            raise RuntimeError("Object not found")
        return self.files[path]

    def upload(self, path, file, file_options):
        self.upload_calls.append({"path": path, "file": file, "file_options": file_options})
        self.files[path] = file


class _FakeStorage:
    def __init__(self, bucket):
        self.bucket = bucket

    def from_(self, bucket_name):
        assert bucket_name == "fonts"
        return self.bucket


class _FakeSupabase:
    def __init__(self, files=None):
        self.storage = _FakeStorage(_FakeStorageBucket(files))


def _install_http(monkeypatch, responses: dict) -> _FakeHttp:
    http = _FakeHttp(responses)
    monkeypatch.setattr(font_cache_service.requests, "get", http.get)
    return http


def test_fonts_are_fetched_once_and_kept_in_memory(monkeypatch, tmp_path):
    http = _install_http(
        monkeypatch,
        {
            "https://primary.test/regular.ttf": _FakeResponse(b"regular"),
            "https://primary.test/bold.ttf": _FakeResponse(b"bold"),
        },
    )
    cache = FontCache(SOURCES, store=LocalFontStore(tmp_path))

    assert cache.load_fonts() == (b"regular", b"bold")
    assert cache.load_fonts() == (b"regular", b"bold")
    assert len(http.calls) == 2


def test_fetched_fonts_are_persisted(monkeypatch, tmp_path):
    _install_http(
        monkeypatch,
        {
            "https://primary.test/regular.ttf": _FakeResponse(b"regular"),
            "https://primary.test/bold.ttf": _FakeResponse(b"bold"),
        },
    )

    FontCache(SOURCES, store=LocalFontStore(tmp_path)).load_fonts()

    assert (tmp_path / "regular-font.ttf").read_bytes() == b"regular"
    assert (tmp_path / "bold-font.ttf").read_bytes() == b"bold"


def test_persistent_store_is_used_before_network(monkeypatch, tmp_path):
    http = _install_http(monkeypatch, {})
    (tmp_path / "regular-font.ttf").write_bytes(b"stored-regular")
    (tmp_path / "bold-font.ttf").write_bytes(b"stored-bold")

    cache = FontCache(SOURCES, store=LocalFontStore(tmp_path))

    assert cache.load_fonts() == (b"stored-regular", b"stored-bold")
    assert http.calls == []


def test_fallback_url_is_tried_when_primary_fails(monkeypatch):
    http = _install_http(
        monkeypatch,
        {
            "https://primary.test/regular.ttf": _FakeResponse(b"", status_code=404),
            "https://fallback.test/regular.ttf": _FakeResponse(b"fallback-regular"),
            "https://fallback.test/bold.ttf": _FakeResponse(b"fallback-bold"),
        },
    )

    cache = FontCache(SOURCES)

    assert cache.load_fonts() == (b"fallback-regular", b"fallback-bold")
    assert http.calls == [
        "https://primary.test/regular.ttf",
        "https://fallback.test/regular.ttf",
        "https://primary.test/bold.ttf",
        "https://fallback.test/bold.ttf",
    ]


def test_fetch_error_when_every_source_fails(monkeypatch):
    _install_http(monkeypatch, {})
    cache = FontCache(SOURCES)

    try:
        cache.load_fonts()
        assert False, "Expected FontFetchError"
    except FontFetchError as exc:
        assert str(exc) == "Failed to load font regular-font"


def test_failed_fetch_is_retried_on_next_call(monkeypatch):
    _install_http(monkeypatch, {})
    cache = FontCache(SOURCES)

    try:
        cache.get(SOURCES.regular)
    except FontFetchError:
        pass

    _install_http(monkeypatch, {"https://primary.test/regular.ttf": _FakeResponse(b"regular")})

    assert cache.get(SOURCES.regular) == b"regular"


def test_concurrent_callers_share_one_fetch(monkeypatch):
    release = threading.Event()
    calls = []

    def slow_get(url, timeout):
        calls.append(url)
        release.wait(timeout=5)
        return _FakeResponse(b"regular")

    monkeypatch.setattr(font_cache_service.requests, "get", slow_get)
    cache = FontCache(SOURCES)
    results = []

    def worker():
        results.append(cache.get(SOURCES.regular))

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for thread in threads:
        thread.start()

    time.sleep(0.2)
    release.set()
    for thread in threads:
        thread.join(timeout=5)

    assert calls == ["https://primary.test/regular.ttf"]
    assert results == [b"regular"] * 5


def test_supabase_store_round_trip():
    supabase = _FakeSupabase(files={"regular-font.ttf": b"stored"})
    store = SupabaseFontStore(supabase)

    assert store.get("regular-font") == b"stored"

    store.put("bold-font", b"bold")

    upload = supabase.storage.bucket.upload_calls[0]
    assert upload["path"] == "bold-font.ttf"
    assert upload["file_options"] == {"content-type": "font/ttf", "upsert": "true"}


def test_store_failures_are_not_fatal(monkeypatch):
    _install_http(
        monkeypatch,
        {
            "https://primary.test/regular.ttf": _FakeResponse(b"regular"),
            "https://primary.test/bold.ttf": _FakeResponse(b"bold"),
        },
    )

    # Missing objects raise from download.
    cache = FontCache(SOURCES, store=SupabaseFontStore(_FakeSupabase()))

    assert cache.load_fonts() == (b"regular", b"bold")


def test_register_font_pair_registers_truetype_fonts():
    regular = (REPORTLAB_FONTS / "Vera.ttf").read_bytes()
    bold = (REPORTLAB_FONTS / "VeraBd.ttf").read_bytes()

    fonts = register_font_pair(regular, bold)

    assert fonts.regular.startswith("Tajawal-")
    assert fonts.bold.startswith("TajawalBold-")
    assert fonts.regular in pdfmetrics.getRegisteredFontNames()
    assert register_font_pair(regular, bold) == fonts
    assert fonts.string_width("Rx/", True, 12) > 0


class _FailingCache:
    def load_fonts(self):
        raise FontFetchError("Failed to load font regular-font")


class _StaticCache:
    def __init__(self, regular: bytes, bold: bytes):
        self.fonts = (regular, bold)

    def load_fonts(self):
        return self.fonts


def test_load_font_pair_falls_back_to_default_face():
    assert load_font_pair(_FailingCache()) == DEFAULT_FONT_PAIR


def test_load_font_pair_falls_back_on_unreadable_font_bytes():
    assert load_font_pair(_StaticCache(b"<html>not a font</html>", b"nope")) == DEFAULT_FONT_PAIR
