# rxpdf/config.py

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv


# =========================
# ENVIRONMENT
# =========================

load_dotenv()

FONT_REGULAR_URL = os.getenv(
    "RX_FONT_REGULAR_URL",
    "https://raw.githubusercontent.com/google/fonts/main/ofl/tajawal/Tajawal-Regular.ttf",
)
FONT_REGULAR_FALLBACK_URL = os.getenv(
    "RX_FONT_REGULAR_FALLBACK_URL",
    "https://cdn.jsdelivr.net/gh/google/fonts@main/ofl/tajawal/Tajawal-Regular.ttf",
)
FONT_BOLD_URL = os.getenv(
    "RX_FONT_BOLD_URL",
    "https://raw.githubusercontent.com/google/fonts/main/ofl/tajawal/Tajawal-Bold.ttf",
)
FONT_BOLD_FALLBACK_URL = os.getenv(
    "RX_FONT_BOLD_FALLBACK_URL",
    "https://cdn.jsdelivr.net/gh/google/fonts@main/ofl/tajawal/Tajawal-Bold.ttf",
)

FONT_FETCH_TIMEOUT = int(os.getenv("RX_FONT_FETCH_TIMEOUT", "30"))
FONT_CACHE_BUCKET = os.getenv("RX_FONT_CACHE_BUCKET", "fonts")

LOG_LEVEL = os.getenv("RX_LOG_LEVEL", "INFO")


@dataclass(frozen=True)
class FontSource:
    key: str
    url: str
    fallback_url: str


@dataclass(frozen=True)
class FontSources:
    regular: FontSource
    bold: FontSource


def default_font_sources() -> FontSources:
    return FontSources(
        regular=FontSource("tajawal-regular-font", FONT_REGULAR_URL, FONT_REGULAR_FALLBACK_URL),
        bold=FontSource("tajawal-bold-font", FONT_BOLD_URL, FONT_BOLD_FALLBACK_URL),
    )


def local_font_cache_dir() -> str:
    # Read at call time so tests can point it at tmp_path.
    return os.getenv("LOCAL_FONT_CACHE_DIR", "storage/fonts")


# =========================
# LOGGING
# =========================

def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s [RX] %(levelname)s: %(message)s",
    )
