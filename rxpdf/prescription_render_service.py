# rxpdf/prescription_render_service.py

import logging
from dataclasses import dataclass

from rxpdf.document_assembler import assemble
from rxpdf.font_cache_service import FontCache, load_font_pair
from rxpdf.layout_service import layout
from rxpdf.models import (
    BackgroundResource,
    Language,
    Prescription,
    RxTemplateSettings,
    prescription_from_dict,
    settings_from_dict,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedPrescription:
    pdf_bytes: bytes
    truncated: bool
    medications_rendered: int


def render_prescription_pdf(
    *,
    prescription: Prescription,
    settings: RxTemplateSettings,
    language: Language | str,
    background: BackgroundResource | None = None,
    font_cache: FontCache | None = None,
) -> RenderedPrescription:
    """
    Renders one prescription page. Font and background problems degrade the
    output instead of failing; only PDF serialization errors propagate.
    """
    language = Language.parse(language)

    # ---- Fonts (the only step that may touch the network) ----
    fonts = load_font_pair(font_cache)

    # ---- Layout ----
    result = layout(
        prescription,
        settings,
        settings.paper_size,
        language.direction,
        language=language,
        fonts=fonts,
    )

    if result.truncated:
        logger.warning(
            "Prescription %s: only %d of %d medications fit on the page",
            prescription.id,
            result.medications_rendered,
            len(prescription.medications),
        )

    # ---- Assemble ----
    pdf_bytes = assemble(result.commands, settings.paper_size, background, fonts)

    return RenderedPrescription(
        pdf_bytes=pdf_bytes,
        truncated=result.truncated,
        medications_rendered=result.medications_rendered,
    )


def render_prescription_from_payload(
    *,
    prescription: dict | str,
    settings: dict | str | None,
    language: str | None,
    background_data_url: str | None = None,
    font_cache: FontCache | None = None,
) -> RenderedPrescription:
    """Same as render_prescription_pdf, for records as the data layer stores them."""
    return render_prescription_pdf(
        prescription=prescription_from_dict(prescription),
        settings=settings_from_dict(settings),
        language=Language.parse(language),
        background=BackgroundResource.from_data_url(background_data_url),
        font_cache=font_cache,
    )
