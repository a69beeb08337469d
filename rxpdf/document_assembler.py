# rxpdf/document_assembler.py

import io
import logging
from typing import Iterable

from PIL import Image
from pypdf import PageObject, PdfReader, PdfWriter, Transformation
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from rxpdf.layout_service import DrawCommand, ImageCommand, LineCommand, TextCommand
from rxpdf.models import DEFAULT_FONT_PAIR, BackgroundResource, FontPair, PaperSize


logger = logging.getLogger(__name__)

RASTER_FORMATS = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
}
PDF_MIME_TYPES = ("application/pdf",)


def _raster_reader(resource: BackgroundResource) -> ImageReader | None:
    expected = RASTER_FORMATS[resource.mime_type]
    try:
        with Image.open(io.BytesIO(resource.data)) as probe:
            actual = probe.format
            probe.verify()
    except Exception as e:
        logger.warning("Background image could not be read: %s", e)
        return None

    if actual != expected:
        logger.warning("Background tagged %s but contains %s; skipping it", resource.mime_type, actual)
        return None

    return ImageReader(io.BytesIO(resource.data))


def _pdf_page(resource: BackgroundResource) -> PageObject | None:
    try:
        reader = PdfReader(io.BytesIO(resource.data))
        if not reader.pages:
            logger.warning("Background PDF has no pages; skipping it")
            return None
        return reader.pages[0]
    except Exception as e:
        logger.warning("Background PDF could not be read: %s", e)
        return None


def _draw_text(c: canvas.Canvas, command: TextCommand, fonts: FontPair) -> None:
    c.setFillColorRGB(command.color.r, command.color.g, command.color.b)
    c.setFont(fonts.font_for(command.bold), command.size)
    c.drawString(command.x, command.y, command.text)


def _draw_line(c: canvas.Canvas, command: LineCommand) -> None:
    c.setStrokeColorRGB(command.color.r, command.color.g, command.color.b)
    c.setLineWidth(command.thickness)
    if command.dashed:
        c.setDash([command.thickness * 2, command.thickness * 2])
    else:
        c.setDash([])
    c.line(command.x0, command.y, command.x1, command.y)


def _underlay(page: PageObject, command: ImageCommand) -> tuple[PageObject, Transformation]:
    source_width = float(page.mediabox.width)
    source_height = float(page.mediabox.height)
    if source_width <= 0 or source_height <= 0:
        raise ValueError("Background PDF page has an empty media box")

    # Normalize the source origin, stretch to the target box, then move into place.
    transformation = (
        Transformation()
        .translate(-float(page.mediabox.left), -float(page.mediabox.bottom))
        .scale(command.width / source_width, command.height / source_height)
        .translate(command.x, command.y)
    )
    return page, transformation


def assemble(
    commands: Iterable[DrawCommand],
    paper_size: PaperSize,
    background: BackgroundResource | None = None,
    fonts: FontPair = DEFAULT_FONT_PAIR,
) -> bytes:
    """
    Draws the commands on one page of the given size and returns PDF bytes.

    A background is placed first, stretched over the whole page. Raster
    backgrounds are drawn as images; a PDF background keeps its vectors and
    is merged underneath the drawn content. Unusable backgrounds are skipped.
    """
    width, height = paper_size.width, paper_size.height

    ordered: list[DrawCommand] = []
    if background is not None:
        ordered.append(ImageCommand(background, 0, 0, width, height))
    ordered.extend(commands)

    # ---- Create overlay PDF in memory ----
    packet = io.BytesIO()
    c = canvas.Canvas(packet, pagesize=(width, height), invariant=1)
    underlays = []

    for command in ordered:
        if isinstance(command, TextCommand):
            _draw_text(c, command, fonts)
        elif isinstance(command, LineCommand):
            _draw_line(c, command)
        elif isinstance(command, ImageCommand):
            mime_type = command.resource.mime_type
            if mime_type in RASTER_FORMATS:
                reader = _raster_reader(command.resource)
                if reader is not None:
                    c.drawImage(reader, command.x, command.y, width=command.width, height=command.height)
            elif mime_type in PDF_MIME_TYPES:
                page = _pdf_page(command.resource)
                if page is not None:
                    try:
                        underlays.append(_underlay(page, command))
                    except ValueError as e:
                        logger.warning("Background PDF skipped: %s", e)
            else:
                logger.warning("Unsupported background type %r; rendering without it", mime_type)

    c.showPage()
    c.save()

    if not underlays:
        return packet.getvalue()

    # ---- Merge overlay onto the embedded background page ----
    packet.seek(0)
    overlay_pdf = PdfReader(packet)

    writer = PdfWriter()
    page = writer.add_blank_page(width=width, height=height)
    for source, transformation in underlays:
        page.merge_transformed_page(source, transformation)
    page.merge_page(overlay_pdf.pages[0])

    output = io.BytesIO()
    writer.write(output)
    output.seek(0)

    return output.read()
