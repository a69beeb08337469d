# rxpdf/layout_service.py

from dataclasses import dataclass
from datetime import datetime

from rxpdf.models import (
    ACCENT,
    DEFAULT_FONT_PAIR,
    RULE,
    SECONDARY,
    BackgroundResource,
    Direction,
    FontPair,
    Language,
    PaperSize,
    Prescription,
    RGBColor,
    RxTemplateSettings,
    TextStyleConfig,
)
from rxpdf.run_segmenter import to_visual


MARGIN = 25
LABEL_GAP = 5
FIELD_GAP = 20
INDEX_GAP = 10
NAME_GAP = 15
NOTES_INDENT = 30

HEADER_RULE_DROP = 15
RX_SYMBOL_DROP = 40
MEDICATION_LIST_DROP = 35
BOTTOM_RESERVE = 50

RX_MARKER = "Rx/"

HEADER_LABELS = {
    Language.AR: {"name": "الاسم:", "age": "العمر:", "date": "التاريخ:"},
    Language.KU: {"name": "ناو:", "age": "تەمەن:", "date": "بەروار:"},
    Language.EN: {"name": "Name:", "age": "Age:", "date": "Date:"},
}


# -------------------------
# DRAW COMMANDS
# -------------------------

@dataclass(frozen=True)
class TextCommand:
    text: str
    x: float
    y: float
    bold: bool
    size: float
    color: RGBColor


@dataclass(frozen=True)
class LineCommand:
    x0: float
    x1: float
    y: float
    thickness: float = 1
    color: RGBColor = RULE
    dashed: bool = False


@dataclass(frozen=True)
class ImageCommand:
    resource: BackgroundResource
    x: float
    y: float
    width: float
    height: float


DrawCommand = TextCommand | LineCommand | ImageCommand


@dataclass(frozen=True)
class LayoutResult:
    commands: tuple[DrawCommand, ...]
    truncated: bool
    medications_rendered: int


# -------------------------
# HELPERS
# -------------------------

def format_prescription_date(value: datetime) -> str:
    return value.strftime("%d/%m/%Y")


class _TextPlacer:
    """Measures and records text tokens for one style."""

    def __init__(self, commands: list, fonts: FontPair, *, bold: bool, size: float, color: RGBColor):
        self.commands = commands
        self.fonts = fonts
        self.bold = bold
        self.size = size
        self.color = color

    @classmethod
    def for_style(cls, commands: list, fonts: FontPair, style: TextStyleConfig) -> "_TextPlacer":
        return cls(commands, fonts, bold=style.is_bold, size=style.font_size, color=style.color)

    def width(self, visual_text: str) -> float:
        return self.fonts.string_width(visual_text, self.bold, self.size)

    def place(self, visual_text: str, x: float, y: float) -> None:
        self.commands.append(TextCommand(visual_text, x, y, self.bold, self.size, self.color))


def _visual_tokens(*tokens: tuple[str, float]) -> list[tuple[str, float]]:
    # Empty tokens take no room and no gap.
    return [(to_visual(text), gap) for text, gap in tokens if text and text.strip()]


def _layout_header(
    placer: _TextPlacer,
    prescription: Prescription,
    labels: dict,
    direction: Direction,
    page_width: float,
    y: float,
) -> None:
    age = str(prescription.patient_age) if prescription.patient_age else ""
    patient_tokens = _visual_tokens(
        (labels["name"], LABEL_GAP),
        (prescription.patient_name, FIELD_GAP),
        (labels["age"], LABEL_GAP),
        (age, 0),
    )
    date_label = to_visual(labels["date"])
    date_value = format_prescription_date(prescription.date)
    date_label_width = placer.width(date_label)
    date_value_width = placer.width(date_value)

    if direction is Direction.RTL:
        x = page_width - MARGIN
        for text, gap in patient_tokens:
            width = placer.width(text)
            placer.place(text, x - width, y)
            x -= width + gap

        # ---- Date block, anchored at the left margin ----
        placer.place(date_value, MARGIN, y)
        placer.place(date_label, MARGIN + date_value_width + LABEL_GAP, y)
        return

    x = MARGIN
    for text, gap in patient_tokens:
        placer.place(text, x, y)
        x += placer.width(text) + gap

    # ---- Date block, right-aligned ----
    date_x = page_width - MARGIN - date_value_width
    placer.place(date_label, date_x - LABEL_GAP - date_label_width, y)
    placer.place(date_value, date_x, y)


# -------------------------
# LAYOUT
# -------------------------

def layout(
    prescription: Prescription,
    settings: RxTemplateSettings,
    paper_size: PaperSize | None = None,
    direction: Direction = Direction.LTR,
    *,
    language: Language | None = None,
    fonts: FontPair = DEFAULT_FONT_PAIR,
) -> LayoutResult:
    """
    Computes the ordered draw commands for one prescription page.

    The vertical cursor starts at page_height - top_margin and only moves
    down. Medications that would start below margin + 50 are dropped and
    reported through LayoutResult.truncated.
    """
    paper_size = paper_size or settings.paper_size
    page_width = paper_size.width
    language = language or (Language.AR if direction is Direction.RTL else Language.EN)
    labels = HEADER_LABELS[language]

    commands: list[DrawCommand] = []
    y = paper_size.height - settings.top_margin

    # ---- Header row ----
    header = _TextPlacer.for_style(commands, fonts, settings.header_info)
    _layout_header(header, prescription, labels, direction, page_width, y)

    # ---- Separator rule ----
    y -= HEADER_RULE_DROP
    line = settings.header_line
    commands.append(
        LineCommand(
            x0=MARGIN,
            x1=page_width - MARGIN,
            y=y,
            thickness=line.thickness,
            color=line.color,
            dashed=line.is_dashed,
        )
    )

    # ---- Rx marker, never localized ----
    y -= RX_SYMBOL_DROP
    _TextPlacer.for_style(commands, fonts, settings.rx_symbol).place(RX_MARKER, MARGIN, y)

    # ---- Medication list ----
    y -= MEDICATION_LIST_DROP
    meds_style = settings.medications
    size = meds_style.font_size
    index_placer = _TextPlacer(commands, fonts, bold=True, size=size, color=ACCENT)
    name_placer = _TextPlacer.for_style(commands, fonts, meds_style)
    details_placer = _TextPlacer(commands, fonts, bold=False, size=max(10, size - 2), color=SECONDARY)
    notes_placer = _TextPlacer(commands, fonts, bold=False, size=max(9, size - 3), color=SECONDARY)

    rendered = 0
    truncated = False

    for number, medication in enumerate(prescription.medications, start=1):
        if y < MARGIN + BOTTOM_RESERVE:
            truncated = True
            break

        x = MARGIN
        index_text = f"{number}."
        index_placer.place(index_text, x, y)
        x += index_placer.width(index_text) + INDEX_GAP

        name = to_visual(medication.name) if medication.name.strip() else ""
        if name:
            name_placer.place(name, x, y)
            x += name_placer.width(name) + NAME_GAP

        details = " - ".join(part for part in (medication.dose, medication.form, medication.frequency) if part)
        if details:
            details_placer.place(to_visual(details), x, y)

        if medication.notes:
            y -= size + 5
            notes_placer.place(f"({to_visual(medication.notes)})", MARGIN + NOTES_INDENT, y)

        y -= size * 2
        rendered += 1

    return LayoutResult(commands=tuple(commands), truncated=truncated, medications_rendered=rendered)
