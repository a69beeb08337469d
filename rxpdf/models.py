# rxpdf/models.py

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from reportlab.pdfbase import pdfmetrics


logger = logging.getLogger(__name__)


# -------------------------
# COLORS
# -------------------------

@dataclass(frozen=True)
class RGBColor:
    r: float
    g: float
    b: float

    @classmethod
    def from_hex(cls, value: str | None) -> "RGBColor":
        """
        Parses "#RRGGBB" as stored by the settings layer.
        Anything unusable falls back to the primary text color.
        """
        if not value or len(value) < 4:
            return PRIMARY

        clean = value.lstrip("#")
        try:
            return cls(
                int(clean[0:2], 16) / 255,
                int(clean[2:4], 16) / 255,
                int(clean[4:6], 16) / 255,
            )
        except ValueError:
            return PRIMARY


PRIMARY = RGBColor(0.1, 0.1, 0.1)
SECONDARY = RGBColor(0.4, 0.4, 0.4)
ACCENT = RGBColor(0, 0, 0)
RULE = RGBColor(0.7, 0.7, 0.7)


# -------------------------
# STYLE CONFIG
# -------------------------

@dataclass(frozen=True)
class TextStyleConfig:
    font_size: float
    color: RGBColor
    is_bold: bool


@dataclass(frozen=True)
class LineStyleConfig:
    color: RGBColor
    thickness: float
    style: str = "solid"

    @property
    def is_dashed(self) -> bool:
        return self.style == "dashed"


class PaperSize(Enum):
    A4 = (595, 842)
    A5 = (420, 595)

    @property
    def width(self) -> float:
        return self.value[0]

    @property
    def height(self) -> float:
        return self.value[1]

    @classmethod
    def parse(cls, name: str | None) -> "PaperSize":
        if isinstance(name, cls):
            return name
        return cls.A4 if str(name or "").upper() == "A4" else cls.A5


class Direction(Enum):
    LTR = "ltr"
    RTL = "rtl"


class Language(Enum):
    AR = "ar"
    KU = "ku"
    EN = "en"

    @property
    def direction(self) -> Direction:
        return Direction.RTL if self in (Language.AR, Language.KU) else Direction.LTR

    @classmethod
    def parse(cls, tag: "str | Language | None") -> "Language":
        if isinstance(tag, cls):
            return tag
        try:
            return cls(str(tag or "").lower())
        except ValueError:
            return cls.EN


@dataclass(frozen=True)
class RxTemplateSettings:
    rx_symbol: TextStyleConfig
    medications: TextStyleConfig
    header_info: TextStyleConfig
    header_line: LineStyleConfig
    top_margin: float = 100
    paper_size: PaperSize = PaperSize.A5


# -------------------------
# PRESCRIPTION RECORDS
# -------------------------

@dataclass(frozen=True)
class Medication:
    id: str
    name: str
    dose: str = ""
    form: str = ""
    frequency: str = ""
    notes: str = ""
    category_id: str | None = None


@dataclass(frozen=True)
class Prescription:
    id: str
    date: datetime
    patient_name: str
    patient_age: int = 0
    medications: tuple[Medication, ...] = field(default_factory=tuple)
    created_at: int = 0


# -------------------------
# RESOURCES
# -------------------------

@dataclass(frozen=True)
class BackgroundResource:
    mime_type: str
    data: bytes

    @classmethod
    def from_data_url(cls, url: str | None) -> "BackgroundResource | None":
        """
        Decodes "data:<mime>;base64,<payload>". Returns None when there is
        nothing usable; the page then renders without a background.
        """
        if not url:
            return None

        if not url.startswith("data:") or "," not in url:
            logger.warning("Background is not a data URL; ignoring it")
            return None

        header, payload = url[len("data:"):].split(",", 1)
        mime_type = header.split(";", 1)[0].strip().lower()

        try:
            data = base64.b64decode(payload, validate=False)
        except (binascii.Error, ValueError) as e:
            logger.warning("Background payload could not be decoded: %s", e)
            return None

        if not data:
            logger.warning("Background data URL has an empty payload; ignoring it")
            return None

        return cls(mime_type=mime_type, data=data)


@dataclass(frozen=True)
class FontPair:
    regular: str
    bold: str

    def font_for(self, is_bold: bool) -> str:
        return self.bold if is_bold else self.regular

    def string_width(self, text: str, is_bold: bool, size: float) -> float:
        if not text:
            return 0.0
        return pdfmetrics.stringWidth(text, self.font_for(is_bold), size)


DEFAULT_FONT_PAIR = FontPair(regular="Helvetica", bold="Helvetica-Bold")


# -------------------------
# PAYLOAD PARSING
# -------------------------

DEFAULT_RX_SYMBOL = {"fontSize": 28, "color": "#000000", "isBold": True}
DEFAULT_MEDICATIONS = {"fontSize": 13, "color": "#000000", "isBold": True}
DEFAULT_HEADER_INFO = {"fontSize": 11, "color": "#000000", "isBold": True}
DEFAULT_HEADER_LINE = {"color": "#000000", "thickness": 1, "style": "solid"}


def _coerce_json_object(value) -> dict:
    if isinstance(value, dict):
        return value

    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return {}
        if isinstance(parsed, dict):
            return parsed

    return {}


def _optional_dict(payload: dict, key: str, label: str, default: dict) -> dict:
    value = payload.get(key)
    if value is None:
        return default
    if not isinstance(value, dict):
        raise ValueError(f"{label}.{key} must be an object")
    return value


def _positive_number(item: dict, key: str, label: str, default: float) -> float:
    value = item.get(key)
    if value is None:
        return float(default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{label}.{key} must be numeric")
    if value <= 0:
        raise ValueError(f"{label}.{key} must be greater than 0")
    return float(value)


def _text_style(item: dict, label: str, default: dict) -> TextStyleConfig:
    return TextStyleConfig(
        font_size=_positive_number(item, "fontSize", label, default["fontSize"]),
        color=RGBColor.from_hex(item.get("color") or default["color"]),
        is_bold=bool(item.get("isBold", default["isBold"])),
    )


def settings_from_dict(payload: dict | str | None) -> RxTemplateSettings:
    """
    Builds template settings from the data layer's rxTemplate object.
    Missing blocks take defaults; present but invalid values raise ValueError.
    """
    template = _coerce_json_object(payload)
    if "rxTemplate" in template:
        template = _coerce_json_object(template["rxTemplate"])

    label = "rxTemplate"

    rx_symbol = _optional_dict(template, "rxSymbol", label, DEFAULT_RX_SYMBOL)
    medications = _optional_dict(template, "medications", label, DEFAULT_MEDICATIONS)
    header_info = _optional_dict(template, "headerInfo", label, DEFAULT_HEADER_INFO)
    header_line = _optional_dict(template, "headerLine", label, DEFAULT_HEADER_LINE)

    line_style = header_line.get("style") or DEFAULT_HEADER_LINE["style"]
    if line_style not in ("solid", "dashed"):
        raise ValueError(f"{label}.headerLine.style must be 'solid' or 'dashed'")

    top_margin = template.get("topMargin")
    if top_margin is None:
        top_margin = 100
    if isinstance(top_margin, bool) or not isinstance(top_margin, (int, float)):
        raise ValueError(f"{label}.topMargin must be numeric")
    if not 50 <= top_margin <= 300:
        raise ValueError(f"{label}.topMargin must be between 50 and 300")

    return RxTemplateSettings(
        rx_symbol=_text_style(rx_symbol, f"{label}.rxSymbol", DEFAULT_RX_SYMBOL),
        medications=_text_style(medications, f"{label}.medications", DEFAULT_MEDICATIONS),
        header_info=_text_style(header_info, f"{label}.headerInfo", DEFAULT_HEADER_INFO),
        header_line=LineStyleConfig(
            color=RGBColor.from_hex(header_line.get("color") or DEFAULT_HEADER_LINE["color"]),
            thickness=_positive_number(
                header_line, "thickness", f"{label}.headerLine", DEFAULT_HEADER_LINE["thickness"]
            ),
            style=line_style,
        ),
        top_margin=float(top_margin),
        paper_size=PaperSize.parse(template.get("paperSize")),
    )


def _parse_date(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Epoch milliseconds, as the data layer stores timestamps.
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            pass
    raise ValueError("prescription.date must be an ISO date or a timestamp")


def _text(value) -> str:
    return "" if value is None else str(value)


def medication_from_dict(payload: dict) -> Medication:
    return Medication(
        id=_text(payload.get("id")),
        name=_text(payload.get("name")),
        dose=_text(payload.get("dose")),
        form=_text(payload.get("form")),
        frequency=_text(payload.get("frequency")),
        notes=_text(payload.get("notes")),
        category_id=payload.get("categoryId") or None,
    )


def prescription_from_dict(payload: dict | str) -> Prescription:
    record = _coerce_json_object(payload)
    if not record:
        raise ValueError("prescription is required and must be an object")

    age = record.get("patientAge") or 0
    if isinstance(age, bool) or not isinstance(age, (int, float)) or age < 0:
        raise ValueError("prescription.patientAge must be a non-negative number")

    medications = record.get("medications") or []
    if not isinstance(medications, list):
        raise ValueError("prescription.medications must be a list")

    return Prescription(
        id=_text(record.get("id")),
        date=_parse_date(record.get("date")),
        patient_name=_text(record.get("patientName")),
        patient_age=int(age),
        medications=tuple(medication_from_dict(m) for m in medications if isinstance(m, dict)),
        created_at=int(record.get("createdAt") or 0),
    )
