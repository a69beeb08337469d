# rxpdf/shaping_service.py

from dataclasses import dataclass
from enum import Enum

from rxpdf.script_classifier import (
    ARABIC_FORMS,
    LAM,
    LAM_ALEF_LIGATURES,
    ScriptClass,
    classify,
    is_arabic_family,
    is_transparent,
)


class GlyphForm(Enum):
    ISOLATED = 0
    INITIAL = 1
    MEDIAL = 2
    FINAL = 3


@dataclass(frozen=True)
class ShapedGlyph:
    source: str
    glyph: str
    form: GlyphForm | None  # None for characters passed through unchanged

    @property
    def is_ligature(self) -> bool:
        return len(self.source) == 2


def _neighbour(chars: list[str], index: int, step: int) -> str | None:
    cursor = index + step
    while 0 <= cursor < len(chars) and is_transparent(chars[cursor]):
        cursor += step
    if 0 <= cursor < len(chars):
        return chars[cursor]
    return None


def _next_base_index(chars: list[str], index: int) -> int | None:
    cursor = index + 1
    while cursor < len(chars) and is_transparent(chars[cursor]):
        cursor += 1
    return cursor if cursor < len(chars) else None


def _select_form(joins_prev: bool, next_is_arabic: bool) -> GlyphForm:
    if joins_prev and next_is_arabic:
        return GlyphForm.MEDIAL
    if joins_prev:
        return GlyphForm.FINAL
    if next_is_arabic:
        return GlyphForm.INITIAL
    return GlyphForm.ISOLATED


def shape_glyphs(text: str) -> list[ShapedGlyph]:
    """
    Picks the contextual form of every Arabic-family letter in a logical run
    and collapses LAM + ALEF pairs into one ligature glyph.
    The result stays in logical order.
    """
    chars = list(text or "")
    glyphs: list[ShapedGlyph] = []

    i = 0
    while i < len(chars):
        char = chars[i]
        prev_char = _neighbour(chars, i, -1)
        joins_prev = prev_char is not None and classify(prev_char) is ScriptClass.ARABIC_JOINING

        # ---- LAM-ALEF ligature, marks between the two kept after it ----
        if char == LAM:
            alef_index = _next_base_index(chars, i)
            if alef_index is not None and chars[alef_index] in LAM_ALEF_LIGATURES:
                alef = chars[alef_index]
                form = GlyphForm.MEDIAL if joins_prev else GlyphForm.ISOLATED
                glyphs.append(ShapedGlyph(char + alef, LAM_ALEF_LIGATURES[alef][form.value], form))
                glyphs.extend(ShapedGlyph(mark, mark, None) for mark in chars[i + 1:alef_index])
                i = alef_index + 1
                continue

        forms = ARABIC_FORMS.get(char)
        if forms is None:
            glyphs.append(ShapedGlyph(char, char, None))
            i += 1
            continue

        next_char = _neighbour(chars, i, 1)
        next_is_arabic = next_char is not None and is_arabic_family(next_char)

        form = _select_form(joins_prev, next_is_arabic)
        glyphs.append(ShapedGlyph(char, forms[form.value], form))
        i += 1

    return glyphs


def shape_forms(text: str) -> list[GlyphForm | None]:
    return [glyph.form for glyph in shape_glyphs(text)]


def shape(text: str) -> str:
    return "".join(glyph.glyph for glyph in shape_glyphs(text))
