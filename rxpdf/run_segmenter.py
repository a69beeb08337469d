# rxpdf/run_segmenter.py

from dataclasses import dataclass
from enum import Enum

from rxpdf.script_classifier import ScriptClass, classify, contains_arabic, is_transparent
from rxpdf.shaping_service import shape


class RunClass(Enum):
    ARABIC = "arabic"
    LATIN = "latin"
    DIGIT = "digit"
    NEUTRAL = "neutral"


_RUN_CLASS = {
    ScriptClass.ARABIC_JOINING: RunClass.ARABIC,
    ScriptClass.ARABIC_NON_JOINING: RunClass.ARABIC,
    ScriptClass.LATIN: RunClass.LATIN,
    ScriptClass.DIGIT: RunClass.DIGIT,
    ScriptClass.NEUTRAL: RunClass.NEUTRAL,
}


@dataclass(frozen=True)
class GlyphRun:
    text: str
    script_class: RunClass
    visual_order: int


def _close_run(runs: list[list], content: str, run_class: RunClass) -> None:
    # Neutral sub-runs trail the run before them.
    if run_class is RunClass.NEUTRAL and runs:
        runs[-1][1] += content
        return

    # Folding can leave two runs of one class side by side.
    if runs and runs[-1][0] is run_class:
        runs[-1][1] += content
        return

    runs.append([run_class, content])


def _logical_runs(text: str) -> list[list]:
    runs: list[list] = []
    current = ""
    current_class: RunClass | None = None

    for char in text:
        char_class = _RUN_CLASS[classify(char)]
        if current and char_class is not current_class:
            _close_run(runs, current, current_class)
            current = ""
        current += char
        current_class = char_class

    if current:
        _close_run(runs, current, current_class)

    return runs


def segment(text: str | None) -> list[GlyphRun]:
    """
    Splits mixed text into classed runs in logical order. Arabic runs come
    back shaped; visual_order is the run's position when the line is read
    right-to-left.
    """
    runs = _logical_runs(text or "")
    total = len(runs)

    return [
        GlyphRun(
            text=shape(content) if run_class is RunClass.ARABIC else content,
            script_class=run_class,
            visual_order=total - 1 - index,
        )
        for index, (run_class, content) in enumerate(runs)
    ]


_LTR_RUNS = (RunClass.LATIN, RunClass.DIGIT)

MIRRORED_BRACKETS = str.maketrans("()[]{}<>", ")(][}{><")


def _clusters(text: str) -> list[str]:
    # A base glyph and the marks drawn over it move together.
    clusters: list[str] = []
    for char in text:
        if clusters and is_transparent(char):
            clusters[-1] += char
        else:
            clusters.append(char)
    return clusters


def _right_to_left(text: str) -> str:
    return "".join(reversed(_clusters(text))).translate(MIRRORED_BRACKETS)


def to_visual(text: str | None) -> str:
    """
    Presentation string for a left-to-right drawing surface.

    Text without Arabic is returned as is. Otherwise runs follow their
    visual order and the glyphs of each Arabic run are placed from right to
    left, with brackets mirrored. Adjacent Latin and digit runs ("500mg")
    stay together as one block in their own character order.
    """
    if not text:
        return ""
    if not contains_arabic(text):
        return text

    blocks: list[str] = []
    previous_ltr = False
    for run in segment(text):
        ltr = run.script_class in _LTR_RUNS
        if ltr and previous_ltr:
            blocks[-1] += run.text
        elif ltr:
            blocks.append(run.text)
        else:
            blocks.append(_right_to_left(run.text))
        previous_ltr = ltr

    return "".join(reversed(blocks))
