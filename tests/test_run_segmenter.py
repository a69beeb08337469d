import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from rxpdf.run_segmenter import RunClass, segment, to_visual
from rxpdf.script_classifier import is_transparent
from rxpdf.shaping_service import shape


AHLAN_SHAPED = "ﺃﻫﻼ"


def test_segment_mixed_text_shapes_only_the_arabic_run():
    runs = segment("Hello أهلا123")

    assert [run.script_class for run in runs] == [RunClass.LATIN, RunClass.ARABIC, RunClass.DIGIT]
    assert runs[0].text == "Hello "
    assert runs[1].text == AHLAN_SHAPED
    assert runs[2].text == "123"
    assert [run.visual_order for run in runs] == [2, 1, 0]


def test_leading_neutral_content_is_its_own_run():
    runs = segment(" (مرحبا")

    assert runs[0].script_class is RunClass.NEUTRAL
    assert runs[0].text == " ("
    assert runs[1].script_class is RunClass.ARABIC


def test_neutral_runs_trail_the_previous_run():
    runs = segment("500 mg")

    assert [(run.text, run.script_class) for run in runs] == [
        ("500 ", RunClass.DIGIT),
        ("mg", RunClass.LATIN),
    ]


def test_arabic_words_split_by_spaces_stay_one_run():
    runs = segment("مرحبا بك")

    assert len(runs) == 1
    assert runs[0].text == shape("مرحبا بك")


def test_segment_empty_text():
    assert segment("") == []
    assert segment(None) == []


def test_to_visual_leaves_text_without_arabic_untouched():
    assert to_visual("Paracetamol 500mg") == "Paracetamol 500mg"
    assert to_visual("") == ""
    assert to_visual(None) == ""


def test_to_visual_reverses_runs_but_not_latin_or_digits():
    assert to_visual("Hello أهلا123") == "123" + AHLAN_SHAPED[::-1] + "Hello "


def test_to_visual_keeps_numbers_readable_inside_arabic_text():
    visual = to_visual("جرعة 500")

    assert visual.startswith("500")
    assert visual[3:] == shape("جرعة ")[::-1]


def test_to_visual_keeps_marks_on_their_letter():
    assert to_visual("بَت") == "ﺖﺑَ"

    visual = to_visual("مُحَمَّد")
    assert visual == "\ufeaa" + "\ufee4\u064e\u0651" + "\ufea4\u064e" + "\ufee3\u064f"
    assert not is_transparent(visual[0])


def test_to_visual_mirrors_brackets_in_arabic_text():
    assert to_visual("(بعد)") == "(" + shape("بعد")[::-1] + ")"


def test_to_visual_keeps_dose_and_unit_together():
    assert to_visual("500mg - أقراص") == shape("أقراص")[::-1] + "500mg - "
