# rxpdf/script_classifier.py

import unicodedata
from enum import Enum
from types import MappingProxyType


class ScriptClass(Enum):
    ARABIC_JOINING = "arabic_joining"
    ARABIC_NON_JOINING = "arabic_non_joining"
    LATIN = "latin"
    DIGIT = "digit"
    NEUTRAL = "neutral"


# Forms: (isolated, initial, medial, final)
ISOLATED, INITIAL, MEDIAL, FINAL = range(4)


def _forms(*code_points: int) -> tuple[str, str, str, str]:
    return tuple(chr(cp) for cp in code_points)


def _same(code_point: int) -> tuple[str, str, str, str]:
    # Letters with no presentation forms in Unicode keep their own code point.
    return _forms(code_point, code_point, code_point, code_point)


ARABIC_FORMS = MappingProxyType({
    "ا": _forms(0xFE8D, 0xFE8D, 0xFE8E, 0xFE8E),  # alef
    "أ": _forms(0xFE83, 0xFE83, 0xFE84, 0xFE84),  # alef hamza above
    "إ": _forms(0xFE87, 0xFE87, 0xFE88, 0xFE88),  # alef hamza below
    "آ": _forms(0xFE81, 0xFE81, 0xFE82, 0xFE82),  # alef madda
    "ب": _forms(0xFE8F, 0xFE91, 0xFE92, 0xFE90),  # beh
    "ت": _forms(0xFE95, 0xFE97, 0xFE98, 0xFE96),  # teh
    "ث": _forms(0xFE99, 0xFE9B, 0xFE9C, 0xFE9A),  # theh
    "ج": _forms(0xFE9D, 0xFE9F, 0xFEA0, 0xFE9E),  # jeem
    "ح": _forms(0xFEA1, 0xFEA3, 0xFEA4, 0xFEA2),  # hah
    "خ": _forms(0xFEA5, 0xFEA7, 0xFEA8, 0xFEA6),  # khah
    "د": _forms(0xFEA9, 0xFEA9, 0xFEAA, 0xFEAA),  # dal
    "ذ": _forms(0xFEAB, 0xFEAB, 0xFEAC, 0xFEAC),  # thal
    "ر": _forms(0xFEAD, 0xFEAD, 0xFEAE, 0xFEAE),  # reh
    "ز": _forms(0xFEAF, 0xFEAF, 0xFEB0, 0xFEB0),  # zain
    "س": _forms(0xFEB1, 0xFEB3, 0xFEB4, 0xFEB2),  # seen
    "ش": _forms(0xFEB5, 0xFEB7, 0xFEB8, 0xFEB6),  # sheen
    "ص": _forms(0xFEB9, 0xFEBB, 0xFEBC, 0xFEBA),  # sad
    "ض": _forms(0xFEBD, 0xFEBF, 0xFEC0, 0xFEBE),  # dad
    "ط": _forms(0xFEC1, 0xFEC3, 0xFEC4, 0xFEC2),  # tah
    "ظ": _forms(0xFEC5, 0xFEC7, 0xFEC8, 0xFEC6),  # zah
    "ع": _forms(0xFEC9, 0xFECB, 0xFECC, 0xFECA),  # ain
    "غ": _forms(0xFECD, 0xFECF, 0xFED0, 0xFECE),  # ghain
    "ف": _forms(0xFED1, 0xFED3, 0xFED4, 0xFED2),  # feh
    "ق": _forms(0xFED5, 0xFED7, 0xFED8, 0xFED6),  # qaf
    "ك": _forms(0xFED9, 0xFEDB, 0xFEDC, 0xFEDA),  # kaf
    "ل": _forms(0xFEDD, 0xFEDF, 0xFEE0, 0xFEDE),  # lam
    "م": _forms(0xFEE1, 0xFEE3, 0xFEE4, 0xFEE2),  # meem
    "ن": _forms(0xFEE5, 0xFEE7, 0xFEE8, 0xFEE6),  # noon
    "ه": _forms(0xFEE9, 0xFEEB, 0xFEEC, 0xFEEA),  # heh
    "و": _forms(0xFEED, 0xFEED, 0xFEEE, 0xFEEE),  # waw
    "ي": _forms(0xFEF1, 0xFEF3, 0xFEF4, 0xFEF2),  # yeh
    "ى": _forms(0xFEEF, 0xFEEF, 0xFEF0, 0xFEF0),  # alef maksura
    "ة": _forms(0xFE93, 0xFE93, 0xFE94, 0xFE94),  # teh marbuta
    "ئ": _forms(0xFE89, 0xFE8B, 0xFE8C, 0xFE8A),  # yeh hamza above
    "ء": _same(0x0621),                           # hamza
    "ؤ": _forms(0xFE85, 0xFE85, 0xFE86, 0xFE86),  # waw hamza above
    "ـ": _same(0x0640),                           # tatweel
    # Kurdish / Persian
    "ک": _forms(0x06A9, 0xFB90, 0xFB91, 0xFB8F),  # keheh
    "گ": _forms(0x06AF, 0xFB94, 0xFB95, 0xFB93),  # gaf
    "پ": _forms(0x067E, 0xFB58, 0xFB59, 0xFB57),  # peh
    "چ": _forms(0x0686, 0xFB7C, 0xFB7D, 0xFB7B),  # tcheh
    "ژ": _forms(0x0698, 0x0698, 0xFB8B, 0xFB8B),  # jeh
    "ڤ": _forms(0x06A4, 0xFB6C, 0xFB6D, 0xFB6B),  # veh
    "ی": _forms(0xFBFC, 0xFBFE, 0xFBFF, 0xFBFD),  # farsi yeh
    "ھ": _forms(0xFBAA, 0xFBAC, 0xFBAD, 0xFBAB),  # heh doachashmee
    "ڵ": _same(0x06B5),                           # lam with small v
    "ڕ": _same(0x0695),                           # reh with small v below
    "ێ": _same(0x06CE),                           # yeh with small v
    "ۆ": _same(0x06C6),                           # oe
    "ۊ": _same(0x06CA),                           # waw with two dots above
    "ە": _same(0x06D5),                           # ae
})

LAM = "ل"

# Keyed by the alef that follows LAM.
LAM_ALEF_LIGATURES = MappingProxyType({
    "ا": _forms(0xFEFB, 0xFEFB, 0xFEFC, 0xFEFC),
    "أ": _forms(0xFEF7, 0xFEF7, 0xFEF8, 0xFEF8),
    "إ": _forms(0xFEF9, 0xFEF9, 0xFEFA, 0xFEFA),
    "آ": _forms(0xFEF5, 0xFEF5, 0xFEF6, 0xFEF6),
})

# Never connect to the following letter.
NON_JOINING = frozenset(
    "اأإآ"  # alef forms
    "دذرز"  # dal thal reh zain
    "وؤةء"  # waw, waw hamza, teh marbuta, hamza
    "ى"  # alef maksura
    "ژۆڕڵ"  # Kurdish: jeh oe reh-v lam-v
    "ێۊە"  # Kurdish: yeh-v waw-dots ae
)

ARABIC_INDIC_DIGITS = frozenset("٠١٢٣٤٥٦٧٨٩")
EXTENDED_ARABIC_INDIC_DIGITS = frozenset("۰۱۲۳۴۵۶۷۸۹")

ARABIC_BLOCKS = (
    (0x0600, 0x06FF),  # Arabic
    (0x0750, 0x077F),  # Arabic Supplement
    (0x08A0, 0x08FF),  # Arabic Extended-A
    (0xFB50, 0xFDFF),  # Presentation Forms-A
    (0xFE70, 0xFEFF),  # Presentation Forms-B
)


def in_arabic_block(char: str) -> bool:
    code = ord(char)
    return any(lo <= code <= hi for lo, hi in ARABIC_BLOCKS)


def classify(char: str) -> ScriptClass:
    if char in ARABIC_FORMS:
        if char in NON_JOINING:
            return ScriptClass.ARABIC_NON_JOINING
        return ScriptClass.ARABIC_JOINING

    if char.isascii() and char.isalpha():
        return ScriptClass.LATIN

    if ("0" <= char <= "9") or char in ARABIC_INDIC_DIGITS or char in EXTENDED_ARABIC_INDIC_DIGITS:
        return ScriptClass.DIGIT

    # Punctuation, symbols, separators and controls, Arabic ones included.
    if unicodedata.category(char)[0] in "PSZC":
        return ScriptClass.NEUTRAL

    # Letters and marks of the Arabic blocks the table does not cover
    # stay in the Arabic run but offer no joining.
    if in_arabic_block(char):
        return ScriptClass.ARABIC_NON_JOINING

    return ScriptClass.NEUTRAL


def is_arabic_family(char: str) -> bool:
    return classify(char) in (ScriptClass.ARABIC_JOINING, ScriptClass.ARABIC_NON_JOINING)


def is_transparent(char: str) -> bool:
    """Harakat and other Arabic combining marks do not take part in joining."""
    return unicodedata.category(char) == "Mn" and in_arabic_block(char)


def contains_arabic(text: str | None) -> bool:
    return any(is_arabic_family(ch) for ch in text or "")
