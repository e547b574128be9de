"""
Language Detection

Decides whether a reply should be in Hindi/Hinglish or English.

Any Devanagari character means Hindi. Otherwise the text is Hindi if it
contains one of a curated set of romanised Hindi cue words, matched as
whole words so that English words like "rupees" or "this" don't trip it.
"""

import re

from kharcha.models.expense import Language


DEVANAGARI_RE = re.compile(r"[\u0900-\u097f]")

HINDI_CUE_WORDS = (
    "aaj", "kal", "kitna", "kitni", "kharch", "kharcha", "kharche",
    "maine", "mera", "meri", "rupay", "rupaye", "bacha", "bachat",
    "mahina", "mahine", "hafta", "hafte", "saal", "pichhle", "pichle",
    "sabse", "bada", "jodo", "karo", "mein", "par", "pe", "hai", "hua",
    "kiya", "batao", "dikhao", "ausat", "liye", "aakhri",
)

_CUE_RE = re.compile(
    r"(?<![a-z])(?:" + "|".join(HINDI_CUE_WORDS) + r")(?![a-z])",
    re.IGNORECASE,
)


def detect_language(text: str) -> Language:
    """Return Language.HINDI or Language.ENGLISH for a piece of text."""
    if not text:
        return Language.ENGLISH
    if DEVANAGARI_RE.search(text) or _CUE_RE.search(text):
        return Language.HINDI
    return Language.ENGLISH
