"""Bilingual response rendering."""

from kharcha.responses.formatting import (
    capitalize_first,
    format_amount,
    period_hi,
    plural,
    short_date,
    time_phrase_en,
    time_phrase_hi,
)
from kharcha.responses.generator import ResponseGenerator, help_text

__all__ = [
    "ResponseGenerator",
    "capitalize_first",
    "format_amount",
    "help_text",
    "period_hi",
    "plural",
    "short_date",
    "time_phrase_en",
    "time_phrase_hi",
]
