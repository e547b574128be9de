"""
Intents Package

Language detection and rule-based intent parsing for English,
Hindi and Hinglish commands.
"""

from kharcha.intents.language import detect_language
from kharcha.intents.parser import IntentParser, normalize_utterance, parse
from kharcha.intents.rules import (
    AVERAGE_TOKENS,
    DEFAULT_RULES,
    PERIOD_TOKENS,
    WHICH_TOKENS,
    IntentRule,
)

__all__ = [
    "AVERAGE_TOKENS",
    "DEFAULT_RULES",
    "PERIOD_TOKENS",
    "WHICH_TOKENS",
    "IntentParser",
    "IntentRule",
    "detect_language",
    "normalize_utterance",
    "parse",
]
