"""
Intent Parser

Turns one utterance into an Intent: an action, its slots and the
language to answer in.

The parser owns no phrasing knowledge of its own; it walks the ordered
rule table in kharcha.intents.rules and stops at the first rule that
both matches and yields slots.
"""

import re
from typing import Optional, Sequence

from kharcha.intents.language import detect_language
from kharcha.intents.rules import DEFAULT_RULES, IntentRule
from kharcha.models.expense import Intent, IntentAction


_WHITESPACE_RE = re.compile(r"\s+")
_TRAILING_PUNCTUATION = "?!.।, "


def normalize_utterance(utterance: str) -> str:
    """Lowercase, collapse whitespace, drop trailing punctuation."""
    text = _WHITESPACE_RE.sub(" ", (utterance or "").lower()).strip()
    return text.rstrip(_TRAILING_PUNCTUATION)


class IntentParser:
    """
    Ordered-rule intent parser.

    Usage:
        parser = IntentParser()
        intent = parser.parse("add 200 rupees for food")
        # intent.action == IntentAction.ADD_EXPENSE
        # intent.slots == {"amount": 200, "description": "food"}
    """

    def __init__(self, rules: Optional[Sequence[IntentRule]] = None):
        self._rules = tuple(
            sorted(rules if rules is not None else DEFAULT_RULES, key=lambda r: r.priority)
        )

    @property
    def rules(self) -> tuple[IntentRule, ...]:
        return self._rules

    def parse(self, utterance: str) -> Intent:
        language = detect_language(utterance)
        text = normalize_utterance(utterance)

        if text:
            for rule in self._rules:
                match = rule.pattern.search(text)
                if match is None:
                    continue
                slots = rule.extract(match)
                if slots is None:
                    continue
                return Intent(
                    action=rule.action,
                    slots=slots,
                    language=language,
                    rule=rule.name,
                )

        return Intent(action=IntentAction.UNKNOWN, slots={}, language=language)


_default_parser = IntentParser()


def parse(utterance: str) -> Intent:
    """Parse with the default rule table."""
    return _default_parser.parse(utterance)
