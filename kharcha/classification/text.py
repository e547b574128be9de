"""
Text Analysis Capability

The classifier needs four things from an NLP toolkit: tokens, stems,
topic words and place mentions. This module defines that capability
as an interface and ships a small built-in implementation.

DESIGN DECISION: The built-in analyzer is deliberately simple
(case folding, suffix stripping, stop-word filtering, a city gazetteer).
A heavier NLP backend can be plugged in by implementing TextAnalyzer;
nothing else in the classifier needs to change.
"""

import re
from abc import ABC, abstractmethod


class TextAnalyzer(ABC):
    """Minimal NLP capability consumed by the expense classifier."""

    @abstractmethod
    def tokenize(self, text: str) -> list[str]:
        """Split text into lowercase word tokens."""
        pass

    @abstractmethod
    def stem(self, word: str) -> str:
        """Reduce a word to its root form."""
        pass

    @abstractmethod
    def extract_topics(self, text: str) -> list[str]:
        """Return topic/noun-like words in order of appearance."""
        pass

    @abstractmethod
    def find_places(self, text: str) -> list[str]:
        """Return place or location mentions."""
        pass


_TOKEN_RE = re.compile(r"[a-z0-9\u0900-\u097f]+")
_PLACE_PHRASE_RE = re.compile(r"\b(?:at|in|near|from|to)\s+([A-Z][A-Za-z]+)")
_VOWELS = set("aeiou")

STOPWORDS = frozenset({
    # English
    "a", "an", "the", "and", "or", "for", "to", "in", "on", "at", "of",
    "with", "from", "by", "my", "me", "i", "is", "was", "it", "this",
    "that", "some", "add", "added", "spent", "spend", "paid", "pay",
    "buy", "bought", "got", "today", "yesterday", "rupees", "rupee", "rs",
    "inr",
    # Hinglish connectors
    "ke", "liye", "mein", "me", "par", "pe", "ka", "ki", "ko", "se",
    "aur", "karo", "kar", "do", "jodo", "kharch", "kharcha", "rupay",
    "rupaye", "aaj", "kal", "maine",
})

# Cities and regions likely to show up in Indian expense descriptions.
PLACE_GAZETTEER = frozenset({
    "mumbai", "delhi", "bangalore", "bengaluru", "chennai", "kolkata",
    "hyderabad", "pune", "ahmedabad", "jaipur", "lucknow", "goa",
    "agra", "manali", "shimla", "ooty", "kerala", "noida", "gurgaon",
    "gurugram", "chandigarh", "indore", "kochi", "udaipur", "varanasi",
})


class SimpleTextAnalyzer(TextAnalyzer):
    """
    Built-in analyzer with no external NLP dependency.

    Stemming handles the common English plural and verb endings
    (groceries -> groceri, grocery -> groceri, movies -> movi).
    """

    def tokenize(self, text: str) -> list[str]:
        if not text:
            return []
        return _TOKEN_RE.findall(text.lower())

    def stem(self, word: str) -> str:
        word = word.lower()
        if len(word) <= 3:
            return word

        if word.endswith("sses"):
            word = word[:-2]
        elif word.endswith("ies"):
            word = word[:-2]
        elif word.endswith("s") and not word.endswith("ss"):
            word = word[:-1]

        for suffix in ("ing", "ed"):
            root = word[: -len(suffix)]
            if word.endswith(suffix) and len(root) >= 3 and _VOWELS & set(root):
                word = root
                break

        if word.endswith("y") and _VOWELS & set(word[:-1]):
            word = word[:-1] + "i"

        return word

    def extract_topics(self, text: str) -> list[str]:
        topics = []
        for token in self.tokenize(text):
            if token in STOPWORDS or token.isdigit() or len(token) < 3:
                continue
            if token not in topics:
                topics.append(token)
        return topics

    def find_places(self, text: str) -> list[str]:
        if not text:
            return []
        places = [t for t in self.tokenize(text) if t in PLACE_GAZETTEER]
        for match in _PLACE_PHRASE_RE.finditer(text):
            place = match.group(1).lower()
            if place not in places:
                places.append(place)
        return places
