"""
Expense Classifier

Maps free-text expense descriptions to a category by lexical scoring.

Scoring per category:
- +10 for every keyword found as a substring of the lowercased text
- +5 for every stemmed text token equal to a stemmed keyword
- +3 to rent, travel and shopping when the text mentions a place
- amount heuristics (only when an amount is supplied):
  rent +5 above 5000, food +2 below 1000, utilities +3 below 5000,
  emergency +4 above 10000

The highest score wins. Ties go to the category declared first in the
lexicon. A best score of 0 means no signal, and the answer is "other".

IMPORTANT: classify() never raises. Lack of signal degrades to "other".
"""

import threading
from decimal import Decimal
from typing import Iterable, Optional, Union

import structlog

from kharcha.classification.lexicon import CategoryLexicon, default_lexicon
from kharcha.classification.text import SimpleTextAnalyzer, TextAnalyzer
from kharcha.config import get_settings
from kharcha.models.expense import Category


logger = structlog.get_logger(__name__)

Amount = Union[int, float, Decimal]

KEYWORD_WEIGHT = 10
STEM_WEIGHT = 5
PLACE_BONUS = 3
PLACE_CATEGORIES = frozenset({Category.RENT, Category.TRAVEL, Category.SHOPPING})


class _Snapshot:
    """A lexicon together with its precomputed stemmed keywords."""

    __slots__ = ("lexicon", "stems")

    def __init__(self, lexicon: CategoryLexicon, analyzer: TextAnalyzer):
        self.lexicon = lexicon
        self.stems = {
            category: frozenset(analyzer.stem(word) for word in words)
            for category, words in lexicon.items()
        }


class ExpenseClassifier:
    """
    Category and tag inference for expense descriptions.

    The lexicon is injected. Runtime learning replaces the whole
    snapshot under a single-writer lock; scoring never takes the lock.
    """

    def __init__(
        self,
        lexicon: Optional[CategoryLexicon] = None,
        analyzer: Optional[TextAnalyzer] = None,
        max_tags: Optional[int] = None,
    ):
        self._analyzer = analyzer or SimpleTextAnalyzer()
        self._snapshot = _Snapshot(lexicon or default_lexicon(), self._analyzer)
        self._write_lock = threading.Lock()
        self._max_tags = max_tags or get_settings().engine.max_suggested_tags

    @property
    def lexicon(self) -> CategoryLexicon:
        return self._snapshot.lexicon

    def scores(
        self,
        text: Optional[str],
        amount: Optional[Amount] = None,
    ) -> dict[Category, int]:
        """Score every category for a piece of text (diagnostics)."""
        snapshot = self._snapshot
        scores = {category: 0 for category in snapshot.lexicon}
        if not text or not text.strip():
            return scores

        normalized = text.lower().strip()
        stemmed_tokens = [
            self._analyzer.stem(token)
            for token in self._analyzer.tokenize(normalized)
        ]
        has_place = bool(self._analyzer.find_places(text))

        for category, keywords in snapshot.lexicon.items():
            score = sum(KEYWORD_WEIGHT for kw in keywords if kw in normalized)

            stems = snapshot.stems[category]
            score += sum(STEM_WEIGHT for token in stemmed_tokens if token in stems)

            if has_place and category in PLACE_CATEGORIES:
                score += PLACE_BONUS

            scores[category] = score

        if amount is not None:
            self._apply_amount_heuristics(scores, Decimal(str(amount)))

        return scores

    @staticmethod
    def _apply_amount_heuristics(scores: dict[Category, int], amount: Decimal) -> None:
        if amount > 5000:
            scores[Category.RENT] += 5
        if amount < 1000:
            scores[Category.FOOD] += 2
        if amount < 5000:
            scores[Category.UTILITIES] += 3
        if amount > 10000:
            scores[Category.EMERGENCY] += 4

    def classify(
        self,
        text: Optional[str],
        amount: Optional[Amount] = None,
    ) -> Category:
        """
        Pick the best category for a description.

        Args:
            text: Free-text description (any case)
            amount: Optional amount, enables the amount heuristics

        Returns:
            The winning Category, or Category.OTHER without signal
        """
        best, best_score = Category.OTHER, 0
        for category, score in self.scores(text, amount).items():
            if score > best_score:
                best, best_score = category, score
        return best

    def categorize_vendor(self, vendor: Optional[str]) -> Optional[Category]:
        """Classify a vendor name. None when there is no vendor."""
        if not vendor or not vendor.strip():
            return None
        return self.classify(vendor)

    def suggest_tags(self, text: Optional[str]) -> list[str]:
        """Topic words from the text, deduplicated, at most max_tags."""
        if not text:
            return []
        return self._analyzer.extract_topics(text)[: self._max_tags]

    def learn_from_correction(
        self,
        text: str,
        category: Union[Category, str],
        keywords: Iterable[str] = (),
    ) -> list[str]:
        """
        Teach the lexicon that `text` belongs to `category`.

        The corrected text itself becomes a keyword, along with any
        extra keywords given. Unknown or legacy categories are ignored.

        Returns:
            The keywords added (empty if nothing was learned)
        """
        target = Category.parse(category.value if isinstance(category, Category) else category)
        if target is None or target not in self._snapshot.lexicon:
            logger.warning("lexicon_correction_ignored", category=str(category))
            return []

        new_keywords = []
        for word in [*keywords, text]:
            word = (word or "").strip().lower()
            if word and word not in new_keywords:
                new_keywords.append(word)
        if not new_keywords:
            return []

        with self._write_lock:
            lexicon = self._snapshot.lexicon.with_keywords(target, new_keywords)
            self._snapshot = _Snapshot(lexicon, self._analyzer)

        logger.info(
            "lexicon_updated",
            category=target.value,
            keywords=new_keywords,
        )
        return new_keywords
