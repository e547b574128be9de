"""Tests for the expense classifier, lexicon and text analyzer."""

import threading
from decimal import Decimal

import pytest

from kharcha.classification import (
    DEFAULT_KEYWORDS,
    CategoryLexicon,
    ExpenseClassifier,
    SimpleTextAnalyzer,
    default_lexicon,
)
from kharcha.models.expense import Category


class TestSimpleTextAnalyzer:
    """Tests for the built-in NLP capability."""

    def setup_method(self):
        self.analyzer = SimpleTextAnalyzer()

    def test_tokenize_lowercases(self):
        """Test tokens are lowercase words and numbers."""
        assert self.analyzer.tokenize("Lunch at Cafe, 250!") == ["lunch", "at", "cafe", "250"]

    def test_stem_plurals(self):
        """Test plural endings are removed."""
        assert self.analyzer.stem("meals") == "meal"
        assert self.analyzer.stem("groceries") == self.analyzer.stem("grocery")
        assert self.analyzer.stem("glass") == "glass"

    def test_stem_verb_endings(self):
        """Test -ing and -ed are removed when a real root remains."""
        assert self.analyzer.stem("booking") == "book"
        assert self.analyzer.stem("repaired") == "repair"
        assert self.analyzer.stem("bus") == "bus"

    def test_extract_topics(self):
        """Test stop words, numbers and short tokens are dropped."""
        topics = self.analyzer.extract_topics("Paid 500 for the pizza and pizza delivery")
        assert topics == ["pizza", "delivery"]

    def test_find_places(self):
        """Test gazetteer cities and 'at <Place>' mentions are found."""
        assert self.analyzer.find_places("hotel in goa") == ["goa"]
        assert self.analyzer.find_places("dinner at Marina") == ["marina"]
        assert self.analyzer.find_places("") == []


class TestCategoryLexicon:
    """Tests for the immutable lexicon snapshot."""

    def test_default_lexicon_covers_primary_categories(self):
        """Test every classifier category has keywords, in declared order."""
        lexicon = default_lexicon()
        assert list(lexicon) == Category.primary()
        for category in lexicon:
            assert lexicon.keywords(category)

    def test_rejects_empty_category(self):
        """Test a category without keywords is invalid."""
        keywords = dict(DEFAULT_KEYWORDS)
        keywords[Category.RENT] = ()
        with pytest.raises(ValueError, match="rent"):
            CategoryLexicon(keywords)

    def test_rejects_legacy_category(self):
        """Test legacy categories can't be given keywords."""
        keywords = dict(DEFAULT_KEYWORDS)
        keywords[Category.GASOLINE] = ("petrol pump",)
        with pytest.raises(ValueError, match="gasoline"):
            CategoryLexicon(keywords)

    def test_with_keywords_returns_new_lexicon(self):
        """Test learning never mutates the original snapshot."""
        original = default_lexicon()
        updated = original.with_keywords(Category.FOOD, ["vada pav"])
        assert "vada pav" in updated.keywords(Category.FOOD)
        assert "vada pav" not in original.keywords(Category.FOOD)

    def test_to_dict(self):
        """Test the plain-dict export."""
        exported = default_lexicon().to_dict()
        assert "food" in exported
        assert exported["food"] == sorted(exported["food"])


class TestExpenseClassifier:
    """Tests for category and tag inference."""

    def setup_method(self):
        self.classifier = ExpenseClassifier()

    @pytest.mark.parametrize("text, expected", [
        ("swiggy", Category.FOOD),
        ("metro", Category.TRANSPORT),
        ("wifi", Category.UTILITIES),
        ("landlord", Category.RENT),
        ("netflix", Category.ENTERTAINMENT),
        ("doctor", Category.HEALTHCARE),
        ("flipkart", Category.SHOPPING),
        ("tuition", Category.EDUCATION),
        ("flight", Category.TRAVEL),
        ("haircut", Category.PERSONAL),
        ("birthday", Category.CELEBRATION),
        ("accident", Category.EMERGENCY),
    ])
    def test_single_keyword(self, text, expected):
        """Test a text with one keyword of one category lands there."""
        assert self.classifier.classify(text) == expected

    def test_hinglish_keywords(self):
        """Test Hinglish words are recognised."""
        assert self.classifier.classify("khane") == Category.FOOD
        assert self.classifier.classify("bijli") == Category.UTILITIES
        assert self.classifier.classify("dawai") == Category.HEALTHCARE

    def test_case_insensitive(self):
        """Test classification ignores case."""
        assert self.classifier.classify("NETFLIX Subscription") == Category.ENTERTAINMENT

    def test_no_signal_is_other(self):
        """Test text without any keyword falls back to other."""
        assert self.classifier.classify("xyz qwerty") == Category.OTHER
        assert self.classifier.classify("") == Category.OTHER
        assert self.classifier.classify(None) == Category.OTHER

    def test_short_brand_names_need_context(self):
        """Test 'ola' only counts as transport when written as the cab service."""
        assert self.classifier.classify("chocolate") == Category.OTHER
        assert self.classifier.classify("ola cab to airport") == Category.TRANSPORT
        assert self.classifier.classify("OlaCabs ride") == Category.TRANSPORT

    def test_tie_goes_to_first_declared(self):
        """Test equal scores resolve by declared category order."""
        # "gas" is a transport and a utilities keyword
        scores = self.classifier.scores("gas")
        assert scores[Category.TRANSPORT] == scores[Category.UTILITIES]
        assert self.classifier.classify("gas") == Category.TRANSPORT
        # "phone" is a utilities and a shopping keyword
        assert self.classifier.classify("phone") == Category.UTILITIES

    def test_stem_match_adds_score(self):
        """Test plural forms score the keyword and its stem."""
        scores = self.classifier.scores("meals")
        assert scores[Category.FOOD] == 15

    def test_place_bonus(self):
        """Test a place mention nudges rent, travel and shopping."""
        scores = self.classifier.scores("xyz at Mumbai")
        assert scores[Category.RENT] == 3
        assert scores[Category.TRAVEL] == 3
        assert scores[Category.SHOPPING] == 3
        assert scores[Category.FOOD] == 0

    def test_amount_heuristics_only_with_amount(self):
        """Test amount rules apply only when an amount is given."""
        assert self.classifier.classify("xyz") == Category.OTHER
        assert self.classifier.classify("xyz", 8000) == Category.RENT
        assert self.classifier.classify("xyz", Decimal("500")) == Category.UTILITIES

    def test_large_amount_favours_emergency(self):
        """Test the emergency bump above 10000."""
        scores = self.classifier.scores("xyz", 20000)
        assert scores[Category.EMERGENCY] == 4
        assert scores[Category.RENT] == 5

    def test_categorize_vendor(self):
        """Test vendor names go through the same scoring."""
        assert self.classifier.categorize_vendor("Zomato") == Category.FOOD
        assert self.classifier.categorize_vendor("") is None
        assert self.classifier.categorize_vendor(None) is None

    def test_suggest_tags(self):
        """Test tag suggestions are topic words, capped."""
        assert self.classifier.suggest_tags("pizza with friends") == ["pizza", "friends"]
        classifier = ExpenseClassifier(max_tags=2)
        assert classifier.suggest_tags("alpha beta gamma delta") == ["alpha", "beta"]
        assert self.classifier.suggest_tags(None) == []


class TestLearning:
    """Tests for copy-on-write lexicon learning."""

    def test_learn_from_correction(self):
        """Test a correction teaches the classifier a new keyword."""
        classifier = ExpenseClassifier()
        assert classifier.classify("vada pav") == Category.OTHER

        added = classifier.learn_from_correction("Vada Pav", Category.FOOD)

        assert added == ["vada pav"]
        assert classifier.classify("vada pav stall") == Category.FOOD

    def test_learn_extra_keywords(self):
        """Test extra keywords are learned alongside the text."""
        classifier = ExpenseClassifier()
        added = classifier.learn_from_correction("gym", "personal", keywords=["cult", "gym"])
        assert added == ["cult", "gym"]
        assert classifier.classify("cult membership") == Category.PERSONAL

    def test_learning_replaces_snapshot(self):
        """Test readers holding the old lexicon are unaffected."""
        classifier = ExpenseClassifier()
        before = classifier.lexicon
        classifier.learn_from_correction("vada pav", Category.FOOD)
        assert classifier.lexicon is not before
        assert "vada pav" not in before.keywords(Category.FOOD)

    def test_invalid_category_is_ignored(self):
        """Test unknown and legacy categories learn nothing."""
        classifier = ExpenseClassifier()
        before = classifier.lexicon
        assert classifier.learn_from_correction("petrol", "fuel") == []
        assert classifier.learn_from_correction("petrol", Category.GASOLINE) == []
        assert classifier.lexicon is before

    def test_instances_do_not_share_lexicon(self):
        """Test learning in one classifier doesn't leak into another."""
        first, second = ExpenseClassifier(), ExpenseClassifier()
        first.learn_from_correction("vada pav", Category.FOOD)
        assert second.classify("vada pav") == Category.OTHER

    def test_concurrent_learning_keeps_every_keyword(self):
        """Test parallel corrections don't lose updates."""
        classifier = ExpenseClassifier()
        words = [f"snackbar{i}" for i in range(20)]
        threads = [
            threading.Thread(target=classifier.learn_from_correction, args=(word, Category.FOOD))
            for word in words
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        keywords = classifier.lexicon.keywords(Category.FOOD)
        assert all(word in keywords for word in words)
