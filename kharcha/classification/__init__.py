"""
Classification Package

Lexical category and tag inference for expense descriptions.
"""

from kharcha.classification.classifier import ExpenseClassifier
from kharcha.classification.lexicon import (
    DEFAULT_KEYWORDS,
    CategoryLexicon,
    default_lexicon,
)
from kharcha.classification.text import SimpleTextAnalyzer, TextAnalyzer

__all__ = [
    "DEFAULT_KEYWORDS",
    "CategoryLexicon",
    "ExpenseClassifier",
    "SimpleTextAnalyzer",
    "TextAnalyzer",
    "default_lexicon",
]
