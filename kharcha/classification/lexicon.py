"""
Category Lexicon

Keyword sets per category, used by the expense classifier.

DESIGN DECISION: A lexicon is an immutable snapshot. Learning a new
keyword produces a NEW lexicon; the classifier swaps its reference to
it under a lock. Readers holding the old snapshot keep a consistent
view for the whole of their scoring pass.
"""

from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from kharcha.models.expense import Category


DEFAULT_KEYWORDS: dict[Category, tuple[str, ...]] = {
    Category.FOOD: (
        "food", "restaurant", "meal", "breakfast", "lunch", "dinner",
        "grocery", "groceries", "vegetables", "fruits", "meat", "cafe",
        "bakery", "pizza", "burger", "swiggy", "zomato", "dominos",
        "mcdonald", "kfc", "dining", "coffee", "chai", "snacks",
        "khana", "khane", "nashta", "sabzi", "doodh",
    ),
    Category.TRANSPORT: (
        "transport", "uber", "ola cab", "olacabs", "taxi", "cab", "bus",
        "metro", "train", "fuel", "petrol", "diesel", "gas", "parking",
        "toll", "auto", "rickshaw", "rapido", "gasoline",
    ),
    Category.UTILITIES: (
        "electricity", "water", "gas", "internet", "wifi", "phone",
        "mobile", "broadband", "airtel", "jio", "bill", "recharge",
        "bijli", "paani",
    ),
    Category.RENT: (
        "rent", "apartment", "housing", "lease", "landlord",
        "accommodation", "flat", "house", "pg", "hostel", "kiraya",
    ),
    Category.ENTERTAINMENT: (
        "movie", "cinema", "netflix", "spotify", "amazon prime", "hotstar",
        "gaming", "game", "concert", "show", "entertainment",
        "subscription", "theatre",
    ),
    Category.HEALTHCARE: (
        "hospital", "doctor", "medical", "medicine", "pharmacy", "clinic",
        "health", "surgery", "checkup", "lab", "test", "dentist", "apollo",
        "dawai", "dawa",
    ),
    Category.SHOPPING: (
        "shopping", "clothes", "jewelery", "shoes", "amazon", "flipkart",
        "myntra", "ajio", "mall", "store", "electronics", "gadget", "phone",
        "laptop", "kapde",
    ),
    Category.EDUCATION: (
        "education", "school", "college", "university", "course", "book",
        "tuition", "fee", "coursera", "udemy", "study", "kitab",
    ),
    Category.TRAVEL: (
        "travel", "vacation", "holiday", "hotel", "flight", "booking",
        "makemytrip", "goibibo", "trip", "tourism",
    ),
    Category.PERSONAL: (
        "personal", "care", "salon", "spa", "grooming", "haircut",
        "cosmetic",
    ),
    Category.CELEBRATION: (
        "celebration", "birthday", "wedding", "anniversary", "party", "gift",
        "festival", "diwali", "holi", "christmas", "eid", "shaadi",
    ),
    Category.EMERGENCY: (
        "emergency", "urgent", "accident", "repair", "fix", "breakdown",
    ),
    Category.OTHER: ("other", "miscellaneous", "misc"),
}


class CategoryLexicon:
    """
    Read-only mapping of category -> keywords.

    Iteration follows the declared category order, which is also the
    classifier's tie-break order.
    """

    def __init__(self, keywords: Mapping[Category, Iterable[str]]):
        entries = {}
        for category in Category.primary():
            words = frozenset(
                word.strip().lower()
                for word in keywords.get(category, ())
                if word and word.strip()
            )
            if not words:
                raise ValueError(
                    f"Category '{category.value}' needs at least one keyword"
                )
            entries[category] = words

        unknown = set(keywords) - set(entries)
        if unknown:
            names = ", ".join(sorted(Category(c).value for c in unknown))
            raise ValueError(f"Lexicon cannot hold legacy categories: {names}")

        self._entries = MappingProxyType(entries)

    def __iter__(self) -> Iterator[Category]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, category: object) -> bool:
        return category in self._entries

    def items(self):
        return self._entries.items()

    def keywords(self, category: Category) -> frozenset[str]:
        return self._entries[category]

    def with_keywords(
        self,
        category: Category,
        keywords: Iterable[str],
    ) -> "CategoryLexicon":
        """Return a new lexicon with extra keywords for one category."""
        merged = {cat: set(words) for cat, words in self._entries.items()}
        merged[category].update(keywords)
        return CategoryLexicon(merged)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            category.value: sorted(words)
            for category, words in self._entries.items()
        }


def default_lexicon() -> CategoryLexicon:
    """The seed lexicon."""
    return CategoryLexicon(DEFAULT_KEYWORDS)
