"""
Intent Rule Table

Every phrasing the engine understands, as an explicit ordered table.

DESIGN DECISION: Each rule is a (priority, action, pattern, extractor)
tuple. The parser tries rules by ascending priority and the first rule
whose pattern matches AND whose extractor returns slots wins. An
extractor returning None means "this rule does not apply after all",
and the parser moves on to the next rule. There is no scoring and no
backtracking into earlier rules.

Priority bands:
    10-19  add an expense
    20-29  category spending on a single day
    30-39  total spending on a single day
    40-49  totals and summaries for a week/month/year
    50-59  category spending in a week/month/year
    60-69  fixed phrases (biggest, savings, last N, top N, compare, average)

Patterns run against normalised text: lowercase, single spaces,
trailing punctuation removed.
"""

import re
from dataclasses import dataclass
from typing import Callable, Optional, Pattern

from kharcha.models.expense import AveragePeriod, IntentAction, Period, Which


# =============================================================================
# TOKEN LOOKUP TABLES
# =============================================================================

PERIOD_TOKENS: dict[str, Period] = {
    "today": Period.TODAY,
    "aaj": Period.TODAY,
    "yesterday": Period.YESTERDAY,
    "kal": Period.YESTERDAY,
    "week": Period.WEEK,
    "hafte": Period.WEEK,
    "hafta": Period.WEEK,
    "haftे": Period.WEEK,
    "month": Period.MONTH,
    "mahine": Period.MONTH,
    "mahina": Period.MONTH,
    "year": Period.YEAR,
    "saal": Period.YEAR,
}

WHICH_TOKENS: dict[str, Which] = {
    "this": Which.THIS,
    "is": Which.THIS,
    "iss": Which.THIS,
    "last": Which.LAST,
    "previous": Which.LAST,
    "pichhle": Which.LAST,
    "pichle": Which.LAST,
}

AVERAGE_TOKENS: dict[str, AveragePeriod] = {
    "daily": AveragePeriod.DAY,
    "day": AveragePeriod.DAY,
    "din": AveragePeriod.DAY,
    "roz": AveragePeriod.DAY,
    "rozana": AveragePeriod.DAY,
    "weekly": AveragePeriod.WEEK,
    "week": AveragePeriod.WEEK,
    "hafte": AveragePeriod.WEEK,
    "hafta": AveragePeriod.WEEK,
    "monthly": AveragePeriod.MONTH,
    "month": AveragePeriod.MONTH,
    "mahine": AveragePeriod.MONTH,
    "mahina": AveragePeriod.MONTH,
    "yearly": AveragePeriod.YEAR,
    "annual": AveragePeriod.YEAR,
    "year": AveragePeriod.YEAR,
    "saal": AveragePeriod.YEAR,
}

# Regex fragments. UNIT is followed by a negative lookahead rather than \b
# because the mixed-script token ends in a combining vowel sign.
QUAL = r"(?:this|last|previous|is|iss|pichhle|pichle)"
UNIT = r"(?:week|month|year|hafte|hafta|haftे|mahine|mahina|saal)(?![a-z])"
CURRENCY = r"(?:rs\.?|inr|rupees?|rupay|rupaye)"
AMOUNT = r"(?:(?:rs\.?|inr|₹|rupees?)\s*)?(?P<amount>\d[\d,]*)"
ADD_VERB = r"(?:add\s*karo|add\s*kar\s*do|kharch\s*kar\s*do|jod\s*do|jodo)"
CONNECTOR = r"(?:ke\s+liye|mein|me|par|pe)"
SPEND = r"(?:kharcha|kharch|spend)"

_QUALIFIED_RE = re.compile(rf"\b(?P<qual>{QUAL})\s+(?P<unit>{UNIT})")
_DAY_RE = re.compile(r"\b(?P<day>today|aaj|yesterday|kal)\b")
_AVERAGE_UNIT_RE = re.compile(r"\b(" + "|".join(AVERAGE_TOKENS) + r")\b")

# Words stripped from the edges of a captured description or category.
FILLER_WORDS = frozenset({
    "ke", "liye", "mein", "me", "par", "pe", "per", "ka", "ki", "ko",
    "for", "on", "to", "in", "at", "the", "my", "maine", "mera", "meri",
    "rs", "rs.", "inr", "₹", "rupee", "rupees", "rupay", "rupaye",
    "kul", "total",
})


# =============================================================================
# RULE TYPE
# =============================================================================

Extractor = Callable[[re.Match], Optional[dict]]


@dataclass(frozen=True)
class IntentRule:
    """One phrasing the parser understands."""

    priority: int
    name: str
    action: IntentAction
    pattern: Pattern[str]
    extract: Extractor


# =============================================================================
# SLOT HELPERS
# =============================================================================

def clean_phrase(raw: Optional[str]) -> str:
    """Strip connector, filler and currency words from both ends."""
    if not raw:
        return ""
    words = raw.strip(" ,.?!").split()
    while words and words[0] in FILLER_WORDS:
        words.pop(0)
    while words and words[-1] in FILLER_WORDS:
        words.pop()
    return " ".join(words)


def parse_amount(raw: Optional[str]) -> Optional[int]:
    if not raw:
        return None
    try:
        value = int(raw.replace(",", ""))
    except ValueError:
        return None
    return value if value > 0 else None


def period_slots(qual: Optional[str], unit: Optional[str]) -> dict:
    """Map free-form qualifier/unit tokens to canonical period slots."""
    period = PERIOD_TOKENS.get(unit or "", Period.MONTH)
    which = WHICH_TOKENS.get(qual or "", Which.THIS)
    return {"period": period, "which": which}


def find_period(text: str) -> dict:
    """
    Look for a period anywhere in the text.

    A day word wins over a qualified unit. Defaults to this month.
    """
    day = _DAY_RE.search(text)
    if day:
        return {"period": PERIOD_TOKENS[day.group("day")], "which": Which.THIS}
    qualified = _QUALIFIED_RE.search(text)
    if qualified:
        return period_slots(qualified.group("qual"), qualified.group("unit"))
    return {"period": Period.MONTH, "which": Which.THIS}


def _limit(raw: Optional[str]) -> dict:
    value = parse_amount(raw)
    return {"limit": value} if value else {}


# =============================================================================
# EXTRACTORS
# =============================================================================

def _extract_add_expense(match: re.Match) -> Optional[dict]:
    groups = match.groupdict()
    amount = parse_amount(groups.get("amount"))
    description = clean_phrase(groups.get("desc")) or clean_phrase(groups.get("desc_after"))
    if amount is None or not description:
        return None
    return {"amount": amount, "description": description}


def _extract_day_category(match: re.Match) -> Optional[dict]:
    category = clean_phrase(match.group("category"))
    return {
        "category": category or "all",
        "period": PERIOD_TOKENS[match.group("day")],
        "which": Which.THIS,
    }


def _extract_day_total(match: re.Match) -> Optional[dict]:
    return {
        "category": "all",
        "period": PERIOD_TOKENS[match.group("day")],
        "which": Which.THIS,
    }


def _extract_period_total(match: re.Match) -> Optional[dict]:
    return {"category": "all", **period_slots(match.group("qual"), match.group("unit"))}


def _extract_period_summary(match: re.Match) -> Optional[dict]:
    return period_slots(match.group("qual"), match.group("unit"))


def _extract_summary(match: re.Match) -> Optional[dict]:
    return find_period(match.string)


def _extract_category_period(match: re.Match) -> Optional[dict]:
    groups = match.groupdict()
    category = groups["category"]

    if groups.get("day"):
        slots = {"period": PERIOD_TOKENS[groups["day"]], "which": Which.THIS}
    elif groups.get("unit"):
        slots = period_slots(groups.get("qual"), groups["unit"])
    else:
        # The period may come before the category: "last week on food".
        inline = _QUALIFIED_RE.search(category)
        day = _DAY_RE.search(category)
        if inline:
            slots = period_slots(inline.group("qual"), inline.group("unit"))
            category = category[: inline.start()] + category[inline.end():]
        elif day:
            slots = {"period": PERIOD_TOKENS[day.group("day")], "which": Which.THIS}
            category = category[: day.start()] + category[day.end():]
        else:
            slots = {"period": Period.MONTH, "which": Which.THIS}

    category = clean_phrase(category)
    return {"category": category or "all", **slots}


def _extract_with_period(match: re.Match) -> Optional[dict]:
    return find_period(match.string)


def _extract_last_expenses(match: re.Match) -> Optional[dict]:
    return _limit(match.group("limit"))


def _extract_top_categories(match: re.Match) -> Optional[dict]:
    return {**_limit(match.group("limit")), **find_period(match.string)}


def _extract_compare(match: re.Match) -> Optional[dict]:
    return {
        "base": period_slots(match.group("base_qual"), match.group("base_unit")),
        "vs": period_slots(match.group("vs_qual"), match.group("vs_unit")),
    }


def _extract_average(match: re.Match) -> Optional[dict]:
    unit = _AVERAGE_UNIT_RE.search(match.string)
    period = AVERAGE_TOKENS[unit.group(1)] if unit else AveragePeriod.MONTH
    return {"period": period}


# =============================================================================
# THE TABLE
# =============================================================================

def _rule(priority, name, action, pattern, extract) -> IntentRule:
    return IntentRule(priority, name, action, re.compile(pattern), extract)


_COMPARE_PAIR = (
    rf"(?P<base_qual>{QUAL})\s+(?P<base_unit>{UNIT})\s+{{connector}}\s+"
    rf"(?P<vs_qual>{QUAL})\s+(?P<vs_unit>{UNIT})"
)

DEFAULT_RULES: tuple[IntentRule, ...] = (
    # --- Add expense -------------------------------------------------------
    _rule(
        10, "add_for", IntentAction.ADD_EXPENSE,
        rf"\badd\s+{AMOUNT}\s*{CURRENCY}?\s+(?:for|to|in|on)\s+(?P<desc>.+)",
        _extract_add_expense,
    ),
    _rule(
        11, "spent_on", IntentAction.ADD_EXPENSE,
        rf"\bspent\s+{AMOUNT}\s*{CURRENCY}?\s+(?:on|for|at)\s+(?P<desc>.+)",
        _extract_add_expense,
    ),
    _rule(
        12, "amount_then_verb", IntentAction.ADD_EXPENSE,
        rf"{AMOUNT}\s*{CURRENCY}?\s+(?:(?P<desc>.+?)\s+{CONNECTOR}\s+)?{ADD_VERB}"
        rf"(?:\s+(?:for|on|{CONNECTOR}))?(?:\s+(?P<desc_after>.+))?",
        _extract_add_expense,
    ),
    _rule(
        13, "description_then_amount", IntentAction.ADD_EXPENSE,
        rf"^(?P<desc>.+?)\s+{CONNECTOR}\s+{AMOUNT}\s*{CURRENCY}?\s*{ADD_VERB}",
        _extract_add_expense,
    ),

    # --- Category on a single day -----------------------------------------
    _rule(
        20, "day_category", IntentAction.QUERY_SPENDING,
        rf"\b(?P<day>aaj|kal)\s+(?P<category>.+?)\s+(?:par|pe|per)\s+kitna\s+{SPEND}\s+(?:hua|kiya)",
        _extract_day_category,
    ),

    # --- Total on a single day --------------------------------------------
    _rule(
        30, "day_total_hi", IntentAction.QUERY_SPENDING,
        rf"\b(?P<day>aaj|kal)\s+(?:maine\s+|mera\s+)?"
        rf"(?:kitna\s+{SPEND}|ka\s+(?:kul\s+)?(?:kharcha|kharch)\s+kitna)",
        _extract_day_total,
    ),
    _rule(
        31, "day_total_en", IntentAction.QUERY_SPENDING,
        r"\bhow\s+much\s+(?:did\s+i\s+spend\s+|have\s+i\s+spent\s+|i\s+spent\s+)?"
        r"(?P<day>today|yesterday)$",
        _extract_day_total,
    ),

    # --- Week / month / year totals ---------------------------------------
    _rule(
        40, "period_total_summary", IntentAction.GET_SUMMARY,
        rf"\b(?P<qual>{QUAL})\s+(?P<unit>{UNIT})(?:\s+(?:ka|ki|mera|meri))?\s+"
        rf"(?:total|kul)\s+(?:kharcha|kharch|expenses?|spending)",
        _extract_period_summary,
    ),
    _rule(
        41, "summary", IntentAction.GET_SUMMARY,
        r"\b(?:summary|overview|hisaab)\b",
        _extract_summary,
    ),
    _rule(
        42, "period_total_hi", IntentAction.QUERY_SPENDING,
        rf"\b(?P<qual>{QUAL})\s+(?P<unit>{UNIT})\s+(?:maine\s+)?kitna\s+{SPEND}",
        _extract_period_total,
    ),
    _rule(
        43, "period_total_en", IntentAction.QUERY_SPENDING,
        r"\bhow\s+much\s+(?:did\s+i\s+spend|have\s+i\s+spent|i\s+spent)\s+(?:in\s+)?"
        r"(?P<qual>this|last)\s+(?P<unit>week|month|year)$",
        _extract_period_total,
    ),

    # --- Category in a week / month / year --------------------------------
    _rule(
        50, "category_period_hi", IntentAction.QUERY_SPENDING,
        rf"^(?P<category>.+?)\s+(?:par|pe|per)\s+kitna\s+{SPEND}(?:\s+(?:hua|kiya))?"
        rf"(?:\s+(?P<qual>{QUAL})\s+(?P<unit>{UNIT}))?",
        _extract_category_period,
    ),

    # --- Fixed phrases ----------------------------------------------------
    _rule(
        60, "biggest_expense", IntentAction.BIGGEST_EXPENSE,
        r"\b(?:sabse\s+(?:bada|badaa)\s+kharcha|(?:biggest|largest|highest)\s+expense)",
        _extract_with_period,
    ),
    _rule(
        61, "savings", IntentAction.SAVINGS,
        r"\b(?:kitni\s+(?:savings?|bachat)|kitna\s+bacha\w*|"
        r"how\s+much\s+(?:did|have)\s+i\s+saved?|savings?|bachat)\b",
        _extract_with_period,
    ),
    _rule(
        62, "last_expenses", IntentAction.LAST_EXPENSES,
        r"\b(?:pichhle|pichle|last|aakhri|recent)\s+(?:(?P<limit>\d+)\s+)?"
        r"(?:expenses?|kharche|transactions?)\b",
        _extract_last_expenses,
    ),
    _rule(
        63, "top_categories", IntentAction.TOP_CATEGORIES,
        r"\btop\s+(?:(?P<limit>\d+)\s+)?categor(?:y|ies)\b",
        _extract_top_categories,
    ),
    _rule(
        64, "compare", IntentAction.COMPARE_PERIODS,
        r"\bcompare\s+" + _COMPARE_PAIR.format(connector=r"(?:with|to|and|vs\.?|versus)"),
        _extract_compare,
    ),
    _rule(
        65, "versus", IntentAction.COMPARE_PERIODS,
        _COMPARE_PAIR.format(connector=r"(?:vs\.?|versus)"),
        _extract_compare,
    ),
    _rule(
        66, "tulna", IntentAction.COMPARE_PERIODS,
        _COMPARE_PAIR.format(connector=r"(?:aur|ko)")
        + r"(?:\s+(?:ki|se|ke\s+saath))?\s+(?:tulna|compare)",
        _extract_compare,
    ),
    _rule(
        67, "average", IntentAction.AVG_SPENDING,
        r"\b(?:average|avg|ausat)\b",
        _extract_average,
    ),
    _rule(
        68, "category_period_en", IntentAction.QUERY_SPENDING,
        r"\bhow\s+much\s+(?:did\s+i\s+spend|have\s+i\s+spent|i\s+spent)\s+(?:on\s+)?"
        r"(?P<category>.+?)(?:\s+(?P<qual>this|last)\s+(?P<unit>week|month|year)"
        r"|\s+(?P<day>today|yesterday))?$",
        _extract_category_period,
    ),
)
