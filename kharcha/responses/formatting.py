"""
Formatting helpers shared by the English and Hindi templates.

Amounts use Indian digit grouping (1,23,456.5) with at most two decimals
and no trailing zeros. Time phrases turn (period, which) into words;
"today"/"aaj" and "yesterday"/"kal" are special-cased, everything else
is "<which> <period>".
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from kharcha.models.expense import AveragePeriod, Period, Which


Number = Union[int, float, Decimal]

_HINDI_PERIODS = {
    "day": "din",
    "week": "hafte",
    "month": "mahine",
    "year": "saal",
}


def _value(member) -> str:
    return getattr(member, "value", member)


def format_amount(value: Number) -> str:
    """Format a money amount with lakh/crore grouping."""
    amount = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""

    whole, _, fraction = f"{abs(amount):.2f}".partition(".")
    fraction = fraction.rstrip("0")

    # Last three digits form one group, the rest go in pairs
    head, tail = whole[:-3], whole[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)

    grouped = ",".join(groups + [tail])
    return f"{sign}{grouped}.{fraction}" if fraction else f"{sign}{grouped}"


def round_percent(value: Number) -> int:
    return int(Decimal(str(abs(value))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def short_date(moment: datetime) -> str:
    """Two-digit day and abbreviated month, e.g. "05 Oct"."""
    return moment.strftime("%d %b")


def time_phrase_en(period: Union[Period, str], which: Union[Which, str]) -> str:
    period, which = _value(period), _value(which)
    if period == "today":
        return "yesterday" if which == "last" else "today"
    if period == "yesterday":
        return "yesterday"
    return f"{which} {period}"


def time_phrase_hi(period: Union[Period, str], which: Union[Which, str]) -> str:
    period, which = _value(period), _value(which)
    if period == "today":
        return "kal" if which == "last" else "aaj"
    if period == "yesterday":
        return "kal"
    which_hi = "pichhle" if which == "last" else "is"
    return f"{which_hi} {_HINDI_PERIODS.get(period, 'mahine')}"


def period_hi(period: Union[AveragePeriod, str]) -> str:
    return _HINDI_PERIODS.get(_value(period), "mahine")


def capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:] if text else text


def plural(count: int, word: str, many: Optional[str] = None) -> str:
    if count == 1:
        return word
    return many or f"{word}s"
