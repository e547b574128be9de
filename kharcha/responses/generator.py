"""
Bilingual Response Generator

DESIGN DECISION: Responses are PURE TEMPLATING.
Every number in a reply comes from the query result it is given.
The generator picks a template by action and language and interpolates;
it never reads storage and never recomputes totals.

Hindi replies are Hinglish in Latin script, which is what speech
synthesis on the client reads out most reliably.
"""

from typing import Any, Union

from kharcha.models.expense import (
    AveragePeriod,
    ExpenseRecord,
    Intent,
    IntentAction,
    Language,
    Period,
    Which,
)
from kharcha.models.results import (
    AverageResult,
    ComparisonResult,
    SavingsResult,
    SpendingResult,
    SummaryResult,
)
from kharcha.responses.formatting import (
    capitalize_first,
    format_amount,
    period_hi,
    plural,
    round_percent,
    short_date,
    time_phrase_en,
    time_phrase_hi,
)


HELP_TEXT_HI = """Mujhe sahi samajh nahi aaya. Aise bolein:
- "200 rupay khane mein add karo"
- "Aaj maine kitna kharch kiya?"
- "Kal ka kharcha kitna tha?"
- "Is mahine ka sabse bada kharcha kya hai?"
- "Is hafte top 3 categories batao"
- "Is mahine kitni savings hui?"
- "Pichhle 5 expenses dikhao\""""

HELP_TEXT_EN = """I didn't catch that. Try:
- "Add 200 rupees for food"
- "How much did I spend today?"
- "How much yesterday?"
- "What's my biggest expense this month?"
- "Top 3 categories this week"
- "How much did I save this month?"
- "Show my last 5 expenses\""""

NO_BASELINE_HI = "Aapki income/budget settings nahi mili. Kripya monthly income set karein."
NO_BASELINE_EN = "I couldn't find your income/budget settings. Please set your monthly income."


def help_text(language: Language) -> str:
    return HELP_TEXT_HI if language is Language.HINDI else HELP_TEXT_EN


class ResponseGenerator:
    """Renders query results as English or Hinglish sentences."""

    def render(
        self,
        intent: Intent,
        result: Any,
        language: Union[Language, str] = Language.ENGLISH,
    ) -> str:
        """
        Render the reply for an executed intent.

        Args:
            intent: The parsed intent (used for its action and period slots)
            result: Whatever the query executor returned for it
            language: Reply language

        Returns:
            The reply text
        """
        hindi = Language(language) is Language.HINDI
        action = intent.action
        slots = intent.slots
        period = slots.get("period", Period.MONTH)
        which = slots.get("which", Which.THIS)

        if action is IntentAction.ADD_EXPENSE:
            return self._added(result, hindi)
        elif action is IntentAction.QUERY_SPENDING:
            return self._spending(result, hindi)
        elif action is IntentAction.GET_SUMMARY:
            return self._summary(result, hindi)
        elif action is IntentAction.BIGGEST_EXPENSE:
            return self._biggest(result, period, which, hindi)
        elif action is IntentAction.TOP_CATEGORIES:
            return self._top(result, period, which, hindi)
        elif action is IntentAction.SAVINGS:
            return self._savings(result, hindi)
        elif action is IntentAction.LAST_EXPENSES:
            return self._last(result, hindi)
        elif action is IntentAction.COMPARE_PERIODS:
            return self._compare(result, hindi)
        elif action is IntentAction.AVG_SPENDING:
            return self._average(result, slots.get("period", AveragePeriod.MONTH), hindi)
        return HELP_TEXT_HI if hindi else HELP_TEXT_EN

    # =========================================================================
    # TEMPLATES
    # =========================================================================

    def _added(self, expense: ExpenseRecord, hindi: bool) -> str:
        amount = format_amount(expense.amount)
        category = expense.category.value
        if hindi:
            return f"₹{amount} {category} ke liye jod diya gaya."
        return f"Added ₹{amount} for {category}."

    def _spending(self, data: SpendingResult, hindi: bool) -> str:
        if data.category == "all":
            category = "kul" if hindi else "total"
        else:
            category = data.category

        if data.count == 0:
            if hindi:
                phrase = capitalize_first(time_phrase_hi(data.period, data.which))
                return f"{phrase} {category} par koi kharcha nahi mila."
            return f"You haven't spent anything on {category} {time_phrase_en(data.period, data.which)}."

        transactions = f"{data.count} {plural(data.count, 'transaction')}"
        if hindi:
            return (
                f"{capitalize_first(time_phrase_hi(data.period, data.which))} aapne {category} par "
                f"₹{format_amount(data.total)} kharch kiye, kul {transactions}."
            )
        return (
            f"You spent ₹{format_amount(data.total)} on {category} "
            f"{time_phrase_en(data.period, data.which)} across {transactions}."
        )

    def _summary(self, data: SummaryResult, hindi: bool) -> str:
        transactions = f"{data.count} {plural(data.count, 'transaction')}"
        top = data.top_category

        if hindi:
            text = (
                f"{capitalize_first(time_phrase_hi(data.period, data.which))}, aapne kul "
                f"₹{format_amount(data.total)} kharch kiye, {transactions}."
            )
            if top:
                text += f" Sabse zyada kharcha: {top.name} (₹{format_amount(top.amount)})."
            return text

        text = (
            f"{capitalize_first(time_phrase_en(data.period, data.which))}, you've spent "
            f"₹{format_amount(data.total)} across {transactions}."
        )
        if top:
            text += f" Highest category: {top.name} (₹{format_amount(top.amount)})."
        return text

    def _biggest(self, expense, period, which, hindi: bool) -> str:
        if expense is None:
            if hindi:
                return f"{capitalize_first(time_phrase_hi(period, which))} koi kharcha nahi mila."
            return f"No expenses found {time_phrase_en(period, which)}."

        detail = f" ({expense.description})" if expense.description else ""
        amount = format_amount(expense.amount)
        category = expense.category.value
        if hindi:
            return (
                f"{capitalize_first(time_phrase_hi(period, which))} aapka sabse bada kharcha "
                f"₹{amount} {category} par hua{detail}."
            )
        return f"Your biggest expense {time_phrase_en(period, which)} is ₹{amount} on {category}{detail}."

    def _top(self, ranked, period, which, hindi: bool) -> str:
        if not ranked:
            if hindi:
                return f"{capitalize_first(time_phrase_hi(period, which))} koi spending nahi mili."
            return f"No spending found {time_phrase_en(period, which)}."

        heading = f"{len(ranked)} {plural(len(ranked), 'category', 'categories')}"
        listing = ", ".join(
            f"{position}. {name} ₹{format_amount(amount)}"
            for position, (name, amount) in enumerate(ranked, start=1)
        )
        if hindi:
            phrase = capitalize_first(time_phrase_hi(period, which))
            return f"{phrase} top {heading}: {listing}."
        return f"Top {heading} {time_phrase_en(period, which)}: {listing}."

    def _savings(self, data: SavingsResult, hindi: bool) -> str:
        if data is None:
            return NO_BASELINE_HI if hindi else NO_BASELINE_EN

        amount = format_amount(abs(data.savings))
        baseline = (
            f"(Baseline {data.baseline_type}: ₹{format_amount(data.effective_income)}, "
            f"Expenses: ₹{format_amount(data.total_expenses)}.)"
        )
        if hindi:
            outcome = "bachaaye" if data.saved else "zyada kharch kiye"
            phrase = capitalize_first(time_phrase_hi(data.period, data.which))
            return f"{phrase}, aapne ₹{amount} {outcome}.\n{baseline}"

        outcome = "saved" if data.saved else "overspent by"
        phrase = capitalize_first(time_phrase_en(data.period, data.which))
        return f"{phrase}, you {outcome} ₹{amount}.\n{baseline}"

    def _last(self, expenses: list[ExpenseRecord], hindi: bool) -> str:
        if not expenses:
            return "Koi recent expense nahi mila." if hindi else "No recent expenses found."

        listing = ", ".join(
            f"₹{format_amount(e.amount)} {e.category.value} ({short_date(e.date)})"
            for e in expenses
        )
        if hindi:
            return f"Aakhri {len(expenses)} kharche: {listing}."
        return f"Last {len(expenses)} expenses: {listing}."

    def _compare(self, data: ComparisonResult, hindi: bool) -> str:
        base, vs = data.base, data.vs
        pct = "" if data.pct is None else f" (~{round_percent(data.pct)}%)."
        diff = format_amount(abs(data.diff))

        if hindi:
            trend = "barabar" if data.diff == 0 else "zyada" if data.diff > 0 else "kam"
            return (
                f"{capitalize_first(time_phrase_hi(base.period, base.which))} "
                f"(₹{format_amount(base.total)}) {time_phrase_hi(vs.period, vs.which)} "
                f"(₹{format_amount(vs.total)}) se {trend} hai. Antar: ₹{diff}{pct}"
            )

        trend = "the same as" if data.diff == 0 else "higher than" if data.diff > 0 else "lower than"
        return (
            f"{capitalize_first(time_phrase_en(base.period, base.which))} "
            f"(₹{format_amount(base.total)}) is {trend} {time_phrase_en(vs.period, vs.which)} "
            f"(₹{format_amount(vs.total)}). Difference: ₹{diff}{pct}"
        )

    def _average(self, data: AverageResult, period, hindi: bool) -> str:
        amount = format_amount(data.average)
        if hindi:
            return f"{capitalize_first(period_hi(period))} ka aapka ausat kharcha ₹{amount} hai."
        return f"Your average {AveragePeriod(period).value} spending is ₹{amount}."
