"""
Temporal Package

The single authority for turning relative periods into date bounds.
"""

from kharcha.temporal.resolver import (
    days_in_month,
    end_of_day,
    month_range,
    month_to_date,
    months_back,
    range_length_days,
    resolve,
    start_of_day,
    trailing_days,
    year_to_date,
)

__all__ = [
    "days_in_month",
    "end_of_day",
    "month_range",
    "month_to_date",
    "months_back",
    "range_length_days",
    "resolve",
    "start_of_day",
    "trailing_days",
    "year_to_date",
]
