"""
Kharcha - Conversational Command & Forecasting Engine

The engine behind a bilingual (English / Hindi / Hinglish) personal
finance assistant. It turns spoken or typed commands into expense
queries and forecasts next month's spending.

DESIGN PRINCIPLES:
1. Rules decide, not guesses: every intent comes from an ordered rule table
2. One authority for dates: all ranges come from the temporal resolver
3. Storage layer is swappable
4. Every command is auditable
"""

__version__ = "1.0.0"
__author__ = "Kharcha Team"
