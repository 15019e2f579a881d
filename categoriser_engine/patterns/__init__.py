"""
Category Pattern Definitions for the adaptive categoriser.

Contains the seed keywords, amount bands and weighted rules for:
- Everyday spending (groceries, dining, transportation, shopping, entertainment)
- Household bills (utilities, healthcare)
- Banking activity and income
"""

from .category_patterns import (
    DEFAULT_CATEGORY_PATTERNS,
    STOP_WORDS,
    FALLBACK_KEYWORD_RULES,
)

__all__ = [
    "DEFAULT_CATEGORY_PATTERNS",
    "STOP_WORDS",
    "FALLBACK_KEYWORD_RULES",
]
