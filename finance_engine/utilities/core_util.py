#!/usr/bin/env python3
"""
Core Utilities

Features:
- String helpers
- Order-preserving frequency selection
- Money rounding
"""

from __future__ import annotations

from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
from typing import Hashable, Iterable, Optional, TypeVar

from .constants import MONEY_QUANTUM

T = TypeVar("T", bound=Hashable)


def is_null_or_whitespace(s: Optional[str]) -> bool:
    """Check if a string is None, empty, or consists only of whitespace."""
    return s is None or s.strip() == ""


def contains_casefold(haystack: Optional[str], needle: str) -> bool:
    return needle.casefold() in (haystack or "").casefold()


def most_common_first_seen(values: Iterable[T]) -> Optional[T]:
    """
    Return the most frequent value; ties go to the value seen first.

    ``Counter.most_common`` already orders equal counts by first insertion,
    which gives the tie-break for free.
    """
    counts = Counter(values)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def round_money(value: Decimal) -> Decimal:
    """Round to cents, halves away from zero."""
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
