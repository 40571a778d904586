"""Item table capacity on the single invoice page.

Invoices are not paginated; item lists that would run into the fixed
summary block are rejected up front.
"""

from __future__ import annotations

from typing import Iterable

from .formatting import has_line_breaks, split_description
from .pdf_constants import ITEMS_START_Y, LINE_H, SINGLE_ITEM_ADVANCE, SUMMARY_RULE_Y

# Lowest baseline an item line may use and still clear the summary rule.
TABLE_BOTTOM_Y = SUMMARY_RULE_Y - LINE_H


def item_advance(description: str) -> float:
    if has_line_breaks(description):
        return LINE_H * len(split_description(description))
    return SINGLE_ITEM_ADVANCE


def last_baseline(descriptions: Iterable[str]) -> float:
    """Baseline of the lowest line drawn for ``descriptions``."""
    y = ITEMS_START_Y
    lowest = None
    for description in descriptions:
        if has_line_breaks(description):
            line_count = len(split_description(description))
            lowest = y + LINE_H * (line_count - 1)
        else:
            lowest = y
        y += item_advance(description)
    return ITEMS_START_Y if lowest is None else lowest


def fits_on_page(descriptions: Iterable[str]) -> bool:
    return last_baseline(descriptions) <= TABLE_BOTTOM_Y


def max_single_line_items() -> int:
    return int((TABLE_BOTTOM_Y - ITEMS_START_Y) // SINGLE_ITEM_ADVANCE) + 1
