"""Formatting helpers and the text-measurement protocol used by the layout."""

from __future__ import annotations

import re
from typing import List, Protocol

from dateutil import parser as dateutil_parser

from .pdf_constants import CURRENCY_SUFFIX

ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")
LINE_BREAK_RE = re.compile(r"\\n|\n")


class TextWidthProvider(Protocol):
    def text_width(self, text: str, size: int, bold: bool = False) -> float:
        ...


def fmt_amount(amount: float) -> str:
    return f"{amount:.2f} {CURRENCY_SUFFIX}"


def fmt_deduction(amount: float) -> str:
    return f"-{fmt_amount(amount)}"


def fmt_date(raw: str) -> str:
    """Render ISO dates as 'dd/mm/yyyy'; any other text is shown as given."""
    raw = raw.strip()
    if not ISO_DATE_RE.match(raw):
        return raw
    try:
        return dateutil_parser.isoparse(raw).strftime("%d/%m/%Y")
    except (ValueError, OverflowError):
        return raw


def has_line_breaks(text: str) -> bool:
    return LINE_BREAK_RE.search(text) is not None


def split_description(text: str) -> List[str]:
    """Split on real newlines and literal ``\\n`` markers, trimming each line.

    Blank lines are kept so that each marker consumes one line of height.
    """
    return [line.strip() for line in LINE_BREAK_RE.split(text)]


def right_aligned_x(fonts: TextWidthProvider, right: float, text: str, size: int, bold: bool = False) -> float:
    return right - fonts.text_width(text, size, bold=bold)
