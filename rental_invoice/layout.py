"""Placement of every text run and rule on the invoice page.

The layout is computed before anything is drawn so that it can be checked
independently of the PDF backend. Given the same invoice and the same font
metrics it always yields the same coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from .formatting import (
    TextWidthProvider,
    fmt_amount,
    fmt_date,
    fmt_deduction,
    has_line_breaks,
    right_aligned_x,
    split_description,
)
from .models import Invoice, LineItem
from .pdf_constants import (
    AMOUNT_HEADING,
    BANK_ACCOUNT,
    BLOCKS_Y,
    DATE_LABEL,
    DESCRIPTION_HEADING,
    FONT_SIZE_BODY,
    FONT_SIZE_HEADING,
    FONT_SIZE_TITLE,
    FOOTER_GAP,
    HEADER_META_X,
    ISSUER_LABEL,
    ISSUER_LINES,
    ITEMS_START_Y,
    IRPF_LABEL,
    IVA_LABEL,
    LINE_H,
    NUMBER_LABEL,
    PAYMENT_PREFIX,
    SINGLE_ITEM_ADVANCE,
    SUBTOTAL_LABEL,
    SUMMARY_RULE_W,
    SUMMARY_RULE_Y,
    SUMMARY_X,
    TABLE_HEADER_Y,
    TABLE_RULE_W,
    TABLE_RULE_Y,
    TENANT_LABEL,
    TENANT_X,
    TITLE,
    TITLE_Y,
    TOTAL_GAP,
    TOTAL_LABEL,
    X_LEFT,
    X_RIGHT,
)


@dataclass(frozen=True)
class TextRun:
    x: float
    y: float
    text: str
    size: int
    bold: bool = False


@dataclass(frozen=True)
class Rule:
    x1: float
    y1: float
    x2: float
    y2: float
    width: float


@dataclass(frozen=True)
class DocumentLayout:
    texts: Tuple[TextRun, ...]
    rules: Tuple[Rule, ...]

    def find(self, text: str) -> List[TextRun]:
        return [run for run in self.texts if run.text == text]


class InvoiceLayout:
    def __init__(self, invoice: Invoice, fonts: TextWidthProvider) -> None:
        self.invoice = invoice
        self.fonts = fonts
        self.texts: List[TextRun] = []
        self.rules: List[Rule] = []

    def _text(self, x: float, y: float, text: str, size: int = FONT_SIZE_BODY, bold: bool = False) -> None:
        self.texts.append(TextRun(x=x, y=y, text=text, size=size, bold=bold))

    def _text_right(self, y: float, text: str, size: int = FONT_SIZE_BODY, bold: bool = False) -> None:
        self._text(right_aligned_x(self.fonts, X_RIGHT, text, size, bold=bold), y, text, size, bold)

    def _rule(self, x1: float, y: float, x2: float, width: float) -> None:
        self.rules.append(Rule(x1=x1, y1=y, x2=x2, y2=y, width=width))

    def _place_header(self) -> None:
        self._text(X_LEFT, TITLE_Y, TITLE, FONT_SIZE_TITLE, bold=True)
        self._text(
            HEADER_META_X,
            TITLE_Y,
            f"{NUMBER_LABEL} {self.invoice.display_number}",
            FONT_SIZE_HEADING,
            bold=True,
        )
        self._text(HEADER_META_X, TITLE_Y + LINE_H, f"{DATE_LABEL} {fmt_date(self.invoice.invoice_date)}")

    def _place_parties(self) -> None:
        self._text(X_LEFT, BLOCKS_Y, ISSUER_LABEL, FONT_SIZE_HEADING, bold=True)
        for index, line in enumerate(ISSUER_LINES, start=1):
            self._text(X_LEFT, BLOCKS_Y + LINE_H * index, line)

        tenant = self.invoice.tenant
        self._text(TENANT_X, BLOCKS_Y, TENANT_LABEL, FONT_SIZE_HEADING, bold=True)
        self._text(TENANT_X, BLOCKS_Y + LINE_H, tenant.name)
        self._text(TENANT_X, BLOCKS_Y + LINE_H * 2, f"DNI: {tenant.dni}")
        self._text(TENANT_X, BLOCKS_Y + LINE_H * 3, tenant.address)

    def _place_table_header(self) -> None:
        self._text(X_LEFT, TABLE_HEADER_Y, DESCRIPTION_HEADING, FONT_SIZE_HEADING, bold=True)
        self._text_right(TABLE_HEADER_Y, AMOUNT_HEADING, FONT_SIZE_HEADING, bold=True)
        self._rule(X_LEFT, TABLE_RULE_Y, X_RIGHT, TABLE_RULE_W)

    def _place_item(self, y: float, item: LineItem) -> float:
        amount_text = fmt_amount(item.amount)
        if not has_line_breaks(item.description):
            self._text(X_LEFT, y, item.description)
            self._text_right(y, amount_text)
            return y + SINGLE_ITEM_ADVANCE

        lines = split_description(item.description)
        for index, line in enumerate(lines):
            self._text(X_LEFT, y + LINE_H * index, line)
        self._text_right(y + LINE_H * (len(lines) - 1), amount_text)
        return y + LINE_H * len(lines)

    def _place_items(self) -> float:
        y = ITEMS_START_Y
        for item in self.invoice.items:
            y = self._place_item(y, item)
        return y

    def _place_summary(self) -> float:
        self._rule(SUMMARY_X, SUMMARY_RULE_Y, X_RIGHT, SUMMARY_RULE_W)

        y = SUMMARY_RULE_Y + LINE_H
        self._text(SUMMARY_X, y, SUBTOTAL_LABEL)
        self._text_right(y, fmt_amount(self.invoice.subtotal))

        y += LINE_H
        self._text(SUMMARY_X, y, IVA_LABEL)
        self._text_right(y, fmt_amount(self.invoice.iva))

        y += LINE_H
        self._text(SUMMARY_X, y, IRPF_LABEL)
        self._text_right(y, fmt_deduction(self.invoice.irpf))

        y += TOTAL_GAP
        self._text(SUMMARY_X, y, TOTAL_LABEL, FONT_SIZE_HEADING, bold=True)
        self._text_right(y, fmt_amount(self.invoice.total), FONT_SIZE_HEADING, bold=True)
        return y

    def _place_footer(self, total_y: float) -> None:
        self._text(X_LEFT, total_y + FOOTER_GAP, f"{PAYMENT_PREFIX} {BANK_ACCOUNT}")

    def build(self) -> DocumentLayout:
        self.texts = []
        self.rules = []
        self._place_header()
        self._place_parties()
        self._place_table_header()
        self._place_items()
        total_y = self._place_summary()
        self._place_footer(total_y)
        return DocumentLayout(texts=tuple(self.texts), rules=tuple(self.rules))


def build_layout(invoice: Invoice, fonts: TextWidthProvider) -> DocumentLayout:
    return InvoiceLayout(invoice, fonts).build()
