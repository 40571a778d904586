"""Fixed-rate tax arithmetic for rental invoices."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .models import LineItem

IVA_RATE = 0.21
IRPF_RATE = 0.19


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: float
    iva: float
    irpf: float
    total: float


def line_total(item: LineItem) -> float:
    return item.quantity * item.price


def compute_totals(items: Iterable[LineItem]) -> InvoiceTotals:
    """Return subtotal, VAT, withholding and total for ``items``.

    VAT is added to the subtotal and withholding is subtracted from it. No
    rounding is applied; amounts are rounded only when formatted.
    """
    subtotal = 0.0
    for item in items:
        subtotal += line_total(item)

    iva = subtotal * IVA_RATE
    irpf = subtotal * IRPF_RATE
    return InvoiceTotals(
        subtotal=subtotal,
        iva=iva,
        irpf=irpf,
        total=subtotal + iva - irpf,
    )
