"""Public package API for rental invoice issuing."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from .taxes import compute_totals

if TYPE_CHECKING:
    from .models import Invoice, Tenant
    from .service import InvoiceService


def render_invoice(invoice: Invoice) -> bytes:
    from .rendering import render_invoice as _render_invoice

    return _render_invoice(invoice)


def run(
    service: InvoiceService,
    host: str = "0.0.0.0",
    port: int = 8080,
    tenants: Optional[List[Tenant]] = None,
) -> None:
    from .server import run as _run

    _run(host, port, service, tenants)


__all__ = ["compute_totals", "render_invoice", "run"]
