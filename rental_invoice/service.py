"""Single code path for issuing an invoice.

One submission moves through the stages below in order. A failure ends the
request with one error tagged with the last stage reached; nothing is retried
and no partial result is returned. In particular, a failed save
stops the pipeline before any document is rendered.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from .errors import InvoiceError, NumberingError, PersistenceError, RenderError, UnknownError, ValidationError
from .models import Invoice
from .numbering import NumberingService
from .repository import InvoiceRepository, NullRepository
from .taxes import compute_totals
from .validation import parse_invoice_request

Renderer = Callable[[Invoice], bytes]
Clock = Callable[[], datetime]


class Stage(str, enum.Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    COMPUTED = "computed"
    NUMBERED = "numbered"
    PERSISTED = "persisted"
    RENDERED = "rendered"
    RESPONDED = "responded"


@dataclass(frozen=True)
class IssuedInvoice:
    invoice: Invoice
    pdf: bytes
    filename: str


def build_filename(invoice_id: str, issued_at: datetime) -> str:
    return f"factura-{invoice_id}-{int(issued_at.timestamp() * 1000)}.pdf"


def _default_renderer(invoice: Invoice) -> bytes:
    from .rendering import render_invoice

    return render_invoice(invoice)


class InvoiceService:
    def __init__(
        self,
        numbering: NumberingService,
        repository: Optional[InvoiceRepository] = None,
        renderer: Optional[Renderer] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.numbering = numbering
        self.repository = repository or NullRepository()
        self.renderer = renderer or _default_renderer
        self.clock = clock or datetime.now

    def issue(self, payload: Dict[str, Any]) -> IssuedInvoice:
        stage = Stage.RECEIVED
        try:
            request = parse_invoice_request(payload)
            stage = Stage.VALIDATED

            totals = compute_totals(request.items)
            stage = Stage.COMPUTED

            now = self.clock()
            year = now.year

            try:
                issued = self.numbering.next_number(year)
            except NumberingError:
                raise
            except Exception as exc:
                raise NumberingError(f"Could not obtain an invoice number: {exc}") from exc
            stage = Stage.NUMBERED

            invoice = Invoice.create(
                invoice_id=issued.id,
                number=issued.number,
                year=issued.year,
                invoice_date=request.invoice_date,
                tenant=request.tenant,
                items=request.items,
                reference=request.invoice_number,
                totals=totals,
            )

            try:
                self.repository.save(invoice)
            except PersistenceError:
                raise
            except Exception as exc:
                raise PersistenceError(f"Could not save invoice {invoice.id}: {exc}") from exc
            stage = Stage.PERSISTED

            try:
                pdf = self.renderer(invoice)
            except RenderError:
                raise
            except Exception as exc:
                raise RenderError(f"Could not render invoice {invoice.id}: {exc}") from exc
            stage = Stage.RENDERED

            result = IssuedInvoice(invoice=invoice, pdf=pdf, filename=build_filename(invoice.id, now))
            stage = Stage.RESPONDED
            return result
        except InvoiceError as exc:
            if exc.stage is None:
                exc.stage = stage.value
            raise
        except Exception as exc:
            raise UnknownError(str(exc) or exc.__class__.__name__, stage=stage.value) from exc

    def issued_invoices(self, year: Optional[int] = None) -> Tuple[int, List[Invoice]]:
        """Stored invoices for ``year`` (default: the current year), oldest first."""
        if year is None:
            year = self.clock().year
        elif isinstance(year, bool) or not isinstance(year, int) or year < 1:
            raise ValidationError(f"Invalid year: {year!r}.")
        try:
            return year, self.repository.list_invoices(year)
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(f"Could not list invoices for {year}: {exc}") from exc

    def find_invoice(self, invoice_id: str) -> Optional[Invoice]:
        try:
            return self.repository.get(invoice_id)
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(f"Could not load invoice {invoice_id}: {exc}") from exc
