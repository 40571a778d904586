"""Invoice PDF rendering."""

from __future__ import annotations

from fpdf import FPDF  # type: ignore

from .errors import RenderError
from .fonts import FontManager
from .layout import DocumentLayout, build_layout
from .models import Invoice
from .pdf_constants import COLOR_RULE, COLOR_TEXT, PAGE_FORMAT


class InvoiceRenderer:
    def __init__(self, invoice: Invoice) -> None:
        self.invoice = invoice
        self.pdf = FPDF(unit="pt", format=PAGE_FORMAT)
        self.pdf.set_auto_page_break(False)
        self.pdf.add_page()
        self.fonts = FontManager(self.pdf)

    def layout(self) -> DocumentLayout:
        return build_layout(self.invoice, self.fonts)

    def _paint(self, layout: DocumentLayout) -> None:
        self.pdf.set_draw_color(*COLOR_RULE)
        for rule in layout.rules:
            self.pdf.set_line_width(rule.width)
            self.pdf.line(rule.x1, rule.y1, rule.x2, rule.y2)

        for run in layout.texts:
            self.fonts.draw_text(run.x, run.y, run.text, run.size, COLOR_TEXT, bold=run.bold)

    def render(self) -> bytes:
        self._paint(self.layout())

        pdf_blob = self.pdf.output()
        if isinstance(pdf_blob, (bytes, bytearray)):
            return bytes(pdf_blob)
        if isinstance(pdf_blob, str):
            try:
                return pdf_blob.encode("latin-1")
            except UnicodeEncodeError as exc:
                raise RenderError(
                    "PDF serialization failed due to non-Latin-1 content. "
                    "Check Unicode font configuration (INVOICE_FONT_PATH/INVOICE_FONT_BOLD_PATH)."
                ) from exc
        raise RenderError(f"Unexpected PDF output type: {type(pdf_blob).__name__}")


def render_invoice(invoice: Invoice) -> bytes:
    return InvoiceRenderer(invoice).render()
