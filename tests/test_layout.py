import unittest

from rental_invoice.layout import build_layout
from rental_invoice.models import Invoice, LineItem, Tenant
from rental_invoice.pdf_constants import (
    BLOCKS_Y,
    FONT_SIZE_BODY,
    FONT_SIZE_HEADING,
    ITEMS_START_Y,
    LINE_H,
    SUMMARY_RULE_Y,
    SUMMARY_X,
    TENANT_X,
    X_LEFT,
    X_RIGHT,
)


class FixedWidthFonts:
    """Every glyph is half the font size wide; bold adds ten percent."""

    def text_width(self, text: str, size: int, bold: bool = False) -> float:
        width = len(text) * size * 0.5
        return width * 1.1 if bold else width


def make_invoice(items, reference=None) -> Invoice:
    return Invoice.create(
        invoice_id="2026-0001",
        number="0001",
        year=2026,
        invoice_date="2026-03-01",
        tenant=Tenant(name="Lucía Pérez", dni="12345678Z", address="Calle Mayor 5, Madrid"),
        items=tuple(items),
        reference=reference,
    )


class LayoutTests(unittest.TestCase):
    def setUp(self) -> None:
        self.fonts = FixedWidthFonts()

    def only(self, layout, text):
        runs = layout.find(text)
        self.assertEqual(len(runs), 1, f"expected one run for {text!r}, got {runs}")
        return runs[0]

    def test_multiline_description_aligns_amount_with_last_line(self) -> None:
        layout = build_layout(make_invoice([LineItem("A\nB", 2, 50), LineItem("Next", 1, 1)]), self.fonts)

        first = self.only(layout, "A")
        second = self.only(layout, "B")
        amount = self.only(layout, "100.00 €")
        following = self.only(layout, "Next")

        self.assertEqual(first.y, ITEMS_START_Y)
        self.assertEqual(second.y, ITEMS_START_Y + LINE_H)
        self.assertEqual(amount.y, second.y)
        self.assertEqual(following.y, ITEMS_START_Y + LINE_H * 2)
        self.assertAlmostEqual(amount.x + self.fonts.text_width(amount.text, FONT_SIZE_BODY), X_RIGHT)

    def test_literal_backslash_n_marker_splits_and_trims(self) -> None:
        layout = build_layout(make_invoice([LineItem("Alquiler \\n Marzo 2026", 1, 10)]), self.fonts)

        self.assertEqual(self.only(layout, "Alquiler").y, ITEMS_START_Y)
        self.assertEqual(self.only(layout, "Marzo 2026").y, ITEMS_START_Y + LINE_H)
        self.assertEqual(self.only(layout, "10.00 €").y, ITEMS_START_Y + LINE_H)

    def test_single_line_items_advance_one_and_a_half_lines(self) -> None:
        layout = build_layout(make_invoice([LineItem("Uno", 1, 1), LineItem("Dos", 1, 2)]), self.fonts)

        self.assertEqual(self.only(layout, "Uno").y, ITEMS_START_Y)
        self.assertEqual(self.only(layout, "Dos").y, ITEMS_START_Y + LINE_H * 1.5)
        self.assertEqual(self.only(layout, "1.00 €").y, ITEMS_START_Y)

    def test_summary_block_is_fixed_and_right_aligned(self) -> None:
        few = build_layout(make_invoice([LineItem("Rent", 1, 600), LineItem("Garage", 2, 200)]), self.fonts)
        many = build_layout(make_invoice([LineItem(f"Item {n}", 1, 100) for n in range(10)]), self.fonts)

        for layout in (few, many):
            subtotal = self.only(layout, "1000.00 €")
            iva = self.only(layout, "210.00 €")
            irpf = self.only(layout, "-190.00 €")
            total = self.only(layout, "1020.00 €")

            self.assertAlmostEqual(subtotal.y, SUMMARY_RULE_Y + LINE_H)
            self.assertAlmostEqual(iva.y, SUMMARY_RULE_Y + LINE_H * 2)
            self.assertAlmostEqual(irpf.y, SUMMARY_RULE_Y + LINE_H * 3)
            self.assertAlmostEqual(total.y, SUMMARY_RULE_Y + LINE_H * 4.5)
            self.assertTrue(total.bold)
            for run in (subtotal, iva, irpf):
                self.assertAlmostEqual(run.x + self.fonts.text_width(run.text, FONT_SIZE_BODY), X_RIGHT)
            self.assertAlmostEqual(
                total.x + self.fonts.text_width(total.text, FONT_SIZE_HEADING, bold=True),
                X_RIGHT,
            )
            self.assertEqual(self.only(layout, "TOTAL FACTURA:").x, SUMMARY_X)

    def test_issuer_and_tenant_blocks_start_at_same_offset(self) -> None:
        layout = build_layout(make_invoice([LineItem("Rent", 1, 1000)]), self.fonts)

        issuer = self.only(layout, "EMISOR:")
        tenant = self.only(layout, "CLIENTE (ARRENDATARIO):")

        self.assertEqual((issuer.x, issuer.y), (X_LEFT, BLOCKS_Y))
        self.assertEqual((tenant.x, tenant.y), (TENANT_X, BLOCKS_Y))
        self.assertEqual(self.only(layout, "Lucía Pérez").y, BLOCKS_Y + LINE_H)
        self.assertEqual(self.only(layout, "DNI: 12345678Z").y, BLOCKS_Y + LINE_H * 2)

    def test_header_shows_number_and_formatted_date(self) -> None:
        layout = build_layout(make_invoice([LineItem("Rent", 1, 1)]), self.fonts)

        self.only(layout, "Factura Nº: 0001")
        self.only(layout, "Fecha: 01/03/2026")

    def test_manual_reference_replaces_displayed_number(self) -> None:
        layout = build_layout(make_invoice([LineItem("Rent", 1, 1)], reference="26/03"), self.fonts)

        self.only(layout, "Factura Nº: 26/03")

    def test_footer_follows_total(self) -> None:
        layout = build_layout(make_invoice([LineItem("Rent", 1, 1)]), self.fonts)

        footer = [run for run in layout.texts if run.text.startswith("Forma de Pago:")]

        self.assertEqual(len(footer), 1)
        self.assertAlmostEqual(footer[0].y, SUMMARY_RULE_Y + LINE_H * 7.5)

    def test_layout_is_idempotent(self) -> None:
        invoice = make_invoice([LineItem("A\nB", 2, 50), LineItem("Rent", 1, 1000)])

        self.assertEqual(build_layout(invoice, self.fonts), build_layout(invoice, self.fonts))


if __name__ == "__main__":
    unittest.main()
