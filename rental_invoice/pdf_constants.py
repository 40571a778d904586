"""Page geometry and fixed document text.

Coordinates are points with a top-left origin. ``y`` values are text
baselines.
"""

from __future__ import annotations

PAGE_FORMAT = "A4"
PAGE_W = 595.28
PAGE_H = 841.89

MARGIN = 50.0
X_LEFT = MARGIN
X_RIGHT = PAGE_W - MARGIN
LINE_H = 18.0
SINGLE_ITEM_ADVANCE = LINE_H * 1.5

# Header column and recipient block offsets from the left margin
HEADER_META_X = X_RIGHT - 150.0
TENANT_X = X_LEFT + 300.0

TITLE_Y = MARGIN
BLOCKS_Y = TITLE_Y + LINE_H * 3
TABLE_HEADER_Y = BLOCKS_Y + LINE_H * 8
TABLE_RULE_Y = TABLE_HEADER_Y + 5.0
ITEMS_START_Y = TABLE_RULE_Y + LINE_H

# Summary block is anchored at a fixed offset so it stays put regardless of
# how many items are listed.
SUMMARY_RULE_Y = PAGE_H - 180.0
SUMMARY_X = X_RIGHT - 200.0
TOTAL_GAP = LINE_H * 1.5
FOOTER_GAP = LINE_H * 3

TABLE_RULE_W = 1.0
SUMMARY_RULE_W = 0.5

FONT_SIZE_TITLE = 18
FONT_SIZE_HEADING = 11
FONT_SIZE_BODY = 10

COLOR_TEXT = (0, 0, 0)
COLOR_RULE = (0, 0, 0)

CURRENCY_SUFFIX = "\u20ac"

TITLE = "FACTURA"
NUMBER_LABEL = "Factura N\u00ba:"
DATE_LABEL = "Fecha:"
ISSUER_LABEL = "EMISOR:"
TENANT_LABEL = "CLIENTE (ARRENDATARIO):"
DESCRIPTION_HEADING = "Descripci\u00f3n"
AMOUNT_HEADING = "Total"
SUBTOTAL_LABEL = "Base Imponible:"
IVA_LABEL = "IVA (21%):"
IRPF_LABEL = "Retenci\u00f3n IRPF (19%):"
TOTAL_LABEL = "TOTAL FACTURA:"
PAYMENT_PREFIX = "Forma de Pago: Transferencia bancaria a la cuenta"

# Fixed issuer identity printed on every invoice
ISSUER_LINES = (
    "Arrendador Ejemplo",
    "DNI: 00000000T",
    "Representante Legal: Nombre Apellido Apellido",
    "DNI Representante Legal: 00000001R",
    "Calle Ejemplo 1, 28001 Madrid",
    "Tel\u00e9fono: 600 000 000",
)
BANK_ACCOUNT = "ES00 0000 0000 0000 0000 0000"
