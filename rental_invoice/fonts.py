"""Font discovery and text drawing helpers."""

from __future__ import annotations

import os
import threading
from typing import List, Optional, Tuple

from fpdf import FPDF  # type: ignore

FONT_INIT_LOCK = threading.Lock()


def find_font_path(env_var: str, candidates: List[str]) -> Optional[str]:
    override = os.getenv(env_var)
    if override and os.path.exists(override):
        return override

    for path in candidates:
        if os.path.exists(path):
            return path
    return None


CORE_FONTS_ENCODING = "windows-1252"


def to_core_text(text: str) -> str:
    """Replace characters the core fonts cannot encode with "?"."""
    return text.encode(CORE_FONTS_ENCODING, "replace").decode(CORE_FONTS_ENCODING)


class FontManager:
    """Embeds a Unicode TrueType font, or falls back to core Helvetica.

    The core font is switched to Windows-1252 so the euro sign survives.
    Widths are always measured on the text that is actually drawn.
    """

    FAMILY = "InvoiceFont"
    CORE_FAMILY = "Helvetica"
    SYSTEM_REGULAR_CANDIDATES = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans.ttf",
        "/Library/Fonts/DejaVuSans.ttf",
    ]
    SYSTEM_BOLD_CANDIDATES = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
        "/Library/Fonts/DejaVuSans-Bold.ttf",
    ]

    def __init__(self, pdf: FPDF, allow_core_fallback: bool = True) -> None:
        self.pdf = pdf
        self.family = self.CORE_FAMILY
        self.use_unicode = False
        self.has_bold = True

        regular_path = find_font_path("INVOICE_FONT_PATH", self.SYSTEM_REGULAR_CANDIDATES)
        if not regular_path:
            if not allow_core_fallback:
                raise RuntimeError(
                    "Unicode font not found. Set INVOICE_FONT_PATH to a valid TTF file."
                )
            self.pdf.core_fonts_encoding = CORE_FONTS_ENCODING
            return

        bold_path = find_font_path("INVOICE_FONT_BOLD_PATH", self.SYSTEM_BOLD_CANDIDATES)

        # Font registration parses the TTF and touches shared state; serialize it.
        with FONT_INIT_LOCK:
            self.pdf.add_font(self.FAMILY, "", regular_path)
            self.has_bold = False
            if bold_path:
                self.pdf.add_font(self.FAMILY, "B", bold_path)
                self.has_bold = True
        self.family = self.FAMILY
        self.use_unicode = True

    def prepare(self, text: str) -> str:
        return text if self.use_unicode else to_core_text(text)

    def _select(self, size: int, bold: bool) -> None:
        style = "B" if bold and self.has_bold else ""
        self.pdf.set_font(self.family, style, size)

    def text_width(self, text: str, size: int, bold: bool = False) -> float:
        self._select(size, bold)
        return self.pdf.get_string_width(self.prepare(text))

    def draw_text(
        self,
        x: float,
        y: float,
        text: str,
        size: int,
        color: Tuple[int, int, int],
        bold: bool = False,
    ) -> None:
        text = self.prepare(text)
        self.pdf.set_text_color(*color)
        self._select(size, bold)
        if bold and not self.has_bold:
            self.pdf.text(x, y, text)
            self.pdf.text(x + 0.4, y, text)
        else:
            self.pdf.text(x, y, text)
