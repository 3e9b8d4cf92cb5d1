"""
Country export: renders one record as a PDF.

Pages are drawn with Pillow. Rows that do not fit continue on a new page; the
first page carries a QR code pointing at the record's JSON endpoint.
"""

from __future__ import annotations

import io
import textwrap

import qrcode
from PIL import Image, ImageDraw, ImageFont

from country_api.core.config import get_settings
from country_api.domain.countries import Country

PAGE_SIZE = (1240, 1754)  # A4 at 150 dpi
PAGE_DPI = 150.0
MARGIN = 96
WRAP_WIDTH = 48
LABEL_HEIGHT = 36
LINE_HEIGHT = 46
ROW_GAP = 22
QR_BOX = 280
# Footer band (QR code, id, page number) reserved on every page.
FOOTER_TOP = PAGE_SIZE[1] - MARGIN - QR_BOX - 40
CONTENT_BOTTOM = FOOTER_TOP - 24


def _font(size: int):
    return ImageFont.load_default(size=size)


def _qr_image(payload: str) -> Image.Image:
    qr = qrcode.QRCode(version=None, error_correction=qrcode.constants.ERROR_CORRECT_M, box_size=8, border=4)
    qr.add_data(payload)
    qr.make(fit=True)
    return qr.make_image(fill_color="black", back_color="white").convert("RGB")


def record_url(country_id: str, base_url: str | None = None) -> str:
    base = (base_url or get_settings().public_base_url).rstrip("/")
    return f"{base}/Country/{country_id}"


def export_filename(country: Country) -> str:
    return f"country-{country.id or 'export'}.pdf"


def render_country_pages(country: Country, *, base_url: str | None = None) -> list[Image.Image]:
    """Draw ``country`` on as many A4 pages as its rows need."""
    title_font = _font(56)
    label_font = _font(26)
    value_font = _font(34)

    pages: list[Image.Image] = []
    draw = None
    y = 0

    def new_page() -> None:
        nonlocal draw, y
        page = Image.new("RGB", PAGE_SIZE, "white")
        pages.append(page)
        draw = ImageDraw.Draw(page)
        y = MARGIN

    def ensure_room(height: int) -> None:
        if y + height > CONTENT_BOTTOM:
            new_page()

    new_page()
    draw.text((MARGIN, y), country.nombre or "País", fill="black", font=title_font)
    y += 90
    draw.line((MARGIN, y, PAGE_SIZE[0] - MARGIN, y), fill=(180, 180, 180), width=3)
    y += 40

    for label, value in country.display_rows():
        ensure_room(LABEL_HEIGHT + LINE_HEIGHT)
        draw.text((MARGIN, y), label.upper(), fill=(110, 110, 110), font=label_font)
        y += LABEL_HEIGHT
        for line in textwrap.wrap(value, WRAP_WIDTH) or ["-"]:
            ensure_room(LINE_HEIGHT)
            draw.text((MARGIN, y), line, fill="black", font=value_font)
            y += LINE_HEIGHT
        y += ROW_GAP

    if country.id:
        code = _qr_image(record_url(country.id, base_url))
        code.thumbnail((QR_BOX, QR_BOX))
        pages[0].paste(code, (PAGE_SIZE[0] - MARGIN - code.width, FOOTER_TOP))

    total = len(pages)
    for number, page in enumerate(pages, start=1):
        footer = f"id: {country.id}" if country.id else ""
        if total > 1:
            footer = f"{footer}  {number}/{total}".strip()
        if footer:
            ImageDraw.Draw(page).text(
                (MARGIN, PAGE_SIZE[1] - MARGIN - 20), footer, fill=(110, 110, 110), font=label_font
            )
    return pages


def render_country_pdf(country: Country, *, base_url: str | None = None) -> bytes:
    """Return the PDF bytes for ``country``."""
    first, *rest = render_country_pages(country, base_url=base_url)
    buffer = io.BytesIO()
    first.save(buffer, format="PDF", resolution=PAGE_DPI, save_all=True, append_images=rest)
    return buffer.getvalue()
