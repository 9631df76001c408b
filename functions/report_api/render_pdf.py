"""
PDF strategy: draws a `ReportDocument` on letter-size pages with the
reportlab canvas.

Page anatomy, top to bottom: a two-colour header bar (redrawn on every page),
the title block (first page only), a row of four summary cards, then the
tables, and a footer with the generation date and page number on every page.
All drawing state (cursor, page number) lives in an explicit `LayoutContext`;
the cursor `y` is measured top-down from the page's upper edge and converted
to reportlab's bottom-up coordinates only when drawing.

Tables paginate row by row. A table is only started when its title, header
row and first data row fit on the current page, and a page break inside a
table re-emits the header row before the next data row.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from io import BytesIO
from typing import Any, Optional, Sequence

from loguru import logger
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen.canvas import Canvas

from .config import get_settings
from .content import Cell, ReportDocument, SummaryCard, Table, Tone
from .formatting import format_generated_on

NAVY = colors.HexColor("#1e3a8a")
ORANGE = colors.HexColor("#f97316")
GREEN = colors.HexColor("#16a34a")
RED = colors.HexColor("#dc2626")
DARK_GRAY = colors.HexColor("#1f2937")
GRAY = colors.HexColor("#6b7280")
LIGHT_GRAY = colors.HexColor("#f3f4f6")
BORDER = colors.HexColor("#d1d5db")
WHITE = colors.white

CARD_COLORS = {
    Tone.POSITIVE: GREEN,
    Tone.NEGATIVE: RED,
    Tone.NEUTRAL: NAVY,
    Tone.RATIO: ORANGE,
}

MARGIN = 40
HEADER_BAR_HEIGHT = 60
CARD_HEIGHT = 80
CARD_GAP = 10
CARD_PADDING = 10
SECTION_TITLE_HEIGHT = 24
TABLE_HEADER_HEIGHT = 30
TABLE_ROW_HEIGHT = 25
CELL_PADDING = 10
PLACEHOLDER_HEIGHT = 24
TABLE_GAP = 16
FOOTER_OFFSET = 30
BOTTOM_LIMIT = 50
MIN_FONT_SIZE = 6


@dataclass(frozen=True)
class Fonts:
    regular: str = "Helvetica"
    bold: str = "Helvetica-Bold"


@lru_cache(maxsize=None)
def load_fonts(font_path: Optional[str]) -> Fonts:
    """
    Register the configured TTF (if any) for all report text.

    The base-14 Helvetica fonts only cover WinAnsi, so glyphs such as the
    rupee sign need an embedded TrueType font to show up.
    """
    if not font_path:
        return Fonts()
    try:
        pdfmetrics.registerFont(TTFont("ReportSans", font_path))
    except Exception as e:
        logger.warning(f"Could not load PDF font {font_path!r}, falling back to Helvetica: {e}")
        return Fonts()
    return Fonts(regular="ReportSans", bold="ReportSans")


@dataclass
class LayoutContext:
    canvas: Any
    document: ReportDocument
    fonts: Fonts
    page_width: float
    page_height: float
    y: float = 0.0
    page_number: int = 1

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * MARGIN

    @property
    def bottom(self) -> float:
        return self.page_height - BOTTOM_LIMIT

    def fits(self, height: float) -> bool:
        return self.y + height <= self.bottom

    def baseline(self, top: float, size: float) -> float:
        """reportlab y of a text baseline whose glyph box starts `top` points down the page."""
        return self.page_height - top - size * 0.8


# --- primitives ----------------------------------------------------------------


def _fill_rect(ctx: LayoutContext, x: float, top: float, width: float, height: float, color) -> None:
    ctx.canvas.setFillColor(color)
    ctx.canvas.rect(x, ctx.page_height - top - height, width, height, stroke=0, fill=1)


def _stroke_rect(ctx: LayoutContext, x: float, top: float, width: float, height: float, color, line_width: float) -> None:
    ctx.canvas.setStrokeColor(color)
    ctx.canvas.setLineWidth(line_width)
    ctx.canvas.rect(x, ctx.page_height - top - height, width, height, stroke=1, fill=0)


def _fit(text: str, font: str, size: float, width: float) -> tuple[str, float]:
    """Shrink the font until `text` fits `width`, then trim characters as a last resort."""
    while size > MIN_FONT_SIZE and pdfmetrics.stringWidth(text, font, size) > width:
        size -= 0.5
    while text and pdfmetrics.stringWidth(text, font, size) > width:
        text = text[:-1]
    return text, size


def _draw_text(
    ctx: LayoutContext,
    text: str,
    x: float,
    top: float,
    *,
    font: str,
    size: float,
    color,
    width: Optional[float] = None,
    align: str = "left",
) -> None:
    if width is not None:
        text, size = _fit(text, font, size, width)
    c = ctx.canvas
    c.setFillColor(color)
    c.setFont(font, size)
    y = ctx.baseline(top, size)
    if align == "center":
        c.drawCentredString(x, y, text)
    elif align == "right":
        c.drawRightString(x, y, text)
    else:
        c.drawString(x, y, text)


# --- page furniture --------------------------------------------------------------


def draw_header_bar(ctx: LayoutContext) -> None:
    half = ctx.page_width / 2
    _fill_rect(ctx, 0, 0, half, HEADER_BAR_HEIGHT, NAVY)
    _fill_rect(ctx, half, 0, half, HEADER_BAR_HEIGHT, ORANGE)
    _fill_rect(ctx, 0, HEADER_BAR_HEIGHT, ctx.page_width, 1, GRAY)
    _draw_text(
        ctx,
        f"{ctx.document.brand_name.upper()} REPORT",
        20,
        20,
        font=ctx.fonts.bold,
        size=18,
        color=WHITE,
        width=half - 40,
    )


def draw_footer(ctx: LayoutContext) -> None:
    footer_top = ctx.page_height - FOOTER_OFFSET
    _fill_rect(ctx, MARGIN, footer_top - 10, ctx.content_width, 0.5, BORDER)
    font, size = ctx.fonts.regular, 9
    _draw_text(
        ctx,
        f"Generated on: {format_generated_on(ctx.document.generated_at)}",
        MARGIN,
        footer_top + 5,
        font=font,
        size=size,
        color=GRAY,
    )
    _draw_text(
        ctx,
        f"{ctx.document.brand_name} - Page {ctx.page_number}",
        ctx.page_width - MARGIN,
        footer_top + 5,
        font=font,
        size=size,
        color=GRAY,
        align="right",
    )


def start_new_page(ctx: LayoutContext) -> None:
    draw_footer(ctx)
    ctx.canvas.showPage()
    ctx.page_number += 1
    draw_header_bar(ctx)
    ctx.y = HEADER_BAR_HEIGHT + 20


def draw_title_block(ctx: LayoutContext) -> None:
    doc = ctx.document
    center = ctx.page_width / 2
    ctx.y = HEADER_BAR_HEIGHT + 36
    _draw_text(ctx, doc.title, center, ctx.y, font=ctx.fonts.bold, size=32, color=NAVY, align="center")
    ctx.y += 44
    _draw_text(ctx, doc.period, center, ctx.y, font=ctx.fonts.regular, size=14, color=GRAY, align="center")
    ctx.y += 20
    if doc.account_holder:
        _draw_text(
            ctx,
            f"Account Holder: {doc.account_holder}",
            center,
            ctx.y,
            font=ctx.fonts.regular,
            size=11,
            color=GRAY,
            align="center",
        )
        ctx.y += 18
    ctx.y += 12
    _fill_rect(ctx, 50, ctx.y, ctx.page_width - 100, 1, BORDER)
    ctx.y += 24


def draw_summary_cards(ctx: LayoutContext, cards: Sequence[SummaryCard]) -> None:
    card_width = (ctx.page_width - 80) / 4
    row_width = card_width * len(cards) + CARD_GAP * (len(cards) - 1)
    left = (ctx.page_width - row_width) / 2
    inner = card_width - 2 * CARD_PADDING
    symbol = ctx.document.currency_symbol
    top = ctx.y
    for idx, card in enumerate(cards):
        x = left + idx * (card_width + CARD_GAP)
        color = CARD_COLORS[card.tone]
        _fill_rect(ctx, x, top, card_width, CARD_HEIGHT, color)
        _stroke_rect(ctx, x, top, card_width, CARD_HEIGHT, color, 2)
        _draw_text(ctx, card.label, x + CARD_PADDING, top + 12, font=ctx.fonts.bold, size=11, color=WHITE, width=inner)
        _draw_text(
            ctx, card.text(symbol), x + CARD_PADDING, top + 30, font=ctx.fonts.bold, size=18, color=WHITE, width=inner
        )
        if card.subtext:
            _draw_text(
                ctx, card.subtext, x + CARD_PADDING, top + 55, font=ctx.fonts.regular, size=8, color=WHITE, width=inner
            )
    ctx.y = top + CARD_HEIGHT + 24


# --- tables ----------------------------------------------------------------------


def _column_widths(ctx: LayoutContext, table: Table) -> list[float]:
    return [ctx.content_width * ratio for ratio in table.col_ratios]


def draw_table_header(ctx: LayoutContext, table: Table) -> None:
    _fill_rect(ctx, MARGIN, ctx.y, ctx.content_width, TABLE_HEADER_HEIGHT, NAVY)
    x = MARGIN + CELL_PADDING
    for header, width in zip(table.headers, _column_widths(ctx, table)):
        _draw_text(ctx, header, x, ctx.y + 10, font=ctx.fonts.bold, size=10, color=WHITE, width=width - 15)
        x += width
    ctx.y += TABLE_HEADER_HEIGHT


def draw_table_row(ctx: LayoutContext, table: Table, row: Sequence[Cell], shaded: bool) -> None:
    _fill_rect(ctx, MARGIN, ctx.y, ctx.content_width, TABLE_ROW_HEIGHT, LIGHT_GRAY if shaded else WHITE)
    _stroke_rect(ctx, MARGIN, ctx.y, ctx.content_width, TABLE_ROW_HEIGHT, BORDER, 0.5)
    x = MARGIN + CELL_PADDING
    symbol = ctx.document.currency_symbol
    for cell, width in zip(row, _column_widths(ctx, table)):
        _draw_text(
            ctx, cell.text(symbol), x, ctx.y + 8, font=ctx.fonts.regular, size=9, color=DARK_GRAY, width=width - 15
        )
        x += width
    ctx.y += TABLE_ROW_HEIGHT


def draw_table(ctx: LayoutContext, table: Table) -> None:
    first_block = TABLE_ROW_HEIGHT if table.rows else PLACEHOLDER_HEIGHT
    if table.rows:
        first_block += TABLE_HEADER_HEIGHT
    if not ctx.fits(SECTION_TITLE_HEIGHT + first_block):
        start_new_page(ctx)

    _draw_text(ctx, table.title, MARGIN, ctx.y, font=ctx.fonts.bold, size=14, color=NAVY, width=ctx.content_width)
    ctx.y += SECTION_TITLE_HEIGHT

    if not table.rows:
        _draw_text(ctx, table.empty_message or "", MARGIN, ctx.y, font=ctx.fonts.regular, size=11, color=GRAY)
        ctx.y += PLACEHOLDER_HEIGHT + TABLE_GAP
        return

    draw_table_header(ctx, table)
    shaded = False
    for row in table.rows:
        if not ctx.fits(TABLE_ROW_HEIGHT):
            start_new_page(ctx)
            draw_table_header(ctx, table)
            shaded = False
        draw_table_row(ctx, table, row, shaded)
        shaded = not shaded
    ctx.y += TABLE_GAP


def layout_document(canvas, document: ReportDocument, fonts: Optional[Fonts] = None) -> LayoutContext:
    """Draw every page of `document` on `canvas` (which is not saved here)."""
    width, height = letter
    ctx = LayoutContext(canvas=canvas, document=document, fonts=fonts or Fonts(), page_width=width, page_height=height)
    draw_header_bar(ctx)
    draw_title_block(ctx)
    draw_summary_cards(ctx, document.cards)
    for table in document.tables:
        draw_table(ctx, table)
    draw_footer(ctx)
    canvas.showPage()
    return ctx


class PdfRenderer:
    content_type = "application/pdf"
    extension = "pdf"

    def render(self, document: ReportDocument) -> bytes:
        settings = get_settings()
        fonts = load_fonts(settings.pdf_font_path)
        buf = BytesIO()
        # invariant=1 pins the creation date and document id
        canvas = Canvas(buf, pagesize=letter, invariant=1, pageCompression=1 if settings.pdf_compress else 0)
        canvas.setTitle(f"{document.title} - {document.period}")
        canvas.setAuthor(document.brand_name)
        canvas.setCreator(document.brand_name)
        ctx = layout_document(canvas, document, fonts)
        canvas.save()
        logger.debug(f"PDF rendered: {ctx.page_number} page(s), {len(document.tables)} table(s)")
        return buf.getvalue()
