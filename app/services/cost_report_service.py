# ================================
# COST REPORT SERVICE (services/cost_report_service.py)
# ================================

"""
PDF-Kostenschätzung (Mangelmeldung & Kostenschätzung) mit PyMuPDF.

Das Layout arbeitet mit einem einfachen vertikalen Cursor (Top-Down-Koordinaten
wie in PyMuPDF): vor jedem Block bekannter Höhe wird geprüft, ob er noch auf die
Seite passt, sonst beginnt eine neue Seite. Blockhöhen werden immer vorher über
die Textbreite bei Zielschrift/-größe berechnet.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

import fitz  # PyMuPDF

from app.config import settings
from app.core.exceptions import ReportRenderError
from app.schemas.ticket import CostRow, RowKind, Ticket
from app.utils import format_de_date, format_eur, format_percent, round_money, to_decimal
from app.utils.text_classifier import LineClassifier, LineKind, default_classifier, is_emphasized_row

logger = logging.getLogger(__name__)

Color = Tuple[float, float, float]

# Farben (Modern Blue)
COLOR_PRIMARY: Color = (0.11, 0.20, 0.34)
COLOR_SECONDARY: Color = (0.40, 0.40, 0.40)
COLOR_ACCENT: Color = (0.96, 0.96, 0.97)
COLOR_DIVIDER: Color = (0.85, 0.85, 0.85)
COLOR_TEXT: Color = (0.15, 0.15, 0.15)
COLOR_BLACK: Color = (0, 0, 0)
COLOR_WHITE: Color = (1, 1, 1)
COLOR_HEADER_META: Color = (0.8, 0.8, 0.9)
COLOR_FOOTER: Color = (0.6, 0.6, 0.6)

# Seitengeometrie (A4, Punkte)
PAGE_WIDTH, PAGE_HEIGHT = fitz.paper_size("a4")
MARGIN_X = 50
BOTTOM_MARGIN = 60
CONTINUATION_TOP = 60
HEADER_BAND_HEIGHT = 100
BODY_LINE_HEIGHT = 14

# Tabelle
TABLE_HEADER_HEIGHT = 28
ROW_PADDING_TOP = 8
ROW_PADDING_BOTTOM = 8
ROW_LINE_HEIGHT = 12
NOTE_LINE_HEIGHT = 10

REPORT_TITLE = "MANGELMELDUNG & KOSTENSCHÄTZUNG"
TABLE_TITLE = "DETAILKOSTENAUFSTELLUNG"
NO_ANALYSIS_TEXT = "Keine Analyse vorhanden."
NO_ROWS_TEXT = "Keine Positionen verfügbar."
DISCLAIMER_TEXT = "Dieses Dokument wurde maschinell erstellt und ist ohne Unterschrift gültig."
FOOTER_TEXT = "Mangelmanagement System | Interne Kostenschätzung"

# ================================
# RESULT TYPES
# ================================

@dataclass
class ReportTotals:
    net: Decimal
    vat: Decimal
    gross: Decimal

@dataclass
class RowPlacement:
    """Where a cost row ended up: page index and its vertical extent on that page"""
    row_id: Optional[str]
    page_index: int
    top: float
    bottom: float

@dataclass
class RenderedReport:
    pdf: bytes
    page_count: int
    totals: ReportTotals
    placements: List[RowPlacement] = field(default_factory=list)

def compute_totals(rows: Sequence[CostRow], vat_rate: float) -> ReportTotals:
    """
    Net sums every row that is neither ``total`` nor ``extra``; rows without
    amount contribute nothing. VAT is a single rate on the net sum.
    """
    net = sum(
        (to_decimal(row.amount) for row in rows
         if row.amount is not None and row.row_type not in (RowKind.TOTAL, RowKind.EXTRA)),
        Decimal("0")
    )
    net = round_money(net)
    vat = round_money(net * to_decimal(vat_rate))
    return ReportTotals(net=net, vat=vat, gross=net + vat)

def wrap_text(text: str, max_width: float, font: fitz.Font, fontsize: float) -> List[str]:
    """Greedy word wrap; a single word wider than max_width gets its own line"""
    lines: List[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if current and font.text_length(candidate, fontsize=fontsize) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines

# ================================
# CANVAS
# ================================

class _ReportCanvas:
    """Document plus running cursor; y is the next baseline, measured from the page top"""

    def __init__(self):
        self.doc = fitz.open()
        self.page = self.doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        self.width = self.page.rect.width
        self.height = self.page.rect.height
        self.y = 0.0

        try:
            self.regular = fitz.Font("helv")
            self.bold = fitz.Font("hebo")
            self.italic = fitz.Font("heit")
        except Exception as e:
            self.doc.close()
            raise ReportRenderError(f"Font loading failed: {str(e)}")

    @property
    def page_index(self) -> int:
        return self.page.number

    def new_page(self):
        self.page = self.doc.new_page(width=self.width, height=self.height)
        self.y = CONTINUATION_TOP

    def ensure_space(self, needed: float):
        if self.y + needed > self.height - BOTTOM_MARGIN:
            self.new_page()

    def text(self, x: float, y: float, text: str, font: fitz.Font, size: float, color: Color, page=None):
        writer = fitz.TextWriter((page or self.page).rect)
        writer.append((x, y), text, font=font, fontsize=size)
        writer.write_text(page or self.page, color=color)

    def text_right(self, right_x: float, y: float, text: str, font: fitz.Font, size: float, color: Color):
        self.text(right_x - font.text_length(text, fontsize=size), y, text, font, size, color)

    def rect(self, x0: float, y0: float, x1: float, y1: float, fill: Color):
        self.page.draw_rect(fitz.Rect(x0, y0, x1, y1), color=None, fill=fill, width=0)

    def line(self, x0: float, y: float, x1: float, color: Color, width: float):
        self.page.draw_line(fitz.Point(x0, y), fitz.Point(x1, y), color=color, width=width)

    def to_bytes(self) -> bytes:
        return self.doc.tobytes(garbage=3, deflate=True)

# ================================
# RENDERER
# ================================

class CostReportRenderer:
    """Renders a ticket's analysis text and cost table into a paginated PDF"""

    def __init__(self, vat_rate: Optional[float] = None, classifier: Optional[LineClassifier] = None):
        self.vat_rate = settings.VAT_RATE if vat_rate is None else vat_rate
        self.classifier = classifier or default_classifier

    def render(self, ticket: Ticket, generated_at: Optional[date] = None) -> RenderedReport:
        """
        Render the report for one ticket.

        Raises:
            ReportRenderError: on any failure; no partial document is returned
        """
        logger.info(f"Rendering cost report for ticket {ticket.id} ({len(ticket.cost_table)} rows)")

        canvas = None
        try:
            canvas = _ReportCanvas()
            totals = compute_totals(ticket.cost_table, self.vat_rate)

            self._draw_header_band(canvas, ticket, generated_at or datetime.now().date())
            self._draw_subject(canvas, ticket.title)
            self._draw_analysis(canvas, ticket.cost_analysis_text)
            placements = self._draw_cost_table(canvas, ticket.cost_table, totals)
            self._draw_closing(canvas)

            pdf = canvas.to_bytes()
            page_count = canvas.doc.page_count

        except ReportRenderError:
            raise
        except Exception as e:
            logger.error(f"Failed to render cost report for ticket {ticket.id}: {str(e)}", exc_info=True)
            raise ReportRenderError(str(e))
        finally:
            if canvas is not None:
                canvas.doc.close()

        logger.info(f"Rendered cost report for ticket {ticket.id}: {page_count} page(s)")
        return RenderedReport(pdf=pdf, page_count=page_count, totals=totals, placements=placements)

    # ================================
    # SECTIONS
    # ================================

    def _draw_header_band(self, canvas: _ReportCanvas, ticket: Ticket, generated_at: date):
        canvas.rect(0, 0, canvas.width, HEADER_BAND_HEIGHT, COLOR_PRIMARY)
        canvas.text(MARGIN_X, 55, REPORT_TITLE, canvas.bold, 18, COLOR_WHITE)

        right_x = canvas.width - MARGIN_X
        canvas.text_right(right_x, 45, f"Datum: {format_de_date(generated_at)}", canvas.regular, 10, COLOR_HEADER_META)
        canvas.text_right(right_x, 60, f"ID: {ticket.id.split('-')[0]}...", canvas.regular, 10, COLOR_HEADER_META)

        canvas.y = HEADER_BAND_HEIGHT + 40

    def _draw_subject(self, canvas: _ReportCanvas, title: Optional[str]):
        canvas.text(MARGIN_X, canvas.y, "Betreff / Objekt:", canvas.bold, 9, COLOR_SECONDARY)
        canvas.y += 12

        content_width = canvas.width - MARGIN_X * 2
        for line in wrap_text(title or "Ohne Titel", content_width, canvas.bold, 14):
            canvas.text(MARGIN_X, canvas.y, line, canvas.bold, 14, COLOR_TEXT)
            canvas.y += 18
        canvas.y += 10

        canvas.line(MARGIN_X, canvas.y, canvas.width - MARGIN_X, COLOR_ACCENT, 1)
        canvas.y += 25

    def _draw_analysis(self, canvas: _ReportCanvas, analysis_text: Optional[str]):
        canvas.ensure_space(40)
        content_width = canvas.width - MARGIN_X * 2

        for raw_line in (analysis_text or NO_ANALYSIS_TEXT).splitlines():
            line = raw_line.rstrip()
            kind = self.classifier.classify(line)

            if kind == LineKind.BLANK:
                canvas.y += 8
                continue

            if kind == LineKind.HEADING:
                canvas.ensure_space(40)
                canvas.y += 15
                for index, heading_line in enumerate(wrap_text(line, content_width, canvas.bold, 11)):
                    if index:
                        canvas.y += BODY_LINE_HEIGHT
                    canvas.text(MARGIN_X, canvas.y, heading_line, canvas.bold, 11, COLOR_PRIMARY)
                canvas.y += 20
                continue

            for body_line in wrap_text(line, content_width, canvas.regular, 10):
                canvas.ensure_space(BODY_LINE_HEIGHT)
                canvas.text(MARGIN_X, canvas.y, body_line, canvas.regular, 10, COLOR_TEXT)
                canvas.y += BODY_LINE_HEIGHT

        canvas.y += 20

    def _draw_cost_table(
        self,
        canvas: _ReportCanvas,
        rows: Sequence[CostRow],
        totals: ReportTotals
    ) -> List[RowPlacement]:
        canvas.ensure_space(60)
        canvas.text(MARGIN_X, canvas.y, TABLE_TITLE, canvas.bold, 12, COLOR_PRIMARY)
        canvas.y += 20

        if not rows:
            canvas.text(MARGIN_X, canvas.y, NO_ROWS_TEXT, canvas.italic, 10, COLOR_SECONDARY)
            canvas.y += 20
            return []

        col1_x = MARGIN_X
        col2_x = canvas.width - MARGIN_X - 140
        col3_right = canvas.width - MARGIN_X - 10
        label_width = col2_x - col1_x - 15

        # Tabellenkopf
        canvas.ensure_space(TABLE_HEADER_HEIGHT + 10)
        canvas.rect(MARGIN_X, canvas.y, canvas.width - MARGIN_X, canvas.y + TABLE_HEADER_HEIGHT, COLOR_ACCENT)
        header_y = canvas.y + TABLE_HEADER_HEIGHT / 2 + 3.5
        canvas.text(col1_x + 8, header_y, "Leistungsbeschreibung", canvas.bold, 10, COLOR_BLACK)
        canvas.text(col2_x, header_y, "KG", canvas.bold, 10, COLOR_BLACK)
        canvas.text_right(col3_right, header_y, "Betrag (Netto)", canvas.bold, 10, COLOR_BLACK)
        canvas.y += TABLE_HEADER_HEIGHT + 10

        placements = []
        for row in rows:
            placements.append(self._draw_row(canvas, row, col1_x, col2_x, col3_right, label_width))

        self._draw_summary(canvas, totals, col3_right)
        return placements

    def _draw_row(
        self,
        canvas: _ReportCanvas,
        row: CostRow,
        col1_x: float,
        col2_x: float,
        col3_right: float,
        label_width: float
    ) -> RowPlacement:
        is_total = row.row_type == RowKind.TOTAL
        is_shaded = row.row_type in (RowKind.SUBTOTAL, RowKind.TOTAL)
        emphasized = is_emphasized_row(row.row_type, row.label)

        font = canvas.bold if emphasized else canvas.regular
        size = 10 if emphasized else 9

        label = row.label.strip() or ("GESAMTSUMME" if is_total else "Position")
        label_lines = wrap_text(label, label_width, font, size)
        note_lines = wrap_text(row.notes, label_width, canvas.italic, 8) if row.notes.strip() else []
        note_height = 2 + len(note_lines) * NOTE_LINE_HEIGHT if note_lines else 0

        row_height = ROW_PADDING_TOP + len(label_lines) * ROW_LINE_HEIGHT + note_height + ROW_PADDING_BOTTOM

        # Zeile wird nie über zwei Seiten verteilt
        canvas.ensure_space(row_height)
        top = canvas.y

        if is_shaded:
            canvas.rect(MARGIN_X, top - 10, canvas.width - MARGIN_X, top + row_height - 10, COLOR_ACCENT)

        text_y = top + ROW_PADDING_TOP
        for line in label_lines:
            canvas.text(col1_x + 8, text_y, line, font, size, COLOR_BLACK)
            text_y += ROW_LINE_HEIGHT

        if note_lines:
            text_y += 2
            for line in note_lines:
                canvas.text(col1_x + 8, text_y, line, canvas.italic, 8, COLOR_SECONDARY)
                text_y += NOTE_LINE_HEIGHT

        if row.kostengruppe:
            canvas.text(col2_x, top + ROW_PADDING_TOP, row.kostengruppe, canvas.regular, 9, COLOR_BLACK)

        canvas.text_right(col3_right, top + ROW_PADDING_TOP, format_eur(row.amount), font, size, COLOR_BLACK)

        if not is_total:
            canvas.line(MARGIN_X, top + row_height - 5, canvas.width - MARGIN_X, COLOR_DIVIDER, 0.5)

        canvas.y = top + row_height
        return RowPlacement(row_id=row.id, page_index=canvas.page_index, top=top, bottom=top + row_height)

    def _draw_summary(self, canvas: _ReportCanvas, totals: ReportTotals, col3_right: float):
        canvas.ensure_space(100)
        canvas.y += 20
        summary_x = canvas.width - MARGIN_X - 220

        canvas.text(summary_x, canvas.y, "Summe Netto:", canvas.regular, 10, COLOR_BLACK)
        canvas.text_right(col3_right, canvas.y, format_eur(totals.net), canvas.regular, 10, COLOR_BLACK)
        canvas.y += 18

        canvas.text(summary_x, canvas.y, f"MwSt. ({format_percent(self.vat_rate)}):", canvas.regular, 10, COLOR_BLACK)
        canvas.text_right(col3_right, canvas.y, format_eur(totals.vat), canvas.regular, 10, COLOR_BLACK)
        canvas.y += 25

        canvas.line(summary_x, canvas.y - 12, canvas.width - MARGIN_X, COLOR_PRIMARY, 1.5)
        canvas.text(summary_x, canvas.y, "GESAMTBETRAG:", canvas.bold, 12, COLOR_PRIMARY)
        canvas.text_right(col3_right, canvas.y, format_eur(totals.gross), canvas.bold, 12, COLOR_PRIMARY)
        canvas.y += 40

    def _draw_closing(self, canvas: _ReportCanvas):
        canvas.ensure_space(60)
        canvas.y += 20
        canvas.text(MARGIN_X, canvas.y, DISCLAIMER_TEXT, canvas.italic, 8, COLOR_SECONDARY)

        for page in canvas.doc:
            canvas.text(50, page.rect.height - 20, FOOTER_TEXT, canvas.regular, 8, COLOR_FOOTER, page=page)
