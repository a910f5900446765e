"""Tests for formatting helpers and line classification."""

from datetime import date
from decimal import Decimal

import pytest

from app.schemas.ticket import RowKind
from app.utils import (
    add_days_iso_date,
    format_address,
    format_de_date,
    format_de_number,
    format_eur,
    format_percent,
    generate_row_id,
    parse_de_amount,
    parse_german_address,
    round_money,
)
from app.utils.text_classifier import LineClassifier, LineKind, classify_line, is_emphasized_row, is_position_label


class TestGermanFormatting:
    """Currency and number formatting (de-DE)."""

    @pytest.mark.parametrize("value,expected", [
        (0, "0,00"),
        (1234.5, "1.234,50"),
        (1000000, "1.000.000,00"),
        (Decimal("99.995"), "100,00"),
        (-12.3, "-12,30"),
    ])
    def test_format_de_number(self, value, expected):
        assert format_de_number(value) == expected

    def test_format_eur_uses_trailing_symbol(self):
        assert format_eur(595) == "595,00 €"

    def test_format_eur_none_is_em_dash(self):
        assert format_eur(None) == "—"
        assert format_eur(0) == "0,00 €"

    def test_format_percent(self):
        assert format_percent(0.19) == "19%"
        assert format_percent(0.075) == "7,5%"

    def test_round_money_half_up(self):
        assert round_money(0.125) == Decimal("0.13")
        assert round_money(94.9999) == Decimal("95.00")


class TestAmountParsing:

    @pytest.mark.parametrize("raw,expected", [
        ("1.234,50", 1234.5),
        ("12,5", 12.5),
        ("12.5", 12.5),
        ("1 000,00 €", 1000.0),
        ("", None),
        ("abc", None),
        (None, None),
    ])
    def test_parse_de_amount(self, raw, expected):
        assert parse_de_amount(raw) == expected


class TestAddressHelpers:

    def test_parse_full_address(self):
        assert parse_german_address("Musterstraße 1, 10115 Berlin, Deutschland") == (
            "Musterstraße 1", "10115", "Berlin"
        )

    def test_parse_address_without_zip(self):
        assert parse_german_address("Musterstraße 1, Berlin") == ("Musterstraße 1", None, "Berlin")

    def test_parse_empty_address(self):
        assert parse_german_address(None) == (None, None, None)
        assert parse_german_address("Nur Straße") == ("Nur Straße", None, None)

    def test_format_address_skips_empty_parts(self):
        assert format_address(["Kantstraße 149", None, "", "Berlin"]) == "Kantstraße 149 Berlin"
        assert format_address(["a", "b"], ", ") == "a, b"


class TestIdsAndDates:

    def test_generate_row_id_shape(self):
        row_id = generate_row_id()
        millis, suffix = row_id.split("-")
        assert millis.isdigit()
        assert len(suffix) == 6
        assert suffix.isalnum() and suffix == suffix.lower()

    def test_generate_row_id_unique(self):
        assert len({generate_row_id() for _ in range(200)}) == 200

    def test_dates(self):
        assert add_days_iso_date(date(2026, 12, 30), 7) == "2027-01-06"
        assert format_de_date(date(2026, 3, 5)) == "05.03.2026"


class TestLineClassifier:
    """Heading detection for the analysis text."""

    def test_known_heading_phrase(self):
        assert classify_line("Mangelbeschreibung") == LineKind.HEADING
        assert classify_line("2. Leistungspositionen mit Kostengruppen nach DIN 276") == LineKind.HEADING

    def test_short_line_with_colon_is_heading(self):
        assert classify_line("Hinweise zur Ausführung:") == LineKind.HEADING

    def test_long_line_with_colon_is_body(self):
        line = "Die folgende Aufstellung beschreibt sämtliche erforderlichen Arbeiten im Detail:"
        assert len(line) >= 60
        assert classify_line(line) == LineKind.BODY

    def test_blank_and_body(self):
        assert classify_line("   ") == LineKind.BLANK
        assert classify_line("Feuchtigkeit an der Wand.") == LineKind.BODY

    def test_custom_heading_set(self):
        classifier = LineClassifier(known_headings=["Befund"])
        assert classifier.classify("Befund") == LineKind.HEADING
        assert classifier.classify("Fazit") == LineKind.BODY


class TestRowEmphasis:

    def test_position_label_pattern(self):
        assert is_position_label("LP 3: Dachsanierung")
        assert is_position_label("lp12 Abdichtung")
        assert not is_position_label("Sonstiges")
        assert not is_position_label(None)

    def test_emphasis_by_kind_or_label(self):
        assert is_emphasized_row(RowKind.POSITION, "LP 3: Dachsanierung")
        assert not is_emphasized_row(RowKind.POSITION, "Sonstiges")
        assert is_emphasized_row(RowKind.SUBTOTAL, "Zwischensumme")
        assert is_emphasized_row("total", "")
        assert not is_emphasized_row(RowKind.EXTRA, "Anfahrt")
