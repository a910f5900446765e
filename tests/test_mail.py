"""Tests for inquiry/offer mail drafts."""

from urllib.parse import unquote

import pytest

from app.schemas.erp import BuildingContact, BuildingInfo, OfferMailContext, OwnerEntity, TenantContact
from app.schemas.mail import PhotoLink
from app.schemas.ticket import CostRow, Ticket
from app.services.mail_service import (
    MailComposer,
    build_mailto_href,
    build_photo_links_text,
    build_position_lines,
    invoice_mailbox_for,
    offer_due_text,
)

@pytest.fixture
def composer() -> MailComposer:
    return MailComposer(vat_rate=0.19)

@pytest.fixture
def ticket(ticket_record) -> Ticket:
    return Ticket.model_validate(ticket_record)

@pytest.fixture
def building() -> BuildingInfo:
    return BuildingInfo(
        tenancy_id=500,
        objekt_label="KS-10 – Kantstraße 149 10623 Berlin",
        property_id=10,
        property_reference="KS-10",
        property_internal_label="Kant149",
        property_street="Kantstraße 149",
        property_zip="10623",
        property_city="Berlin",
        company_name="Eagle Real Estate",
    )

@pytest.fixture
def offer_context() -> OfferMailContext:
    return OfferMailContext(
        building=BuildingContact(company_name="Eagle", street="Kantstraße 149", zip="10623", city="Berlin"),
        owner_entity=OwnerEntity(name="Eagle Propco GmbH", address="Friedrichstraße 1, 10117 Berlin", vat="DE123456789"),
        tenant=TenantContact(name="Erika Mustermann", address="Kantstraße 149, 10623 Berlin",
                             email="erika@example.com", phone="030 123"),
    )


class TestInquiryMail:

    def test_fields_are_interpolated(self, composer, ticket, building):
        draft = composer.build_inquiry_mail(ticket, building, "info@schmidt.example", photo_links_text="- bad.jpg: https://x/1")

        assert draft.to == "info@schmidt.example"
        assert draft.subject == "Anfrage – Wasserschaden im Bad – KS-10 – Kantstraße 149 10623 Berlin"
        assert draft.body.startswith("Sehr geehrte Damen und Herren,\n")
        assert "Objekt: KS-10 – Kantstraße 149 10623 Berlin\n" in draft.body
        assert "Adresse: Kantstraße 149 10623 Berlin\n" in draft.body
        assert "Undichte Leitung hinter der Badewanne" in draft.body
        assert "- LP 1: LP 1: Leckortung (KG 410)\n- LP 2: Anfahrt" in draft.body
        assert "- bad.jpg: https://x/1" in draft.body
        assert draft.body.rstrip().endswith("Ihr REDEFINE Team")

    def test_missing_building_uses_placeholders(self, composer, ticket):
        draft = composer.build_inquiry_mail(ticket, None, "a@b.example")
        assert draft.subject == "Anfrage – Wasserschaden im Bad"
        assert "Objekt: —\n" in draft.body
        assert "Adresse: —\n" in draft.body
        assert "(Keine Fotos verfügbar)" in draft.body

    def test_no_positions(self, composer, ticket, building):
        draft = composer.build_inquiry_mail(ticket, building, "a@b.example", cost_rows=[])
        assert "- (keine Leistungspositionen vorhanden)" in draft.body

    def test_mailto_round_trip(self, composer, ticket, building):
        draft = composer.build_inquiry_mail(ticket, building, "a@b.example")
        assert draft.mailto.startswith("mailto:a@b.example?subject=")
        subject_part, body_part = draft.mailto.split("?", 1)[1].split("&body=")
        assert unquote(subject_part[len("subject="):]) == draft.subject
        assert unquote(body_part) == draft.body


class TestOfferMail:

    def test_fields_are_interpolated(self, composer, ticket, offer_context):
        draft = composer.build_offer_mail(ticket, offer_context, "info@schmidt.example")

        assert draft.subject == "Beauftragung – Undichte Leitung hinter der Badewanne"
        body = draft.body
        assert "namens und im Auftrag der Eigentümerin, Eagle Propco GmbH, möchten" in body
        assert "Kontaktdaten: Herr/Frau Erika Mustermann, Tel.: 030 123, E-Mail: erika@example.com\n" in body
        assert "Adresse (Mieter): Kantstraße 149, 10623 Berlin\n" in body
        assert "Ausführung: schnellstmöglich, wie besprochen, spätestens zum 2026-11-30\n" in body
        assert "Beauftragungsumme: EUR 1.190,00 brutto (entspricht ca. EUR 1.000,00 netto zzgl. MwSt.)" in body
        assert "Eagle Propco GmbH\nc/o REDEFINE Asset Management GmbH\nKantstraße 149\n10623 Berlin" in body
        assert "Eagle Propco GmbH\nFriedrichstraße 1, 10117 Berlin\nSteuernummer: DE123456789" in body
        assert "direkt an das Postfach inv-eagle@redefine.group um" in body

    def test_missing_context_renders_placeholders(self, composer, ticket):
        ticket.beauftragungsumme = None
        ticket.expected_enddate = None
        draft = composer.build_offer_mail(ticket, None, "a@b.example")

        assert "Eigentümerin, —, möchten" in draft.body
        assert "Kontaktdaten: —\n" in draft.body
        assert "Steuernummer: —" in draft.body
        assert "Beauftragungsumme: EUR — brutto (entspricht ca. EUR — netto zzgl. MwSt.)" in draft.body
        assert "Ausführung: schnellstmöglich, wie besprochen\n" in draft.body
        assert "inv@redefine.group" in draft.body

    def test_subject_falls_back_to_title_then_default(self, composer, ticket):
        ticket.description = None
        assert composer.build_offer_mail(ticket, None, "a@b.example").subject == "Beauftragung – Wasserschaden im Bad"
        ticket.title = None
        assert composer.build_offer_mail(ticket, None, "a@b.example").subject == "Beauftragung – Maßnahme"

    def test_netto_uses_configured_rate(self, ticket):
        ticket.beauftragungsumme = 107.0
        draft = MailComposer(vat_rate=0.07).build_offer_mail(ticket, None, "a@b.example")
        assert "EUR 107,00 brutto (entspricht ca. EUR 100,00 netto" in draft.body


class TestHelpers:

    def test_mailto_encoding(self):
        href = build_mailto_href("x@y.example", "Anfrage – Bad & Küche", "Zeile 1\nZeile 2 (dringend)!")
        assert href == (
            "mailto:x@y.example?subject=Anfrage%20%E2%80%93%20Bad%20%26%20K%C3%BCche"
            "&body=Zeile%201%0AZeile%202%20(dringend)!"
        )

    def test_mailto_without_recipient(self):
        assert build_mailto_href(None, "a", "b") == "mailto:?subject=a&body=b"

    def test_photo_links_skip_private_and_unsigned(self):
        photos = [
            PhotoLink(original_name="bad.jpg", url="https://s/1", privacy="public"),
            PhotoLink(original_name="privat.jpg", url="https://s/2", privacy="private"),
            PhotoLink(original_name="kaputt.jpg", url=None),
        ]
        assert build_photo_links_text(photos) == "- bad.jpg: https://s/1"
        assert build_photo_links_text(photos, exclude_private=False) == "- bad.jpg: https://s/1\n\n- privat.jpg: https://s/2"

    def test_photo_links_empty(self):
        assert build_photo_links_text([]) == "(Keine Fotos verfügbar)"

    @pytest.mark.parametrize("company,mailbox", [
        ("Eagle", "inv-eagle@redefine.group"),
        ("Fund IV", "inv-4@redefine.group"),
        ("Eagle Real Estate", "inv@redefine.group"),
        (None, "inv@redefine.group"),
    ])
    def test_invoice_mailbox(self, company, mailbox):
        assert invoice_mailbox_for(company) == mailbox

    def test_due_text(self):
        assert offer_due_text(None) == "schnellstmöglich, wie besprochen"
        assert offer_due_text("2026-12-01T08:00:00+00:00") == "schnellstmöglich, wie besprochen, spätestens zum 2026-12-01"

    def test_position_lines_label_fallback(self):
        rows = [CostRow(label="  ", kostengruppe=""), CostRow(label="Trocknung", kostengruppe="390")]
        assert build_position_lines(rows) == "- LP 1: Leistungsposition\n- LP 2: Trocknung (KG 390)"
