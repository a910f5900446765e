# ================================
# MAIL SERVICE (services/mail_service.py)
# ================================

"""
Mail Composer

Füllt die Klartext-Vorlagen für Anfrage- und Beauftragungsmails. Es wird
nichts versendet: das Ergebnis ({to, subject, body}) wird als mailto:-Link
an den lokalen Mail-Client des Bearbeiters übergeben.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional
from urllib.parse import quote

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from app.config import settings
from app.schemas.erp import BuildingInfo, OfferMailContext
from app.schemas.mail import MailDraft, PhotoLink
from app.schemas.ticket import CostRow, Ticket
from app.utils import EM_DASH, format_address, format_de_number, to_decimal

logger = logging.getLogger(__name__)

NO_PHOTOS_TEXT = "(Keine Fotos verfügbar)"
NO_POSITIONS_TEXT = "- (keine Leistungspositionen vorhanden)"
DEFAULT_DUE_TEXT = "schnellstmöglich, wie besprochen"
DEFAULT_OFFER_DESCRIPTION = "Maßnahme"

# encodeURIComponent lässt diese Zeichen unverändert
_URI_COMPONENT_SAFE = "!~*'()"

def _resolve_templates_dir(templates_dir: Optional[str]) -> Path:
    path = Path(templates_dir or settings.EMAIL_TEMPLATES_DIR)
    if path.is_absolute():
        return path
    # relativ zum Projektverzeichnis (Elternverzeichnis von app/)
    return Path(__file__).resolve().parents[2] / path

# ================================
# HELPERS
# ================================

def build_mailto_href(to: Optional[str], subject: str, body: str) -> str:
    """mailto:-Link mit prozentkodiertem Betreff und Text"""
    subject_enc = quote(subject, safe=_URI_COMPONENT_SAFE)
    body_enc = quote(body, safe=_URI_COMPONENT_SAFE)
    return f"mailto:{to or ''}?subject={subject_enc}&body={body_enc}"

def build_photo_links_text(photos: Iterable[PhotoLink], exclude_private: bool = True) -> str:
    """Liste "- name: url" der (bereits signierten) Foto-Links, private Fotos optional ausgeblendet"""
    lines = [
        f"- {photo.original_name}: {photo.url}"
        for photo in photos
        if photo.url and not (exclude_private and photo.privacy == "private")
    ]
    return "\n\n".join(lines) if lines else NO_PHOTOS_TEXT

def invoice_mailbox_for(company_name: Optional[str]) -> str:
    """Rechnungspostfach je Objektgesellschaft"""
    return settings.INVOICE_MAILBOXES.get(company_name or "", settings.INVOICE_MAILBOX_DEFAULT)

def offer_due_text(expected_enddate: Optional[str]) -> str:
    if not expected_enddate:
        return DEFAULT_DUE_TEXT
    return f"{DEFAULT_DUE_TEXT}, spätestens zum {expected_enddate[:10]}"

def build_position_lines(rows: List[CostRow]) -> str:
    """Nummerierte Leistungspositionen "- LP n: label (KG x)" """
    if not rows:
        return NO_POSITIONS_TEXT

    lines = []
    for number, row in enumerate(rows, start=1):
        label = row.label.strip() or "Leistungsposition"
        kg = f" (KG {row.kostengruppe})" if row.kostengruppe else ""
        lines.append(f"- LP {number}: {label}{kg}")
    return "\n".join(lines)

# ================================
# COMPOSER
# ================================

class MailComposer:
    """Deterministic template filling for the inquiry and offer mails"""

    def __init__(self, vat_rate: Optional[float] = None, templates_dir: Optional[str] = None):
        self.vat_rate = settings.VAT_RATE if vat_rate is None else vat_rate
        self.template_env = Environment(
            loader=FileSystemLoader(str(_resolve_templates_dir(templates_dir))),
            autoescape=select_autoescape(['html', 'xml']),
            keep_trailing_newline=True,
            undefined=StrictUndefined
        )

    def _render(self, template_name: str, **context) -> str:
        return self.template_env.get_template(template_name).render(**context)

    def build_inquiry_mail(
        self,
        ticket: Ticket,
        building: Optional[BuildingInfo],
        vendor_email: str,
        photo_links_text: Optional[str] = None,
        cost_rows: Optional[List[CostRow]] = None
    ) -> MailDraft:
        """Anfrage an einen Dienstleister (Angebot / Durchführung)"""
        objekt = None
        address = ""
        if building:
            objekt = building.objekt_label or building.property_internal_label or building.property_reference
            address = format_address([building.property_street, building.property_zip, building.property_city])

        rows = ticket.cost_table if cost_rows is None else cost_rows
        subject = " – ".join(
            part for part in ["Anfrage", (ticket.title or "").strip(), building.objekt_label if building else ""]
            if part
        )

        body = self._render(
            "inquiry.txt",
            objekt=objekt or EM_DASH,
            address=address or EM_DASH,
            description=ticket.description or "",
            lp_lines=build_position_lines(rows),
            photo_links=photo_links_text or NO_PHOTOS_TEXT,
        )

        return MailDraft(
            to=vendor_email,
            subject=subject,
            body=body,
            mailto=build_mailto_href(vendor_email, subject, body)
        )

    def build_offer_mail(
        self,
        ticket: Ticket,
        context: Optional[OfferMailContext],
        vendor_email: str
    ) -> MailDraft:
        """Beauftragung eines Dienstleisters im Namen der Eigentümerin"""
        context = context or OfferMailContext()
        owner = context.owner_entity
        tenant = context.tenant
        company_name = context.building.company_name if context.building else None

        description = ticket.description or ticket.title or DEFAULT_OFFER_DESCRIPTION
        subject = f"Beauftragung – {description}".strip()

        tenant_parts = []
        if tenant:
            if tenant.name:
                tenant_parts.append(f"Herr/Frau {tenant.name}")
            if tenant.phone:
                tenant_parts.append(f"Tel.: {tenant.phone}")
            if tenant.email:
                tenant_parts.append(f"E-Mail: {tenant.email}")

        brutto_text = EM_DASH
        netto_text = EM_DASH
        if ticket.beauftragungsumme is not None:
            brutto = to_decimal(ticket.beauftragungsumme)
            netto = brutto / (1 + to_decimal(self.vat_rate))
            brutto_text = format_de_number(brutto)
            netto_text = format_de_number(netto)

        body = self._render(
            "offer.txt",
            owner_name=(owner.name if owner else None) or EM_DASH,
            owner_address=(owner.address if owner else None) or EM_DASH,
            owner_vat=(owner.vat if owner else None) or EM_DASH,
            description=description,
            tenant_block=", ".join(tenant_parts) or EM_DASH,
            tenant_address=(tenant.address if tenant else None) or EM_DASH,
            due_text=offer_due_text(ticket.expected_enddate),
            brutto_text=brutto_text,
            netto_text=netto_text,
            invoice_mailbox=invoice_mailbox_for(company_name),
        )

        logger.info(f"Offer mail prepared for ticket {ticket.id} (invoice mailbox {invoice_mailbox_for(company_name)})")
        return MailDraft(
            to=vendor_email,
            subject=subject,
            body=body,
            mailto=build_mailto_href(vendor_email, subject, body)
        )
