# ================================
# TICKET ACTION SERVICE (services/ticket_action_service.py)
# ================================

"""
UI-facing actions of the ticket detail page and the ticket forms.

Every action returns an ``ActionResult`` instead of raising: the portal shows
``message`` as an inline banner and branches on ``error``. Exceptions from the
ERP bridge and the ticket store are translated here, in one place.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from app.config import settings
from app.core.exceptions import AppException, NotFoundError
from app.schemas.base import ActionResult
from app.schemas.erp import Partner, PartnerCreate, TenancyOption, TenancySummary
from app.schemas.mail import InquiryMailRequest, OfferMailRequest
from app.schemas.ticket import CostRow, Ticket
from app.schemas.vendor import ExternalVendor
from app.services.cost_report_service import CostReportRenderer, RenderedReport
from app.services.entity_directory_service import EntityDirectoryService
from app.services.mail_service import MailComposer, build_photo_links_text
from app.services.ticket_store import TicketStore
from app.services.vendor_matching_service import VendorMatchingService
from app.utils import format_address, generate_row_id, parse_german_address

logger = logging.getLogger(__name__)

# ================================
# TENANCY OPTION FORMATTING
# ================================

def _company_allowed(company: Optional[str]) -> bool:
    company = company or ""
    return any(allowed in company for allowed in settings.ALLOWED_PROPERTY_COMPANIES)

def _summary_address(summary: TenancySummary) -> str:
    zip_city = format_address([summary.property_zip, summary.property_city])
    return format_address([summary.property_street, zip_city], ", ")

def tenant_tenancy_options(summaries: Iterable[TenancySummary]) -> List[TenancyOption]:
    """Tenancies of allowed companies as "<id> - <street>, <zip> <city>" """
    options = []
    for summary in summaries:
        if not _company_allowed(summary.property_company):
            continue
        label = f"{summary.id} - {_summary_address(summary)}"
        options.append(TenancyOption(
            id=summary.id,
            label=label,
            full_details=label,
            asset_id=summary.asset_id,
        ))
    return options

def admin_tenancy_options(summaries: Iterable[TenancySummary]) -> List[TenancyOption]:
    """All non-vacant tenancies of allowed companies, sorted by label"""
    options = []
    for summary in summaries:
        name = (summary.name or summary.display_name or str(summary.id)).strip()
        if "vacant" in name.lower():
            continue
        if not _company_allowed(summary.property_company):
            continue

        address = _summary_address(summary)
        label = f"{name}{f' - {address}' if address else ''} | Tenancy #{summary.id}"
        if summary.tenant_partner_id:
            label += f" | Partner #{summary.tenant_partner_id}"

        options.append(TenancyOption(
            id=summary.id,
            label=label,
            full_details=label,
            asset_id=summary.asset_id,
            tenant_partner_id=summary.tenant_partner_id,
            tenant_partner_name=summary.tenant_partner_name,
            entity_id=summary.property_entity_id,
            entity_name=summary.property_entity_name,
            property_company=summary.property_company or None,
        ))

    options.sort(key=lambda option: option.label.casefold())
    return options

def _valid_id(value: Any) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None

# ================================
# SERVICE
# ================================

class TicketActionService:
    """Orchestrates ERP bridge, vendor search, ticket store, mails and report"""

    def __init__(
        self,
        store: TicketStore,
        directory: Optional[EntityDirectoryService] = None,
        matcher: Optional[VendorMatchingService] = None,
        composer: Optional[MailComposer] = None,
        renderer: Optional[CostReportRenderer] = None
    ):
        self.store = store
        self.directory = directory or EntityDirectoryService()
        self.matcher = matcher or VendorMatchingService(directory=self.directory)
        self.composer = composer or MailComposer()
        self.renderer = renderer or CostReportRenderer()

    # ================================
    # BUILDING / TENANCIES
    # ================================

    async def get_building_info(self, tenancy_id: Any) -> ActionResult:
        tenancy = _valid_id(tenancy_id)
        if not tenancy:
            logger.warning(f"get_building_info called with invalid tenancy id {tenancy_id!r}")
            return ActionResult.fail("INVALID_ID")

        try:
            building = await self.directory.resolve_tenancy(tenancy)
        except AppException as e:
            return ActionResult.fail(e.error_code or "ERP_ERROR")

        return ActionResult.ok(building)

    async def get_offer_mail_context(self, tenancy_id: Any, tenant_partner_id: Optional[int] = None) -> ActionResult:
        tenancy = _valid_id(tenancy_id)
        if not tenancy:
            return ActionResult.fail("INVALID_ID")

        try:
            context = await self.directory.fetch_offer_mail_context(tenancy, tenant_partner_id)
        except AppException as e:
            logger.error(f"Offer mail context failed for tenancy {tenancy}: {e.detail}")
            return ActionResult.fail(e.error_code or "ERP_ERROR")

        return ActionResult.ok(context)

    async def recommended_vendors(self, tenancy_id: Any) -> ActionResult:
        """Internal vendors for the building of a tenancy"""
        tenancy = _valid_id(tenancy_id)
        if not tenancy:
            return ActionResult.fail("INVALID_ID")

        try:
            building = await self.directory.resolve_tenancy(tenancy)
        except NotFoundError:
            logger.warning(f"No building data for tenancy {tenancy}")
            return ActionResult.fail("NO_BUILDING_DATA")
        except AppException as e:
            return ActionResult.fail(e.error_code or "ERP_ERROR")

        if not building.property_internal_label:
            logger.warning(f"No internal label for building of tenancy {tenancy}")
            return ActionResult.fail("NO_INTERNAL_LABEL")

        return await self.matcher.match_internal(building.property_internal_label)

    async def tenancy_options_for_partner(self, partner_id: Any) -> ActionResult:
        partner = _valid_id(partner_id)
        if not partner:
            return ActionResult.fail("INVALID_ID")

        try:
            summaries = await self.directory.resolve_tenancies_for_partner(partner)
        except AppException as e:
            logger.error(f"Tenancy lookup failed for partner {partner}: {e.detail}")
            return ActionResult.fail(e.error_code or "ERP_ERROR")

        return ActionResult.ok(tenant_tenancy_options(summaries))

    async def admin_tenancy_options(self, limit: int = 5000) -> ActionResult:
        try:
            summaries = await self.directory.list_all_tenancies(limit=limit)
        except AppException as e:
            logger.error(f"Admin tenancy list failed: {e.detail}")
            return ActionResult.fail(e.error_code or "ERP_ERROR")

        return ActionResult.ok(admin_tenancy_options(summaries))

    async def tenancy_names(self, tenancy_ids: Iterable[int]) -> ActionResult:
        try:
            names = await self.directory.fetch_tenancy_names(tenancy_ids)
        except AppException as e:
            return ActionResult.fail(e.error_code or "ERP_ERROR")

        return ActionResult.ok(names)

    # ================================
    # COST TABLE
    # ================================

    async def save_cost_table(self, ticket_id: str, rows: List[CostRow]) -> ActionResult:
        """Overwrite the whole cost table; rows without id get a generated one"""
        normalized = [
            row if row.id else row.model_copy(update={"id": generate_row_id()})
            for row in rows
        ]
        payload = [row.model_dump(by_alias=True, mode="json") for row in normalized]

        try:
            await self.store.update_ticket(ticket_id, {"cost_table": payload})
        except AppException as e:
            logger.error(f"Cost table update failed for ticket {ticket_id}: {e.detail}")
            return ActionResult.fail("SUPABASE_UPDATE_ERROR")

        logger.info(f"Saved cost table for ticket {ticket_id} ({len(normalized)} rows)")
        return ActionResult.ok(normalized)

    # ================================
    # VENDOR CHOICE
    # ================================

    async def save_chosen_external_vendor(self, ticket_id: str, vendor: ExternalVendor) -> ActionResult:
        street, zip_code, city = parse_german_address(vendor.address)
        values = {
            "chosen_tgm": vendor.name,
            "tgm_street": street,
            "tgm_zip": zip_code,
            "tgm_city": city,
            "tgm_mail": vendor.email,
            "tgm_phone": vendor.phone,
            # externer Dienstleister: ERP-Verknüpfung wird gelöst
            "odoo_vendor_id": None,
        }
        return await self._update_vendor_fields(ticket_id, values)

    async def save_chosen_internal_vendor(self, ticket_id: str, partner: Partner) -> ActionResult:
        values = {
            "chosen_tgm": partner.name,
            "tgm_street": partner.street,
            "tgm_zip": partner.zip,
            "tgm_city": partner.city,
            "tgm_mail": partner.email,
            "tgm_phone": partner.phone,
            "odoo_vendor_id": partner.id,
        }
        return await self._update_vendor_fields(ticket_id, values)

    async def reset_vendor_id(self, ticket_id: str) -> ActionResult:
        return await self._update_vendor_fields(
            ticket_id, {"odoo_vendor_id": 0}, error_code="SUPABASE_RESET_ERROR"
        )

    async def _update_vendor_fields(
        self,
        ticket_id: str,
        values: Dict[str, Any],
        error_code: str = "SUPABASE_UPDATE_ERROR"
    ) -> ActionResult:
        try:
            await self.store.update_ticket(ticket_id, values)
        except AppException as e:
            logger.error(f"Vendor update failed for ticket {ticket_id}: {e.detail}")
            return ActionResult.fail(error_code)

        try:
            ticket = await self.store.get_ticket(ticket_id)
        except AppException as e:
            logger.error(f"Ticket {ticket_id} updated but could not be reloaded: {e.detail}")
            return ActionResult.fail(e.error_code or "SUPABASE_READ_ERROR")

        return ActionResult.ok(ticket)

    async def import_chosen_vendor(self, ticket_id: str) -> ActionResult:
        """
        Create the chosen vendor as ERP partner.

        A cached ``odoo_vendor_id`` is only trusted after an existence probe;
        a phantom id (partner deleted in the ERP) is cleared and the partner
        is created again.
        """
        try:
            ticket = await self.store.get_ticket(ticket_id)
        except AppException as e:
            logger.error(f"Ticket {ticket_id} could not be loaded: {e.detail}")
            return ActionResult.fail("TICKET_NOT_FOUND")

        if not ticket:
            return ActionResult.fail("TICKET_NOT_FOUND")
        if not ticket.chosen_tgm:
            return ActionResult.fail("NO_VENDOR_SELECTED")

        cached_id = ticket.odoo_vendor_id
        if cached_id and cached_id > 0:
            if await self.directory.partner_exists(cached_id):
                return ActionResult.ok({"partner_id": cached_id}, already_imported=True)

            logger.warning(f"Ticket {ticket_id} references phantom partner {cached_id}, recreating")
            try:
                await self.store.update_ticket(ticket_id, {"odoo_vendor_id": None})
            except AppException as e:
                logger.error(f"Failed to clear phantom odoo_vendor_id on ticket {ticket_id}: {e.detail}")

        internal_label = await self.directory.get_property_internal_label(ticket.asset_id)

        try:
            partner_id = await self.directory.create_or_reuse_partner(
                PartnerCreate(
                    name=ticket.chosen_tgm,
                    street=ticket.tgm_street,
                    zip=ticket.tgm_zip,
                    city=ticket.tgm_city,
                    email=ticket.tgm_mail,
                    phone=ticket.tgm_phone,
                ),
                internal_label=internal_label
            )
        except AppException as e:
            logger.error(f"ERP import of vendor for ticket {ticket_id} failed: {e.detail}")
            return ActionResult.fail("ERP_IMPORT_ERROR")

        try:
            await self.store.update_ticket(ticket_id, {"odoo_vendor_id": partner_id})
        except AppException as e:
            logger.error(f"Error storing odoo_vendor_id {partner_id} on ticket {ticket_id}: {e.detail}")

        return ActionResult.ok({"partner_id": partner_id}, already_imported=False)

    # ================================
    # MAILS
    # ================================

    async def prepare_inquiry_mail(self, ticket_id: str, request: InquiryMailRequest) -> ActionResult:
        ticket = await self._load_ticket(ticket_id)
        if ticket is None:
            return ActionResult.fail("TICKET_NOT_FOUND")

        building = None
        if ticket.odoo_tenancy_id:
            try:
                building = await self.directory.resolve_tenancy(ticket.odoo_tenancy_id)
            except AppException as e:
                logger.warning(f"Inquiry mail for ticket {ticket_id} without building data: {e.detail}")

        draft = self.composer.build_inquiry_mail(
            ticket,
            building,
            request.vendor_email,
            photo_links_text=build_photo_links_text(request.photos),
        )
        return ActionResult.ok(draft)

    async def prepare_offer_mail(self, ticket_id: str, request: OfferMailRequest) -> ActionResult:
        ticket = await self._load_ticket(ticket_id)
        if ticket is None:
            return ActionResult.fail("TICKET_NOT_FOUND")
        if not ticket.odoo_tenancy_id:
            return ActionResult.fail("NO_BUILDING_DATA")

        context_result = await self.get_offer_mail_context(ticket.odoo_tenancy_id, ticket.tenant_partner_id)
        if not context_result.success:
            return context_result

        draft = self.composer.build_offer_mail(ticket, context_result.data, request.vendor_email)
        return ActionResult.ok(draft)

    async def _load_ticket(self, ticket_id: str) -> Optional[Ticket]:
        try:
            return await self.store.get_ticket(ticket_id)
        except AppException as e:
            logger.error(f"Ticket {ticket_id} could not be loaded: {e.detail}")
            return None

    # ================================
    # REPORT
    # ================================

    async def render_report(self, ticket_id: str) -> RenderedReport:
        """Raises NotFoundError for unknown tickets and ReportRenderError on render failure"""
        ticket = await self.store.get_ticket(ticket_id)
        if ticket is None:
            raise NotFoundError(f"Ticket {ticket_id} not found", error_code="TICKET_NOT_FOUND")
        return self.renderer.render(ticket)
