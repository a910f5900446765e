# ================================
# TICKET API ROUTES (api/v1/tickets.py)
# ================================

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
import logging

from app.core.exceptions import ReportRenderError
from app.dependencies import get_ticket_actions
from app.schemas.base import ActionResult, ReportErrorResponse
from app.schemas.erp import Partner
from app.schemas.mail import InquiryMailRequest, OfferMailRequest
from app.schemas.ticket import CostTableUpdate
from app.schemas.vendor import ExternalVendor
from app.services.ticket_action_service import TicketActionService

logger = logging.getLogger(__name__)

router = APIRouter()

# ================================
# COST TABLE & REPORT
# ================================

@router.put("/{ticket_id}/cost-table", response_model=ActionResult)
async def save_cost_table(
    ticket_id: str,
    update: CostTableUpdate,
    actions: TicketActionService = Depends(get_ticket_actions)
) -> ActionResult:
    """Kostentabelle vollständig überschreiben"""
    return await actions.save_cost_table(ticket_id, update.rows)

@router.get(
    "/{ticket_id}/report.pdf",
    response_class=Response,
    responses={
        200: {"content": {"application/pdf": {}}},
        404: {"description": "Ticket not found"},
        500: {"model": ReportErrorResponse, "description": "PDF rendering failed"}
    }
)
async def get_cost_report(
    ticket_id: str,
    actions: TicketActionService = Depends(get_ticket_actions)
):
    """Kostenschätzung als PDF (inline)"""
    try:
        report = await actions.render_report(ticket_id)
    except ReportRenderError as e:
        return JSONResponse(
            status_code=500,
            content=ReportErrorResponse(error="PDF generation failed", details=e.detail).model_dump()
        )

    return Response(
        content=report.pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="Kostenschaetzung_{ticket_id}.pdf"'}
    )

# ================================
# VENDOR CHOICE
# ================================

@router.post("/{ticket_id}/vendor/external", response_model=ActionResult)
async def choose_external_vendor(
    ticket_id: str,
    vendor: ExternalVendor,
    actions: TicketActionService = Depends(get_ticket_actions)
) -> ActionResult:
    return await actions.save_chosen_external_vendor(ticket_id, vendor)

@router.post("/{ticket_id}/vendor/internal", response_model=ActionResult)
async def choose_internal_vendor(
    ticket_id: str,
    partner: Partner,
    actions: TicketActionService = Depends(get_ticket_actions)
) -> ActionResult:
    return await actions.save_chosen_internal_vendor(ticket_id, partner)

@router.post("/{ticket_id}/vendor/import", response_model=ActionResult)
async def import_vendor(
    ticket_id: str,
    actions: TicketActionService = Depends(get_ticket_actions)
) -> ActionResult:
    """Gewählten Dienstleister im ERP anlegen (oder bestehende Verknüpfung bestätigen)"""
    return await actions.import_chosen_vendor(ticket_id)

@router.post("/{ticket_id}/vendor/reset", response_model=ActionResult)
async def reset_vendor(
    ticket_id: str,
    actions: TicketActionService = Depends(get_ticket_actions)
) -> ActionResult:
    return await actions.reset_vendor_id(ticket_id)

# ================================
# MAIL DRAFTS
# ================================

@router.post("/{ticket_id}/mail/inquiry", response_model=ActionResult)
async def prepare_inquiry_mail(
    ticket_id: str,
    request: InquiryMailRequest,
    actions: TicketActionService = Depends(get_ticket_actions)
) -> ActionResult:
    """Anfrage-Mail als {to, subject, body, mailto}"""
    return await actions.prepare_inquiry_mail(ticket_id, request)

@router.post("/{ticket_id}/mail/offer", response_model=ActionResult)
async def prepare_offer_mail(
    ticket_id: str,
    request: OfferMailRequest,
    actions: TicketActionService = Depends(get_ticket_actions)
) -> ActionResult:
    """Beauftragungs-Mail als {to, subject, body, mailto}"""
    return await actions.prepare_offer_mail(ticket_id, request)
