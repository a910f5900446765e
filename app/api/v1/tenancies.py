# ================================
# TENANCY API ROUTES (api/v1/tenancies.py)
# ================================

from fastapi import APIRouter, Depends, Query
from typing import Optional

from app.dependencies import get_ticket_actions
from app.schemas.base import ActionResult, IdListRequest
from app.services.ticket_action_service import TicketActionService

router = APIRouter()

@router.get("", response_model=ActionResult)
async def list_tenancies(
    limit: int = Query(5000, ge=1, le=5000),
    actions: TicketActionService = Depends(get_ticket_actions)
) -> ActionResult:
    """Alle Mietverträge (ohne Leerstand) für die Admin-Ticketanlage"""
    return await actions.admin_tenancy_options(limit=limit)

@router.post("/names", response_model=ActionResult)
async def get_tenancy_names(
    request: IdListRequest,
    actions: TicketActionService = Depends(get_ticket_actions)
) -> ActionResult:
    """Anzeigenamen zu einer Liste von Tenancy-IDs"""
    return await actions.tenancy_names(request.ids)

@router.get("/{tenancy_id}/building", response_model=ActionResult)
async def get_building_info(
    tenancy_id: int,
    actions: TicketActionService = Depends(get_ticket_actions)
) -> ActionResult:
    """Gebäudedaten (property.property) zu einem Mietvertrag"""
    return await actions.get_building_info(tenancy_id)

@router.get("/{tenancy_id}/offer-context", response_model=ActionResult)
async def get_offer_context(
    tenancy_id: int,
    tenant_partner_id: Optional[int] = None,
    actions: TicketActionService = Depends(get_ticket_actions)
) -> ActionResult:
    """Eigentümerin, Mieter und Objektgesellschaft für die Beauftragungsmail"""
    return await actions.get_offer_mail_context(tenancy_id, tenant_partner_id)

@router.get("/{tenancy_id}/recommended-vendors", response_model=ActionResult)
async def get_recommended_vendors(
    tenancy_id: int,
    actions: TicketActionService = Depends(get_ticket_actions)
) -> ActionResult:
    """Interne Dienstleister (Tags "Maintenance" + internes Label des Objekts)"""
    return await actions.recommended_vendors(tenancy_id)
