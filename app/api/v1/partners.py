# ================================
# PARTNER API ROUTES (api/v1/partners.py)
# ================================

from fastapi import APIRouter, Depends

from app.dependencies import get_ticket_actions
from app.schemas.base import ActionResult
from app.services.ticket_action_service import TicketActionService

router = APIRouter()

@router.get("/{partner_id}/tenancies", response_model=ActionResult)
async def get_partner_tenancies(
    partner_id: int,
    actions: TicketActionService = Depends(get_ticket_actions)
) -> ActionResult:
    """Mietverträge eines Mieters als Auswahlliste ("<id> - <adresse>")"""
    return await actions.tenancy_options_for_partner(partner_id)
