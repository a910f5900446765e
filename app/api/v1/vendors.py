# ================================
# VENDOR API ROUTES (api/v1/vendors.py)
# ================================

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_vendor_matcher
from app.schemas.base import ActionResult
from app.schemas.vendor import ExternalSearchRequest
from app.services.vendor_matching_service import VendorMatchingService

router = APIRouter()

@router.post("/external-search", response_model=ActionResult)
async def search_external_vendors(
    request: ExternalSearchRequest,
    matcher: VendorMatchingService = Depends(get_vendor_matcher)
) -> ActionResult:
    """
    Externe Dienstleistersuche (Google Places Text Search).

    Ergebnis nach Bewertung sortiert, ``meta.used_prompt`` enthält die
    tatsächlich verwendete (ggf. gekürzte) Suchanfrage.
    """
    return await matcher.match_external(request.prompt)

@router.get("/internal", response_model=ActionResult)
async def search_internal_vendors(
    label: str = Query("", description="Internes Label des Objekts"),
    matcher: VendorMatchingService = Depends(get_vendor_matcher)
) -> ActionResult:
    """Dienstleister aus dem ERP mit den Tags "Maintenance" und <label>"""
    return await matcher.match_internal(label)
