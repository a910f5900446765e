# ================================
# DEPENDENCIES (dependencies.py)
# ================================

from fastapi import Depends
from functools import lru_cache
import logging

from app.config import settings
from app.services.entity_directory_service import EntityDirectoryService
from app.services.ticket_action_service import TicketActionService
from app.services.ticket_store import InMemoryTicketStore, SupabaseTicketStore, TicketStore
from app.services.vendor_matching_service import VendorMatchingService

logger = logging.getLogger(__name__)

# ================================
# SERVICE DEPENDENCIES
# ================================

@lru_cache()
def get_ticket_store() -> TicketStore:
    """Supabase wenn konfiguriert, sonst In-Memory (Demo/Tests)"""
    if settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY:
        return SupabaseTicketStore()

    logger.warning("SUPABASE_URL/SUPABASE_SERVICE_ROLE_KEY not configured, using in-memory ticket store")
    return InMemoryTicketStore()

def get_entity_directory() -> EntityDirectoryService:
    """ERP-Bridge, eine Session pro Operation"""
    return EntityDirectoryService()

def get_vendor_matcher(
    directory: EntityDirectoryService = Depends(get_entity_directory)
) -> VendorMatchingService:
    return VendorMatchingService(directory=directory)

def get_ticket_actions(
    store: TicketStore = Depends(get_ticket_store),
    directory: EntityDirectoryService = Depends(get_entity_directory),
    matcher: VendorMatchingService = Depends(get_vendor_matcher)
) -> TicketActionService:
    return TicketActionService(store=store, directory=directory, matcher=matcher)
