# ================================
# TICKET STORE (services/ticket_store.py)
# ================================

"""
Zugriff auf die Ticket-Tabelle des Backends (Supabase).

Nur die Felder, die Vendor-Auswahl, Kostentabelle, Mails und PDF benötigen.
Der Supabase-Client ist synchron und läuft deshalb in einem Worker-Thread.
"""

import asyncio
import copy
import logging
from typing import Any, Dict, Optional

from postgrest import APIError
from supabase import Client, create_client

from app.config import settings
from app.core.exceptions import TicketStoreError
from app.schemas.ticket import Ticket

logger = logging.getLogger(__name__)

TICKETS_TABLE = "tickets"

TICKET_COLUMNS = ",".join([
    "id",
    "title",
    "description",
    "created_at",
    "odoo_tenancy_id",
    "tenant_partner_id",
    "asset_id",
    "chosen_tgm",
    "tgm_street",
    "tgm_zip",
    "tgm_city",
    "tgm_mail",
    "tgm_phone",
    "odoo_vendor_id",
    "cost_analysis_text",
    "cost_table",
    "beauftragungsumme",
    "expected_enddate",
])

class TicketStore:
    """Interface: load one ticket, write a partial update"""

    async def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        raise NotImplementedError

    async def update_ticket(self, ticket_id: str, values: Dict[str, Any]) -> None:
        """Raises TicketStoreError when the write fails"""
        raise NotImplementedError

class SupabaseTicketStore(TicketStore):
    """Ticket store backed by the Supabase `tickets` table (service role key)"""

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None, client: Optional[Client] = None):
        self.client: Client = client or create_client(
            url or settings.SUPABASE_URL,
            key or settings.SUPABASE_SERVICE_ROLE_KEY
        )

    def _table(self):
        return self.client.table(TICKETS_TABLE)

    async def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        try:
            resp = await asyncio.to_thread(
                lambda: self._table().select(TICKET_COLUMNS).eq("id", ticket_id).maybe_single().execute()
            )
        except APIError as e:
            logger.error(f"Supabase read failed for ticket {ticket_id}: {e.message}")
            raise TicketStoreError(f"Ticket read failed: {e.message}", error_code="SUPABASE_READ_ERROR")

        if resp is None or not resp.data:
            return None
        return Ticket.model_validate(resp.data)

    async def update_ticket(self, ticket_id: str, values: Dict[str, Any]) -> None:
        try:
            await asyncio.to_thread(
                lambda: self._table().update(values).eq("id", ticket_id).execute()
            )
        except APIError as e:
            logger.error(f"Supabase update failed for ticket {ticket_id}: {e.message}")
            raise TicketStoreError(f"Ticket update failed: {e.message}")

        logger.debug(f"Updated ticket {ticket_id}: {sorted(values)}")

class InMemoryTicketStore(TicketStore):
    """Dict-backed store for local runs without Supabase and for tests"""

    def __init__(self, tickets: Optional[Dict[str, Dict[str, Any]]] = None):
        self.tickets: Dict[str, Dict[str, Any]] = {
            ticket_id: dict(record, id=ticket_id) for ticket_id, record in (tickets or {}).items()
        }

    def add(self, record: Dict[str, Any]) -> Ticket:
        self.tickets[record["id"]] = dict(record)
        return Ticket.model_validate(record)

    async def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        record = self.tickets.get(ticket_id)
        return Ticket.model_validate(record) if record else None

    async def update_ticket(self, ticket_id: str, values: Dict[str, Any]) -> None:
        if ticket_id not in self.tickets:
            raise TicketStoreError(f"Ticket {ticket_id} does not exist")
        self.tickets[ticket_id].update(copy.deepcopy(values))
