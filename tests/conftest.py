"""Pytest configuration and fixtures."""

import copy
import xmlrpc.client
from typing import Any, Dict, List, Optional, Set, Tuple

import httpx
import pytest

from app.services.entity_directory_service import EntityDirectoryService
from app.services.odoo_client import OdooRPCClient
from app.services.ticket_store import InMemoryTicketStore

ERP_URL = "https://erp.example.test"

# ================================
# FAKE ODOO (XML-RPC over httpx.MockTransport)
# ================================

class FakeOdoo:
    """In-memory Odoo answering /xmlrpc/2/common and /xmlrpc/2/object"""

    def __init__(self, records: Dict[str, Dict[int, Dict[str, Any]]]):
        self.records = copy.deepcopy(records)
        self.calls: List[Tuple[str, str, list, dict]] = []
        self.auth_calls = 0
        self.uid: Any = 2
        self.faults: Set[Tuple[str, str]] = set()
        self.next_id = 1000

    # --- helpers for tests ---

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls_for(self, model: str, method: Optional[str] = None) -> List[Tuple[str, str, list, dict]]:
        return [c for c in self.calls if c[0] == model and (method is None or c[1] == method)]

    def fail_on(self, model: str, method: str):
        self.faults.add((model, method))

    # --- protocol ---

    def handle(self, request: httpx.Request) -> httpx.Response:
        params, method = xmlrpc.client.loads(request.content)

        if request.url.path.endswith("/common"):
            self.auth_calls += 1
            return self._reply(self.uid)

        _db, _uid, _password, model, rpc_method, args, kwargs = params
        self.calls.append((model, rpc_method, args, kwargs))

        if (model, rpc_method) in self.faults:
            fault = xmlrpc.client.Fault(1, f"simulated failure in {model}.{rpc_method}")
            return httpx.Response(200, content=xmlrpc.client.dumps(fault, methodresponse=True).encode())

        if rpc_method == "search_read":
            return self._reply(self._search_read(model, args[0], kwargs))
        if rpc_method == "read":
            return self._reply(self._read(model, args[0], kwargs.get("fields")))
        if rpc_method == "create":
            return self._reply(self._create(model, args[0]))

        raise AssertionError(f"unexpected rpc method {rpc_method}")

    def _reply(self, result: Any) -> httpx.Response:
        body = xmlrpc.client.dumps((result,), methodresponse=True, allow_none=True)
        return httpx.Response(200, content=body.encode("utf-8"), headers={"Content-Type": "text/xml"})

    def _search_read(self, model: str, domain: list, kwargs: dict) -> List[Dict[str, Any]]:
        matches = [r for r in self.records.get(model, {}).values() if all(self._match(model, r, t) for t in domain)]
        limit = kwargs.get("limit")
        if limit:
            matches = matches[:limit]
        return [self._project(r, kwargs.get("fields")) for r in matches]

    def _read(self, model: str, ids: List[int], fields: Optional[List[str]]) -> List[Dict[str, Any]]:
        table = self.records.get(model, {})
        return [self._project(table[i], fields) for i in ids if i in table]

    def _create(self, model: str, values: Dict[str, Any]) -> int:
        self.next_id += 1
        record = dict(values, id=self.next_id)
        if "category_id" in record:
            # [(6, 0, ids)] command
            record["category_id"] = list(record["category_id"][0][2])
        self.records.setdefault(model, {})[self.next_id] = record
        return self.next_id

    def _project(self, record: Dict[str, Any], fields: Optional[List[str]]) -> Dict[str, Any]:
        if not fields:
            return dict(record)
        projected = {f: record.get(f, False) for f in fields}
        projected["id"] = record["id"]
        return projected

    def _match(self, model: str, record: Dict[str, Any], term: list) -> bool:
        field, operator, value = term
        if field == "category_id.name":
            names = [
                self.records["res.partner.category"][cid]["name"]
                for cid in record.get("category_id") or []
            ]
            return any(value.lower() in name.lower() for name in names)

        current = record.get(field, False)
        if isinstance(current, list) and field.endswith("_id"):
            current = current[0] if current else False

        if operator == "=":
            return current == value
        if operator == "in":
            return current in value
        if operator == "ilike":
            return bool(current) and value.lower() in str(current).lower()
        raise AssertionError(f"unsupported operator {operator}")

def default_erp_records() -> Dict[str, Dict[int, Dict[str, Any]]]:
    return {
        "property.tenancy": {
            500: {"id": 500, "name": "WE 01", "display_name": "WE 01 Kantstraße",
                  "main_property_id": [10, "Objekt Kantstraße"], "partner_id": [200, "Erika Mustermann"]},
            501: {"id": 501, "name": "WE 02", "display_name": "WE 02",
                  "main_property_id": False, "partner_id": [200, "Erika Mustermann"]},
            502: {"id": 502, "name": "Vacant WE 03", "display_name": "Vacant WE 03",
                  "main_property_id": [10, "Objekt Kantstraße"], "partner_id": False},
            503: {"id": 503, "name": "WE 04", "display_name": "WE 04",
                  "main_property_id": [11, "Objekt Seestraße"], "partner_id": [201, "Max Muster"]},
        },
        "property.property": {
            10: {"id": 10, "name": "Objekt Kantstraße", "reference_id": "KS-10", "internal_label": "Kant149",
                 "street": "Kantstraße 149", "zip": "10623", "city": "Berlin",
                 "construction_year": 1910, "last_modernization": False,
                 "entity_id": [300, "Eagle Propco GmbH"], "company_id": [1, "Eagle Real Estate"]},
            11: {"id": 11, "name": "Objekt Seestraße", "reference_id": False, "internal_label": False,
                 "street": "Seestraße 5", "zip": "13353", "city": "Berlin",
                 "construction_year": False, "last_modernization": False,
                 "entity_id": False, "company_id": [2, "Other Holding"]},
        },
        "res.partner": {
            200: {"id": 200, "name": "Erika Mustermann", "email": "erika@example.com", "phone": "030 123",
                  "street": "Kantstraße 149", "zip": "10623", "city": "Berlin", "vat": False,
                  "contact_address_complete": "Kantstraße 149\n10623 Berlin", "category_id": []},
            300: {"id": 300, "name": "Eagle Propco GmbH", "email": False, "phone": False,
                  "street": "Friedrichstraße 1", "zip": "10117", "city": "Berlin", "vat": "DE123456789",
                  "contact_address_complete": "Friedrichstraße 1, 10117 Berlin", "category_id": []},
            400: {"id": 400, "name": "Sanitär Schmidt", "email": "info@schmidt.example", "phone": "030 555",
                  "street": "Hauptstraße 3", "zip": "10827", "city": "Berlin", "vat": False,
                  "contact_address_complete": False, "category_id": [1, 2]},
            401: {"id": 401, "name": "Elektro Meyer", "email": False, "phone": False,
                  "street": False, "zip": False, "city": False, "vat": False,
                  "contact_address_complete": False, "category_id": [1]},
            402: {"id": 402, "name": "Dach Kant", "email": False, "phone": False,
                  "street": False, "zip": False, "city": False, "vat": False,
                  "contact_address_complete": False, "category_id": [2]},
        },
        "res.partner.category": {
            1: {"id": 1, "name": "Maintenance"},
            2: {"id": 2, "name": "Kant149"},
        },
    }

# ================================
# FIXTURES
# ================================

@pytest.fixture
def fake_odoo() -> FakeOdoo:
    return FakeOdoo(default_erp_records())

@pytest.fixture
def odoo_client(fake_odoo: FakeOdoo) -> OdooRPCClient:
    return OdooRPCClient(
        url=ERP_URL,
        db="portal",
        username="portal-bot",
        password="secret",
        transport=fake_odoo.transport()
    )

@pytest.fixture
def directory(odoo_client: OdooRPCClient) -> EntityDirectoryService:
    return EntityDirectoryService(client=odoo_client)

@pytest.fixture
def ticket_record() -> Dict[str, Any]:
    return {
        "id": "7f3c2a10-1111-2222-3333-444455556666",
        "title": "Wasserschaden im Bad",
        "description": "Undichte Leitung hinter der Badewanne",
        "odoo_tenancy_id": 500,
        "tenant_partner_id": 200,
        "asset_id": 10,
        "cost_analysis_text": "Mangelbeschreibung\nFeuchtigkeit an der Wand.\n\nFazit:\nSanierung erforderlich.",
        "cost_table": [
            {"id": "r1", "label": "LP 1: Leckortung", "kostengruppe": "410", "amount": 500, "notes": "", "rowType": "position"},
            {"id": "r2", "label": "Anfahrt", "kostengruppe": "", "amount": 200, "notes": "pauschal", "rowType": "extra"},
        ],
        "beauftragungsumme": 1190.0,
        "expected_enddate": "2026-11-30T00:00:00",
    }

@pytest.fixture
def ticket_store(ticket_record: Dict[str, Any]) -> InMemoryTicketStore:
    store = InMemoryTicketStore()
    store.add(ticket_record)
    return store
