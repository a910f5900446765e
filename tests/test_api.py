"""In-process API tests (FastAPI TestClient, fake ERP, in-memory ticket store)."""

import pytest
from fastapi.testclient import TestClient

from app.core.exceptions import ReportRenderError
from app.dependencies import get_entity_directory, get_ticket_store
from app.main import app
from app.services.cost_report_service import CostReportRenderer

TICKET_ID = "7f3c2a10-1111-2222-3333-444455556666"

@pytest.fixture
def client(ticket_store, directory):
    app.dependency_overrides[get_ticket_store] = lambda: ticket_store
    app.dependency_overrides[get_entity_directory] = lambda: directory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_detailed_health_lists_integrations(self, client):
        checks = client.get("/health/detailed").json()["checks"]
        assert set(checks) == {"erp", "places", "ticket_store"}

    def test_request_id_is_echoed(self, client):
        response = client.get("/", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"
        assert "X-Process-Time" in response.headers


class TestTenancyRoutes:

    def test_building(self, client):
        body = client.get("/api/v1/tenancies/500/building").json()
        assert body["success"] is True
        assert body["data"]["objekt_label"] == "KS-10 – Kantstraße 149 10623 Berlin"

    def test_unknown_building_is_typed_failure(self, client):
        body = client.get("/api/v1/tenancies/999/building").json()
        assert body["success"] is False
        assert body["error"] == "NOT_FOUND"
        assert body["message"]

    def test_recommended_vendors(self, client):
        body = client.get("/api/v1/tenancies/500/recommended-vendors").json()
        assert [v["id"] for v in body["data"]] == [400]

    def test_names(self, client):
        body = client.post("/api/v1/tenancies/names", json={"ids": [500, 503]}).json()
        assert body["data"] == {"500": "WE 01 Kantstraße", "503": "WE 04"}

    def test_partner_tenancies(self, client):
        body = client.get("/api/v1/partners/200/tenancies").json()
        assert [o["id"] for o in body["data"]] == [500]


class TestVendorRoutes:

    def test_external_search_without_prompt(self, client):
        body = client.post("/api/v1/vendors/external-search", json={"prompt": ""}).json()
        assert body["error"] == "EMPTY_PROMPT"

    def test_internal_search(self, client):
        body = client.get("/api/v1/vendors/internal", params={"label": "Kant149"}).json()
        assert body["data"][0]["name"] == "Sanitär Schmidt"


class TestTicketRoutes:

    def test_report_pdf(self, client):
        response = client.get(f"/api/v1/tickets/{TICKET_ID}/report.pdf")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == f'inline; filename="Kostenschaetzung_{TICKET_ID}.pdf"'
        assert response.content.startswith(b"%PDF")

    def test_report_unknown_ticket(self, client):
        response = client.get("/api/v1/tickets/missing/report.pdf")
        assert response.status_code == 404
        assert response.json()["error_code"] == "TICKET_NOT_FOUND"

    def test_report_failure_returns_json_error(self, client, monkeypatch):
        def fail(self, ticket, generated_at=None):
            raise ReportRenderError("font not available")

        monkeypatch.setattr(CostReportRenderer, "render", fail)

        response = client.get(f"/api/v1/tickets/{TICKET_ID}/report.pdf")
        assert response.status_code == 500
        assert response.json() == {"error": "PDF generation failed", "details": "font not available"}

    def test_save_cost_table(self, client, ticket_store):
        payload = {"rows": [{"label": "LP 1: Trocknung", "kostengruppe": "390", "amount": "250,00", "rowType": "position"}]}
        body = client.put(f"/api/v1/tickets/{TICKET_ID}/cost-table", json=payload).json()

        assert body["success"] is True
        saved = ticket_store.tickets[TICKET_ID]["cost_table"]
        assert saved[0]["amount"] == 250.0
        assert saved[0]["id"]

    def test_choose_and_import_vendor(self, client, fake_odoo):
        vendor = {"id": "p1", "name": "Dach & Fach", "address": "Müllerstraße 12, 13353 Berlin", "email": "info@dach.example"}
        assert client.post(f"/api/v1/tickets/{TICKET_ID}/vendor/external", json=vendor).json()["success"]

        first = client.post(f"/api/v1/tickets/{TICKET_ID}/vendor/import").json()
        second = client.post(f"/api/v1/tickets/{TICKET_ID}/vendor/import").json()

        assert first["meta"]["already_imported"] is False
        assert second["meta"]["already_imported"] is True
        assert second["data"]["partner_id"] == first["data"]["partner_id"]

    def test_offer_mail(self, client):
        body = client.post(f"/api/v1/tickets/{TICKET_ID}/mail/offer", json={"vendor_email": "info@dach.example"}).json()
        assert body["data"]["to"] == "info@dach.example"
        assert body["data"]["mailto"].startswith("mailto:info@dach.example?subject=Beauftragung")

    def test_mail_request_validation(self, client):
        response = client.post(f"/api/v1/tickets/{TICKET_ID}/mail/inquiry", json={})
        assert response.status_code == 422
