# ================================
# ENTITY DIRECTORY SERVICE (services/entity_directory_service.py)
# ================================

import logging
from typing import Any, Dict, Iterable, List, Optional

from app.config import settings
from app.core.exceptions import AppException, NotFoundError
from app.schemas.erp import (
    BuildingContact,
    BuildingInfo,
    OfferMailContext,
    OwnerEntity,
    Partner,
    PartnerCreate,
    TenancySummary,
    TenantContact,
)
from app.services.odoo_client import Many2One, OdooRPCClient, OdooSession, odoo_ids, odoo_int, odoo_text
from app.utils import format_address

logger = logging.getLogger(__name__)

TENANCY_MODEL = "property.tenancy"
PROPERTY_MODEL = "property.property"
PARTNER_MODEL = "res.partner"
CATEGORY_MODEL = "res.partner.category"

TENANCY_FIELDS = ["id", "name", "display_name", "main_property_id", "partner_id"]
PROPERTY_FIELDS = [
    "id",
    "name",
    "reference_id",
    "internal_label",
    "street",
    "zip",
    "city",
    "construction_year",
    "last_modernization",
    "entity_id",
    "company_id",
]
PROPERTY_ADDRESS_FIELDS = ["id", "street", "zip", "city", "company_id", "entity_id"]
VENDOR_FIELDS = ["id", "name", "email", "phone", "street", "zip", "city", "category_id"]
CONTACT_FIELDS = ["id", "name", "email", "phone", "street", "zip", "city", "vat", "contact_address_complete"]

PARTNER_TENANCY_LIMIT = 50
VENDOR_SEARCH_LIMIT = 20

class EntityDirectoryService:
    """
    Bridge between portal identifiers and the ERP record graph
    (tenancy -> property -> partner) plus idempotent vendor creation.

    Read operations raise ``ErpError`` on transport/auth failures and
    ``NotFoundError`` for unknown ids; callers decide how to surface them.
    """

    def __init__(self, client: Optional[OdooRPCClient] = None):
        self.client = client or OdooRPCClient()

    # ================================
    # TENANCY RESOLUTION
    # ================================

    async def resolve_tenancy(self, tenancy_id: int) -> BuildingInfo:
        """Tenancy + building data; a tenancy without property link is not an error"""
        async with self.client.session() as odoo:
            tenancies = await odoo.search_read(
                TENANCY_MODEL,
                [["id", "=", tenancy_id]],
                ["id", "name", "main_property_id"],
                limit=1
            )
            if not tenancies:
                logger.warning(f"No tenancy found in Odoo for id {tenancy_id}")
                raise NotFoundError(f"Tenancy {tenancy_id} not found in ERP")

            tenancy = tenancies[0]
            empty = BuildingInfo(
                tenancy_id=odoo_int(tenancy.get("id")) or tenancy_id,
                tenancy_name=odoo_text(tenancy.get("name")),
            )

            main_property = Many2One.from_raw(tenancy.get("main_property_id"))
            if main_property.is_absent:
                logger.warning(f"Tenancy {tenancy_id} has no main_property_id")
                return empty

            properties = await odoo.read(PROPERTY_MODEL, [main_property.id], PROPERTY_FIELDS)
            if not properties:
                logger.warning(f"No property found for id {main_property.id}")
                return empty

            return self._building_from_property(empty, properties[0])

    def _building_from_property(self, base: BuildingInfo, prop: Dict[str, Any]) -> BuildingInfo:
        property_id = odoo_int(prop.get("id"))
        reference = (
            odoo_text(prop.get("reference_id"))
            or odoo_text(prop.get("name"))
            or (str(property_id) if property_id else None)
        )
        street = odoo_text(prop.get("street"))
        zip_code = odoo_text(prop.get("zip"))
        city = odoo_text(prop.get("city"))
        address = format_address([street, zip_code, city])
        entity = Many2One.from_raw(prop.get("entity_id"))
        company = Many2One.from_raw(prop.get("company_id"))

        return base.model_copy(update={
            "objekt_label": " – ".join(part for part in [reference, address] if part),
            "property_id": property_id,
            "property_reference": reference,
            "property_internal_label": odoo_text(prop.get("internal_label")),
            "property_street": street,
            "property_zip": zip_code,
            "property_city": city,
            "construction_year": odoo_int(prop.get("construction_year")),
            "last_modernization": odoo_int(prop.get("last_modernization")),
            "entity_id": entity.id,
            "entity_name": entity.label,
            "company_name": company.label,
        })

    async def resolve_tenancies_for_partner(self, partner_id: int) -> List[TenancySummary]:
        """All tenancies of a tenant partner, enriched with property address/company"""
        async with self.client.session() as odoo:
            tenancies = await odoo.search_read(
                TENANCY_MODEL,
                [["partner_id", "=", partner_id]],
                ["id", "name", "display_name", "main_property_id"],
                limit=PARTNER_TENANCY_LIMIT
            )
            if not tenancies:
                return []
            return await self._enrich_tenancies(odoo, tenancies)

    async def list_all_tenancies(self, limit: int = 5000) -> List[TenancySummary]:
        """Every tenancy (admin selection list), enriched like resolve_tenancies_for_partner"""
        async with self.client.session() as odoo:
            tenancies = await odoo.search_read(TENANCY_MODEL, [], TENANCY_FIELDS, limit=limit)
            if not tenancies:
                return []
            return await self._enrich_tenancies(odoo, tenancies)

    async def _enrich_tenancies(
        self,
        odoo: OdooSession,
        tenancies: List[Dict[str, Any]]
    ) -> List[TenancySummary]:
        property_ids = _unique(
            Many2One.from_raw(t.get("main_property_id")).id for t in tenancies
        )

        properties_by_id: Dict[int, Dict[str, Any]] = {}
        if property_ids:
            properties = await odoo.search_read(
                PROPERTY_MODEL,
                [["id", "in", property_ids]],
                PROPERTY_ADDRESS_FIELDS,
                limit=len(property_ids)
            )
            properties_by_id = {p["id"]: p for p in properties if odoo_int(p.get("id"))}

        summaries = []
        for tenancy in tenancies:
            asset = Many2One.from_raw(tenancy.get("main_property_id"))
            prop = properties_by_id.get(asset.id, {}) if asset.id else {}
            company = Many2One.from_raw(prop.get("company_id"))
            entity = Many2One.from_raw(prop.get("entity_id"))
            tenant = Many2One.from_raw(tenancy.get("partner_id"))

            summaries.append(TenancySummary(
                id=tenancy["id"],
                name=odoo_text(tenancy.get("name")),
                display_name=odoo_text(tenancy.get("display_name")),
                asset_id=asset.id,
                property_street=odoo_text(prop.get("street")) or "",
                property_zip=odoo_text(prop.get("zip")) or "",
                property_city=odoo_text(prop.get("city")) or "",
                property_company=company.label or "",
                property_entity_id=entity.id,
                property_entity_name=entity.label,
                tenant_partner_id=tenant.id,
                tenant_partner_name=tenant.label,
            ))

        return summaries

    async def fetch_tenancy_names(self, tenancy_ids: Iterable[int]) -> Dict[int, str]:
        """Display names for a list of tenancy ids"""
        ids = _unique(odoo_int(i) for i in tenancy_ids)
        if not ids:
            return {}

        async with self.client.session() as odoo:
            records = await odoo.search_read(
                TENANCY_MODEL,
                [["id", "in", ids]],
                ["id", "name", "display_name"],
                limit=len(ids)
            )

        return {
            record["id"]: odoo_text(record.get("display_name")) or odoo_text(record.get("name")) or str(record["id"])
            for record in records
        }

    # ================================
    # VENDORS
    # ================================

    async def find_vendors_by_property_label(self, internal_label: Optional[str]) -> List[Partner]:
        """
        Partners tagged "Maintenance" AND with a tag containing the property's
        internal label (case-insensitive). Empty label -> [] without any ERP call.
        """
        label = (internal_label or "").strip()
        if not label:
            logger.warning("find_vendors_by_property_label called without internal label")
            return []

        domain = [
            ["category_id.name", "ilike", settings.MAINTENANCE_TAG],
            ["category_id.name", "ilike", label],
        ]
        logger.info(f"Searching Odoo vendors with categories '{settings.MAINTENANCE_TAG}' + '{label}'")

        async with self.client.session() as odoo:
            records = await odoo.search_read(PARTNER_MODEL, domain, VENDOR_FIELDS, limit=VENDOR_SEARCH_LIMIT)

        return [_partner_from_record(record) for record in records]

    async def partner_exists(self, partner_id: Optional[int]) -> bool:
        """
        Probe before trusting a cached partner id. Lookup failures count as
        "not confirmed" so the caller can recreate instead of hard-failing.
        """
        if not odoo_int(partner_id):
            return False

        try:
            async with self.client.session() as odoo:
                records = await odoo.search_read(
                    PARTNER_MODEL,
                    [["id", "=", partner_id]],
                    ["id"],
                    limit=1
                )
        except AppException as e:
            logger.warning(f"Could not confirm partner {partner_id} in Odoo: {e.detail}")
            return False

        return bool(records)

    async def get_property_internal_label(self, property_id: Optional[int]) -> Optional[str]:
        """Internal label of a property; read failures yield None"""
        if not odoo_int(property_id):
            return None

        try:
            async with self.client.session() as odoo:
                records = await odoo.search_read(
                    PROPERTY_MODEL,
                    [["id", "=", property_id]],
                    ["id", "internal_label"],
                    limit=1
                )
        except AppException as e:
            logger.warning(f"Could not read internal label of property {property_id}: {e.detail}")
            return None

        return odoo_text(records[0].get("internal_label")) if records else None

    async def create_or_reuse_partner(self, data: PartnerCreate, internal_label: Optional[str] = None) -> int:
        """
        Create a vendor partner tagged "Maintenance" (+ the property's internal label).

        Tags are found-or-created by exact name, one after another, before the
        partner is created with all tag ids in a single write. A failing tag
        creation aborts before any partner is created.
        """
        tag_names = [settings.MAINTENANCE_TAG]
        label = (internal_label or "").strip()
        if label and label not in tag_names:
            tag_names.append(label)

        async with self.client.session() as odoo:
            category_ids = await self._resolve_categories(odoo, tag_names)

            values: Dict[str, Any] = {"name": data.name}
            for field in ("street", "zip", "city", "email", "phone"):
                value = getattr(data, field)
                if value:
                    values[field] = value
            if category_ids:
                values["category_id"] = [[6, 0, category_ids]]

            partner_id = await odoo.create(PARTNER_MODEL, values)

        logger.info(f"Created partner {partner_id} in Odoo ({data.name}, tags={tag_names})")
        return partner_id

    async def _resolve_categories(self, odoo: OdooSession, names: List[str]) -> List[int]:
        existing = await odoo.search_read(
            CATEGORY_MODEL,
            [["name", "in", names]],
            ["id", "name"],
            limit=len(names)
        )
        existing_by_name = {
            record["name"]: record["id"]
            for record in existing
            if record.get("name") and odoo_int(record.get("id"))
        }

        category_ids = []
        for name in names:
            if name in existing_by_name:
                category_ids.append(existing_by_name[name])
                continue
            new_id = await odoo.create(CATEGORY_MODEL, {"name": name})
            logger.info(f"Created partner category '{name}' ({new_id}) in Odoo")
            category_ids.append(new_id)

        return category_ids

    # ================================
    # OFFER MAIL CONTEXT
    # ================================

    async def fetch_offer_mail_context(
        self,
        tenancy_id: int,
        tenant_partner_id: Optional[int] = None
    ) -> OfferMailContext:
        """Owner entity, tenant contact and building company for the offer mail"""
        async with self.client.session() as odoo:
            tenancies = await odoo.search_read(
                TENANCY_MODEL,
                [["id", "=", tenancy_id]],
                ["id", "name", "main_property_id", "partner_id"],
                limit=1
            )
            if not tenancies:
                raise NotFoundError(f"Tenancy {tenancy_id} not found in ERP")
            tenancy = tenancies[0]

            building = None
            owner = None
            main_property = Many2One.from_raw(tenancy.get("main_property_id"))
            if not main_property.is_absent:
                properties = await odoo.read(PROPERTY_MODEL, [main_property.id], PROPERTY_ADDRESS_FIELDS)
                if properties:
                    prop = properties[0]
                    building = BuildingContact(
                        company_name=Many2One.from_raw(prop.get("company_id")).label,
                        street=odoo_text(prop.get("street")),
                        zip=odoo_text(prop.get("zip")),
                        city=odoo_text(prop.get("city")),
                    )
                    entity = Many2One.from_raw(prop.get("entity_id"))
                    if not entity.is_absent:
                        owner_record = await self._read_partner(odoo, entity.id)
                        if owner_record:
                            owner = OwnerEntity(
                                name=owner_record.name,
                                address=owner_record.address,
                                vat=owner_record.vat,
                            )

            tenant = None
            tenant_id = odoo_int(tenant_partner_id) or Many2One.from_raw(tenancy.get("partner_id")).id
            if tenant_id:
                tenant_record = await self._read_partner(odoo, tenant_id)
                if tenant_record:
                    tenant = TenantContact(
                        name=tenant_record.name,
                        address=tenant_record.address,
                        email=tenant_record.email,
                        phone=tenant_record.phone,
                    )

        return OfferMailContext(building=building, owner_entity=owner, tenant=tenant)

    async def _read_partner(self, odoo: OdooSession, partner_id: int) -> Optional[Partner]:
        records = await odoo.read(PARTNER_MODEL, [partner_id], CONTACT_FIELDS)
        return _partner_from_record(records[0]) if records else None

# ================================
# HELPERS
# ================================

def _unique(values: Iterable[Optional[int]]) -> List[int]:
    seen: List[int] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen

def _partner_from_record(record: Dict[str, Any]) -> Partner:
    street = odoo_text(record.get("street"))
    zip_code = odoo_text(record.get("zip"))
    city = odoo_text(record.get("city"))
    address = odoo_text(record.get("contact_address_complete"))
    if address:
        address = ", ".join(line.strip() for line in address.splitlines() if line.strip())
    else:
        address = format_address([street, format_address([zip_code, city])], ", ") or None

    return Partner(
        id=record["id"],
        name=odoo_text(record.get("name")) or "",
        email=odoo_text(record.get("email")),
        phone=odoo_text(record.get("phone")),
        street=street,
        zip=zip_code,
        city=city,
        vat=odoo_text(record.get("vat")),
        address=address,
        category_ids=odoo_ids(record.get("category_id")),
    )
