# ================================
# ERP SCHEMAS (schemas/erp.py)
# ================================

from pydantic import Field
from typing import Optional, List

from app.schemas.base import BaseSchema

# ================================
# PROPERTY / TENANCY
# ================================

class BuildingInfo(BaseSchema):
    """Mietvertrag + zugehöriges Objekt (property.property), alle Objektfelder optional"""
    tenancy_id: int
    tenancy_name: Optional[str] = None
    objekt_label: str = ""
    property_id: Optional[int] = None
    property_reference: Optional[str] = None
    property_internal_label: Optional[str] = None
    property_street: Optional[str] = None
    property_zip: Optional[str] = None
    property_city: Optional[str] = None
    construction_year: Optional[int] = None
    last_modernization: Optional[int] = None
    entity_id: Optional[int] = None
    entity_name: Optional[str] = None
    company_name: Optional[str] = None

class TenancySummary(BaseSchema):
    """Mietvertrag angereichert mit Objektadresse und Gesellschaft"""
    id: int
    name: Optional[str] = None
    display_name: Optional[str] = None
    asset_id: Optional[int] = Field(None, description="ID des property.property")
    property_street: str = ""
    property_zip: str = ""
    property_city: str = ""
    property_company: str = ""
    property_entity_id: Optional[int] = None
    property_entity_name: Optional[str] = None
    tenant_partner_id: Optional[int] = None
    tenant_partner_name: Optional[str] = None

class TenancyOption(BaseSchema):
    """Eintrag für Auswahllisten"""
    id: int
    label: str
    full_details: str
    asset_id: Optional[int] = None
    tenant_partner_id: Optional[int] = None
    tenant_partner_name: Optional[str] = None
    entity_id: Optional[int] = None
    entity_name: Optional[str] = None
    property_company: Optional[str] = None

# ================================
# PARTNER
# ================================

class Partner(BaseSchema):
    """Geschäftspartner (res.partner)"""
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    street: Optional[str] = None
    zip: Optional[str] = None
    city: Optional[str] = None
    vat: Optional[str] = None
    address: Optional[str] = Field(None, description="Vollständige formatierte Adresse")
    category_ids: List[int] = Field(default_factory=list)

class PartnerCreate(BaseSchema):
    """Daten für die Neuanlage eines Dienstleisters im ERP"""
    name: str = Field(..., min_length=1)
    street: Optional[str] = None
    zip: Optional[str] = None
    city: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

# ================================
# OFFER MAIL CONTEXT
# ================================

class BuildingContact(BaseSchema):
    company_name: Optional[str] = None
    street: Optional[str] = None
    zip: Optional[str] = None
    city: Optional[str] = None

class OwnerEntity(BaseSchema):
    name: Optional[str] = None
    address: Optional[str] = None
    vat: Optional[str] = None

class TenantContact(BaseSchema):
    name: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

class OfferMailContext(BaseSchema):
    """Eigentümerin, Mieter und Objekt für das Beauftragungs-Template"""
    building: Optional[BuildingContact] = None
    owner_entity: Optional[OwnerEntity] = None
    tenant: Optional[TenantContact] = None
