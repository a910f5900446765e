# ================================
# SCHEMAS PACKAGE INITIALIZATION (schemas/__init__.py)
# ================================

"""
Pydantic Schemas Package

Zentrale Imports für alle Schemas im System
"""

# Base Schemas
from app.schemas.base import (
    BaseSchema,
    ActionResult,
    ErrorResponse,
    ReportErrorResponse,
    IdListRequest,
    ERROR_MESSAGES
)

# ERP Schemas
from app.schemas.erp import (
    BuildingInfo,
    TenancySummary,
    TenancyOption,
    Partner,
    PartnerCreate,
    BuildingContact,
    OwnerEntity,
    TenantContact,
    OfferMailContext
)

# Vendor Schemas
from app.schemas.vendor import (
    ExternalVendor,
    ExternalSearchRequest
)

# Ticket Schemas
from app.schemas.ticket import (
    RowKind,
    CostRow,
    CostTableUpdate,
    Ticket
)

# Mail Schemas
from app.schemas.mail import (
    MailDraft,
    PhotoLink,
    InquiryMailRequest,
    OfferMailRequest
)

__all__ = [
    "BaseSchema",
    "ActionResult",
    "ErrorResponse",
    "ReportErrorResponse",
    "IdListRequest",
    "ERROR_MESSAGES",
    "BuildingInfo",
    "TenancySummary",
    "TenancyOption",
    "Partner",
    "PartnerCreate",
    "BuildingContact",
    "OwnerEntity",
    "TenantContact",
    "OfferMailContext",
    "ExternalVendor",
    "ExternalSearchRequest",
    "RowKind",
    "CostRow",
    "CostTableUpdate",
    "Ticket",
    "MailDraft",
    "PhotoLink",
    "InquiryMailRequest",
    "OfferMailRequest",
]
