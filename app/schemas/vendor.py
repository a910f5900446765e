# ================================
# VENDOR SCHEMAS (schemas/vendor.py)
# ================================

from pydantic import Field
from typing import Optional

from app.schemas.base import BaseSchema

class ExternalVendor(BaseSchema):
    """Dienstleister aus der Places-Suche, noch nicht im ERP"""
    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    email: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    source_url: Optional[str] = None
    snippet: Optional[str] = None
    source: str = "google_places"

class ExternalSearchRequest(BaseSchema):
    """Freitext-Suche nach externen Dienstleistern"""
    prompt: str = Field("", description="Suchtext, z.B. 'Sanitär Notdienst Berlin 10115'")
