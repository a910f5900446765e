# ================================
# MAIL SCHEMAS (schemas/mail.py)
# ================================

from pydantic import BaseModel, Field
from typing import Optional, List

class MailDraft(BaseModel):
    """Fertig befüllte Mail (to/subject/body) plus mailto:-Link für den lokalen Mail-Client"""
    to: str
    subject: str
    body: str
    mailto: Optional[str] = None

class PhotoLink(BaseModel):
    """Bereits signierter Link auf ein Ticket-Foto"""
    original_name: str
    url: Optional[str] = None
    privacy: Optional[str] = None

class InquiryMailRequest(BaseModel):
    vendor_email: str = Field(..., min_length=3)
    vendor_name: str = ""
    photos: List[PhotoLink] = Field(default_factory=list)

class OfferMailRequest(BaseModel):
    vendor_email: str = Field(..., min_length=3)
    vendor_name: str = ""
