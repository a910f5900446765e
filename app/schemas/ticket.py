# ================================
# TICKET SCHEMAS (schemas/ticket.py)
# ================================

from enum import Enum
from pydantic import Field, field_validator
from typing import Optional, List, Any
from datetime import datetime

from app.schemas.base import BaseSchema
from app.utils import parse_de_amount

class RowKind(str, Enum):
    """Zeilentyp der Kostentabelle"""
    POSITION = "position"
    SUBTOTAL = "subtotal"
    EXTRA = "extra"
    TOTAL = "total"

class CostRow(BaseSchema):
    """Zeile der Kostentabelle (Kostengruppe nach DIN 276)"""
    id: Optional[str] = None
    label: str = ""
    kostengruppe: str = ""
    amount: Optional[float] = None
    notes: str = ""
    row_type: RowKind = Field(RowKind.POSITION, alias="rowType")

    @field_validator("label", "kostengruppe", "notes", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, v: Any) -> Any:
        if isinstance(v, str):
            return parse_de_amount(v)
        return v

    @field_validator("row_type", mode="before")
    @classmethod
    def default_row_type(cls, v: Any) -> Any:
        if isinstance(v, RowKind):
            return v
        try:
            return RowKind(v)
        except ValueError:
            return RowKind.POSITION

class CostTableUpdate(BaseSchema):
    """Vollständige Kostentabelle, ersetzt die gespeicherte Liste"""
    rows: List[CostRow] = Field(default_factory=list)

class Ticket(BaseSchema):
    """Ticket aus dem Ticket Store (nur die hier benötigten Felder)"""
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    odoo_tenancy_id: Optional[int] = None
    tenant_partner_id: Optional[int] = None
    asset_id: Optional[int] = None

    # Gewählter Dienstleister (TGM)
    chosen_tgm: Optional[str] = None
    tgm_street: Optional[str] = None
    tgm_zip: Optional[str] = None
    tgm_city: Optional[str] = None
    tgm_mail: Optional[str] = None
    tgm_phone: Optional[str] = None
    odoo_vendor_id: Optional[int] = None

    # Kostenanalyse
    cost_analysis_text: Optional[str] = None
    cost_table: List[CostRow] = Field(default_factory=list)
    beauftragungsumme: Optional[float] = Field(None, description="Beauftragungssumme brutto")
    expected_enddate: Optional[str] = None

    @field_validator("cost_table", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []
