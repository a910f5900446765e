# ================================
# BASE SCHEMAS (schemas/base.py)
# ================================

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any

class BaseSchema(BaseModel):
    """Base Schema mit gemeinsamer Konfiguration"""
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        validate_assignment=True,
        arbitrary_types_allowed=True,
    )

# ================================
# ACTION RESULT (typed success/failure)
# ================================

# Menschenlesbare Meldungen für die Inline-Banner der Oberfläche
ERROR_MESSAGES: Dict[str, str] = {
    "INVALID_ID": "Ungültige ID.",
    "NOT_FOUND": "Der Mietvertrag wurde im ERP nicht gefunden.",
    "ERP_ERROR": "Das ERP-System ist derzeit nicht erreichbar.",
    "NO_BUILDING_DATA": "Für diesen Mietvertrag liegen keine Gebäudedaten vor.",
    "NO_INTERNAL_LABEL": "Für dieses Gebäude ist kein internes Label hinterlegt, daher ist kein Dienstleister-Abgleich möglich.",
    "EMPTY_PROMPT": "Bitte geben Sie einen Suchbegriff ein.",
    "NO_GOOGLE_KEY": "Die externe Dienstleistersuche ist nicht konfiguriert.",
    "GOOGLE_PLACES_HTTP_ERROR": "Die externe Dienstleistersuche ist fehlgeschlagen.",
    "EXTERNAL_SEARCH_ERROR": "Die externe Dienstleistersuche ist fehlgeschlagen.",
    "GOOGLE_PLACES_SEARCH_ERROR": "Die externe Dienstleistersuche ist fehlgeschlagen.",
    "REQUEST_DENIED": "Die externe Dienstleistersuche wurde vom Anbieter abgelehnt (API-Schlüssel prüfen).",
    "OVER_QUERY_LIMIT": "Das Kontingent der externen Dienstleistersuche ist erschöpft. Bitte später erneut versuchen.",
    "INVALID_REQUEST": "Die Suchanfrage ist ungültig. Bitte den Suchbegriff anpassen.",
    "TICKET_NOT_FOUND": "Ticket nicht gefunden.",
    "NO_VENDOR_SELECTED": "Es wurde noch kein Dienstleister ausgewählt.",
    "SUPABASE_UPDATE_ERROR": "Das Ticket konnte nicht aktualisiert werden.",
    "SUPABASE_READ_ERROR": "Das Ticket konnte nicht geladen werden.",
    "SUPABASE_RESET_ERROR": "Die Dienstleister-Verknüpfung konnte nicht zurückgesetzt werden.",
    "ERP_IMPORT_ERROR": "Der Dienstleister konnte nicht im ERP angelegt werden.",
}

DEFAULT_ERROR_MESSAGE = "Ein unerwarteter Fehler ist aufgetreten."

class ActionResult(BaseSchema):
    """Ergebnis einer UI-Aktion: entweder success mit data, oder error-Code mit Meldung"""
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = Field(None, description="Machine-readable error code")
    message: Optional[str] = Field(None, description="Human-readable (German) error message")
    meta: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ok(cls, data: Any = None, **meta) -> "ActionResult":
        return cls(success=True, data=data, meta=meta)

    @classmethod
    def fail(cls, error: str, message: Optional[str] = None) -> "ActionResult":
        return cls(
            success=False,
            error=error,
            message=message or ERROR_MESSAGES.get(error, DEFAULT_ERROR_MESSAGE),
        )

# ================================
# ERROR RESPONSE SCHEMAS
# ================================

class ErrorResponse(BaseSchema):
    """Standard Error Response Schema"""
    detail: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Application-specific error code")
    request_id: Optional[str] = None

class ReportErrorResponse(BaseSchema):
    """Fehlerantwort der PDF-Erzeugung"""
    error: str
    details: Optional[str] = None

class IdListRequest(BaseSchema):
    """Liste numerischer IDs (z.B. Tenancy-IDs)"""
    ids: List[int] = Field(default_factory=list)
