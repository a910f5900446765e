# ================================
# CUSTOM EXCEPTIONS (core/exceptions.py)
# ================================

class AppException(Exception):
    """Base Exception für Application-spezifische Fehler"""

    def __init__(self, detail: str, status_code: int = 400, error_code: str = None):
        self.detail = detail
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(detail)

class NotFoundError(AppException):
    """Referenzierter Datensatz existiert nicht (ERP oder Ticket Store)"""

    def __init__(self, detail: str = "Resource not found", error_code: str = "NOT_FOUND"):
        super().__init__(detail, 404, error_code)

class ErpError(AppException):
    """Transport- oder Authentifizierungsfehler gegenüber dem ERP"""

    def __init__(self, detail: str = "ERP request failed", error_code: str = "ERP_ERROR"):
        super().__init__(detail, 502, error_code)

class ExternalSearchError(AppException):
    """Fehler der externen Places-Suche (error_code = Provider-Status falls vorhanden)"""

    def __init__(self, detail: str = "External search failed", error_code: str = "EXTERNAL_SEARCH_ERROR"):
        super().__init__(detail, 502, error_code)

class TicketStoreError(AppException):
    """Schreib- oder Lesefehler im Ticket Store"""

    def __init__(self, detail: str = "Ticket store update failed", error_code: str = "SUPABASE_UPDATE_ERROR"):
        super().__init__(detail, 502, error_code)

class ReportRenderError(AppException):
    """PDF-Erzeugung fehlgeschlagen, es wird kein Teil-Dokument ausgeliefert"""

    def __init__(self, detail: str = "Report rendering failed", error_code: str = "REPORT_RENDER_ERROR"):
        super().__init__(detail, 500, error_code)
