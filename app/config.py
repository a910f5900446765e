# ================================
# CONFIGURATION (config.py)
# ================================

from pydantic_settings import BaseSettings
from typing import Dict, Optional

class settings(BaseSettings):
    # Odoo ERP (XML-RPC)
    ODOO_URL: Optional[str] = None
    ODOO_DB: Optional[str] = None
    ODOO_USER: Optional[str] = None
    ODOO_API_KEY: Optional[str] = None
    ODOO_TIMEOUT: float = 30.0

    # Google Places Text Search
    GOOGLE_PLACES_API_KEY: Optional[str] = None
    PLACES_LANGUAGE: str = "de"
    PLACES_REGION: str = "de"
    PLACES_MAX_QUERY_LENGTH: int = 512  # Limit der Text Search API
    PLACES_MAX_DETAIL_RESULTS: int = 8
    HTTP_TIMEOUT: float = 15.0

    # Supabase (Ticket Store)
    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    # Business Settings
    VAT_RATE: float = 0.19
    MAINTENANCE_TAG: str = "Maintenance"
    ALLOWED_PROPERTY_COMPANIES: list[str] = ["Eagle", "Fund IV"]
    INVOICE_MAILBOX_DEFAULT: str = "inv@redefine.group"
    INVOICE_MAILBOXES: Dict[str, str] = {
        "Fund IV": "inv-4@redefine.group",
        "Eagle": "inv-eagle@redefine.group",
    }

    # Email Templates (mailto-Entwürfe)
    EMAIL_TEMPLATES_DIR: str = "app/templates/email"

    # App Settings
    APP_NAME: str = "Facility Portal"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        extra = "ignore"  # Ignore extra fields from .env

settings = settings()
