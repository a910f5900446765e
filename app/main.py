# ================================
# MAIN APPLICATION (main.py)
# ================================

from datetime import datetime, timezone
from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

# Core imports
from app.config import settings
from app.core.exceptions import AppException
from app.core.middleware import RequestContextMiddleware, AuditMiddleware

# API Routes
from app.api import API_VERSION, API_TITLE, API_DESCRIPTION
from app.api.v1 import tenancies, partners, vendors, tickets

import logging
import uvicorn

# ================================
# LOGGING CONFIGURATION
# ================================

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ================================
# APPLICATION LIFECYCLE
# ================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""

    # Startup
    logger.info(f"Starting {settings.APP_NAME}")
    log_integration_status()

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME}")

def integration_status() -> dict:
    """Which external systems are configured (no network calls)"""
    return {
        "erp": "configured" if all([settings.ODOO_URL, settings.ODOO_DB, settings.ODOO_USER, settings.ODOO_API_KEY]) else "not_configured",
        "places": "configured" if settings.GOOGLE_PLACES_API_KEY else "not_configured",
        "ticket_store": "supabase" if settings.SUPABASE_URL and settings.SUPABASE_SERVICE_ROLE_KEY else "in_memory",
    }

def log_integration_status():
    for name, status in integration_status().items():
        if status == "not_configured":
            logger.warning(f"Integration '{name}' not configured")
        else:
            logger.info(f"Integration '{name}': {status}")

# ================================
# FASTAPI APPLICATION
# ================================

app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    description=API_DESCRIPTION,
    docs_url="/docs" if settings.DEBUG else None,  # Disable docs in production
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan
)

# ================================
# MIDDLEWARE CONFIGURATION
# ================================

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time", "Content-Disposition"]
)

# Audit Logging
app.add_middleware(AuditMiddleware)

# Request ID / Timing (outermost)
app.add_middleware(RequestContextMiddleware)

# ================================
# EXCEPTION HANDLERS
# ================================

@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """Handler für Application-spezifische Exceptions"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "error_code": exc.error_code,
            "request_id": getattr(request.state, "request_id", None)
        }
    )

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handler für Standard HTTP Exceptions"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "request_id": getattr(request.state, "request_id", None)
        }
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handler für unbehandelte Exceptions"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error" if not settings.DEBUG else str(exc),
            "error_code": "INTERNAL_ERROR",
            "request_id": getattr(request.state, "request_id", None)
        }
    )

# ================================
# HEALTH CHECK ENDPOINTS
# ================================

@app.get("/health", tags=["Health"])
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": API_VERSION
    }

@app.get("/health/detailed", tags=["Health"])
async def detailed_health_check():
    """Health check with configuration state of the integrations"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": API_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": integration_status()
    }

# ================================
# API ROUTES
# ================================

# Tenancy / building routes (ERP)
app.include_router(
    tenancies.router,
    prefix="/api/v1/tenancies",
    tags=["Tenancies"],
    responses={
        404: {"description": "Tenancy not found"},
        502: {"description": "ERP error"}
    }
)

# Partner routes (ERP)
app.include_router(
    partners.router,
    prefix="/api/v1/partners",
    tags=["Partners"],
    responses={
        502: {"description": "ERP error"}
    }
)

# Vendor search routes
app.include_router(
    vendors.router,
    prefix="/api/v1/vendors",
    tags=["Vendors"],
    responses={
        502: {"description": "External API error"}
    }
)

# Ticket routes (cost table, report, vendor choice, mails)
app.include_router(
    tickets.router,
    prefix="/api/v1/tickets",
    tags=["Tickets"],
    responses={
        404: {"description": "Ticket not found"}
    }
)

# ================================
# ROOT ENDPOINT
# ================================

@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": API_VERSION,
        "docs_url": "/docs" if settings.DEBUG else None,
        "health_url": "/health",
        "available_endpoints": {
            "tenancies": "/api/v1/tenancies",
            "partners": "/api/v1/partners",
            "vendors": "/api/v1/vendors",
            "tickets": "/api/v1/tickets"
        }
    }

# ================================
# DEVELOPMENT SERVER
# ================================

if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
        access_log=True
    )
