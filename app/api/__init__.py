# ================================
# API PACKAGE INITIALIZATION (api/__init__.py)
# ================================

"""
API Package

Root package für alle API-Routen
"""

# Version Info
API_VERSION = "1.0.0"
API_TITLE = "Facility Portal API"
API_DESCRIPTION = """
Facility Portal API: ERP bridge, vendor search, cost reports and mail drafts

## Features
- Tenancy -> property -> partner lookups against Odoo (XML-RPC)
- Internal vendor matching via ERP partner tags
- External vendor search via Google Places with contact email discovery
- Idempotent vendor import into the ERP
- Paginated PDF cost estimates (DIN 276 cost groups, net / VAT / gross)
- Inquiry and offer mail drafts as mailto: links
"""
