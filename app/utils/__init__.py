# ================================
# UTILS PACKAGE INITIALIZATION (utils/__init__.py)
# ================================

"""
Utils Package

Helper functions shared by the ERP bridge, the vendor search, the cost report
and the mail templates:
- German number / currency formatting
- German address parsing
- Cost row id generation
- Date helpers
"""

import re
import time
import secrets
import string
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, Optional, Tuple, Union

EM_DASH = "—"

Number = Union[int, float, Decimal]

# ================================
# NUMBER & CURRENCY FORMATTING
# ================================

def to_decimal(value: Number) -> Decimal:
    """Convert a float/int to Decimal without binary float artefacts"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))

def round_money(value: Number) -> Decimal:
    """Round to two decimal places (kaufmännisch)"""
    return to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

def format_de_number(value: Number, decimals: int = 2) -> str:
    """
    Format a number using German conventions

    Args:
        value: Number to format
        decimals: Number of decimal places

    Returns:
        Formatted string (e.g., 1234.5 -> "1.234,50")
    """
    exponent = Decimal(1).scaleb(-decimals)
    quantized = to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)
    formatted = f"{quantized:,.{decimals}f}"
    return formatted.replace(",", "_").replace(".", ",").replace("_", ".")

def format_eur(value: Optional[Number]) -> str:
    """
    Format an amount as Euro currency (German locale)

    Args:
        value: Amount or None

    Returns:
        "1.234,56 €", or an em-dash placeholder for a missing amount
    """
    if value is None:
        return EM_DASH
    return f"{format_de_number(value)} €"

def format_percent(rate: float) -> str:
    """0.19 -> "19%", 0.075 -> "7,5%" """
    percent = to_decimal(rate) * 100
    text = format(percent.normalize(), "f")
    return f"{text.replace('.', ',')}%"

def parse_de_amount(raw: Optional[str]) -> Optional[float]:
    """
    Parse a user-entered amount that may use German separators

    "1.234,50" -> 1234.5, "12,5" -> 12.5, "12.5" -> 12.5, "" -> None
    """
    if raw is None:
        return None
    text = raw.strip().replace("€", "").replace("\u00a0", "").replace(" ", "")
    if not text:
        return None
    if "," in text:
        text = text.replace(".", "").replace(",", ".")
    try:
        return float(Decimal(text))
    except InvalidOperation:
        return None

# ================================
# ADDRESS UTILITIES
# ================================

_ZIP_CITY_PATTERN = re.compile(r"(\d{4,5})\s+(.+)")

def parse_german_address(address: Optional[str]) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """
    Split a formatted address ("Musterstraße 1, 10115 Berlin, Deutschland")

    Returns:
        Tuple of (street, zip, city); missing parts are None
    """
    if not address:
        return None, None, None

    parts = [part.strip() for part in address.split(",")]
    street = parts[0] or None
    zip_code = None
    city = None

    if len(parts) >= 2:
        match = _ZIP_CITY_PATTERN.match(parts[1])
        if match:
            zip_code = match.group(1)
            city = match.group(2)
        else:
            city = parts[1] or None

    return street, zip_code, city

def format_address(parts: Iterable[Optional[str]], separator: str = " ") -> str:
    """Join the non-empty address parts"""
    return separator.join(str(part) for part in parts if part)

# ================================
# ID GENERATION
# ================================

_BASE36 = string.digits + string.ascii_lowercase

def generate_row_id() -> str:
    """Client-style cost row id: "<epoch millis>-<6 base36 chars>" """
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"{int(time.time() * 1000)}-{suffix}"

# ================================
# DATE/TIME UTILITIES
# ================================

def add_days_iso_date(value: Union[date, datetime], days: int) -> str:
    """Add days and return YYYY-MM-DD"""
    return (value + timedelta(days=days)).strftime("%Y-%m-%d")

def format_de_date(value: Union[date, datetime]) -> str:
    """Format a date as DD.MM.YYYY"""
    return value.strftime("%d.%m.%Y")
