"""
Vendor Matching Service
Finds service providers for a building: internal vendors from the ERP (tag match
on the property's internal label) and external vendors via Google Places Text
Search, enriched with phone/website details and a scraped contact email.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

import httpx

from app.config import settings
from app.core.exceptions import AppException, ExternalSearchError
from app.schemas.base import ActionResult
from app.schemas.vendor import ExternalVendor
from app.services.entity_directory_service import EntityDirectoryService

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# Kandidaten-Seiten relativ zur Website-Origin (Startseite kommt zuerst)
CONTACT_PAGE_PATHS = ["/impressum", "/impressum.html", "/kontakt", "/kontakt.html"]

DETAIL_FIELDS = "formatted_phone_number,international_phone_number,website,url"

UNKNOWN_VENDOR_NAME = "Unbekannter Dienstleister"

class VendorMatchingService:
    """Internal (ERP) and external (Places) vendor search, never merged"""

    def __init__(
        self,
        directory: Optional[EntityDirectoryService] = None,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.directory = directory or EntityDirectoryService()
        self.api_key = api_key if api_key is not None else settings.GOOGLE_PLACES_API_KEY
        if not self.api_key:
            logger.warning("GOOGLE_PLACES_API_KEY not configured")

        self.base_url = "https://maps.googleapis.com/maps/api/place"
        self.max_query_length = settings.PLACES_MAX_QUERY_LENGTH
        self.max_detail_results = settings.PLACES_MAX_DETAIL_RESULTS
        self.transport = transport

    # ================================
    # INTERNAL VENDORS (ERP)
    # ================================

    async def match_internal(self, property_label: Optional[str]) -> ActionResult:
        """Partners tagged "Maintenance" + internal label, in ERP order"""
        label = (property_label or "").strip()
        if not label:
            return ActionResult.fail("NO_INTERNAL_LABEL")

        try:
            vendors = await self.directory.find_vendors_by_property_label(label)
        except AppException as e:
            logger.error(f"Internal vendor search failed for label '{label}': {e.detail}")
            return ActionResult.fail(e.error_code or "ERP_ERROR")

        return ActionResult.ok(vendors)

    # ================================
    # EXTERNAL VENDORS (GOOGLE PLACES)
    # ================================

    async def match_external(self, prompt: Optional[str]) -> ActionResult:
        """
        Free-text search via Places Text Search.

        Returns ActionResult with the ranked vendor list and ``meta.used_prompt``
        (the possibly truncated query). ZERO_RESULTS is a valid empty answer.
        """
        query = (prompt or "").strip()
        if not query:
            return ActionResult.fail("EMPTY_PROMPT")

        if not self.api_key:
            logger.error("External vendor search requested without GOOGLE_PLACES_API_KEY")
            return ActionResult.fail("NO_GOOGLE_KEY")

        query = query[:self.max_query_length]
        logger.info(f"External vendor search query: {query}")

        try:
            async with httpx.AsyncClient(
                timeout=settings.HTTP_TIMEOUT,
                transport=self.transport,
                follow_redirects=True
            ) as client:
                places = await self.search_places(client, query)
                if not places:
                    return ActionResult.ok([], used_prompt=query)

                subset = places[:self.max_detail_results]
                vendors = await asyncio.gather(
                    *(self._build_vendor(client, place, index) for index, place in enumerate(subset))
                )

        except ExternalSearchError as e:
            logger.error(f"External vendor search failed ({e.error_code}): {e.detail}")
            return ActionResult.fail(e.error_code or "EXTERNAL_SEARCH_ERROR")
        except Exception as e:
            logger.error(f"External vendor search failed: {str(e)}", exc_info=True)
            return ActionResult.fail("EXTERNAL_SEARCH_ERROR")

        return ActionResult.ok(rank_vendors(list(vendors)), used_prompt=query)

    async def search_places(self, client: httpx.AsyncClient, query: str) -> List[Dict[str, Any]]:
        """First result page of Text Search; raises ExternalSearchError on HTTP/status failure"""
        params = {
            "query": query,
            "language": settings.PLACES_LANGUAGE,
            "region": settings.PLACES_REGION,
            "key": self.api_key
        }

        response = await client.get(f"{self.base_url}/textsearch/json", params=params)
        if response.status_code >= 400:
            logger.error(f"Google Places HTTP error (search): {response.status_code} - {response.text}")
            raise ExternalSearchError(
                f"Places search HTTP {response.status_code}",
                error_code="GOOGLE_PLACES_HTTP_ERROR"
            )

        data = response.json()
        status = data.get("status")
        logger.info(f"Google Places search status: {status}")

        if status not in ("OK", "ZERO_RESULTS"):
            logger.error(f"Google Places search non-OK status: {status} {data.get('error_message', '')}")
            raise ExternalSearchError(
                data.get("error_message") or f"Places search status {status}",
                error_code=status or "GOOGLE_PLACES_SEARCH_ERROR"
            )

        results = data.get("results")
        return results if isinstance(results, list) else []

    async def _build_vendor(self, client: httpx.AsyncClient, place: Dict[str, Any], index: int) -> ExternalVendor:
        place_id = place.get("place_id")
        name = place.get("name")
        address = place.get("formatted_address")

        details: Dict[str, Any] = {}
        if place_id:
            details = await self.fetch_place_details(client, place_id)

        website = details.get("website") or None
        email = None
        if website:
            email = await self.find_email_on_website(client, website)

        source_url = details.get("url") or (
            f"https://www.google.com/maps/place/?q=place_id:{place_id}" if place_id else None
        )

        return ExternalVendor(
            id=place_id or name or address or f"place-{index}",
            name=name or UNKNOWN_VENDOR_NAME,
            address=address or None,
            phone=details.get("formatted_phone_number") or details.get("international_phone_number") or None,
            website=website,
            email=email,
            rating=place.get("rating"),
            review_count=place.get("user_ratings_total"),
            source_url=source_url,
        )

    async def fetch_place_details(self, client: httpx.AsyncClient, place_id: str) -> Dict[str, Any]:
        """Phone/website/maps url of one place; failures yield {}"""
        params = {
            "place_id": place_id,
            "fields": DETAIL_FIELDS,
            "language": settings.PLACES_LANGUAGE,
            "key": self.api_key
        }

        try:
            response = await client.get(f"{self.base_url}/details/json", params=params)
            if response.status_code >= 400:
                logger.warning(f"Places details HTTP error for {place_id}: {response.status_code}")
                return {}

            data = response.json()
            if data.get("status") != "OK" or not isinstance(data.get("result"), dict):
                logger.warning(f"Places details status not OK for {place_id}: {data.get('status')}")
                return {}

            return data["result"]

        except Exception as e:
            logger.warning(f"Places details fetch failed for {place_id}: {str(e)}")
            return {}

    async def find_email_on_website(self, client: httpx.AsyncClient, website: str) -> Optional[str]:
        """First email address found on the homepage or the impressum/kontakt pages"""
        for url in candidate_contact_urls(website):
            try:
                response = await client.get(url)
                if response.status_code >= 400:
                    continue

                match = EMAIL_PATTERN.search(response.text)
                if match:
                    logger.info(f"Found email {match.group(0)} on {url}")
                    return match.group(0)

            except Exception as e:
                logger.warning(f"Error fetching {url}: {str(e)}")

        return None

# ================================
# HELPERS
# ================================

def candidate_contact_urls(website: str) -> List[str]:
    """Website itself plus impressum/kontakt variants on its origin, without duplicates.

    Values without scheme or host (e.g. "www.firma.de") are not fetchable and yield [].
    """
    parts = urlsplit(website)
    if not parts.scheme or not parts.netloc:
        return []

    origin = f"{parts.scheme}://{parts.netloc}"
    candidates = []
    for url in [website] + [f"{origin}{path}" for path in CONTACT_PAGE_PATHS]:
        if url not in candidates:
            candidates.append(url)
    return candidates

def rank_vendors(vendors: List[ExternalVendor]) -> List[ExternalVendor]:
    """Rating desc, then review count desc; vendors without rating last"""
    return sorted(
        vendors,
        key=lambda v: (
            v.rating is None,
            -(v.rating or 0),
            -(v.review_count or 0)
        )
    )
