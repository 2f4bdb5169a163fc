"""Google Places lookup: text search for the business, then place details."""

from typing import Any

from worker.providers.base import ProviderAdapter, bare_domain
from worker.providers.models import (
    AuditTarget,
    BusinessListing,
    BusinessListingResult,
    ProviderError,
    ProviderName,
    ReviewExcerpt,
)

PLACES_BASE_URL = "https://maps.googleapis.com/maps/api/place"
DETAIL_FIELDS = (
    "name,formatted_address,formatted_phone_number,business_status,rating,"
    "user_ratings_total,reviews,types,website,photos,url"
)
MAX_REVIEWS = 5
REVIEW_TEXT_LIMIT = 200

# Places answers 200 with a status field; these two are not failures
OK_STATUSES = {"OK", "ZERO_RESULTS"}


class BusinessListingAdapter(ProviderAdapter):
    name = ProviderName.BUSINESS_LISTING
    default_base_url = PLACES_BASE_URL

    async def _fetch(self, target: AuditTarget) -> BusinessListingResult:
        api_key = self._require_api_key("GOOGLE_API_KEY")
        query = f"{target.company_name} {bare_domain(target.url)}".strip()

        async with self._client() as client:
            search = await client.get(
                f"{self._base_url}/textsearch/json",
                params={"query": query, "key": api_key},
            )
            search.raise_for_status()
            search_data = self._checked(search.json())
            results = search_data.get("results") or []
            if not results:
                return BusinessListingResult(found=False)

            details = await client.get(
                f"{self._base_url}/details/json",
                params={
                    "place_id": results[0]["place_id"],
                    "fields": DETAIL_FIELDS,
                    "key": api_key,
                },
            )
            details.raise_for_status()
            place = self._checked(details.json()).get("result") or {}

        return BusinessListingResult(
            found=True,
            listing=map_place(place, fallback_name=target.company_name),
        )

    def _checked(self, payload: dict[str, Any]) -> dict[str, Any]:
        status = payload.get("status", "OK")
        if status not in OK_STATUSES:
            detail = payload.get("error_message") or status
            raise ProviderError(self.name, f"Places API error: {detail}")
        return payload


def map_place(place: dict[str, Any], fallback_name: str = "") -> BusinessListing:
    """Map a Place Details ``result`` onto ``BusinessListing``."""
    photos = place.get("photos") or []
    status = place.get("business_status") or "UNKNOWN"
    return BusinessListing(
        name=place.get("name") or fallback_name,
        address=place.get("formatted_address"),
        phone=place.get("formatted_phone_number"),
        business_status=status,
        rating=place.get("rating") or 0,
        review_count=place.get("user_ratings_total") or 0,
        reviews=[
            ReviewExcerpt(
                author=r.get("author_name") or "",
                rating=r.get("rating") or 0,
                time_ago=r.get("relative_time_description") or "",
                text=(r.get("text") or "")[:REVIEW_TEXT_LIMIT],
            )
            for r in (place.get("reviews") or [])[:MAX_REVIEWS]
        ],
        types=place.get("types") or [],
        has_photos=bool(photos),
        photo_count=len(photos),
        website=place.get("website"),
        maps_url=place.get("url"),
        is_verified=status == "OPERATIONAL",
    )
