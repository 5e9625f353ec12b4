from __future__ import annotations

from fastapi import APIRouter, Query

from echosphere.services.geocoding import search_location

router = APIRouter(tags=["geocode"])


@router.get("/api/geocode")
async def geocode(q: str = Query(default="")):
    """Best Nominatim match as {lat, lon, display_name}, or null."""
    return await search_location(q.strip())
