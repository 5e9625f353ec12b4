"""Place search via the OpenStreetMap Nominatim API (no key, low volume)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"


async def search_location(query: str, client: httpx.AsyncClient | None = None) -> dict[str, Any] | None:
    """Return {lat, lon, display_name} for the best match, or None."""
    if not query or len(query) < 3:
        return None

    owns_client = client is None
    client = client or httpx.AsyncClient(
        timeout=10.0, headers={"User-Agent": "EchoSphere/1.0"}
    )
    try:
        resp = await client.get(NOMINATIM_URL, params={"format": "json", "q": query})
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError):
        logger.exception("Geocoding failed for %r", query)
        return None
    finally:
        if owns_client:
            await client.aclose()

    if not data:
        return None
    first = data[0]
    return {
        "lat": float(first["lat"]),
        "lon": float(first["lon"]),
        "display_name": first.get("display_name", ""),
    }
