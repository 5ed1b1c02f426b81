"""Bing Image Search lookup for products that have no image yet."""

from __future__ import annotations

import logging
import os
import re
from typing import Any

import httpx

DEFAULT_ENDPOINT = "https://api.bing.microsoft.com/v7.0/images/search"

_IMAGE_URL_RE = re.compile(r"\.(jpg|jpeg|png|webp|avif)(\?|$)", re.IGNORECASE)


class ImageSearchService:
    def __init__(self, api_key: str | None = None, endpoint: str | None = None):
        self.api_key = api_key or os.getenv("BING_IMAGE_SEARCH_KEY")
        self.endpoint = endpoint or os.getenv("BING_IMAGE_SEARCH_ENDPOINT") or DEFAULT_ENDPOINT

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def search_product_images(
        self,
        query: str,
        count: int = 5,
        market: str = "en-US",
        safe_search: str = "Moderate",
    ) -> list[str]:
        """Return up to ``count`` direct image URLs for ``query``.

        Returns an empty list when the API key is not configured or the
        request fails.
        """

        if not self.api_key:
            logging.warning("BING_IMAGE_SEARCH_KEY is not configured; skipping image search")
            return []

        params = {
            "q": query,
            "count": str(count),
            "mkt": market,
            "safeSearch": safe_search,
            "imageType": "Photo",
            "color": "Color",
        }
        headers = {"Ocp-Apim-Subscription-Key": self.api_key}

        try:
            async with httpx.AsyncClient(timeout=10) as client:
                response = await client.get(self.endpoint, params=params, headers=headers)
                response.raise_for_status()
        except Exception:
            logging.exception("Bing image search failed for %r", query)
            return []

        try:
            data: dict[str, Any] = response.json()
        except ValueError:
            logging.exception("Bing image search returned invalid JSON for %r", query)
            return []

        items = data.get("value") if isinstance(data, dict) else None
        if not isinstance(items, list):
            logging.error("Unexpected response from Bing image search: %s", data)
            return []

        urls = [
            item.get("contentUrl")
            for item in items
            if isinstance(item, dict) and isinstance(item.get("contentUrl"), str)
        ]
        return [url for url in urls if _IMAGE_URL_RE.search(url)][:count]
