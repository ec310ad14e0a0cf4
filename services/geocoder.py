# services/geocoder.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Tuple

import aiohttp

from errors import AddressNotFoundError, ProviderError

logger = logging.getLogger("uvicorn.error")

NOMINATIM = "https://nominatim.openstreetmap.org/search"
GOOGLE_GEOCODE = "https://maps.googleapis.com/maps/api/geocode/json"


def build_full_address(address: str, city: str, pincode: str) -> str:
    return f"{address}, {city}, {pincode}"


class Geocoder:
    """
    Resolve a free-text address to (latitude, longitude) with one provider call.

    No caching and no retries: a miss is AddressNotFoundError (400), any
    transport or provider failure is ProviderError (500).
    """

    def __init__(
        self,
        provider: str = "nominatim",
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        user_agent: str = "shop-directory/1.0",
        timeout: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        if provider not in ("nominatim", "google"):
            raise ValueError(f"Unknown geocoder provider: {provider}")
        if provider == "google" and not api_key:
            raise ValueError("GEOCODER_API_KEY is required for the google provider")
        self.provider = provider
        self.api_key = api_key
        self.url = url or (GOOGLE_GEOCODE if provider == "google" else NOMINATIM)
        self.user_agent = user_agent
        self.timeout = timeout
        self._session = session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()

    def _request_params(self, query: str) -> dict:
        if self.provider == "google":
            return {"address": query, "key": self.api_key}
        return {"q": query, "format": "json", "limit": 1, "addressdetails": 0}

    async def _get_json(self, session: aiohttp.ClientSession, query: str) -> Any:
        async with session.get(
            self.url,
            params=self._request_params(query),
            headers={"User-Agent": self.user_agent},
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as r:
            r.raise_for_status()
            return await r.json(content_type=None)

    async def _fetch(self, query: str) -> Any:
        try:
            if self._session is not None:
                return await self._get_json(self._session, query)
            async with aiohttp.ClientSession() as session:
                return await self._get_json(session, query)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error("Geocoding request failed for %r: %s", query, e)
            raise ProviderError()

    def _first_candidate(self, data: Any) -> Optional[Tuple[float, float]]:
        if self.provider == "google":
            if not isinstance(data, dict):
                raise ProviderError()
            status = data.get("status")
            if status == "ZERO_RESULTS":
                return None
            if status != "OK":
                logger.error("Geocoding provider returned status %s", status)
                raise ProviderError()
            results = data.get("results") or []
            if not results:
                return None
            loc = results[0]["geometry"]["location"]
            return float(loc["lat"]), float(loc["lng"])

        if not isinstance(data, list):
            raise ProviderError()
        if not data:
            return None
        return float(data[0]["lat"]), float(data[0]["lon"])

    async def resolve(self, query: str) -> Tuple[float, float]:
        data = await self._fetch(query)
        try:
            found = self._first_candidate(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Unparsable geocoding response for %r: %s", query, e)
            raise ProviderError()
        if found is None:
            logger.info("Geocoding miss: %s", query)
            raise AddressNotFoundError()
        return found


def get_geocoder_from_settings(session: Optional[aiohttp.ClientSession] = None) -> Geocoder:
    from settings import (
        GEOCODER_PROVIDER, GEOCODER_API_KEY, GEOCODER_URL,
        GEOCODER_USER_AGENT, GEOCODER_TIMEOUT,
    )
    return Geocoder(
        provider=GEOCODER_PROVIDER,
        api_key=GEOCODER_API_KEY,
        url=GEOCODER_URL,
        user_agent=GEOCODER_USER_AGENT,
        timeout=GEOCODER_TIMEOUT,
        session=session,
    )
