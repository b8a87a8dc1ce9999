"""Address geocoding through the Nominatim search API."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import requests

from . import config
from .http import HttpClient, RequestMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeocodeResult:
    latitude: float
    longitude: float
    display_name: str


class Geocoder(Protocol):
    def geocode(self, address: str) -> Optional[GeocodeResult]:
        ...


class NominatimGeocoder:
    def __init__(
        self,
        http_client: HttpClient,
        url: Optional[str] = None,
        metrics: Optional[RequestMetrics] = None,
    ) -> None:
        self.http = http_client
        self.url = url or config.GEOCODER_URL
        self.metrics = metrics or RequestMetrics()
        self._memory_cache: Dict[str, Optional[GeocodeResult]] = {}

    def geocode(self, address: str) -> Optional[GeocodeResult]:
        query = (address or "").strip()
        if not query:
            return None
        if query in self._memory_cache:
            self.metrics.inc_cache_hit()
            return self._memory_cache[query]

        params = build_search_params(query)
        self.metrics.inc_network()
        try:
            response = self.http.get_json(self.url, params=params)
        except (requests.RequestException, ValueError) as exc:
            self.metrics.inc_failure()
            logger.warning("Geocoding failed for %r: %s", query, exc)
            return None

        result = parse_nominatim_response(response, query)
        if result is None:
            logger.info("No geocoding match for %r", query)
        # Only answered lookups are memoised; transport failures returned above.
        self._memory_cache[query] = result
        return result


def build_search_params(query: str) -> Dict[str, Any]:
    return {"format": "json", "q": query, "limit": config.GEOCODER_RESULT_LIMIT}


def parse_nominatim_response(response: Any, query: str = "") -> Optional[GeocodeResult]:
    if not isinstance(response, list) or not response:
        return None
    item = response[0]
    if not isinstance(item, dict):
        return None
    try:
        lat = float(item.get("lat"))
        lon = float(item.get("lon"))
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    return GeocodeResult(
        latitude=lat,
        longitude=lon,
        display_name=item.get("display_name") or query,
    )


def build_geocoder(metrics: Optional[RequestMetrics] = None) -> NominatimGeocoder:
    http_client = HttpClient(
        config.GEOCODER_USER_AGENT,
        timeout=config.HTTP_TIMEOUT_SECONDS,
        retry_max=config.HTTP_RETRY_MAX,
        backoff_base=config.HTTP_BACKOFF_BASE,
        backoff_max=config.HTTP_BACKOFF_MAX,
    )
    return NominatimGeocoder(http_client, url=config.GEOCODER_URL, metrics=metrics)
