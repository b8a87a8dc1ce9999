"""HTTP client with retry/backoff and request metrics."""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

RETRYABLE_STATUSES = (429, 500, 502, 503, 504)


@dataclass
class RequestMetrics:
    network_geocode: int = 0
    cache_hits_geocode: int = 0
    failures_geocode: int = 0

    def inc_network(self) -> None:
        self.network_geocode += 1

    def inc_cache_hit(self) -> None:
        self.cache_hits_geocode += 1

    def inc_failure(self) -> None:
        self.failures_geocode += 1


class HttpClient:
    def __init__(
        self,
        user_agent: str,
        timeout: float = 10,
        retry_max: int = 1,
        backoff_base: float = 0.5,
        backoff_max: float = 8.0,
    ) -> None:
        self.user_agent = user_agent
        self.timeout = timeout
        self.retry_max = max(1, int(retry_max))
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.session = requests.Session()

    def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }
        if extra_headers:
            headers.update(extra_headers)

        for attempt in range(1, self.retry_max + 1):
            try:
                resp = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
            except requests.RequestException:
                if attempt >= self.retry_max:
                    raise
                self._sleep_backoff(attempt)
                continue

            status = resp.status_code
            if 200 <= status < 300:
                try:
                    return resp.json()
                except ValueError:
                    logger.error("Non-JSON response from %s", url)
                    raise

            if status in RETRYABLE_STATUSES:
                logger.warning("HTTP %s from %s (attempt %s)", status, url, attempt)
                if attempt >= self.retry_max:
                    resp.raise_for_status()
                    raise requests.HTTPError(f"HTTP {status} from {url}", response=resp)
                if not self._sleep_retry_after(resp):
                    self._sleep_backoff(attempt)
                continue

            # Non-retryable
            logger.error("HTTP %s from %s", status, url)
            resp.raise_for_status()
            raise requests.HTTPError(f"HTTP {status} from {url}", response=resp)

        raise RuntimeError("Unexpected HTTP retry loop exit")

    def _sleep_backoff(self, attempt: int) -> None:
        base = min(self.backoff_base * (2 ** (attempt - 1)), self.backoff_max)
        jitter = random.uniform(0, self.backoff_base)
        time.sleep(base + jitter)

    def _sleep_retry_after(self, resp: requests.Response) -> bool:
        retry_after = resp.headers.get("Retry-After")
        if not retry_after:
            return False
        try:
            delay = float(retry_after)
        except ValueError:
            return False
        delay = max(0.0, min(delay, self.backoff_max))
        time.sleep(delay)
        return True
