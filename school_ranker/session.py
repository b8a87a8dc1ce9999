"""Mutable "current" state over the pure ranking pipeline.

A session owns the loaded institutions, the reference position and the
active filters. Every change recomputes the displayed results from scratch.
Position updates are numbered; a geocoding answer that arrives after a newer
update was issued is discarded, so the last request wins. State changes
happen under a lock, so a session can be shared between request threads.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from .geocoding import Geocoder
from .models import Institution, ReferencePosition
from .pipeline import (
    GeolocationError,
    build_summary,
    load_institutions,
    read_text_file,
    resolve_position,
)
from .ranking import filter_institutions, rank, validate_filters
from .reporting import encode_results_csv

logger = logging.getLogger(__name__)

Locator = Callable[[], Tuple[float, float]]


class RankingSession:
    def __init__(self, geocoder: Optional[Geocoder] = None) -> None:
        self.geocoder = geocoder
        self.institutions: List[Institution] = []
        self.results: List[Institution] = []
        self.position: Optional[ReferencePosition] = None
        self.level = "all"
        self.sector = "all"
        self._position_seq = 0
        self._lock = threading.Lock()

    def load_text(self, text: str) -> List[Institution]:
        institutions = load_institutions(text)
        with self._lock:
            if self.position is not None:
                institutions = rank(institutions, self.position)
            self.institutions = institutions
            return self._refresh()

    def load_file(self, path: str) -> List[Institution]:
        return self.load_text(read_text_file(path))

    def set_position(self, position: ReferencePosition) -> Optional[List[Institution]]:
        """Apply a new reference position.

        Returns the refreshed results, or None when a newer position update
        superseded this one while it was being resolved.
        """
        token = self._next_token()
        resolved = resolve_position(position, self.geocoder)
        return self._apply_position(token, resolved)

    def set_address(self, address: str) -> Optional[List[Institution]]:
        return self.set_position(ReferencePosition.from_address(address))

    def set_coordinates(self, latitude: float, longitude: float) -> Optional[List[Institution]]:
        return self.set_position(ReferencePosition.from_coordinates(latitude, longitude))

    def set_device_position(self, locate: Locator) -> Optional[List[Institution]]:
        token = self._next_token()
        try:
            latitude, longitude = locate()
            position = ReferencePosition.from_device(latitude, longitude)
        except Exception as exc:
            logger.warning("Device geolocation failed: %s", exc)
            raise GeolocationError() from exc
        return self._apply_position(token, position)

    def set_filters(self, level: str = "all", sector: str = "all") -> List[Institution]:
        validate_filters(level, sector)
        with self._lock:
            self.level = level
            self.sector = sector
            return self._refresh()

    def export_csv(self) -> str:
        return encode_results_csv(self.results)

    def summary(self) -> Dict[str, Any]:
        return build_summary(self.institutions, self.results, self.position, self.level, self.sector)

    def _next_token(self) -> int:
        with self._lock:
            self._position_seq += 1
            return self._position_seq

    def _apply_position(
        self, token: int, position: ReferencePosition
    ) -> Optional[List[Institution]]:
        with self._lock:
            if token != self._position_seq:
                logger.info("Discarding superseded position update #%s", token)
                return None
            self.position = position
            if self.institutions:
                self.institutions = rank(self.institutions, position)
            return self._refresh()

    def _refresh(self) -> List[Institution]:
        self.results = filter_institutions(self.institutions, self.level, self.sector)
        return self.results
