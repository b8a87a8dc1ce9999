"""Institution and reference position records."""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from . import config


@dataclass(frozen=True)
class Institution:
    id: int
    name: str
    latitude: float
    longitude: float
    external_code: Optional[str] = None
    address: Optional[str] = None
    type: Optional[str] = None
    distance: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ReferencePosition:
    latitude: float
    longitude: float
    address: Optional[str] = None

    @property
    def needs_geocoding(self) -> bool:
        # An address with 0,0 coordinates is still waiting to be geocoded.
        return bool(self.address) and self.latitude == 0 and self.longitude == 0

    @classmethod
    def from_address(cls, address: str) -> "ReferencePosition":
        text = (address or "").strip()
        if not text:
            raise ValueError("Address must not be empty")
        return cls(latitude=0.0, longitude=0.0, address=text)

    @classmethod
    def from_coordinates(
        cls, latitude: float, longitude: float, address: Optional[str] = None
    ) -> "ReferencePosition":
        lat = float(latitude)
        lon = float(longitude)
        validate_coordinates(lat, lon)
        return cls(latitude=lat, longitude=lon, address=address)

    @classmethod
    def from_device(cls, latitude: float, longitude: float) -> "ReferencePosition":
        return cls.from_coordinates(latitude, longitude, address=config.DEVICE_POSITION_LABEL)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def validate_coordinates(latitude: float, longitude: float) -> None:
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise ValueError("Coordinates must be finite numbers")
    if latitude < -90 or latitude > 90:
        raise ValueError(f"Latitude out of range [-90, 90]: {latitude}")
    if longitude < -180 or longitude > 180:
        raise ValueError(f"Longitude out of range [-180, 180]: {longitude}")
